"""
Certificate Builder for EBICS X.509 certificates.

Certified banks expect an X.509 certificate next to each user key (A006,
X002, E002). EBICS does not involve a CA here: the subscriber issues the
certificates itself, so the builder only produces self-signed end-entity
certificates. The helpers at the bottom render the ds:X509IssuerSerial
values sent in the INI/HIA order data.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from config.ebics_config import BankDistinguishedName

DEFAULT_VALIDITY_DAYS = 365


class CertificateBuilder:
    """
    Fluent builder for self-signed X.509 certificates.

    Example:
        certificate = (
            CertificateBuilder()
            .with_subject_dn(get_bank_dn("credit_suisse"))
            .with_public_key(private_key.public_key())
            .with_validity_period(days=3650)
            .with_key_usage(key_encipherment=True)
            .self_sign(private_key)
        )
    """

    def __init__(self):
        self._subject: List[x509.NameAttribute] = []
        self._public_key = None
        self._serial_number: Optional[int] = None
        self._validity: Optional[Tuple[datetime, datetime]] = None
        self._extensions: List[Tuple[x509.ExtensionType, bool]] = []

    # ========================================================================
    # SUBJECT
    # ========================================================================

    def with_subject_attribute(self, oid: x509.ObjectIdentifier, value: str) -> "CertificateBuilder":
        """Aggiunge un attributo qualsiasi al subject"""
        self._subject.append(x509.NameAttribute(oid, value))
        return self

    def with_subject_country(self, country: str) -> "CertificateBuilder":
        return self.with_subject_attribute(NameOID.COUNTRY_NAME, country)

    def with_subject_organization(self, org: str) -> "CertificateBuilder":
        return self.with_subject_attribute(NameOID.ORGANIZATION_NAME, org)

    def with_subject_common_name(self, cn: str) -> "CertificateBuilder":
        return self.with_subject_attribute(NameOID.COMMON_NAME, cn)

    def with_subject_dn(self, dn: BankDistinguishedName) -> "CertificateBuilder":
        """
        Imposta il subject da un profilo DN della banca.

        Ordine: C, ST, L, O, OU, attributi extra, CN.
        Le chiavi di dn.extra sono nomi di NameOID (es. "EMAIL_ADDRESS").

        Raises:
            ValueError: Se una chiave di extra non è un NameOID noto
        """
        self.with_subject_country(dn.country)
        optional = (
            (NameOID.STATE_OR_PROVINCE_NAME, dn.state),
            (NameOID.LOCALITY_NAME, dn.locality),
        )
        for oid, value in optional:
            if value:
                self.with_subject_attribute(oid, value)
        self.with_subject_organization(dn.organization)
        if dn.organizational_unit:
            self.with_subject_attribute(NameOID.ORGANIZATIONAL_UNIT_NAME, dn.organizational_unit)

        for name, value in dn.extra.items():
            oid = getattr(NameOID, name.upper(), None)
            if oid is None:
                raise ValueError(f"Unknown DN attribute: {name}")
            self.with_subject_attribute(oid, value)
        return self.with_subject_common_name(dn.common_name)

    # ========================================================================
    # KEY, SERIAL, VALIDITY
    # ========================================================================

    def with_public_key(self, public_key) -> "CertificateBuilder":
        self._public_key = public_key
        return self

    def with_serial_number(self, serial: Optional[int] = None) -> "CertificateBuilder":
        """Serial number esplicito, casuale se None"""
        self._serial_number = serial or x509.random_serial_number()
        return self

    def with_validity_period(
        self,
        days: Optional[int] = None,
        not_before: Optional[datetime] = None,
        not_after: Optional[datetime] = None,
    ) -> "CertificateBuilder":
        """
        Imposta il periodo di validità.

        Args:
            days: Giorni di validità da not_before (default: 365)
            not_before: Inizio validità (default: ora UTC)
            not_after: Fine validità, prevale su days
        """
        start = not_before or datetime.now(timezone.utc)
        end = not_after or start + timedelta(days=days or DEFAULT_VALIDITY_DAYS)
        self._validity = (start, end)
        return self

    # ========================================================================
    # EXTENSIONS
    # ========================================================================

    def with_basic_constraints(self, ca: bool, path_length: Optional[int] = None) -> "CertificateBuilder":
        self._extensions.append((x509.BasicConstraints(ca=ca, path_length=path_length), True))
        return self

    def with_key_usage(
        self,
        digital_signature: bool = False,
        content_commitment: bool = False,
        key_encipherment: bool = False,
    ) -> "CertificateBuilder":
        """
        Key Usage critica per un certificato utente EBICS.

        content_commitment corrisponde a nonRepudiation (chiave A006).
        """
        key_usage = x509.KeyUsage(
            digital_signature=digital_signature,
            content_commitment=content_commitment,
            key_encipherment=key_encipherment,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=False,
            crl_sign=False,
            encipher_only=False,
            decipher_only=False,
        )
        self._extensions.append((key_usage, True))
        return self

    # ========================================================================
    # SIGNING
    # ========================================================================

    def self_sign(self, private_key) -> x509.Certificate:
        """
        Firma il certificato con la chiave privata dell'utente (issuer = subject).

        Args:
            private_key: Chiave privata RSA corrispondente alla chiave pubblica

        Returns:
            Certificato X.509 firmato con SHA-256
        """
        name = x509.Name(self._subject)
        not_before, not_after = self._validity or (
            datetime.now(timezone.utc),
            datetime.now(timezone.utc) + timedelta(days=DEFAULT_VALIDITY_DAYS),
        )
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(self._public_key or private_key.public_key())
            .serial_number(self._serial_number or x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        for extension, critical in self._extensions:
            builder = builder.add_extension(extension, critical=critical)
        return builder.sign(private_key, hashes.SHA256())


# ============================================================================
# X509IssuerSerial HELPERS
# ============================================================================


def x509_issuer_name(certificate: x509.Certificate) -> str:
    """Issuer DN in formato RFC 4514 (es. "CN=Ebics client,O=...,C=DE")."""
    return certificate.issuer.rfc4514_string()


def x509_serial_number(certificate: x509.Certificate) -> str:
    """Serial number decimale, come richiesto da ds:X509SerialNumber."""
    return str(certificate.serial_number)
