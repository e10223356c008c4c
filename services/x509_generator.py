"""
Bank X.509 Generator Service

Issues the self-signed certificates that certified banks require for the
user keys (A006, X002, E002). The subject DN comes from a profile in
BANK_CERTIFICATE_DN, so a new bank is a new profile entry, not new code.

Key usage per certificate role:
- A (signature): digitalSignature, nonRepudiation
- X (authentication): digitalSignature
- E (encryption): keyEncipherment

Standards Reference:
- EBICS Specification 2.5 Section 3.5 (Certificates), Annex 3 (X.509 data)
- RFC 5280 - Internet X.509 PKI Certificate and CRL Profile

Author: Ebics client Python Project
Date: October 2025
"""

from typing import Optional

from cryptography.hazmat.primitives import serialization

from config.ebics_config import EBICS_CONSTANTS, get_bank_dn
from interfaces.ebics_interfaces import X509Generator
from protocols.core.types import CertificateType
from protocols.ebics_exceptions import EbicsException
from utils.certificate_maker import CertificateBuilder


KEY_USAGE = {
    CertificateType.A: {"digital_signature": True, "content_commitment": True},
    CertificateType.X: {"digital_signature": True},
    CertificateType.E: {"key_encipherment": True},
}


class BankX509Generator(X509Generator):
    """
    Self-signed certificate issuer driven by a bank DN profile.

    Args:
        dn_profile: Nome del profilo in BANK_CERTIFICATE_DN
        validity_days: Giorni di validità dei certificati

    Raises:
        ValueError: Se il profilo DN non esiste
    """

    def __init__(
        self,
        dn_profile: str = "default",
        validity_days: int = EBICS_CONSTANTS.CERTIFICATE_VALIDITY_DAYS,
    ):
        self.dn_profile = dn_profile
        self.distinguished_name = get_bank_dn(dn_profile)
        self.validity_days = validity_days

    def generate(
        self,
        private_key_pem: bytes,
        public_key_pem: bytes,
        certificate_type: CertificateType,
        password: Optional[str] = None,
    ) -> bytes:
        """
        Issue a self-signed certificate.

        Args:
            private_key_pem: Signing key (PKCS#8 PEM)
            public_key_pem: Certified public key (PEM)
            certificate_type: Role of the key (A, X or E)
            password: Password of the private key

        Returns:
            bytes: DER-encoded certificate

        Raises:
            EbicsException: If a key cannot be loaded
        """
        try:
            private_key = serialization.load_pem_private_key(
                private_key_pem,
                password=password.encode("utf-8") if password else None,
            )
            public_key = serialization.load_pem_public_key(public_key_pem)
        except (ValueError, TypeError) as e:
            raise EbicsException(f"Failed to load keys for certificate {certificate_type.value}: {e}") from e

        certificate = (
            CertificateBuilder()
            .with_subject_dn(self.distinguished_name)
            .with_public_key(public_key)
            .with_serial_number()
            .with_validity_period(days=self.validity_days)
            .with_basic_constraints(ca=False, path_length=None)
            .with_key_usage(**KEY_USAGE[certificate_type])
            .self_sign(private_key)
        )
        return certificate.public_bytes(serialization.Encoding.DER)
