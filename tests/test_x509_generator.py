"""
Test suite per BankX509Generator e CertificateBuilder

Focus su:
- Certificato DER auto-firmato con la chiave pubblica richiesta
- Key usage per ruolo (A, X, E)
- Profili DN delle banche
- X509Data negli order data di banche certificate
"""

import base64

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID
from lxml import etree

from config.ebics_config import BANK_CERTIFICATE_DN, BankDistinguishedName, get_bank_dn
from protocols.core.types import NS_DS, NS_H004, CertificateType
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Bank, Certificate
from protocols.messages.order_data import OrderDataHandler
from services.x509_generator import BankX509Generator
from utils.certificate_maker import CertificateBuilder, x509_issuer_name, x509_serial_number

NAMESPACES = {"H004": NS_H004, "ds": NS_DS}


def _generate(user_keys, certificate_type, generator=None):
    keys = user_keys[certificate_type]
    generator = generator or BankX509Generator()
    content = generator.generate(keys["privatekey"], keys["publickey"], certificate_type, "secret")
    return content, x509.load_der_x509_certificate(content)


class TestBankX509Generator:
    """Test per la generazione dei certificati"""

    def test_self_signed_certificate(self, user_keys):
        """Test certificato con chiave pubblica richiesta e issuer = subject"""
        _, certificate = _generate(user_keys, CertificateType.X)

        public_pem = certificate.public_key().public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        assert public_pem == user_keys[CertificateType.X]["publickey"]
        assert certificate.issuer == certificate.subject
        assert certificate.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is False

    @pytest.mark.parametrize("certificate_type, signature, commitment, encipherment", [
        (CertificateType.A, True, True, False),
        (CertificateType.X, True, False, False),
        (CertificateType.E, False, False, True),
    ])
    def test_key_usage(self, user_keys, certificate_type, signature, commitment, encipherment):
        """Test key usage per ruolo del certificato"""
        _, certificate = _generate(user_keys, certificate_type)
        key_usage = certificate.extensions.get_extension_for_class(x509.KeyUsage).value

        assert key_usage.digital_signature is signature
        assert key_usage.content_commitment is commitment
        assert key_usage.key_encipherment is encipherment

    def test_default_profile(self, user_keys):
        """Test subject DN del profilo di default"""
        _, certificate = _generate(user_keys, CertificateType.A)

        assert certificate.subject.get_attributes_for_oid(NameOID.COUNTRY_NAME)[0].value == "DE"
        assert certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value == "Ebics client"

    def test_bank_profile(self, user_keys):
        """Test profilo DN di una banca"""
        _, certificate = _generate(user_keys, CertificateType.E, BankX509Generator("credit_suisse"))

        assert certificate.subject.get_attributes_for_oid(NameOID.ORGANIZATION_NAME)[0].value == "Credit Suisse"
        assert certificate.subject.get_attributes_for_oid(NameOID.LOCALITY_NAME)[0].value == "Schwyz"

    def test_unknown_profile_rejected(self):
        """Test profilo sconosciuto: errore invece del DN di default"""
        with pytest.raises(ValueError, match="Unknown DN profile: credit_suise"):
            BankX509Generator("credit_suise")

    def test_get_bank_dn(self):
        """Test lookup dei profili DN"""
        assert get_bank_dn() is BANK_CERTIFICATE_DN["default"]
        assert get_bank_dn("societe_generale").country == "FR"
        with pytest.raises(ValueError, match="available: credit_suisse, default, societe_generale"):
            get_bank_dn("unknown")

    def test_wrong_password(self, user_keys):
        """Test chiave privata con password sbagliata"""
        keys = user_keys[CertificateType.A]

        with pytest.raises(EbicsException, match="Failed to load keys for certificate A"):
            BankX509Generator().generate(keys["privatekey"], keys["publickey"], CertificateType.A, "wrong")


class TestCertificateBuilder:
    """Test per il builder fluente"""

    def test_extra_attributes(self, user_keys):
        """Test attributi extra del DN"""
        keys = user_keys[CertificateType.A]
        private_key = serialization.load_pem_private_key(keys["privatekey"], password=b"secret")
        dn = BankDistinguishedName(
            country="FR", organization="Bank", common_name="CN", extra={"email_address": "ebics@bank.example"}
        )

        certificate = (
            CertificateBuilder()
            .with_subject_dn(dn)
            .with_public_key(private_key.public_key())
            .with_serial_number(42)
            .with_validity_period(days=10)
            .self_sign(private_key)
        )

        assert certificate.subject.get_attributes_for_oid(NameOID.EMAIL_ADDRESS)[0].value == "ebics@bank.example"
        assert x509_serial_number(certificate) == "42"
        assert x509_issuer_name(certificate) == certificate.issuer.rfc4514_string()
        assert (certificate.not_valid_after_utc - certificate.not_valid_before_utc).days == 10

    def test_unknown_attribute(self):
        """Test attributo DN sconosciuto"""
        dn = BankDistinguishedName(country="FR", organization="Bank", common_name="CN", extra={"favourite_color": "x"})

        with pytest.raises(ValueError, match="Unknown DN attribute"):
            CertificateBuilder().with_subject_dn(dn)


class TestCertifiedOrderData:
    """Test per X509Data negli order data"""

    def test_hia_with_x509_data(self, user, user_keys):
        """Test HIA per banca certificata: X509IssuerSerial e X509Certificate"""
        from datetime import datetime, timezone

        bank = Bank(host_id="myHostId", url="https://ebics.example.com", is_certified=True)
        certificates = {}
        for certificate_type in (CertificateType.X, CertificateType.E):
            content, _ = _generate(user_keys, certificate_type)
            certificates[certificate_type] = Certificate(
                type=certificate_type,
                public_key=user_keys[certificate_type]["publickey"],
                private_key=user_keys[certificate_type]["privatekey"],
                content=content,
            )

        order_data = OrderDataHandler(bank, user).handle_hia(
            certificates[CertificateType.E],
            certificates[CertificateType.X],
            datetime(2025, 10, 1, tzinfo=timezone.utc),
        )
        document = etree.fromstring(order_data)
        x509_data = document.find("H004:AuthenticationPubKeyInfo/ds:X509Data", NAMESPACES)
        certificate_x = certificates[CertificateType.X].x509()

        assert x509_data.findtext("ds:X509IssuerSerial/ds:X509IssuerName", namespaces=NAMESPACES) == (
            x509_issuer_name(certificate_x)
        )
        assert x509_data.findtext("ds:X509IssuerSerial/ds:X509SerialNumber", namespaces=NAMESPACES) == (
            x509_serial_number(certificate_x)
        )
        assert base64.b64decode(x509_data.findtext("ds:X509Certificate", namespaces=NAMESPACES)) == (
            certificates[CertificateType.X].content
        )
        # X509Data precede PubKeyValue
        info = document.find("H004:AuthenticationPubKeyInfo", NAMESPACES)
        assert [etree.QName(child).localname for child in info][:2] == ["X509Data", "PubKeyValue"]
