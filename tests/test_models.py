"""
Test suite per i modelli EBICS

Focus su:
- Validazione dataclass (Certificate, Bank, User)
- Keyring: password, certificati banca, stato di inizializzazione
- Transaction: accessor su campi non impostati
- Request/Response: serializzazione e parsing
"""

import pytest

from protocols.core.types import CertificateType, EbicsVersion, TransactionPhase
from protocols.ebics_exceptions import EbicsException, PasswordMissingException
from protocols.ebics_models import Bank, Certificate, Keyring, Request, Response, Transaction, User
from protocols.messages.elements import create_root, sub_element


class TestDataclasses:
    """Test per dataclass immutabili e validazione"""

    def test_bank_defaults(self):
        """Test Bank con valori di default"""
        bank = Bank(host_id="HOST", url="https://bank.example.com")

        assert bank.version == EbicsVersion.H004
        assert bank.version.namespace == "urn:org:ebics:H004"
        assert bank.is_certified is False
        assert bank.dn_profile is None

    def test_bank_requires_host_id(self):
        """Test validazione Bank - manca host_id"""
        with pytest.raises(ValueError, match="host_id is required"):
            Bank(host_id="", url="https://bank.example.com")

    def test_bank_requires_url(self):
        """Test validazione Bank - manca url"""
        with pytest.raises(ValueError, match="url is required"):
            Bank(host_id="HOST", url="")

    @pytest.mark.parametrize("version", [EbicsVersion.H003, EbicsVersion.H005])
    def test_bank_rejects_other_versions(self, version):
        """Test validazione Bank - versioni diverse da H004 non supportate"""
        with pytest.raises(ValueError, match=f"Unsupported EBICS version: {version.value}"):
            Bank(host_id="HOST", url="https://bank.example.com", version=version)

    def test_user_validation(self):
        """Test validazione User"""
        with pytest.raises(ValueError, match="partner_id is required"):
            User(partner_id="", user_id="U")
        with pytest.raises(ValueError, match="user_id is required"):
            User(partner_id="P", user_id="")

    def test_bank_is_frozen(self):
        """Test Bank immutabile"""
        bank = Bank(host_id="HOST", url="https://bank.example.com")
        with pytest.raises(AttributeError):
            bank.host_id = "OTHER"

    def test_certificate_validation(self):
        """Test validazione Certificate"""
        with pytest.raises(ValueError, match="Invalid certificate type"):
            Certificate(type="A", public_key=b"key")
        with pytest.raises(ValueError, match="public_key is required"):
            Certificate(type=CertificateType.A, public_key=b"")

    def test_certificate_without_content(self, keyring):
        """Test x509() None se il certificato non ha contenuto"""
        assert keyring.user_certificate_a.x509() is None


class TestKeyring:
    """Test per Keyring"""

    def test_password_missing(self):
        """Test password non impostata"""
        keyring = Keyring()

        assert not keyring.has_password()
        with pytest.raises(PasswordMissingException):
            keyring.password

    def test_empty_password_is_set(self):
        """Test password vuota considerata impostata"""
        keyring = Keyring("")

        assert keyring.has_password()
        assert keyring.password == ""

    def test_initialization_state(self, keyring):
        """Test stato INI/HIA/HPB"""
        assert keyring.is_user_initialized()
        assert keyring.is_bank_initialized()
        assert not Keyring("x").is_user_initialized()
        assert not Keyring("x").is_bank_initialized()

    def test_bank_certificate_type_checked(self, keyring):
        """Test certificato banca del tipo sbagliato"""
        with pytest.raises(EbicsException, match="must be of type X"):
            keyring.bank_certificate_x = keyring.bank_certificate_e

    def test_bank_certificate_rejects_private_key(self, keyring):
        """Test certificato banca con chiave privata"""
        certificate = Certificate(
            type=CertificateType.E,
            public_key=keyring.user_certificate_e.public_key,
            private_key=keyring.user_certificate_e.private_key,
        )
        with pytest.raises(EbicsException, match="never carry a private key"):
            keyring.bank_certificate_e = certificate

    def test_signature_versions(self):
        """Test versioni dei processi di firma"""
        assert Keyring.USER_SIGNATURE_A_VERSION == "A006"
        assert Keyring.USER_SIGNATURE_X_VERSION == "X002"
        assert Keyring.USER_SIGNATURE_E_VERSION == "E002"


class TestTransaction:
    """Test per Transaction"""

    def test_unset_fields_raise(self):
        """Test accessor su campi non impostati"""
        transaction = Transaction()

        for name in ("id", "phase", "num_segments", "segment_number", "order_data", "plain_order_data"):
            with pytest.raises(EbicsException, match=f"Transaction {name} is not set."):
                getattr(transaction, name)

    def test_set_fields(self):
        """Test impostazione campi"""
        transaction = Transaction()
        transaction.id = "TX1"
        transaction.phase = TransactionPhase.INITIALISATION
        transaction.num_segments = 0

        assert transaction.id == "TX1"
        assert transaction.phase == TransactionPhase.INITIALISATION
        assert transaction.has_num_segments()
        assert transaction.num_segments == 0
        assert "TX1" in repr(transaction)


class TestDocuments:
    """Test per Request e Response"""

    def test_request_content(self):
        """Test serializzazione con dichiarazione XML"""
        root = create_root("urn:test", "root", {None: "urn:test"})
        sub_element(root, "urn:test", "child", "value")

        content = Request(root).get_content()

        assert content.startswith(b"<?xml version='1.0' encoding='utf-8'?>")
        assert b"<child>value</child>" in content

    def test_response_empty(self):
        """Test risposta vuota"""
        with pytest.raises(EbicsException, match="EBICS response is empty."):
            Response(b"")

    def test_response_invalid_xml(self):
        """Test risposta non XML"""
        with pytest.raises(EbicsException, match="Failed to parse EBICS response"):
            Response(b"<html><body>Bad gateway")

    def test_response_transactions(self):
        """Test registrazione transazioni"""
        response = Response(b"<root/>")
        with pytest.raises(EbicsException, match="Response has no transaction."):
            response.last_transaction()

        first, second = Transaction(), Transaction()
        response.add_transaction(first)
        response.add_transaction(second)

        assert response.transactions == [first, second]
        assert response.last_transaction() is second
        assert response.get_content() == b"<root/>"
