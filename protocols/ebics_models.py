"""
EBICS Data Models

Data structures shared by the request builders, the response handler and the
client orchestrator:
- Certificate: one tagged type for the A/X/E roles
- Keyring: user (A/X/E) and bank (X/E) certificates protected by a password
- Bank, User: immutable identity of the remote endpoint and the subscriber
- Request, Response: in-memory XML documents (lxml)
- Transaction: server-assigned transaction state across phases
- OrderDataEncrypted: encrypted order data with its transaction key

Standards Reference:
- EBICS Specification 2.5 (H004) - Chapter 4 (Key management), Chapter 5 (Transactions)

Author: Ebics client Python Project
Date: October 2025
"""

from dataclasses import dataclass
from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from lxml import etree

from config.ebics_config import EBICS_CONSTANTS
from protocols.core.types import CertificateType, EbicsVersion, TransactionPhase
from protocols.ebics_exceptions import EbicsException, PasswordMissingException


# ============================================================================
# CERTIFICATES AND KEYRING
# ============================================================================


@dataclass(frozen=True)
class Certificate:
    """
    Key material for one certificate role.

    Attributes:
        type: Ruolo del certificato (A, X, E)
        public_key: Chiave pubblica PEM
        private_key: Chiave privata PEM PKCS#8, cifrata con la password del keyring
        content: Certificato X.509 DER (solo per banche certificate)
    """

    type: CertificateType
    public_key: bytes
    private_key: Optional[bytes] = None
    content: Optional[bytes] = None

    def __post_init__(self):
        """Validate required fields"""
        if not isinstance(self.type, CertificateType):
            raise ValueError(f"Invalid certificate type: {self.type!r}")
        if not self.public_key:
            raise ValueError("public_key is required")

    def public_key_object(self) -> RSAPublicKey:
        try:
            return serialization.load_pem_public_key(self.public_key)
        except (ValueError, TypeError) as e:
            raise EbicsException(f"Failed to load public key of certificate {self.type.value}: {e}") from e

    def private_key_object(self, password: Optional[str]) -> RSAPrivateKey:
        """
        Load the private key protected by the keyring password.

        Args:
            password: Keyring password (empty or None for unencrypted keys)

        Returns:
            RSAPrivateKey: loaded key

        Raises:
            EbicsException: If the key is absent, the password is wrong or the
                PEM is corrupted
        """
        if not self.private_key:
            raise EbicsException(f"Private key of certificate {self.type.value} is not set.")
        try:
            return serialization.load_pem_private_key(
                self.private_key,
                password=password.encode("utf-8") if password else None,
            )
        except (ValueError, TypeError) as e:
            raise EbicsException("Incorrect authorization.") from e

    def x509(self) -> Optional[x509.Certificate]:
        if not self.content:
            return None
        try:
            return x509.load_der_x509_certificate(self.content)
        except ValueError as e:
            raise EbicsException(f"Failed to load X.509 content of certificate {self.type.value}: {e}") from e


class Keyring:
    """
    Key material of a subscriber and of its bank.

    Lifecycle: created empty, INI sets user A, HIA sets user E/X, HPB sets
    bank X/E. Persisted by KeyringManager.
    """

    USER_SIGNATURE_A_VERSION = EBICS_CONSTANTS.SIGNATURE_VERSION
    USER_SIGNATURE_X_VERSION = EBICS_CONSTANTS.AUTHENTICATION_VERSION
    USER_SIGNATURE_E_VERSION = EBICS_CONSTANTS.ENCRYPTION_VERSION
    BANK_SIGNATURE_X_VERSION = EBICS_CONSTANTS.AUTHENTICATION_VERSION
    BANK_SIGNATURE_E_VERSION = EBICS_CONSTANTS.ENCRYPTION_VERSION

    def __init__(self, password: Optional[str] = None):
        self._password = password
        self.user_certificate_a: Optional[Certificate] = None
        self.user_certificate_x: Optional[Certificate] = None
        self.user_certificate_e: Optional[Certificate] = None
        self._bank_certificate_x: Optional[Certificate] = None
        self._bank_certificate_e: Optional[Certificate] = None

    @property
    def password(self) -> str:
        if self._password is None:
            raise PasswordMissingException()
        return self._password

    @password.setter
    def password(self, value: str):
        self._password = value

    def has_password(self) -> bool:
        return self._password is not None

    @property
    def bank_certificate_x(self) -> Optional[Certificate]:
        return self._bank_certificate_x

    @bank_certificate_x.setter
    def bank_certificate_x(self, certificate: Optional[Certificate]):
        self._bank_certificate_x = self._check_bank_certificate(certificate, CertificateType.X)

    @property
    def bank_certificate_e(self) -> Optional[Certificate]:
        return self._bank_certificate_e

    @bank_certificate_e.setter
    def bank_certificate_e(self, certificate: Optional[Certificate]):
        self._bank_certificate_e = self._check_bank_certificate(certificate, CertificateType.E)

    @staticmethod
    def _check_bank_certificate(certificate: Optional[Certificate], expected: CertificateType):
        if certificate is None:
            return None
        if certificate.type != expected:
            raise EbicsException(f"Bank certificate must be of type {expected.value}.")
        if certificate.private_key:
            raise EbicsException("Bank certificates never carry a private key.")
        return certificate

    def is_user_initialized(self) -> bool:
        """True once INI and HIA keys exist."""
        return all((self.user_certificate_a, self.user_certificate_x, self.user_certificate_e))

    def is_bank_initialized(self) -> bool:
        """True once HPB imported the bank keys."""
        return self._bank_certificate_x is not None and self._bank_certificate_e is not None


# ============================================================================
# ENDPOINT AND SUBSCRIBER
# ============================================================================


@dataclass(frozen=True)
class Bank:
    """
    Remote EBICS endpoint.

    Attributes:
        host_id: HostID assegnato dalla banca
        url: URL del server EBICS
        is_certified: True se la banca richiede certificati X.509
        version: Versione protocollo (solo H004 supportata)
        dn_profile: Profilo DN in BANK_CERTIFICATE_DN per i certificati generati
    """

    host_id: str
    url: str
    is_certified: bool = False
    version: EbicsVersion = EbicsVersion.H004
    dn_profile: Optional[str] = None

    def __post_init__(self):
        """Validate required fields"""
        if not self.host_id:
            raise ValueError("host_id is required")
        if not self.url:
            raise ValueError("url is required")
        if self.version is not EbicsVersion.H004:
            # Request builders and response XPaths exist only for H004
            raise ValueError(f"Unsupported EBICS version: {self.version.value}")


@dataclass(frozen=True)
class User:
    """Subscriber identity sent in every request header."""

    partner_id: str
    user_id: str

    def __post_init__(self):
        """Validate required fields"""
        if not self.partner_id:
            raise ValueError("partner_id is required")
        if not self.user_id:
            raise ValueError("user_id is required")


# ============================================================================
# REQUEST / RESPONSE DOCUMENTS
# ============================================================================


def xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


class Request:
    """EBICS request document built once by RequestHandler, then signed."""

    def __init__(self, root: etree._Element):
        self.root = root

    def get_content(self) -> bytes:
        return etree.tostring(self.root, xml_declaration=True, encoding="utf-8")

    def __str__(self) -> str:
        return self.get_content().decode("utf-8")


class Response:
    """
    EBICS response document with the transactions accumulated by the client.
    """

    def __init__(self, content: bytes):
        if not content:
            raise EbicsException("EBICS response is empty.")
        try:
            self.root = etree.fromstring(content, parser=xml_parser())
        except etree.XMLSyntaxError as e:
            raise EbicsException(f"Failed to parse EBICS response: {e}") from e
        self._content = content
        self._transactions: List["Transaction"] = []

    def get_content(self) -> bytes:
        return self._content

    @property
    def transactions(self) -> List["Transaction"]:
        return list(self._transactions)

    def add_transaction(self, transaction: "Transaction"):
        self._transactions.append(transaction)

    def last_transaction(self) -> "Transaction":
        if not self._transactions:
            raise EbicsException("Response has no transaction.")
        return self._transactions[-1]


# ============================================================================
# TRANSACTION STATE
# ============================================================================


class Transaction:
    """
    Server-assigned transaction state.

    Every accessor raises EbicsException when the field was never set: the
    values come from the bank and are never defaulted locally.
    """

    def __init__(self):
        self._id: Optional[str] = None
        self._phase: Optional[TransactionPhase] = None
        self._num_segments: Optional[int] = None
        self._segment_number: Optional[int] = None
        self._order_data: Optional[bytes] = None
        self._plain_order_data: Optional[str] = None

    @staticmethod
    def _require(value, name: str):
        if value is None:
            raise EbicsException(f"Transaction {name} is not set.")
        return value

    @property
    def id(self) -> str:
        return self._require(self._id, "id")

    @id.setter
    def id(self, value: str):
        self._id = value

    @property
    def phase(self) -> TransactionPhase:
        return self._require(self._phase, "phase")

    @phase.setter
    def phase(self, value: TransactionPhase):
        self._phase = value

    @property
    def num_segments(self) -> int:
        return self._require(self._num_segments, "num_segments")

    @num_segments.setter
    def num_segments(self, value: int):
        self._num_segments = value

    @property
    def segment_number(self) -> int:
        return self._require(self._segment_number, "segment_number")

    @segment_number.setter
    def segment_number(self, value: int):
        self._segment_number = value

    @property
    def order_data(self) -> bytes:
        return self._require(self._order_data, "order_data")

    @order_data.setter
    def order_data(self, value: bytes):
        self._order_data = value

    @property
    def plain_order_data(self) -> str:
        return self._require(self._plain_order_data, "plain_order_data")

    @plain_order_data.setter
    def plain_order_data(self, value: str):
        self._plain_order_data = value

    def has_num_segments(self) -> bool:
        return self._num_segments is not None

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self._id!r}, phase={self._phase}, "
            f"num_segments={self._num_segments}, segment_number={self._segment_number})"
        )


@dataclass(frozen=True)
class OrderDataEncrypted:
    """Encrypted order data and its RSA-encrypted transaction key."""

    order_data: bytes
    transaction_key: bytes
