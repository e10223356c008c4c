"""
EBICS Abstract Interfaces

Collaborators of the client that stay replaceable:
- HttpClient: transport that POSTs request XML and returns response bytes
- X509Generator: self-signed certificate issuance for certified banks
- KeyringStorage: keyring persistence

Default implementations: RequestsHttpClient, BankX509Generator,
KeyringManager.

Author: Ebics client Python Project
Date: October 2025
"""

from abc import ABC, abstractmethod
from typing import Optional

from protocols.core.types import CertificateType
from protocols.ebics_models import Keyring


class HttpClient(ABC):
    """
    Abstract transport for EBICS requests.

    Implementations: RequestsHttpClient
    """

    @abstractmethod
    def post(self, url: str, content: bytes) -> bytes:
        """
        Send one request document and return the raw response.

        Args:
            url: EBICS server URL
            content: Serialized request XML

        Returns:
            bytes: Response body

        Raises:
            EbicsException: On transport errors or non-2xx status
        """
        pass


class X509Generator(ABC):
    """
    Abstract issuer of X.509 certificates for the user keys.

    Implementations: BankX509Generator
    """

    @abstractmethod
    def generate(
        self,
        private_key_pem: bytes,
        public_key_pem: bytes,
        certificate_type: CertificateType,
        password: Optional[str] = None,
    ) -> bytes:
        """
        Issue a certificate for one key pair.

        Args:
            private_key_pem: Signing key (PKCS#8 PEM, possibly encrypted)
            public_key_pem: Certified public key (PEM)
            certificate_type: Role of the key (A, X or E)
            password: Password of the private key

        Returns:
            bytes: DER-encoded certificate
        """
        pass


class KeyringStorage(ABC):
    """
    Abstract keyring persistence.

    Implementations: KeyringManager
    """

    @abstractmethod
    def load(self, path: str, password: str) -> Keyring:
        """Load a keyring, an absent source yields an empty keyring."""
        pass

    @abstractmethod
    def save(self, keyring: Keyring, path: str) -> None:
        """Persist a keyring."""
        pass
