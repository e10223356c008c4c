"""
EBICS Keyring Manager

Persists the keyring (user A/X/E and bank X/E certificates) as JSON:

    {"USER": {"A": {"CERTIFICATE", "PUBLIC_KEY", "PRIVATE_KEY"}, "X": {...}, "E": {...}},
     "BANK": {"X": {"CERTIFICATE", "PUBLIC_KEY"}, "E": {...}}}

Values are base64 strings (DER certificate, PEM keys) or null. Private keys
are stored as produced by generate_keys, i.e. PKCS#8 PEM encrypted with the
keyring password. Reads and writes are serialized with a file lock, writes
are atomic.

Author: Ebics client Python Project
Date: October 2025
"""

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict, Optional

from filelock import FileLock, Timeout

from interfaces.ebics_interfaces import KeyringStorage
from protocols.core.types import CertificateType
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Certificate, Keyring
from utils.ebics_io import EbicsFileHandler
from utils.logger import EbicsLogger

LOCK_TIMEOUT = 10  # secondi


class KeyringFactory:
    """Conversion between Keyring objects and the JSON data layout."""

    USER_PREFIX = "USER"
    BANK_PREFIX = "BANK"
    CERTIFICATE_PREFIX = "CERTIFICATE"
    PUBLIC_KEY_PREFIX = "PUBLIC_KEY"
    PRIVATE_KEY_PREFIX = "PRIVATE_KEY"

    # ========================================================================
    # DATA -> KEYRING
    # ========================================================================

    @classmethod
    def create_keyring_from_data(cls, data: Dict[str, Any], password: Optional[str] = None) -> Keyring:
        """
        Build a keyring from decoded JSON data.

        Args:
            data: JSON content with USER/BANK sections
            password: Keyring password (not persisted)

        Returns:
            Keyring: keyring with every certificate found in data

        Raises:
            EbicsException: If the data is malformed
        """
        keyring = Keyring(password)
        try:
            user = data.get(cls.USER_PREFIX) or {}
            bank = data.get(cls.BANK_PREFIX) or {}
            keyring.user_certificate_a = cls._create_certificate(user.get("A"), CertificateType.A)
            keyring.user_certificate_x = cls._create_certificate(user.get("X"), CertificateType.X)
            keyring.user_certificate_e = cls._create_certificate(user.get("E"), CertificateType.E)
            keyring.bank_certificate_x = cls._create_certificate(bank.get("X"), CertificateType.X, with_private=False)
            keyring.bank_certificate_e = cls._create_certificate(bank.get("E"), CertificateType.E, with_private=False)
        except (AttributeError, TypeError, ValueError, binascii.Error) as e:
            raise EbicsException("Can not extract keys from file.") from e
        return keyring

    @classmethod
    def _create_certificate(
        cls,
        data: Optional[Dict[str, Optional[str]]],
        certificate_type: CertificateType,
        with_private: bool = True,
    ) -> Optional[Certificate]:
        if not data or not data.get(cls.PUBLIC_KEY_PREFIX):
            return None
        return Certificate(
            type=certificate_type,
            public_key=cls._decode(data.get(cls.PUBLIC_KEY_PREFIX)),
            private_key=cls._decode(data.get(cls.PRIVATE_KEY_PREFIX)) if with_private else None,
            content=cls._decode(data.get(cls.CERTIFICATE_PREFIX)),
        )

    @staticmethod
    def _decode(value: Optional[str]) -> Optional[bytes]:
        return base64.b64decode(value, validate=True) if value else None

    # ========================================================================
    # KEYRING -> DATA
    # ========================================================================

    @classmethod
    def create_data_from_keyring(cls, keyring: Keyring) -> Dict[str, Any]:
        """Serialize a keyring into the JSON data layout (password excluded)."""
        return {
            cls.USER_PREFIX: {
                "A": cls._create_data(keyring.user_certificate_a),
                "X": cls._create_data(keyring.user_certificate_x),
                "E": cls._create_data(keyring.user_certificate_e),
            },
            cls.BANK_PREFIX: {
                "X": cls._create_data(keyring.bank_certificate_x, with_private=False),
                "E": cls._create_data(keyring.bank_certificate_e, with_private=False),
            },
        }

    @classmethod
    def _create_data(cls, certificate: Optional[Certificate], with_private: bool = True) -> Dict[str, Optional[str]]:
        data = {
            cls.CERTIFICATE_PREFIX: cls._encode(certificate.content if certificate else None),
            cls.PUBLIC_KEY_PREFIX: cls._encode(certificate.public_key if certificate else None),
        }
        if with_private:
            data[cls.PRIVATE_KEY_PREFIX] = cls._encode(certificate.private_key if certificate else None)
        return data

    @staticmethod
    def _encode(value: Optional[bytes]) -> Optional[str]:
        return base64.b64encode(value).decode("ascii") if value else None


class KeyringManager(KeyringStorage):
    """
    JSON file keyring storage.

    Il file di lock (<path>.lock) serializza letture e scritture tra processi.
    """

    def __init__(self, logger=None):
        self.logger = logger or EbicsLogger.get_logger("KeyringManager")

    def load(self, path: str, password: str) -> Keyring:
        """
        Load a keyring from file.

        Args:
            path: JSON keyring path
            password: Keyring password

        Returns:
            Keyring: loaded keyring, empty when the file does not exist

        Raises:
            EbicsException: If the file cannot be read or parsed
        """
        path = str(path)
        try:
            with FileLock(path + ".lock", timeout=LOCK_TIMEOUT):
                data = EbicsFileHandler.load_json_file(path)
        except (OSError, Timeout, json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error(f"Keyring load failed: {path}")
            raise EbicsException("Can not extract keys from file.") from e

        if data is None:
            self.logger.info(f"Keyring non trovato, creo keyring vuoto: {path}")
            return Keyring(password)
        if not isinstance(data, dict):
            raise EbicsException("Can not extract keys from file.")

        keyring = KeyringFactory.create_keyring_from_data(data, password)
        self.logger.info(f"Keyring caricato: {path}")
        return keyring

    def save(self, keyring: Keyring, path: str) -> None:
        """
        Save a keyring to file (atomic write).

        Raises:
            EbicsException: If the file cannot be written
        """
        path = str(path)
        data = KeyringFactory.create_data_from_keyring(keyring)
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with FileLock(path + ".lock", timeout=LOCK_TIMEOUT):
                EbicsFileHandler.save_json_file(data, path)
        except (OSError, Timeout) as e:
            self.logger.error(f"Keyring save failed: {path}")
            raise EbicsException("Can not save keys to file.") from e

        self.logger.info(f"Keyring salvato: {path}")
