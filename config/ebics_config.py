"""
EBICS Configuration - Percorsi e costanti centralizzate

Questo file centralizza le costanti del protocollo EBICS usate dal client
(product, security medium, versioni di firma) e i percorsi di default per
keyring e log. Modificando qui i valori, si applicano a tutto il sistema.

Usage:
    from config.ebics_config import EBICS_CONSTANTS, EBICS_PATHS

    client = EbicsClient(bank, user, keyring)
    manager = KeyringManager()
    keyring = manager.load(EBICS_PATHS.KEYRING_FILE, password)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass(frozen=True)
class EbicsPaths:
    """
    Percorsi base centralizzati per i dati del client EBICS.

    Attributi:
        BASE: Directory radice per tutti i dati EBICS
        KEYRING_DIR: Directory dei keyring JSON
        KEYRING_FILE: Keyring di default
        LOGS: Directory log centralizzata
    """
    BASE: Path = Path("./ebics_data")
    KEYRING_DIR: Path = Path("./ebics_data/keyrings")
    KEYRING_FILE: Path = Path("./ebics_data/keyrings/keyring.json")
    LOGS: Path = Path("./logs")

    def get_keyring_path(self, host_id: str, user_id: str) -> Path:
        """Ottieni path del keyring per una coppia banca/utente"""
        return self.KEYRING_DIR / f"{host_id}_{user_id}.json"


# Istanza singleton globale
EBICS_PATHS = EbicsPaths()


@dataclass(frozen=True)
class EbicsConstants:
    """
    Costanti centralizzate per il protocollo EBICS.

    Valori inviati nel header di ogni richiesta e parametri crittografici
    di default.
    """
    # Header static
    PRODUCT_NAME: str = "Ebics client Python"
    PRODUCT_LANGUAGE: str = "de"
    SECURITY_MEDIUM: str = "0000"

    # Versioni processi di firma/cifratura
    SIGNATURE_VERSION: str = "A006"
    AUTHENTICATION_VERSION: str = "X002"
    ENCRYPTION_VERSION: str = "E002"

    # Chiavi RSA
    DEFAULT_KEY_LENGTH: int = 2048
    CERTIFICATE_VALIDITY_DAYS: int = 3650  # 10 anni

    # Upload: massimo 1 MB per segmento (EBICS_SEGMENT_SIZE_EXCEEDED oltre)
    SEGMENT_SIZE: int = 1024 * 1024

    # HTTP
    DEFAULT_HTTP_TIMEOUT: int = 30  # secondi
    CONTENT_TYPE: str = "text/xml; charset=ISO-8859-1"


# Istanza singleton globale
EBICS_CONSTANTS = EbicsConstants()


@dataclass(frozen=True)
class BankDistinguishedName:
    """
    Campi del subject DN per i certificati X.509 auto-firmati.

    Ogni banca certificata può richiedere valori diversi: si aggiunge una
    voce in BANK_CERTIFICATE_DN invece di modificare il generatore.
    """
    country: str
    organization: str
    common_name: str
    state: Optional[str] = None
    locality: Optional[str] = None
    organizational_unit: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


BANK_CERTIFICATE_DN: Dict[str, BankDistinguishedName] = {
    "default": BankDistinguishedName(
        country="DE",
        organization="Ebics client Python",
        common_name="Ebics client",
    ),
    "credit_suisse": BankDistinguishedName(
        country="CH",
        state="Schwyz",
        locality="Schwyz",
        organization="Credit Suisse",
        organizational_unit="Electronic Banking",
        common_name="Credit Suisse EBICS",
    ),
    "societe_generale": BankDistinguishedName(
        country="FR",
        state="Ile-de-France",
        locality="Paris",
        organization="Societe Generale",
        organizational_unit="Banque",
        common_name="Societe Generale EBICS",
    ),
}


def get_bank_dn(profile: Optional[str] = None) -> BankDistinguishedName:
    """
    Ottieni il DN per un profilo banca.

    Args:
        profile: Nome del profilo in BANK_CERTIFICATE_DN (default se None)

    Returns:
        BankDistinguishedName: DN del profilo

    Raises:
        ValueError: Se il profilo non esiste in BANK_CERTIFICATE_DN
    """
    if profile is None:
        return BANK_CERTIFICATE_DN["default"]
    if profile not in BANK_CERTIFICATE_DN:
        raise ValueError(
            f"Unknown DN profile: {profile} (available: {', '.join(sorted(BANK_CERTIFICATE_DN))})"
        )
    return BANK_CERTIFICATE_DN[profile]
