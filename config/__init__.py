"""
EBICS Configuration Package

Centralizza costanti di protocollo, percorsi e profili DN delle banche.
"""

from .ebics_config import (
    BANK_CERTIFICATE_DN,
    EBICS_CONSTANTS,
    EBICS_PATHS,
    BankDistinguishedName,
    get_bank_dn,
)

__all__ = [
    'EBICS_PATHS',
    'EBICS_CONSTANTS',
    'BANK_CERTIFICATE_DN',
    'BankDistinguishedName',
    'get_bank_dn',
]
