"""
Utils Package

Contains utility modules for certificate building, logging and file I/O.
"""

from .certificate_maker import CertificateBuilder, x509_issuer_name, x509_serial_number
from .ebics_io import EbicsFileHandler
from .logger import EbicsLogger

__all__ = [
    # Certificate utilities
    "CertificateBuilder",
    "x509_issuer_name",
    "x509_serial_number",
    # Logging
    "EbicsLogger",
    # I/O
    "EbicsFileHandler",
]
