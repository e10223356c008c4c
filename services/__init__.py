"""
EBICS Services Package

Default implementations of the client collaborators.
"""

from .http_client import RequestsHttpClient
from .x509_generator import BankX509Generator

__all__ = [
    "RequestsHttpClient",
    "BankX509Generator",
]
