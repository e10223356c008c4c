"""
EBICS Interfaces Package

Solo le interfacce dei collaboratori sostituibili del client.
"""

from .ebics_interfaces import HttpClient, KeyringStorage, X509Generator

__all__ = [
    "HttpClient",
    "X509Generator",
    "KeyringStorage",
]
