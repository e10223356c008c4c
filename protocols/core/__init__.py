"""
EBICS Core Types and Utilities

This module provides the foundational types, constants and XML helpers for
the EBICS protocol implementation.

Submodules:
- types: Enumerations, namespaces, algorithm identifiers
- c14n: Canonical XML and XPath helpers
- crypto: Cryptographic operations (import explicitly: it depends on the
  data models in protocols.ebics_models)

Standards Reference:
- EBICS Specification 2.5 (H004)
- W3C Canonical XML Version 1.0

Author: Ebics client Python Project
Date: October 2025
"""

from .types import (
    # Namespaces
    NS_H000,
    NS_H003,
    NS_H004,
    NS_H005,
    NS_S001,
    NS_DS,
    NS_XSI,
    HEV_SCHEMA_LOCATION,

    # Algorithms
    ALGORITHM_C14N,
    ALGORITHM_RSA_SHA256,
    ALGORITHM_SHA256,
    AUTHENTICATE_XPATH,
    AUTHENTICATE_REFERENCE_URI,
    RETURN_CODE_OK,

    # Enums
    EbicsVersion,
    CertificateType,
    OrderType,
    OrderAttribute,
    TransactionPhase,
    ReceiptCode,
)

from .c14n import (
    canonicalize,
    canonicalize_nodes,
    select_nodes,
    xpath_namespaces,
)

__all__ = [
    # Namespaces
    "NS_H000",
    "NS_H003",
    "NS_H004",
    "NS_H005",
    "NS_S001",
    "NS_DS",
    "NS_XSI",
    "HEV_SCHEMA_LOCATION",
    # Algorithms
    "ALGORITHM_C14N",
    "ALGORITHM_RSA_SHA256",
    "ALGORITHM_SHA256",
    "AUTHENTICATE_XPATH",
    "AUTHENTICATE_REFERENCE_URI",
    "RETURN_CODE_OK",
    # Enums
    "EbicsVersion",
    "CertificateType",
    "OrderType",
    "OrderAttribute",
    "TransactionPhase",
    "ReceiptCode",
    # XML
    "canonicalize",
    "canonicalize_nodes",
    "select_nodes",
    "xpath_namespaces",
]
