"""
EBICS Core Types and Constants

Defines fundamental enumerations, namespaces, algorithm identifiers and
constants used throughout the EBICS client implementation.

Standards Reference:
- EBICS Specification 2.5 (H004) - Chapter 3 (Security), Chapter 5 (Transactions)
- EBICS ebics_hev.xsd (H000) - Version negotiation
- W3C XML-Signature Syntax and Processing (xmldsig-core)
- W3C Canonical XML Version 1.0 (REC-xml-c14n-20010315)

Author: Ebics client Python Project
Date: October 2025
"""

from enum import Enum


# ============================================================================
# XML NAMESPACES
# ============================================================================

NS_H000 = "http://www.ebics.org/H000"
NS_H003 = "http://www.ebics.org/H003"
NS_H004 = "urn:org:ebics:H004"
NS_H005 = "urn:org:ebics:H005"
NS_S001 = "http://www.ebics.org/S001"
NS_DS = "http://www.w3.org/2000/09/xmldsig#"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

HEV_SCHEMA_LOCATION = "http://www.ebics.org/H000 http://www.ebics.org/H000/ebics_hev.xsd"


# ============================================================================
# ALGORITHM IDENTIFIERS (XML-DSig subset used by AuthSignature)
# ============================================================================

ALGORITHM_C14N = "http://www.w3.org/TR/2001/REC-xml-c14n-20010315"
ALGORITHM_RSA_SHA256 = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha256"
ALGORITHM_DIGEST_PREFIX = "http://www.w3.org/2001/04/xmlenc#"
ALGORITHM_SHA256 = ALGORITHM_DIGEST_PREFIX + "sha256"

AUTHENTICATE_XPATH = "//*[@authenticate='true']"
AUTHENTICATE_REFERENCE_URI = "#xpointer(" + AUTHENTICATE_XPATH + ")"

RETURN_CODE_OK = "000000"


# ============================================================================
# ENUMERATIONS
# ============================================================================


class EbicsVersion(Enum):
    """
    EBICS protocol versions with their schema namespaces.
    """

    H003 = "H003"
    H004 = "H004"
    H005 = "H005"

    @property
    def namespace(self) -> str:
        return {
            EbicsVersion.H003: NS_H003,
            EbicsVersion.H004: NS_H004,
            EbicsVersion.H005: NS_H005,
        }[self]


class CertificateType(Enum):
    """
    Certificate roles.

    A: bank-technical signature (A006)
    X: identification and authentication (X002)
    E: encryption (E002)
    """

    A = "A"
    X = "X"
    E = "E"


class OrderType(Enum):
    """
    EBICS order types supported by the client.
    """

    INI = "INI"
    HIA = "HIA"
    HPB = "HPB"
    HEV = "HEV"
    HPD = "HPD"
    HKD = "HKD"
    HTD = "HTD"
    HAA = "HAA"
    VMK = "VMK"
    STA = "STA"
    C53 = "C53"
    Z53 = "Z53"
    FDL = "FDL"
    FUL = "FUL"
    SPR = "SPR"
    HVU = "HVU"
    HVZ = "HVZ"


class OrderAttribute(Enum):
    """
    OrderAttribute values.

    DZNNN: key management orders without signature (INI, HIA)
    DZHNN: download orders
    OZHNN: upload orders with bank-technical signature
    UZHNN: signature-only uploads (SPR)
    """

    DZNNN = "DZNNN"
    DZHNN = "DZHNN"
    OZHNN = "OZHNN"
    UZHNN = "UZHNN"


class TransactionPhase(Enum):
    """
    Transaction phases (EBICS uses the British spelling).
    """

    INITIALISATION = "Initialisation"
    TRANSFER = "Transfer"
    RECEIPT = "Receipt"


class ReceiptCode(Enum):
    """
    TransferReceipt codes sent in the Receipt phase.
    """

    POSITIVE = 0
    NEGATIVE = 1
