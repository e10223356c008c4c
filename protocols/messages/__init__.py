"""
EBICS Protocol Messages

This module provides the builders and parsers of EBICS XML documents.

Message categories:
- Requests: root, header, body, order data and AuthSignature handlers
- Responses: return codes, transactions and encrypted order data

Standards Reference:
- EBICS Specification 2.5 (H004) - Chapter 5 (Transactions)

Author: Ebics client Python Project
Date: October 2025
"""

from .auth_signature import AuthSignatureHandler
from .body import BodyHandler
from .header import HeaderHandler, fdl_order_params, standard_order_params
from .order_data import OrderDataHandler
from .request import EbicsRequestHandler, RequestHandler
from .response import ResponseHandler

__all__ = [
    # Requests
    "EbicsRequestHandler",
    "RequestHandler",
    "HeaderHandler",
    "BodyHandler",
    "OrderDataHandler",
    "AuthSignatureHandler",
    "standard_order_params",
    "fdl_order_params",

    # Responses
    "ResponseHandler",
]
