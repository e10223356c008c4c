"""
EBICS AuthSignature Handler (XML-DSig subset)

Computes the identification and authentication signature (X002) of an
EBICS request:
1. Canonicalize every element flagged authenticate="true" (C14N 1.0)
2. DigestValue = SHA-256 of the concatenated canonical bytes
3. SignatureValue = X002 signature of the canonical SignedInfo
4. Insert AuthSignature right after the header

The request tree must be complete before signing. Re-signing requires a
freshly built request.

Standards Reference:
- EBICS Specification 2.5 Section 5.5.1.1 (Identification and authentication signature)
- W3C XML-Signature Syntax and Processing
- W3C Canonical XML Version 1.0

Author: Ebics client Python Project
Date: October 2025
"""

from lxml import etree

from protocols.core import crypto
from protocols.core.c14n import canonicalize, canonicalize_nodes
from protocols.core.types import (
    ALGORITHM_C14N,
    ALGORITHM_RSA_SHA256,
    ALGORITHM_SHA256,
    AUTHENTICATE_REFERENCE_URI,
    AUTHENTICATE_XPATH,
    NS_DS,
)
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Keyring, Request
from protocols.messages.elements import b64encode, qname, sub_element


class AuthSignatureHandler:
    """Signs complete requests with the user authentication key."""

    def __init__(self, keyring: Keyring):
        self.keyring = keyring

    @staticmethod
    def calculate_digest(request: Request) -> bytes:
        """SHA-256 over the canonical form of all authenticate="true" elements."""
        canonical = canonicalize_nodes(request.root, AUTHENTICATE_XPATH)
        if not canonical:
            raise EbicsException("Request has no element to authenticate.")
        return crypto.calculate_hash(canonical)

    def handle(self, request: Request) -> Request:
        """
        Insert AuthSignature into a fully built request.

        Args:
            request: Request with header and body in place

        Returns:
            Request: the same request, signed

        Raises:
            EbicsException: If the request is already signed, has no header,
                or the X002 key is missing
        """
        root = request.root
        ns = etree.QName(root).namespace
        if root.find(qname(ns, "AuthSignature")) is not None:
            raise EbicsException("Request is already signed, build a new one to sign again.")

        header = root.find(qname(ns, "header"))
        if header is None:
            raise EbicsException("Request has no header to authenticate.")

        digest = self.calculate_digest(request)

        auth_signature = etree.Element(qname(ns, "AuthSignature"))
        # Inserted before SignedInfo is canonicalized so that in-scope
        # namespaces match the ones seen by the bank.
        root.insert(root.index(header) + 1, auth_signature)

        signed_info = sub_element(auth_signature, NS_DS, "SignedInfo")
        sub_element(signed_info, NS_DS, "CanonicalizationMethod", attrib={"Algorithm": ALGORITHM_C14N})
        sub_element(signed_info, NS_DS, "SignatureMethod", attrib={"Algorithm": ALGORITHM_RSA_SHA256})
        reference = sub_element(signed_info, NS_DS, "Reference", attrib={"URI": AUTHENTICATE_REFERENCE_URI})
        transforms = sub_element(reference, NS_DS, "Transforms")
        sub_element(transforms, NS_DS, "Transform", attrib={"Algorithm": ALGORITHM_C14N})
        sub_element(reference, NS_DS, "DigestMethod", attrib={"Algorithm": ALGORITHM_SHA256})
        sub_element(reference, NS_DS, "DigestValue", b64encode(digest))

        signed_info_hash = crypto.calculate_hash(canonicalize(signed_info))
        signature_value = crypto.crypt_signature_value(self.keyring, signed_info_hash)
        sub_element(auth_signature, NS_DS, "SignatureValue", b64encode(signature_value))

        return request
