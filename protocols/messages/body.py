"""
EBICS Request Body Handler

Builds the <body> of EBICS requests: key management order data, empty
bodies, transfer receipts and upload data transfers.

Standards Reference:
- EBICS Specification 2.5 Section 5.4 (EBICS request body)

Author: Ebics client Python Project
Date: October 2025
"""

from lxml import etree

from protocols.core import crypto
from protocols.core.types import ALGORITHM_SHA256, ReceiptCode
from protocols.ebics_models import Keyring
from protocols.messages.elements import b64encode, sub_element


class BodyHandler:
    """Body builder for one protocol namespace."""

    def __init__(self, namespace: str):
        self.ns = namespace

    def handle(self, root: etree._Element, order_data: bytes) -> etree._Element:
        """Unencrypted order data (INI/HIA): base64 of the zlib stream."""
        body = sub_element(root, self.ns, "body")
        data_transfer = sub_element(body, self.ns, "DataTransfer")
        sub_element(data_transfer, self.ns, "OrderData", b64encode(crypto.compress(order_data)))
        return body

    def handle_empty(self, root: etree._Element) -> etree._Element:
        return sub_element(root, self.ns, "body")

    def handle_transfer_receipt(self, root: etree._Element, receipt_code: ReceiptCode) -> etree._Element:
        body = sub_element(root, self.ns, "body")
        receipt = sub_element(body, self.ns, "TransferReceipt", attrib={"authenticate": "true"})
        sub_element(receipt, self.ns, "ReceiptCode", str(receipt_code.value))
        return body

    def handle_upload_initialisation(
        self,
        root: etree._Element,
        encryption_pub_key_digest: bytes,
        transaction_key: bytes,
        signature_data: bytes,
    ) -> etree._Element:
        """
        Body of an upload Initialisation request.

        Args:
            root: Request root
            encryption_pub_key_digest: Digest of the bank E002 public key
            transaction_key: Transaction key encrypted for the bank
            signature_data: Compressed and encrypted UserSignatureData
        """
        body = sub_element(root, self.ns, "body")
        data_transfer = sub_element(body, self.ns, "DataTransfer")

        encryption_info = sub_element(data_transfer, self.ns, "DataEncryptionInfo", attrib={"authenticate": "true"})
        sub_element(
            encryption_info,
            self.ns,
            "EncryptionPubKeyDigest",
            b64encode(encryption_pub_key_digest),
            {"Version": Keyring.BANK_SIGNATURE_E_VERSION, "Algorithm": ALGORITHM_SHA256},
        )
        sub_element(encryption_info, self.ns, "TransactionKey", b64encode(transaction_key))

        sub_element(data_transfer, self.ns, "SignatureData", b64encode(signature_data), {"authenticate": "true"})
        return body

    def handle_order_data_segment(self, root: etree._Element, segment: bytes) -> etree._Element:
        """Body of an upload Transfer request carrying one encrypted segment."""
        body = sub_element(root, self.ns, "body")
        data_transfer = sub_element(body, self.ns, "DataTransfer")
        sub_element(data_transfer, self.ns, "OrderData", b64encode(segment))
        return body
