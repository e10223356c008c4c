"""
EBICS Request Builders

Assembles complete EBICS requests from the header, body, order data and
AuthSignature handlers:

- EbicsRequestHandler: root elements (unsecured, no-pub-key-digests,
  secured, HEV)
- RequestHandler: one build_* method per order and transaction phase

Every request is built once. Secured requests are signed as the last step,
after header and body are in place.

Standards Reference:
- EBICS Specification 2.5 Chapter 4 (Key management), Chapter 5 (Transactions)
- ebics_request_H004.xsd, ebics_keymgmt_request_H004.xsd, ebics_hev.xsd

Author: Ebics client Python Project
Date: October 2025
"""

from datetime import date, datetime, timezone
from typing import Callable, Dict, Optional

from lxml import etree

from protocols.core import crypto
from protocols.core.types import (
    HEV_SCHEMA_LOCATION,
    NS_DS,
    NS_H000,
    NS_XSI,
    OrderAttribute,
    OrderType,
    ReceiptCode,
    TransactionPhase,
)
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Bank, Certificate, Keyring, OrderDataEncrypted, Request, User
from protocols.messages.auth_signature import AuthSignatureHandler
from protocols.messages.body import BodyHandler
from protocols.messages.elements import create_root, sub_element
from protocols.messages.header import (
    HeaderHandler,
    OrderParams,
    empty_order_params,
    fdl_order_params,
    ful_order_params,
    standard_order_params,
)
from protocols.messages.order_data import OrderDataHandler


# ============================================================================
# ROOT ELEMENTS
# ============================================================================


class EbicsRequestHandler:
    """Root elements of the four request kinds."""

    REVISION = "1"

    def __init__(self, bank: Bank):
        self.version = bank.version
        self.ns = bank.version.namespace

    def _attributes(self):
        return {"Version": self.version.value, "Revision": self.REVISION}

    def handle_unsecured(self) -> etree._Element:
        return create_root(self.ns, "ebicsUnsecuredRequest", {None: self.ns}, self._attributes())

    def handle_no_pub_key_digests(self) -> etree._Element:
        return create_root(
            self.ns,
            "ebicsNoPubKeyDigestsRequest",
            {None: self.ns, "ds": NS_DS},
            self._attributes(),
        )

    def handle_secured(self) -> etree._Element:
        return create_root(self.ns, "ebicsRequest", {None: self.ns, "ds": NS_DS}, self._attributes())

    @staticmethod
    def handle_hev() -> etree._Element:
        root = create_root(NS_H000, "ebicsHEVRequest", {None: NS_H000, "xsi": NS_XSI})
        root.set(f"{{{NS_XSI}}}schemaLocation", HEV_SCHEMA_LOCATION)
        return root


# ============================================================================
# REQUEST HANDLER
# ============================================================================


class RequestHandler:
    """
    Builds signed EBICS requests for one bank/user/keyring.

    Args:
        bank: Remote endpoint
        user: Subscriber
        keyring: Keys used for digests and signatures
        nonce_generator: Nonce source (random by default)
    """

    def __init__(
        self,
        bank: Bank,
        user: User,
        keyring: Keyring,
        nonce_generator: Optional[Callable[[], str]] = None,
    ):
        self.bank = bank
        self.user = user
        self.keyring = keyring

        self.root_handler = EbicsRequestHandler(bank)
        self.header_handler = HeaderHandler(bank, user, keyring, nonce_generator or crypto.generate_nonce)
        self.body_handler = BodyHandler(bank.version.namespace)
        self.order_data_handler = OrderDataHandler(bank, user)
        self.auth_signature_handler = AuthSignatureHandler(keyring)

    @staticmethod
    def _now(date_time: Optional[datetime]) -> datetime:
        return date_time or datetime.now(timezone.utc)

    def _sign(self, root: etree._Element) -> Request:
        return self.auth_signature_handler.handle(Request(root))

    # ========================================================================
    # KEY MANAGEMENT (INI, HIA, HPB)
    # ========================================================================

    def build_ini(self, certificate_a: Optional[Certificate] = None, date_time: Optional[datetime] = None) -> Request:
        """
        INI: send the user signature public key (A006).

        Args:
            certificate_a: Certificate to announce (keyring certificate A if None)
            date_time: Key timestamp (now if None)

        Raises:
            EbicsException: If certificate A is not set
        """
        certificate_a = certificate_a or self.keyring.user_certificate_a
        if certificate_a is None:
            raise EbicsException("Certificate A is not set.")

        order_data = self.order_data_handler.handle_ini(certificate_a, self._now(date_time))
        root = self.root_handler.handle_unsecured()
        self.header_handler.handle_unsecured(root, OrderType.INI.value)
        self.body_handler.handle(root, order_data)
        return Request(root)

    def build_hia(
        self,
        certificate_e: Optional[Certificate] = None,
        certificate_x: Optional[Certificate] = None,
        date_time: Optional[datetime] = None,
    ) -> Request:
        """
        HIA: send the user authentication (X002) and encryption (E002) public keys.

        Certificates default to the keyring ones.

        Raises:
            EbicsException: If certificate X or E is not set
        """
        certificate_x = certificate_x or self.keyring.user_certificate_x
        certificate_e = certificate_e or self.keyring.user_certificate_e
        if certificate_x is None:
            raise EbicsException("Certificate X is not set.")
        if certificate_e is None:
            raise EbicsException("Certificate E is not set.")

        order_data = self.order_data_handler.handle_hia(certificate_e, certificate_x, self._now(date_time))
        root = self.root_handler.handle_unsecured()
        self.header_handler.handle_unsecured(root, OrderType.HIA.value)
        self.body_handler.handle(root, order_data)
        return Request(root)

    def build_hev(self) -> Request:
        root = self.root_handler.handle_hev()
        sub_element(root, NS_H000, "HostID", self.bank.host_id)
        return Request(root)

    def build_hpb(self, date_time: Optional[datetime] = None) -> Request:
        """HPB: download the bank public keys, signed with the user X002 key."""
        root = self.root_handler.handle_no_pub_key_digests()
        self.header_handler.handle_no_pub_key_digests(root, OrderType.HPB.value, self._now(date_time))
        self.body_handler.handle_empty(root)
        return self._sign(root)

    # ========================================================================
    # DOWNLOADS
    # ========================================================================

    def build_download(
        self,
        order_type: str,
        date_time: Optional[datetime] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        order_params: Optional[OrderParams] = None,
    ) -> Request:
        """
        Initialisation request of a download order.

        Args:
            order_type: Order type code (e.g. "STA")
            date_time: Request timestamp (now if None)
            start: Optional DateRange start
            end: Optional DateRange end
            order_params: Custom OrderDetails parameters, overrides the date range

        Returns:
            Request: signed ebicsRequest
        """
        root = self.root_handler.handle_secured()
        self.header_handler.handle_secured(
            root,
            order_type,
            self._now(date_time),
            order_params=order_params or standard_order_params(start, end),
        )
        self.body_handler.handle_empty(root)
        return self._sign(root)

    def build_hpd(self, date_time: Optional[datetime] = None) -> Request:
        return self.build_download(OrderType.HPD.value, date_time)

    def build_hkd(self, date_time: Optional[datetime] = None) -> Request:
        return self.build_download(OrderType.HKD.value, date_time)

    def build_htd(self, date_time: Optional[datetime] = None) -> Request:
        return self.build_download(OrderType.HTD.value, date_time)

    def build_haa(self, date_time: Optional[datetime] = None) -> Request:
        return self.build_download(OrderType.HAA.value, date_time)

    def build_vmk(self, date_time: Optional[datetime] = None, start: Optional[date] = None, end: Optional[date] = None) -> Request:
        return self.build_download(OrderType.VMK.value, date_time, start, end)

    def build_sta(self, date_time: Optional[datetime] = None, start: Optional[date] = None, end: Optional[date] = None) -> Request:
        return self.build_download(OrderType.STA.value, date_time, start, end)

    def build_c53(self, date_time: Optional[datetime] = None, start: Optional[date] = None, end: Optional[date] = None) -> Request:
        return self.build_download(OrderType.C53.value, date_time, start, end)

    def build_z53(self, date_time: Optional[datetime] = None, start: Optional[date] = None, end: Optional[date] = None) -> Request:
        return self.build_download(OrderType.Z53.value, date_time, start, end)

    def build_hvu(self, date_time: Optional[datetime] = None) -> Request:
        """HVU: orders waiting for distributed signatures (VEU overview)."""
        return self.build_download(OrderType.HVU.value, date_time, order_params=empty_order_params("HVUOrderParams"))

    def build_hvz(self, date_time: Optional[datetime] = None) -> Request:
        """HVZ: VEU overview with additional order information."""
        return self.build_download(OrderType.HVZ.value, date_time, order_params=empty_order_params("HVZOrderParams"))

    def build_fdl(
        self,
        file_format: str,
        country_code: str = "FR",
        date_time: Optional[datetime] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Request:
        """FDL: file download with FileFormat, CountryCode and optional DateRange."""
        return self.build_download(
            OrderType.FDL.value,
            date_time,
            order_params=fdl_order_params(file_format, country_code, start, end),
        )

    def build_transfer_download(self, transaction_id: str, segment_number: int, last: bool) -> Request:
        """Transfer request asking for one more download segment."""
        root = self.root_handler.handle_secured()
        self.header_handler.handle_transaction(
            root, transaction_id, TransactionPhase.TRANSFER, segment_number, last
        )
        self.body_handler.handle_empty(root)
        return self._sign(root)

    def build_transfer_receipt(self, transaction_id: str, acknowledged: bool = True) -> Request:
        """Receipt request closing a download transaction."""
        root = self.root_handler.handle_secured()
        self.header_handler.handle_transaction(root, transaction_id, TransactionPhase.RECEIPT)
        receipt_code = ReceiptCode.POSITIVE if acknowledged else ReceiptCode.NEGATIVE
        self.body_handler.handle_transfer_receipt(root, receipt_code)
        return self._sign(root)

    # ========================================================================
    # UPLOADS
    # ========================================================================

    def build_upload_init(
        self,
        order_type: str,
        encrypted: OrderDataEncrypted,
        signature_data: bytes,
        num_segments: int,
        date_time: Optional[datetime] = None,
        order_params: Optional[OrderParams] = None,
        order_attribute: OrderAttribute = OrderAttribute.OZHNN,
    ) -> Request:
        """
        Initialisation request of an upload order.

        Args:
            order_type: Order type code (e.g. "CCT")
            encrypted: Encrypted order data, only the transaction key is sent here
            signature_data: UserSignatureData encrypted with the same transaction key
            num_segments: Number of Transfer requests that follow
            date_time: Request timestamp (now if None)
            order_params: Custom OrderDetails parameters (StandardOrderParams if None)
            order_attribute: OZHNN for order data uploads, UZHNN for signature-only orders

        Returns:
            Request: signed ebicsRequest
        """
        certificate_e = self.keyring.bank_certificate_e
        if certificate_e is None:
            raise EbicsException("Certificate E is empty.")

        root = self.root_handler.handle_secured()
        self.header_handler.handle_secured(
            root,
            order_type,
            self._now(date_time),
            order_params=order_params or standard_order_params(),
            order_attribute=order_attribute,
            num_segments=num_segments,
        )
        self.body_handler.handle_upload_initialisation(
            root,
            crypto.calculate_digest(certificate_e),
            encrypted.transaction_key,
            signature_data,
        )
        return self._sign(root)

    def build_ful(
        self,
        file_format: str,
        encrypted: OrderDataEncrypted,
        signature_data: bytes,
        num_segments: int,
        country_code: str = "FR",
        parameters: Optional[Dict[str, str]] = None,
        date_time: Optional[datetime] = None,
    ) -> Request:
        """FUL: file upload with FileFormat, CountryCode and optional Parameter entries."""
        return self.build_upload_init(
            OrderType.FUL.value,
            encrypted,
            signature_data,
            num_segments,
            date_time,
            order_params=ful_order_params(file_format, country_code, parameters),
        )

    def build_spr(
        self,
        encrypted: OrderDataEncrypted,
        signature_data: bytes,
        date_time: Optional[datetime] = None,
    ) -> Request:
        """SPR: suspend the subscriber, signature only (UZHNN, NumSegments 0)."""
        return self.build_upload_init(
            OrderType.SPR.value,
            encrypted,
            signature_data,
            0,
            date_time,
            order_attribute=OrderAttribute.UZHNN,
        )

    def build_upload_transfer(self, transaction_id: str, segment_number: int, last: bool, order_data: bytes) -> Request:
        """Transfer request carrying one encrypted order data segment."""
        root = self.root_handler.handle_secured()
        self.header_handler.handle_transaction(
            root, transaction_id, TransactionPhase.TRANSFER, segment_number, last
        )
        self.body_handler.handle_order_data_segment(root, order_data)
        return self._sign(root)
