"""
EBICS Request Header Handler

Builds the authenticated <header> of EBICS requests:
- static: HostID, Nonce/Timestamp, PartnerID, UserID, Product, OrderDetails,
  BankPubKeyDigests, SecurityMedium, NumSegments
- mutable: TransactionPhase, SegmentNumber

Standards Reference:
- EBICS Specification 2.5 Section 5.3 (EBICS request header)
- ebics_request_H004.xsd, ebics_keymgmt_request_H004.xsd

Author: Ebics client Python Project
Date: October 2025
"""

from datetime import date, datetime
from typing import Callable, Dict, Optional

from lxml import etree

from config.ebics_config import EBICS_CONSTANTS
from protocols.core import crypto
from protocols.core.types import ALGORITHM_SHA256, OrderAttribute, TransactionPhase
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Bank, Keyring, User
from protocols.messages.elements import b64encode, sub_element

# Hook appending order parameters to OrderDetails
OrderParams = Callable[[etree._Element, str], None]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DATE_FORMAT = "%Y-%m-%d"


def _date_range(parent: etree._Element, ns: str, start: Optional[date], end: Optional[date]):
    if start is not None and end is not None:
        date_range = sub_element(parent, ns, "DateRange")
        sub_element(date_range, ns, "Start", start.strftime(DATE_FORMAT))
        sub_element(date_range, ns, "End", end.strftime(DATE_FORMAT))


def standard_order_params(start: Optional[date] = None, end: Optional[date] = None) -> OrderParams:
    """StandardOrderParams with an optional DateRange."""
    def hook(order_details: etree._Element, ns: str):
        params = sub_element(order_details, ns, "StandardOrderParams")
        _date_range(params, ns, start, end)
    return hook


def fdl_order_params(
    file_format: str,
    country_code: str = "FR",
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> OrderParams:
    """FDLOrderParams with FileFormat/CountryCode and an optional DateRange."""
    def hook(order_details: etree._Element, ns: str):
        params = sub_element(order_details, ns, "FDLOrderParams")
        _date_range(params, ns, start, end)
        sub_element(params, ns, "FileFormat", file_format, {"CountryCode": country_code})
    return hook


def _parameters(parent: etree._Element, ns: str, parameters: Optional[Dict[str, str]]):
    for name, value in (parameters or {}).items():
        parameter = sub_element(parent, ns, "Parameter")
        sub_element(parameter, ns, "Name", name)
        sub_element(parameter, ns, "Value", value, {"Type": "string"})


def ful_order_params(
    file_format: str,
    country_code: str = "FR",
    parameters: Optional[Dict[str, str]] = None,
) -> OrderParams:
    """FULOrderParams with optional Parameter entries and FileFormat/CountryCode."""
    def hook(order_details: etree._Element, ns: str):
        params = sub_element(order_details, ns, "FULOrderParams")
        _parameters(params, ns, parameters)
        sub_element(params, ns, "FileFormat", file_format, {"CountryCode": country_code})
    return hook


def empty_order_params(tag: str) -> OrderParams:
    """Order parameters without content (e.g. HVUOrderParams, HVZOrderParams)."""
    def hook(order_details: etree._Element, ns: str):
        sub_element(order_details, ns, tag)
    return hook


class HeaderHandler:
    """
    Header builder bound to one bank/user/keyring.

    The nonce generator is injectable so that requests can be reproduced.
    """

    def __init__(
        self,
        bank: Bank,
        user: User,
        keyring: Keyring,
        nonce_generator: Callable[[], str] = crypto.generate_nonce,
        product: str = EBICS_CONSTANTS.PRODUCT_NAME,
        language: str = EBICS_CONSTANTS.PRODUCT_LANGUAGE,
        security_medium: str = EBICS_CONSTANTS.SECURITY_MEDIUM,
    ):
        self.bank = bank
        self.user = user
        self.keyring = keyring
        self.nonce_generator = nonce_generator
        self.product = product
        self.language = language
        self.security_medium = security_medium
        self.ns = bank.version.namespace

    # ========================================================================
    # PUBLIC BUILDERS
    # ========================================================================

    def handle_unsecured(self, root: etree._Element, order_type: str) -> etree._Element:
        """Header of INI/HIA: no nonce, no bank digests, empty mutable."""
        return self._handle(
            root,
            order_type,
            OrderAttribute.DZNNN,
            date_time=None,
            with_bank_digests=False,
            phase=None,
        )

    def handle_no_pub_key_digests(self, root: etree._Element, order_type: str, date_time: datetime) -> etree._Element:
        """Header of HPB: nonce and timestamp, no bank digests yet."""
        return self._handle(
            root,
            order_type,
            OrderAttribute.DZHNN,
            date_time=date_time,
            with_bank_digests=False,
            phase=None,
        )

    def handle_secured(
        self,
        root: etree._Element,
        order_type: str,
        date_time: datetime,
        order_params: Optional[OrderParams] = None,
        order_attribute: OrderAttribute = OrderAttribute.DZHNN,
        num_segments: Optional[int] = None,
    ) -> etree._Element:
        """Header of an Initialisation request once the bank keys are known."""
        return self._handle(
            root,
            order_type,
            order_attribute,
            date_time=date_time,
            with_bank_digests=True,
            phase=TransactionPhase.INITIALISATION,
            order_params=order_params,
            num_segments=num_segments,
        )

    def handle_transaction(
        self,
        root: etree._Element,
        transaction_id: str,
        phase: TransactionPhase,
        segment_number: Optional[int] = None,
        last_segment: bool = False,
    ) -> etree._Element:
        """Header of Transfer and Receipt requests."""
        header = sub_element(root, self.ns, "header", attrib={"authenticate": "true"})
        static = sub_element(header, self.ns, "static")
        sub_element(static, self.ns, "HostID", self.bank.host_id)
        sub_element(static, self.ns, "TransactionID", transaction_id)

        mutable = sub_element(header, self.ns, "mutable")
        sub_element(mutable, self.ns, "TransactionPhase", phase.value)
        if segment_number is not None:
            attrib = {"lastSegment": "true"} if last_segment else None
            sub_element(mutable, self.ns, "SegmentNumber", str(segment_number), attrib)
        return header

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _handle(
        self,
        root: etree._Element,
        order_type: str,
        order_attribute: OrderAttribute,
        date_time: Optional[datetime],
        with_bank_digests: bool,
        phase: Optional[TransactionPhase],
        order_params: Optional[OrderParams] = None,
        num_segments: Optional[int] = None,
    ) -> etree._Element:
        ns = self.ns
        header = sub_element(root, ns, "header", attrib={"authenticate": "true"})
        static = sub_element(header, ns, "static")
        sub_element(static, ns, "HostID", self.bank.host_id)

        if date_time is not None:
            sub_element(static, ns, "Nonce", self.nonce_generator())
            sub_element(static, ns, "Timestamp", date_time.strftime(TIMESTAMP_FORMAT))

        sub_element(static, ns, "PartnerID", self.user.partner_id)
        sub_element(static, ns, "UserID", self.user.user_id)
        sub_element(static, ns, "Product", self.product, {"Language": self.language})

        order_details = sub_element(static, ns, "OrderDetails")
        sub_element(order_details, ns, "OrderType", order_type)
        sub_element(order_details, ns, "OrderAttribute", order_attribute.value)
        if order_params is not None:
            order_params(order_details, ns)

        if with_bank_digests:
            self._handle_bank_pub_key_digests(static)

        sub_element(static, ns, "SecurityMedium", self.security_medium)
        if num_segments is not None:
            sub_element(static, ns, "NumSegments", str(num_segments))

        mutable = sub_element(header, ns, "mutable")
        if phase is not None:
            sub_element(mutable, ns, "TransactionPhase", phase.value)
        return header

    def _handle_bank_pub_key_digests(self, static: etree._Element):
        certificate_x = self.keyring.bank_certificate_x
        if certificate_x is None:
            raise EbicsException("Certificate X is empty.")
        certificate_e = self.keyring.bank_certificate_e
        if certificate_e is None:
            raise EbicsException("Certificate E is empty.")

        digests = sub_element(static, self.ns, "BankPubKeyDigests")
        sub_element(
            digests,
            self.ns,
            "Authentication",
            b64encode(crypto.calculate_digest(certificate_x)),
            {"Version": Keyring.BANK_SIGNATURE_X_VERSION, "Algorithm": ALGORITHM_SHA256},
        )
        sub_element(
            digests,
            self.ns,
            "Encryption",
            b64encode(crypto.calculate_digest(certificate_e)),
            {"Version": Keyring.BANK_SIGNATURE_E_VERSION, "Algorithm": ALGORITHM_SHA256},
        )
