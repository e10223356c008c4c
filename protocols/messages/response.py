"""
EBICS Response Handler

Reads return codes, report texts, transaction state and encrypted order
data from H004 and H000 responses, and turns non-success codes into typed
exceptions.

Return code precedence (H004): the header ReturnCode wins unless it is
missing or 000000, in which case the body ReturnCode is used.

Standards Reference:
- EBICS Specification 2.5 Section 5.6 (EBICS response), Annex 1 (Return codes)
- ebics_response_H004.xsd, ebics_hev.xsd

Author: Ebics client Python Project
Date: October 2025
"""

from typing import Iterable, List, Optional, Tuple

from protocols.core.c14n import select_nodes, xpath_namespaces
from protocols.core.types import RETURN_CODE_OK, EbicsVersion, TransactionPhase
from protocols.ebics_exceptions import EbicsException, EbicsExceptionFactory
from protocols.ebics_models import OrderDataEncrypted, Request, Response, Transaction
from protocols.messages.elements import b64decode
from utils.logger import EbicsLogger


class ResponseHandler:
    """XPath accessors over EBICS responses."""

    def __init__(self, logger=None):
        self.namespaces = xpath_namespaces(EbicsVersion.H004)
        self.logger = logger or EbicsLogger.get_logger("ResponseHandler", console_output=False)

    def _text(self, response: Response, xpath: str) -> Optional[str]:
        nodes = select_nodes(response.root, xpath, self.namespaces)
        if not nodes:
            return None
        return (nodes[0].text or "").strip()

    # ========================================================================
    # RETURN CODES AND REPORT TEXTS
    # ========================================================================

    def retrieve_h004_return_code(self, response: Response) -> Optional[str]:
        return self._text(response, "//H004:header/H004:mutable/H004:ReturnCode")

    def retrieve_h004_body_return_code(self, response: Response) -> Optional[str]:
        return self._text(response, "//H004:body/H004:ReturnCode")

    def retrieve_h004_body_or_header_return_code(self, response: Response) -> Optional[str]:
        """Header code unless missing or 000000, body code otherwise."""
        header_code = self.retrieve_h004_return_code(response)
        if header_code and header_code != RETURN_CODE_OK:
            return header_code
        return self.retrieve_h004_body_return_code(response) or header_code

    def retrieve_h004_report_text(self, response: Response) -> Optional[str]:
        return self._text(response, "//H004:header/H004:mutable/H004:ReportText")

    def retrieve_h000_return_code(self, response: Response) -> Optional[str]:
        return self._text(response, "//H000:SystemReturnCode/H000:ReturnCode")

    def retrieve_h000_report_text(self, response: Response) -> Optional[str]:
        return self._text(response, "//H000:SystemReturnCode/H000:ReportText")

    def retrieve_h000_versions(self, response: Response) -> List[Tuple[str, str]]:
        """
        Supported versions advertised by an HEV response.

        Returns:
            List[Tuple[str, str]]: (ProtocolVersion, VersionNumber) pairs,
                e.g. ("H004", "02.50")
        """
        nodes = select_nodes(response.root, "//H000:VersionNumber", self.namespaces)
        return [(node.get("ProtocolVersion"), (node.text or "").strip()) for node in nodes]

    # ========================================================================
    # ORDER DATA AND TRANSACTIONS
    # ========================================================================

    def retrieve_order_data(self, response: Response) -> OrderDataEncrypted:
        """
        Encrypted order data and transaction key of a download response.

        Raises:
            EbicsException: If OrderData or TransactionKey is missing
        """
        order_data = self._text(response, "//H004:body/H004:DataTransfer/H004:OrderData")
        transaction_key = self._text(
            response, "//H004:body/H004:DataTransfer/H004:DataEncryptionInfo/H004:TransactionKey"
        )
        if order_data is None or transaction_key is None:
            raise EbicsException("EBICS response empty result.")
        return OrderDataEncrypted(
            order_data=b64decode(order_data),
            transaction_key=b64decode(transaction_key),
        )

    def retrieve_order_data_segment(self, response: Response) -> bytes:
        """Encrypted OrderData of a Transfer response (no transaction key)."""
        order_data = self._text(response, "//H004:body/H004:DataTransfer/H004:OrderData")
        if order_data is None:
            raise EbicsException("EBICS response empty result.")
        return b64decode(order_data)

    def retrieve_transaction(self, response: Response) -> Transaction:
        """
        Transaction state from the response header.

        Raises:
            EbicsException: If TransactionID or TransactionPhase is missing
        """
        transaction_id = self._text(response, "//H004:header/H004:static/H004:TransactionID")
        if not transaction_id:
            raise EbicsException("EBICS response has no TransactionID.")
        phase = self._text(response, "//H004:header/H004:mutable/H004:TransactionPhase")
        if not phase:
            raise EbicsException("EBICS response has no TransactionPhase.")

        transaction = Transaction()
        transaction.id = transaction_id
        try:
            transaction.phase = TransactionPhase(phase)
        except ValueError as e:
            raise EbicsException(f"Unknown TransactionPhase {phase!r}.") from e

        num_segments = self._text(response, "//H004:header/H004:static/H004:NumSegments")
        if num_segments is not None:
            transaction.num_segments = self._to_int(num_segments)
        segment_number = self._text(response, "//H004:header/H004:mutable/H004:SegmentNumber")
        if segment_number is not None:
            transaction.segment_number = self._to_int(segment_number)
        return transaction

    @staticmethod
    def _to_int(value: str) -> int:
        # Non-numeric segment counters are read as 0
        try:
            return int(value)
        except ValueError:
            return 0

    # ========================================================================
    # RETURN CODE CHECKS
    # ========================================================================

    def check_h004_return_code(
        self,
        request: Request,
        response: Response,
        accepted_codes: Iterable[str] = (RETURN_CODE_OK,),
    ) -> Response:
        """
        Raise the typed exception of a non-accepted H004 ReturnCode.

        Args:
            request: Request that was sent
            response: Parsed response
            accepted_codes: Codes treated as success (000000 by default)

        Returns:
            Response: the same response when the code is accepted

        Raises:
            EbicsResponseException: For every other code
        """
        code = self.retrieve_h004_body_or_header_return_code(response)
        if code in accepted_codes:
            return response
        if code is None:
            raise EbicsException("EBICS response has no ReturnCode.")

        report_text = self.retrieve_h004_report_text(response)
        self.logger.error(f"EBICS H004 error {code}: {report_text}")
        raise EbicsExceptionFactory.create(code, report_text, request, response)

    def check_h000_return_code(self, request: Request, response: Response) -> Response:
        """Same as check_h004_return_code for HEV responses."""
        code = self.retrieve_h000_return_code(response)
        if code == RETURN_CODE_OK:
            return response
        if code is None:
            raise EbicsException("EBICS response has no ReturnCode.")

        report_text = self.retrieve_h000_report_text(response)
        self.logger.error(f"EBICS H000 error {code}: {report_text}")
        raise EbicsExceptionFactory.create(code, report_text, request, response)
