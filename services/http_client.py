"""
EBICS HTTP Transport Service

Default HttpClient built on requests: one POST per EBICS request, with the
EBICS Content-Type, a configurable timeout and TLS verification.

Transport failures (connection errors, timeouts, non-2xx status) are
wrapped into EbicsException. The client never retries on its own.

Standards Reference:
- EBICS Specification 2.5 Section 2.2 (TLS transport, HTTP POST binding)

Author: Ebics client Python Project
Date: October 2025
"""

from typing import Optional, Union

import requests

from config.ebics_config import EBICS_CONSTANTS
from interfaces.ebics_interfaces import HttpClient
from protocols.ebics_exceptions import EbicsException
from utils.logger import EbicsLogger


class RequestsHttpClient(HttpClient):
    """
    HttpClient backed by a requests.Session.

    Args:
        timeout: Timeout in secondi per ogni POST
        verify: Verifica TLS (True, False o path di un CA bundle)
        session: Session da riusare (opzionale, creata se None)
    """

    def __init__(
        self,
        timeout: int = EBICS_CONSTANTS.DEFAULT_HTTP_TIMEOUT,
        verify: Union[bool, str] = True,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.verify = verify
        self.session = session or requests.Session()
        self.logger = EbicsLogger.get_logger("RequestsHttpClient")

    def post(self, url: str, content: bytes) -> bytes:
        """
        POST a request document.

        Args:
            url: EBICS server URL
            content: Serialized request XML

        Returns:
            bytes: Response body

        Raises:
            EbicsException: On connection errors, timeouts or HTTP error status
        """
        self.logger.debug(f"POST {url} ({len(content)} bytes)")
        try:
            response = self.session.post(
                url,
                data=content,
                headers={"Content-Type": EBICS_CONSTANTS.CONTENT_TYPE},
                timeout=self.timeout,
                verify=self.verify,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"HTTP request to {url} failed: {e}")
            raise EbicsException(f"Failed to send EBICS request: {e}") from e

        self.logger.debug(f"Response {response.status_code} ({len(response.content)} bytes)")
        return response.content

    def close(self):
        self.session.close()
