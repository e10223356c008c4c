"""
Test suite per RequestsHttpClient con una Session finta
"""

import pytest
import requests

from protocols.ebics_exceptions import EbicsException
from services.http_client import RequestsHttpClient


class FakeResponse:
    def __init__(self, status_code=200, content=b"<ebicsResponse/>"):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []
        self.closed = False

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


class TestRequestsHttpClient:
    """Test per il trasporto HTTP"""

    def test_post(self):
        """Test POST con Content-Type, timeout e verifica TLS"""
        session = FakeSession()
        client = RequestsHttpClient(timeout=5, verify="/etc/ssl/bank.pem", session=session)

        assert client.post("https://bank.example.com/ebics", b"<ebicsRequest/>") == b"<ebicsResponse/>"

        url, kwargs = session.calls[0]
        assert url == "https://bank.example.com/ebics"
        assert kwargs["data"] == b"<ebicsRequest/>"
        assert kwargs["headers"] == {"Content-Type": "text/xml; charset=ISO-8859-1"}
        assert kwargs["timeout"] == 5
        assert kwargs["verify"] == "/etc/ssl/bank.pem"

    def test_http_error(self):
        """Test stato HTTP di errore"""
        client = RequestsHttpClient(session=FakeSession(FakeResponse(status_code=500)))

        with pytest.raises(EbicsException, match="Failed to send EBICS request: 500"):
            client.post("https://bank.example.com/ebics", b"<ebicsRequest/>")

    def test_connection_error(self):
        """Test errore di connessione"""
        client = RequestsHttpClient(session=FakeSession(error=requests.exceptions.ConnectionError("refused")))

        with pytest.raises(EbicsException, match="refused"):
            client.post("https://bank.example.com/ebics", b"<ebicsRequest/>")

    def test_close(self):
        """Test chiusura della session"""
        session = FakeSession()
        RequestsHttpClient(session=session).close()

        assert session.closed
