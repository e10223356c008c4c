"""
Pytest Configuration and Shared Fixtures

Fornisce fixture condivise per tutti i test:
- Coppie di chiavi RSA generate una volta per sessione (1024 bit per velocità)
- Bank, User e Keyring completo (utente A/X/E, banca X/E)
- FakeHttpClient che registra i POST e restituisce risposte in coda
- Factory di risposte EBICS H004/H000 cifrate per il certificato E dell'utente

Author: Ebics client Python Project
Date: October 2025
"""

import os
import sys
from collections import deque

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from interfaces.ebics_interfaces import HttpClient
from protocols.core import crypto
from protocols.core.types import NS_DS, NS_H000, NS_H004, CertificateType
from protocols.ebics_models import Bank, Certificate, Keyring, User
from protocols.messages.elements import b64encode

PASSWORD = "secret"
TEST_KEY_LENGTH = 1024


# ============================================================================
# KEY MATERIAL
# ============================================================================


@pytest.fixture(scope="session")
def user_keys():
    """Chiavi utente A, X, E cifrate con PASSWORD"""
    return {
        certificate_type: crypto.generate_keys(PASSWORD, length=TEST_KEY_LENGTH)
        for certificate_type in CertificateType
    }


@pytest.fixture(scope="session")
def bank_keys():
    """Chiavi banca X, E (private key non cifrate, restano alla banca)"""
    return {
        CertificateType.X: crypto.generate_keys(None, length=TEST_KEY_LENGTH),
        CertificateType.E: crypto.generate_keys(None, length=TEST_KEY_LENGTH),
    }


def _user_certificate(user_keys, certificate_type):
    keys = user_keys[certificate_type]
    return Certificate(type=certificate_type, public_key=keys["publickey"], private_key=keys["privatekey"])


@pytest.fixture
def bank():
    return Bank(host_id="myHostId", url="https://ebics.example.com/ebicsweb")


@pytest.fixture
def user():
    return User(partner_id="myPartnerId", user_id="myUserId")


@pytest.fixture
def keyring(user_keys, bank_keys):
    """Keyring completo: INI, HIA e HPB già eseguiti"""
    keyring = Keyring(PASSWORD)
    keyring.user_certificate_a = _user_certificate(user_keys, CertificateType.A)
    keyring.user_certificate_x = _user_certificate(user_keys, CertificateType.X)
    keyring.user_certificate_e = _user_certificate(user_keys, CertificateType.E)
    keyring.bank_certificate_x = Certificate(type=CertificateType.X, public_key=bank_keys[CertificateType.X]["publickey"])
    keyring.bank_certificate_e = Certificate(type=CertificateType.E, public_key=bank_keys[CertificateType.E]["publickey"])
    return keyring


@pytest.fixture
def fixed_nonce():
    return lambda: "0123456789ABCDEF0123456789ABCDEF"


# ============================================================================
# FAKE TRANSPORT
# ============================================================================


class FakeHttpClient(HttpClient):
    """Registra le richieste inviate e restituisce le risposte in coda"""

    def __init__(self, responses=None):
        self.responses = deque(responses or [])
        self.requests = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def post(self, url, content):
        self.requests.append((url, content))
        if not self.responses:
            raise AssertionError("No queued response for request")
        return self.responses.popleft()


@pytest.fixture
def http_client():
    return FakeHttpClient()


# ============================================================================
# RESPONSE FACTORIES
# ============================================================================


def encrypt_for_user(certificate_e, data, transaction_key=None):
    """Cifra order data come farebbe la banca (chiave E dell'utente)"""
    transaction_key = transaction_key or crypto.generate_transaction_key()
    return (
        crypto.encrypt_by_key(transaction_key, crypto.compress(data)),
        crypto.encrypt_transaction_key(certificate_e, transaction_key),
    )


def h004_response(
    return_code="000000",
    body_return_code="000000",
    transaction_id=None,
    phase=None,
    num_segments=None,
    segment_number=None,
    order_data=None,
    transaction_key=None,
    report_text="[EBICS_OK] OK",
    root_tag="ebicsResponse",
):
    """Costruisce una risposta H004 minima come bytes"""
    static = ""
    if transaction_id is not None:
        static += f"<TransactionID>{transaction_id}</TransactionID>"
    if num_segments is not None:
        static += f"<NumSegments>{num_segments}</NumSegments>"

    mutable = ""
    if phase is not None:
        mutable += f"<TransactionPhase>{phase}</TransactionPhase>"
    if segment_number is not None:
        mutable += f'<SegmentNumber lastSegment="true">{segment_number}</SegmentNumber>'
    if return_code is not None:
        mutable += f"<ReturnCode>{return_code}</ReturnCode>"
    mutable += f"<ReportText>{report_text}</ReportText>"

    data_transfer = ""
    if order_data is not None or transaction_key is not None:
        data_transfer = "<DataTransfer>"
        if transaction_key is not None:
            data_transfer += (
                '<DataEncryptionInfo authenticate="true">'
                '<EncryptionPubKeyDigest Version="E002" Algorithm="http://www.w3.org/2001/04/xmlenc#sha256">AA==</EncryptionPubKeyDigest>'
                f"<TransactionKey>{b64encode(transaction_key)}</TransactionKey>"
                "</DataEncryptionInfo>"
            )
        if order_data is not None:
            data_transfer += f"<OrderData>{b64encode(order_data)}</OrderData>"
        data_transfer += "</DataTransfer>"

    body_code = f'<ReturnCode authenticate="true">{body_return_code}</ReturnCode>' if body_return_code is not None else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<{root_tag} xmlns="{NS_H004}" xmlns:ds="{NS_DS}" Version="H004" Revision="1">'
        f'<header authenticate="true"><static>{static}</static><mutable>{mutable}</mutable></header>'
        f"<body>{data_transfer}{body_code}</body>"
        f"</{root_tag}>"
    ).encode("utf-8")


def h000_response(return_code="000000", report_text="[EBICS_OK] OK", versions=(("H003", "02.40"), ("H004", "02.50"))):
    version_numbers = "".join(
        f'<VersionNumber ProtocolVersion="{protocol}">{number}</VersionNumber>' for protocol, number in versions
    )
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<ebicsHEVResponse xmlns="{NS_H000}">'
        f"<SystemReturnCode><ReturnCode>{return_code}</ReturnCode><ReportText>{report_text}</ReportText></SystemReturnCode>"
        f"{version_numbers}"
        f"</ebicsHEVResponse>"
    ).encode("utf-8")


def hpb_order_data(bank_keys):
    """HPBResponseOrderData con le chiavi pubbliche X ed E della banca"""

    def key_info(tag, version_tag, version, keys):
        details = crypto.get_public_key_details(keys["publickey"])
        return (
            f"<{tag}><PubKeyValue><ds:RSAKeyValue>"
            f"<ds:Modulus>{b64encode(details['m'])}</ds:Modulus>"
            f"<ds:Exponent>{b64encode(details['e'])}</ds:Exponent>"
            f"</ds:RSAKeyValue></PubKeyValue><{version_tag}>{version}</{version_tag}></{tag}>"
        )

    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<HPBResponseOrderData xmlns="{NS_H004}" xmlns:ds="{NS_DS}">'
        + key_info("AuthenticationPubKeyInfo", "AuthenticationVersion", "X002", bank_keys[CertificateType.X])
        + key_info("EncryptionPubKeyInfo", "EncryptionVersion", "E002", bank_keys[CertificateType.E])
        + "<HostID>myHostId</HostID></HPBResponseOrderData>"
    ).encode("utf-8")
