"""
EBICS Client - Orchestratore degli ordini EBICS

Implementa il client EBICS H004 per un sottoscrittore (bank + user + keyring).

Responsabilità:
- Key ceremony: INI (chiave A006), HIA (chiavi X002/E002), HPB (chiavi banca)
- Negoziazione versione: HEV
- Download: HPD, HKD, HTD, HAA, VMK, STA, C53, Z53, FDL, HVU, HVZ e ordini
  generici, con transazioni multi-segmento (Initialisation, Transfer, Receipt)
- Upload: firma A006, cifratura E002, segmentazione a 1 MB (FUL e generici),
  SPR con la sola firma
- Keyring: verifica e cambio password delle chiavi private
- Verifica dei ReturnCode di ogni risposta

Il client è sincrono e non esegue retry: gli errori transitori
(EbicsResponseException.is_transient) sono lasciati al chiamante.

Standards Reference:
- EBICS Specification 2.5 (H004) - Chapter 4 (Key management), Chapter 5 (Transactions)
- EBICS Specification 2.5 Annex 2 (A006, X002, E002)

Design Patterns Used:
- Dependency Injection: HttpClient e X509Generator iniettati
- Service Layer: delega la costruzione XML a RequestHandler/ResponseHandler

Author: Ebics client Python Project
Date: October 2025
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

from config.ebics_config import EBICS_CONSTANTS
from interfaces.ebics_interfaces import HttpClient, X509Generator
from protocols.core import crypto
from protocols.core.types import RETURN_CODE_OK, CertificateType, OrderType, TransactionPhase
from protocols.ebics_exceptions import (
    DownloadPostprocessDoneException,
    DownloadPostprocessSkippedException,
    EbicsException,
)
from protocols.ebics_models import (
    Bank,
    Certificate,
    Keyring,
    OrderDataEncrypted,
    Request,
    Response,
    Transaction,
    User,
)
from protocols.messages.header import OrderParams
from protocols.messages.request import RequestHandler
from protocols.messages.response import ResponseHandler
from services.http_client import RequestsHttpClient
from services.x509_generator import BankX509Generator
from utils.ebics_io import EbicsFileHandler
from utils.logger import EbicsLogger

# SPR signs a dummy order made of one space
SPR_ORDER_DATA = b" "


class EbicsClient:
    """
    EBICS client for one subscriber of one bank.

    Args:
        bank: Endpoint EBICS (HostID, URL, versione)
        user: Sottoscrittore (PartnerID, UserID)
        keyring: Keyring con password; aggiornato da INI/HIA/HPB
        http_client: Trasporto (default RequestsHttpClient)
        x509_generator: Generatore certificati (default BankX509Generator
            solo per banche certificate)
        logger: Logger (default EbicsLogger "EbicsClient_<HostID>")
        key_length: Lunghezza delle chiavi RSA generate da INI/HIA
        nonce_generator: Sorgente dei nonce (default casuale)
        log_dir: Directory dei file di log del logger di default
            (es. EBICS_PATHS.LOGS), solo console se None
    """

    def __init__(
        self,
        bank: Bank,
        user: User,
        keyring: Keyring,
        http_client: Optional[HttpClient] = None,
        x509_generator: Optional[X509Generator] = None,
        logger=None,
        key_length: int = EBICS_CONSTANTS.DEFAULT_KEY_LENGTH,
        nonce_generator: Optional[Callable[[], str]] = None,
        log_dir: Optional[str] = None,
    ):
        # ========================================================================
        # 1. COLLABORATORI
        # ========================================================================

        self.bank = bank
        self.user = user
        self.keyring = keyring
        self.key_length = key_length

        self.http_client = http_client or RequestsHttpClient()
        if x509_generator is None and bank.is_certified:
            x509_generator = BankX509Generator(bank.dn_profile or "default")
        self.x509_generator = x509_generator

        self.logger = logger or EbicsLogger.get_logger(
            f"EbicsClient_{bank.host_id}",
            log_dir=str(log_dir) if log_dir else None,
        )

        # ========================================================================
        # 2. HANDLER XML
        # ========================================================================

        self.request_handler = RequestHandler(bank, user, keyring, nonce_generator)
        self.response_handler = ResponseHandler(self.logger)

        self.logger.info("=" * 60)
        self.logger.info(f"EBICS client {bank.version.value} per {bank.host_id}")
        self.logger.info(f"  URL: {bank.url}")
        self.logger.info(f"  PartnerID/UserID: {user.partner_id}/{user.user_id}")
        self.logger.info(f"  Banca certificata: {bank.is_certified}")
        self.logger.info("=" * 60)

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _send(self, request: Request) -> Response:
        content = self.http_client.post(self.bank.url, request.get_content())
        return Response(content)

    def _send_h004(self, request: Request, accepted_codes=(RETURN_CODE_OK,)) -> Response:
        response = self._send(request)
        return self.response_handler.check_h004_return_code(request, response, accepted_codes)

    # ========================================================================
    # KEY MANAGEMENT
    # ========================================================================

    def HEV(self) -> Response:
        """
        Ask the bank which EBICS versions it supports.

        Returns:
            Response: HEV response (H000 ReturnCode checked)
        """
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info("HEV: richiesta versioni supportate")

        request = self.request_handler.build_hev()
        response = self.response_handler.check_h000_return_code(request, self._send(request))

        for protocol_version, version_number in self.response_handler.retrieve_h000_versions(response):
            self.logger.info(f"   {protocol_version} ({version_number})")
        self.logger.info("✅ HEV completato")
        return response

    def INI(self, date_time: Optional[datetime] = None) -> Response:
        """
        Send the user signature key (A006).

        A new key pair is generated and stored in the keyring as certificate A
        only after the bank accepted it.

        Raises:
            PasswordMissingException: If the keyring has no password
            EbicsResponseException: If the bank rejects the request
        """
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info(f"INI: invio chiave di firma {Keyring.USER_SIGNATURE_A_VERSION}")

        certificate_a = self._create_certificate(CertificateType.A)
        request = self.request_handler.build_ini(certificate_a, date_time)
        response = self._send_h004(request)

        self.keyring.user_certificate_a = certificate_a
        self.logger.info("✅ INI completato, certificato A salvato nel keyring")
        return response

    def HIA(self, date_time: Optional[datetime] = None) -> Response:
        """
        Send the user authentication (X002) and encryption (E002) keys.

        Raises:
            PasswordMissingException: If the keyring has no password
            EbicsResponseException: If the bank rejects the request
        """
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info(
            f"HIA: invio chiavi {Keyring.USER_SIGNATURE_X_VERSION} e {Keyring.USER_SIGNATURE_E_VERSION}"
        )

        certificate_e = self._create_certificate(CertificateType.E)
        certificate_x = self._create_certificate(CertificateType.X)
        request = self.request_handler.build_hia(certificate_e, certificate_x, date_time)
        response = self._send_h004(request)

        self.keyring.user_certificate_e = certificate_e
        self.keyring.user_certificate_x = certificate_x
        self.logger.info("✅ HIA completato, certificati E e X salvati nel keyring")
        return response

    def HPB(self, date_time: Optional[datetime] = None) -> Response:
        """
        Download the bank public keys and import them into the keyring.

        Returns:
            Response: HPB response with one transaction holding the order data
        """
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info("HPB: download chiavi pubbliche della banca")

        request = self.request_handler.build_hpb(date_time)
        response = self._send_h004(request)

        order_data = self._decrypt(self.response_handler.retrieve_order_data(response))
        transaction = Transaction()
        self._set_order_data(transaction, order_data)
        response.add_transaction(transaction)

        order_data_handler = self.request_handler.order_data_handler
        self.keyring.bank_certificate_x = order_data_handler.retrieve_authentication_certificate(order_data)
        self.keyring.bank_certificate_e = order_data_handler.retrieve_encryption_certificate(order_data)
        self.logger.info("✅ HPB completato, certificati X ed E della banca importati")
        return response

    def _create_certificate(self, certificate_type: CertificateType) -> Certificate:
        password = self.keyring.password
        keys = crypto.generate_keys(password, length=self.key_length)

        content = None
        if self.bank.is_certified:
            content = self.x509_generator.generate(
                keys["privatekey"], keys["publickey"], certificate_type, password
            )
            self.logger.info(f"   Certificato X.509 {certificate_type.value} generato ({len(content)} bytes)")

        return Certificate(
            type=certificate_type,
            public_key=keys["publickey"],
            private_key=keys["privatekey"],
            content=content,
        )

    # ========================================================================
    # KEYRING
    # ========================================================================

    USER_CERTIFICATES = ("user_certificate_a", "user_certificate_x", "user_certificate_e")

    def check_keyring(self) -> bool:
        """True if the keyring password opens the user authentication key (X002)."""
        if not self.keyring.has_password():
            return False
        return crypto.check_private_key(self.keyring.user_certificate_x, self.keyring.password)

    def change_keyring_password(self, new_password: str):
        """
        Re-encrypt the user private keys with a new keyring password.

        Every key is re-encrypted before the keyring changes, so a wrong
        current password leaves it untouched. Persist the keyring afterwards
        with KeyringManager.save().

        Raises:
            PasswordMissingException: If the keyring has no password
            EbicsException: If a private key does not open with the current password
        """
        old_password = self.keyring.password
        updated = {}
        for attribute in self.USER_CERTIFICATES:
            certificate = getattr(self.keyring, attribute)
            if certificate is None or not certificate.private_key:
                continue
            private_key = crypto.change_private_key_password(certificate, old_password, new_password)
            updated[attribute] = replace(certificate, private_key=private_key)

        for attribute, certificate in updated.items():
            setattr(self.keyring, attribute, certificate)
        self.keyring.password = new_password
        self.logger.info(f"✅ Password del keyring cambiata ({len(updated)} chiavi ricifrate)")

    # ========================================================================
    # DOWNLOADS
    # ========================================================================

    def HPD(self, date_time: Optional[datetime] = None) -> Response:
        """Bank parameters."""
        return self._download(OrderType.HPD.value, self.request_handler.build_hpd(date_time))

    def HKD(self, date_time: Optional[datetime] = None) -> Response:
        """Customer and subscriber data."""
        return self._download(OrderType.HKD.value, self.request_handler.build_hkd(date_time))

    def HTD(self, date_time: Optional[datetime] = None) -> Response:
        """Subscriber data."""
        return self._download(OrderType.HTD.value, self.request_handler.build_htd(date_time))

    def HAA(self, date_time: Optional[datetime] = None) -> Response:
        """Available order types."""
        return self._download(OrderType.HAA.value, self.request_handler.build_haa(date_time))

    def VMK(self, start: Optional[date] = None, end: Optional[date] = None, date_time: Optional[datetime] = None) -> Response:
        """Short-term statements (MT942)."""
        return self._download(OrderType.VMK.value, self.request_handler.build_vmk(date_time, start, end))

    def STA(self, start: Optional[date] = None, end: Optional[date] = None, date_time: Optional[datetime] = None) -> Response:
        """Account statements (MT940)."""
        return self._download(OrderType.STA.value, self.request_handler.build_sta(date_time, start, end))

    def C53(self, start: Optional[date] = None, end: Optional[date] = None, date_time: Optional[datetime] = None) -> Response:
        """Account statements (camt.053)."""
        return self._download(OrderType.C53.value, self.request_handler.build_c53(date_time, start, end))

    def Z53(self, start: Optional[date] = None, end: Optional[date] = None, date_time: Optional[datetime] = None) -> Response:
        """Account statements (camt.053, Swiss variant)."""
        return self._download(OrderType.Z53.value, self.request_handler.build_z53(date_time, start, end))

    def HVU(self, date_time: Optional[datetime] = None) -> Response:
        """VEU overview: orders waiting for further signatures."""
        return self._download(OrderType.HVU.value, self.request_handler.build_hvu(date_time))

    def HVZ(self, date_time: Optional[datetime] = None) -> Response:
        """VEU overview with additional order information."""
        return self._download(OrderType.HVZ.value, self.request_handler.build_hvz(date_time))

    def FDL(
        self,
        file_info: str,
        country_code: str = "FR",
        start: Optional[date] = None,
        end: Optional[date] = None,
        date_time: Optional[datetime] = None,
    ) -> Response:
        """
        File download with a bank-defined file format.

        Args:
            file_info: FileFormat value (e.g. "camt.xxx.cfonb120.stm")
            country_code: CountryCode attribute of FileFormat
            start: Optional DateRange start
            end: Optional DateRange end
            date_time: Request timestamp (now if None)
        """
        request = self.request_handler.build_fdl(file_info, country_code, date_time, start, end)
        return self._download(OrderType.FDL.value, request)

    def download(
        self,
        order_type: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        date_time: Optional[datetime] = None,
    ) -> Response:
        """Generic download order with StandardOrderParams."""
        request = self.request_handler.build_download(order_type, date_time, start, end)
        return self._download(order_type, request)

    def _download(self, order_type: str, request: Request) -> Response:
        """
        Run a download transaction.

        1. Initialisation: first segment and transaction key
        2. Transfer: segments 2..NumSegments
        3. Concatenate the encrypted segments, then decrypt once

        Returns:
            Response: Initialisation response with the completed transaction
        """
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info(f"{order_type}: download")

        response = self._send_h004(request)
        transaction = self.response_handler.retrieve_transaction(response)
        encrypted = self.response_handler.retrieve_order_data(response)

        segments: List[bytes] = [encrypted.order_data]
        num_segments = transaction.num_segments if transaction.has_num_segments() else 1
        self.logger.info(f"   TransactionID: {transaction.id}, segmenti: {num_segments}")

        for segment_number in range(2, num_segments + 1):
            transfer_request = self.request_handler.build_transfer_download(
                transaction.id, segment_number, segment_number == num_segments
            )
            transfer_response = self._send_h004(transfer_request)
            segments.append(self.response_handler.retrieve_order_data_segment(transfer_response))
            transaction.segment_number = segment_number
            self.logger.debug(f"   Segmento {segment_number}/{num_segments} ricevuto")

        order_data = self._decrypt(
            OrderDataEncrypted(order_data=b"".join(segments), transaction_key=encrypted.transaction_key)
        )
        self._set_order_data(transaction, order_data)
        response.add_transaction(transaction)

        self.logger.info(f"✅ {order_type} completato: {len(order_data)} bytes")
        return response

    def transfer_receipt(self, response: Response, acknowledged: bool = True) -> Response:
        """
        Close the last download transaction of a response.

        Args:
            response: Response returned by a download method
            acknowledged: True for a positive receipt (data processed)

        Returns:
            Response: Receipt response with the receipt transaction
        """
        transaction = response.last_transaction()
        self.logger.info(f"Receipt per transazione {transaction.id} (acknowledged={acknowledged})")

        request = self.request_handler.build_transfer_receipt(transaction.id, acknowledged)
        # The bank confirms the receipt with 011000 (positive) or 011001 (negative)
        accepted = (
            RETURN_CODE_OK,
            DownloadPostprocessDoneException.CODE if acknowledged else DownloadPostprocessSkippedException.CODE,
        )
        receipt_response = self._send_h004(request, accepted)

        receipt = Transaction()
        receipt.id = transaction.id
        receipt.phase = TransactionPhase.RECEIPT
        receipt_response.add_transaction(receipt)

        self.logger.info("✅ Receipt completato")
        return receipt_response

    # ========================================================================
    # UPLOADS
    # ========================================================================

    def upload(
        self,
        order_type: str,
        data: bytes,
        date_time: Optional[datetime] = None,
        order_params: Optional[OrderParams] = None,
    ) -> Response:
        """
        Run an upload transaction.

        1. A006 signature of the order data (UserSignatureData)
        2. Compress and encrypt order data and signature with one transaction key
        3. Initialisation with the transaction key and the signature
        4. One Transfer request per 1 MB segment of encrypted data

        Args:
            order_type: Order type code (e.g. "CCT", "XE2")
            data: Plain order data
            date_time: Request timestamp (now if None)
            order_params: Custom OrderDetails parameters

        Returns:
            Response: Initialisation response with the completed transaction
        """
        return self._upload(
            order_type,
            data,
            lambda encrypted, signature_data, num_segments: self.request_handler.build_upload_init(
                order_type, encrypted, signature_data, num_segments, date_time, order_params
            ),
        )

    def upload_file(self, order_type: str, file_path: str, date_time: Optional[datetime] = None) -> Response:
        """
        Upload the content of a file.

        Raises:
            EbicsException: If the file does not exist
        """
        data = EbicsFileHandler.load_binary_file(str(file_path))
        if data is None:
            raise EbicsException(f"Order data file not found: {file_path}")
        return self.upload(order_type, data, date_time)

    def FUL(
        self,
        file_format: str,
        data: bytes,
        country_code: str = "FR",
        parameters: Optional[Dict[str, str]] = None,
        date_time: Optional[datetime] = None,
    ) -> Response:
        """
        File upload with a bank-defined file format.

        Args:
            file_format: FileFormat value (e.g. "pain.001.001.03.sct")
            data: Plain order data
            country_code: CountryCode attribute of FileFormat
            parameters: Optional Parameter name/value pairs
            date_time: Request timestamp (now if None)
        """
        return self._upload(
            OrderType.FUL.value,
            data,
            lambda encrypted, signature_data, num_segments: self.request_handler.build_ful(
                file_format, encrypted, signature_data, num_segments, country_code, parameters, date_time
            ),
        )

    def SPR(self, date_time: Optional[datetime] = None) -> Response:
        """
        Suspend the subscriber access.

        Only the A006 signature of a one-space dummy is sent (UZHNN): the
        transaction has no Transfer phase.
        """
        return self._upload(
            OrderType.SPR.value,
            SPR_ORDER_DATA,
            lambda encrypted, signature_data, num_segments: self.request_handler.build_spr(
                encrypted, signature_data, date_time
            ),
            signature_only=True,
        )

    def _upload(
        self,
        order_type: str,
        data: bytes,
        build_init: Callable[[OrderDataEncrypted, bytes, int], Request],
        signature_only: bool = False,
    ) -> Response:
        self.logger.info(f"\n{'=' * 60}")
        self.logger.info(f"{order_type}: upload di {len(data)} bytes")

        signature = crypto.sign_user_signature(self.keyring, data)
        user_signature = self.request_handler.order_data_handler.handle_user_signature(signature)

        transaction_key = crypto.generate_transaction_key()
        encrypted = crypto.encrypt_order_data_content(self.keyring, data, transaction_key)
        signature_data = crypto.encrypt_by_key(transaction_key, crypto.compress(user_signature))

        segments = [] if signature_only else self._split_segments(encrypted.order_data)
        response = self._send_h004(build_init(encrypted, signature_data, len(segments)))
        transaction = self.response_handler.retrieve_transaction(response)
        transaction.num_segments = len(segments)
        self.logger.info(f"   {transaction!r}")

        for segment_number, segment in enumerate(segments, start=1):
            transfer_request = self.request_handler.build_upload_transfer(
                transaction.id, segment_number, segment_number == len(segments), segment
            )
            self._send_h004(transfer_request)
            transaction.segment_number = segment_number
            self.logger.debug(f"   Segmento {segment_number}/{len(segments)} inviato")

        if segments:
            transaction.phase = TransactionPhase.TRANSFER
        transaction.order_data = data
        response.add_transaction(transaction)

        self.logger.info(f"✅ {order_type} completato")
        return response

    @staticmethod
    def _split_segments(data: bytes, size: int = EBICS_CONSTANTS.SEGMENT_SIZE) -> List[bytes]:
        return [data[i:i + size] for i in range(0, len(data), size)] or [b""]

    # ========================================================================
    # ORDER DATA
    # ========================================================================

    def _decrypt(self, encrypted: OrderDataEncrypted) -> bytes:
        return crypto.decrypt_order_data_content(self.keyring, encrypted)

    def save_order_data(self, response: Response, file_path: str) -> str:
        """
        Write the order data of the last transaction of a download response.

        Returns:
            str: Path of the written file

        Raises:
            EbicsException: If the last transaction has no order data
        """
        order_data = response.last_transaction().order_data
        EbicsFileHandler.save_binary_file(order_data, str(file_path))
        self.logger.info(f"Order data salvati in {file_path} ({len(order_data)} bytes)")
        return str(file_path)

    @staticmethod
    def _set_order_data(transaction: Transaction, order_data: bytes):
        transaction.order_data = order_data
        try:
            transaction.plain_order_data = order_data.decode("utf-8")
        except UnicodeDecodeError:
            # SWIFT/CFONB downloads are often ISO-8859-1
            transaction.plain_order_data = order_data.decode("iso-8859-1")
