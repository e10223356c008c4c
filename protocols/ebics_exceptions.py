"""
EBICS Exception Taxonomy

Typed exceptions for the EBICS client:
- EbicsException: base class (configuration, cryptographic and parsing failures)
- PasswordMissingException: keyring password not set
- EbicsResponseException: non-success ReturnCode from the bank, one subclass
  per standardized code (technical 0110xx-0611xx, business 0900xx-0913xx)
- IncorrectResponseException: unknown ReturnCode (fails closed)

Standards Reference:
- EBICS Specification 2.5 Annex 1 - Return codes

Author: Ebics client Python Project
Date: October 2025
"""

from typing import Dict, Optional, Type


class EbicsException(Exception):
    """Base exception for every EBICS client failure."""


class PasswordMissingException(EbicsException):
    """Keyring password is required before private key material is used."""

    def __init__(self, message: str = "Password is not set."):
        super().__init__(message)


# ============================================================================
# RESPONSE EXCEPTIONS
# ============================================================================


class EbicsResponseException(EbicsException):
    """
    Non-success ReturnCode received from the bank.

    Attributes:
        response_code: 6-digit EBICS return code
        meaning: Standard meaning of the code (None for unknown codes)
        request: Request that produced the error (optional)
        response: Response carrying the ReturnCode (optional)
    """

    CODE: Optional[str] = None
    MEANING: Optional[str] = None

    def __init__(
        self,
        response_message: Optional[str] = None,
        request=None,
        response=None,
        response_code: Optional[str] = None,
        meaning: Optional[str] = None,
    ):
        self.response_code = response_code or self.CODE
        self.meaning = meaning or self.MEANING
        self.request = request
        self.response = response
        super().__init__(response_message or self.meaning or f"EBICS error {self.response_code}")

    def get_response_code(self) -> Optional[str]:
        return self.response_code

    def get_meaning(self) -> Optional[str]:
        return self.meaning

    def is_transient(self) -> bool:
        """True when the caller may retry the order with a fresh request."""
        return self.response_code in TRANSIENT_RESPONSE_CODES


class IncorrectResponseException(EbicsResponseException):
    """ReturnCode not present in the standard table."""

    def __init__(self, response_code: str, response_message: Optional[str] = None, request=None, response=None):
        super().__init__(
            response_message or f"Incorrect response with code {response_code}.",
            request=request,
            response=response,
            response_code=response_code,
        )


# ----------------------------------------------------------------------------
# Technical return codes
# ----------------------------------------------------------------------------


class DownloadPostprocessDoneException(EbicsResponseException):
    CODE = "011000"
    MEANING = "The positive acknowledgment of the EBICS response that is sent to the client from the server."


class DownloadPostprocessSkippedException(EbicsResponseException):
    CODE = "011001"
    MEANING = "The negative acknowledgment of the EBICS response that is sent to the client from the server."


class TxSegmentNumberUnderrunException(EbicsResponseException):
    CODE = "011101"
    MEANING = (
        "The server terminates the transaction if the client, in an upload transaction, has specified a very high "
        "(when compared to the number specified in the initialization phase) number of segments that are to be "
        "transmitted to the server."
    )


class NoOnlineChecksException(EbicsResponseException):
    CODE = "011301"
    MEANING = (
        "The bank does not principally support preliminary verification of orders but the EBICS request contains "
        "data for preliminary verification of the order."
    )


class OrderParamsIgnoredException(EbicsResponseException):
    CODE = "031001"
    MEANING = "The supplied order parameters that are not supported by the bank are ignored."


class AuthenticationFailedException(EbicsResponseException):
    CODE = "061001"
    MEANING = "The bank is unable to verify the identification and authentication signature of an EBICS request."


class InvalidRequestException(EbicsResponseException):
    CODE = "061002"
    MEANING = "The received EBICS XML message does not conform to the EBICS specifications."


class InternalErrorException(EbicsResponseException):
    CODE = "061099"
    MEANING = "An internal error occurred when processing an EBICS request."


class TxRecoverySyncException(EbicsResponseException):
    CODE = "061101"
    MEANING = (
        "If the bank supports transaction recovery, the bank verifies whether an upload transaction can be "
        "recovered. The server synchronizes with the client to recover the transaction."
    )


# ----------------------------------------------------------------------------
# Business return codes
# ----------------------------------------------------------------------------


class AuthorisationOrderTypeFailedException(EbicsResponseException):
    CODE = "090003"
    MEANING = (
        "The subscriber is not entitled to submit orders of the selected order type. If the authorization is "
        "missing when the bank verifies whether the subscriber has a bank-technical authorization of signature "
        "for the order, the transaction is cancelled."
    )


class InvalidOrderDataFormatException(EbicsResponseException):
    CODE = "090004"
    MEANING = "The order data does not correspond with the designated format."


class NoDownloadDataAvailableException(EbicsResponseException):
    CODE = "090005"
    MEANING = "If the requested download data is not available, the EBICS transaction is terminated."


class UnsupportedRequestForOrderInstanceException(EbicsResponseException):
    CODE = "090006"
    MEANING = (
        "In the case of some business transactions, it is not possible to retrieve detailed information of the "
        "order data."
    )


class DownloadSignedOnlyException(EbicsResponseException):
    CODE = "091001"
    MEANING = (
        "The bank system only supports bank-technically signed download order data for the order request. If the "
        "subscriber sets the order attributes to DZHNN and requests the download data without the electronic "
        "signature of the bank, the transaction initialization is terminated."
    )


class InvalidUserOrUserStateException(EbicsResponseException):
    CODE = "091002"
    MEANING = "Error that results from an invalid combination of user ID or an invalid subscriber state."


class UserUnknownException(EbicsResponseException):
    CODE = "091003"
    MEANING = (
        "The identification and authentication signature of the technical user is successfully verified but the "
        "non-technical subscriber is not known to the bank."
    )


class InvalidUserStateException(EbicsResponseException):
    CODE = "091004"
    MEANING = (
        "The identification and authentication signature of the technical user is successfully verified and the "
        "non-technical subscriber is known to the bank, but the user is not in a 'Ready' state."
    )


class InvalidOrderTypeException(EbicsResponseException):
    CODE = "091005"
    MEANING = "Upon verification, the bank finds that the order type specified in invalid."


class UnsupportedOrderTypeException(EbicsResponseException):
    CODE = "091006"
    MEANING = "Upon verification, the bank finds that the order type specified in valid but not supported by the bank."


class DistributedSignatureAuthorisationFailedException(EbicsResponseException):
    CODE = "091007"
    MEANING = "Subscriber possesses no authorization of signature for the referenced order in the VEU administration."


class BankPubkeyUpdateRequiredException(EbicsResponseException):
    CODE = "091008"
    MEANING = (
        "The bank verifies the hash value sent by the user. If the hash value does not match the current public "
        "keys, the bank terminates the transaction initialization."
    )


class SegmentSizeExceededException(EbicsResponseException):
    CODE = "091009"
    MEANING = "If the size of the transmitted order data segment exceeds 1 MB, the transaction is terminated."


class InvalidXmlException(EbicsResponseException):
    CODE = "091010"
    MEANING = "The XML schema does not conform to the EBICS specifications."


class InvalidHostIdException(EbicsResponseException):
    CODE = "091011"
    MEANING = "The transmitted host ID is not known to the bank."


class TxUnknownTxidException(EbicsResponseException):
    CODE = "091101"
    MEANING = "The supplied transaction ID is invalid."


class TxAbortException(EbicsResponseException):
    CODE = "091102"
    MEANING = (
        "If the bank supports transaction recovery, the bank verifies whether an upload transaction can be "
        "recovered. If the transaction cannot be recovered, the bank terminates the transaction."
    )


class TxMessageReplayException(EbicsResponseException):
    CODE = "091103"
    MEANING = (
        "To avoid replay, the bank compares the received Nonce with the list of nonce values that were received "
        "previously and stored locally. If the nonce received is greater than the tolerance period specified by "
        "the bank, the response EBICS_TX_MESSAGE_REPLAY is returned."
    )


class TxSegmentNumberExceededException(EbicsResponseException):
    CODE = "091104"
    MEANING = (
        "The serial number of the transmitted order data segment must be less than or equal to the total number "
        "of data segments that are to be transmitted. The transaction is terminated if the number of transmitted "
        "order data segments exceeds the total number of data segments."
    )


class RecoveryNotSupportedException(EbicsResponseException):
    CODE = "091105"
    MEANING = "If the bank does not support transaction recovery, the upload transaction is terminated."


class InvalidSignatureFileFormatException(EbicsResponseException):
    CODE = "091111"
    MEANING = "The submitted electronic signature file does not conform to the defined format."


class InvalidOrderParamsException(EbicsResponseException):
    CODE = "091112"
    MEANING = (
        "In an HVT request, the subscriber specifies the order for which they want to retrieve the VEU "
        "transaction details. The HVT request also specifies an offset position in the original order file that "
        "marks the starting point of the transaction details to be transmitted. The order details after the "
        "specified offset position are returned. If the value specified for offset is higher than the total "
        "number of order details, the error EBICS_INVALID_ORDER_PARAMS is returned."
    )


class InvalidRequestContentException(EbicsResponseException):
    CODE = "091113"
    MEANING = "The EBICS request does not conform to the XML schema definition specified for individual requests."


class OrderidUnknownException(EbicsResponseException):
    CODE = "091114"
    MEANING = "Upon verification, the bank finds that the order is not located in the VEU processing system."


class OrderidAlreadyExistsException(EbicsResponseException):
    CODE = "091115"
    MEANING = "The submitted order number already exists."


class ProcessingErrorException(EbicsResponseException):
    CODE = "091116"
    MEANING = "When processing an EBICS request, other business-related errors occurred."


class MaxOrderDataSizeExceededException(EbicsResponseException):
    CODE = "091117"
    MEANING = "The bank does not support the requested order size."


class MaxSegmentsExceededException(EbicsResponseException):
    CODE = "091118"
    MEANING = "The submitted number of segments for upload is very high."


class MaxTransactionsExceededException(EbicsResponseException):
    CODE = "091119"
    MEANING = "The maximum number of parallel transactions per customer is exceeded."


class PartnerIdMismatchException(EbicsResponseException):
    CODE = "091120"
    MEANING = "The partner ID of the electronic signature file differs from the partner ID of the submitter."


class IncompatibleOrderAttributeException(EbicsResponseException):
    CODE = "091121"
    MEANING = (
        "The specified order attribute is not compatible with the order in the bank system. If the bank has a "
        "file with the attribute DZHNN or other electronic signature files (for example, with the attribute "
        "UZHNN) for the same order, then the use of the order attributes DZHNN is not allowed. Also, if the bank "
        "already has the same order and the order was transmitted with the order attributes DZHNN, then again "
        "the use of the order attributes DZHNN is not allowed."
    )


class KeymgmtUnsupportedVersionSignatureException(EbicsResponseException):
    CODE = "091201"
    MEANING = (
        "When processing an INI request, the order data contains an inadmissible version of the bank-technical "
        "signature process."
    )


class KeymgmtUnsupportedVersionAuthenticationException(EbicsResponseException):
    CODE = "091202"
    MEANING = (
        "When processing an HIA request, the order data contains an inadmissible version of the identification "
        "and authentication signature process."
    )


class KeymgmtUnsupportedVersionEncryptionException(EbicsResponseException):
    CODE = "091203"
    MEANING = (
        "When processing an HIA request, the order data contains an inadmissible version of the encryption "
        "process."
    )


class KeymgmtKeylengthErrorSignatureException(EbicsResponseException):
    CODE = "091204"
    MEANING = (
        "When processing an INI request, the order data contains an bank-technical key of inadmissible length."
    )


class KeymgmtKeylengthErrorAuthenticationException(EbicsResponseException):
    CODE = "091205"
    MEANING = (
        "When processing an HIA request, the order data contains an identification and authentication key of "
        "inadmissible length."
    )


class KeymgmtKeylengthErrorEncryptionException(EbicsResponseException):
    CODE = "091206"
    MEANING = (
        "When processing an HIA request, the order data contains an encryption key of inadmissible length."
    )


class KeymgmtNoX509SupportException(EbicsResponseException):
    CODE = "091207"
    MEANING = "A public key of type X509 is sent to the bank but the bank supports only public key value type."


class X509CertificateExpiredException(EbicsResponseException):
    CODE = "091208"
    MEANING = "The certificate is not valid because it has expired."


class X509CertificateNotValidYetException(EbicsResponseException):
    CODE = "091209"
    MEANING = "The certificate is not valid because it is not yet in effect."


class X509WrongKeyUsageException(EbicsResponseException):
    CODE = "091210"
    MEANING = (
        "When verifying the certificate key usage, the bank detects that the certificate is not issued for "
        "current use."
    )


class X509WrongAlgorithmException(EbicsResponseException):
    CODE = "091211"
    MEANING = (
        "When verifying the certificate algorithm, the bank detects that the certificate is not issued for "
        "current use."
    )


class X509InvalidThumbprintException(EbicsResponseException):
    CODE = "091212"
    MEANING = "The thumb print does not correspond to the certificate."


class X509CtlInvalidException(EbicsResponseException):
    CODE = "091213"
    MEANING = (
        "When verifying the certificate, the bank detects that the certificate trust list (CTL) is not valid."
    )


class X509UnknownCertificateAuthorityException(EbicsResponseException):
    CODE = "091214"
    MEANING = "The chain cannot be verified because of an unknown certificate authority (CA)."


class X509InvalidPolicyException(EbicsResponseException):
    CODE = "091215"
    MEANING = "The certificate has invalid policy when determining certificate verification."


class X509InvalidBasicConstraintsException(EbicsResponseException):
    CODE = "091216"
    MEANING = "The basic constraints are not valid when determining certificate verification."


class OnlyX509SupportException(EbicsResponseException):
    CODE = "091217"
    MEANING = "The bank supports evaluation of X.509 data only."


class KeymgmtDuplicateKeyException(EbicsResponseException):
    CODE = "091218"
    MEANING = "The key sent for authentication or encryption is the same as the signature key."


class CertificatesValidationErrorException(EbicsResponseException):
    CODE = "091219"
    MEANING = (
        "The server is unable to match the certificate with the previously declared information automatically."
    )


class SignatureVerificationFailedException(EbicsResponseException):
    CODE = "091301"
    MEANING = "Verification of the electronic signature has failed."


class AccountAuthorisationFailedException(EbicsResponseException):
    CODE = "091302"
    MEANING = "Preliminary verification of the account authorization has failed."


class AmountCheckFailedException(EbicsResponseException):
    CODE = "091303"
    MEANING = "Preliminary verification of the account amount limit has failed."


class SignerUnknownException(EbicsResponseException):
    CODE = "091304"
    MEANING = "The signatory of the order is not a valid subscriber."


class InvalidSignerStateException(EbicsResponseException):
    CODE = "091305"
    MEANING = "The state of the signatory is not admissible."


class DuplicateSignatureException(EbicsResponseException):
    CODE = "091306"
    MEANING = "The signatory has already signed the order."


# ============================================================================
# CODE TABLE AND FACTORY
# ============================================================================

RESPONSE_EXCEPTIONS: Dict[str, Type[EbicsResponseException]] = {
    cls.CODE: cls
    for cls in EbicsResponseException.__subclasses__()
    if cls.CODE is not None
}

# Codes after which a new request (fresh nonce / new transaction) may succeed
TRANSIENT_RESPONSE_CODES = frozenset({
    InternalErrorException.CODE,
    TxRecoverySyncException.CODE,
    TxMessageReplayException.CODE,
    MaxTransactionsExceededException.CODE,
})


class EbicsExceptionFactory:
    """Builds the typed exception matching a ReturnCode."""

    @staticmethod
    def create(
        response_code: str,
        response_message: Optional[str] = None,
        request=None,
        response=None,
    ) -> EbicsResponseException:
        """
        Crea l'eccezione corrispondente al codice.

        Args:
            response_code: ReturnCode a 6 cifre
            response_message: ReportText restituito dalla banca (opzionale)
            request: Request inviata (opzionale)
            response: Response ricevuta (opzionale)

        Returns:
            EbicsResponseException: sottoclasse specifica, oppure
            IncorrectResponseException per codici sconosciuti
        """
        exception_class = RESPONSE_EXCEPTIONS.get(response_code)
        if exception_class is None:
            return IncorrectResponseException(response_code, response_message, request, response)
        return exception_class(response_message or None, request=request, response=response)
