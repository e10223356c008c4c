"""
EBICS Order Data Handler

Builds the key management order data sent with INI and HIA, the
UserSignatureData attached to uploads, and parses the bank keys returned by
HPB.

Order data formats:
- INI: SignaturePubKeyOrderData (S001) with the A006 public key
- HIA: HIARequestOrderData (H004) with the X002 and E002 public keys
- Uploads: UserSignatureData (S001) with the A006 signature
- HPB: HPBResponseOrderData (H004) with the bank X002 and E002 public keys

Public keys travel as RSAKeyValue (base64 modulus/exponent without leading
zero bytes). Certified banks also receive an X509Data element.

Standards Reference:
- EBICS Specification 2.5 Section 4.4 (Initialisation), Annex 3 (Data structures)
- ebics_orders_H004.xsd, ebics_signature.xsd (S001)

Author: Ebics client Python Project
Date: October 2025
"""

from datetime import datetime
from typing import Optional

from lxml import etree

from protocols.core import crypto
from protocols.core.c14n import xpath_namespaces
from protocols.core.types import NS_DS, NS_S001, CertificateType
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Bank, Certificate, Keyring, User, xml_parser
from protocols.messages.elements import b64decode, b64encode, create_root, sub_element
from utils.certificate_maker import x509_issuer_name, x509_serial_number

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class OrderDataHandler:
    """Order data builder and HPB parser for one bank/user pair."""

    def __init__(self, bank: Bank, user: User):
        self.bank = bank
        self.user = user
        self.ns = bank.version.namespace

    # ========================================================================
    # INI / HIA
    # ========================================================================

    def handle_ini(self, certificate_a: Certificate, date_time: datetime) -> bytes:
        """
        Build SignaturePubKeyOrderData for INI.

        Args:
            certificate_a: User signature certificate (A006)
            date_time: Key creation timestamp

        Returns:
            bytes: Serialized order data XML
        """
        root = create_root(NS_S001, "SignaturePubKeyOrderData", {None: NS_S001, "ds": NS_DS})

        info = sub_element(root, NS_S001, "SignaturePubKeyInfo")
        self._handle_pub_key_info(info, NS_S001, certificate_a, date_time)
        sub_element(info, NS_S001, "SignatureVersion", Keyring.USER_SIGNATURE_A_VERSION)

        sub_element(root, NS_S001, "PartnerID", self.user.partner_id)
        sub_element(root, NS_S001, "UserID", self.user.user_id)
        return self._serialize(root)

    def handle_hia(self, certificate_e: Certificate, certificate_x: Certificate, date_time: datetime) -> bytes:
        """
        Build HIARequestOrderData for HIA.

        Args:
            certificate_e: User encryption certificate (E002)
            certificate_x: User authentication certificate (X002)
            date_time: Key creation timestamp

        Returns:
            bytes: Serialized order data XML
        """
        ns = self.ns
        root = create_root(ns, "HIARequestOrderData", {None: ns, "ds": NS_DS})

        authentication = sub_element(root, ns, "AuthenticationPubKeyInfo")
        self._handle_pub_key_info(authentication, ns, certificate_x, date_time)
        sub_element(authentication, ns, "AuthenticationVersion", Keyring.USER_SIGNATURE_X_VERSION)

        encryption = sub_element(root, ns, "EncryptionPubKeyInfo")
        self._handle_pub_key_info(encryption, ns, certificate_e, date_time)
        sub_element(encryption, ns, "EncryptionVersion", Keyring.USER_SIGNATURE_E_VERSION)

        sub_element(root, ns, "PartnerID", self.user.partner_id)
        sub_element(root, ns, "UserID", self.user.user_id)
        return self._serialize(root)

    def _handle_pub_key_info(self, parent: etree._Element, ns: str, certificate: Certificate, date_time: datetime):
        if self.bank.is_certified:
            self._handle_x509_data(parent, certificate)

        details = crypto.get_public_key_details(certificate.public_key)
        pub_key_value = sub_element(parent, ns, "PubKeyValue")
        rsa_key_value = sub_element(pub_key_value, NS_DS, "RSAKeyValue")
        sub_element(rsa_key_value, NS_DS, "Modulus", b64encode(details["m"]))
        sub_element(rsa_key_value, NS_DS, "Exponent", b64encode(details["e"]))
        sub_element(pub_key_value, ns, "TimeStamp", date_time.strftime(TIMESTAMP_FORMAT))

    @staticmethod
    def _handle_x509_data(parent: etree._Element, certificate: Certificate):
        x509_certificate = certificate.x509()
        if x509_certificate is None:
            raise EbicsException(
                f"Certificate {certificate.type.value} has no X.509 content, required by certified banks."
            )

        x509_data = sub_element(parent, NS_DS, "X509Data")
        issuer_serial = sub_element(x509_data, NS_DS, "X509IssuerSerial")
        sub_element(issuer_serial, NS_DS, "X509IssuerName", x509_issuer_name(x509_certificate))
        sub_element(issuer_serial, NS_DS, "X509SerialNumber", x509_serial_number(x509_certificate))
        sub_element(x509_data, NS_DS, "X509Certificate", b64encode(certificate.content))

    # ========================================================================
    # USER SIGNATURE (uploads)
    # ========================================================================

    def handle_user_signature(self, signature_value: bytes) -> bytes:
        """Build UserSignatureData carrying one A006 signature."""
        root = create_root(NS_S001, "UserSignatureData", {None: NS_S001})
        order_signature = sub_element(root, NS_S001, "OrderSignatureData")
        sub_element(order_signature, NS_S001, "SignatureVersion", Keyring.USER_SIGNATURE_A_VERSION)
        sub_element(order_signature, NS_S001, "SignatureValue", b64encode(signature_value))
        sub_element(order_signature, NS_S001, "PartnerID", self.user.partner_id)
        sub_element(order_signature, NS_S001, "UserID", self.user.user_id)
        return self._serialize(root)

    # ========================================================================
    # HPB
    # ========================================================================

    def retrieve_authentication_certificate(self, order_data: bytes) -> Certificate:
        return self._retrieve_certificate(order_data, "AuthenticationPubKeyInfo", CertificateType.X)

    def retrieve_encryption_certificate(self, order_data: bytes) -> Certificate:
        return self._retrieve_certificate(order_data, "EncryptionPubKeyInfo", CertificateType.E)

    def _retrieve_certificate(self, order_data: bytes, info_tag: str, certificate_type: CertificateType) -> Certificate:
        try:
            document = etree.fromstring(order_data, parser=xml_parser())
        except etree.XMLSyntaxError as e:
            raise EbicsException(f"Failed to parse HPB order data: {e}") from e

        prefix = self.bank.version.value
        namespaces = xpath_namespaces(self.bank.version)
        base = f"//{prefix}:{info_tag}"

        modulus = self._single_text(document, f"{base}/{prefix}:PubKeyValue/ds:RSAKeyValue/ds:Modulus", namespaces)
        exponent = self._single_text(document, f"{base}/{prefix}:PubKeyValue/ds:RSAKeyValue/ds:Exponent", namespaces)
        if modulus is None or exponent is None:
            raise EbicsException(f"HPB order data has no {info_tag} key value.")

        content = self._single_text(document, f"{base}/ds:X509Data/ds:X509Certificate", namespaces)
        return Certificate(
            type=certificate_type,
            public_key=crypto.public_key_from_details(b64decode(modulus), b64decode(exponent)),
            content=b64decode(content) if content else None,
        )

    @staticmethod
    def _single_text(document: etree._Element, xpath: str, namespaces) -> Optional[str]:
        nodes = document.xpath(xpath, namespaces=namespaces)
        return nodes[0].text if nodes else None

    @staticmethod
    def _serialize(root: etree._Element) -> bytes:
        return etree.tostring(root, xml_declaration=True, encoding="UTF-8")
