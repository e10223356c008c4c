"""
EBICS Cryptographic Operations

Provides the cryptographic primitives of the EBICS client:
- SHA-256 hashing and public key digests (BankPubKeyDigests, HPB checks)
- RSA key generation (PKCS#8 private keys protected by the keyring password)
- X002 authentication signature value (RSA PKCS#1 v1.5 over DigestInfo)
- A006 bank-technical signature (RSASSA-PSS)
- E002 order data encryption (zlib + AES-128-CBC + RSA PKCS#1 v1.5 key transport)
- Nonce and transaction key generation

Standards Reference:
- EBICS Specification 2.5 Chapter 11 (Security), Annex 2 (X002, E002, A006)
- RFC 8017 - PKCS #1 v2.2 (RSASSA-PKCS1-v1_5, RSASSA-PSS, RSAES-PKCS1-v1_5)
- FIPS 197 - AES

Author: Ebics client Python Project
Date: October 2025
"""

import hashlib
import os
import zlib
from typing import Dict, Optional

from cryptography.hazmat.primitives import hashes, padding as sym_padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils as asym_utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from config.ebics_config import EBICS_CONSTANTS
from protocols.ebics_exceptions import EbicsException
from protocols.ebics_models import Certificate, Keyring, OrderDataEncrypted

MISSING_AUTHENTICATION_CERTIFICATE = (
    "On this stage must persist certificate for authorization. Run INI and HIA requests for retrieve them."
)

AES_BLOCK_SIZE = 16
TRANSACTION_KEY_SIZE = 16
NONCE_SIZE = 16


# ============================================================================
# HASHING AND DIGESTS
# ============================================================================


def calculate_hash(text: bytes, algorithm: str = "sha256") -> bytes:
    """
    Calculate a binary digest.

    Args:
        text: Data to hash (str is encoded as UTF-8)
        algorithm: hashlib algorithm name

    Returns:
        bytes: Raw digest (not hex)
    """
    if isinstance(text, str):
        text = text.encode("utf-8")
    return hashlib.new(algorithm, text).digest()


def calculate_key(exponent: str, modulus: str) -> str:
    """
    Build the public key representation hashed by EBICS.

    Both hex values lose their leading zeros and are joined by one space.
    """
    return f"{exponent.lower().lstrip('0')} {modulus.lower().lstrip('0')}"


def calculate_digest(certificate: Certificate, algorithm: str = "sha256") -> bytes:
    """
    Calculate the public key digest of a certificate.

    EBICS Annex 2: hash over "<exponent hex> <modulus hex>", lower-case hex
    without leading zeros. Banks recompute this value independently.

    Args:
        certificate: Certificate holding an RSA public key
        algorithm: hashlib algorithm name (default sha256)

    Returns:
        bytes: Raw digest
    """
    numbers = certificate.public_key_object().public_numbers()
    key = calculate_key(format(numbers.e, "x"), format(numbers.n, "x"))
    return calculate_hash(key.encode("ascii"), algorithm)


# ============================================================================
# KEY MATERIAL
# ============================================================================


def generate_keys(
    password: Optional[str],
    algorithm: str = "sha256",
    length: int = EBICS_CONSTANTS.DEFAULT_KEY_LENGTH,
) -> Dict[str, bytes]:
    """
    Generate an RSA keypair.

    Args:
        password: Keyring password used to encrypt the private key
        algorithm: Hash algorithm the keys are meant for (only sha256)
        length: Modulus length in bits

    Returns:
        dict: {"publickey": PEM bytes, "privatekey": PEM bytes}
    """
    if algorithm != "sha256":
        raise EbicsException(f"Algorithm {algorithm} not supported")

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=length)

    return {
        "publickey": private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ),
        "privatekey": private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=_private_key_encryption(password),
        ),
    }


def _private_key_encryption(password: Optional[str]) -> serialization.KeySerializationEncryption:
    if password:
        return serialization.BestAvailableEncryption(password.encode("utf-8"))
    return serialization.NoEncryption()


def check_private_key(certificate: Optional[Certificate], password: Optional[str]) -> bool:
    """True if the private key of the certificate opens with the password."""
    if certificate is None or not certificate.private_key:
        return False
    try:
        certificate.private_key_object(password)
    except EbicsException:
        return False
    return True


def change_private_key_password(certificate: Certificate, old_password: Optional[str], new_password: str) -> bytes:
    """
    Re-encrypt the PKCS#8 private key of a certificate.

    Args:
        certificate: Certificate holding the private key
        old_password: Current keyring password
        new_password: New keyring password (empty for an unencrypted key)

    Returns:
        bytes: Private key PEM encrypted with the new password

    Raises:
        EbicsException: If the old password does not open the key
    """
    private_key = certificate.private_key_object(old_password)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=_private_key_encryption(new_password),
    )


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")


def get_public_key_details(public_key: bytes) -> Dict[str, bytes]:
    """
    Split a PEM public key into exponent and modulus.

    Returns:
        dict: {"e": bytes, "m": bytes}, big-endian without leading zero bytes
    """
    try:
        numbers = serialization.load_pem_public_key(public_key).public_numbers()
    except (ValueError, TypeError) as e:
        raise EbicsException(f"Failed to load public key: {e}") from e

    return {"e": _int_to_bytes(numbers.e), "m": _int_to_bytes(numbers.n)}


def public_key_from_details(modulus: bytes, exponent: bytes) -> bytes:
    """Build a PEM public key from big-endian modulus and exponent."""
    try:
        public_key = rsa.RSAPublicNumbers(
            e=int.from_bytes(exponent, "big"),
            n=int.from_bytes(modulus, "big"),
        ).public_key()
    except ValueError as e:
        raise EbicsException(f"Failed to build public key: {e}") from e

    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


# ============================================================================
# SIGNATURES (X002 / A006)
# ============================================================================


def crypt_signature_value(keyring: Keyring, hash_value: bytes) -> bytes:
    """
    Calculate the X002 SignatureValue of an AuthSignature.

    RSASSA-PKCS1-v1_5 with the user X private key over an already computed
    SHA-256 hash: the library prepends the SHA-256 DigestInfo and pads the
    block (type 1).

    Args:
        keyring: Keyring with user certificate X and its password
        hash_value: Raw SHA-256 hash of the canonicalized SignedInfo (32 bytes)

    Returns:
        bytes: Signature value (modulus length)

    Raises:
        EbicsException: If certificate X or its private key is missing, or
            the key cannot be used
    """
    certificate = keyring.user_certificate_x
    if certificate is None or not certificate.private_key:
        raise EbicsException(MISSING_AUTHENTICATION_CERTIFICATE)

    private_key = certificate.private_key_object(keyring.password)
    try:
        signature = private_key.sign(hash_value, padding.PKCS1v15(), asym_utils.Prehashed(hashes.SHA256()))
    except (ValueError, TypeError) as e:
        raise EbicsException("Incorrect authorization.") from e

    if not signature:
        raise EbicsException("Incorrect authorization.")
    return signature


def sign_user_signature(keyring: Keyring, data: bytes) -> bytes:
    """
    Calculate the A006 bank-technical signature of order data.

    Args:
        keyring: Keyring with user certificate A
        data: Order data to sign (hashed with SHA-256 by the signer)

    Returns:
        bytes: RSASSA-PSS signature
    """
    certificate = keyring.user_certificate_a
    if certificate is None or not certificate.private_key:
        raise EbicsException("Certificate A is not set.")

    private_key = certificate.private_key_object(keyring.password)
    try:
        return private_key.sign(
            data,
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=32),
            hashes.SHA256(),
        )
    except ValueError as e:
        raise EbicsException(f"Failed to sign order data: {e}") from e


# ============================================================================
# RANDOM VALUES
# ============================================================================


def generate_nonce() -> str:
    """16 random bytes as 32 uppercase hex characters."""
    return os.urandom(NONCE_SIZE).hex().upper()


def generate_transaction_key() -> bytes:
    return os.urandom(TRANSACTION_KEY_SIZE)


# ============================================================================
# SYMMETRIC ENCRYPTION (AES-128-CBC, zero IV)
# ============================================================================


def encrypt_by_key(key: bytes, data: bytes) -> bytes:
    """
    Encrypt with AES-128-CBC, zero IV and PKCS#7 padding.

    Args:
        key: 16 bytes transaction key
        data: Plaintext (usually compressed order data)

    Returns:
        bytes: Ciphertext
    """
    padder = sym_padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
    padded = padder.update(data) + padder.finalize()

    try:
        encryptor = Cipher(algorithms.AES(key), modes.CBC(b"\x00" * AES_BLOCK_SIZE)).encryptor()
    except ValueError as e:
        raise EbicsException(f"Failed to encrypt order data: {e}") from e
    return encryptor.update(padded) + encryptor.finalize()


def decrypt_by_key(key: bytes, encrypted: bytes) -> bytes:
    """
    Decrypt with AES-128-CBC and zero IV.

    Padding is left in place: the zlib stream end marks the payload end.
    """
    if len(encrypted) % AES_BLOCK_SIZE:
        raise EbicsException("Failed to decrypt order data: length is not a multiple of the block size")

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(b"\x00" * AES_BLOCK_SIZE)).decryptor()
    except ValueError as e:
        raise EbicsException(f"Failed to decrypt order data: {e}") from e
    return decryptor.update(encrypted) + decryptor.finalize()


# ============================================================================
# ORDER DATA (E002)
# ============================================================================


def compress(data: bytes) -> bytes:
    return zlib.compress(data)


def decompress(data: bytes) -> bytes:
    """Inflate a zlib stream, ignoring bytes after the stream end."""
    decompressor = zlib.decompressobj()
    try:
        result = decompressor.decompress(data)
    except zlib.error as e:
        raise EbicsException(f"Failed to decompress order data: {e}") from e
    if not decompressor.eof:
        raise EbicsException("Failed to decompress order data: incomplete stream")
    return result


def encrypt_transaction_key(certificate: Certificate, transaction_key: bytes) -> bytes:
    try:
        encrypted = certificate.public_key_object().encrypt(transaction_key, padding.PKCS1v15())
    except ValueError as e:
        raise EbicsException("Incorrect encryption.") from e
    if not encrypted:
        raise EbicsException("Incorrect encryption.")
    return encrypted


def decrypt_transaction_key(private_key: RSAPrivateKey, encrypted_key: bytes) -> bytes:
    try:
        return private_key.decrypt(encrypted_key, padding.PKCS1v15())
    except ValueError as e:
        raise EbicsException(f"Failed to decrypt transaction key: {e}") from e


def encrypt_order_data_content(
    keyring: Keyring,
    data: bytes,
    transaction_key: Optional[bytes] = None,
) -> OrderDataEncrypted:
    """
    Encrypt outgoing order data for the bank.

    Compress, AES-encrypt with an ephemeral transaction key, then
    RSA-encrypt the transaction key with the bank E002 public key.

    Args:
        keyring: Keyring with bank certificate E
        data: Plain order data
        transaction_key: Key to reuse (a fresh one is generated if None)

    Returns:
        OrderDataEncrypted: ciphertext and encrypted transaction key
    """
    certificate = keyring.bank_certificate_e
    if certificate is None:
        raise EbicsException("Certificate E is empty.")

    transaction_key = transaction_key or generate_transaction_key()
    return OrderDataEncrypted(
        order_data=encrypt_by_key(transaction_key, compress(data)),
        transaction_key=encrypt_transaction_key(certificate, transaction_key),
    )


def decrypt_order_data_content(keyring: Keyring, encrypted: OrderDataEncrypted) -> bytes:
    """
    Decrypt incoming order data.

    RSA-decrypt the transaction key with the user E002 private key,
    AES-decrypt the order data, then inflate it.

    Args:
        keyring: Keyring with user certificate E
        encrypted: Order data and transaction key from the response

    Returns:
        bytes: Plain order data

    Raises:
        EbicsException: If certificate E is not set or decryption fails
    """
    certificate = keyring.user_certificate_e
    if certificate is None or not certificate.private_key:
        raise EbicsException("Certificate E is not set.")

    private_key = certificate.private_key_object(keyring.password)
    transaction_key = decrypt_transaction_key(private_key, encrypted.transaction_key)
    return decompress(decrypt_by_key(transaction_key, encrypted.order_data))
