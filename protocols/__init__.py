"""
EBICS Protocol Implementation

Implements request construction, signatures, order data cryptography and
response interpretation for the EBICS bank-client protocol.

Module Structure:
- core/: Types, namespaces, canonicalization and cryptographic operations
- messages/: Request builders, AuthSignature and response handler
- ebics_models.py: Keyring, certificates, bank/user, request/response, transactions
- ebics_exceptions.py: Exception taxonomy and ReturnCode table

Standards Reference:
- EBICS Specification 2.5 (H004)
- EBICS ebics_hev.xsd (H000)

Author: Ebics client Python Project
Date: October 2025
"""

__version__ = "1.0.0"
