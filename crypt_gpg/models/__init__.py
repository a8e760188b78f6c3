"""
Domain models for crypt_gpg.
"""

from crypt_gpg.models.crypto import (
    CompressionAlgorithm,
    FingerprintFormat,
    PublicKeyAlgorithm,
    SymmetricAlgorithm,
)
from crypt_gpg.models.key import Key, SubKey, TrustLevel, UserId

__all__ = [
    # Keys
    "Key",
    "SubKey",
    "UserId",
    "TrustLevel",
    # Crypto
    "SymmetricAlgorithm",
    "CompressionAlgorithm",
    "PublicKeyAlgorithm",
    "FingerprintFormat",
]
