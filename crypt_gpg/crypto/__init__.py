"""
Crypto engines for crypt_gpg.

This module provides:
- The CryptoEngine protocol a session talks to
- A pure-Python engine over pgpy with an in-memory keyring
- An engine driving the gpg binary through python-gnupg
- Secure memory handling for passphrases
"""

from crypt_gpg.crypto.gnupg_backend import GnuPGEngine
from crypt_gpg.crypto.pgpy_backend import PgpyEngine
from crypt_gpg.crypto.protocol import CryptoEngine, DecryptCandidate
from crypt_gpg.crypto.secure_bytes import SecureBytes

__all__ = [
    "SecureBytes",
    "CryptoEngine",
    "DecryptCandidate",
    "PgpyEngine",
    "GnuPGEngine",
]
