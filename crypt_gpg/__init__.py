"""
crypt_gpg: key management and bulk OpenPGP encryption.

A session collects the keys to encrypt for and the private keys to decrypt
with, then encrypts or decrypts whole buffers or files through a pluggable
crypto engine.

Example:
    ```python
    from crypt_gpg import GPGSession, PgpyEngine

    engine = PgpyEngine()
    engine.add_key(open("first-keypair.asc").read())

    with GPGSession(engine) as gpg:
        gpg.add_encrypt_key("first-keypair@example.com")
        encrypted = gpg.encrypt("Hello, Alice! Goodbye, Bob!")

        gpg.add_decrypt_key("first-keypair@example.com", "test1")
        print(gpg.decrypt(encrypted).decode())

        # Files work the same way
        gpg.encrypt_file("report.pdf", "report.pdf.asc")
    ```
"""

from crypt_gpg.config import CryptGPGConfig
from crypt_gpg.crypto.gnupg_backend import GnuPGEngine
from crypt_gpg.crypto.pgpy_backend import PgpyEngine
from crypt_gpg.crypto.protocol import CryptoEngine, DecryptCandidate
from crypt_gpg.exceptions import (
    BadPassphraseError,
    CryptGPGError,
    DecryptionKeyMissingError,
    EncryptionKeyMissingError,
    EngineError,
    ErrorKind,
    FileError,
    KeyNotFoundError,
    NoDataError,
)
from crypt_gpg.models.crypto import FingerprintFormat
from crypt_gpg.models.key import Key, SubKey, TrustLevel, UserId
from crypt_gpg.session import GPGSession

__version__ = "0.1.0"

__all__ = [
    # Main session
    "GPGSession",
    "CryptGPGConfig",
    # Engines
    "CryptoEngine",
    "DecryptCandidate",
    "PgpyEngine",
    "GnuPGEngine",
    # Models
    "Key",
    "SubKey",
    "UserId",
    "TrustLevel",
    "FingerprintFormat",
    # Exceptions
    "ErrorKind",
    "CryptGPGError",
    "KeyNotFoundError",
    "EncryptionKeyMissingError",
    "DecryptionKeyMissingError",
    "FileError",
    "EngineError",
    "BadPassphraseError",
    "NoDataError",
]
