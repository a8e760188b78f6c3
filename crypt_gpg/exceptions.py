"""
crypt_gpg exception hierarchy.

All exceptions inherit from CryptGPGError and carry an ErrorKind tag, so callers
can either catch by class or branch exhaustively on ``error.kind``.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """The three failure kinds surfaced by a session."""

    KEY_NOT_FOUND = "key_not_found"
    FILE = "file"
    ENGINE = "engine"


class CryptGPGError(Exception):
    """Base exception for all crypt_gpg errors."""

    kind: ErrorKind = ErrorKind.ENGINE

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class KeyNotFoundError(CryptGPGError):
    """A key identifier does not resolve to a usable key in the keyring."""

    kind = ErrorKind.KEY_NOT_FOUND

    def __init__(self, message: str, *, key_id: str | None = None) -> None:
        super().__init__(message, key_id=key_id)
        self.key_id = key_id


class EncryptionKeyMissingError(KeyNotFoundError):
    """Encryption was requested with no encryption key registered."""

    def __init__(self, message: str = "No encryption key specified") -> None:
        super().__init__(message)


class DecryptionKeyMissingError(KeyNotFoundError):
    """Decryption was requested with no decryption key registered."""

    def __init__(self, message: str = "No decryption key specified") -> None:
        super().__init__(message)


class FileError(CryptGPGError):
    """An input file cannot be read or an output file cannot be written."""

    kind = ErrorKind.FILE

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message, path=path)
        self.path = path


class EngineError(CryptGPGError):
    """The crypto engine reported a failure."""

    kind = ErrorKind.ENGINE


class BadPassphraseError(EngineError):
    """No registered passphrase unlocked a matching private key."""

    def __init__(self, message: str, *, key_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message, key_ids=key_ids)
        self.key_ids = key_ids


class NoDataError(EngineError):
    """Input does not contain valid OpenPGP data."""
