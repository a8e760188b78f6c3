"""
Encryption session facade.

This is the main entry point for users of the library. A session collects the
keys to encrypt for and the keys (with passphrases) to decrypt with, then runs
whole-buffer or whole-file operations against a crypto engine.
"""

import io
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Self, TypeVar

import structlog

from crypt_gpg.config import CryptGPGConfig
from crypt_gpg.crypto.pgpy_backend import PgpyEngine
from crypt_gpg.crypto.protocol import CryptoEngine, DecryptCandidate
from crypt_gpg.crypto.secure_bytes import SecureBytes
from crypt_gpg.exceptions import (
    CryptGPGError,
    DecryptionKeyMissingError,
    EncryptionKeyMissingError,
    EngineError,
    FileError,
    KeyNotFoundError,
)
from crypt_gpg.models.crypto import FingerprintFormat
from crypt_gpg.models.key import Key

logger = structlog.get_logger(__name__)

T = TypeVar("T")
PathLike = str | os.PathLike[str]


class GPGSession:
    """
    Multi-recipient encryption and decryption over a crypto engine.

    Registered keys are resolved against the engine's keyring each time an
    operation runs and are kept for later operations. A session is meant for
    one caller at a time.

    Example:
        ```python
        engine = PgpyEngine()
        engine.add_key(alice_private_key)

        with GPGSession(engine) as gpg:
            gpg.add_encrypt_key("alice@example.com")
            encrypted = gpg.encrypt("Hello, Alice!")

            gpg.add_decrypt_key("alice@example.com", "passphrase")
            decrypted = gpg.decrypt(encrypted)
        ```

    Args:
        engine: Crypto engine. Defaults to an empty PgpyEngine.
        config: Session configuration. Uses defaults if not provided.
    """

    def __init__(
        self,
        engine: CryptoEngine | None = None,
        config: CryptGPGConfig | None = None,
    ) -> None:
        self._config = config or CryptGPGConfig()
        self._engine: CryptoEngine = engine if engine is not None else PgpyEngine(self._config)
        self._encrypt_keys: list[str] = []
        self._decrypt_keys: list[DecryptCandidate] = []

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @property
    def engine(self) -> CryptoEngine:
        return self._engine

    def close(self) -> None:
        """Forget all registered keys and wipe their passphrases."""
        self.clear_encrypt_keys()
        self.clear_decrypt_keys()
        logger.debug("Session closed")

    def add_encrypt_key(self, identifier: str) -> None:
        """
        Register a key to encrypt for.

        Every registered key becomes a recipient of the same ciphertext.

        Args:
            identifier: Fingerprint, key id, or user id text such as an email.
        """
        self._encrypt_keys.append(identifier)
        logger.debug("Added encryption key", key_id=identifier)

    def add_decrypt_key(self, identifier: str, passphrase: str | bytes | SecureBytes = "") -> None:
        """
        Register a private key available for decryption.

        The session keeps its own copy of the passphrase and wipes only that
        copy on ``clear_decrypt_keys`` or ``close``.

        Args:
            identifier: Fingerprint, key id, or user id text such as an email.
            passphrase: Passphrase of the private key. Empty for unprotected keys.
        """
        secret = SecureBytes.coerce(passphrase)
        self._decrypt_keys.append(DecryptCandidate(identifier=identifier, passphrase=secret))
        logger.debug("Added decryption key", key_id=identifier)

    def clear_encrypt_keys(self) -> None:
        self._encrypt_keys.clear()

    def clear_decrypt_keys(self) -> None:
        """Forget all decryption keys. Passphrases are securely wiped."""
        for candidate in self._decrypt_keys:
            candidate.passphrase.clear()
        self._decrypt_keys.clear()

    def get_keys(self, pattern: str | None = None) -> list[Key]:
        """
        List keys in the engine's keyring.

        Args:
            pattern: Fingerprint, key id or user id text to match. None lists all keys.

        Returns:
            Matching keys.
        """
        return self._call_engine(self._engine.get_keys, pattern)

    def get_fingerprint(
        self, identifier: str, fmt: FingerprintFormat = FingerprintFormat.NONE
    ) -> str | None:
        """
        Get the primary fingerprint of the first key matching an identifier.

        Args:
            identifier: Fingerprint, key id, or user id text.
            fmt: Output format.

        Returns:
            The formatted fingerprint, or None if no key matches.
        """
        keys = self.get_keys(identifier)
        if not keys or (primary := keys[0].primary_key) is None:
            return None
        return fmt.apply(primary.fingerprint)

    def encrypt(self, data: str | bytes, *, armor: bool | None = None) -> bytes:
        """
        Encrypt data for all registered encryption keys.

        Args:
            data: Plaintext. Strings are encoded as UTF-8.
            armor: ASCII-armor the result. Defaults to the configured value.

        Returns:
            Ciphertext.

        Raises:
            EncryptionKeyMissingError: If no encryption key is registered.
            KeyNotFoundError: If a registered key is missing or cannot encrypt.
            EngineError: If the engine fails.
        """
        return self._encrypt_stream(io.BytesIO(_to_bytes(data)), armor)

    def decrypt(self, data: str | bytes) -> bytes:
        """
        Decrypt data with any of the registered decryption keys.

        Args:
            data: Armored or binary ciphertext.

        Returns:
            Plaintext.

        Raises:
            DecryptionKeyMissingError: If no decryption key is registered.
            KeyNotFoundError: If a registered key is missing or none fits the message.
            BadPassphraseError: If no passphrase unlocked a matching key.
            NoDataError: If ``data`` holds no OpenPGP message.
            EngineError: If the engine fails.
        """
        return self._decrypt_stream(io.BytesIO(_to_bytes(data)))

    def encrypt_file(
        self,
        input_path: PathLike,
        output_path: PathLike | None = None,
        *,
        armor: bool | None = None,
    ) -> bytes | None:
        """
        Encrypt a file for all registered encryption keys.

        Args:
            input_path: File to encrypt.
            output_path: Where to write the ciphertext. If None, it is returned.
            armor: ASCII-armor the result. Defaults to the configured value.

        Returns:
            Ciphertext if ``output_path`` is None, otherwise None.

        Raises:
            FileError: If the input cannot be read or the output cannot be written.
            EncryptionKeyMissingError: If no encryption key is registered.
            KeyNotFoundError: If a registered key is missing or cannot encrypt.
            EngineError: If the engine fails.
        """
        with self._open_input(input_path) as stream:
            if output_path is not None:
                self._check_output(output_path)
            result = self._encrypt_stream(stream, armor)
        return self._deliver(result, output_path)

    def decrypt_file(
        self, input_path: PathLike, output_path: PathLike | None = None
    ) -> bytes | None:
        """
        Decrypt a file with any of the registered decryption keys.

        Args:
            input_path: File holding armored or binary ciphertext.
            output_path: Where to write the plaintext. If None, it is returned.

        Returns:
            Plaintext if ``output_path`` is None, otherwise None.

        Raises:
            FileError: If the input cannot be read or the output cannot be written.
            DecryptionKeyMissingError: If no decryption key is registered.
            KeyNotFoundError: If a registered key is missing or none fits the message.
            BadPassphraseError: If no passphrase unlocked a matching key.
            NoDataError: If the file holds no OpenPGP message.
            EngineError: If the engine fails.
        """
        with self._open_input(input_path) as stream:
            if output_path is not None:
                self._check_output(output_path)
            result = self._decrypt_stream(stream)
        return self._deliver(result, output_path)

    def _encrypt_stream(self, stream: BinaryIO, armor: bool | None) -> bytes:
        if not self._encrypt_keys:
            raise EncryptionKeyMissingError()

        recipients = list(dict.fromkeys(self._resolve_encrypt_key(i) for i in self._encrypt_keys))
        use_armor = self._config.armor if armor is None else armor
        logger.debug("Encrypting data", recipients=len(recipients), armor=use_armor)
        return self._call_engine(self._engine.encrypt, stream, recipients, armor=use_armor)

    def _decrypt_stream(self, stream: BinaryIO) -> bytes:
        if not self._decrypt_keys:
            raise DecryptionKeyMissingError()

        candidates = [self._resolve_decrypt_key(c) for c in self._decrypt_keys]
        logger.debug("Decrypting data", candidates=len(candidates))
        return self._call_engine(self._engine.decrypt, stream, candidates)

    def _resolve_encrypt_key(self, identifier: str) -> str:
        key = self._call_engine(self._engine.lookup_key, identifier)
        if key is None or key.primary_key is None:
            msg = f"Key not found: {identifier}"
            raise KeyNotFoundError(msg, key_id=identifier)
        if not key.can_encrypt():
            msg = f"Key cannot encrypt data: {identifier}"
            raise KeyNotFoundError(msg, key_id=identifier)
        return key.primary_key.fingerprint

    def _resolve_decrypt_key(self, candidate: DecryptCandidate) -> DecryptCandidate:
        key = self._call_engine(self._engine.lookup_key, candidate.identifier)
        if key is None or key.primary_key is None:
            msg = f"Key not found: {candidate.identifier}"
            raise KeyNotFoundError(msg, key_id=candidate.identifier)
        if not key.has_private():
            msg = f"No private key available: {candidate.identifier}"
            raise KeyNotFoundError(msg, key_id=candidate.identifier)
        return DecryptCandidate(identifier=key.primary_key.fingerprint, passphrase=candidate.passphrase)

    @staticmethod
    def _deliver(result: bytes, output_path: PathLike | None) -> bytes | None:
        if output_path is None:
            return result

        path = Path(output_path)
        try:
            output = path.open("wb")
        except OSError as e:
            msg = f"Could not open output file: {e}"
            raise FileError(msg, path=os.fspath(path)) from e
        try:
            with output:
                output.write(result)
        except OSError as e:
            # Never leave a truncated result behind.
            path.unlink(missing_ok=True)
            msg = f"Could not write to output file: {e}"
            raise FileError(msg, path=os.fspath(path)) from e

        logger.info("File written", path=os.fspath(path), size=len(result))
        return None

    @staticmethod
    @contextmanager
    def _open_input(path: PathLike) -> Iterator[BinaryIO]:
        try:
            stream = open(path, "rb")
        except OSError as e:
            msg = f"Could not open input file: {e}"
            raise FileError(msg, path=os.fspath(path)) from e
        with stream:
            yield stream

    @staticmethod
    def _check_output(path: PathLike) -> None:
        directory = Path(path).parent
        if not directory.is_dir():
            msg = "Output directory does not exist"
            raise FileError(msg, path=os.fspath(path))
        if not os.access(directory, os.W_OK):
            msg = "Output directory is not writable"
            raise FileError(msg, path=os.fspath(path))

    @staticmethod
    def _call_engine(func: Callable[..., T], *args: object, **kwargs: object) -> T:
        try:
            return func(*args, **kwargs)
        except CryptGPGError:
            raise
        except Exception as e:
            msg = f"Crypto engine failed: {e}"
            raise EngineError(msg) from e


def _to_bytes(data: str | bytes | bytearray) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)
