"""
Crypto engine implementation using the pgpy library.

Keys live in an in-memory keyring filled through ``add_key``; nothing is read
from or written to a GnuPG home directory.
"""

from collections.abc import Iterator, Sequence
from contextlib import ExitStack
from typing import BinaryIO

import pgpy
import structlog
from pgpy.constants import CompressionAlgorithm as PgpyCompression
from pgpy.constants import KeyFlags
from pgpy.constants import SymmetricKeyAlgorithm as PgpySymmetric
from pgpy.errors import PGPDecryptionError, PGPError

from crypt_gpg.config import CryptGPGConfig
from crypt_gpg.crypto.protocol import DecryptCandidate
from crypt_gpg.exceptions import BadPassphraseError, EngineError, KeyNotFoundError, NoDataError
from crypt_gpg.models.crypto import PublicKeyAlgorithm
from crypt_gpg.models.key import Key, SubKey, TrustLevel, UserId

logger = structlog.get_logger(__name__)

_ENCRYPT_FLAGS = frozenset({KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage})
_SHORT_ID_LENGTHS = (8, 16)


class PgpyEngine:
    """
    Crypto engine backed by pgpy.

    Example:
        engine = PgpyEngine()
        engine.add_key(armored_private_key)
        session = GPGSession(engine)
    """

    def __init__(self, config: CryptGPGConfig | None = None) -> None:
        """
        Args:
            config: Cipher, compression and armor settings.
        """
        self._config = config or CryptGPGConfig()
        self._keys: dict[str, pgpy.PGPKey] = {}

    def add_key(self, data: str | bytes) -> Key:
        """
        Load a key into the keyring.

        A private key replaces an already loaded public key with the same
        fingerprint; a public key never replaces a private one. Additional keys
        in the same blob are loaded too.

        Args:
            data: ASCII-armored or binary key material.

        Returns:
            The first key in ``data``.

        Raises:
            EngineError: If the key cannot be parsed.
        """
        try:
            loaded, others = pgpy.PGPKey.from_blob(data)
        except Exception as e:
            msg = f"Failed to load key: {e}"
            raise EngineError(msg) from e

        for candidate in (loaded, *others.values()):
            if candidate.is_primary:
                self._store(candidate)
        return self._to_key(self._keys[_normalize(str(loaded.fingerprint))])

    def lookup_key(self, identifier: str) -> Key | None:
        pgp_key = self._find(identifier)
        return self._to_key(pgp_key) if pgp_key is not None else None

    def get_keys(self, pattern: str | None = None) -> list[Key]:
        return [
            self._to_key(pgp_key)
            for pgp_key in self._keys.values()
            if pattern is None or self._matches(pgp_key, pattern)
        ]

    def encrypt(self, stream: BinaryIO, recipients: Sequence[str], *, armor: bool) -> bytes:
        """
        Encrypt a stream for every recipient with a single session key.

        Args:
            stream: Plaintext source.
            recipients: Key fingerprints or other identifiers.
            armor: Produce ASCII-armored output.

        Returns:
            Ciphertext bytes.

        Raises:
            KeyNotFoundError: If a recipient is not in the keyring.
            EngineError: If pgpy fails to encrypt.
        """
        public_keys = []
        for recipient in recipients:
            pgp_key = self._find(recipient)
            if pgp_key is None:
                msg = "Data could not be encrypted because key was not found"
                raise KeyNotFoundError(msg, key_id=recipient)
            public_keys.append(pgp_key if pgp_key.is_public else pgp_key.pubkey)

        cipher = PgpySymmetric(int(self._config.cipher))
        session_key = cipher.gen_key()
        message = pgpy.PGPMessage.new(
            stream.read(),
            format="b",
            compression=PgpyCompression(int(self._config.compression)),
        )
        try:
            for public_key in public_keys:
                message = public_key.encrypt(message, cipher=cipher, sessionkey=session_key)
        except Exception as e:
            msg = f"Encryption failed: {e}"
            raise EngineError(msg) from e
        finally:
            del session_key

        logger.debug("Encrypted message", recipients=len(public_keys), armor=armor)
        if armor:
            return str(message).encode("ascii")
        return bytes(message)

    def decrypt(self, stream: BinaryIO, candidates: Sequence[DecryptCandidate]) -> bytes:
        """
        Decrypt a stream with the first candidate that is a recipient.

        Args:
            stream: Armored or binary ciphertext source.
            candidates: Secret keys with passphrases.

        Returns:
            Decrypted plaintext.

        Raises:
            NoDataError: If the stream is not an encrypted OpenPGP message.
            BadPassphraseError: If matching keys were found but none unlocked.
            KeyNotFoundError: If no candidate is a recipient.
            EngineError: If the unlocked key fails to decrypt.
        """
        message = self._parse_message(stream.read())
        recipients = {_normalize(str(key_id)) for key_id in message.encrypters}

        rejected: list[str] = []
        for candidate in candidates:
            pgp_key = self._find(candidate.identifier)
            if pgp_key is None or pgp_key.is_public:
                continue
            if not recipients & {_normalize(str(k.fingerprint.keyid)) for k in _walk(pgp_key)}:
                continue

            with ExitStack() as stack:
                try:
                    stack.enter_context(pgp_key.unlock(candidate.passphrase.decode()))
                except PGPDecryptionError:
                    logger.warning("Passphrase rejected", key_id=candidate.identifier)
                    rejected.append(candidate.identifier)
                    continue
                try:
                    decrypted = pgp_key.decrypt(message)
                except (PGPError, PGPDecryptionError) as e:
                    msg = f"Decryption failed: {e}"
                    raise EngineError(msg) from e
                logger.debug("Decrypted message", key_id=candidate.identifier)
                return self._normalize_decrypted_content(decrypted.message)

        if rejected:
            msg = "Cannot decrypt data. Incorrect passphrase provided"
            raise BadPassphraseError(msg, key_ids=tuple(rejected))
        msg = "Cannot decrypt data. No suitable private key is available"
        raise KeyNotFoundError(msg, key_id=", ".join(sorted(recipients)))

    def _store(self, pgp_key: pgpy.PGPKey) -> None:
        fingerprint = _normalize(str(pgp_key.fingerprint))
        existing = self._keys.get(fingerprint)
        if existing is None or existing.is_public or not pgp_key.is_public:
            self._keys[fingerprint] = pgp_key
            logger.debug("Loaded key", fingerprint=fingerprint, private=not pgp_key.is_public)

    def _find(self, identifier: str) -> pgpy.PGPKey | None:
        return next((k for k in self._keys.values() if self._matches(k, identifier)), None)

    @staticmethod
    def _matches(pgp_key: pgpy.PGPKey, identifier: str) -> bool:
        needle = identifier.strip()
        if not needle:
            return False

        hex_id = _normalize(needle.removeprefix("0x").removeprefix("0X"))
        for key in _walk(pgp_key):
            fingerprint = _normalize(str(key.fingerprint))
            if fingerprint == hex_id:
                return True
            if len(hex_id) in _SHORT_ID_LENGTHS and fingerprint.endswith(hex_id):
                return True

        lowered = needle.lower()
        for uid in pgp_key.userids:
            if uid.email and uid.email.lower() == lowered:
                return True
            if lowered in (uid.userid or "").lower():
                return True
        return False

    @staticmethod
    def _parse_message(data: bytes) -> pgpy.PGPMessage:
        try:
            message = pgpy.PGPMessage.from_blob(data)
        except Exception as e:
            msg = f"No valid OpenPGP data found: {e}"
            raise NoDataError(msg) from e
        if not message.is_encrypted:
            msg = "OpenPGP data is not an encrypted message"
            raise NoDataError(msg)
        return message

    @classmethod
    def _to_key(cls, pgp_key: pgpy.PGPKey) -> Key:
        key = Key()
        for sub in _walk(pgp_key):
            flags = cls._key_flags(sub)
            key.add_sub_key(
                SubKey(
                    fingerprint=str(sub.fingerprint),
                    key_id=str(sub.fingerprint.keyid),
                    algorithm=PublicKeyAlgorithm.from_id(int(sub.key_algorithm)),
                    length=cls._key_length(sub),
                    creation_date=sub.created,
                    expiration_date=sub.expires_at,
                    can_sign=KeyFlags.Sign in flags,
                    can_encrypt=bool(flags & _ENCRYPT_FLAGS),
                    can_certify=KeyFlags.Certify in flags,
                    has_private=not sub.is_public,
                )
            )
        for uid in pgp_key.userids:
            key.add_user_id(
                UserId(
                    name=uid.name,
                    comment=uid.comment,
                    email=uid.email,
                    is_valid=uid.selfsig is not None,
                    trust=TrustLevel.ULTIMATE if not pgp_key.is_public else TrustLevel.UNKNOWN,
                )
            )
        return key

    @staticmethod
    def _key_flags(pgp_key: pgpy.PGPKey) -> set[KeyFlags]:
        try:
            return set(pgp_key._get_key_flags())
        except (StopIteration, AttributeError):
            return set()

    @staticmethod
    def _key_length(pgp_key: pgpy.PGPKey) -> int:
        size = pgp_key.key_size
        if isinstance(size, int):
            return size
        return int(getattr(size, "key_size", 0))

    @staticmethod
    def _normalize_decrypted_content(content: bytes | str | bytearray) -> bytes:
        if isinstance(content, (bytes, bytearray)):
            return bytes(content)
        return content.encode("utf-8")


def _walk(pgp_key: pgpy.PGPKey) -> Iterator[pgpy.PGPKey]:
    yield pgp_key
    yield from pgp_key.subkeys.values()


def _normalize(hex_id: str) -> str:
    return hex_id.replace(" ", "").upper()
