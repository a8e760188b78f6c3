"""
Crypto engine implementation driving the gpg binary through python-gnupg.

The keyring is whatever the configured GnuPG home directory holds.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, BinaryIO

import gnupg
import structlog

from crypt_gpg.config import CryptGPGConfig
from crypt_gpg.crypto.protocol import DecryptCandidate
from crypt_gpg.exceptions import BadPassphraseError, EngineError, KeyNotFoundError, NoDataError
from crypt_gpg.models.crypto import CompressionAlgorithm, PublicKeyAlgorithm, SymmetricAlgorithm
from crypt_gpg.models.key import Key, SubKey, TrustLevel, UserId

logger = structlog.get_logger(__name__)

_CIPHER_NAMES = {
    SymmetricAlgorithm.IDEA: "IDEA",
    SymmetricAlgorithm.TRIPLE_DES: "3DES",
    SymmetricAlgorithm.CAST5: "CAST5",
    SymmetricAlgorithm.BLOWFISH: "BLOWFISH",
    SymmetricAlgorithm.AES_128: "AES",
    SymmetricAlgorithm.AES_192: "AES192",
    SymmetricAlgorithm.AES_256: "AES256",
    SymmetricAlgorithm.TWOFISH: "TWOFISH",
    SymmetricAlgorithm.CAMELLIA_128: "CAMELLIA128",
    SymmetricAlgorithm.CAMELLIA_192: "CAMELLIA192",
    SymmetricAlgorithm.CAMELLIA_256: "CAMELLIA256",
}
_COMPRESSION_NAMES = {
    CompressionAlgorithm.UNCOMPRESSED: "Uncompressed",
    CompressionAlgorithm.ZIP: "ZIP",
    CompressionAlgorithm.ZLIB: "ZLIB",
    CompressionAlgorithm.BZIP2: "BZIP2",
}
# Validity codes from the colon listing that make a user id unusable.
_INVALID_CODES = frozenset("idre")


class GnuPGEngine:
    """
    Crypto engine backed by GnuPG.

    Example:
        engine = GnuPGEngine(CryptGPGConfig(gnupghome="/srv/app/gnupg"))
        session = GPGSession(engine)
    """

    def __init__(self, config: CryptGPGConfig | None = None) -> None:
        """
        Args:
            config: GnuPG home, binary, trust and cipher settings.

        Raises:
            EngineError: If the gpg binary cannot be started.
        """
        self._config = config or CryptGPGConfig()
        try:
            self._gpg = gnupg.GPG(
                gpgbinary=self._config.gpg_binary,
                gnupghome=self._config.gnupghome,
            )
        except (OSError, ValueError) as e:
            msg = f"Failed to start GnuPG: {e}"
            raise EngineError(msg, gpg_binary=self._config.gpg_binary) from e

    def lookup_key(self, identifier: str) -> Key | None:
        keys = self.get_keys(identifier)
        return keys[0] if keys else None

    def get_keys(self, pattern: str | None = None) -> list[Key]:
        public = self._gpg.list_keys(keys=pattern)
        secret = self._gpg.list_keys(secret=True, keys=pattern)
        secret_fingerprints = {fp for record in secret for fp in _fingerprints(record)}
        return [self._to_key(record, secret_fingerprints) for record in public]

    def encrypt(self, stream: BinaryIO, recipients: Sequence[str], *, armor: bool) -> bytes:
        """
        Encrypt a stream for every recipient in one gpg run.

        Raises:
            KeyNotFoundError: If gpg rejects a recipient.
            EngineError: If gpg fails otherwise.
        """
        result = self._gpg.encrypt_file(
            stream,
            list(recipients),
            armor=armor,
            always_trust=self._config.always_trust,
            extra_args=self._encrypt_args(),
        )
        if result.ok:
            logger.debug("Encrypted message", recipients=len(recipients), armor=armor)
            return bytes(result.data)

        status_log = result.stderr or ""
        if "INV_RECP" in status_log or result.status == "invalid recipient":
            msg = "Data could not be encrypted because key was not found"
            raise KeyNotFoundError(msg, key_id=", ".join(recipients))
        msg = f"Encryption failed: {result.status}"
        raise EngineError(msg)

    def decrypt(self, stream: BinaryIO, candidates: Sequence[DecryptCandidate]) -> bytes:
        """
        Decrypt a stream, running gpg once per candidate passphrase.

        Raises:
            NoDataError: If gpg finds no OpenPGP data.
            BadPassphraseError: If every attempt had a wrong passphrase.
            KeyNotFoundError: If gpg has no secret key for the message.
            EngineError: If gpg fails otherwise.
        """
        data = stream.read()
        rejected: list[str] = []
        for candidate in candidates:
            result = self._gpg.decrypt(
                data,
                passphrase=candidate.passphrase.decode(),
                always_trust=self._config.always_trust,
            )
            if result.ok:
                logger.debug("Decrypted message", key_id=candidate.identifier)
                return bytes(result.data)

            status_log = result.stderr or ""
            if "NODATA" in status_log:
                msg = "No valid OpenPGP data found"
                raise NoDataError(msg, status=result.status)
            if "BAD_PASSPHRASE" in status_log or "MISSING_PASSPHRASE" in status_log:
                logger.warning("Passphrase rejected", key_id=candidate.identifier)
                rejected.append(candidate.identifier)
                continue
            if "NO_SECKEY" in status_log:
                continue
            msg = f"Decryption failed: {result.status}"
            raise EngineError(msg)

        if rejected:
            msg = "Cannot decrypt data. Incorrect passphrase provided"
            raise BadPassphraseError(msg, key_ids=tuple(rejected))
        msg = "Cannot decrypt data. No suitable private key is available"
        raise KeyNotFoundError(msg)

    def _encrypt_args(self) -> list[str]:
        return [
            "--cipher-algo",
            _CIPHER_NAMES[self._config.cipher],
            "--compress-algo",
            _COMPRESSION_NAMES[self._config.compression],
        ]

    @classmethod
    def _to_key(cls, record: Mapping[str, Any], secret_fingerprints: set[str]) -> Key:
        key = Key()
        primary_fingerprint = record.get("fingerprint") or record["keyid"]
        key.add_sub_key(
            cls._sub_key(record, primary_fingerprint, primary_fingerprint in secret_fingerprints)
        )

        subkey_info = record.get("subkey_info") or {}
        for entry in record.get("subkeys") or []:
            key_id = entry[0]
            fingerprint = entry[2] if len(entry) > 2 and entry[2] else key_id
            info = subkey_info.get(key_id) or {"keyid": key_id, "cap": entry[1]}
            key.add_sub_key(cls._sub_key(info, fingerprint, fingerprint in secret_fingerprints))

        validity = record.get("trust") or ""
        for text in record.get("uids") or []:
            key.add_user_id(
                UserId.parse(
                    text,
                    is_valid=validity not in _INVALID_CODES,
                    is_revoked=validity == "r",
                    trust=TrustLevel.from_code(validity),
                )
            )
        return key

    @staticmethod
    def _sub_key(info: Mapping[str, Any], fingerprint: str, has_private: bool) -> SubKey:
        # Lowercase capability letters describe this subkey, uppercase the whole key.
        capabilities = info.get("cap") or ""
        return SubKey(
            fingerprint=fingerprint,
            key_id=info.get("keyid") or "",
            algorithm=PublicKeyAlgorithm.from_id(info.get("algo")),
            length=int(info.get("length") or 0),
            creation_date=_parse_timestamp(info.get("date")) or datetime.fromtimestamp(0, timezone.utc),
            expiration_date=_parse_timestamp(info.get("expires")),
            can_sign="s" in capabilities,
            can_encrypt="e" in capabilities,
            can_certify="c" in capabilities,
            has_private=has_private,
        )


def _fingerprints(record: Mapping[str, Any]) -> list[str]:
    fingerprints = [record.get("fingerprint") or record["keyid"]]
    for entry in record.get("subkeys") or []:
        fingerprints.append(entry[2] if len(entry) > 2 and entry[2] else entry[0])
    return fingerprints


def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse a colon-listing date, either seconds since the epoch or ISO 8601."""
    if not value:
        return None
    if value.isdigit():
        return datetime.fromtimestamp(int(value), timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
