"""
Crypto engine protocol definition.

This defines the interface a session uses for keyring lookups and bulk
transforms, allowing different implementations (pgpy, the gpg binary, a test
double) to be swapped without changing the session.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import BinaryIO, Protocol, runtime_checkable

from crypt_gpg.crypto.secure_bytes import SecureBytes
from crypt_gpg.models.key import Key


@dataclass(frozen=True)
class DecryptCandidate:
    """A secret key identifier with the passphrase that unlocks it."""

    identifier: str
    passphrase: SecureBytes


@runtime_checkable
class CryptoEngine(Protocol):
    """
    Abstract interface for OpenPGP engines.

    Engines raise crypt_gpg exceptions (KeyNotFoundError, BadPassphraseError,
    NoDataError, EngineError) for failures they can classify.
    """

    def lookup_key(self, identifier: str) -> Key | None:
        """
        Find the first key matching an identifier.

        Args:
            identifier: Fingerprint, key id, or user id text such as an email.

        Returns:
            The populated Key, or None if nothing matches.
        """
        ...

    def get_keys(self, pattern: str | None = None) -> list[Key]:
        """
        List keys matching a pattern.

        Args:
            pattern: Identifier to match, or None for every key.

        Returns:
            Matching keys in keyring order.
        """
        ...

    def encrypt(self, stream: BinaryIO, recipients: Sequence[str], *, armor: bool) -> bytes:
        """
        Encrypt a stream for every recipient at once.

        Args:
            stream: Plaintext source.
            recipients: Primary key fingerprints to encrypt to.
            armor: Produce ASCII-armored output.

        Returns:
            One ciphertext decryptable by any recipient.

        Raises:
            KeyNotFoundError: If a recipient cannot be used.
            EngineError: If encryption fails.
        """
        ...

    def decrypt(self, stream: BinaryIO, candidates: Sequence[DecryptCandidate]) -> bytes:
        """
        Decrypt a stream with the first candidate able to.

        Args:
            stream: Armored or binary ciphertext source.
            candidates: Secret keys and passphrases to try.

        Returns:
            Decrypted plaintext.

        Raises:
            KeyNotFoundError: If no candidate is a recipient of the message.
            BadPassphraseError: If every matching candidate has a wrong passphrase.
            NoDataError: If the stream holds no OpenPGP message.
            EngineError: If decryption fails otherwise.
        """
        ...
