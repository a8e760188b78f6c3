"""
Key data model.

A Key is an append-only aggregate of SubKeys and UserIds built once by an
engine's key lookup and treated as read-only by everything else.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Self

from crypt_gpg.models.crypto import PublicKeyAlgorithm

_USER_ID_PATTERN = re.compile(
    r"^\s*(?P<name>[^(<]*?)\s*(?:\((?P<comment>[^)]*)\))?\s*(?:<(?P<email>[^>]*)>)?\s*$"
)


class TrustLevel(Enum):
    """Owner trust and user id validity levels, keyed by GnuPG's listing codes."""

    UNKNOWN = "-"
    UNDEFINED = "q"
    NEVER = "n"
    MARGINAL = "m"
    FULL = "f"
    ULTIMATE = "u"

    @classmethod
    def from_code(cls, code: str | None) -> "TrustLevel":
        """Map a validity code to a trust level. Unrecognized codes map to UNKNOWN."""
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, kw_only=True)
class UserId:
    """
    One identity bound to a key.

    Attributes:
        name: Display name.
        comment: Free-form comment, empty when absent.
        email: Email address, empty when absent.
        is_valid: False when the identity is invalid, expired or revoked.
        is_revoked: True when the identity has been revoked.
        trust: Validity of the identity.
    """

    name: str
    comment: str = ""
    email: str = ""
    is_valid: bool = True
    is_revoked: bool = False
    trust: TrustLevel = TrustLevel.UNKNOWN

    @classmethod
    def parse(cls, text: str, **flags: object) -> Self:
        """
        Build a UserId from a ``Name (comment) <email>`` string.

        Args:
            text: User id text. Comment and email parts are optional.
            **flags: Extra attributes (``is_valid``, ``is_revoked``, ``trust``).

        Returns:
            The parsed UserId. Text that does not follow the format is kept
            whole as the name.
        """
        match = _USER_ID_PATTERN.match(text)
        if match is None:
            return cls(name=text.strip(), **flags)  # type: ignore[arg-type]
        return cls(
            name=match["name"] or "",
            comment=(match["comment"] or "").strip(),
            email=(match["email"] or "").strip(),
            **flags,  # type: ignore[arg-type]
        )

    def __str__(self) -> str:
        parts = [self.name] if self.name else []
        if self.comment:
            parts.append(f"({self.comment})")
        if self.email:
            parts.append(f"<{self.email}>")
        return " ".join(parts)


@dataclass(frozen=True, kw_only=True)
class SubKey:
    """
    One cryptographic subkey of a key.

    Attributes:
        fingerprint: Full hexadecimal fingerprint.
        key_id: Long key id. Derived from the fingerprint when empty.
        algorithm: Public key algorithm.
        length: Key length in bits (0 when not meaningful, e.g. curves).
        creation_date: When the subkey was created (UTC).
        expiration_date: When the subkey expires, or None.
        can_sign: Subkey may create signatures.
        can_encrypt: Subkey may encrypt data.
        can_certify: Subkey may certify other keys.
        has_private: Secret material for this subkey is available.
    """

    fingerprint: str
    key_id: str = ""
    algorithm: PublicKeyAlgorithm = PublicKeyAlgorithm.UNKNOWN
    length: int = 0
    creation_date: datetime = field(default_factory=lambda: datetime.fromtimestamp(0, timezone.utc))
    expiration_date: datetime | None = None
    can_sign: bool = False
    can_encrypt: bool = False
    can_certify: bool = False
    has_private: bool = False

    def __post_init__(self) -> None:
        if not self.fingerprint:
            msg = "fingerprint must not be empty"
            raise ValueError(msg)
        object.__setattr__(self, "fingerprint", self.fingerprint.replace(" ", "").upper())
        key_id = self.key_id.upper() if self.key_id else self.fingerprint[-16:]
        object.__setattr__(self, "key_id", key_id)

    @property
    def is_expired(self) -> bool:
        if self.expiration_date is None:
            return False
        return self.expiration_date <= datetime.now(timezone.utc)


class Key:
    """
    A key with its subkeys and user ids.

    The primary subkey is always the first subkey added. Subkeys and user ids
    are only ever appended.
    """

    __slots__ = ("_sub_keys", "_user_ids")

    def __init__(self) -> None:
        self._sub_keys: list[SubKey] = []
        self._user_ids: list[UserId] = []

    @property
    def sub_keys(self) -> tuple[SubKey, ...]:
        return tuple(self._sub_keys)

    @property
    def user_ids(self) -> tuple[UserId, ...]:
        return tuple(self._user_ids)

    @property
    def primary_key(self) -> SubKey | None:
        """The first added subkey, or None for a key without subkeys."""
        if len(self._sub_keys) == 0:
            return None
        return self._sub_keys[0]

    def can_sign(self) -> bool:
        """True if any subkey can sign."""
        return any(sub_key.can_sign for sub_key in self._sub_keys)

    def can_encrypt(self) -> bool:
        """True if any subkey can encrypt."""
        return any(sub_key.can_encrypt for sub_key in self._sub_keys)

    def has_private(self) -> bool:
        """True if secret material is available for any subkey."""
        return any(sub_key.has_private for sub_key in self._sub_keys)

    def add_sub_key(self, sub_key: SubKey) -> None:
        self._sub_keys.append(sub_key)

    def add_user_id(self, user_id: UserId) -> None:
        self._user_ids.append(user_id)

    def __repr__(self) -> str:
        primary = self.primary_key
        fingerprint = primary.fingerprint if primary is not None else None
        return f"Key(fingerprint={fingerprint!r}, sub_keys={len(self._sub_keys)}, user_ids={len(self._user_ids)})"

    def __str__(self) -> str:
        primary = self.primary_key
        label = primary.fingerprint if primary is not None else "<empty>"
        if self._user_ids:
            return f"{label} {self._user_ids[0]}"
        return label
