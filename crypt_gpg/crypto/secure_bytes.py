"""Wipeable passphrase storage."""

import ctypes
import hmac
from typing import Self


def _wipe(buffer: bytearray) -> None:
    """Overwrite ``buffer`` in place with zero bytes."""
    size = len(buffer)
    if size == 0:
        return
    view = (ctypes.c_char * size).from_buffer(buffer)
    ctypes.memset(ctypes.addressof(view), 0, size)
    del view


class SecureBytes:
    """
    Passphrase bytes that can be wiped from memory.

    Every instance owns its buffer. ``copy`` and ``coerce`` always allocate a
    new one, so wiping one holder's passphrase never affects another holder.
    An empty value is the passphrase of an unprotected key.

    Example:
        with SecureBytes.from_string(passphrase) as secret:
            engine.decrypt(stream, [DecryptCandidate(identifier, secret)])
    """

    __slots__ = ("_buffer", "_wiped")

    def __init__(self, data: bytes | bytearray = b"") -> None:
        self._buffer = bytearray(data)
        self._wiped = False

    @classmethod
    def from_string(cls, text: str, encoding: str = "utf-8") -> Self:
        encoded = bytearray(text, encoding)
        try:
            return cls(encoded)
        finally:
            _wipe(encoded)

    @classmethod
    def coerce(cls, value: "str | bytes | bytearray | SecureBytes") -> "SecureBytes":
        """
        Take ownership of a passphrase given in any accepted form.

        Args:
            value: Text (encoded as UTF-8), raw bytes, or another SecureBytes.

        Returns:
            A new SecureBytes the caller may wipe freely.
        """
        match value:
            case SecureBytes():
                return value.copy()
            case str():
                return cls.from_string(value)
            case _:
                return cls(value)

    def copy(self) -> Self:
        self._ensure_live()
        return type(self)(self._buffer)

    @property
    def is_cleared(self) -> bool:
        return self._wiped

    def clear(self) -> None:
        """Zero the buffer. Safe to call more than once."""
        if not self._wiped:
            _wipe(self._buffer)
            self._wiped = True

    def decode(self, encoding: str = "utf-8") -> str:
        """The passphrase as text. The returned str cannot be wiped."""
        self._ensure_live()
        return self._buffer.decode(encoding)

    def _ensure_live(self) -> None:
        if self._wiped:
            raise RuntimeError("SecureBytes has been cleared")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def __del__(self) -> None:
        self.clear()

    def __bytes__(self) -> bytes:
        self._ensure_live()
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def __eq__(self, other: object) -> bool:
        # hmac.compare_digest keeps the comparison constant-time.
        if isinstance(other, SecureBytes):
            if other._wiped:
                return False
            other_bytes: bytes | bytearray = other._buffer
        elif isinstance(other, (bytes, bytearray)):
            other_bytes = other
        else:
            return NotImplemented
        return not self._wiped and hmac.compare_digest(self._buffer, other_bytes)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "cleared" if self._wiped else f"{len(self._buffer)} bytes"
        return f"SecureBytes(<{state}>)"
