"""
Cryptographic constants shared by the key model and the engines.
"""

from enum import Enum, IntEnum


class SymmetricAlgorithm(IntEnum):
    """OpenPGP symmetric algorithm identifiers."""

    PLAINTEXT = 0
    IDEA = 1
    TRIPLE_DES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES_128 = 7
    AES_192 = 8
    AES_256 = 9
    TWOFISH = 10
    CAMELLIA_128 = 11
    CAMELLIA_192 = 12
    CAMELLIA_256 = 13

    @property
    def key_size(self) -> int:
        """Get key size in bytes for this algorithm."""
        match self:
            case self.AES_128 | self.CAST5 | self.BLOWFISH | self.CAMELLIA_128 | self.IDEA:
                return 16
            case self.AES_192 | self.TRIPLE_DES | self.CAMELLIA_192:
                return 24
            case self.AES_256 | self.TWOFISH | self.CAMELLIA_256:
                return 32
            case _:
                return 0


class CompressionAlgorithm(IntEnum):
    """OpenPGP compression algorithm identifiers."""

    UNCOMPRESSED = 0
    ZIP = 1
    ZLIB = 2
    BZIP2 = 3


class PublicKeyAlgorithm(IntEnum):
    """OpenPGP public key algorithm identifiers."""

    UNKNOWN = 0
    RSA_ENCRYPT_OR_SIGN = 1
    RSA_ENCRYPT_ONLY = 2
    RSA_SIGN_ONLY = 3
    ELGAMAL_ENCRYPT_ONLY = 16
    DSA = 17
    ECDH = 18
    ECDSA = 19
    ELGAMAL_ENCRYPT_OR_SIGN = 20
    EDDSA = 22
    X25519 = 25
    X448 = 26
    ED25519 = 27
    ED448 = 28

    @classmethod
    def from_id(cls, algorithm_id: int | str | None) -> "PublicKeyAlgorithm":
        """Map a numeric algorithm id (as int or decimal string) to a member, or UNKNOWN."""
        try:
            return cls(int(algorithm_id))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.UNKNOWN


class FingerprintFormat(Enum):
    """Output formats for key fingerprints."""

    NONE = "none"
    CANONICAL = "canonical"
    X509 = "x509"

    def apply(self, fingerprint: str) -> str:
        """
        Format a hexadecimal fingerprint.

        CANONICAL groups four digits separated by spaces with a double space in
        the middle (``8D18 ... 6224  4BF6 ... 8C40``). X509 separates byte pairs
        with colons (``8D:18:...``).
        """
        fingerprint = fingerprint.replace(" ", "").upper()
        match self:
            case FingerprintFormat.CANONICAL:
                groups = [fingerprint[i : i + 4] for i in range(0, len(fingerprint), 4)]
                half = len(groups) // 2
                return " ".join(groups[:half]) + "  " + " ".join(groups[half:])
            case FingerprintFormat.X509:
                return ":".join(fingerprint[i : i + 2] for i in range(0, len(fingerprint), 2))
            case _:
                return fingerprint
