"""
crypt_gpg configuration.
"""

from dataclasses import dataclass

from crypt_gpg.models.crypto import CompressionAlgorithm, SymmetricAlgorithm


@dataclass(frozen=True, kw_only=True)
class CryptGPGConfig:
    """
    Attributes:
        armor: Produce ASCII-armored ciphertext unless an operation says otherwise.
        cipher: Symmetric cipher used for the message session key (pgpy engine).
        compression: Compression applied before encryption (pgpy engine).
        gnupghome: GnuPG home directory holding the keyring (GnuPG engine).
            None uses GnuPG's default.
        gpg_binary: Name or path of the gpg executable (GnuPG engine).
        always_trust: Skip the web-of-trust check on recipients (GnuPG engine).
    """

    armor: bool = True
    cipher: SymmetricAlgorithm = SymmetricAlgorithm.AES_256
    compression: CompressionAlgorithm = CompressionAlgorithm.ZIP
    gnupghome: str | None = None
    gpg_binary: str = "gpg"
    always_trust: bool = True

    def __post_init__(self) -> None:
        if self.cipher.key_size == 0:
            msg = f"cipher {self.cipher.name} cannot encrypt messages"
            raise ValueError(msg)
        if not self.gpg_binary:
            msg = "gpg_binary must not be empty"
            raise ValueError(msg)
