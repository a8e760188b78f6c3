from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock

import pgpy
import pytest
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

from crypt_gpg.crypto.pgpy_backend import PgpyEngine
from crypt_gpg.models.key import Key, SubKey, UserId
from crypt_gpg.session import GPGSession
from crypt_gpg.tests.constants import (
    FIRST_KEY_ID,
    FIRST_PASSPHRASE,
    SECOND_KEY_ID,
    SECOND_PASSPHRASE,
    SIGN_ONLY_KEY_ID,
    SMALL_PLAINTEXT,
    UNPROTECTED_KEY_ID,
)


def _create_keypair(
    name: str,
    email: str,
    passphrase: str | None,
    *,
    with_encryption_subkey: bool = True,
) -> pgpy.PGPKey:
    key = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = pgpy.PGPUID.new(name, email=email)
    key.add_uid(
        uid,
        usage={KeyFlags.Sign, KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.ZIP, CompressionAlgorithm.Uncompressed],
    )
    if with_encryption_subkey:
        subkey = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
        key.add_subkey(
            subkey, usage={KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}
        )
    if passphrase is not None:
        key.protect(passphrase, SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return key


@pytest.fixture(scope="session")
def first_keypair() -> pgpy.PGPKey:
    return _create_keypair("First Keypair", FIRST_KEY_ID, FIRST_PASSPHRASE)


@pytest.fixture(scope="session")
def second_keypair() -> pgpy.PGPKey:
    return _create_keypair("Second Keypair", SECOND_KEY_ID, SECOND_PASSPHRASE)


@pytest.fixture(scope="session")
def sign_only_keypair() -> pgpy.PGPKey:
    return _create_keypair(
        "Sign Only", SIGN_ONLY_KEY_ID, None, with_encryption_subkey=False
    )


@pytest.fixture(scope="session")
def unprotected_keypair() -> pgpy.PGPKey:
    return _create_keypair("Unprotected Keypair", UNPROTECTED_KEY_ID, None)


@pytest.fixture
def engine(first_keypair: pgpy.PGPKey, second_keypair: pgpy.PGPKey) -> PgpyEngine:
    engine = PgpyEngine()
    engine.add_key(str(first_keypair))
    engine.add_key(str(second_keypair))
    return engine


@pytest.fixture
def gpg(engine: PgpyEngine) -> GPGSession:
    return GPGSession(engine)


@pytest.fixture
def small_file(tmp_path: Path) -> Path:
    path = tmp_path / "testFileSmall.plain"
    path.write_bytes(SMALL_PLAINTEXT.encode("utf-8"))
    return path


@pytest.fixture
def medium_file(tmp_path: Path) -> Path:
    path = tmp_path / "testFileMedium.plain"
    path.write_bytes(bytes(range(256)) * 512 + b"\r\n\x00trailing")
    return path


@pytest.fixture
def make_sub_key() -> Callable[..., SubKey]:
    counter = iter(range(1, 1000))

    def _make(**overrides: object) -> SubKey:
        fields: dict[str, object] = {"fingerprint": f"{next(counter):040X}"}
        fields.update(overrides)
        return SubKey(**fields)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def mock_engine() -> Mock:
    encrypting_key = Key()
    encrypting_key.add_sub_key(
        SubKey(fingerprint="A" * 40, can_sign=True, can_certify=True, has_private=True)
    )
    encrypting_key.add_sub_key(SubKey(fingerprint="B" * 40, can_encrypt=True, has_private=True))
    encrypting_key.add_user_id(UserId(name="Alice", email="alice@example.com"))

    engine = Mock()
    engine.lookup_key.return_value = encrypting_key
    engine.get_keys.return_value = [encrypting_key]
    engine.encrypt.return_value = b"ciphertext"
    engine.decrypt.return_value = b"plaintext"
    return engine
