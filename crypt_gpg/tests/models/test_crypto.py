import pytest

from crypt_gpg.models.crypto import FingerprintFormat, PublicKeyAlgorithm, SymmetricAlgorithm

FINGERPRINT = "8D180B814F5D62244BF60DC66FBBA5C1D6C08C40"


def test_fingerprint_format_none_returns_plain_hex() -> None:
    assert FingerprintFormat.NONE.apply(FINGERPRINT.lower()) == FINGERPRINT


def test_fingerprint_format_canonical() -> None:
    result = FingerprintFormat.CANONICAL.apply(FINGERPRINT)

    assert result == "8D18 0B81 4F5D 6224 4BF6  0DC6 6FBB A5C1 D6C0 8C40"


def test_fingerprint_format_x509() -> None:
    result = FingerprintFormat.X509.apply(FINGERPRINT)

    assert result == (
        "8D:18:0B:81:4F:5D:62:24:4B:F6:0D:C6:6F:BB:A5:C1:D6:C0:8C:40"
    )


def test_fingerprint_format_accepts_spaced_input() -> None:
    spaced = FingerprintFormat.CANONICAL.apply(FINGERPRINT)

    assert FingerprintFormat.NONE.apply(spaced) == FINGERPRINT


@pytest.mark.parametrize(
    ("algorithm", "expected"),
    [
        (SymmetricAlgorithm.AES_128, 16),
        (SymmetricAlgorithm.AES_192, 24),
        (SymmetricAlgorithm.AES_256, 32),
        (SymmetricAlgorithm.PLAINTEXT, 0),
    ],
)
def test_symmetric_algorithm_key_size(algorithm: SymmetricAlgorithm, expected: int) -> None:
    assert algorithm.key_size == expected


def test_public_key_algorithm_from_id() -> None:
    assert PublicKeyAlgorithm.from_id(1) is PublicKeyAlgorithm.RSA_ENCRYPT_OR_SIGN
    assert PublicKeyAlgorithm.from_id("22") is PublicKeyAlgorithm.EDDSA


@pytest.mark.parametrize("value", [None, "", "abc", 99])
def test_public_key_algorithm_from_id_unknown(value: object) -> None:
    assert PublicKeyAlgorithm.from_id(value) is PublicKeyAlgorithm.UNKNOWN  # type: ignore[arg-type]
