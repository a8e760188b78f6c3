from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from crypt_gpg.models.crypto import PublicKeyAlgorithm
from crypt_gpg.models.key import Key, SubKey, TrustLevel, UserId


def test_empty_key_has_no_primary_key() -> None:
    key = Key()

    assert key.primary_key is None
    assert key.sub_keys == ()
    assert key.user_ids == ()


def test_empty_key_cannot_sign_or_encrypt() -> None:
    key = Key()

    assert key.can_sign() is False
    assert key.can_encrypt() is False
    assert key.has_private() is False


def test_primary_key_is_first_added_sub_key(make_sub_key: Callable[..., SubKey]) -> None:
    first = make_sub_key(can_certify=True)
    second = make_sub_key(can_sign=True, can_encrypt=True)
    third = make_sub_key(can_sign=True)
    key = Key()

    key.add_sub_key(first)
    key.add_sub_key(second)
    key.add_sub_key(third)

    assert key.primary_key is first
    assert key.sub_keys == (first, second, third)


def test_primary_key_ignores_duplicate_fingerprints(make_sub_key: Callable[..., SubKey]) -> None:
    first = make_sub_key(fingerprint="AB" * 20)
    duplicate = make_sub_key(fingerprint="AB" * 20, can_encrypt=True)
    key = Key()

    key.add_sub_key(first)
    key.add_sub_key(duplicate)

    assert len(key.sub_keys) == 2
    assert key.primary_key is first


@pytest.mark.parametrize(
    ("flags", "can_sign", "can_encrypt"),
    [
        ([{}], False, False),
        ([{"can_sign": True}], True, False),
        ([{"can_encrypt": True}], False, True),
        ([{"can_certify": True}, {"can_encrypt": True}], False, True),
        ([{"can_sign": True}, {"can_encrypt": True}], True, True),
        ([{}, {}, {"can_sign": True, "can_encrypt": True}], True, True),
    ],
)
def test_capabilities_are_or_of_sub_keys(
    make_sub_key: Callable[..., SubKey],
    flags: list[dict[str, bool]],
    can_sign: bool,
    can_encrypt: bool,
) -> None:
    key = Key()
    for sub_key_flags in flags:
        key.add_sub_key(make_sub_key(**sub_key_flags))

    assert key.can_sign() is can_sign
    assert key.can_encrypt() is can_encrypt


def test_capabilities_follow_added_sub_keys(make_sub_key: Callable[..., SubKey]) -> None:
    key = Key()
    key.add_sub_key(make_sub_key(can_certify=True))
    assert key.can_encrypt() is False

    key.add_sub_key(make_sub_key(can_encrypt=True, has_private=True))

    assert key.can_encrypt() is True
    assert key.has_private() is True


def test_sub_keys_returns_snapshot(make_sub_key: Callable[..., SubKey]) -> None:
    key = Key()
    key.add_sub_key(make_sub_key())
    snapshot = key.sub_keys

    key.add_sub_key(make_sub_key())

    assert len(snapshot) == 1
    assert len(key.sub_keys) == 2


def test_user_ids_keep_insertion_order() -> None:
    key = Key()
    alice = UserId(name="Alice")
    bob = UserId(name="Bob")

    key.add_user_id(alice)
    key.add_user_id(bob)

    assert key.user_ids == (alice, bob)


def test_key_str_shows_primary_fingerprint_and_first_user_id(
    make_sub_key: Callable[..., SubKey],
) -> None:
    key = Key()
    key.add_sub_key(make_sub_key(fingerprint="C" * 40))
    key.add_user_id(UserId(name="Alice", email="alice@example.com"))

    assert str(key) == f"{'C' * 40} Alice <alice@example.com>"


def test_sub_key_normalizes_fingerprint_and_derives_key_id() -> None:
    sub_key = SubKey(fingerprint="8d18 0b81 4f5d 6224 4bf6  0dc6 6fbb a5c1 d6c0 8c40")

    assert sub_key.fingerprint == "8D180B814F5D62244BF60DC66FBBA5C1D6C08C40"
    assert sub_key.key_id == "6FBBA5C1D6C08C40"


def test_sub_key_keeps_explicit_key_id() -> None:
    sub_key = SubKey(fingerprint="A" * 40, key_id="0123456789abcdef")

    assert sub_key.key_id == "0123456789ABCDEF"


def test_sub_key_rejects_empty_fingerprint() -> None:
    with pytest.raises(ValueError, match="fingerprint"):
        SubKey(fingerprint="")


def test_sub_key_is_immutable() -> None:
    sub_key = SubKey(fingerprint="A" * 40, can_sign=True)

    with pytest.raises(AttributeError):
        sub_key.can_sign = False  # type: ignore[misc]


def test_sub_key_defaults() -> None:
    sub_key = SubKey(fingerprint="A" * 40)

    assert sub_key.algorithm == PublicKeyAlgorithm.UNKNOWN
    assert sub_key.length == 0
    assert sub_key.expiration_date is None
    assert sub_key.has_private is False


def test_sub_key_is_expired() -> None:
    now = datetime.now(timezone.utc)

    assert SubKey(fingerprint="A" * 40).is_expired is False
    assert SubKey(fingerprint="A" * 40, expiration_date=now - timedelta(days=1)).is_expired
    assert not SubKey(fingerprint="A" * 40, expiration_date=now + timedelta(days=1)).is_expired


def test_user_id_parse_full() -> None:
    user_id = UserId.parse("Alice Example (work) <alice@example.com>")

    assert user_id.name == "Alice Example"
    assert user_id.comment == "work"
    assert user_id.email == "alice@example.com"


def test_user_id_parse_without_comment() -> None:
    user_id = UserId.parse("First Keypair <first-keypair@example.com>")

    assert user_id.name == "First Keypair"
    assert user_id.comment == ""
    assert user_id.email == "first-keypair@example.com"


def test_user_id_parse_email_only() -> None:
    user_id = UserId.parse("<bob@example.com>")

    assert user_id.name == ""
    assert user_id.email == "bob@example.com"


def test_user_id_parse_keeps_unstructured_text_as_name() -> None:
    user_id = UserId.parse("Name (unterminated")

    assert user_id.name == "Name (unterminated"
    assert user_id.email == ""


def test_user_id_parse_applies_flags() -> None:
    user_id = UserId.parse(
        "Revoked <old@example.com>", is_valid=False, is_revoked=True, trust=TrustLevel.NEVER
    )

    assert user_id.is_valid is False
    assert user_id.is_revoked is True
    assert user_id.trust is TrustLevel.NEVER


def test_user_id_str_round_trips_parse() -> None:
    text = "Alice Example (work) <alice@example.com>"

    assert str(UserId.parse(text)) == text


def test_trust_level_from_code() -> None:
    assert TrustLevel.from_code("u") is TrustLevel.ULTIMATE
    assert TrustLevel.from_code("f") is TrustLevel.FULL
    assert TrustLevel.from_code("r") is TrustLevel.UNKNOWN
    assert TrustLevel.from_code(None) is TrustLevel.UNKNOWN
