"""Unit tests for auth/passwords.py -- PasswordHasher and authenticate_user.

Covers:
- verify(p, hash(p)) is True, including non-ASCII passwords
- two hashes of one plaintext differ (fresh salt) and both verify
- verify returns False, never raises, for empty/malformed/mismatched input
- the configured work factor is embedded in the digest
- passwords over bcrypt's 72-byte limit are rejected as InputError
- authenticate_user runs bcrypt even for unknown usernames
"""

from unittest.mock import MagicMock, patch

import pytest

from auth.models import User
from auth.passwords import PasswordHasher, authenticate_user
from core.errors import InputError


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.mark.parametrize("plain", ["hunter2", "correct horse battery staple", "pässwörd-ünïcode", "x"])
def test_verify_accepts_own_hash(hasher: PasswordHasher, plain: str) -> None:
    assert hasher.verify(plain, hasher.hash(plain)) is True


def test_same_plaintext_hashes_differ(hasher: PasswordHasher) -> None:
    first = hasher.hash("hunter2")
    second = hasher.hash("hunter2")
    assert first != second
    assert hasher.verify("hunter2", first)
    assert hasher.verify("hunter2", second)


def test_different_plaintexts_hash_differently(hasher: PasswordHasher) -> None:
    assert hasher.hash("alpha") != hasher.hash("beta")


def test_wrong_password_rejected(hasher: PasswordHasher) -> None:
    assert hasher.verify("wrong", hasher.hash("right")) is False


@pytest.mark.parametrize("digest", ["", "not-a-bcrypt-hash", "$2b$04$tooshort"])
def test_verify_false_on_empty_or_malformed_digest(hasher: PasswordHasher, digest: str) -> None:
    assert hasher.verify("hunter2", digest) is False


def test_verify_false_on_empty_plaintext(hasher: PasswordHasher) -> None:
    assert hasher.verify("", hasher.hash("hunter2")) is False


def test_digest_embeds_work_factor(hasher: PasswordHasher) -> None:
    assert hasher.hash("hunter2").startswith("$2b$04$")


def test_password_over_72_bytes_rejected(hasher: PasswordHasher) -> None:
    # 37 two-byte characters = 74 bytes, under 72 characters
    with pytest.raises(InputError):
        hasher.hash("é" * 37)


def test_password_at_72_bytes_accepted(hasher: PasswordHasher) -> None:
    plain = "a" * 72
    assert hasher.verify(plain, hasher.hash(plain))


class TestAuthenticateUser:
    def test_valid_credentials_return_user(self, hasher: PasswordHasher) -> None:
        user = User(id="u1", username="alice", hashed_password=hasher.hash("hunter2"))
        store = MagicMock()
        store.get_by_username.return_value = user
        assert authenticate_user(store, hasher, "alice", "hunter2") is user

    def test_wrong_password_returns_none(self, hasher: PasswordHasher) -> None:
        store = MagicMock()
        store.get_by_username.return_value = User(id="u1", username="alice", hashed_password=hasher.hash("hunter2"))
        assert authenticate_user(store, hasher, "alice", "nope") is None

    def test_unknown_username_still_runs_bcrypt(self, hasher: PasswordHasher) -> None:
        """An unknown username must cost one bcrypt check, like a wrong password."""
        store = MagicMock()
        store.get_by_username.return_value = None
        with patch.object(hasher, "verify", wraps=hasher.verify) as spy:
            assert authenticate_user(store, hasher, "ghost", "hunter2") is None
        spy.assert_called_once()
