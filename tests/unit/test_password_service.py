"""Unit tests for PasswordService bcrypt hashing."""

import pytest

from greenlight.services.password_service import PasswordService


@pytest.fixture
def passwords():
    return PasswordService(cost=4)


class TestHashPassword:
    def test_returns_self_describing_bcrypt_hash(self, passwords):
        hashed = passwords.hash_password("longenough1")
        assert hashed.startswith(b"$2b$04$")
        assert len(hashed) == 60

    def test_different_salts(self, passwords):
        h1 = passwords.hash_password("same-password")
        h2 = passwords.hash_password("same-password")
        assert h1 != h2, "Each call should produce a unique salt"

    def test_plaintext_not_in_hash(self, passwords):
        assert b"longenough1" not in passwords.hash_password("longenough1")

    def test_uses_configured_cost(self):
        hashed = PasswordService(cost=5).hash_password("longenough1")
        assert hashed.startswith(b"$2b$05$")


class TestVerifyPassword:
    def test_correct_password(self, passwords):
        hashed = passwords.hash_password("correct-horse-battery")
        assert passwords.verify_password("correct-horse-battery", hashed) is True

    def test_wrong_password_is_false_not_error(self, passwords):
        hashed = passwords.hash_password("right-password")
        assert passwords.verify_password("wrong-password", hashed) is False

    def test_accepts_str_hash(self, passwords):
        hashed = passwords.hash_password("right-password").decode("utf-8")
        assert passwords.verify_password("right-password", hashed) is True

    def test_verifies_hash_made_with_other_cost(self, passwords):
        hashed = PasswordService(cost=5).hash_password("right-password")
        assert passwords.verify_password("right-password", hashed) is True

    def test_malformed_hash_raises(self, passwords):
        with pytest.raises(ValueError):
            passwords.verify_password("anything", b"not-a-bcrypt-hash")

    @pytest.mark.parametrize(
        "first,second",
        [
            ("password-one", "password-two"),
            ("longenough1", "longenough2"),
            ("Case-Sensitive", "case-sensitive"),
        ],
    )
    def test_distinct_passwords_do_not_match(self, passwords, first, second):
        assert passwords.verify_password(second, passwords.hash_password(first)) is False
