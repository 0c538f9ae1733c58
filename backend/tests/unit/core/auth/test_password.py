"""Tests for password hashing utilities."""

from projectdesk.core.auth import hash_password, verify_password


class TestPasswordHashing:
    """Test password hashing functions."""

    def test_hash_password_returns_bcrypt_hash(self) -> None:
        """Should return a bcrypt hash."""
        hashed = hash_password("correct horse battery")
        assert hashed.startswith("$2b$")
        assert len(hashed) == 60

    def test_hash_password_is_salted(self) -> None:
        """Same password should produce different hashes."""
        assert hash_password("correct horse battery") != hash_password("correct horse battery")

    def test_verify_password_correct(self) -> None:
        """Should return True for the right password."""
        hashed = hash_password("correct horse battery")
        assert verify_password("correct horse battery", hashed) is True

    def test_verify_password_incorrect(self) -> None:
        """Should return False for a wrong password."""
        hashed = hash_password("correct horse battery")
        assert verify_password("wrong horse", hashed) is False

    def test_verify_password_without_stored_hash(self) -> None:
        """Users without a password never match."""
        assert verify_password("anything", None) is False

    def test_verify_password_empty(self) -> None:
        """Should return False for an empty password."""
        assert verify_password("", hash_password("correct horse battery")) is False
