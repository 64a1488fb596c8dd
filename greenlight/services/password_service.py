"""Password hashing and verification with bcrypt."""

from typing import Optional

import bcrypt

from greenlight.config import get_settings


class PasswordService:
    """One-way password hashing.

    bcrypt's ``$2b$<cost>$<salt><digest>`` output records the algorithm,
    cost and salt, so verification needs nothing but the stored hash.
    """

    def __init__(self, cost: Optional[int] = None):
        self.cost = cost if cost is not None else get_settings().bcrypt_cost

    def hash_password(self, password: str) -> bytes:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash bytes
        """
        salt = bcrypt.gensalt(rounds=self.cost)
        return bcrypt.hashpw(password.encode("utf-8"), salt)

    def verify_password(self, password: str, password_hash: bytes) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False on a mismatch

        Raises:
            ValueError: If the stored hash is malformed
        """
        if isinstance(password_hash, str):
            password_hash = password_hash.encode("utf-8")
        return bcrypt.checkpw(password.encode("utf-8"), password_hash)
