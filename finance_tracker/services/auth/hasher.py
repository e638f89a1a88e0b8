"""
Password hashing.

bcrypt with a per-user random salt. The salt is persisted on its own key
and fed back into `digest`, which makes `digest(password, salt)` a pure,
deterministic function: same inputs, same digest.
"""

import hmac

import bcrypt


class PasswordHasher:
    """Salt generation and digest computation for stored passwords."""

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    def generate_salt(self) -> str:
        """A fresh random bcrypt salt (includes the cost factor)."""
        return bcrypt.gensalt(rounds=self._rounds).decode("ascii")

    def digest(self, password: str, salt: str) -> str:
        """
        Compute the stored digest for a password.

        Raises:
            ValueError: If the salt is not a bcrypt salt
        """
        return bcrypt.hashpw(password.encode("utf-8"), salt.encode("ascii")).decode("ascii")

    def verify(self, password: str, salt: str, expected_digest: str) -> bool:
        """Recompute with the stored salt and compare in constant time."""
        computed = self.digest(password, salt)
        return hmac.compare_digest(computed.encode("ascii"), expected_digest.encode("ascii"))
