"""Password hashing."""
import bcrypt


class PasswordHasher:
    """bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        # Compared against when the account does not exist so unknown emails
        # cost the same as wrong passwords.
        self._dummy_hash = self.hash("dreamer-ai-dummy-password")

    def hash(self, password: str) -> str:
        """Hash a password."""
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(rounds=self.rounds),
        ).decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str | None) -> bool:
        """Verify a password against its hash."""
        # bcrypt raises ValueError for inputs over 72 bytes and for malformed hashes
        try:
            if not hashed_password:
                bcrypt.checkpw(plain_password.encode("utf-8"), self._dummy_hash.encode("utf-8"))
                return False
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False
