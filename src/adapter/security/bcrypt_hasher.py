"""bcrypt implementation of PasswordHasher."""

import os

import bcrypt

BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '12'))


class BcryptPasswordHasher:
    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds
        # Same cost as real hashes; verified against when no real hash exists
        self.dummy_hash = self.hash("storefront-timing-equalizer")

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Constant-time check. A malformed stored hash never matches."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
