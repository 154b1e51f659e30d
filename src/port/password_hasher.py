from typing import Protocol


class PasswordHasher(Protocol):
    # Hash of a throwaway secret at the production cost, built once per hasher
    dummy_hash: str

    def hash(self, plaintext: str) -> str: ...
    def verify(self, plaintext: str, hashed: str) -> bool: ...
