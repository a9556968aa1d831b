from typing import Protocol


class CredentialHasher(Protocol):
    def digest(self, secret: str) -> str:
        ...

    def matches(self, secret: str, digest: str) -> bool:
        """Must compare in constant time."""
        ...
