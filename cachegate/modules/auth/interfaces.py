"""Authentication interfaces following Black Box Design principles."""
from typing import Protocol, Optional, Dict, Any


class TokenStore(Protocol):
    """Protocol for bearer token persistence - allows swappable implementations."""

    async def issue(self, user_id: int, name: str) -> str:
        """
        Mint a new opaque token for a user.

        Returns:
            The plain token; only its digest is persisted
        """
        ...

    async def find(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Look up a plain token.

        Returns:
            Token record with at least user_id, or None if unknown
        """
        ...

    async def revoke(self, token: str) -> bool:
        """
        Delete a plain token.

        Returns:
            True if the token existed
        """
        ...


class PasswordHasher(Protocol):
    """Protocol for password hashing."""

    def hash(self, password: str) -> str:
        """Hash a plain password."""
        ...

    def verify(self, password: str, hashed: str) -> bool:
        """Check a plain password against a stored hash."""
        ...
