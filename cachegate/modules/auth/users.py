"""Redis-backed user records."""

import json
from datetime import UTC, datetime
from typing import Any, Dict, Optional

PUBLIC_FIELDS = ("id", "name", "email", "email_verified_at", "created_at", "updated_at")


class EmailTaken(Exception):
    """Raised when registering an email that already has an account."""


class UserRepository:
    """
    Stores users as JSON under user:{id}.

    Keys:
    - users:next_id          counter for user ids
    - user:{id}              user record including password_hash
    - user:email:{email}     email (lowercased) -> user id, claimed with SET NX
    """

    def __init__(self, redis_client):
        self.redis = redis_client

    @staticmethod
    def _email_key(email: str) -> str:
        return f"user:email:{email.strip().lower()}"

    async def email_exists(self, email: str) -> bool:
        return await self.redis.exists(self._email_key(email)) > 0

    async def create(self, name: str, email: str, password_hash: str) -> Dict[str, Any]:
        """
        Create a user.

        Raises:
            EmailTaken: If the email index is already claimed
        """
        email_key = self._email_key(email)

        # Claim the email first so two concurrent registrations cannot both win
        claimed = await self.redis.set(email_key, "pending", nx=True)
        if not claimed:
            raise EmailTaken(email)

        try:
            user_id = await self.redis.incr("users:next_id")
            now = datetime.now(UTC).isoformat()
            record = {
                "id": user_id,
                "name": name,
                "email": email,
                "email_verified_at": None,
                "password_hash": password_hash,
                "created_at": now,
                "updated_at": now,
            }
            await self.redis.set(f"user:{user_id}", json.dumps(record))
            await self.redis.set(email_key, str(user_id))
        except Exception:
            await self.redis.delete(email_key)
            raise

        return record

    async def get(self, user_id: int) -> Optional[Dict[str, Any]]:
        data = await self.redis.get(f"user:{user_id}")
        if not data:
            return None
        return json.loads(data)

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        user_id = await self.redis.get(self._email_key(email))
        if not user_id or user_id == "pending":
            return None
        return await self.get(int(user_id))

    @staticmethod
    def to_public(record: Dict[str, Any]) -> Dict[str, Any]:
        """Strip private fields (password hash) from a user record."""
        return {field: record.get(field) for field in PUBLIC_FIELDS}
