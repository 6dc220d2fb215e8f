"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserRecord(BaseModel):
    """An authentication principal as handed out by the user store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    password_hash: str
    admin: bool = False
    created: datetime | None = None

    def can_delete(self, entry_owner: str) -> bool:
        """Check if this user may delete an entry owned by ``entry_owner``."""
        return self.admin or self.id == entry_owner


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    admin: bool
