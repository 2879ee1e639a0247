import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from simpleblog.core.clock import utcnow

ADMIN_ROLE = "Admin"
USER_ROLE = "User"


class User(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Basic Info
    username: str = Field(unique=True, index=True)
    email: str = Field(unique=True, index=True)
    password_hash: str

    role: str = Field(default=USER_ROLE)

    # Password reset
    reset_token: Optional[str] = Field(default=None, index=True)
    reset_token_expires_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class RefreshToken(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    token: str = Field(unique=True, index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
    revoked_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None and self.expires_at > utcnow()
