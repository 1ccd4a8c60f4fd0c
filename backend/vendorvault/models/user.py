"""
User model for authentication database, and the per-call session context.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserStatus(str, Enum):
    """User account status."""
    ACTIVE = "active"
    DISABLED = "disabled"


class User(BaseModel):
    """
    User document model for MongoDB auth_db.users collection.
    """
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: Optional[str] = Field(None, alias="_id", description="MongoDB ObjectId as string")
    email: EmailStr = Field(..., description="Unique email address")
    hashed_password: str = Field(..., description="Bcrypt hashed password")
    status: UserStatus = Field(
        default=UserStatus.ACTIVE,
        description="Account status"
    )
    created_at: datetime = Field(..., description="Account creation timestamp")
    password_reset_token_hash: Optional[str] = Field(
        None,
        description="SHA-256 of the outstanding reset token"
    )
    reset_token_expires: Optional[datetime] = Field(
        None,
        description="When the outstanding reset token stops working"
    )


class UserContext(BaseModel):
    """
    Identity an operation runs on behalf of.

    Passed explicitly into every repository call instead of living in
    global session state.
    """
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = Field(None, description="Authenticated user ID, None if signed out")
    email: Optional[str] = Field(None, description="Authenticated user email")

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "UserContext":
        return cls()
