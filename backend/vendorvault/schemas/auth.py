"""
Authentication request/response schemas.
"""
from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Create-account request."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    password_confirm: str = Field(..., description="Password confirmation")

    def passwords_match(self) -> bool:
        """Check if password and confirmation match."""
        return self.password == self.password_confirm


class LoginRequest(BaseModel):
    """Sign-in request."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class AuthSession(BaseModel):
    """Signed-in session with JWT token."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    user_id: str = Field(..., description="Authenticated user ID")
    email: str = Field(..., description="Authenticated user email")
