"""
Authentication service: accounts, sessions and password resets.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from vendorvault.config import get_settings
from vendorvault.core.exceptions import AuthError, StoreError, ValidationError
from vendorvault.core.security import (
    JWTError,
    create_access_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from vendorvault.database.databases import auth_db
from vendorvault.models.user import User, UserContext, UserStatus
from vendorvault.schemas.auth import AuthSession, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

# Receives (email, reset_token); e.g. sends the reset email
ResetDelivery = Callable[[str, str], Awaitable[None]]


async def _log_reset_delivery(email: str, token: str) -> None:
    logger.info(f"Password reset issued for {email}; no delivery channel configured")


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        deliver_reset: Optional[ResetDelivery] = None,
    ):
        """
        Initialize with auth database.

        Args:
            db: auth_db database handle
            deliver_reset: Coroutine that hands a reset token to the user
        """
        self.db = db
        self.users_collection = db[auth_db.Collections.USERS]
        self.revoked_tokens = db[auth_db.Collections.REVOKED_TOKENS]
        self.settings = get_settings()
        self.deliver_reset = deliver_reset or _log_reset_delivery

    async def create_account(self, request: RegisterRequest) -> AuthSession:
        """
        Register a new user and sign them in.

        Args:
            request: Registration request with email and password

        Returns:
            AuthSession for the new user

        Raises:
            ValidationError: If passwords don't match or are too short
            AuthError: If the email is already registered
            StoreError: If the store rejects the write
        """
        if not request.passwords_match():
            raise ValidationError("Passwords do not match", {"password_confirm": "mismatch"})
        self._check_password(request.password)

        existing = await self._find_user({"email": request.email})
        if existing:
            raise AuthError("Email already registered")

        user_doc = {
            "email": request.email,
            "hashed_password": hash_password(request.password),
            "status": UserStatus.ACTIVE.value,
            "created_at": datetime.now(timezone.utc),
            "password_reset_token_hash": None,
            "reset_token_expires": None,
        }

        try:
            result = await self.users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            raise AuthError("Email already registered")
        except PyMongoError as e:
            raise StoreError(f"Failed to create account: {e}") from e

        user_id = str(result.inserted_id)
        logger.info(f"Created account {user_id}")
        return self._session(user_id, request.email)

    async def sign_in(self, request: LoginRequest) -> AuthSession:
        """
        Authenticate user and return a session with JWT token.

        Raises:
            AuthError: If credentials are invalid or the account is disabled
        """
        user_doc = await self._find_user({"email": request.email})

        if not user_doc:
            raise AuthError("Invalid email or password")

        if user_doc.get("status") == UserStatus.DISABLED.value:
            raise AuthError("Account is disabled")

        if not verify_password(request.password, user_doc["hashed_password"]):
            raise AuthError("Invalid email or password")

        return self._session(str(user_doc["_id"]), user_doc["email"])

    async def sign_out(self, token: str) -> None:
        """
        Revoke an access token.

        Signing out an expired or already revoked token is a no-op.

        Raises:
            AuthError: If the token carries no session id
        """
        try:
            payload = decode_token(token)
        except JWTError:
            # Expired tokens are already unusable
            logger.debug("Sign-out with an invalid or expired token")
            return

        jti = payload.get("jti")
        if not jti:
            raise AuthError("Token cannot be revoked")

        try:
            await self.revoked_tokens.update_one(
                {"jti": jti},
                {
                    "$setOnInsert": {
                        "user_id": payload.get("sub"),
                        "expires_at": datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                        "revoked_at": datetime.now(timezone.utc),
                    }
                },
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to sign out: {e}") from e

        logger.info(f"Signed out user {payload.get('sub')}")

    async def resolve_context(self, token: Optional[str]) -> UserContext:
        """
        Turn an access token into the UserContext repository calls run under.

        Returns an anonymous context for a missing token.

        Raises:
            AuthError: If the token is invalid, expired, revoked, or its user
                no longer exists or is disabled
            StoreError: If the store cannot be reached
        """
        if not token:
            return UserContext.anonymous()

        try:
            payload = decode_token(token)
        except JWTError:
            raise AuthError("Could not validate credentials")

        user_id = payload.get("sub")
        if user_id is None:
            raise AuthError("Could not validate credentials")

        try:
            revoked = await self.revoked_tokens.find_one({"jti": payload.get("jti")})
        except PyMongoError as e:
            raise StoreError(f"Failed to check session: {e}") from e
        if revoked:
            raise AuthError("Session has been signed out")

        user = await self.get_user_by_id(user_id)
        if user is None:
            raise AuthError("Could not validate credentials")
        if user.status == UserStatus.DISABLED.value:
            raise AuthError("Account is disabled")

        return UserContext(user_id=user_id, email=user.email)

    async def send_password_reset(self, email: str) -> None:
        """
        Issue a one-time reset token and hand it to the delivery callback.

        Unknown emails are accepted silently so callers cannot test for
        registered accounts.
        """
        user_doc = await self._find_user({"email": email})
        if not user_doc:
            logger.info("Password reset requested for unknown email")
            return

        token = generate_reset_token()
        expires = datetime.now(timezone.utc) + timedelta(
            minutes=self.settings.password_reset_expire_minutes
        )

        try:
            await self.users_collection.update_one(
                {"_id": user_doc["_id"]},
                {"$set": {
                    "password_reset_token_hash": hash_reset_token(token),
                    "reset_token_expires": expires,
                }},
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to start password reset: {e}") from e

        await self.deliver_reset(user_doc["email"], token)

    async def confirm_password_reset(self, token: str, new_password: str) -> None:
        """
        Set a new password using a reset token. The token works once.

        Raises:
            ValidationError: If the new password is too short
            AuthError: If the token is unknown or expired
        """
        self._check_password(new_password)

        user_doc = await self._find_user({"password_reset_token_hash": hash_reset_token(token)})
        if not user_doc:
            raise AuthError("Invalid or expired reset token")

        expires = user_doc.get("reset_token_expires")
        if expires is not None and expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        if expires is None or expires < datetime.now(timezone.utc):
            raise AuthError("Invalid or expired reset token")

        try:
            await self.users_collection.update_one(
                {"_id": user_doc["_id"]},
                {"$set": {
                    "hashed_password": hash_password(new_password),
                    "password_reset_token_hash": None,
                    "reset_token_expires": None,
                }},
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to reset password: {e}") from e

        logger.info(f"Password reset completed for user {user_doc['_id']}")

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ObjectId as string

        Returns:
            User model or None if not found
        """
        try:
            oid = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None

        user_doc = await self._find_user({"_id": oid})
        if not user_doc:
            return None

        user_doc["_id"] = str(user_doc["_id"])
        return User(**user_doc)

    # ==================== Helper Methods ====================

    async def _find_user(self, query: dict) -> Optional[dict]:
        try:
            return await self.users_collection.find_one(query)
        except PyMongoError as e:
            raise StoreError(f"Failed to load user: {e}") from e

    def _check_password(self, password: str) -> None:
        if len(password) < self.settings.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.settings.password_min_length} characters",
                {"password": "too short"},
            )

    def _session(self, user_id: str, email: str) -> AuthSession:
        return AuthSession(
            access_token=create_access_token(user_id=user_id, email=email),
            token_type="bearer",
            expires_in=self.settings.jwt_access_token_expire_minutes * 60,
            user_id=user_id,
            email=email,
        )
