"""
Tests for authentication: password hashing, tokens and AuthService.

These tests cover:
- Password hashing and JWT helpers (vendorvault.core.security)
- Account creation and sign-in
- Sign-out (token revocation) and session resolution
- Password reset flow
"""

import pytest
from datetime import datetime, timedelta, timezone


# =============================================================================
# Password Hashing Tests (vendorvault.core.security)
# =============================================================================

class TestPasswordHashing:
    """Tests for password hashing functions in vendorvault.core.security."""

    def test_hash_password_returns_bcrypt_hash(self):
        """hash_password should return bcrypt hash."""
        from vendorvault.core.security import hash_password

        password = "TestPassword123!"
        hashed = hash_password(password)

        # bcrypt hashes start with $2b$
        assert hashed.startswith("$2b$")
        assert hashed != password

    def test_verify_password(self):
        """verify_password accepts the right password only."""
        from vendorvault.core.security import hash_password, verify_password

        hashed = hash_password("TestPassword123!")

        assert verify_password("TestPassword123!", hashed) is True
        assert verify_password("WrongPassword123!", hashed) is False

    def test_hash_password_different_each_time(self):
        """hash_password should produce different hashes (salt)."""
        from vendorvault.core.security import hash_password

        assert hash_password("TestPassword123!") != hash_password("TestPassword123!")


class TestTokens:
    """Tests for JWT and reset token helpers."""

    def test_access_token_round_trip(self):
        """Decoded tokens carry subject, email and a session id."""
        from vendorvault.core.security import create_access_token, decode_token

        payload = decode_token(create_access_token("user-1", "vendor@cardshop.com"))

        assert payload["sub"] == "user-1"
        assert payload["email"] == "vendor@cardshop.com"
        assert len(payload["jti"]) == 32

    def test_each_token_has_own_session_id(self):
        """Two tokens for the same user can be revoked separately."""
        from vendorvault.core.security import create_access_token, decode_token

        first = decode_token(create_access_token("user-1", "vendor@cardshop.com"))
        second = decode_token(create_access_token("user-1", "vendor@cardshop.com"))

        assert first["jti"] != second["jti"]

    def test_expired_token_rejected(self):
        """Decoding an expired token raises JWTError."""
        from vendorvault.core.security import JWTError, create_access_token, decode_token

        token = create_access_token("user-1", "vendor@cardshop.com", expires_delta=timedelta(seconds=-5))

        with pytest.raises(JWTError):
            decode_token(token)

    def test_foreign_signature_rejected(self):
        """Tokens signed with another key fail validation."""
        from jose import jwt
        from vendorvault.core.security import JWTError, decode_token

        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm="HS256")

        with pytest.raises(JWTError):
            decode_token(token)

    def test_reset_token_hash_is_stable(self):
        """Reset tokens are random; their digests are deterministic."""
        from vendorvault.core.security import generate_reset_token, hash_reset_token

        token = generate_reset_token()

        assert token != generate_reset_token()
        assert hash_reset_token(token) == hash_reset_token(token)
        assert hash_reset_token(token) != token


# =============================================================================
# Account Creation / Sign-in
# =============================================================================

class TestCreateAccount:
    """Tests for AuthService.create_account."""

    @pytest.mark.asyncio
    async def test_create_account_returns_session(self, auth_service, mock_auth_db, test_user_data):
        """A new account is stored with a hashed password and signed in."""
        from vendorvault.schemas.auth import RegisterRequest

        session = await auth_service.create_account(RegisterRequest(**test_user_data))

        assert session.email == test_user_data["email"]
        assert session.token_type == "bearer"
        assert session.expires_in == 60 * 24 * 60

        doc = await mock_auth_db.users.find_one({"email": test_user_data["email"]})
        assert str(doc["_id"]) == session.user_id
        assert doc["hashed_password"].startswith("$2b$")
        assert doc["status"] == "active"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, auth_service, test_user_data):
        """Registering the same email twice raises AuthError."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))

        with pytest.raises(AuthError):
            await auth_service.create_account(RegisterRequest(**test_user_data))

    @pytest.mark.asyncio
    async def test_password_mismatch_rejected(self, auth_service, mock_auth_db, test_user_data):
        """Mismatched confirmation raises ValidationError without storing anything."""
        from vendorvault.core.exceptions import ValidationError
        from vendorvault.schemas.auth import RegisterRequest

        test_user_data["password_confirm"] = "SomethingElse123!"

        with pytest.raises(ValidationError) as exc_info:
            await auth_service.create_account(RegisterRequest(**test_user_data))

        assert "password_confirm" in exc_info.value.errors
        assert await mock_auth_db.users.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, auth_service, test_user_data):
        """Passwords below the minimum length raise ValidationError."""
        from vendorvault.core.exceptions import ValidationError
        from vendorvault.schemas.auth import RegisterRequest

        test_user_data["password"] = test_user_data["password_confirm"] = "short"

        with pytest.raises(ValidationError):
            await auth_service.create_account(RegisterRequest(**test_user_data))


class TestSignIn:
    """Tests for AuthService.sign_in."""

    @pytest.mark.asyncio
    async def test_sign_in_with_correct_password(self, auth_service, test_user_data):
        """Valid credentials produce a session for the same user."""
        from vendorvault.schemas.auth import LoginRequest, RegisterRequest

        created = await auth_service.create_account(RegisterRequest(**test_user_data))
        session = await auth_service.sign_in(
            LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
        )

        assert session.user_id == created.user_id

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, auth_service, test_user_data):
        """A wrong password raises AuthError."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import LoginRequest, RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))

        with pytest.raises(AuthError):
            await auth_service.sign_in(
                LoginRequest(email=test_user_data["email"], password="WrongPassword123!")
            )

    @pytest.mark.asyncio
    async def test_sign_in_unknown_email(self, auth_service):
        """An unknown email raises AuthError."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import LoginRequest

        with pytest.raises(AuthError):
            await auth_service.sign_in(LoginRequest(email="nobody@cardshop.com", password="Whatever123!"))

    @pytest.mark.asyncio
    async def test_sign_in_disabled_account(self, auth_service, mock_auth_db, test_user_data):
        """Disabled accounts cannot sign in."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import LoginRequest, RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))
        await mock_auth_db.users.update_one(
            {"email": test_user_data["email"]}, {"$set": {"status": "disabled"}}
        )

        with pytest.raises(AuthError):
            await auth_service.sign_in(
                LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
            )


# =============================================================================
# Sessions
# =============================================================================

class TestSessions:
    """Tests for resolve_context and sign_out."""

    @pytest.mark.asyncio
    async def test_resolve_context_for_valid_token(self, auth_service, test_user_data):
        """A valid token resolves to the user's context."""
        from vendorvault.schemas.auth import RegisterRequest

        session = await auth_service.create_account(RegisterRequest(**test_user_data))

        ctx = await auth_service.resolve_context(session.access_token)

        assert ctx.is_authenticated
        assert ctx.user_id == session.user_id
        assert ctx.email == test_user_data["email"]

    @pytest.mark.asyncio
    async def test_missing_token_is_anonymous(self, auth_service):
        """No token means a signed-out context, not an error."""
        ctx = await auth_service.resolve_context(None)

        assert not ctx.is_authenticated

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, auth_service):
        """An undecodable token raises AuthError."""
        from vendorvault.core.exceptions import AuthError

        with pytest.raises(AuthError):
            await auth_service.resolve_context("not-a-jwt")

    @pytest.mark.asyncio
    async def test_token_for_unknown_user_rejected(self, auth_service):
        """A well-signed token for a user that does not exist raises AuthError."""
        from bson import ObjectId
        from vendorvault.core.exceptions import AuthError
        from vendorvault.core.security import create_access_token

        token = create_access_token(str(ObjectId()), "ghost@cardshop.com")

        with pytest.raises(AuthError):
            await auth_service.resolve_context(token)

    @pytest.mark.asyncio
    async def test_sign_out_revokes_token(self, auth_service, mock_auth_db, test_user_data):
        """After sign-out the token no longer resolves."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import RegisterRequest

        session = await auth_service.create_account(RegisterRequest(**test_user_data))

        await auth_service.sign_out(session.access_token)

        with pytest.raises(AuthError):
            await auth_service.resolve_context(session.access_token)
        assert await mock_auth_db.revoked_tokens.count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_sign_out_twice_is_noop(self, auth_service, mock_auth_db, test_user_data):
        """Revoking the same token again changes nothing."""
        from vendorvault.schemas.auth import RegisterRequest

        session = await auth_service.create_account(RegisterRequest(**test_user_data))

        await auth_service.sign_out(session.access_token)
        await auth_service.sign_out(session.access_token)

        assert await mock_auth_db.revoked_tokens.count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_sign_out_only_revokes_that_session(self, auth_service, test_user_data):
        """Other sessions of the same user stay valid."""
        from vendorvault.schemas.auth import LoginRequest, RegisterRequest

        first = await auth_service.create_account(RegisterRequest(**test_user_data))
        second = await auth_service.sign_in(
            LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
        )

        await auth_service.sign_out(first.access_token)

        ctx = await auth_service.resolve_context(second.access_token)
        assert ctx.user_id == second.user_id

    @pytest.mark.asyncio
    async def test_sign_out_expired_token_is_noop(self, auth_service, mock_auth_db):
        """Expired tokens are ignored on sign-out."""
        from vendorvault.core.security import create_access_token

        token = create_access_token("user-1", "vendor@cardshop.com", expires_delta=timedelta(seconds=-5))

        await auth_service.sign_out(token)

        assert await mock_auth_db.revoked_tokens.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_revocation_check_store_failure(self, auth_service, test_user_data):
        """A failing revocation lookup raises StoreError, not a driver error."""
        from unittest.mock import AsyncMock, MagicMock, patch
        from pymongo.errors import PyMongoError
        from vendorvault.core.exceptions import StoreError
        from vendorvault.schemas.auth import RegisterRequest

        session = await auth_service.create_account(RegisterRequest(**test_user_data))
        revoked_tokens = MagicMock()
        revoked_tokens.find_one = AsyncMock(side_effect=PyMongoError("connection reset"))

        with patch.object(auth_service, "revoked_tokens", revoked_tokens):
            with pytest.raises(StoreError):
                await auth_service.resolve_context(session.access_token)


# =============================================================================
# Password Reset
# =============================================================================

class TestPasswordReset:
    """Tests for send_password_reset / confirm_password_reset."""

    @pytest.mark.asyncio
    async def test_reset_flow(self, auth_service, reset_outbox, test_user_data):
        """A delivered token sets a new password exactly once."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import LoginRequest, RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))

        await auth_service.send_password_reset(test_user_data["email"])
        assert len(reset_outbox) == 1
        email, token = reset_outbox[0]
        assert email == test_user_data["email"]

        await auth_service.confirm_password_reset(token, "BrandNewPassword456!")

        session = await auth_service.sign_in(
            LoginRequest(email=test_user_data["email"], password="BrandNewPassword456!")
        )
        assert session.email == test_user_data["email"]

        with pytest.raises(AuthError):
            await auth_service.sign_in(
                LoginRequest(email=test_user_data["email"], password=test_user_data["password"])
            )

        with pytest.raises(AuthError):
            await auth_service.confirm_password_reset(token, "AnotherPassword789!")

    @pytest.mark.asyncio
    async def test_only_digest_is_stored(self, auth_service, mock_auth_db, reset_outbox, test_user_data):
        """The raw reset token never reaches the store."""
        from vendorvault.core.security import hash_reset_token
        from vendorvault.schemas.auth import RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))
        await auth_service.send_password_reset(test_user_data["email"])
        _, token = reset_outbox[0]

        doc = await mock_auth_db.users.find_one({"email": test_user_data["email"]})
        assert doc["password_reset_token_hash"] == hash_reset_token(token)
        assert token not in doc.values()

    @pytest.mark.asyncio
    async def test_unknown_email_is_silent(self, auth_service, reset_outbox):
        """Unknown emails produce no error and no delivery."""
        await auth_service.send_password_reset("nobody@cardshop.com")

        assert reset_outbox == []

    @pytest.mark.asyncio
    async def test_expired_reset_token_rejected(self, auth_service, mock_auth_db, reset_outbox, test_user_data):
        """Reset tokens stop working after their expiry."""
        from vendorvault.core.exceptions import AuthError
        from vendorvault.schemas.auth import RegisterRequest

        await auth_service.create_account(RegisterRequest(**test_user_data))
        await auth_service.send_password_reset(test_user_data["email"])
        _, token = reset_outbox[0]
        await mock_auth_db.users.update_one(
            {"email": test_user_data["email"]},
            {"$set": {"reset_token_expires": datetime.now(timezone.utc) - timedelta(minutes=1)}},
        )

        with pytest.raises(AuthError):
            await auth_service.confirm_password_reset(token, "BrandNewPassword456!")

    @pytest.mark.asyncio
    async def test_unknown_reset_token_rejected(self, auth_service):
        """A token that was never issued raises AuthError."""
        from vendorvault.core.exceptions import AuthError

        with pytest.raises(AuthError):
            await auth_service.confirm_password_reset("made-up-token", "BrandNewPassword456!")

    @pytest.mark.asyncio
    async def test_short_new_password_rejected(self, auth_service):
        """The new password must meet the minimum length."""
        from vendorvault.core.exceptions import ValidationError

        with pytest.raises(ValidationError):
            await auth_service.confirm_password_reset("any-token", "short")
