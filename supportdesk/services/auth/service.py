"""Session/token service - JWT access and refresh tokens with bcrypt passwords."""

import asyncio
from datetime import timedelta
from typing import Any
from uuid import uuid4

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from supportdesk.core.exceptions import (
    AccountDisabled,
    EmailAlreadyRegistered,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidResetToken,
    InvalidToken,
)
from supportdesk.core.timeutils import utcnow
from supportdesk.models import AuthSession, AuthTokens, User, UserPublic
from supportdesk.storage.base import StorageBackend
from supportdesk.storage.keyvalue import KeyValueStore

logger = structlog.get_logger()

REFRESH_TOKEN_TYPE = "refresh"
RESET_TOKEN_TYPE = "password_reset"


def refresh_token_key(user_id: str) -> str:
    return f"refresh_token:{user_id}"


def reset_token_key(user_id: str) -> str:
    return f"reset_token:{user_id}"


class AuthService:
    """Issues and verifies tokens for operator accounts.

    Only the most recently issued refresh token (and reset token) per user
    is valid; each is kept in the key-value store with a TTL matching the
    token's lifetime and overwritten on reissue.
    """

    def __init__(
        self,
        storage: StorageBackend,
        kv_store: KeyValueStore,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        access_token_ttl: int = 60 * 60 * 24 * 7,
        refresh_token_ttl: int = 60 * 60 * 24 * 30,
        reset_token_ttl: int = 60 * 60,
        bcrypt_rounds: int = 12,
    ) -> None:
        self.storage = storage
        self.kv = kv_store
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.reset_token_ttl = reset_token_ttl
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    # ==================== Accounts ====================

    async def register(self, email: str, password: str, name: str) -> AuthSession:
        """Create an account and sign it in.

        Raises:
            EmailAlreadyRegistered: If the email already has an account.
        """
        if await self.storage.get_user_by_email(email):
            raise EmailAlreadyRegistered(email)

        user = User(
            id=str(uuid4()),
            email=email,
            password_hash=await self.hash_password(password),
            name=name,
        )
        await self.storage.save_user(user)

        tokens = await self.issue_tokens(user)

        logger.info("User registered", user_id=user.id)
        return AuthSession(user=user.to_public(), tokens=tokens)

    async def login(self, email: str, password: str) -> AuthSession:
        """Check credentials and issue a token pair.

        Raises:
            InvalidCredentials: Unknown email or wrong password.
            AccountDisabled: The account is inactive.
        """
        user = await self.storage.get_user_by_email(email)
        if user is None:
            raise InvalidCredentials()

        if not user.is_active:
            raise AccountDisabled()

        if not await self.verify_password(password, user.password_hash):
            raise InvalidCredentials()

        tokens = await self.issue_tokens(user)

        logger.info("User logged in", user_id=user.id)
        return AuthSession(user=user.to_public(), tokens=tokens)

    # ==================== Tokens ====================

    async def issue_tokens(self, user: User | UserPublic) -> AuthTokens:
        """Sign a new pair and make its refresh token the only valid one."""
        access_token = self._encode(
            {"sub": user.id, "email": user.email},
            self.access_token_ttl,
        )
        refresh_token = self._encode(
            {"sub": user.id, "type": REFRESH_TOKEN_TYPE},
            self.refresh_token_ttl,
        )

        await self.kv.set(refresh_token_key(user.id), refresh_token, ttl_seconds=self.refresh_token_ttl)

        return AuthTokens(access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, refresh_token: str) -> AuthTokens:
        """Exchange the current refresh token for a new pair.

        Raises:
            InvalidRefreshToken: Bad signature, expired, wrong type or
                superseded by a newer token; or the user is gone or inactive.
        """
        try:
            payload = self._decode(refresh_token)
        except JWTError as e:
            raise InvalidRefreshToken() from e

        user_id = payload.get("sub")
        if payload.get("type") != REFRESH_TOKEN_TYPE or not user_id:
            raise InvalidRefreshToken()

        stored = await self.kv.get(refresh_token_key(user_id))
        if stored is None or stored != refresh_token:
            logger.warning("Refresh token rejected", user_id=user_id)
            raise InvalidRefreshToken()

        user = await self.storage.get_user(user_id)
        if user is None or not user.is_active:
            raise InvalidRefreshToken()

        tokens = await self.issue_tokens(user)

        logger.info("Token refreshed", user_id=user_id)
        return tokens

    async def logout(self, user_id: str) -> None:
        await self.kv.delete(refresh_token_key(user_id))
        logger.info("User logged out", user_id=user_id)

    async def verify(self, access_token: str) -> UserPublic:
        """Resolve an access token to its user.

        Raises:
            InvalidToken: Bad or expired token, refresh/reset token, or a
                missing or inactive user.
        """
        try:
            payload = self._decode(access_token)
        except JWTError as e:
            raise InvalidToken() from e

        if payload.get("type"):
            raise InvalidToken()

        user = await self.storage.get_user(payload.get("sub", ""))
        if user is None or not user.is_active:
            raise InvalidToken("User not found or inactive")

        return user.to_public()

    # ==================== Password reset ====================

    async def forgot_password(self, email: str) -> None:
        """Store a reset token for a known email. Never reveals whether it exists."""
        user = await self.storage.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        reset_token = self._encode(
            {"sub": user.id, "type": RESET_TOKEN_TYPE},
            self.reset_token_ttl,
        )
        await self.kv.set(reset_token_key(user.id), reset_token, ttl_seconds=self.reset_token_ttl)

        logger.info("Password reset requested", user_id=user.id)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Replace the password of the user the reset token was issued to.

        Raises:
            InvalidResetToken: Bad or expired token, wrong type, or not the
                currently stored reset token.
        """
        try:
            payload = self._decode(token)
        except JWTError as e:
            raise InvalidResetToken() from e

        user_id = payload.get("sub")
        if payload.get("type") != RESET_TOKEN_TYPE or not user_id:
            raise InvalidResetToken()

        stored = await self.kv.get(reset_token_key(user_id))
        if stored is None or stored != token:
            raise InvalidResetToken()

        user = await self.storage.get_user(user_id)
        if user is None:
            raise InvalidResetToken()

        user.password_hash = await self.hash_password(new_password)
        await self.storage.save_user(user)
        await self.kv.delete(reset_token_key(user_id))

        logger.info("Password reset", user_id=user_id)

    # ==================== Helpers ====================

    async def hash_password(self, password: str) -> str:
        # bcrypt is CPU bound; keep it off the event loop
        return await asyncio.to_thread(self._pwd_context.hash, password)

    async def verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._pwd_context.verify, password, password_hash)

    def _encode(self, claims: dict[str, Any], ttl_seconds: int) -> str:
        now = utcnow()
        payload = {
            **claims,
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
            "jti": str(uuid4()),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        return jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
