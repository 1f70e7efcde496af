from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.core.tokens import TokenManager
from app.core.utils import logger
from app.models.user_model import User
from app.repositories.user_repo import UserRepository


ph = PasswordHasher(
    time_cost=3, memory_cost=65536, parallelism=1, hash_len=32, salt_len=16
)

security = HTTPBearer(
    scheme_name="Bearer Token", description="Enter your JWT token", auto_error=False
)

UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def get_password_hash(password: str) -> str:
    """Hash a plaintext password using Argon2"""
    try:
        return ph.hash(password)
    except HashingError as e:
        logger.log_error({"event": "password_hashing_failed", "error": str(e)})
        raise HTTPException(status_code=500, detail="Password hashing failed") from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against an Argon2 hash"""
    try:
        return ph.verify(hashed_password, plain_password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError) as e:
        logger.log_error({"event": "password_verification_error", "error": str(e)})
        return False


def needs_rehash(hashed_password: str) -> bool:
    try:
        return ph.check_needs_rehash(hashed_password)
    except InvalidHashError:
        return True


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=UNAUTHORIZED_HEADERS,
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to an active user.

    Raises:
        HTTPException: 401 for a missing, invalid or expired token, an unknown
            user or a deactivated account
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = TokenManager.decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise ValueError("Invalid token type")
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError) as e:
        logger.log_security_event(
            {
                "event": "invalid_auth_credentials",
                "error": str(e),
                "path": request.url.path,
                "ip_address": request.client.host if request.client else None,
            }
        )
        raise _unauthorized("Invalid authentication credentials")

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        logger.log_security_event(
            {"event": "inactive_user_token_used", "user_id": user.id}
        )
        raise _unauthorized("Account is inactive")

    return user
