from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from app.config.config import settings


SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


class TokenManager:
    """Issues and verifies bearer access tokens."""

    @staticmethod
    def create_access_token(
        data: dict, expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed access token.

        Args:
            data: Claims to embed; ``sub`` must be the user id
            expires_delta: Lifetime override, defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        """
        to_encode = data.copy()
        to_encode["sub"] = str(to_encode["sub"])
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """Decode and verify a token; ValueError when invalid or expired."""
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError as e:
            raise ValueError("Invalid or expired token") from e
