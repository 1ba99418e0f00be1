import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from profislots.config import get_settings
from profislots.errors import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    """Authenticated salon account, passed explicitly to every handler."""
    user_id: int
    email: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: int, email: str, now: Optional[datetime] = None):
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(days=settings.jwt_expire_days)
    payload = {"sub": str(user_id), "email": email, "exp": expires_at}
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_session(token: str) -> SessionContext:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        user_id = int(payload["sub"])
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    session = SessionContext(user_id=user_id, email=payload.get("email", ""), expires_at=expires_at)
    # jose проверяет exp сам, но контекст живёт дольше одного вызова
    if session.is_expired():
        raise AuthenticationError("Token expired")
    return session


async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> SessionContext:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return decode_session(credentials.credentials)
