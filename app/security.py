"""
Token issuing / verification and password hashing.

Both collaborators are plain objects built once at startup (see
``app.services.build_services``) and handed to the services that need
them.
"""
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from app.errors import AuthError


class TokenManager:
    """Signs and verifies HS256 JWTs whose ``sub`` claim is the user id."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_days: int = 30) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(days=expire_days)

    def issue(self, subject: str) -> str:
        payload = {
            "sub": subject,
            "exp": datetime.now(timezone.utc) + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthError("token expired")
        except jwt.InvalidTokenError:
            raise AuthError("invalid token")

        subject = payload.get("sub")
        if not subject:
            raise AuthError("invalid token")
        return subject


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def matches(self, plaintext: str, digest: str) -> bool:
        return self._context.verify(plaintext, digest)
