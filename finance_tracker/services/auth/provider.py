"""
Authentication Provider

Turns a bearer credential into a user id, and issues those credentials
at login. Passwords are hashed with bcrypt; tokens are signed JWTs whose
subject is the user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from finance_tracker.config import get_settings
from finance_tracker.errors import UnauthenticatedError

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """bcrypt password hashing."""

    def __init__(self, rounds: Optional[int] = None):
        self._rounds = rounds or get_settings().auth.bcrypt_rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(self._encode(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False


class TokenAuthProvider:
    """
    Issues and verifies bearer tokens.

    Stateless: any instance configured with the same secret accepts
    tokens issued by any other.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        ttl_minutes: Optional[int] = None,
    ):
        settings = get_settings().auth
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm
        self._ttl = timedelta(minutes=ttl_minutes or settings.token_ttl_minutes)

    def issue_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> int:
        """
        Return the user id carried by a token.

        Raises:
            UnauthenticatedError: If the token is malformed, tampered
                with or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
            return int(payload["sub"])
        except (jwt.PyJWTError, ValueError, TypeError):
            raise UnauthenticatedError("Invalid token")

    def authenticate(self, authorization: Optional[str]) -> int:
        """
        Resolve an Authorization header value to a user id.

        Accepts "Bearer <token>".
        """
        if not authorization or not authorization.strip():
            raise UnauthenticatedError("No token provided")

        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise UnauthenticatedError("No token provided")

        return self.verify_token(token.strip())
