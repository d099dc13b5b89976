from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import TOKEN_EXPIRE_MINUTES
from errors import InvalidToken, Unauthenticated

ALGORITHM = "HS256"
IDENTITY_CLAIMS = ("id", "username", "email")

# Missing tokens are reported by verify_token, not by FastAPI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class AuthGate:
    """Password hashing and signed identity tokens.

    The signing key is fixed for the lifetime of the gate, which lives as
    long as the application.
    """

    def __init__(
        self,
        secret_key: str,
        expire_minutes: int = TOKEN_EXPIRE_MINUTES,
        algorithm: str = ALGORITHM,
        hash_rounds: Optional[int] = None,
    ):
        self.secret_key = secret_key
        self.expire_minutes = expire_minutes
        self.algorithm = algorithm
        # pbkdf2_sha256 does not require external C extensions
        options = {"pbkdf2_sha256__default_rounds": hash_rounds} if hash_rounds else {}
        self.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", **options)

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        return self.pwd_context.verify(password, hashed)

    def issue_token(self, identity: dict, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {k: identity[k] for k in IDENTITY_CLAIMS}
        to_encode["iat"] = now
        to_encode["exp"] = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> dict:
        """Return the identity claims of a valid token.

        The claims are trusted as issued; the user record is not re-read.
        """
        if not token:
            raise Unauthenticated("Access token required")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidToken("Invalid or expired token")
        if any(payload.get(k) is None for k in IDENTITY_CLAIMS):
            raise InvalidToken("Invalid or expired token")
        return {k: payload[k] for k in IDENTITY_CLAIMS}


def get_auth(request: Request) -> AuthGate:
    return request.app.state.auth


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    auth: AuthGate = Depends(get_auth),
) -> dict:
    return auth.verify_token(token)
