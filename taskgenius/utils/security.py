import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from ..core.config import Settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # unknown or malformed hash
        return False


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str


class CredentialService:
    """Password hashing and signed bearer tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.issuer = settings.jwt_issuer
        self.audience = settings.jwt_audience
        self.expire_minutes = settings.access_token_expire_minutes

    def hash_password(self, password: str) -> str:
        return get_password_hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)

    def issue_token(
        self,
        user_id: int,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> IssuedToken:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else timedelta(minutes=self.expire_minutes))
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": expire,
        }
        encoded = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=encoded, expires_at=expire)

    def decode_token(self, token: str) -> Optional[TokenClaims]:
        """
        Verify signature, issuer, audience and expiry.

        Returns:
            TokenClaims if the token is valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            return None

        try:
            return TokenClaims(user_id=int(payload["sub"]), email=payload["email"])
        except (KeyError, TypeError, ValueError):
            logger.debug("Token rejected: missing or malformed claims")
            return None

    def validate_token(self, token: str) -> bool:
        return self.decode_token(token) is not None
