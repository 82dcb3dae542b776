# datavista/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field, ValidationError

from datavista.core.exceptions import Forbidden, Unauthenticated
from datavista.models.model import Role

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7
BCRYPT_ROUNDS = 10
BEARER_PREFIX = "Bearer "


class TokenClaims(BaseModel):
    """Decoded access token payload"""
    subject_id: int = Field(..., alias="subjectId")
    role: Role


class AuthContext(BaseModel):
    """Identity of the caller; both fields are None for anonymous requests"""
    subject_id: Optional[int] = None
    role: Optional[Role] = None

    @property
    def is_authenticated(self) -> bool:
        return self.subject_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN


class CredentialService:
    """Password hashing and token signing with a server-held secret"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = ALGORITHM,
        expire_days: int = ACCESS_TOKEN_EXPIRE_DAYS,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_delta = timedelta(days=expire_days)
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    @classmethod
    def from_settings(cls, settings) -> "CredentialService":
        return cls(
            settings.secret_key,
            expire_days=settings.ACCESS_TOKEN_EXPIRE_DAYS,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )

    def hash_password(self, password: str) -> str:
        """Get password hash"""
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify that the plain password matches the hashed password"""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            # Unrecognised or malformed digest
            return False

    def create_access_token(self, subject_id: int, role: Role, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        expire = datetime.now(timezone.utc) + (self.expire_delta if expires_delta is None else expires_delta)
        to_encode = {
            "subjectId": subject_id,
            "role": Role(role).value,
            "exp": expire,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Optional[TokenClaims]:
        """Return the token claims, or None when the token cannot be trusted"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return TokenClaims(**payload)
        except (JWTError, ValidationError, TypeError) as e:
            logger.debug(f"Token verification failed: {str(e)}")
            return None


def resolve_context(authorization: Optional[str], credentials: CredentialService) -> AuthContext:
    """Build the request identity from an ``Authorization`` header value"""
    if not authorization:
        return AuthContext()

    token = authorization[len(BEARER_PREFIX):] if authorization.startswith(BEARER_PREFIX) else authorization
    claims = credentials.decode_access_token(token.strip())

    if claims is None:
        return AuthContext()

    return AuthContext(subject_id=claims.subject_id, role=claims.role)


def require_authenticated(context: AuthContext) -> None:
    if not context.is_authenticated:
        raise Unauthenticated()


def require_admin(context: AuthContext) -> None:
    require_authenticated(context)
    if context.role != Role.ADMIN:
        raise Forbidden()
