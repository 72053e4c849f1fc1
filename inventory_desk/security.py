import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from inventory_desk.config import Settings, get_settings
from inventory_desk.models import Role

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    staff_id: str
    role: Role
    issued_at: int
    expires_at: int


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def dummy_verify() -> None:
    # burn the same time as a real verify when the account does not exist
    pwd_context.dummy_verify()


def new_reset_token() -> tuple[str, str]:
    """Return ``(token, sha256_hex)``; only the hash is persisted."""
    token = secrets.token_urlsafe(24)
    return token, hash_reset_token(token)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(
    user_id: int,
    staff_id: str,
    role: Role | str,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    iat = int(now.timestamp())
    exp = int((now + expires_delta).timestamp())

    payload = {
        "sub": str(user_id),
        "staff_id": staff_id,
        "role": Role(role).value,
        "iat": iat,
        "exp": exp,
        "jti": uuid4().hex,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def validate_token(token: str, settings: Settings | None = None) -> TokenClaims:
    """Check signature and expiry, then the claims this app relies on."""
    secret = (settings or get_settings()).secret_key
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e
    except JWTError as e:
        raise TokenInvalid("Token signature or format is invalid") from e

    if payload.get("type") != "access":
        raise TokenInvalid("Invalid token type")

    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            staff_id=str(payload["staff_id"]),
            role=Role(payload["role"]),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TokenInvalid("Token claims are incomplete") from e
