import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from inventory_desk.config import Settings, get_settings
from inventory_desk.db import get_session
from inventory_desk.errors import AuthError, ForbiddenError
from inventory_desk.models import Role, User
from inventory_desk.security import TokenExpired, TokenInvalid, validate_token
from inventory_desk.services.notifier import Notifier, NullNotifier

logger = logging.getLogger(__name__)

# auto_error=False: missing tokens get our own error body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """The settings the running app was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


@dataclass(frozen=True)
class Principal:
    """Identity resolved for the current request."""

    user_id: int
    staff_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


def resolve_principal(token: str | None, session: Session, settings: Settings | None = None) -> Principal:
    if not token:
        raise AuthError("Not logged in or session has ended, please log in again", "NOT_AUTHENTICATED")

    try:
        claims = validate_token(token, settings)
    except TokenExpired:
        raise AuthError("Token has expired, please log in again", "TOKEN_EXPIRED")
    except TokenInvalid:
        raise AuthError("Token is invalid, please log in again", "INVALID_TOKEN")

    # token checks out but the account may have been disabled since
    user = session.get(User, claims.user_id)
    if not user or not user.is_active:
        raise AuthError("Token is invalid, please log in again", "INVALID_TOKEN")

    return Principal(user_id=user.id, staff_id=user.staff_id, role=user.role)


def get_principal(
    token: str | None = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> Principal:
    return resolve_principal(token, session, settings)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        logger.warning("Denied admin route to %s", principal.staff_id)
        raise ForbiddenError("Admin privileges required")
    return principal


def get_notifier(request: Request) -> Notifier:
    return getattr(request.app.state, "notifier", None) or NullNotifier()
