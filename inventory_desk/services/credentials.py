"""
Credential store: password checks, registration and password resets.

Every way a login can fail (unknown staff id, disabled account, wrong
password) ends in the same ``AuthError`` and costs one hash verification,
so responses do not reveal which staff ids exist.
"""

import logging
import re
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from inventory_desk.config import Settings, get_settings
from inventory_desk.errors import AuthError, ConflictError, ValidationError
from inventory_desk.models import Role, User, as_utc, utcnow
from inventory_desk.security import (
    dummy_verify,
    hash_password,
    hash_reset_token,
    new_reset_token,
    verify_password,
)
from inventory_desk.services.audit import LoginAudit

logger = logging.getLogger(__name__)

PASSWORD_RULE = re.compile(r"^(?=.*[A-Z])(?=.*\d).{8,}$")
PASSWORD_RULE_TEXT = "Password must be at least 8 characters and include a number and an uppercase letter"


def check_password_policy(password: str) -> None:
    if not PASSWORD_RULE.match(password or ""):
        raise ValidationError(PASSWORD_RULE_TEXT, "WEAK_PASSWORD")


def invalid_credentials() -> AuthError:
    return AuthError("Invalid staff ID or password", "INVALID_CREDENTIALS")


class CredentialStore:
    def __init__(self, session: Session, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    def find(self, staff_id: str) -> User | None:
        return self.session.exec(select(User).where(User.staff_id == staff_id)).first()

    def _failed(self, staff_id: str, user: User | None, origin: dict) -> AuthError:
        LoginAudit(self.session).record(staff_id, success=False, user=user, **origin)
        self.session.commit()
        logger.info("Login failed for %r", staff_id)
        return invalid_credentials()

    def verify(
        self,
        staff_id: str,
        password: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> User:
        """Check a login attempt and write it to the login audit."""
        origin = {"ip_address": ip_address, "user_agent": user_agent}
        staff_id = staff_id.strip()
        user = self.find(staff_id)
        if user is None:
            dummy_verify()
            raise self._failed(staff_id, None, origin)

        # verify before looking at is_active so both paths cost the same
        if not verify_password(password, user.password_hash) or not user.is_active:
            raise self._failed(staff_id, user, origin)

        user.last_login = utcnow()
        self.session.add(user)
        LoginAudit(self.session).record(staff_id, success=True, user=user, **origin)
        self.session.commit()
        self.session.refresh(user)
        logger.info("Login ok for %r (%s)", user.staff_id, user.role.value)
        return user

    def create_user(
        self,
        staff_id: str,
        password: str,
        *,
        role: Role = Role.staff,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> User:
        check_password_policy(password)
        # friendly message first, the unique index settles races
        if self.find(staff_id):
            raise ConflictError("Staff ID already exists", "STAFF_ID_EXISTS")

        user = User(
            staff_id=staff_id,
            password_hash=hash_password(password),
            role=role,
            name=name,
            email=email,
            phone=phone,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError("Staff ID already exists", "STAFF_ID_EXISTS") from e
        self.session.refresh(user)
        logger.info("Created %s account %r", role.value, staff_id)
        return user

    def register(self, staff_id: str, password: str, **profile) -> User:
        """Self-service sign up, always a staff account."""
        return self.create_user(staff_id, password, role=Role.staff, **profile)

    def set_password(self, user: User, new_password: str) -> User:
        check_password_policy(new_password)
        user.password_hash = hash_password(new_password)
        user.reset_token_hash = None
        user.reset_token_expiry = None
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        if not verify_password(current_password, user.password_hash):
            raise AuthError("Current password is incorrect", "INVALID_CREDENTIALS")
        return self.set_password(user, new_password)

    def request_reset(self, staff_id: str) -> str | None:
        """Issue a one-time reset token; ``None`` when the account is unknown."""
        user = self.find(staff_id.strip())
        if user is None or not user.is_active:
            logger.info("Reset requested for unknown staff id %r", staff_id)
            return None

        token, token_hash = new_reset_token()
        user.reset_token_hash = token_hash
        user.reset_token_expiry = utcnow() + timedelta(minutes=self.settings.reset_token_expire_minutes)
        self.session.add(user)
        self.session.commit()
        logger.info("Reset token issued for %r", user.staff_id)
        return token

    def reset_password(self, staff_id: str, token: str, new_password: str) -> User:
        user = self.find(staff_id.strip())
        if (
            user is None
            or user.reset_token_hash is None
            or user.reset_token_hash != hash_reset_token(token)
            or user.reset_token_expiry is None
            or as_utc(user.reset_token_expiry) < utcnow()
        ):
            raise ValidationError("Invalid or expired reset token", "INVALID_RESET_TOKEN")
        return self.set_password(user, new_password)
