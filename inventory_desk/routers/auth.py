from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from inventory_desk.config import Settings
from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_app_settings, get_notifier, get_principal
from inventory_desk.models import User
from inventory_desk.schemas import (
    LoginRequest,
    LoginResponse,
    Message,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    ResetPassword,
    ResetRequest,
    ResetRequested,
    Token,
    UserRead,
)
from inventory_desk.security import issue_token
from inventory_desk.services.credentials import CredentialStore
from inventory_desk.services.notifier import Notifier
from inventory_desk.services.users import UserRepository

router = APIRouter(prefix="/api/auth", tags=["auth"])


def credential_store(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> CredentialStore:
    return CredentialStore(session, settings)


def _issue(user: User, settings: Settings) -> str:
    return issue_token(user.id, user.staff_id, user.role, settings=settings)


def _origin(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/login", response_model=LoginResponse)
def login(
    data: LoginRequest,
    request: Request,
    store: CredentialStore = Depends(credential_store),
):
    user = store.verify(data.staff_id, data.password, **_origin(request))
    return {"token": _issue(user, store.settings), "token_type": "bearer", "user": user}


@router.post("/token", response_model=Token)
def login_form(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    store: CredentialStore = Depends(credential_store),
):
    # same check as /login, for the OAuth2 "Authorize" button in /docs
    user = store.verify(form_data.username, form_data.password, **_origin(request))
    return {"access_token": _issue(user, store.settings), "token_type": "bearer"}


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    store: CredentialStore = Depends(credential_store),
    notifier: Notifier = Depends(get_notifier),
):
    user = store.register(data.staff_id, data.password, name=data.name, email=data.email)
    notifier.publish("user:created", UserRead.model_validate(user).model_dump(mode="json", by_alias=True))
    return user


@router.get("/me", response_model=UserRead)
def me(principal: Principal = Depends(get_principal), session: Session = Depends(get_session)):
    return session.get(User, principal.user_id)


@router.put("/me", response_model=UserRead)
def update_me(
    data: ProfileUpdate,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    repo = UserRepository(session, principal, notifier)
    return repo.update(principal.user_id, data.model_dump(exclude_unset=True))


@router.post("/me/password", response_model=Message)
def change_password(
    data: PasswordChange,
    principal: Principal = Depends(get_principal),
    store: CredentialStore = Depends(credential_store),
):
    user = store.session.get(User, principal.user_id)
    store.change_password(user, data.current_password, data.new_password)
    return {"message": "Password updated successfully"}


@router.post("/request-reset", response_model=ResetRequested, response_model_exclude_none=True)
def request_reset(data: ResetRequest, store: CredentialStore = Depends(credential_store)):
    token = store.request_reset(data.staff_id)
    answer = {"message": "If the staff ID exists, a reset token has been issued"}
    # no mail delivery; hand the token back outside production
    if token and store.settings.env != "production":
        answer["reset_token"] = token
    return answer


@router.post("/reset-password", response_model=Message)
def reset_password(data: ResetPassword, store: CredentialStore = Depends(credential_store)):
    store.reset_password(data.staff_id, data.token, data.new_password)
    return {"message": "Password updated successfully"}
