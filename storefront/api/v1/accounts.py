"""Account auth endpoints: signup, login, logout, password reset/update, me."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status

from storefront.core.exceptions import AccountNotFound
from storefront.db.models.account import Account, AccountRole
from storefront.dependencies import (
    Auth,
    CurrentAccount,
    CurrentAccountOptional,
    SettingsDep,
    require_roles,
)
from storefront.schemas.auth import (
    AccountData,
    AccountEnvelope,
    AccountResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignUpRequest,
    UpdatePasswordRequest,
)
from storefront.services.session import Session, is_secure_request

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _send_session(session: Session, response: Response) -> SessionResponse:
    session.cookie.apply(response)
    return SessionResponse(
        token=session.token,
        data=AccountData(account=AccountResponse.model_validate(session.account)),
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignUpRequest, request: Request, response: Response, auth: Auth):
    session = await auth.sign_up(
        body.username, body.email, body.password, secure=is_secure_request(request)
    )
    return _send_session(session, response)


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, request: Request, response: Response, auth: Auth):
    session = await auth.sign_in(body.email, body.password, secure=is_secure_request(request))
    return _send_session(session, response)


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response, auth: Auth):
    auth.sign_out().apply(response)
    return MessageResponse()


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, auth: Auth, settings: SettingsDep):
    """Email a single-use reset link for the account."""
    reset_base = f"{settings.client_url.rstrip('/')}{settings.password_reset_link_path}"
    await auth.forgot_password(body.email, reset_base)
    return MessageResponse(message="Token sent to email!")


@router.patch("/reset-password/{token}", response_model=SessionResponse)
async def reset_password(
    token: str, body: ResetPasswordRequest, request: Request, response: Response, auth: Auth
):
    """Set a new password using the emailed token, then log the account in."""
    session = await auth.reset_password(token, body.password, secure=is_secure_request(request))
    return _send_session(session, response)


@router.patch("/update-my-password", response_model=SessionResponse)
async def update_my_password(
    body: UpdatePasswordRequest,
    account: CurrentAccount,
    request: Request,
    response: Response,
    auth: Auth,
):
    session = await auth.update_password(
        account, body.passwordCurrent, body.newPassword, secure=is_secure_request(request)
    )
    return _send_session(session, response)


@router.get("/me", response_model=AccountEnvelope)
def me(account: CurrentAccount):
    return AccountEnvelope(data=AccountData(account=AccountResponse.model_validate(account)))


@router.get("/session", response_model=AccountEnvelope)
def current_session(account: CurrentAccountOptional):
    """Signed-in account for page rendering; null when anonymous."""
    data = AccountData(account=AccountResponse.model_validate(account) if account else None)
    return AccountEnvelope(data=data)


@router.get("/{account_id}", response_model=AccountEnvelope)
async def get_account(
    account_id: UUID,
    admin: Annotated[Account, Depends(require_roles(AccountRole.ADMIN))],
    auth: Auth,
):
    account = await auth.store.find_by_id(account_id)
    if account is None:
        raise AccountNotFound("No account found with that ID")
    return AccountEnvelope(data=AccountData(account=AccountResponse.model_validate(account)))
