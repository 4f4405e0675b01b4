"""HTTP route definitions for account signup, sessions, verification and avatars."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from pydantic import BaseModel, EmailStr, Field

from ..domain.account import Account
from ..domain.avatars import AvatarPipeline
from ..domain.contracts import AvatarUpload, CreateAccountInput
from ..domain.service import AccountService
from ..security.auth_gate import AuthenticatedAccount
from .deps import get_avatar_pipeline, get_service, require_account

router = APIRouter(prefix="/api/users", tags=["users"])


class UserResponse(BaseModel):
    """Serialised representation of an `Account` aggregate."""

    account_id: str
    email: str
    subscription: str
    avatar_url: str | None
    verified: bool

    @classmethod
    def from_domain(cls, account: Account) -> "UserResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            account_id=account.account_id,
            email=account.email,
            subscription=account.subscription.value,
            avatar_url=account.avatar_url,
            verified=account.verified,
        )


class UserEnvelope(BaseModel):
    user: UserResponse


class SignupRequest(BaseModel):
    """Credentials accepted when registering an account."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Session token issued after a successful login."""

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class AvatarResponse(BaseModel):
    avatar_url: str


@router.post("/signup", response_model=UserEnvelope)
def signup(
    payload: SignupRequest,
    service: AccountService = Depends(get_service),
) -> UserEnvelope:
    """Register an unverified account and send its verification email."""
    account = service.signup(CreateAccountInput(email=payload.email, password=payload.password))
    return UserEnvelope(user=UserResponse.from_domain(account))


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_service),
) -> LoginResponse:
    result = service.login(payload.email, payload.password)
    return LoginResponse(
        token=result.token,
        expires_in=result.expires_in,
        user=UserResponse.from_domain(result.account),
    )


@router.get("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    identity: AuthenticatedAccount = Depends(require_account),
    service: AccountService = Depends(get_service),
) -> Response:
    """Clear the caller's session token."""
    service.logout(identity.account)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=UserEnvelope)
def current(identity: AuthenticatedAccount = Depends(require_account)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.from_domain(identity.account))


@router.patch("/avatars", response_model=AvatarResponse)
def update_avatar(
    avatar: UploadFile = File(...),
    identity: AuthenticatedAccount = Depends(require_account),
    pipeline: AvatarPipeline = Depends(get_avatar_pipeline),
) -> AvatarResponse:
    """Replace the caller's avatar with a resized copy of the uploaded image."""
    avatar_url = pipeline.ingest(
        AvatarUpload(
            account_id=identity.account_id,
            filename=avatar.filename or "avatar",
            stream=avatar.file,
            previous_url=identity.account.avatar_url,
        )
    )
    return AvatarResponse(avatar_url=avatar_url)


@router.get("/verify/{verification_token}", response_model=MessageResponse)
def confirm_verification(
    verification_token: str,
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    service.verification.confirm(verification_token)
    return MessageResponse(message="Verification successful")


@router.post("/verify", response_model=MessageResponse)
def resend_verification(
    payload: ResendVerificationRequest,
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    """Send the verification link again for an account that is not yet verified."""
    service.verification.resend(payload.email)
    return MessageResponse(message="Verification email sent")
