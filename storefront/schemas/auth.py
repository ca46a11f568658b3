"""Auth request/response schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from storefront.db.models.account import AccountRole

PASSWORDS_DIFFER = "Passwords are not the same!"


class SignUpRequest(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    # Presence is checked by the sign-in flow so missing fields surface as MissingCredentials
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=8)
    passwordConfirm: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.passwordConfirm is not None and self.passwordConfirm != self.password:
            raise ValueError(PASSWORDS_DIFFER)
        return self


class UpdatePasswordRequest(BaseModel):
    passwordCurrent: str
    newPassword: str = Field(min_length=8)
    passwordConfirm: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.passwordConfirm is not None and self.passwordConfirm != self.newPassword:
            raise ValueError(PASSWORDS_DIFFER)
        return self


class AccountResponse(BaseModel):
    id: UUID
    email: Optional[str]
    username: str
    role: AccountRole
    photo: Optional[str] = Field(default=None, validation_alias="photo_url")
    provider: Optional[str] = None
    createdAt: Optional[datetime] = Field(default=None, validation_alias="created_at")

    model_config = {"from_attributes": True, "populate_by_name": True}


class AccountData(BaseModel):
    account: Optional[AccountResponse]


class SessionResponse(BaseModel):
    status: str = "success"
    token: str
    data: AccountData


class AccountEnvelope(BaseModel):
    status: str = "success"
    data: AccountData


class MessageResponse(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class ProfileValue(BaseModel):
    value: str


class ExternalProfile(BaseModel):
    """Identity handed over by an OAuth provider after the code exchange."""

    id: str
    provider: str
    displayName: str
    emails: Optional[List[ProfileValue]] = None
    photos: Optional[List[ProfileValue]] = None

    @property
    def email(self) -> Optional[str]:
        return self.emails[0].value if self.emails else None

    @property
    def photo(self) -> Optional[str]:
        return self.photos[0].value if self.photos else None
