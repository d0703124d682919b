"""Authentication and profile schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from ..domain.users import Language
from .base import BoardroomBaseModel


class RegisterRequest(BoardroomBaseModel):
    first_name: str
    last_name: str
    middle_name: str | None = None
    phone_number: str = Field(..., examples=["+14155550000"])
    password: str
    confirm_password: str
    language: Language = Language.RU


class LoginRequest(BoardroomBaseModel):
    phone_number: str
    password: str


class UpdateProfileRequest(BoardroomBaseModel):
    language: Language


class ChangePasswordRequest(BoardroomBaseModel):
    current_password: str
    new_password: str
    confirm_password: str


class UserResponse(BoardroomBaseModel):
    id: UUID
    first_name: str
    last_name: str
    middle_name: str | None = None
    full_name: str
    phone_number: str
    language: Language
    is_superadmin: bool = False
    created_at: datetime

    @field_validator("phone_number", mode="before")
    @classmethod
    def _phone_as_text(cls, value: object) -> str:
        return str(value)


class LoginResponse(BoardroomBaseModel):
    user: UserResponse
    expires_at: datetime
