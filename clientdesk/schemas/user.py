from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_PATTERN = r"^[0-9+\-().\s]*$"


class RoleEnum(str, Enum):
    admin = "admin"
    client = "client"


class GenderEnum(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class StatusEnum(str, Enum):
    active = "active"
    inactive = "inactive"
    pending = "pending"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class _BlankToNone(BaseModel):
    """Form posts send empty strings for untouched optional inputs."""

    @field_validator("phone", "address", "age", "gender", "status", mode="before", check_fields=False)
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UserCreate(_BlankToNone):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    role: RoleEnum
    age: int | None = Field(None, ge=0, le=120)
    gender: GenderEnum | None = None
    status: StatusEnum | None = None


class UserUpdate(UserCreate):
    pass


class ClientCreate(_BlankToNone):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    age: int | None = Field(None, ge=0, le=120)
    gender: GenderEnum | None = None
    status: StatusEnum | None = None


class ClientUpdate(_BlankToNone):
    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    age: int | None = Field(None, ge=0, le=120)
    gender: GenderEnum | None = None
    status: StatusEnum | None = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _required_when_given(cls, value):
        if value is None:
            raise ValueError("This field cannot be cleared")
        return value


class ProfileUpdate(BaseModel):
    name: str | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    photo_url: str | None = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


class UserResponse(BaseModel):
    id: int
    role: str
    first_name: str | None
    last_name: str | None
    name: str | None
    email: EmailStr
    phone: str | None
    address: str | None
    age: int | None
    gender: str | None
    status: str | None
    photo_url: str | None
    join_date: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}
