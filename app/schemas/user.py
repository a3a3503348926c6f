from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, StringConstraints
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        coerce_numbers_to_str = True


# identity fields are trimmed; passwords are kept exactly as sent
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


class RegisterRequest(CamelModel):
    """Raw registration body; role-specific rules live in user_service.parse_registration."""
    name: Optional[Trimmed] = None
    role: Optional[Trimmed] = None
    email: Optional[Trimmed] = None
    password: Optional[str] = None
    phone_number: Optional[Trimmed] = None


class LoginRequest(CamelModel):
    email: Optional[Trimmed] = None
    password: Optional[str] = None
    phone_number: Optional[Trimmed] = None


class AdminRegistration(CamelModel):
    role: Literal["admin"] = "admin"
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)


class UserRegistration(CamelModel):
    role: Literal["user"] = "user"
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., pattern=r"^[0-9]{10}$")


Registration = Annotated[Union[AdminRegistration, UserRegistration], Field(discriminator="role")]


class UserResponse(CamelModel):
    id: str
    name: str
    role: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class AuthenticatedUser(UserResponse):
    token: str


class TokenData(BaseModel):
    user_id: Optional[str] = None
