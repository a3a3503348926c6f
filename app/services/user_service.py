import logging
import re
from typing import List, Optional, Union

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from app.core.security import get_password_hash, verify_password
from app.enums.user_roles import UserRole
from app.models.user import User
from app.schemas.user import (
    AdminRegistration,
    LoginRequest,
    RegisterRequest,
    Registration,
    UserRegistration,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")

_registration_adapter = TypeAdapter(Registration)


class RegistrationError(ValueError):
    """Registration payload rejected; the message is client-facing."""


class LoginError(ValueError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class DuplicateAccountError(ValueError):
    """The role's identity key is already taken."""


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone_number: str) -> bool:
    return bool(PHONE_PATTERN.match(phone_number))


# --------------------------
# REGISTRATION
# --------------------------
def parse_registration(data: RegisterRequest) -> Union[AdminRegistration, UserRegistration]:
    """
    Turn the raw body into the role's identity variant.
    Checks run in a fixed order and the first failure is reported.
    """
    if not data.name:
        raise RegistrationError("Name is required")

    if data.role not in (UserRole.admin.value, UserRole.user.value):
        raise RegistrationError("Valid role (admin or user) is required")

    if data.role == UserRole.admin.value:
        if not data.email:
            raise RegistrationError("Email is required for admin accounts")
        if not data.password:
            raise RegistrationError("Password is required for admin accounts")
        if len(data.password) < 6:
            raise RegistrationError("Password must be at least 6 characters long")
        if not is_valid_email(data.email):
            raise RegistrationError("Invalid email format")
        payload = {"role": data.role, "name": data.name, "email": data.email.lower(), "password": data.password}
    else:
        if not data.phone_number:
            raise RegistrationError("Phone number is required for user accounts")
        if not is_valid_phone(data.phone_number):
            raise RegistrationError("Phone number must be 10 digits")
        payload = {"role": data.role, "name": data.name, "phone_number": data.phone_number}

    return _registration_adapter.validate_python(payload)


def register_user(db: Session, registration: Union[AdminRegistration, UserRegistration]) -> User:
    if isinstance(registration, AdminRegistration):
        if get_user_by_email(db, registration.email):
            raise DuplicateAccountError("Email already registered")
        user = User(
            name=registration.name,
            role=UserRole.admin.value,
            email=registration.email,
            hashed_password=get_password_hash(registration.password),
        )
    else:
        if get_user_by_phone(db, registration.phone_number):
            raise DuplicateAccountError("Phone number already registered")
        user = User(
            name=registration.name,
            role=UserRole.user.value,
            phone_number=registration.phone_number,
        )

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered %s account %s", user.role, user.id)
    return user


# --------------------------
# LOOKUPS
# --------------------------
def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str, role: Optional[str] = None) -> Optional[User]:
    query = db.query(User).filter(User.email == email.lower())
    if role:
        query = query.filter(User.role == role)
    return query.first()


def get_user_by_phone(db: Session, phone_number: str, role: Optional[str] = None) -> Optional[User]:
    query = db.query(User).filter(User.phone_number == phone_number)
    if role:
        query = query.filter(User.role == role)
    return query.first()


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at).all()


def delete_user(db: Session, user_id: str) -> bool:
    user = get_user(db, user_id)
    if not user:
        return False

    db.delete(user)
    db.commit()
    logger.info("Deleted account %s", user_id)
    return True


# --------------------------
# LOGIN
# --------------------------
def authenticate(db: Session, credentials: LoginRequest) -> User:
    """
    Phone number alone identifies a user-role account; admins need email + password.
    Lookups are scoped to the role the credentials belong to.
    """
    if credentials.phone_number:
        if not is_valid_phone(credentials.phone_number):
            raise LoginError("Phone number must be 10 digits", 400)
        user = get_user_by_phone(db, credentials.phone_number, role=UserRole.user.value)
        if not user:
            raise LoginError("User account not found with this phone number", 404)
        return user

    if credentials.email and credentials.password:
        if not is_valid_email(credentials.email):
            raise LoginError("Invalid email format", 400)
        user = get_user_by_email(db, credentials.email, role=UserRole.admin.value)
        if not user:
            raise LoginError("Admin account not found with this email", 404)
        if not verify_password(credentials.password, user.hashed_password):
            logger.warning("Failed password check for admin %s", user.id)
            raise LoginError("Invalid password", 401)
        return user

    raise LoginError(
        "Please provide either phone number for user or email and password for admin", 400
    )
