from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.errors import APIError, bad_request, not_found
from app.core.security import create_access_token
from app.database.connection import get_db
from app.dependencies.auth import require_admin, require_auth
from app.models.user import User
from app.schemas.user import AuthenticatedUser, LoginRequest, RegisterRequest, UserResponse
from app.services.user_service import (
    DuplicateAccountError,
    LoginError,
    RegistrationError,
    authenticate,
    delete_user,
    list_users,
    parse_registration,
    register_user,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _with_token(user: User) -> AuthenticatedUser:
    data = UserResponse.model_validate(user).model_dump()
    return AuthenticatedUser(**data, token=create_access_token(user.id))


# REGISTER
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        registration = parse_registration(data)
        user = register_user(db, registration)
    except (RegistrationError, DuplicateAccountError) as e:
        raise bad_request(str(e))

    return {
        "success": True,
        "message": "User registered successfully",
        "userData": _with_token(user),
    }


# LOGIN
@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = authenticate(db, credentials)
    except LoginError as e:
        raise APIError(e.status_code, str(e))

    return {
        "success": True,
        "message": "Login successful",
        "userData": _with_token(user),
    }


# PROFILE
@router.get("/profile")
def profile(user: User = Depends(require_auth)):
    return {"success": True, "data": UserResponse.model_validate(user)}


# LIST (admin)
@router.get("/all")
def list_all(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    users = list_users(db)
    return {
        "success": True,
        "count": len(users),
        "data": [UserResponse.model_validate(u) for u in users],
    }


# DELETE (admin)
@router.delete("/{user_id}")
def delete(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    if user_id == admin.id:
        raise bad_request("Admin cannot delete their own account")
    if not delete_user(db, user_id):
        raise not_found("User not found")
    return {"success": True, "message": "User deleted successfully"}
