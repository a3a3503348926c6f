from fastapi import Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.errors import APIError
from app.core.security import decode_access_token
from app.database.connection import get_db
from app.models.user import User
from app.services.user_service import get_user

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login", auto_error=False)


def _unauthorized(detail: str) -> APIError:
    return APIError(
        status.HTTP_401_UNAUTHORIZED,
        detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise _unauthorized("Not authorized, no token")

    token_data = decode_access_token(token)
    if not token_data.user_id:
        raise _unauthorized("Not authorized, token failed")

    user = get_user(db, token_data.user_id)
    if not user:
        raise _unauthorized("User not found")
    return user


def require_auth(user: User = Depends(get_current_user)) -> User:
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise APIError(
            status.HTTP_403_FORBIDDEN,
            "Not authorized to access this resource",
        )
    return user
