from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    """
    HTTPException rendered as the uniform {success: false, error, details?} envelope.
    """

    def __init__(
        self,
        status_code: int,
        error: Any,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.details = details


def bad_request(error: Any, details: Optional[Any] = None) -> APIError:
    return APIError(status.HTTP_400_BAD_REQUEST, error, details)


def not_found(error: str) -> APIError:
    return APIError(status.HTTP_404_NOT_FOUND, error)
