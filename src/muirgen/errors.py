"""Error taxonomy shared by the service layer and the REST surface.

Every error is an ``HTTPException`` so the service layer can raise it and
FastAPI renders it without further mapping.
"""

from fastapi import HTTPException, status


class MuirgenError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unknown Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            status_code=self.status_code, detail=message or self.default_message
        )

    @property
    def message(self) -> str:
        return self.detail


class AuthError(MuirgenError):
    """Bad credentials or an invalid, expired or orphaned token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Access Denied"


class ValidationError(MuirgenError):
    """Rejected input: duplicate handle, missing field, password mismatch."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid Request"


class DatabaseError(MuirgenError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database Offline"
