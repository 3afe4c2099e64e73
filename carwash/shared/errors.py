"""
API error taxonomy

Every error raised by the service layer is an HTTPException subclass with a
stable machine-readable ``code`` so clients can branch without parsing
messages. The handlers registered in ``main.py`` render all of them as
``{"error": ..., "code": ..., "details": ...}``.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class APIError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        if code:
            self.code = code
        self.details = details


class ValidationFailed(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotAuthenticated(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NOT_AUTHENTICATED"

    def __init__(self, message: str = "Not authenticated", **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class Conflict(APIError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class UpstreamUnavailable(APIError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "UPSTREAM_UNAVAILABLE"


STATUS_CODES = {
    400: "VALIDATION_ERROR",
    401: "NOT_AUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
    503: "UPSTREAM_UNAVAILABLE",
}


def error_body(message: str, code: str, details: Any = None) -> dict:
    return {"error": message, "code": code, "details": details}


def code_for_status(status_code: int) -> str:
    return STATUS_CODES.get(status_code, "INTERNAL_ERROR" if status_code >= 500 else "ERROR")
