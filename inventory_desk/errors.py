from fastapi import HTTPException


class AppError(HTTPException):
    """HTTP-visible error with a stable ``{"code", "message"}`` detail."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None, headers: dict | None = None):
        self.code = code or self.default_code
        self.message = message
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": message},
            headers=headers,
        )


class ValidationError(AppError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class AuthError(AppError):
    status_code = 401
    default_code = "NOT_AUTHENTICATED"

    def __init__(self, message: str, code: str | None = None):
        # Bearer challenge so clients and the docs UI know what to send
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"


class PayloadTooLarge(AppError):
    status_code = 413
    default_code = "PAYLOAD_TOO_LARGE"


class InternalError(AppError):
    status_code = 500
    default_code = "INTERNAL_ERROR"
