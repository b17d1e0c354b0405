from typing import Optional


class AppError(Exception):
    """
    Base class for errors that map to an HTTP response.
    The message is always safe to show to the client.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class AuthError(AppError):
    # 400 for bad credentials, 403 for a blocked account
    status_code = 400
    default_message = "Invalid username or password"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Already exists"


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Too many requests, try again later"


class IntegrationError(AppError):
    status_code = 500
    default_message = "AI service unavailable"
