"""Error types raised below the router layer.

Every ``AppError`` is rendered by the handler in ``boxoffice.main`` as
``{"ok": false, "error": message}`` with its ``status_code``.
"""


class AppError(Exception):
    """Base exception for business-rule failures."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class PromotionIneligibleError(AppError):
    """A promotion exists but cannot be used; ``reason`` says why."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__(reason.value, status_code=400)
