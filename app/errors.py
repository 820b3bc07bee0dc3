from __future__ import annotations


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Authentication failed"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Internal(ApiError):
    status_code = 500


class StoreUnavailable(Internal):
    default_message = "Store unavailable"
