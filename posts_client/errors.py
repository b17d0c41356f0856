from __future__ import annotations

from typing import Any


class ApiError(RuntimeError):
    pass


class DecodeError(ApiError):
    pass


class RequestTimeoutError(ApiError):
    def __init__(self, message: str = "Connection error: Timeout. Please try again."):
        super().__init__(message)


class TransientError(ApiError):
    def __init__(
        self,
        message: str = "Unknown network error: Please check your internet connection and try again.",
    ):
        super().__init__(message)


class RequestCancelledError(ApiError):
    def __init__(self, message: str = "Request was cancelled."):
        super().__init__(message)


class ServerError(ApiError):
    def __init__(self, status_code: int, detail: str | None = None):
        message = f"Server error ({status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    @staticmethod
    def from_body(status_code: int, body: Any, fallback: str | None = None) -> "ServerError":
        if isinstance(body, dict) and body.get("message"):
            return ServerError(status_code, str(body["message"]))
        return ServerError(status_code, fallback)
