"""
Wellness sessions error types, mapped from local validation and REST failures.
"""

from typing import Any, Optional


class WellnessError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class ValidationError(WellnessError):
    """Field-level problems found locally; never sent to the backend."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("validation_error", "; ".join(errors.values()), {"errors": errors})
        self.errors = errors


class TransientNetworkError(WellnessError):
    def __init__(self, message: str):
        super().__init__("network_error", message)


class ServerRejection(WellnessError):
    def __init__(self, message: str, status_code: int, details: Optional[dict[str, Any]] = None):
        super().__init__("server_rejection", message, details)
        self.status_code = status_code


class AuthExpiry(WellnessError):
    def __init__(self, message: str = "Authentication expired"):
        super().__init__("auth_expired", message)


class EditorClosedError(WellnessError):
    def __init__(self, message: str = "Editor is closed after publish"):
        super().__init__("editor_closed", message)


def user_message(error: WellnessError, fallback: str) -> str:
    """Text for a user-facing failure notice. Only backend rejections carry their own wording."""
    if isinstance(error, ServerRejection):
        return error.message
    return fallback
