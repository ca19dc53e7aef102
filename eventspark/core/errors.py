"""Error taxonomy for calls against the ticketing API."""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Client error codes."""

    TRANSPORT = "TRANSPORT"
    BUSINESS = "BUSINESS"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    USER_EXISTS = "USER_EXISTS"


class ApiError(Exception):
    """Base error with code and user-safe message."""

    def __init__(self, code: ErrorCode, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class TransportError(ApiError):
    """Raised when the request never produced a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(ErrorCode.TRANSPORT, message, status_code)


class BusinessError(ApiError):
    """Raised when the server reports ``success: false``."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(ErrorCode.BUSINESS, message, status_code)


class MalformedResponseError(ApiError):
    """Raised when a response body has none of the accepted shapes."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(ErrorCode.MALFORMED_RESPONSE, message, status_code)


class DuplicateUserError(ApiError):
    """Raised by the add-user guard before any request is made."""

    def __init__(self, email: str) -> None:
        super().__init__(
            ErrorCode.USER_EXISTS,
            "User already exists, please change their role using the dropdown.",
        )
        self.email = email
