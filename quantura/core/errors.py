from __future__ import annotations

from enum import Enum
from typing import Dict


class ErrorCode(str, Enum):
    """Machine-readable error codes carried by the result envelope."""

    MISSING_INPUT = "MISSING_INPUT"
    NOT_FOUND = "NOT_FOUND"
    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    INVITATION_EXPIRED = "INVITATION_EXPIRED"
    INVITATION_ALREADY_PROCESSED = "INVITATION_ALREADY_PROCESSED"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    USER_ALREADY_IN_BUSINESS = "USER_ALREADY_IN_BUSINESS"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    UNAUTHORIZED = "UNAUTHORIZED"
    FAILED_REQUEST = "FAILED_REQUEST"


# HTTP status used when an envelope carrying the code leaves the API.
ERROR_STATUS: Dict[ErrorCode, int] = {
    ErrorCode.MISSING_INPUT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BUSINESS_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.INVITATION_NOT_FOUND: 404,
    ErrorCode.INVITATION_EXPIRED: 410,
    ErrorCode.INVITATION_ALREADY_PROCESSED: 409,
    ErrorCode.USER_ALREADY_EXISTS: 409,
    ErrorCode.USER_ALREADY_IN_BUSINESS: 409,
    ErrorCode.INSUFFICIENT_STOCK: 409,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.FAILED_REQUEST: 500,
}

_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.MISSING_INPUT: "Some required information is missing or invalid.",
    ErrorCode.NOT_FOUND: "The requested record could not be found.",
    ErrorCode.BUSINESS_NOT_FOUND: "The business could not be found.",
    ErrorCode.USER_NOT_FOUND: "The user could not be found.",
    ErrorCode.INVITATION_NOT_FOUND: "The invitation could not be found.",
    ErrorCode.INVITATION_EXPIRED: "This invitation has expired.",
    ErrorCode.INVITATION_ALREADY_PROCESSED: "This invitation has already been answered.",
    ErrorCode.USER_ALREADY_EXISTS: "An account with this email already exists.",
    ErrorCode.USER_ALREADY_IN_BUSINESS: "This account already belongs to another business.",
    ErrorCode.INSUFFICIENT_STOCK: "There is not enough stock for this sale.",
    ErrorCode.UNAUTHORIZED: "You are not allowed to perform this action.",
    ErrorCode.FAILED_REQUEST: "The request could not be completed. Please try again.",
}


# PUBLIC_INTERFACE
def describe(code: ErrorCode) -> str:
    """Return the human-readable message shown to users for an error code."""
    return _MESSAGES.get(code, code.value.replace("_", " ").lower())


class RepositoryError(Exception):
    """
    Expected failure raised inside a repository unit of work.

    The repository boundary maps it to an envelope carrying `code`; raising it
    inside a transaction also rolls the transaction back.
    """

    code: ErrorCode = ErrorCode.FAILED_REQUEST

    def __init__(self, code: ErrorCode | None = None, message: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code.value)


class MissingInputError(RepositoryError):
    code = ErrorCode.MISSING_INPUT


class NotFoundError(RepositoryError):
    code = ErrorCode.NOT_FOUND
