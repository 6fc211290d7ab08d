"""
errors.py — AppError and the error/warning code registries.

Service and route code signal failures by raising AppError with a code from
ErrorCode. The app factory turns it into the JSON envelope
    {"error": {"code": ..., "message": ..., "field": ...}}
Codes are part of the API contract; messages are prose and may change.
"""

from __future__ import annotations


def error_envelope(code: str, message: str, field: str | None = None) -> dict:
    """Builds the response body shared by every error path."""
    body = {"code": code, "message": message}
    if field is not None:
        body["field"] = field
    return {"error": body}


class AppError(Exception):
    """An expected failure with an API code, an HTTP status and, optionally, the offending field."""

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.field = field

    def to_dict(self) -> dict:
        return error_envelope(self.code, self.message, self.field)

    def __repr__(self) -> str:
        return f"AppError({self.code}, {self.http_status}, {self.message!r})"


# ── Error codes ────────────────────────────────────────────────────────────

class ErrorCode:

    # 400: request body rejected by a schema
    MISSING_FIELD           = "MISSING_FIELD"
    INVALID_FIELD           = "INVALID_FIELD"
    INVALID_CATEGORY        = "INVALID_CATEGORY"
    EMPTY_SPLIT             = "EMPTY_SPLIT"
    DUPLICATE_SPLIT_MEMBER  = "DUPLICATE_SPLIT_MEMBER"
    BAD_REQUEST             = "BAD_REQUEST"

    # 400 from schemas, 422 from ExpenseShare
    INVALID_AMOUNT          = "INVALID_AMOUNT"

    # 404
    NOT_FOUND               = "NOT_FOUND"
    TRIP_NOT_FOUND          = "TRIP_NOT_FOUND"
    MEMBER_NOT_FOUND        = "MEMBER_NOT_FOUND"
    EXPENSE_NOT_FOUND       = "EXPENSE_NOT_FOUND"

    # 405
    METHOD_NOT_ALLOWED      = "METHOD_NOT_ALLOWED"

    # 409
    ALREADY_MEMBER          = "ALREADY_MEMBER"
    MEMBER_REFERENCED       = "MEMBER_REFERENCED"

    # 422: the request is well-formed but breaks a trip rule
    PAYER_NOT_MEMBER        = "PAYER_NOT_MEMBER"
    SPLIT_MEMBER_NOT_MEMBER = "SPLIT_MEMBER_NOT_MEMBER"
    CANNOT_REMOVE_OWNER     = "CANNOT_REMOVE_OWNER"

    # 500
    INTERNAL_ERROR          = "INTERNAL_ERROR"


# Prose used when a schema reports a bare code as its message.
DEFAULT_MESSAGES: dict[str, str] = {
    ErrorCode.INVALID_AMOUNT: "Amount must be a whole number of yen between 0 and the allowed maximum.",
    ErrorCode.INVALID_CATEGORY: "The category value is not valid.",
    ErrorCode.EMPTY_SPLIT: "split_member_ids must contain at least one member.",
    ErrorCode.DUPLICATE_SPLIT_MEMBER: "The same member appears more than once in split_member_ids.",
}


# ── Warning codes ──────────────────────────────────────────────────────────
# Returned in the `warnings` array of a 2xx response; never block a request.

class WarningCode:

    # An unsettled expense has no payer, so its amount is owed by nobody and
    # the balances no longer sum to zero.
    BALANCE_NOT_CONSERVED = "BALANCE_NOT_CONSERVED"
