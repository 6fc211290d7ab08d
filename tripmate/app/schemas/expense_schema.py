"""
schemas/expense_schema.py — Marshmallow schemas for expense endpoints.

Validation responsibility:
  - This file:
      - Field types, lengths, enum values
      - INVALID_AMOUNT          (400) — whole yen, 0..max_amount, no floats
      - EMPTY_SPLIT             (400) — split_member_ids must not be empty
      - DUPLICATE_SPLIT_MEMBER  (400) — a member appears at most once
      - Non-empty-after-trim enforcement for title
  - services/expense_service.py:
      - PAYER_NOT_MEMBER (422)        — requires DB roster lookup
      - SPLIT_MEMBER_NOT_MEMBER (422) — requires DB roster lookup

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    validate,
    validates,
)

from tripmate.app.errors import ErrorCode
from tripmate.app.models.expense import MAX_EXPENSE_AMOUNT, Category


# ── Shared non-empty string validator ─────────────────────────────────────
#
# validate.Length(min=1) alone allows whitespace-only strings like "   "
# because len("   ") == 3 > 0. This validator strips first then checks.
# ──────────────────────────────────────────────────────────────────────────

def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _validate_split_member_ids(value: list[str]) -> None:
    """EMPTY_SPLIT for an empty list; DUPLICATE_SPLIT_MEMBER for repeats."""
    if not value:
        raise ValidationError(ErrorCode.EMPTY_SPLIT)
    if len(value) != len(set(value)):
        raise ValidationError(ErrorCode.DUPLICATE_SPLIT_MEMBER)


class _ExpenseFieldsMixin:
    """
    Amount range check shared by create and patch.

    The upper bound defaults to MAX_EXPENSE_AMOUNT; routes pass the configured
    value so MAX_EXPENSE_AMOUNT can be lowered per deployment.
    """

    def __init__(self, *args, max_amount: int = MAX_EXPENSE_AMOUNT, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_amount = max_amount

    @validates("amount")
    def validate_amount(self, value: int, **kwargs) -> None:
        if value < 0 or value > self.max_amount:
            raise ValidationError(ErrorCode.INVALID_AMOUNT)


# ── Create expense ─────────────────────────────────────────────────────────

class CreateExpenseSchema(_ExpenseFieldsMixin, Schema):
    """
    POST /trips/:id/expenses

    split_member_ids is ordered: the last member absorbs the remainder of the
    integer split, so the order sent by the client is kept as-is.
    """

    title = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Title must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    # Whole yen. strict=True rejects 100.0 and "100".
    amount = fields.Int(
        required=True,
        strict=True,
        error_messages={"invalid": ErrorCode.INVALID_AMOUNT},
    )

    category = fields.Enum(
        Category,
        load_default=Category.OTHER,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY},
    )

    description = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=500, error="Description must be at most 500 characters."),
    )

    # None means "payer not known yet"; the expense then credits nobody.
    paid_by_member_id = fields.Str(load_default=None, allow_none=True)

    split_member_ids = fields.List(
        fields.Str(validate=validate.Length(min=1, max=36)),
        required=True,
        validate=_validate_split_member_ids,
    )

    date = fields.Date(load_default=None, allow_none=True)

    is_ai_generated = fields.Bool(load_default=False)


# ── Patch expense ──────────────────────────────────────────────────────────

class PatchExpenseSchema(_ExpenseFieldsMixin, Schema):
    """
    PATCH /expenses/:id

    All fields are optional. Only provided fields are updated; absent keys
    are left out of the loaded dict so the service can tell "not sent" from
    "set to null" (paid_by_member_id, description, date).
    """

    title = fields.Str(
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Title must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    amount = fields.Int(
        strict=True,
        error_messages={"invalid": ErrorCode.INVALID_AMOUNT},
    )

    category = fields.Enum(
        Category,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY},
    )

    description = fields.Str(
        allow_none=True,
        validate=validate.Length(max=500, error="Description must be at most 500 characters."),
    )

    paid_by_member_id = fields.Str(allow_none=True)

    split_member_ids = fields.List(
        fields.Str(validate=validate.Length(min=1, max=36)),
        validate=_validate_split_member_ids,
    )

    date = fields.Date(allow_none=True)

    is_settled = fields.Bool()

    is_ai_generated = fields.Bool()
