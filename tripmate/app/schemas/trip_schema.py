"""
schemas/trip_schema.py — Marshmallow schemas for trip and member endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim),
    start_date <= end_date.
  - services/trip_service.py:
      - TRIP_NOT_FOUND, MEMBER_NOT_FOUND (require DB lookup)
      - ALREADY_MEMBER (membership existence check requires DB lookup)

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraint at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def _display_name_field(**kwargs) -> fields.Str:
    # VARCHAR(50) NOT NULL CHECK(LENGTH(TRIM(display_name)) > 0)
    return fields.Str(
        validate=[
            validate.Length(
                min=1,
                max=50,
                error="Display name must be between 1 and 50 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
        **kwargs,
    )


class CreateTripSchema(Schema):
    """
    POST /trips

    The caller becomes the trip owner: owner_name is their display name on
    the roster, owner_user_id their opaque profile id (optional).
    """

    # VARCHAR(100) NOT NULL CHECK(LENGTH(TRIM(name)) > 0)
    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Trip name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    description = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=500, error="Description must be at most 500 characters."),
    )

    start_date = fields.Date(load_default=None, allow_none=True)
    end_date = fields.Date(load_default=None, allow_none=True)

    destinations = fields.List(
        fields.Str(
            validate=[
                validate.Length(
                    min=1,
                    max=100,
                    error="Destination must be between 1 and 100 characters.",
                ),
                _validate_non_empty_after_trim,
            ],
        ),
        load_default=list,
    )

    owner_name = _display_name_field(required=True)

    owner_user_id = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(min=1, max=64),
    )

    @validates_schema
    def validate_date_range(self, data: dict, **kwargs) -> None:
        start, end = data.get("start_date"), data.get("end_date")
        if start is not None and end is not None and end < start:
            raise ValidationError(
                {"end_date": ["end_date must not be before start_date."]}
            )


class AddMemberSchema(Schema):
    """
    POST /trips/:id/members

    With user_id: a registered member (at most once per trip).
    Without: a manual, name-only member.
    """

    display_name = _display_name_field(required=True)

    user_id = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(min=1, max=64),
    )
