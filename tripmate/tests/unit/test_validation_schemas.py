"""
tests/unit/test_validation_schemas.py — Unit tests for all marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Every schema rejects invalid input with the correct ValidationError
  - Field-level rules (type, length, enum, whole-yen amount) are enforced by schemas
  - Cross-entity rules (roster membership) are NOT tested here — they belong in services
  - Error codes raised match the registered constants in errors.py

Unit test constraints:
  - No database. No Flask application context.
    Schemas inherit from marshmallow.Schema directly (not ma.Schema) — this is
    precisely why they can be instantiated without an app context.
"""

from __future__ import annotations

from datetime import date

import pytest
from marshmallow import ValidationError

from tripmate.app.errors import ErrorCode
from tripmate.app.models.expense import Category
from tripmate.app.schemas.expense_schema import CreateExpenseSchema, PatchExpenseSchema
from tripmate.app.schemas.trip_schema import AddMemberSchema, CreateTripSchema


# ═══════════════════════════════════════════════════════════════════════════
# CreateTripSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateTripSchema:

    def _load(self, data: dict):
        return CreateTripSchema().load(data)

    def test_minimal_payload_gets_defaults(self):
        result = self._load({"name": "Kyoto", "owner_name": "Alice"})

        assert result["name"] == "Kyoto"
        assert result["owner_name"] == "Alice"
        assert result["owner_user_id"] is None
        assert result["description"] is None
        assert result["start_date"] is None
        assert result["destinations"] == []

    def test_dates_are_parsed(self):
        result = self._load({
            "name": "Kyoto",
            "owner_name": "Alice",
            "start_date": "2026-04-01",
            "end_date": "2026-04-03",
        })

        assert result["start_date"] == date(2026, 4, 1)
        assert result["end_date"] == date(2026, 4, 3)

    def test_same_day_trip_is_valid(self):
        result = self._load({
            "name": "Day trip",
            "owner_name": "Alice",
            "start_date": "2026-04-01",
            "end_date": "2026-04-01",
        })

        assert result["start_date"] == result["end_date"]

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({
                "name": "Kyoto",
                "owner_name": "Alice",
                "start_date": "2026-04-03",
                "end_date": "2026-04-01",
            })

        assert "end_date" in exc_info.value.messages

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_invalid_name_rejected(self, name):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"name": name, "owner_name": "Alice"})

        assert "name" in exc_info.value.messages

    def test_name_of_exactly_100_chars_accepted(self):
        assert self._load({"name": "x" * 100, "owner_name": "Alice"})["name"] == "x" * 100

    def test_missing_owner_name_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"name": "Kyoto"})

        assert exc_info.value.messages["owner_name"] == ["Missing data for required field."]

    def test_description_over_500_chars_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"name": "Kyoto", "owner_name": "Alice", "description": "d" * 501})

        assert "description" in exc_info.value.messages

    def test_destination_over_100_chars_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"name": "Kyoto", "owner_name": "Alice", "destinations": ["ok", "x" * 101]})

        assert "destinations" in exc_info.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# AddMemberSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestAddMemberSchema:

    def _load(self, data: dict):
        return AddMemberSchema().load(data)

    def test_manual_member(self):
        assert self._load({"display_name": "Bob"}) == {"display_name": "Bob", "user_id": None}

    def test_registered_member(self):
        assert self._load({"display_name": "Bob", "user_id": "u-1"})["user_id"] == "u-1"

    @pytest.mark.parametrize("display_name", ["", "  ", "b" * 51])
    def test_invalid_display_name_rejected(self, display_name):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"display_name": display_name})

        assert "display_name" in exc_info.value.messages

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            self._load({"display_name": "Bob", "role": "owner"})


# ═══════════════════════════════════════════════════════════════════════════
# CreateExpenseSchema
# ═══════════════════════════════════════════════════════════════════════════

def _expense(**overrides) -> dict:
    payload = {
        "title": "Lunch",
        "amount": 1200,
        "paid_by_member_id": "m1",
        "split_member_ids": ["m1", "m2"],
    }
    payload.update(overrides)
    return payload


class TestCreateExpenseSchema:

    def _load(self, data: dict, **kwargs):
        return CreateExpenseSchema(**kwargs).load(data)

    def test_valid_payload_gets_defaults(self):
        result = self._load(_expense())

        assert result["amount"] == 1200
        assert result["category"] is Category.OTHER
        assert result["description"] is None
        assert result["date"] is None
        assert result["is_ai_generated"] is False
        assert result["split_member_ids"] == ["m1", "m2"]

    def test_category_parsed_by_value(self):
        assert self._load(_expense(category="food"))["category"] is Category.FOOD

    def test_invalid_category_uses_registered_code(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(category="casino"))

        assert exc_info.value.messages["category"] == [ErrorCode.INVALID_CATEGORY]

    def test_payer_may_be_null(self):
        assert self._load(_expense(paid_by_member_id=None))["paid_by_member_id"] is None

    @pytest.mark.parametrize("amount", [0, 1, 100_000_000])
    def test_amount_bounds_accepted(self, amount):
        assert self._load(_expense(amount=amount))["amount"] == amount

    @pytest.mark.parametrize("amount", [-1, 100_000_001, 1.5, 100.0, "100", True])
    def test_invalid_amount_rejected(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(amount=amount))

        assert exc_info.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT]

    def test_lower_configured_maximum_is_applied(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(amount=50_001), max_amount=50_000)

        assert exc_info.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT]

    def test_missing_amount_rejected(self):
        payload = _expense()
        del payload["amount"]

        with pytest.raises(ValidationError) as exc_info:
            self._load(payload)

        assert exc_info.value.messages["amount"] == ["Missing data for required field."]

    def test_empty_split_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(split_member_ids=[]))

        assert exc_info.value.messages["split_member_ids"] == [ErrorCode.EMPTY_SPLIT]

    def test_duplicate_split_member_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(split_member_ids=["m1", "m2", "m1"]))

        assert exc_info.value.messages["split_member_ids"] == [ErrorCode.DUPLICATE_SPLIT_MEMBER]

    def test_split_order_is_kept(self):
        assert self._load(_expense(split_member_ids=["m3", "m1", "m2"]))["split_member_ids"] == ["m3", "m1", "m2"]

    @pytest.mark.parametrize("title", ["", "   ", "t" * 101])
    def test_invalid_title_rejected(self, title):
        with pytest.raises(ValidationError) as exc_info:
            self._load(_expense(title=title))

        assert "title" in exc_info.value.messages

    def test_date_is_parsed(self):
        assert self._load(_expense(date="2026-04-02"))["date"] == date(2026, 4, 2)


# ═══════════════════════════════════════════════════════════════════════════
# PatchExpenseSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestPatchExpenseSchema:

    def _load(self, data: dict):
        return PatchExpenseSchema().load(data)

    def test_empty_patch_is_valid(self):
        assert self._load({}) == {}

    def test_absent_fields_are_not_defaulted(self):
        assert self._load({"title": "New"}) == {"title": "New"}

    def test_payer_can_be_cleared(self):
        assert self._load({"paid_by_member_id": None}) == {"paid_by_member_id": None}

    def test_is_settled_toggle(self):
        assert self._load({"is_settled": True}) == {"is_settled": True}

    def test_invalid_amount_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"amount": -5})

        assert exc_info.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT]

    def test_empty_split_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"split_member_ids": []})

        assert exc_info.value.messages["split_member_ids"] == [ErrorCode.EMPTY_SPLIT]

    def test_duplicate_split_member_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self._load({"split_member_ids": ["a", "a"]})

        assert exc_info.value.messages["split_member_ids"] == [ErrorCode.DUPLICATE_SPLIT_MEMBER]
