"""
services/expense_service.py — Expense business logic.

Rules enforced here:
  PAYER_NOT_MEMBER (422)         — paid_by_member_id must belong to the trip
  SPLIT_MEMBER_NOT_MEMBER (422)  — every split member must belong to the trip

The schema already guarantees a non-empty split list without duplicates and a
whole-yen amount in range. Membership checks need the DB, so they live here.

Split order:
  split_member_ids is stored with an explicit position per row. The last
  member of the list absorbs the division remainder in balance_service, so
  the order the client sent is preserved exactly.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives plain strings and dicts; returns ORM objects or raises AppError.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tripmate.app.errors import AppError, ErrorCode
from tripmate.app.models.expense import Category, Expense
from tripmate.app.models.member import TripMember
from tripmate.app.models.split import ExpenseSplit
from tripmate.app.models.trip import Trip


# ── Private helpers ────────────────────────────────────────────────────────

def _get_trip_or_404(trip_id: str, session: Session) -> Trip:
    """Returns the Trip or raises TRIP_NOT_FOUND (404)."""
    trip = session.get(Trip, trip_id)
    if trip is None:
        raise AppError(
            ErrorCode.TRIP_NOT_FOUND,
            f"Trip {trip_id} does not exist.",
            404,
        )
    return trip


def _get_expense_or_404(expense_id: str, session: Session) -> Expense:
    """Returns the Expense or raises EXPENSE_NOT_FOUND (404)."""
    expense = session.get(Expense, expense_id)
    if expense is None:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {expense_id} does not exist.",
            404,
        )
    return expense


def _get_member_ids(trip_id: str, session: Session) -> list[str]:
    """Returns the ids of all current members of a trip."""
    stmt = select(TripMember.id).where(TripMember.trip_id == trip_id)
    return list(session.execute(stmt).scalars().all())


def _validate_payer_is_member(
        paid_by_member_id: str | None,
        trip_id: str,
        member_ids: list[str],
) -> None:
    """
    Raises PAYER_NOT_MEMBER (422) if the payer is not on the trip roster.
    A missing payer (None) is allowed: the expense credits nobody.
    """
    if paid_by_member_id is None:
        return
    if paid_by_member_id not in member_ids:
        raise AppError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"Member {paid_by_member_id} is not part of trip {trip_id}.",
            422,
            field="paid_by_member_id",
        )


def _validate_split_members_are_members(
        split_member_ids: list[str],
        trip_id: str,
        member_ids: list[str],
) -> None:
    """Raises SPLIT_MEMBER_NOT_MEMBER (422) for the first split member not in the trip."""
    member_set = set(member_ids)
    for member_id in split_member_ids:
        if member_id not in member_set:
            raise AppError(
                ErrorCode.SPLIT_MEMBER_NOT_MEMBER,
                f"Member {member_id} is not part of trip {trip_id}.",
                422,
                field="split_member_ids",
            )


def _replace_splits(
        expense: Expense,
        split_member_ids: list[str],
        session: Session,
) -> None:
    """
    Rewrites the split rows of an expense in list order.

    The old rows are flushed out first so the UNIQUE(expense_id, member_id)
    constraint never sees an old and a new row for the same member.
    """
    expense.splits.clear()
    session.flush()

    for position, member_id in enumerate(split_member_ids):
        expense.splits.append(
            ExpenseSplit(member_id=member_id, position=position)
        )
    session.flush()


# ── Public service functions ───────────────────────────────────────────────

def create_expense(trip_id: str, data: dict, session: Session) -> Expense:
    """
    Records a new expense for a trip.

    Args:
        trip_id: The trip this expense belongs to.
        data:    Validated dict from CreateExpenseSchema.

    Raises:
      AppError(TRIP_NOT_FOUND, 404)
      AppError(PAYER_NOT_MEMBER, 422)
      AppError(SPLIT_MEMBER_NOT_MEMBER, 422)

    Returns:
        The newly created Expense ORM object (with splits loaded).
    """
    _get_trip_or_404(trip_id, session)

    paid_by_member_id: str | None = data.get("paid_by_member_id")
    split_member_ids: list[str] = data["split_member_ids"]

    member_ids = _get_member_ids(trip_id, session)
    _validate_payer_is_member(paid_by_member_id, trip_id, member_ids)
    _validate_split_members_are_members(split_member_ids, trip_id, member_ids)

    expense = Expense(
        trip_id=trip_id,
        title=data["title"],
        amount=data["amount"],
        category=data.get("category", Category.OTHER),
        description=data.get("description"),
        paid_by_member_id=paid_by_member_id,
        expense_date=data.get("date"),
        is_ai_generated=data.get("is_ai_generated", False),
    )
    session.add(expense)
    session.flush()  # populate expense.id before creating splits

    _replace_splits(expense, split_member_ids, session)
    return expense


def list_expenses(trip_id: str, session: Session) -> list[Expense]:
    """
    Returns all expenses of a trip, most recent expense date first.

    Expenses without a date sort after dated ones; ties fall back to
    creation time, newest first.
    """
    _get_trip_or_404(trip_id, session)

    stmt = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(Expense.trip_id == trip_id)
        .order_by(
            Expense.expense_date.is_(None),
            Expense.expense_date.desc(),
            Expense.created_at.desc(),
        )
    )
    return list(session.execute(stmt).scalars().all())


def get_expense(expense_id: str, session: Session) -> Expense:
    """Returns a single expense including its splits."""
    return _get_expense_or_404(expense_id, session)


def edit_expense(expense_id: str, data: dict, session: Session) -> Expense:
    """
    Partially updates an expense.

    Only keys present in `data` are applied:
      - paid_by_member_id may be set to null to clear the payer.
      - split_member_ids replaces the whole split list (new positions).
      - is_settled toggles the settled flag; settled expenses leave the
        settlement summary.
    updated_at is set to NOW() on every successful PATCH.

    Args:
        expense_id: The expense to edit.
        data:       Validated partial dict from PatchExpenseSchema.

    Returns:
        The updated Expense ORM object.
    """
    expense = _get_expense_or_404(expense_id, session)

    member_ids: list[str] | None = None
    if "paid_by_member_id" in data or "split_member_ids" in data:
        member_ids = _get_member_ids(expense.trip_id, session)

    # ── Validate before any write ──────────────────────────────────────────
    if "paid_by_member_id" in data:
        _validate_payer_is_member(data["paid_by_member_id"], expense.trip_id, member_ids)

    if "split_member_ids" in data:
        _validate_split_members_are_members(
            data["split_member_ids"], expense.trip_id, member_ids,
        )

    # ── Apply field updates ────────────────────────────────────────────────
    for key in ("title", "amount", "category", "description", "is_settled", "is_ai_generated"):
        if key in data:
            setattr(expense, key, data[key])

    if "date" in data:
        expense.expense_date = data["date"]

    if "paid_by_member_id" in data:
        expense.paid_by_member_id = data["paid_by_member_id"]

    if "split_member_ids" in data:
        _replace_splits(expense, data["split_member_ids"], session)

    expense.updated_at = datetime.now(timezone.utc)
    session.flush()
    return expense


def delete_expense(expense_id: str, session: Session) -> None:
    """
    Hard-deletes an expense. Its split rows go with it.

    Raises:
        AppError(EXPENSE_NOT_FOUND, 404) — expense does not exist.
    """
    expense = _get_expense_or_404(expense_id, session)
    session.delete(expense)
    session.flush()
