"""
services/settlement_service.py — Settlement summary for a trip.

Loads a snapshot of the trip's unsettled expenses and roster, runs it through
balance_service (balances, then transfers) and settlement_text (share text),
and builds the response payload for GET /trips/:id/settlement.

Snapshot rules:
  - Only expenses WHERE is_settled IS FALSE take part.
  - Split members are passed in split-list order (ExpenseSplit.position),
    because the last one absorbs the division remainder.
  - The roster is every current trip member, in joined order.

Non-conservation:
  An unsettled expense without a payer is owed by nobody, so balance_sum is
  non-zero. This is reported as a BALANCE_NOT_CONSERVED warning alongside the
  200, never as an error: the summary stays available.

Layer rules:
  - No Flask imports. Receives trip_id and a SQLAlchemy session.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tripmate.app.errors import AppError, ErrorCode, WarningCode
from tripmate.app.models.expense import Expense
from tripmate.app.models.member import TripMember
from tripmate.app.models.trip import Trip
from tripmate.app.services import balance_service, settlement_text
from tripmate.app.services.balance_service import ExpenseShare, Member, MemberId

logger = logging.getLogger(__name__)


# ── Data access helpers ────────────────────────────────────────────────────

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


def get_unsettled_expenses(trip_id: str, session: Session) -> list[Expense]:
    """Returns the trip's expenses WHERE is_settled IS FALSE, splits preloaded."""
    stmt = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(
            Expense.trip_id == trip_id,
            Expense.is_settled.is_(False),
        )
        .order_by(Expense.created_at.asc())
    )
    return list(session.execute(stmt).scalars().all())


def get_roster(trip_id: str, session: Session) -> list[TripMember]:
    """Returns all current members of a trip in the order they joined."""
    stmt = (
        select(TripMember)
        .where(TripMember.trip_id == trip_id)
        .order_by(TripMember.joined_at.asc())
    )
    return list(session.execute(stmt).scalars().all())


def load_settlement_snapshot(
        trip_id: str,
        session: Session,
) -> tuple[list[ExpenseShare], list[Member]]:
    """Converts ORM rows into the engine's value objects."""
    expenses = [
        ExpenseShare(
            amount=e.amount,
            paid_by=MemberId(e.paid_by_member_id) if e.paid_by_member_id else None,
            split_member_ids=tuple(MemberId(mid) for mid in e.split_member_ids),
        )
        for e in get_unsettled_expenses(trip_id, session)
    ]
    members = [
        Member(member_id=MemberId(m.id), display_name=m.display_name)
        for m in get_roster(trip_id, session)
    ]
    return expenses, members


# ── Public service functions ───────────────────────────────────────────────

def get_settlement_summary(trip_id: str, session: Session) -> tuple[dict, list[dict]]:
    """
    Builds the settlement payload for a trip.

    Returns:
        (summary, warnings). warnings is empty unless balance_sum != 0.

    Raises:
        AppError(TRIP_NOT_FOUND, 404) — trip does not exist.
    """
    trip = _get_trip_or_404(trip_id, session)
    expenses, members = load_settlement_snapshot(trip_id, session)

    balances = balance_service.calculate_balances(expenses, members)
    transfers = balance_service.calculate_settlements(balances)
    total_amount = sum(e.amount for e in expenses)

    share_text = settlement_text.generate_settlement_text(trip.name, transfers, total_amount)
    final_sum = balance_service.balance_sum(balances)

    warnings: list[dict] = []
    if final_sum != 0:
        logger.warning(
            "Settlement balances for trip %s sum to %d, not 0", trip_id, final_sum,
        )
        warnings.append({
            "code": WarningCode.BALANCE_NOT_CONSERVED,
            "message": (
                f"Balances sum to {final_sum} instead of 0. An unsettled expense "
                f"has no payer on the member list, so its amount is owed by nobody."
            ),
        })

    summary = {
        "trip_id": trip.id,
        "trip_name": trip.name,
        "total_amount": total_amount,
        "formatted_total": settlement_text.format_yen(total_amount),
        "expense_count": len(expenses),
        "balances": settlement_text.serialize_balances(balances),
        "settlements": settlement_text.serialize_transfers(transfers),
        "share_text": share_text,
        "share_url": settlement_text.build_line_share_url(share_text),
        "balance_sum": final_sum,
    }
    return summary, warnings


def settle_all(trip_id: str, session: Session) -> int:
    """
    Marks every unsettled expense of the trip as settled.

    Returns the number of expenses updated. 0 is not an error: the trip was
    already fully settled.
    """
    _get_trip_or_404(trip_id, session)

    expenses = get_unsettled_expenses(trip_id, session)
    for expense in expenses:
        expense.is_settled = True
    session.flush()

    logger.info("Marked %d expenses settled for trip %s", len(expenses), trip_id)
    return len(expenses)
