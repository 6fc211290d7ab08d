"""
services/trip_service.py — Trip and roster business logic.

Rules:
  - Creating a trip also creates its owner member.
  - Members are either registered (carry an external user_id) or manual
    (name only). A registered user joins a trip at most once.
  - The owner member cannot be removed.
  - A member still referenced by an expense (as payer or in a split) cannot
    be removed, so no expense is ever orphaned through the API.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tripmate.app.errors import AppError, ErrorCode
from tripmate.app.models.expense import Expense
from tripmate.app.models.member import MemberRole, TripMember
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


def _get_member_or_404(trip_id: str, member_id: str, session: Session) -> TripMember:
    """Returns the member of this trip or raises MEMBER_NOT_FOUND (404)."""
    member = session.execute(
        select(TripMember).where(
            TripMember.id == member_id,
            TripMember.trip_id == trip_id,
        )
    ).scalar_one_or_none()

    if member is None:
        raise AppError(
            ErrorCode.MEMBER_NOT_FOUND,
            f"Member {member_id} is not part of trip {trip_id}.",
            404,
        )
    return member


def _is_member_referenced(member_id: str, session: Session) -> bool:
    """True if any expense names the member as payer or split participant."""
    paid = session.execute(
        select(Expense.id).where(Expense.paid_by_member_id == member_id).limit(1)
    ).first()
    if paid is not None:
        return True

    in_split = session.execute(
        select(ExpenseSplit.id).where(ExpenseSplit.member_id == member_id).limit(1)
    ).first()
    return in_split is not None


def serialize_member(member: TripMember) -> dict:
    return {
        "id": member.id,
        "trip_id": member.trip_id,
        "user_id": member.user_id,
        "display_name": member.display_name,
        "role": member.role.value,
        "is_manual": member.is_manual,
        "joined_at": member.joined_at.isoformat() if member.joined_at else None,
    }


def _build_trip_dict(trip: Trip, members: list[TripMember]) -> dict:
    """Serialises a Trip with its roster to a plain dict."""
    return {
        "id": trip.id,
        "name": trip.name,
        "description": trip.description,
        "start_date": trip.start_date.isoformat() if trip.start_date else None,
        "end_date": trip.end_date.isoformat() if trip.end_date else None,
        "destinations": list(trip.destinations or []),
        "created_at": trip.created_at.isoformat() if trip.created_at else None,
        "members": [serialize_member(m) for m in members],
    }


def _list_members(trip_id: str, session: Session) -> list[TripMember]:
    stmt = (
        select(TripMember)
        .where(TripMember.trip_id == trip_id)
        .order_by(TripMember.joined_at.asc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Public service functions ───────────────────────────────────────────────

def create_trip(data: dict, session: Session) -> dict:
    """
    Creates a trip and its owner member.

    Args:
        data: Validated dict from CreateTripSchema. Keys: name, description,
              start_date, end_date, destinations, owner_name, owner_user_id.

    Returns: dict with trip details and the initial roster.
    """
    trip = Trip(
        name=data["name"],
        description=data.get("description"),
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
        destinations=data.get("destinations") or [],
    )
    session.add(trip)
    session.flush()  # populate trip.id before creating the owner member

    owner = TripMember(
        trip_id=trip.id,
        user_id=data.get("owner_user_id"),
        display_name=data["owner_name"],
        role=MemberRole.OWNER,
    )
    session.add(owner)
    session.flush()

    return _build_trip_dict(trip, [owner])


def get_trip(trip_id: str, session: Session) -> dict:
    """Returns full trip details including the current roster."""
    trip = _get_trip_or_404(trip_id, session)
    return _build_trip_dict(trip, _list_members(trip_id, session))


def add_member(trip_id: str, data: dict, session: Session) -> dict:
    """
    Adds a registered or manual member to a trip.

    Raises:
      AppError(TRIP_NOT_FOUND, 404)  — trip does not exist
      AppError(ALREADY_MEMBER, 409)  — registered user already in the trip

    Returns: dict with the new member.
    """
    _get_trip_or_404(trip_id, session)

    user_id = data.get("user_id")
    if user_id is not None:
        existing = session.execute(
            select(TripMember).where(
                TripMember.trip_id == trip_id,
                TripMember.user_id == user_id,
            )
        ).scalar_one_or_none()

        if existing is not None:
            raise AppError(
                ErrorCode.ALREADY_MEMBER,
                f"User {user_id} is already a member of trip {trip_id}.",
                409,
                field="user_id",
            )

    member = TripMember(
        trip_id=trip_id,
        user_id=user_id,
        display_name=data["display_name"],
        role=MemberRole.MEMBER,
    )
    session.add(member)
    session.flush()

    return serialize_member(member)


def remove_member(trip_id: str, member_id: str, session: Session) -> None:
    """
    Removes a member from a trip.

    Raises:
      AppError(TRIP_NOT_FOUND, 404)       — trip does not exist
      AppError(MEMBER_NOT_FOUND, 404)     — member is not part of the trip
      AppError(CANNOT_REMOVE_OWNER, 422)  — member is the trip owner
      AppError(MEMBER_REFERENCED, 409)    — member is payer or in a split
    """
    _get_trip_or_404(trip_id, session)
    member = _get_member_or_404(trip_id, member_id, session)

    if member.role == MemberRole.OWNER:
        raise AppError(
            ErrorCode.CANNOT_REMOVE_OWNER,
            "The trip owner cannot be removed.",
            422,
        )

    if _is_member_referenced(member_id, session):
        raise AppError(
            ErrorCode.MEMBER_REFERENCED,
            f"Member {member_id} is referenced by expenses. "
            f"Reassign or delete those expenses first.",
            409,
        )

    session.delete(member)
    session.flush()
