"""
models/trip.py — Trip table definition.

No business logic. No imports from services or routes.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmate.app.extensions import db


def _new_id() -> str:
    return str(uuid.uuid4())


class Trip(db.Model):
    __tablename__ = "trips"

    __table_args__ = (
        # Also enforced by the marshmallow schema; the schema is the primary gate.
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_trips_name_nonempty",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Free-form list of destination names, e.g. ["Kyoto", "Osaka"].
    destinations: Mapped[list | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    members: Mapped[list["TripMember"]] = relationship(  # noqa: F821
        "TripMember",
        back_populates="trip",
        order_by="TripMember.joined_at",
    )

    expenses: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense",
        back_populates="trip",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Trip id={self.id} name={self.name!r}>"
