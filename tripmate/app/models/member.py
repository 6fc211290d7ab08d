"""
models/member.py — TripMember table definition.

A member is a participant of exactly one trip. Registered members carry the
opaque user_id of their profile in the external auth system; manual members
(added by name only) have user_id NULL.

FK policy: trip_id ON DELETE CASCADE — the roster is owned by its trip.
Removing a member who is still referenced by an expense is refused in
trip_service.py (MEMBER_REFERENCED), so expenses are never orphaned through
the API.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmate.app.extensions import db


class MemberRole(str, enum.Enum):
    OWNER  = "owner"
    MEMBER = "member"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'owner'), not names ('OWNER')."""
    return [member.value for member in enum_cls]


class TripMember(db.Model):
    __tablename__ = "trip_members"

    __table_args__ = (
        # A registered user joins a trip at most once. NULLs (manual members)
        # never collide.
        UniqueConstraint("trip_id", "user_id", name="uq_trip_members_trip_user"),
        CheckConstraint(
            "LENGTH(TRIM(display_name)) > 0",
            name="ck_trip_members_display_name_nonempty",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    trip_id: Mapped[str] = mapped_column(
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Opaque profile id from the auth provider. NULL for manual members.
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    display_name: Mapped[str] = mapped_column(String(50), nullable=False)

    role: Mapped[MemberRole] = mapped_column(
        Enum(
            MemberRole,
            name="member_role_enum",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=MemberRole.MEMBER,
        server_default=MemberRole.MEMBER.value,
    )

    # Python-side default keeps microsecond resolution, so roster order is
    # the order members were added.
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    trip: Mapped["Trip"] = relationship(  # noqa: F821
        "Trip",
        back_populates="members",
    )

    @property
    def is_manual(self) -> bool:
        """True for name-only members that have no registered profile."""
        return self.user_id is None

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<TripMember id={self.id} "
            f"trip_id={self.trip_id} "
            f"display_name={self.display_name!r}>"
        )
