"""
models/expense.py — A yen expense recorded against a trip.

Notes:
  - `amount` is an Integer in whole yen. There are no fractional subunits,
    so no Numeric/Float column is needed and no rounding ever happens.
  - `paid_by_member_id` is nullable: an expense may be recorded before the
    payer is known. Such an expense credits nobody in the settlement.
  - `is_settled` marks expenses already paid back; the settlement summary
    only considers unsettled expenses.
  - Category is a Python enum so it can be imported by schemas and services
    without repeating string literals.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmate.app.extensions import db

# Whole yen. Shared with the marshmallow schemas and the default config.
MAX_EXPENSE_AMOUNT = 100_000_000


# ── Enum Definitions ───────────────────────────────────────────────────────

class Category(str, enum.Enum):
    FOOD           = "food"
    TRANSPORT      = "transport"
    ACCOMMODATION  = "accommodation"
    ACTIVITY       = "activity"
    SHOPPING       = "shopping"
    OTHER          = "other"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'food'), not names ('FOOD')."""
    return [member.value for member in enum_cls]


# ── Model ──────────────────────────────────────────────────────────────────

class Expense(db.Model):
    __tablename__ = "expenses"

    __table_args__ = (
        # Also enforced by the marshmallow schema (INVALID_AMOUNT).
        CheckConstraint(
            f"amount >= 0 AND amount <= {MAX_EXPENSE_AMOUNT}",
            name="ck_expenses_amount_range",
        ),
        CheckConstraint(
            "LENGTH(TRIM(title)) > 0",
            name="ck_expenses_title_nonempty",
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

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    # Whole yen.
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    category: Mapped[Category] = mapped_column(
        Enum(
            Category,
            name="expense_category_enum",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=Category.OTHER,
        server_default=Category.OTHER.value,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # ON DELETE RESTRICT — trip_service refuses to remove a referenced member.
    paid_by_member_id: Mapped[str | None] = mapped_column(
        ForeignKey("trip_members.id", ondelete="RESTRICT"),
        nullable=True,
    )

    # Column is "date"; the attribute name avoids shadowing datetime.date.
    expense_date: Mapped[date | None] = mapped_column("date", Date, nullable=True)

    is_settled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    # Set when the chat assistant recorded the expense through the same API.
    is_ai_generated: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # Nullable; set on every successful PATCH.
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    trip: Mapped["Trip"] = relationship(  # noqa: F821
        "Trip",
        back_populates="expenses",
    )

    payer: Mapped["TripMember"] = relationship(  # noqa: F821
        "TripMember",
        foreign_keys=[paid_by_member_id],
    )

    # Splits are owned by their expense. Ordered by position: the last split
    # member absorbs the division remainder, so order is significant.
    splits: Mapped[list["ExpenseSplit"]] = relationship(  # noqa: F821
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.position",
    )

    @property
    def split_member_ids(self) -> list[str]:
        """Member ids sharing this expense, in split-list order."""
        return [split.member_id for split in self.splits]

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Expense id={self.id} "
            f"trip_id={self.trip_id} "
            f"amount={self.amount} "
            f"settled={self.is_settled}>"
        )
