"""
models/split.py — ExpenseSplit table definition.

One row per member sharing an expense. Rows carry no amount: the per-member
share is derived at settlement time by integer division, with the remainder
assigned to the member at the highest `position`.

Key design points:
  - expense_id is ON DELETE CASCADE — splits are owned by their expense.
  - member_id is ON DELETE RESTRICT — trip_service refuses to remove a
    member who still appears in a split.
  - UNIQUE(expense_id, member_id) prevents the same member appearing twice
    in one expense (also enforced as DUPLICATE_SPLIT_MEMBER at schema layer).
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripmate.app.extensions import db


class ExpenseSplit(db.Model):
    __tablename__ = "expense_splits"

    __table_args__ = (
        UniqueConstraint("expense_id", "member_id", name="uq_expense_splits_expense_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    expense_id: Mapped[str] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    member_id: Mapped[str] = mapped_column(
        ForeignKey("trip_members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # 0-based index in the split list as submitted by the client.
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Relationships ──────────────────────────────────────────────────────

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="splits",
    )

    member: Mapped["TripMember"] = relationship("TripMember")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ExpenseSplit id={self.id} "
            f"expense_id={self.expense_id} "
            f"member_id={self.member_id} "
            f"position={self.position}>"
        )
