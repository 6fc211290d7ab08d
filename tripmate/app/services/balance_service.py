"""
services/balance_service.py — Balance computation and debt settlement.

This file is the SINGLE SOURCE OF TRUTH for how balances and settlement
transfers are computed. Any change to how splitting works must be made here;
all other behaviour follows from it.

Layer rules:
  - No Flask imports. No SQLAlchemy imports. No HTTP knowledge.
  - Receives plain value objects; returns plain value objects.
  - Pure and integer-only: every call recomputes from the snapshot given,
    nothing is cached, and no floating point is involved.

Determinism:
  - The remainder of an integer split goes to the LAST member of the split
    list (explicit [-1] index below).
  - Creditors and debtors are ordered with Python's stable sort, so members
    with equal balances keep their roster order.

Conservation:
  - When every payer is on the roster, sum(balance) == 0 for every input.
    An expense whose payer is off-roster (or None) is owed by nobody; its
    amount is missing from the reported balances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, NewType, Sequence

from tripmate.app.errors import AppError, ErrorCode


MemberId = NewType("MemberId", str)


# ── Value objects ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Member:
    """A roster entry: who appears in the settlement report."""

    member_id: MemberId
    display_name: str


@dataclass(frozen=True)
class ExpenseShare:
    """
    The settlement engine's view of one expense.

    amount:            whole yen, >= 0. Validated here so a fractional or
                       negative amount can never reach the arithmetic.
    paid_by:           member who fronted the money, or None if unknown.
    split_member_ids:  ordered members sharing the cost. Order matters: the
                       last member receives the division remainder.
    """

    amount: int
    paid_by: MemberId | None
    split_member_ids: tuple[MemberId, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # bool is an int subclass; True is not an amount.
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise AppError(
                ErrorCode.INVALID_AMOUNT,
                f"Expense amount must be a whole number of yen, got {self.amount!r}.",
                422,
                field="amount",
            )
        if self.amount < 0:
            raise AppError(
                ErrorCode.INVALID_AMOUNT,
                f"Expense amount must not be negative, got {self.amount}.",
                422,
                field="amount",
            )
        # Accept any sequence from callers but store an immutable tuple.
        object.__setattr__(self, "split_member_ids", tuple(self.split_member_ids))


@dataclass(frozen=True)
class MemberBalance:
    """Net position: positive = is owed money, negative = owes money."""

    member_id: MemberId
    display_name: str
    balance: int

    @property
    def member(self) -> Member:
        return Member(self.member_id, self.display_name)


@dataclass(frozen=True)
class Transfer:
    """One recommended payment from a debtor to a creditor."""

    from_member: Member
    to_member: Member
    amount: int


# ── Core algorithms ────────────────────────────────────────────────────────

def calculate_balances(
        expenses: Iterable[ExpenseShare],
        members: Sequence[Member],
) -> list[MemberBalance]:
    """
    Reduces expenses to one signed balance per roster member.

    Algorithm:
      1. Every roster member starts at 0.
      2. For each expense split among n > 0 members:
           per_person = amount // n, remainder = amount - per_person * n
           - the payer is credited the full amount;
           - every split member except the last is debited per_person;
           - the last split member is debited per_person + remainder.
         An expense with an empty split list is skipped.
      3. One MemberBalance per roster entry, in roster order.

    Payers and split members that are not on the roster are still tracked
    but never reported. No input raises.
    """
    running: dict[MemberId, int] = {m.member_id: 0 for m in members}

    for expense in expenses:
        split_ids = expense.split_member_ids
        split_count = len(split_ids)
        if split_count == 0:
            continue

        per_person = expense.amount // split_count
        remainder = expense.amount - per_person * split_count

        if expense.paid_by is not None:
            running[expense.paid_by] = running.get(expense.paid_by, 0) + expense.amount

        for member_id in split_ids[:-1]:
            running[member_id] = running.get(member_id, 0) - per_person

        last_id = split_ids[-1]
        running[last_id] = running.get(last_id, 0) - (per_person + remainder)

    return [
        MemberBalance(
            member_id=m.member_id,
            display_name=m.display_name,
            balance=running.get(m.member_id, 0),
        )
        for m in members
    ]


def calculate_settlements(balances: Sequence[MemberBalance]) -> list[Transfer]:
    """
    Greedy debt settlement: largest creditor against largest debtor.

    Zero balances are ignored. Creditors and debtors are each sorted by
    magnitude, descending, with a stable sort. Two pointers walk both lists;
    each step pays min(creditor, debtor) and advances whichever side reached
    exactly zero (both may advance in the same step).

    For balances that sum to zero, applying the returned transfers settles
    every member, and at most (number of nonzero balances - 1) transfers are
    produced. An empty list means nothing is owed.
    """
    creditors = sorted(
        [[b.member, b.balance] for b in balances if b.balance > 0],
        key=lambda x: x[1],
        reverse=True,
    )
    debtors = sorted(
        [[b.member, -b.balance] for b in balances if b.balance < 0],
        key=lambda x: x[1],
        reverse=True,
    )

    transfers: list[Transfer] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        creditor, credit = creditors[i]
        debtor, debt = debtors[j]

        amount = min(credit, debt)
        if amount > 0:
            transfers.append(Transfer(from_member=debtor, to_member=creditor, amount=amount))

        creditors[i][1] = credit - amount
        debtors[j][1] = debt - amount

        if creditors[i][1] == 0:
            i += 1
        if debtors[j][1] == 0:
            j += 1

    return transfers


def balance_sum(balances: Iterable[MemberBalance]) -> int:
    """Sum of reported balances; 0 whenever every payer is on the roster."""
    return sum(b.balance for b in balances)
