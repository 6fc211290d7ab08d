"""
Unit tests for settlement_service, run DB-free.

The data-access helpers are patched so the summary assembly, the
non-conservation warning and settle_all are checked in isolation.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from tripmate.app.errors import AppError, ErrorCode, WarningCode
from tripmate.app.services import settlement_service
from tripmate.app.services.balance_service import ExpenseShare, Member, MemberId


A, B, C = (MemberId(x) for x in "abc")
ROSTER = [Member(A, "Alice"), Member(B, "Bob"), Member(C, "Carol")]


def _session_with_trip(name: str = "Kyoto") -> MagicMock:
    session = MagicMock()
    session.get.return_value = SimpleNamespace(id="t1", name=name)
    return session


def test_summary_raises_trip_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        settlement_service.get_settlement_summary(trip_id="missing", session=session)

    err = exc_info.value
    assert err.code == ErrorCode.TRIP_NOT_FOUND
    assert err.http_status == 404


def test_summary_assembles_balances_transfers_and_text():
    session = _session_with_trip()
    expenses = [ExpenseShare(amount=100, paid_by=A, split_member_ids=(A, B, C))]

    with patch.object(
        settlement_service, "load_settlement_snapshot", return_value=(expenses, ROSTER),
    ):
        summary, warnings = settlement_service.get_settlement_summary("t1", session)

    assert warnings == []
    assert summary["trip_id"] == "t1"
    assert summary["trip_name"] == "Kyoto"
    assert summary["total_amount"] == 100
    assert summary["formatted_total"] == "¥100"
    assert summary["expense_count"] == 1
    assert summary["balance_sum"] == 0
    assert [b["balance"] for b in summary["balances"]] == [67, -33, -34]
    assert [(s["from_name"], s["to_name"], s["amount"]) for s in summary["settlements"]] == [
        ("Carol", "Alice", 34),
        ("Bob", "Alice", 33),
    ]
    assert summary["share_text"].startswith("【Kyoto】精算のお願い")
    assert summary["share_url"].startswith("https://line.me/R/share?text=")


def test_summary_with_nothing_to_settle():
    session = _session_with_trip("Nara")

    with patch.object(settlement_service, "load_settlement_snapshot", return_value=([], ROSTER)):
        summary, warnings = settlement_service.get_settlement_summary("t1", session)

    assert warnings == []
    assert summary["settlements"] == []
    assert summary["share_text"] == "【Nara】精算完了\n\n精算の必要はありません！🎉"


def test_summary_warns_when_balances_not_conserved(caplog):
    session = _session_with_trip()
    expenses = [ExpenseShare(amount=300, paid_by=None, split_member_ids=(A, B, C))]

    with patch.object(
        settlement_service, "load_settlement_snapshot", return_value=(expenses, ROSTER),
    ), caplog.at_level(logging.WARNING, logger=settlement_service.__name__):
        summary, warnings = settlement_service.get_settlement_summary("t1", session)

    assert summary["balance_sum"] == -300
    assert [w["code"] for w in warnings] == [WarningCode.BALANCE_NOT_CONSERVED]
    assert "-300" in warnings[0]["message"]
    assert any("sum to -300" in r.getMessage() for r in caplog.records)


def test_load_snapshot_converts_rows_in_order():
    session = MagicMock()
    expense_rows = [
        SimpleNamespace(amount=500, paid_by_member_id="a", split_member_ids=["c", "b"]),
        SimpleNamespace(amount=0, paid_by_member_id=None, split_member_ids=["a"]),
    ]
    member_rows = [
        SimpleNamespace(id="a", display_name="Alice"),
        SimpleNamespace(id="b", display_name="Bob"),
    ]

    with patch.object(settlement_service, "get_unsettled_expenses", return_value=expense_rows), \
            patch.object(settlement_service, "get_roster", return_value=member_rows):
        expenses, members = settlement_service.load_settlement_snapshot("t1", session)

    assert expenses == [
        ExpenseShare(amount=500, paid_by=A, split_member_ids=(C, B)),
        ExpenseShare(amount=0, paid_by=None, split_member_ids=(A,)),
    ]
    assert members == [Member(A, "Alice"), Member(B, "Bob")]


def test_settle_all_marks_expenses_and_returns_count():
    session = _session_with_trip()
    rows = [SimpleNamespace(is_settled=False), SimpleNamespace(is_settled=False)]

    with patch.object(settlement_service, "get_unsettled_expenses", return_value=rows):
        count = settlement_service.settle_all("t1", session)

    assert count == 2
    assert all(r.is_settled for r in rows)
    session.flush.assert_called_once()


def test_settle_all_with_nothing_unsettled_returns_zero():
    session = _session_with_trip()

    with patch.object(settlement_service, "get_unsettled_expenses", return_value=[]):
        assert settlement_service.settle_all("t1", session) == 0


def test_settle_all_raises_trip_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        settlement_service.settle_all("missing", session)

    assert exc_info.value.code == ErrorCode.TRIP_NOT_FOUND
