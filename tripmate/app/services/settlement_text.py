"""
services/settlement_text.py — Human-readable settlement output.

Formats balances and transfers for sharing (clipboard / LINE) and for
on-screen display. Pure string formatting: the share itself is performed by
the client.
"""

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from tripmate.app.services.balance_service import MemberBalance, Transfer

LINE_SHARE_URL = "https://line.me/R/share?text="
SHARE_FOOTER = "TripMateで管理中 ✈️"
ARROW = "→"

# Characters encodeURIComponent leaves untouched; LINE expects that encoding.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_yen(amount: int) -> str:
    """1234567 -> '¥1,234,567'. Negative amounts keep their sign after the glyph."""
    return f"¥{amount:,}"


def format_signed_yen(amount: int) -> str:
    """Balance display: '+¥1,000' when owed, '¥-500' when owing, '¥0' when even."""
    prefix = "+" if amount > 0 else ""
    return f"{prefix}{format_yen(amount)}"


def balance_status(amount: int) -> str:
    if amount > 0:
        return "positive"
    if amount < 0:
        return "negative"
    return "zero"


def generate_settlement_text(
        trip_name: str,
        transfers: Sequence[Transfer],
        total_amount: int,
) -> str:
    """
    Builds the shareable settlement message.

    With no transfers the message only names the trip and declares the
    settlement complete. Otherwise it lists the total and one numbered
    "{debtor} → {creditor}: ¥{amount}" line per transfer, in the order the
    planner emitted them.
    """
    if not transfers:
        return f"【{trip_name}】精算完了\n\n精算の必要はありません！🎉"

    lines = [
        f"【{trip_name}】精算のお願い",
        "",
        f"💰 合計: {format_yen(total_amount)}",
        "",
        "📝 精算内容:",
    ]
    for index, transfer in enumerate(transfers, start=1):
        lines.append(
            f"{index}. {transfer.from_member.display_name} {ARROW} "
            f"{transfer.to_member.display_name}: {format_yen(transfer.amount)}"
        )
    lines.append("")
    lines.append(SHARE_FOOTER)

    return "\n".join(lines)


def build_line_share_url(text: str) -> str:
    """Deep link that opens LINE's share sheet pre-filled with `text`."""
    return LINE_SHARE_URL + quote(text, safe=_URI_COMPONENT_SAFE)


def serialize_balances(balances: Sequence[MemberBalance]) -> list[dict]:
    """Balance rows for on-screen display (colour keyed off `status`)."""
    return [
        {
            "member_id": b.member_id,
            "display_name": b.display_name,
            "balance": b.balance,
            "formatted": format_signed_yen(b.balance),
            "status": balance_status(b.balance),
        }
        for b in balances
    ]


def serialize_transfers(transfers: Sequence[Transfer]) -> list[dict]:
    return [
        {
            "from_member_id": t.from_member.member_id,
            "from_name": t.from_member.display_name,
            "to_member_id": t.to_member.member_id,
            "to_name": t.to_member.display_name,
            "amount": t.amount,
            "formatted_amount": format_yen(t.amount),
        }
        for t in transfers
    ]
