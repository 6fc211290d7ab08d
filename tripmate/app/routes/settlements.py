"""
routes/settlements.py — Settlement route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Special: get_settlement_summary returns (summary, warnings[]).
  If the balances do not sum to zero (an unsettled expense without a payer),
  the warning is passed through in the envelope:
  {"data": {...}, "warnings": [{"code": "BALANCE_NOT_CONSERVED", ...}]}.
  The HTTP status is still 200.

Endpoints (base url_prefix=/api/v1/trips):
  GET    /trips/:id/settlement             → 200  balances, transfers, share text
  POST   /trips/:id/settlement/settle-all  → 200  mark unsettled expenses settled
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from tripmate.app.extensions import db
from tripmate.app.services import settlement_service

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.route("/<trip_id>/settlement", methods=["GET"])
def get_settlement(trip_id: str):
    """GET /trips/:id/settlement — Who pays whom, computed from unsettled expenses."""
    summary, warnings = settlement_service.get_settlement_summary(
        trip_id=trip_id,
        session=db.session,
    )
    return jsonify({"data": summary, "warnings": warnings}), 200


@settlements_bp.route("/<trip_id>/settlement/settle-all", methods=["POST"])
def settle_all(trip_id: str):
    """POST /trips/:id/settlement/settle-all — Mark every unsettled expense as settled."""
    settled_count = settlement_service.settle_all(
        trip_id=trip_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": {"settled_count": settled_count}, "warnings": []}), 200
