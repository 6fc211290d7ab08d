"""
routes/trips.py — Trip and member route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/trips):
  POST   /trips                         → 201  create trip (caller becomes owner)
  GET    /trips/:id                     → 200  get trip + members
  POST   /trips/:id/members             → 201  add registered or manual member
  DELETE /trips/:id/members/:mid        → 200  remove member
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from tripmate.app.extensions import db
from tripmate.app.schemas.trip_schema import AddMemberSchema, CreateTripSchema
from tripmate.app.services import trip_service

trips_bp = Blueprint("trips", __name__)


@trips_bp.route("", methods=["POST"])
def create_trip():
    """POST /trips — Create a new trip with its owner as first member."""
    data = CreateTripSchema().load(request.get_json(force=True) or {})
    result = trip_service.create_trip(data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@trips_bp.route("/<trip_id>", methods=["GET"])
def get_trip(trip_id: str):
    """GET /trips/:id — Get trip details with the roster in joined order."""
    result = trip_service.get_trip(trip_id=trip_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@trips_bp.route("/<trip_id>/members", methods=["POST"])
def add_member(trip_id: str):
    """POST /trips/:id/members — Add a member by user_id or by name only."""
    data = AddMemberSchema().load(request.get_json(force=True) or {})
    result = trip_service.add_member(
        trip_id=trip_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@trips_bp.route("/<trip_id>/members/<member_id>", methods=["DELETE"])
def remove_member(trip_id: str, member_id: str):
    """DELETE /trips/:id/members/:mid — Refused for the owner and for members in use."""
    trip_service.remove_member(
        trip_id=trip_id,
        member_id=member_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "removed": True,
            "member_id": member_id,
        },
        "warnings": [],
    }), 200
