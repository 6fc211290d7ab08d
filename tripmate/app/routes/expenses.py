"""
routes/expenses.py — HTTP endpoints for trip expenses.

Mounted at /api/v1: the blueprint serves trip-scoped paths
(/trips/:id/expenses) as well as expense-ID paths (/expenses/:id).
Each handler loads the body through a schema, calls one service function,
commits and wraps the result in the {"data", "warnings"} envelope.

Endpoints:
  POST   /trips/:id/expenses   → 201  create expense
  GET    /trips/:id/expenses   → 200  list expenses, newest date first
  GET    /expenses/:id         → 200  get expense + split members
  PATCH  /expenses/:id         → 200  partial update (incl. is_settled)
  DELETE /expenses/:id         → 200  hard delete
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from tripmate.app.extensions import db
from tripmate.app.models.expense import Expense
from tripmate.app.schemas.expense_schema import CreateExpenseSchema, PatchExpenseSchema
from tripmate.app.services import expense_service

expenses_bp = Blueprint("expenses", __name__)


# ── Serialization helper ───────────────────────────────────────────────────

def _serialize_expense(expense: Expense) -> dict:
    """Converts an Expense ORM object to a plain dict for JSON output."""
    return {
        "id": expense.id,
        "trip_id": expense.trip_id,
        "title": expense.title,
        "amount": expense.amount,
        "category": expense.category.value,
        "description": expense.description,
        "paid_by_member_id": expense.paid_by_member_id,
        "split_member_ids": expense.split_member_ids,
        "date": expense.expense_date.isoformat() if expense.expense_date else None,
        "is_settled": expense.is_settled,
        "is_ai_generated": expense.is_ai_generated,
        "created_at": expense.created_at.isoformat() if expense.created_at else None,
        "updated_at": expense.updated_at.isoformat() if expense.updated_at else None,
    }


def _max_amount() -> int:
    return current_app.config["MAX_EXPENSE_AMOUNT"]


# ── Trip-scoped expense routes ─────────────────────────────────────────────

@expenses_bp.route("/trips/<trip_id>/expenses", methods=["POST"])
def create_expense(trip_id: str):
    """POST /trips/:id/expenses — Record a new expense."""
    data = CreateExpenseSchema(max_amount=_max_amount()).load(
        request.get_json(force=True) or {}
    )
    expense = expense_service.create_expense(
        trip_id=trip_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 201


@expenses_bp.route("/trips/<trip_id>/expenses", methods=["GET"])
def list_expenses(trip_id: str):
    """GET /trips/:id/expenses — List all expenses of a trip."""
    expenses = expense_service.list_expenses(trip_id=trip_id, session=db.session)
    return jsonify({
        "data": [_serialize_expense(e) for e in expenses],
        "warnings": [],
    }), 200


# ── Expense-ID routes ──────────────────────────────────────────────────────

@expenses_bp.route("/expenses/<expense_id>", methods=["GET"])
def get_expense(expense_id: str):
    """GET /expenses/:id — Get expense detail including split members."""
    expense = expense_service.get_expense(expense_id=expense_id, session=db.session)
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 200


@expenses_bp.route("/expenses/<expense_id>", methods=["PATCH"])
def edit_expense(expense_id: str):
    """PATCH /expenses/:id — Partial update. Replacing split_member_ids keeps the new order."""
    data = PatchExpenseSchema(max_amount=_max_amount()).load(
        request.get_json(force=True) or {}
    )
    expense = expense_service.edit_expense(
        expense_id=expense_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 200


@expenses_bp.route("/expenses/<expense_id>", methods=["DELETE"])
def delete_expense(expense_id: str):
    """DELETE /expenses/:id — Remove the expense and its splits."""
    expense_service.delete_expense(expense_id=expense_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "expense_id": expense_id,
        },
        "warnings": [],
    }), 200
