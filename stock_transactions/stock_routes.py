from flask import Blueprint, request, jsonify
from src.extensions import db
from src.validation import parse_datetime
from stock_transactions.stock_service import StockLedger

bp = Blueprint("stock", __name__)


@bp.route("/transactions", methods=["POST"])
def record_movement():
    data = request.get_json() or {}
    movement = StockLedger(db.session).record_movement(
        medicine_id=data.get("medicine_id"),
        direction=data.get("type"),
        quantity=data.get("quantity"),
        notes=data.get("notes"),
    )
    return jsonify(movement.to_dict()), 201


@bp.route("/transactions", methods=["GET"])
def list_movements():
    return jsonify([m.to_dict() for m in StockLedger(db.session).list_movements()]), 200


@bp.route("/transactions/medicine/<int:medicine_id>", methods=["GET"])
def list_movements_for_medicine(medicine_id):
    movements = StockLedger(db.session).list_movements_for_medicine(medicine_id)
    return jsonify([m.to_dict() for m in movements]), 200


@bp.route("/history", methods=["GET"])
def movement_history():
    start = parse_datetime(request.args.get("start_date"), "start_date")
    end = parse_datetime(request.args.get("end_date"), "end_date")
    movements = StockLedger(db.session).list_movements_in_range(start, end)
    return jsonify([m.to_dict() for m in movements]), 200


@bp.route("/verify", methods=["GET"])
def verify_ledger():
    balances = StockLedger(db.session).verify_all()
    return jsonify({"consistent": True, "balances": {str(k): v for k, v in balances.items()}}), 200
