from flask import Blueprint, request, jsonify
from src.extensions import db
from src.validation import parse_datetime
from sales.sales_service import CancelOutcome, SalesService

bp = Blueprint("sales", __name__)


def _service():
    return SalesService(db.session)


@bp.route("/transactions", methods=["POST"])
def create_sale():
    payload = request.get_json() or {}
    sale = _service().create_sale(
        items=payload.get("items"),
        payment_method=payload.get("payment_method"),
        payment_received=payload.get("payment_received"),
        patient_id=payload.get("patient_id"),
        notes=payload.get("notes"),
    )
    return jsonify(sale.to_dict()), 201


@bp.route("/transactions", methods=["GET"])
def list_sales():
    return jsonify([s.to_dict() for s in _service().list_sales()]), 200


@bp.route("/transactions/today", methods=["GET"])
def list_sales_today():
    return jsonify([s.to_dict() for s in _service().list_sales_today()]), 200


@bp.route("/transactions/range", methods=["GET"])
def list_sales_in_range():
    start = parse_datetime(request.args.get("start_date"), "start_date")
    end = parse_datetime(request.args.get("end_date"), "end_date")
    return jsonify([s.to_dict() for s in _service().list_sales_in_range(start, end)]), 200


@bp.route("/transactions/<int:sale_id>", methods=["GET"])
def get_sale(sale_id):
    service = _service()
    sale = service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sales transaction not found"}), 404
    result = sale.to_dict()
    result["items"] = [item.to_dict() for item in service.get_sale_items(sale_id)]
    return jsonify(result), 200


@bp.route("/transactions/<int:sale_id>/receipt", methods=["GET"])
def get_receipt(sale_id):
    receipt = _service().get_receipt(sale_id)
    if receipt is None:
        return jsonify({"error": "Sales transaction not found"}), 404
    return jsonify(receipt), 200


@bp.route("/transactions/<int:sale_id>/cancel", methods=["POST"])
def cancel_sale(sale_id):
    outcome = _service().cancel_sale_outcome(sale_id)
    cancelled = outcome is CancelOutcome.CANCELLED
    status = 200 if cancelled else 404 if outcome is CancelOutcome.NOT_FOUND else 409
    return jsonify({"cancelled": cancelled, "outcome": outcome.value}), status
