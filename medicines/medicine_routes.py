from flask import Blueprint, request, jsonify
from src.extensions import db
from src.exceptions import ValidationError
from medicines.medicine_service import MedicinePatch, MedicineService

bp = Blueprint("medicines", __name__)


def _service():
    return MedicineService(db.session)


def _flag(name):
    return request.args.get(name, "").lower() in ("1", "true", "yes")


# -------------------- CREATE MEDICINE --------------------
@bp.route("/", methods=["POST"])
def create_medicine():
    data = request.get_json() or {}
    medicine = _service().create_medicine(data)
    return jsonify(medicine.to_dict()), 201


# -------------------- LIST MEDICINES --------------------
@bp.route("/", methods=["GET"])
def list_medicines():
    return jsonify([m.to_dict() for m in _service().list_medicines()]), 200


@bp.route("/search", methods=["GET"])
def search_medicines():
    medicines = _service().search_medicines(
        query=request.args.get("q"),
        low_stock_only=_flag("low_stock_only"),
        expired_only=_flag("expired_only"),
    )
    return jsonify([m.to_dict() for m in medicines]), 200


@bp.route("/low-stock", methods=["GET"])
def low_stock_medicines():
    return jsonify([
        {
            "id": m.id,
            "name": m.name,
            "current_stock": m.current_stock,
            "minimum_stock": m.minimum_stock,
            "unit": m.unit,
        }
        for m in _service().get_low_stock_medicines()
    ]), 200


@bp.route("/expired", methods=["GET"])
def expired_medicines():
    return jsonify([
        {
            "id": m.id,
            "name": m.name,
            "expiry_date": m.expiry_date.isoformat(),
            "current_stock": m.current_stock,
            "unit": m.unit,
        }
        for m in _service().get_expired_medicines()
    ]), 200


# -------------------- GET / UPDATE / DELETE --------------------
@bp.route("/<int:medicine_id>", methods=["GET"])
def get_medicine(medicine_id):
    medicine = _service().get_medicine(medicine_id)
    if not medicine:
        return jsonify({"error": "Medicine not found"}), 404
    return jsonify(medicine.to_dict()), 200


@bp.route("/<int:medicine_id>", methods=["PATCH", "PUT"])
def update_medicine(medicine_id):
    data = request.get_json() or {}
    if "current_stock" in data:
        raise ValidationError("current_stock changes only through stock transactions", field="current_stock")

    medicine = _service().update_medicine(medicine_id, MedicinePatch.from_dict(data))
    if not medicine:
        return jsonify({"error": "Medicine not found"}), 404
    return jsonify(medicine.to_dict()), 200


@bp.route("/<int:medicine_id>", methods=["DELETE"])
def delete_medicine(medicine_id):
    if not _service().delete_medicine(medicine_id):
        return jsonify({"error": "Medicine not found"}), 404
    return jsonify({"message": "Medicine deleted successfully"}), 200
