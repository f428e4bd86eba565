from flask import Blueprint, request, jsonify
from src.extensions import db
from patients.patient_service import PatientPatch, PatientService

bp = Blueprint("patients", __name__)


def _service():
    return PatientService(db.session)


@bp.route("/", methods=["POST"])
def create_patient():
    data = request.get_json() or {}
    patient = _service().create_patient(data)
    return jsonify(patient.to_dict()), 201


@bp.route("/", methods=["GET"])
def list_patients():
    return jsonify([p.to_dict() for p in _service().list_patients()]), 200


@bp.route("/search", methods=["GET"])
def search_patients():
    return jsonify([p.to_dict() for p in _service().search_patients(request.args.get("q"))]), 200


@bp.route("/<int:patient_id>", methods=["GET"])
def get_patient(patient_id):
    patient = _service().get_patient(patient_id)
    if not patient:
        return jsonify({"error": "Patient not found"}), 404
    return jsonify(patient.to_dict()), 200


@bp.route("/<int:patient_id>", methods=["PATCH", "PUT"])
def update_patient(patient_id):
    data = request.get_json() or {}
    patient = _service().update_patient(patient_id, PatientPatch.from_dict(data))
    if not patient:
        return jsonify({"error": "Patient not found"}), 404
    return jsonify(patient.to_dict()), 200


@bp.route("/<int:patient_id>", methods=["DELETE"])
def delete_patient(patient_id):
    if not _service().delete_patient(patient_id):
        return jsonify({"error": "Patient not found"}), 404
    return jsonify({"message": "Patient deleted successfully"}), 200


@bp.route("/<int:patient_id>/visits", methods=["GET"])
def visit_history(patient_id):
    return jsonify(_service().get_visit_history(patient_id)), 200
