from flask import Blueprint, request, jsonify
from src.extensions import db
from settings.settings_service import SettingsService

bp = Blueprint("settings", __name__)


@bp.route("/", methods=["GET"])
def get_settings():
    return jsonify([s.to_dict() for s in SettingsService(db.session).get_settings()]), 200


@bp.route("/", methods=["PUT"])
def update_setting():
    data = request.get_json() or {}
    setting = SettingsService(db.session).update_setting(data.get("key"), data.get("value"))
    return jsonify(setting.to_dict()), 200


@bp.route("/clinic", methods=["GET"])
def get_clinic_info():
    return jsonify(SettingsService(db.session).get_clinic_info()), 200


@bp.route("/clinic", methods=["PUT"])
def update_clinic_info():
    data = request.get_json() or {}
    updated = SettingsService(db.session).update_clinic_info(
        data.get("name"), address=data.get("address"), logo=data.get("logo")
    )
    return jsonify({"updated": updated}), 200


@bp.route("/initialize", methods=["POST"])
def initialize_settings():
    created = SettingsService(db.session).initialize_default_settings()
    return jsonify({"created": created}), 200


@bp.route("/<key>", methods=["GET"])
def get_setting(key):
    setting = SettingsService(db.session).get_setting(key)
    if not setting:
        return jsonify({"error": "Setting not found"}), 404
    return jsonify(setting.to_dict()), 200
