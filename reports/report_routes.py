from flask import Blueprint, request, jsonify
from src.extensions import db
from src.validation import parse_date
from reports.report_service import ReportService

bp = Blueprint("dashboard", __name__)


def _period_args():
    start_date = parse_date(request.args.get("start_date"), "start_date")
    end_date = parse_date(request.args.get("end_date"), "end_date")
    if start_date is None or end_date is None:
        return None, None
    return start_date, end_date


@bp.route("/stats", methods=["GET"])
def dashboard_stats():
    return jsonify(ReportService(db.session).get_dashboard_stats()), 200


@bp.route("/today-revenue", methods=["GET"])
def today_revenue():
    return jsonify({"revenue": ReportService(db.session).get_today_revenue()}), 200


@bp.route("/monthly-revenue", methods=["GET"])
def monthly_revenue():
    return jsonify({"revenue": ReportService(db.session).get_monthly_revenue()}), 200


@bp.route("/reports/sales", methods=["GET"])
def sales_report():
    start_date, end_date = _period_args()
    if start_date is None:
        return jsonify({"error": "start_date and end_date are required"}), 400
    return jsonify(ReportService(db.session).generate_sales_report(start_date, end_date)), 200


@bp.route("/reports/stock", methods=["GET"])
def stock_report():
    start_date, end_date = _period_args()
    if start_date is None:
        return jsonify({"error": "start_date and end_date are required"}), 400
    return jsonify(ReportService(db.session).generate_stock_report(start_date, end_date)), 200
