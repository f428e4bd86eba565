import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date, datetime
from decimal import Decimal
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from src.config import Config
from src.extensions import db, migrate
from src.exceptions import PharmacyError

# register blueprints dynamically
from routes import register_routes

logger = logging.getLogger(__name__)


class PharmacyJSONProvider(DefaultJSONProvider):
    """Money as JSON numbers, dates as ISO-8601."""

    sort_keys = False

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def configure_logging(level):
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root.addHandler(handler)
    root.setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(PharmacyError)
    def handle_pharmacy_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "not_found", "message": "Resource not found"}), 404


def create_app(overrides=None):
    app = Flask(__name__)
    app.json = PharmacyJSONProvider(app)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    CORS(app, origins=app.config["CORS_ORIGINS"], methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"], allow_headers=["Content-Type", "Authorization"])

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import all models within app context to resolve relationships
    with app.app_context():
        import models  # noqa: F401

    register_routes(app)
    register_error_handlers(app)

    @app.get("/")
    def index():
        return jsonify({"message": "Pharmacy Management API"}), 200

    @app.route('/api/health')
    def health():
        return jsonify({"status": "ok", "timestamp": datetime.now().isoformat()}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
