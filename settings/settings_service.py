import logging
from datetime import datetime
from flask import current_app, has_app_context
from src.extensions import atomic
from src.exceptions import ValidationError
from src.validation import require_text
from settings.setting import Setting

logger = logging.getLogger(__name__)

FALLBACK_CLINIC_NAME = "Bidan Hebat Management"
RECEIPT_CLINIC_NAME = "Apotek"

DEFAULT_SETTINGS = (
    ("clinic_name", FALLBACK_CLINIC_NAME, "Clinic name shown on receipts and reports"),
    ("clinic_address", "", "Clinic address shown on receipts"),
    ("clinic_logo", "", "Path or URL of the clinic logo"),
    ("low_stock_threshold_days", "7", "Days ahead of expiry to warn about"),
    ("receipt_footer_text", "Terima kasih atas kunjungan Anda", "Footer line printed on receipts"),
)


def _default_clinic_name():
    if has_app_context():
        return current_app.config.get("DEFAULT_CLINIC_NAME", FALLBACK_CLINIC_NAME)
    return FALLBACK_CLINIC_NAME


class SettingsService:
    def __init__(self, session):
        self.session = session

    def get_settings(self):
        return self.session.query(Setting).order_by(Setting.key).all()

    def get_setting(self, key):
        return self.session.query(Setting).filter_by(key=key).first()

    def get_value(self, key, default=None):
        setting = self.get_setting(key)
        if setting is None or setting.value is None:
            return default
        return setting.value

    def _upsert(self, key, value, description=None):
        now = datetime.now()
        setting = self.get_setting(key)
        if setting is None:
            setting = Setting(key=key, value=value, description=description, created_at=now, updated_at=now)
            self.session.add(setting)
        else:
            setting.value = value
            setting.updated_at = now
        return setting

    def update_setting(self, key, value, description=None):
        key = require_text(key, "key")
        if value is not None and not isinstance(value, str):
            raise ValidationError("value must be a string", field="value")
        with atomic(self.session):
            setting = self._upsert(key, value, description)
        logger.info("Setting %s updated", key)
        return setting

    def get_clinic_info(self):
        name = self.get_value("clinic_name")
        return {
            "name": name or _default_clinic_name(),
            "address": self.get_value("clinic_address") or None,
            "logo": self.get_value("clinic_logo") or None,
        }

    def update_clinic_info(self, name, address=None, logo=None):
        name = require_text(name, "name")
        with atomic(self.session):
            self._upsert("clinic_name", name)
            if address is not None:
                self._upsert("clinic_address", address)
            if logo is not None:
                self._upsert("clinic_logo", logo)
        return True

    def initialize_default_settings(self):
        """Seed missing default keys; existing values are left untouched."""
        created = []
        with atomic(self.session):
            for key, value, description in DEFAULT_SETTINGS:
                if self.get_setting(key) is None:
                    self._upsert(key, value, description)
                    created.append(key)
        if created:
            logger.info("Initialised default settings: %s", ", ".join(created))
        return created

    def get_receipt_branding(self):
        return {
            "clinic_name": self.get_value("clinic_name") or RECEIPT_CLINIC_NAME,
            "clinic_address": self.get_value("clinic_address") or None,
            "clinic_logo": self.get_value("clinic_logo") or None,
            "footer_text": self.get_value("receipt_footer_text") or None,
        }
