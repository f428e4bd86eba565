import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.extensions import db
from src.main import create_app
from settings.settings_service import SettingsService


def create_tables():
    db.create_all()
    created = SettingsService(db.session).initialize_default_settings()
    print(f"All tables created; seeded settings: {', '.join(created) or 'none'}")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        create_tables()
