from decimal import Decimal

import pytest

from src.main import create_app
from src.extensions import db
from medicines.medicine_service import MedicineService
from patients.patient_service import PatientService
from reports.report_service import ReportService
from sales.sales_service import SalesService
from settings.settings_service import SettingsService
from stock_transactions.stock_service import StockLedger


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ledger(app):
    return StockLedger(db.session)


@pytest.fixture
def medicines(app, ledger):
    return MedicineService(db.session, ledger)


@pytest.fixture
def patients(app):
    return PatientService(db.session)


@pytest.fixture
def settings(app):
    return SettingsService(db.session)


@pytest.fixture
def sales(app, ledger, settings):
    return SalesService(db.session, ledger=ledger, settings=settings)


@pytest.fixture
def reports(app):
    return ReportService(db.session)


@pytest.fixture
def make_medicine(medicines):
    def _make(name="Paracetamol", price="10.00", stock=50, minimum_stock=5, unit="tablet", **extra):
        data = {
            "name": name,
            "unit": unit,
            "price": Decimal(price),
            "minimum_stock": minimum_stock,
            "current_stock": stock,
        }
        data.update(extra)
        return medicines.create_medicine(data)

    return _make


@pytest.fixture
def make_patient(patients):
    def _make(name="Siti Aminah", **extra):
        data = {"name": name}
        data.update(extra)
        return patients.create_patient(data)

    return _make
