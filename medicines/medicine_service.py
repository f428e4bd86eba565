import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from sqlalchemy import or_
from src.extensions import atomic
from src.exceptions import MedicineInUse, ValidationError
from src.money import to_money
from src.patch import Patch, UNSET
from src.validation import non_negative_int, optional_text, parse_date, require_text
from medicines.medicine import Medicine
from sales.sales_transaction import SalesTransactionItem
from stock_transactions.stock_service import StockLedger
from stock_transactions.stock_transaction import StockDirection, StockTransaction

logger = logging.getLogger(__name__)

OPENING_STOCK_NOTE = "Opening stock"


@dataclass(frozen=True)
class MedicinePatch(Patch):
    name: Any = UNSET
    description: Any = UNSET
    unit: Any = UNSET
    price: Any = UNSET
    minimum_stock: Any = UNSET
    expiry_date: Any = UNSET
    batch_number: Any = UNSET
    supplier: Any = UNSET


def _positive_price(value):
    price = to_money(value, "price")
    if price <= 0:
        raise ValidationError("price must be greater than 0", field="price")
    return price


class MedicineService:
    def __init__(self, session, ledger=None):
        self.session = session
        self.ledger = ledger or StockLedger(session)

    def create_medicine(self, data):
        """
        Create a medicine. A non-zero ``current_stock`` is booked as an opening
        IN movement so the counter stays equal to the ledger sum.
        """
        name = require_text(data.get("name"), "name")
        unit = require_text(data.get("unit"), "unit")
        price = _positive_price(data.get("price"))
        minimum_stock = non_negative_int(data.get("minimum_stock", 0), "minimum_stock")
        initial_stock = non_negative_int(data.get("current_stock", 0), "current_stock")

        medicine = Medicine(
            name=name,
            description=optional_text(data.get("description"), "description"),
            unit=unit,
            price=price,
            minimum_stock=minimum_stock,
            current_stock=0,
            expiry_date=parse_date(data.get("expiry_date"), "expiry_date"),
            batch_number=optional_text(data.get("batch_number"), "batch_number"),
            supplier=optional_text(data.get("supplier"), "supplier"),
        )
        with atomic(self.session):
            self.session.add(medicine)
            self.session.flush()
            if initial_stock:
                self.ledger.apply(medicine, StockDirection.IN, initial_stock, OPENING_STOCK_NOTE)

        logger.info("Created medicine %s (%s) with opening stock %s", medicine.id, medicine.name, initial_stock)
        return medicine

    def list_medicines(self):
        return self.session.query(Medicine).order_by(Medicine.name, Medicine.id).all()

    def get_medicine(self, medicine_id):
        return self.session.get(Medicine, medicine_id)

    def update_medicine(self, medicine_id, patch):
        medicine = self.session.get(Medicine, medicine_id)
        if medicine is None:
            return None

        changes = patch.present()
        values = {}
        if "name" in changes:
            values["name"] = require_text(changes["name"], "name")
        if "description" in changes:
            values["description"] = optional_text(changes["description"], "description")
        if "unit" in changes:
            values["unit"] = require_text(changes["unit"], "unit")
        if "price" in changes:
            values["price"] = _positive_price(changes["price"])
        if "minimum_stock" in changes:
            values["minimum_stock"] = non_negative_int(changes["minimum_stock"], "minimum_stock")
        if "expiry_date" in changes:
            values["expiry_date"] = parse_date(changes["expiry_date"], "expiry_date")
        if "batch_number" in changes:
            values["batch_number"] = optional_text(changes["batch_number"], "batch_number")
        if "supplier" in changes:
            values["supplier"] = optional_text(changes["supplier"], "supplier")

        with atomic(self.session):
            for field, value in values.items():
                setattr(medicine, field, value)
            medicine.updated_at = datetime.now()
        return medicine

    def delete_medicine(self, medicine_id):
        medicine = self.session.get(Medicine, medicine_id)
        if medicine is None:
            return False

        # Medicines with ledger or sale history are kept
        has_movements = self.session.query(StockTransaction.id).filter_by(medicine_id=medicine_id).first()
        has_sales = self.session.query(SalesTransactionItem.id).filter_by(medicine_id=medicine_id).first()
        if has_movements or has_sales:
            raise MedicineInUse(medicine_id)

        with atomic(self.session):
            self.session.delete(medicine)
        logger.info("Deleted medicine %s", medicine_id)
        return True

    def search_medicines(self, query=None, low_stock_only=False, expired_only=False, today=None):
        q = self.session.query(Medicine)
        if query and query.strip():
            term = f"%{query.strip()}%"
            q = q.filter(or_(
                Medicine.name.ilike(term),
                Medicine.description.ilike(term),
                Medicine.batch_number.ilike(term),
                Medicine.supplier.ilike(term),
            ))
        if low_stock_only:
            q = q.filter(Medicine.current_stock <= Medicine.minimum_stock)
        if expired_only:
            q = q.filter(Medicine.expiry_date.isnot(None), Medicine.expiry_date <= (today or date.today()))
        return q.order_by(Medicine.name, Medicine.id).all()

    def get_low_stock_medicines(self):
        return (
            self.session.query(Medicine)
            .filter(Medicine.current_stock <= Medicine.minimum_stock)
            .order_by(Medicine.current_stock, Medicine.name)
            .all()
        )

    def get_expired_medicines(self, today=None):
        return (
            self.session.query(Medicine)
            .filter(Medicine.expiry_date.isnot(None), Medicine.expiry_date <= (today or date.today()))
            .order_by(Medicine.expiry_date, Medicine.name)
            .all()
        )
