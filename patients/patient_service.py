import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from sqlalchemy import or_
from src.extensions import atomic
from src.exceptions import PatientHasTransactions, ValidationError
from src.patch import Patch, UNSET
from src.validation import optional_text, parse_date, require_text
from medicines.medicine import Medicine
from patients.patient import GENDERS, Patient
from sales.sales_transaction import SalesTransaction, SalesTransactionItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientPatch(Patch):
    name: Any = UNSET
    birth_date: Any = UNSET
    gender: Any = UNSET
    phone: Any = UNSET
    address: Any = UNSET
    medical_history: Any = UNSET


def _gender(value):
    if value is None:
        return None
    if value not in GENDERS:
        raise ValidationError(f"gender must be one of {', '.join(GENDERS)}", field="gender")
    return value


class PatientService:
    def __init__(self, session):
        self.session = session

    def create_patient(self, data):
        patient = Patient(
            name=require_text(data.get("name"), "name"),
            birth_date=parse_date(data.get("birth_date"), "birth_date"),
            gender=_gender(data.get("gender")),
            phone=optional_text(data.get("phone"), "phone"),
            address=optional_text(data.get("address"), "address"),
            medical_history=optional_text(data.get("medical_history"), "medical_history"),
        )
        with atomic(self.session):
            self.session.add(patient)
        logger.info("Created patient %s", patient.id)
        return patient

    def list_patients(self):
        return self.session.query(Patient).order_by(Patient.name, Patient.id).all()

    def get_patient(self, patient_id):
        return self.session.get(Patient, patient_id)

    def update_patient(self, patient_id, patch):
        patient = self.session.get(Patient, patient_id)
        if patient is None:
            return None

        changes = patch.present()
        values = {}
        if "name" in changes:
            values["name"] = require_text(changes["name"], "name")
        if "birth_date" in changes:
            values["birth_date"] = parse_date(changes["birth_date"], "birth_date")
        if "gender" in changes:
            values["gender"] = _gender(changes["gender"])
        for field in ("phone", "address", "medical_history"):
            if field in changes:
                values[field] = optional_text(changes[field], field)

        with atomic(self.session):
            for field, value in values.items():
                setattr(patient, field, value)
            patient.updated_at = datetime.now()
        return patient

    def delete_patient(self, patient_id):
        patient = self.session.get(Patient, patient_id)
        if patient is None:
            return False
        if self.session.query(SalesTransaction.id).filter_by(patient_id=patient_id).first():
            raise PatientHasTransactions(patient_id)

        with atomic(self.session):
            self.session.delete(patient)
        logger.info("Deleted patient %s", patient_id)
        return True

    def search_patients(self, query=None):
        q = self.session.query(Patient)
        if query and query.strip():
            term = f"%{query.strip()}%"
            q = q.filter(or_(
                Patient.name.ilike(term),
                Patient.phone.ilike(term),
                Patient.address.ilike(term),
            ))
        return q.order_by(Patient.name, Patient.id).all()

    def get_visit_history(self, patient_id):
        """Sales for a patient, newest first, each with its purchased lines."""
        rows = (
            self.session.query(SalesTransaction, SalesTransactionItem, Medicine.name)
            .join(SalesTransactionItem, SalesTransactionItem.transaction_id == SalesTransaction.id)
            .join(Medicine, SalesTransactionItem.medicine_id == Medicine.id)
            .filter(SalesTransaction.patient_id == patient_id)
            .order_by(
                SalesTransaction.transaction_date.desc(),
                SalesTransaction.id.desc(),
                SalesTransactionItem.id,
            )
            .all()
        )

        visits = {}
        for sale, item, medicine_name in rows:
            if sale.id not in visits:
                visits[sale.id] = {
                    "transaction_id": sale.id,
                    "transaction_date": sale.transaction_date.isoformat(),
                    "total_amount": sale.total_amount,
                    "status": sale.status.value,
                    "items": [],
                }
            visits[sale.id]["items"].append({
                "medicine_name": medicine_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            })
        return list(visits.values())
