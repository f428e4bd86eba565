from datetime import date, datetime, time, timedelta
from decimal import Decimal
from sqlalchemy import func
from medicines.medicine import Medicine
from patients.patient import Patient
from sales.sales_service import day_bounds
from sales.sales_transaction import SalesTransaction, TransactionStatus


def _period(start_date, end_date):
    return f"{start_date.isoformat()} to {end_date.isoformat()}"


def _as_date(value):
    return value.date() if isinstance(value, datetime) else value


class ReportService:
    """Read-only aggregates. Revenue figures count COMPLETED sales only."""

    def __init__(self, session):
        self.session = session

    def _revenue(self, start=None, end=None):
        query = self.session.query(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).filter(
            SalesTransaction.status == TransactionStatus.COMPLETED
        )
        if start is not None:
            query = query.filter(SalesTransaction.transaction_date >= start, SalesTransaction.transaction_date <= end)
        return Decimal(str(query.scalar())).quantize(Decimal("0.01"))

    def _completed_count(self, start, end):
        return (
            self.session.query(func.count(SalesTransaction.id))
            .filter(
                SalesTransaction.status == TransactionStatus.COMPLETED,
                SalesTransaction.transaction_date >= start,
                SalesTransaction.transaction_date <= end,
            )
            .scalar()
        )

    def get_dashboard_stats(self, today=None):
        today = today or date.today()
        start, end = day_bounds(today)

        return {
            "total_medicines": self.session.query(func.count(Medicine.id)).scalar(),
            "low_stock_medicines": self.session.query(func.count(Medicine.id))
            .filter(Medicine.current_stock <= Medicine.minimum_stock)
            .scalar(),
            "expired_medicines": self.session.query(func.count(Medicine.id))
            .filter(Medicine.expiry_date.isnot(None), Medicine.expiry_date <= today)
            .scalar(),
            "total_patients": self.session.query(func.count(Patient.id)).scalar(),
            "today_sales": self._revenue(start, end),
            "today_transactions": self._completed_count(start, end),
            "total_revenue": self._revenue(),
        }

    def get_today_revenue(self, today=None):
        return self._revenue(*day_bounds(today or date.today()))

    def get_monthly_revenue(self, today=None):
        today = today or date.today()
        first = today.replace(day=1)
        if first.month == 12:
            next_month = first.replace(year=first.year + 1, month=1)
        else:
            next_month = first.replace(month=first.month + 1)
        start = datetime.combine(first, time.min)
        end = datetime.combine(next_month - timedelta(days=1), time.max)
        return self._revenue(start, end)

    def generate_sales_report(self, start_date, end_date):
        start_date, end_date = _as_date(start_date), _as_date(end_date)
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time.max)

        rows = (
            self.session.query(SalesTransaction, Patient.name)
            .outerjoin(Patient, SalesTransaction.patient_id == Patient.id)
            .filter(
                SalesTransaction.status == TransactionStatus.COMPLETED,
                SalesTransaction.transaction_date >= start,
                SalesTransaction.transaction_date <= end,
            )
            .order_by(SalesTransaction.transaction_date.desc(), SalesTransaction.id.desc())
            .all()
        )

        transactions = []
        total_revenue = Decimal("0.00")
        for sale, patient_name in rows:
            entry = sale.to_dict()
            entry["patient_name"] = patient_name
            transactions.append(entry)
            total_revenue += sale.total_amount

        return {
            "period": _period(start_date, end_date),
            "total_transactions": len(transactions),
            "total_revenue": total_revenue,
            "transactions": transactions,
        }

    def generate_stock_report(self, start_date, end_date, today=None):
        start_date, end_date = _as_date(start_date), _as_date(end_date)
        today = today or date.today()
        medicines = self.session.query(Medicine).order_by(Medicine.name, Medicine.id).all()

        return {
            "period": _period(start_date, end_date),
            "total_medicines": len(medicines),
            "low_stock_count": len([m for m in medicines if m.is_low_stock]),
            "expired_count": len([m for m in medicines if m.is_expired(today)]),
            "medicines": [m.to_dict() for m in medicines],
        }
