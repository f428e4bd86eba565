import enum
import logging
from collections import namedtuple
from datetime import date, datetime, time
from decimal import Decimal
from src.extensions import atomic
from src.exceptions import (
    InsufficientPayment,
    InsufficientStock,
    PatientNotFound,
    ValidationError,
)
from src.money import quantize, to_money
from medicines.medicine import Medicine
from patients.patient import Patient
from sales.sales_transaction import (
    PaymentMethod,
    SalesTransaction,
    SalesTransactionItem,
    TransactionStatus,
)
from settings.settings_service import SettingsService
from stock_transactions.stock_service import StockLedger, require_positive_quantity
from stock_transactions.stock_transaction import StockDirection

logger = logging.getLogger(__name__)

CartLine = namedtuple("CartLine", ["medicine_id", "quantity"])


class CancelOutcome(enum.Enum):
    CANCELLED = "CANCELLED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"


def sale_note(sale_id):
    return f"Sales transaction #{sale_id}"


def cancellation_note(sale_id):
    return f"Cancelled sales transaction #{sale_id}"


def parse_cart(items):
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("At least one item is required", field="items")

    lines = []
    for item in items:
        if isinstance(item, CartLine):
            medicine_id, quantity = item
        elif isinstance(item, dict):
            medicine_id, quantity = item.get("medicine_id"), item.get("quantity")
        else:
            raise ValidationError("Each item needs medicine_id and quantity", field="items")
        if isinstance(medicine_id, bool) or not isinstance(medicine_id, int):
            raise ValidationError(f"Invalid medicine_id: {medicine_id!r}", field="medicine_id")
        require_positive_quantity(quantity)
        lines.append(CartLine(medicine_id, quantity))
    return lines


def parse_payment_method(value):
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown payment method: {value!r}", field="payment_method")


def day_bounds(day):
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


class SalesService:
    """Checkout and cancellation as single units of work over the stock ledger."""

    def __init__(self, session, ledger=None, settings=None):
        self.session = session
        self.ledger = ledger or StockLedger(session)
        self.settings = settings or SettingsService(session)

    def create_sale(self, items, payment_method, payment_received, patient_id=None, notes=None):
        """
        Price the cart, persist the sale with its lines and debit stock.
        items = [{"medicine_id": 1, "quantity": 2}, ...]

        Lines are validated, priced and debited in input order. Nothing is
        written unless every check passes.
        """
        lines = parse_cart(items)
        method = parse_payment_method(payment_method)
        received = to_money(payment_received, "payment_received")
        if received <= 0:
            raise ValidationError("payment_received must be greater than 0", field="payment_received")

        with atomic(self.session):
            if patient_id is not None and self.session.get(Patient, patient_id) is None:
                raise PatientNotFound(patient_id)

            medicines = self.ledger.lock_medicines([line.medicine_id for line in lines])

            # Stock and price are read once from the locked snapshot
            requested = {}
            priced = []
            total = Decimal("0.00")
            for line in lines:
                medicine = medicines[line.medicine_id]
                requested[medicine.id] = requested.get(medicine.id, 0) + line.quantity
                if medicine.current_stock < requested[medicine.id]:
                    logger.warning(
                        "Sale rejected: medicine %s has %s, cart asks for %s",
                        medicine.id, medicine.current_stock, requested[medicine.id],
                    )
                    raise InsufficientStock(medicine.id, medicine.name, medicine.current_stock, requested[medicine.id])

                unit_price = quantize(medicine.price)
                line_total = quantize(unit_price * line.quantity)
                total += line_total
                priced.append((medicine, line.quantity, unit_price, line_total))

            total = quantize(total)
            change = received - total
            if change < 0:
                logger.warning("Sale rejected: received %s for a total of %s", received, total)
                raise InsufficientPayment(total, received)

            now = datetime.now()
            sale = SalesTransaction(
                patient_id=patient_id,
                total_amount=total,
                payment_method=method,
                payment_received=received,
                change_amount=change,
                status=TransactionStatus.COMPLETED,
                notes=notes,
                transaction_date=now,
                created_at=now,
            )
            self.session.add(sale)
            self.session.flush()

            for medicine, quantity, unit_price, line_total in priced:
                self.session.add(SalesTransactionItem(
                    transaction_id=sale.id,
                    medicine_id=medicine.id,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                    created_at=now,
                ))

            for medicine, quantity, _, _ in priced:
                self.ledger.apply(medicine, StockDirection.OUT, quantity, sale_note(sale.id))

        logger.info("Sales transaction %s completed: %s line(s), total %s", sale.id, len(priced), total)
        return sale

    def cancel_sale_outcome(self, sale_id):
        """Cancel a sale and book compensating IN movements for every line."""
        with atomic(self.session):
            sale = (
                self.session.query(SalesTransaction)
                .populate_existing()
                .filter(SalesTransaction.id == sale_id)
                .with_for_update()
                .first()
            )
            if sale is None:
                outcome = CancelOutcome.NOT_FOUND
            elif sale.status == TransactionStatus.CANCELLED:
                outcome = CancelOutcome.ALREADY_CANCELLED
            else:
                sale.status = TransactionStatus.CANCELLED
                items = list(sale.items)
                medicines = self.ledger.lock_medicines([item.medicine_id for item in items])
                for item in items:
                    self.ledger.apply(
                        medicines[item.medicine_id], StockDirection.IN, item.quantity, cancellation_note(sale_id)
                    )
                outcome = CancelOutcome.CANCELLED

        if outcome is CancelOutcome.CANCELLED:
            logger.info("Sales transaction %s cancelled", sale_id)
        else:
            logger.warning("Cancel of sales transaction %s refused: %s", sale_id, outcome.value)
        return outcome

    def cancel_sale(self, sale_id):
        return self.cancel_sale_outcome(sale_id) is CancelOutcome.CANCELLED

    def _ordered(self, query):
        return query.order_by(SalesTransaction.transaction_date.desc(), SalesTransaction.id.desc())

    def list_sales(self):
        return self._ordered(self.session.query(SalesTransaction)).all()

    def get_sale(self, sale_id):
        return self.session.get(SalesTransaction, sale_id)

    def get_sale_items(self, sale_id):
        return (
            self.session.query(SalesTransactionItem)
            .filter_by(transaction_id=sale_id)
            .order_by(SalesTransactionItem.id)
            .all()
        )

    def list_sales_in_range(self, start, end):
        query = self.session.query(SalesTransaction).filter(
            SalesTransaction.transaction_date >= start,
            SalesTransaction.transaction_date <= end,
        )
        return self._ordered(query).all()

    def list_sales_today(self, today=None):
        return self.list_sales_in_range(*day_bounds(today or date.today()))

    def get_receipt(self, sale_id):
        sale = self.session.get(SalesTransaction, sale_id)
        if sale is None:
            return None

        rows = (
            self.session.query(SalesTransactionItem, Medicine.name, Medicine.unit)
            .join(Medicine, SalesTransactionItem.medicine_id == Medicine.id)
            .filter(SalesTransactionItem.transaction_id == sale_id)
            .order_by(SalesTransactionItem.id)
            .all()
        )
        items = []
        for item, medicine_name, medicine_unit in rows:
            line = item.to_dict()
            line["medicine_name"] = medicine_name
            line["medicine_unit"] = medicine_unit
            items.append(line)

        patient = self.session.get(Patient, sale.patient_id) if sale.patient_id else None
        receipt = {
            "transaction": sale.to_dict(),
            "items": items,
            "patient": patient.to_dict() if patient else None,
        }
        receipt.update(self.settings.get_receipt_branding())
        return receipt
