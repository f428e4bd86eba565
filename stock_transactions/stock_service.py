import logging
from datetime import datetime
from sqlalchemy import case, func, update
from src.extensions import atomic
from src.exceptions import InsufficientStock, InvalidQuantity, InvariantViolation, MedicineNotFound, ValidationError
from medicines.medicine import Medicine
from stock_transactions.stock_transaction import StockDirection, StockTransaction

logger = logging.getLogger(__name__)


def require_positive_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


def parse_direction(direction):
    if isinstance(direction, StockDirection):
        return direction
    try:
        return StockDirection(str(direction).upper())
    except ValueError:
        raise ValidationError(f"Unknown stock movement type: {direction!r}", type=direction)


class StockLedger:
    """The only writer of ``Medicine.current_stock``.

    Every change to a medicine's stock counter is paired with one appended
    ``StockTransaction`` row, so the counter always equals the signed sum of
    the medicine's ledger.
    """

    def __init__(self, session):
        self.session = session

    def record_movement(self, medicine_id, direction, quantity, notes=None):
        if isinstance(medicine_id, bool) or not isinstance(medicine_id, int):
            raise ValidationError(f"Invalid medicine_id: {medicine_id!r}", field="medicine_id")
        direction = parse_direction(direction)
        require_positive_quantity(quantity)

        with atomic(self.session):
            medicine = self.lock_medicines([medicine_id])[medicine_id]
            movement = self.apply(medicine, direction, quantity, notes)

        logger.info(
            "Recorded stock %s of %s for medicine %s (balance %s)",
            direction.value, quantity, medicine_id, medicine.current_stock,
        )
        return movement

    def lock_query(self, medicine_ids):
        """``SELECT ... FOR UPDATE`` over the given medicines in ascending id order."""
        return (
            self.session.query(Medicine)
            .populate_existing()
            .filter(Medicine.id.in_(sorted(set(medicine_ids))))
            .order_by(Medicine.id)
            .with_for_update()
        )

    def lock_medicines(self, medicine_ids):
        """Load and row-lock the given medicines in ascending id order.

        Raises ``MedicineNotFound`` for the first missing id in the order the
        ids were given.
        """
        found = {medicine.id: medicine for medicine in self.lock_query(medicine_ids)}
        for medicine_id in medicine_ids:
            if medicine_id not in found:
                raise MedicineNotFound(medicine_id)
        return found

    def apply(self, medicine, direction, quantity, notes=None):
        """Append a movement and adjust the counter without committing.

        Callers must hold the row lock from ``lock_medicines`` and own the
        surrounding unit of work. The counter is changed by a guarded
        ``UPDATE``, so an OUT never drives it below zero even where the
        database ignores ``FOR UPDATE``.
        """
        require_positive_quantity(quantity)
        if direction == StockDirection.OUT and medicine.current_stock < quantity:
            self._reject(medicine, quantity)

        now = datetime.now()
        movement = StockTransaction(
            medicine_id=medicine.id,
            type=direction,
            quantity=quantity,
            notes=notes,
            transaction_date=now,
            created_at=now,
        )
        self.session.add(movement)

        delta = quantity if direction == StockDirection.IN else -quantity
        stmt = update(Medicine).where(Medicine.id == medicine.id)
        if direction == StockDirection.OUT:
            stmt = stmt.where(Medicine.current_stock >= quantity)
        result = self.session.execute(
            stmt.values(current_stock=Medicine.current_stock + delta, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(medicine, ["current_stock", "updated_at"])
        if result.rowcount != 1:
            self._reject(medicine, quantity)
        return movement

    def _reject(self, medicine, quantity):
        logger.warning(
            "Rejected stock OUT of %s for medicine %s: only %s available",
            quantity, medicine.id, medicine.current_stock,
        )
        raise InsufficientStock(medicine.id, medicine.name, medicine.current_stock, quantity)

    def _ordered(self, query):
        return query.order_by(StockTransaction.transaction_date.desc(), StockTransaction.id.desc())

    def list_movements(self):
        return self._ordered(self.session.query(StockTransaction)).all()

    def list_movements_for_medicine(self, medicine_id):
        query = self.session.query(StockTransaction).filter(StockTransaction.medicine_id == medicine_id)
        return self._ordered(query).all()

    def list_movements_in_range(self, start, end):
        query = self.session.query(StockTransaction).filter(
            StockTransaction.transaction_date >= start,
            StockTransaction.transaction_date <= end,
        )
        return self._ordered(query).all()

    def ledger_balance(self, medicine_id):
        signed = case(
            (StockTransaction.type == StockDirection.IN, StockTransaction.quantity),
            else_=-StockTransaction.quantity,
        )
        total = (
            self.session.query(func.coalesce(func.sum(signed), 0))
            .filter(StockTransaction.medicine_id == medicine_id)
            .scalar()
        )
        return int(total)

    def verify_balance(self, medicine_id):
        medicine = self.session.get(Medicine, medicine_id)
        if medicine is None:
            raise MedicineNotFound(medicine_id)
        expected = self.ledger_balance(medicine_id)
        if medicine.current_stock != expected:
            logger.error(
                "Ledger mismatch for medicine %s: counter=%s ledger=%s",
                medicine_id, medicine.current_stock, expected,
            )
            raise InvariantViolation(medicine_id, expected, medicine.current_stock)
        return expected

    def verify_all(self):
        """Check every medicine; returns ``{medicine_id: balance}``."""
        balances = {}
        for (medicine_id,) in self.session.query(Medicine.id).order_by(Medicine.id):
            balances[medicine_id] = self.verify_balance(medicine_id)
        return balances
