import enum
from datetime import datetime
from src.extensions import db


class StockDirection(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


class StockTransaction(db.Model):
    """Append-only ledger entry. Rows are never updated or deleted."""

    __tablename__ = "stock_transactions"

    id = db.Column(db.Integer, primary_key=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False, index=True)
    type = db.Column(db.Enum(StockDirection, name="stock_transaction_type"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    medicine = db.relationship("Medicine", backref=db.backref("stock_transactions", lazy="dynamic"))

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_transactions_quantity_positive"),
    )

    @property
    def signed_quantity(self):
        return self.quantity if self.type == StockDirection.IN else -self.quantity

    def to_dict(self):
        return {
            "id": self.id,
            "medicine_id": self.medicine_id,
            "type": self.type.value,
            "quantity": self.quantity,
            "notes": self.notes,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
