import enum
from datetime import datetime
from src.extensions import db


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    TRANSFER = "TRANSFER"


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SalesTransaction(db.Model):
    __tablename__ = "sales_transactions"

    id = db.Column(db.Integer, primary_key=True)

    # Walk-in sales have no patient
    patient_id = db.Column(db.Integer, db.ForeignKey("patients.id"), nullable=True, index=True)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.Enum(PaymentMethod, name="payment_method"), nullable=False)
    payment_received = db.Column(db.Numeric(10, 2), nullable=False)
    change_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(
        db.Enum(TransactionStatus, name="transaction_status"),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )
    notes = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    patient = db.relationship("Patient", backref=db.backref("sales_transactions", lazy="dynamic"))
    items = db.relationship(
        "SalesTransactionItem",
        back_populates="transaction",
        order_by="SalesTransactionItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "total_amount": self.total_amount,
            "payment_method": self.payment_method.value,
            "payment_received": self.payment_received,
            "change_amount": self.change_amount,
            "status": self.status.value,
            "notes": self.notes,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SalesTransactionItem(db.Model):
    __tablename__ = "sales_transaction_items"

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("sales_transactions.id"), nullable=False, index=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey("medicines.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    # Price captured at sale time, independent of later price edits
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    transaction = db.relationship("SalesTransaction", back_populates="items")
    medicine = db.relationship("Medicine")

    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_transaction_items_quantity_positive"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "medicine_id": self.medicine_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
