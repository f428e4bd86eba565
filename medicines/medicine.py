from datetime import datetime
from src.extensions import db

class Medicine(db.Model):
    __tablename__ = "medicines"

    id = db.Column(db.Integer, primary_key=True)

    # Medicine Name
    name = db.Column(db.String(255), nullable=False)

    description = db.Column(db.Text, nullable=True)

    # Unit of sale (tablet, bottle, strip, etc.)
    unit = db.Column(db.String(50), nullable=False)

    # Unit Price
    price = db.Column(db.Numeric(10, 2), nullable=False)

    # Reorder threshold
    minimum_stock = db.Column(db.Integer, nullable=False, default=0)

    # Running balance of the stock ledger; written only by StockLedger
    current_stock = db.Column(db.Integer, nullable=False, default=0)

    expiry_date = db.Column(db.Date, nullable=True)
    batch_number = db.Column(db.String(120), nullable=True)
    supplier = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    __table_args__ = (
        db.CheckConstraint("current_stock >= 0", name="ck_medicines_current_stock_non_negative"),
        db.CheckConstraint("minimum_stock >= 0", name="ck_medicines_minimum_stock_non_negative"),
    )

    @property
    def is_low_stock(self):
        return self.current_stock <= self.minimum_stock

    def is_expired(self, today):
        return self.expiry_date is not None and self.expiry_date <= today

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "price": self.price,
            "minimum_stock": self.minimum_stock,
            "current_stock": self.current_stock,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "batch_number": self.batch_number,
            "supplier": self.supplier,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
