import uuid
from datetime import datetime
from decimal import Decimal

from app import db

INVOICE_STATUSES = ("pending", "paid")


def _new_id() -> str:
    return str(uuid.uuid4())


class Customer(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    image_url = db.Column(db.String(255), nullable=True)

    invoices = db.relationship("Invoice", backref="customer", lazy=True)

    __table_args__ = (db.Index("ix_customer_name", "name"),)


class Invoice(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    customer_id = db.Column(
        db.String(36), db.ForeignKey("customer.id"), nullable=False, index=True
    )
    # Stored in cents
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)

    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_invoice_amount_nonneg"),
        db.CheckConstraint(
            "status IN ('pending', 'paid')", name="ck_invoice_status"
        ),
    )

    @property
    def amount_units(self):
        """Amount in whole currency units, as entered on the form."""
        if self.amount is None:
            return None
        return (Decimal(self.amount) / 100).quantize(Decimal("0.01"))


class ActivityLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    activity = db.Column(db.String(255), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Setting(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    value = db.Column(db.String(255))
