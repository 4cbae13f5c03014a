from datetime import datetime
from sqlalchemy import false
from src.extensions import db
from src.money import money_str, format_amount
from invoices.calculations import payment_status

INVOICE_STATUSES = ("draft", "pending", "confirmed", "in_progress", "completed", "cancelled")


class Invoice(db.Model):
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)

    # INV-{year}-{seq:04d}, immutable once issued
    invoice_number = db.Column(db.String(50), nullable=False, index=True)
    issued_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Customer snapshot taken when the invoice is created or re-pointed
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    customer_name = db.Column(db.String(50), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=True)

    # Seller identity
    from_name = db.Column(db.String(255), nullable=True)
    from_address = db.Column(db.Text, nullable=True)
    from_phone = db.Column(db.String(50), nullable=True)
    from_email = db.Column(db.String(255), nullable=True)

    # Summary, always recomputed from the items
    subtotal = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_discount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    round_off_total = db.Column(db.Boolean, nullable=False, default=False)
    round_off = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_profit = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default="draft")

    # Synced from the payments ledger
    paid_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    due_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.position",
        lazy=True,
    )
    customer = db.relationship("Customer", lazy=True)

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    @property
    def active_items(self):
        return [item for item in self.items if not item.is_deleted]

    @property
    def payment_status(self):
        return payment_status(self.grand_total or 0, self.paid_amount or 0)

    def summary_dict(self):
        return {
            "subtotal": money_str(self.subtotal),
            "total_discount": money_str(self.total_discount),
            "grand_total": money_str(self.grand_total),
            "round_off_total": self.round_off_total,
            "round_off": money_str(self.round_off),
            "total_profit": money_str(self.total_profit),
            "formatted_grand_total": format_amount(self.grand_total),
        }

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "issued_date": self.issued_date.isoformat() if self.issued_date else None,
            "customer": {
                "id": self.customer_id,
                "name": self.customer_name,
                "phone": self.customer_phone,
            },
            "from": {
                "name": self.from_name,
                "address": self.from_address,
                "phone": self.from_phone,
                "email": self.from_email,
            },
            "summary": self.summary_dict(),
            "status": self.status,
            "paid_amount": money_str(self.paid_amount),
            "due_amount": money_str(self.due_amount),
            "formatted_paid_amount": format_amount(self.paid_amount),
            "formatted_due_amount": format_amount(self.due_amount),
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.active_items]
        return data


db.Index(
    "uq_invoices_number_active",
    Invoice.invoice_number,
    unique=True,
    sqlite_where=Invoice.is_deleted == false(),
    postgresql_where=Invoice.is_deleted == false(),
)
