from datetime import datetime
from decimal import Decimal
from src.extensions import db
from src.money import round2, money_str, format_amount
from sqlalchemy import event

PAYMENT_TYPES = ("cash", "cheque", "UPI")


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)

    # cash / cheque / UPI
    p_type = db.Column(db.String(10), nullable=False, index=True)

    # Id of the invoice this money was received against, kept as text
    invoice_id = db.Column(db.String(100), nullable=False, index=True)

    date_time = db.Column(db.DateTime, nullable=False, index=True)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def formatted_amount(self):
        return format_amount(self.amount)

    @property
    def payment_summary(self):
        return f"{self.p_type.upper()} - {format_amount(self.amount)} on {self.date_time.strftime('%d/%m/%Y')}"

    @classmethod
    def total_for_invoice(cls, invoice_id):
        total = db.session.query(db.func.coalesce(db.func.sum(cls.amount), 0)).filter(
            cls.invoice_id == str(invoice_id)
        ).scalar()
        return round2(Decimal(str(total)))

    def to_dict(self):
        return {
            "id": self.id,
            "p_type": self.p_type,
            "invoice_id": self.invoice_id,
            "date_time": self.date_time.isoformat() if self.date_time else None,
            "amount": money_str(self.amount),
            "formatted_amount": self.formatted_amount,
            "payment_summary": self.payment_summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@event.listens_for(Payment, "before_insert")
def round_payment_before_insert(mapper, connection, target):
    target.amount = round2(target.amount)


@event.listens_for(Payment, "before_update")
def round_payment_before_update(mapper, connection, target):
    target.amount = round2(target.amount)
