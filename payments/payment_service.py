from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func

from src.extensions import db
from src.exceptions import NotFoundError
from src.filters import ListFilter, parse_amount, parse_choice, parse_date
from src.logger import get_logger
from src.money import money_str, round2
from src.responses import paginate
from src.validators import Validator
from invoices.invoice import Invoice
from invoices.invoice_service import InvoiceService
from payments.payment import Payment, PAYMENT_TYPES

logger = get_logger("payments")


@dataclass
class PaymentFilter(ListFilter):
    p_type: Optional[str] = None
    invoice_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    SORT_FIELDS = ("date_time", "amount", "created_at")
    DEFAULT_SORT = "date_time"

    @classmethod
    def _parse(cls, args, errors):
        return {
            "p_type": parse_choice(args, "p_type", PAYMENT_TYPES, errors),
            "invoice_id": args.get("invoice_id") or None,
            "start_date": parse_date(args, "start_date", errors),
            "end_date": parse_date(args, "end_date", errors),
            "min_amount": parse_amount(args, "min_amount", errors),
            "max_amount": parse_amount(args, "max_amount", errors),
        }


def _validate(data, partial=False):
    v = Validator(data, partial=partial)
    v.string("p_type", required=True, choices=PAYMENT_TYPES)
    v.string("invoice_id", required=True, max_length=100)
    v.datetime("date_time", required=True, not_future=True)
    v.decimal("amount", required=True, min_value=Decimal("0.01"), places=2)
    return v.check()


class PaymentService:
    @staticmethod
    def _invoice_for(invoice_ref):
        """Resolve the text invoice reference of a payment to an active invoice."""
        ref = str(invoice_ref).strip()
        invoice = db.session.get(Invoice, int(ref)) if ref.isdigit() else None
        if invoice is None or invoice.is_deleted:
            raise NotFoundError("Invoice not found")
        return invoice

    @staticmethod
    def create_payment(data):
        """
        Record money received against an invoice.

        The invoice's paid and due amounts are re-derived from the ledger in
        the same transaction; a payment that would take the paid amount past
        the grand total is rejected.
        """
        cleaned = _validate(data)
        invoice = PaymentService._invoice_for(cleaned["invoice_id"])

        payment = Payment(
            p_type=cleaned["p_type"],
            invoice_id=str(invoice.id),
            date_time=cleaned["date_time"],
            amount=round2(cleaned["amount"]),
        )
        db.session.add(payment)
        db.session.flush()
        InvoiceService.sync_paid_amount(invoice)
        db.session.commit()
        logger.info("Payment %s of %s recorded for invoice %s", payment.id, money_str(payment.amount),
                    invoice.invoice_number)
        return payment

    @staticmethod
    def list_payments(f):
        q = Payment.query
        if f.p_type:
            q = q.filter(Payment.p_type == f.p_type)
        if f.invoice_id:
            q = q.filter(Payment.invoice_id == f.invoice_id)
        if f.start_date:
            q = q.filter(Payment.date_time >= f.start_date)
        if f.end_date:
            q = q.filter(Payment.date_time <= f.end_date)
        if f.min_amount is not None:
            q = q.filter(Payment.amount >= f.min_amount)
        if f.max_amount is not None:
            q = q.filter(Payment.amount <= f.max_amount)

        payments, pagination = paginate(q.order_by(f.order_clause(Payment)), f.page, f.limit)

        total, average, minimum, maximum = q.with_entities(
            func.sum(Payment.amount),
            func.avg(Payment.amount),
            func.min(Payment.amount),
            func.max(Payment.amount),
        ).one()
        summary = {
            "total_amount": money_str(total or 0),
            "average_amount": money_str(average or 0),
            "min_amount": money_str(minimum or 0),
            "max_amount": money_str(maximum or 0),
        }
        return payments, pagination, summary

    @staticmethod
    def stats_by_type(start_date=None, end_date=None):
        q = db.session.query(
            Payment.p_type,
            func.sum(Payment.amount),
            func.count(Payment.id),
            func.avg(Payment.amount),
        )
        if start_date:
            q = q.filter(Payment.date_time >= start_date)
        if end_date:
            q = q.filter(Payment.date_time <= end_date)
        rows = q.group_by(Payment.p_type).order_by(func.sum(Payment.amount).desc()).all()
        return [{
            "p_type": p_type,
            "total_amount": money_str(total or 0),
            "count": count,
            "average_amount": money_str(average or 0),
        } for p_type, total, count, average in rows]

    @staticmethod
    def payments_for_invoice(invoice_ref):
        invoice = PaymentService._invoice_for(invoice_ref)
        payments = Payment.query.filter(Payment.invoice_id == str(invoice.id)).order_by(Payment.date_time.desc()).all()
        return invoice, payments

    @staticmethod
    def get_payment(payment_id):
        payment = db.session.get(Payment, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    @staticmethod
    def update_payment(payment_id, data):
        payment = PaymentService.get_payment(payment_id)
        cleaned = _validate(data, partial=True)

        previous_ref = payment.invoice_id
        target = None
        if cleaned.get("invoice_id") and cleaned["invoice_id"] != payment.invoice_id:
            target = PaymentService._invoice_for(cleaned["invoice_id"])
            payment.invoice_id = str(target.id)
        if cleaned.get("p_type"):
            payment.p_type = cleaned["p_type"]
        if cleaned.get("date_time"):
            payment.date_time = cleaned["date_time"]
        if cleaned.get("amount") is not None:
            payment.amount = round2(cleaned["amount"])
        db.session.flush()

        PaymentService._resync(previous_ref)
        if target is not None:
            InvoiceService.sync_paid_amount(target)
        db.session.commit()
        return payment

    @staticmethod
    def delete_payment(payment_id):
        payment = PaymentService.get_payment(payment_id)
        invoice_ref = payment.invoice_id
        db.session.delete(payment)
        db.session.flush()
        PaymentService._resync(invoice_ref)
        db.session.commit()
        logger.info("Payment %s deleted", payment_id)
        return payment_id

    @staticmethod
    def _resync(invoice_ref):
        ref = str(invoice_ref)
        invoice = db.session.get(Invoice, int(ref)) if ref.isdigit() else None
        if invoice is not None and not invoice.is_deleted:
            InvoiceService.sync_paid_amount(invoice)
