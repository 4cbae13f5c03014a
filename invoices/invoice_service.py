from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from src.extensions import db
from src.exceptions import DuplicateEntryError, NotFoundError, ValidationError
from src.filters import ListFilter, parse_choice, parse_date, parse_int, ilike_any
from src.gatekeepers import require_customer, require_invoice, require_products
from src.logger import get_logger
from src.money import round2, round3, money_str
from src.responses import paginate
from src.validators import Validator
from company.company import Company
from customers.customer import Customer
from invoices.calculations import (
    DISCOUNT_TYPES, calculate_line, summarize_lines, due_amount, check_paid_amount,
)
from invoices.invoice import Invoice, INVOICE_STATUSES
from invoices.invoice_item import InvoiceItem, ITEM_PRIORITIES, ITEM_STEPS
from payments.payment import Payment

logger = get_logger("invoices")

INVOICE_PREFIX = "INV"
ITEM_TEXT_FIELDS = ("description", "work_instructions", "printing_operation", "printing_report",
                    "allocation", "user_allocation")


@dataclass
class InvoiceFilter(ListFilter):
    status: Optional[str] = None
    customer_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    priority: Optional[str] = None

    SORT_FIELDS = ("issued_date", "created_at", "invoice_number", "grand_total", "due_amount", "customer_name")
    DEFAULT_SORT = "issued_date"

    @classmethod
    def _parse(cls, args, errors):
        return {
            "status": parse_choice(args, "status", INVOICE_STATUSES, errors),
            "customer_id": parse_int(args, "customer_id", errors),
            "start_date": parse_date(args, "start_date", errors),
            "end_date": parse_date(args, "end_date", errors),
            "priority": parse_choice(args, "priority", ITEM_PRIORITIES, errors),
        }


def validate_item_spec(raw, prefix="", partial=False):
    """
    Validate one line item payload.

    Returns ``(cleaned, errors)`` with every error message prefixed so that
    a whole invoice can report all failing fields together.
    """
    if not isinstance(raw, dict):
        return {}, [f"{prefix}item must be an object"]

    v = Validator(raw, partial=partial)
    v.integer("id", min_value=1)
    v.integer("product_id", required=True, min_value=1)
    v.string("description", max_length=500)
    v.decimal("quantity", required=True, gt=0, places=3)
    v.decimal("rate", min_value=0, places=2)
    v.decimal("base_cost", min_value=0, places=2)
    discount_type = v.string("discount_type", choices=DISCOUNT_TYPES)
    discount_value = v.decimal("discount_value", min_value=0, places=2)
    # an existing item keeps its stored type; apply_item_spec checks the cap then
    percentage = discount_type == "percentage" or (discount_type is None and not partial and not raw.get("id"))
    if percentage and discount_value is not None and discount_value > 100:
        v.add_error("discount_value cannot exceed 100 for a percentage discount")
    v.string("priority", choices=ITEM_PRIORITIES)
    v.datetime("delivery_date")
    v.string("work_instructions", max_length=1000)
    v.string("printing_operation", max_length=200)
    v.string("printing_report", max_length=1000)
    v.string("steps", choices=ITEM_STEPS)
    v.string("allocation", max_length=100)
    v.string("user_allocation", max_length=100)
    return v.cleaned, [f"{prefix}{e}" for e in v.errors]


def apply_item_spec(item, spec, product=None):
    """
    Write a validated item spec onto an InvoiceItem and recompute its line.

    ``product`` is given when the item is new or points at a different
    product; its snapshot is then refreshed. Otherwise the stored snapshot
    supplies the default rate and base cost.
    """
    if product is not None:
        item.product_id = product.id
        item.product_name = product.name
        item.product_price = product.price
        item.product_base_cost = product.base_cost
        if spec.get("description") is None and not item.description:
            item.description = product.description

    if "quantity" in spec:
        item.quantity = round3(spec["quantity"])
    if spec.get("rate") is not None:
        item.rate = round2(spec["rate"])
    elif item.rate is None or product is not None:
        item.rate = round2(item.product_price)
    if spec.get("base_cost") is not None:
        item.base_cost = round2(spec["base_cost"])
    elif item.base_cost is None or product is not None:
        item.base_cost = round2(item.product_base_cost)
    if spec.get("discount_type") is not None:
        item.discount_type = spec["discount_type"]
    elif item.discount_type is None:
        item.discount_type = "percentage"
    if spec.get("discount_value") is not None:
        item.discount_value = round2(spec["discount_value"])
    elif item.discount_value is None:
        item.discount_value = round2(0)

    if item.discount_type == "percentage" and item.discount_value > 100:
        raise ValidationError(["discount_value cannot exceed 100 for a percentage discount"])

    for field in ITEM_TEXT_FIELDS:
        if field in spec:
            setattr(item, field, spec[field])
    if "delivery_date" in spec:
        item.delivery_date = spec["delivery_date"]
    if spec.get("priority"):
        item.priority = spec["priority"]
    if spec.get("steps"):
        item.steps = spec["steps"]

    line = calculate_line(item.quantity, item.rate, item.discount_type, item.discount_value, item.base_cost)
    item.discount_amount = line.rounded_discount
    item.total = line.total
    item.profit = line.profit
    return line


class InvoiceService:
    # ---------------- numbering ----------------
    @staticmethod
    def generate_invoice_number(year=None):
        """
        Next number for the year, one past the highest active suffix.

        Numbers of soft-deleted invoices are not considered, so the number
        of a deleted last invoice is handed out again.
        """
        year = year or datetime.utcnow().year
        prefix = f"{INVOICE_PREFIX}-{year}-"
        numbers = db.session.query(Invoice.invoice_number).filter(
            Invoice.is_deleted.is_(False),
            Invoice.invoice_number.like(f"{prefix}%"),
        ).all()

        highest = 0
        for (number,) in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:04d}"

    @staticmethod
    def _number_in_use(invoice_number):
        return db.session.query(
            Invoice.active().filter(Invoice.invoice_number == invoice_number).exists()
        ).scalar()

    # ---------------- payload ----------------
    @staticmethod
    def _validate_payload(data, partial=False):
        v = Validator(data, partial=partial)
        v.integer("customer_id", required=True, min_value=1)
        v.string("invoice_number", max_length=50)
        v.datetime("issued_date")
        v.boolean("round_off_total")
        v.string("status", choices=INVOICE_STATUSES)
        v.string("notes", max_length=2000)

        seller = data.get("from")
        if seller is not None:
            if not isinstance(seller, dict):
                v.add_error("from must be an object")
            else:
                sv = Validator(seller)
                sv.string("name", max_length=255)
                sv.string("address", max_length=500)
                sv.string("phone", max_length=50)
                sv.email("email")
                v.errors.extend(f"from.{e}" for e in sv.errors)
                v.cleaned["from"] = sv.cleaned

        item_specs = None
        if "items" in data or not partial:
            items = data.get("items")
            if not isinstance(items, list) or not items:
                v.add_error("items must contain at least one item")
            else:
                item_specs = []
                seen_ids = set()
                for index, raw in enumerate(items):
                    cleaned, errors = validate_item_spec(raw, prefix=f"items[{index}].")
                    v.errors.extend(errors)
                    item_id = cleaned.get("id")
                    if item_id and item_id in seen_ids:
                        v.add_error(f"items[{index}].id is listed more than once")
                    seen_ids.add(item_id)
                    item_specs.append(cleaned)

        cleaned = v.check()
        return cleaned, item_specs

    @staticmethod
    def _seller_identity(overrides=None):
        company = Company.current()
        if company:
            seller = {
                "name": company.company_name,
                "address": company.company_address,
                "phone": company.primary_contact_number,
                "email": company.email,
            }
        else:
            cfg = current_app.config
            seller = {
                "name": cfg["BUSINESS_NAME"],
                "address": cfg["BUSINESS_ADDRESS"],
                "phone": cfg["BUSINESS_PHONE"],
                "email": cfg["BUSINESS_EMAIL"],
            }
        for key, value in (overrides or {}).items():
            if value:
                seller[key] = value
        return seller

    # ---------------- totals ----------------
    @staticmethod
    def sync_paid_amount(invoice):
        """Pull the paid amount from the payments ledger and refresh the due amount."""
        paid = Payment.total_for_invoice(invoice.id) if invoice.id else round2(0)
        check_paid_amount(paid, invoice.grand_total)
        invoice.paid_amount = paid
        invoice.due_amount = due_amount(invoice.grand_total, paid)
        return invoice

    @staticmethod
    def recalculate(invoice):
        """Rebuild the summary from the active items, then the paid/due split."""
        lines = [
            calculate_line(i.quantity, i.rate, i.discount_type, i.discount_value, i.base_cost)
            for i in invoice.active_items
        ]
        summary = summarize_lines(lines, invoice.round_off_total)
        invoice.subtotal = summary.subtotal
        invoice.total_discount = summary.total_discount
        invoice.grand_total = summary.grand_total
        invoice.round_off = summary.round_off
        invoice.total_profit = summary.total_profit
        return InvoiceService.sync_paid_amount(invoice)

    # ---------------- CRUD ----------------
    @staticmethod
    def _build_invoice(cleaned, item_specs, customer, products, seller):
        invoice = Invoice(
            issued_date=cleaned.get("issued_date") or datetime.utcnow(),
            customer_id=customer.id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            from_name=seller["name"],
            from_address=seller["address"],
            from_phone=seller["phone"],
            from_email=seller["email"],
            round_off_total=bool(cleaned.get("round_off_total")),
            status=cleaned.get("status") or "draft",
            notes=cleaned.get("notes"),
            paid_amount=round2(0),
            is_deleted=False,
        )
        for position, spec in enumerate(item_specs):
            item = InvoiceItem(position=position, is_deleted=False)
            apply_item_spec(item, spec, products[spec["product_id"]])
            invoice.items.append(item)
        InvoiceService.recalculate(invoice)
        return invoice

    @staticmethod
    def create_invoice(data):
        """
        Create an invoice with its line items.

        The customer and every product are checked before anything is
        written. A generated number that collides with a concurrent insert
        is regenerated a bounded number of times; a collision on a number
        the client supplied is reported straight away.
        """
        cleaned, item_specs = InvoiceService._validate_payload(data)
        customer = require_customer(cleaned["customer_id"])
        products = require_products([spec["product_id"] for spec in item_specs])

        supplied_number = cleaned.get("invoice_number")
        if supplied_number and InvoiceService._number_in_use(supplied_number):
            raise DuplicateEntryError("Invoice number already exists", field="invoice_number")

        seller = InvoiceService._seller_identity(cleaned.get("from"))
        retries = current_app.config.get("INVOICE_NUMBER_RETRIES", 3)

        for attempt in range(1, retries + 1):
            invoice = InvoiceService._build_invoice(cleaned, item_specs, customer, products, seller)
            invoice.invoice_number = supplied_number or InvoiceService.generate_invoice_number()
            db.session.add(invoice)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                if supplied_number or attempt == retries:
                    logger.error("Invoice number %s already taken", invoice.invoice_number)
                    raise DuplicateEntryError("Invoice number already exists", field="invoice_number")
                logger.warning("Invoice number %s collided, retrying (%s/%s)",
                               invoice.invoice_number, attempt, retries)
                continue
            logger.info("Invoice %s created for customer %s", invoice.invoice_number, customer.id)
            return invoice

    @staticmethod
    def _filtered_query(f):
        q = Invoice.active()
        if f.status:
            q = q.filter(Invoice.status == f.status)
        if f.customer_id:
            q = q.filter(Invoice.customer_id == f.customer_id)
        if f.start_date:
            q = q.filter(Invoice.issued_date >= f.start_date)
        if f.end_date:
            q = q.filter(Invoice.issued_date <= f.end_date)
        if f.priority:
            with_priority = db.session.query(InvoiceItem.invoice_id).filter(
                InvoiceItem.priority == f.priority,
                InvoiceItem.is_deleted.is_(False),
            )
            q = q.filter(Invoice.id.in_(with_priority))
        if f.search:
            q = q.filter(ilike_any(f.search, Invoice.invoice_number, Invoice.customer_name, Invoice.customer_phone))
        return q

    @staticmethod
    def list_invoices(f):
        q = InvoiceService._filtered_query(f)
        invoices, pagination = paginate(q.order_by(f.order_clause(Invoice)), f.page, f.limit)

        row = q.with_entities(
            func.count(Invoice.id),
            func.sum(case((Invoice.paid_amount >= Invoice.grand_total, 1), else_=0)),
            func.sum(Invoice.grand_total),
            func.sum(Invoice.paid_amount),
            func.sum(Invoice.due_amount),
            func.sum(Invoice.total_profit),
        ).order_by(None).one()
        count, paid_count, total_amount, total_paid, total_due, total_profit = row
        summary = {
            "total_invoice_count": count or 0,
            "total_paid_count": int(paid_count or 0),
            "total_unpaid_count": (count or 0) - int(paid_count or 0),
            "total_amount": money_str(total_amount or 0),
            "total_paid": money_str(total_paid or 0),
            "total_due": money_str(total_due or 0),
            "total_profit": money_str(total_profit or 0),
        }
        total_customer_count = Customer.active().count()
        return invoices, pagination, summary, total_customer_count

    @staticmethod
    def get_invoice(invoice_id):
        return require_invoice(invoice_id)

    @staticmethod
    def update_invoice(invoice_id, data):
        """
        Update an invoice.

        ``invoice_number`` is immutable and ignored. Items are merged by id:
        listed ids are updated in place, entries without an id are added and
        active items left out are soft-deleted.
        """
        invoice = require_invoice(invoice_id)
        data = dict(data)
        data.pop("invoice_number", None)
        cleaned, item_specs = InvoiceService._validate_payload(data, partial=True)

        new_customer = None
        if cleaned.get("customer_id") and cleaned["customer_id"] != invoice.customer_id:
            new_customer = require_customer(cleaned["customer_id"])

        products = {}
        existing = {}
        if item_specs is not None:
            existing = {item.id: item for item in invoice.active_items}
            unknown = [s["id"] for s in item_specs if s.get("id") and s["id"] not in existing]
            if unknown:
                raise NotFoundError(
                    "Invoice item not found",
                    details=[f"Invoice item {item_id} not found on this invoice" for item_id in unknown],
                )
            changed = [
                s["product_id"] for s in item_specs
                if not s.get("id") or existing[s["id"]].product_id != s["product_id"]
            ]
            products = require_products(changed)

        if new_customer:
            invoice.customer_id = new_customer.id
            invoice.customer_name = new_customer.name
            invoice.customer_phone = new_customer.phone
        if "issued_date" in cleaned and cleaned["issued_date"]:
            invoice.issued_date = cleaned["issued_date"]
        if cleaned.get("round_off_total") is not None:
            invoice.round_off_total = cleaned["round_off_total"]
        if cleaned.get("status"):
            invoice.status = cleaned["status"]
        if "notes" in cleaned:
            invoice.notes = cleaned["notes"]
        for key, value in (cleaned.get("from") or {}).items():
            setattr(invoice, f"from_{key}", value)

        if item_specs is not None:
            for position, spec in enumerate(item_specs):
                item = existing.pop(spec["id"], None) if spec.get("id") else None
                if item is None:
                    item = InvoiceItem(position=position, is_deleted=False)
                    invoice.items.append(item)
                item.position = position
                apply_item_spec(item, spec, products.get(spec["product_id"]))
            for leftover in existing.values():
                leftover.is_deleted = True

        InvoiceService.recalculate(invoice)
        db.session.commit()
        logger.info("Invoice %s updated", invoice.invoice_number)
        return invoice

    @staticmethod
    def update_status(invoice_id, data):
        invoice = require_invoice(invoice_id)
        v = Validator(data)
        status = v.string("status", required=True, choices=INVOICE_STATUSES)
        v.check()
        invoice.status = status
        db.session.commit()
        logger.info("Invoice %s status set to %s", invoice.invoice_number, status)
        return invoice

    @staticmethod
    def delete_invoice(invoice_id):
        invoice = require_invoice(invoice_id)
        invoice.is_deleted = True
        for item in invoice.items:
            item.is_deleted = True
        db.session.commit()
        logger.info("Invoice %s soft-deleted", invoice.invoice_number)
        return invoice

    # ---------------- reporting ----------------
    @staticmethod
    def statistics(start_date=None, end_date=None):
        q = Invoice.active()
        if start_date:
            q = q.filter(Invoice.issued_date >= start_date)
        if end_date:
            q = q.filter(Invoice.issued_date <= end_date)

        count, total_amount, total_paid, total_due, total_profit = q.with_entities(
            func.count(Invoice.id),
            func.sum(Invoice.grand_total),
            func.sum(Invoice.paid_amount),
            func.sum(Invoice.due_amount),
            func.sum(Invoice.total_profit),
        ).one()
        average = round2(Decimal(str(total_amount or 0)) / count) if count else round2(0)
        general = {
            "total_invoices": count or 0,
            "total_amount": money_str(total_amount or 0),
            "total_paid": money_str(total_paid or 0),
            "total_due": money_str(total_due or 0),
            "total_profit": money_str(total_profit or 0),
            "average_invoice_amount": money_str(average),
        }

        status_rows = q.with_entities(
            Invoice.status,
            func.count(Invoice.id),
            func.sum(Invoice.grand_total),
            func.sum(Invoice.due_amount),
        ).group_by(Invoice.status).order_by(func.count(Invoice.id).desc()).all()
        status_wise = [{
            "status": status,
            "count": n,
            "total_amount": money_str(amount or 0),
            "total_due": money_str(due or 0),
        } for status, n, amount, due in status_rows]
        return {"general": general, "status_wise": status_wise}

    @staticmethod
    def fiscal_year_count(fiscal_year=None):
        """Invoices issued in an April-March fiscal year, the current one by default."""
        if fiscal_year is None:
            today = datetime.utcnow()
            fiscal_year = today.year if today.month >= 4 else today.year - 1
        start = datetime(fiscal_year, 4, 1)
        end = datetime(fiscal_year + 1, 3, 31, 23, 59, 59, 999999)
        count = Invoice.active().filter(Invoice.issued_date >= start, Invoice.issued_date <= end).count()
        return {
            "count": count,
            "fiscal_year": fiscal_year,
            "date_range": {"start": start.isoformat(), "end": end.isoformat()},
        }
