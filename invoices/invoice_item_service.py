from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func

from src.extensions import db
from src.exceptions import NotFoundError, ValidationError
from src.filters import ListFilter, parse_choice, parse_int, ilike_any
from src.gatekeepers import require_invoice, require_invoice_item, require_product
from src.logger import get_logger
from src.money import money_str
from src.responses import paginate
from src.validators import Validator
from invoices.invoice import Invoice
from invoices.invoice_item import InvoiceItem, ITEM_PRIORITIES, ITEM_STEPS
from invoices.invoice_service import InvoiceService, validate_item_spec, apply_item_spec

logger = get_logger("invoice_items")


@dataclass
class InvoiceItemFilter(ListFilter):
    invoice_id: Optional[int] = None
    steps: Optional[str] = None
    priority: Optional[str] = None
    allocation: Optional[str] = None
    user_allocation: Optional[str] = None

    SORT_FIELDS = ("created_at", "delivery_date", "priority", "total", "position")

    @classmethod
    def _parse(cls, args, errors):
        return {
            "invoice_id": parse_int(args, "invoice_id", errors),
            "steps": parse_choice(args, "steps", ITEM_STEPS, errors),
            "priority": parse_choice(args, "priority", ITEM_PRIORITIES, errors),
            "allocation": args.get("allocation") or None,
            "user_allocation": args.get("user_allocation") or None,
        }


def _active_items():
    return InvoiceItem.active().join(Invoice, InvoiceItem.invoice_id == Invoice.id).filter(
        Invoice.is_deleted.is_(False)
    )


class InvoiceItemService:
    @staticmethod
    def create_item(data):
        v = Validator(data)
        invoice_id = v.integer("invoice_id", required=True, min_value=1)
        spec, errors = validate_item_spec(data)
        spec.pop("id", None)
        v.errors.extend(errors)
        v.check()

        invoice = require_invoice(invoice_id)
        product = require_product(spec["product_id"])

        last_position = db.session.query(func.max(InvoiceItem.position)).filter(
            InvoiceItem.invoice_id == invoice.id
        ).scalar()
        item = InvoiceItem(position=(last_position + 1) if last_position is not None else 0, is_deleted=False)
        apply_item_spec(item, spec, product)
        invoice.items.append(item)

        InvoiceService.recalculate(invoice)
        db.session.commit()
        logger.info("Item %s added to invoice %s", item.id, invoice.invoice_number)
        return item

    @staticmethod
    def list_items(f):
        q = _active_items()
        if f.invoice_id:
            q = q.filter(InvoiceItem.invoice_id == f.invoice_id)
        if f.steps:
            q = q.filter(InvoiceItem.steps == f.steps)
        if f.priority:
            q = q.filter(InvoiceItem.priority == f.priority)
        if f.allocation:
            q = q.filter(InvoiceItem.allocation == f.allocation)
        if f.user_allocation:
            q = q.filter(InvoiceItem.user_allocation == f.user_allocation)
        if f.search:
            q = q.filter(ilike_any(
                f.search, InvoiceItem.product_name, InvoiceItem.description, InvoiceItem.allocation,
                InvoiceItem.user_allocation, InvoiceItem.printing_operation,
            ))

        items, pagination = paginate(q.order_by(f.order_clause(InvoiceItem)), f.page, f.limit)

        count, quantity, amount, discount = q.with_entities(
            func.count(InvoiceItem.id),
            func.sum(InvoiceItem.quantity),
            func.sum(InvoiceItem.total),
            func.sum(InvoiceItem.discount_amount),
        ).one()
        summary = {
            "total_items": count or 0,
            "total_quantity": f"{quantity or 0:.3f}",
            "total_amount": money_str(amount or 0),
            "total_discount": money_str(discount or 0),
        }
        return items, pagination, summary

    @staticmethod
    def statistics(invoice_id=None):
        if invoice_id:
            require_invoice(invoice_id)
            count, quantity, amount, discount, base_cost = _active_items().filter(
                InvoiceItem.invoice_id == invoice_id
            ).with_entities(
                func.count(InvoiceItem.id),
                func.sum(InvoiceItem.quantity),
                func.sum(InvoiceItem.total),
                func.sum(InvoiceItem.discount_amount),
                func.sum(InvoiceItem.quantity * InvoiceItem.base_cost),
            ).one()
            return {
                "invoice_id": invoice_id,
                "total_items": count or 0,
                "total_quantity": f"{quantity or 0:.3f}",
                "total_amount": money_str(amount or 0),
                "total_discount": money_str(discount or 0),
                "total_base_cost": money_str(base_cost or 0),
            }

        rows = _active_items().with_entities(
            InvoiceItem.steps,
            func.count(InvoiceItem.id),
            func.sum(InvoiceItem.total),
        ).group_by(InvoiceItem.steps).order_by(func.count(InvoiceItem.id).desc()).all()
        return {
            "status_wise": [
                {"steps": steps, "count": n, "total_amount": money_str(amount or 0)}
                for steps, n, amount in rows
            ]
        }

    @staticmethod
    def items_by_priority(priority):
        if priority not in ITEM_PRIORITIES:
            raise ValidationError([f"priority must be one of: {', '.join(ITEM_PRIORITIES)}"])
        return _active_items().filter(
            InvoiceItem.priority == priority,
            InvoiceItem.steps != "Completed",
        ).order_by(
            InvoiceItem.delivery_date.is_(None),
            InvoiceItem.delivery_date.asc(),
            InvoiceItem.created_at.asc(),
        ).all()

    @staticmethod
    def get_item(item_id):
        item = require_invoice_item(item_id)
        if item.invoice.is_deleted:
            raise NotFoundError("Invoice item not found")
        return item

    @staticmethod
    def update_item(item_id, data):
        item = InvoiceItemService.get_item(item_id)
        spec, errors = validate_item_spec(data, partial=True)
        if errors:
            raise ValidationError(errors)

        product = None
        if spec.get("product_id") and spec["product_id"] != item.product_id:
            product = require_product(spec["product_id"])

        apply_item_spec(item, spec, product)
        InvoiceService.recalculate(item.invoice)
        db.session.commit()
        return item

    @staticmethod
    def update_item_status(item_id, data):
        item = InvoiceItemService.get_item(item_id)
        v = Validator(data)
        steps = v.string("steps", required=True, choices=ITEM_STEPS)
        v.string("printing_report", max_length=1000)
        cleaned = v.check()

        item.steps = steps
        if "printing_report" in cleaned:
            item.printing_report = cleaned["printing_report"]
        db.session.commit()
        logger.info("Invoice item %s moved to %s", item.id, steps)
        return item

    @staticmethod
    def delete_item(item_id):
        item = InvoiceItemService.get_item(item_id)
        item.is_deleted = True
        InvoiceService.recalculate(item.invoice)
        db.session.commit()
        logger.info("Invoice item %s soft-deleted", item.id)
        return item
