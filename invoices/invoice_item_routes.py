from flask import Blueprint, request
from invoices.invoice_item_service import InvoiceItemService, InvoiceItemFilter
from src.exceptions import ValidationError
from src.filters import parse_int
from src.responses import success
from user.jwt_middleware import jwt_required

bp = Blueprint("invoice_items", __name__)


@bp.route("/", methods=["POST"])
@jwt_required
def create_invoice_item():
    payload = request.get_json() or {}
    item = InvoiceItemService.create_item(payload)
    return success({"invoice_item": item.to_dict()}, "Invoice item created successfully", 201)


@bp.route("/", methods=["GET"])
@jwt_required
def list_invoice_items():
    f = InvoiceItemFilter.from_args(request.args)
    items, pagination, summary = InvoiceItemService.list_items(f)
    return success({
        "invoice_items": [item.to_dict() for item in items],
        "pagination": pagination,
        "summary": summary,
    }, "Invoice items retrieved successfully")


@bp.route("/statistics", methods=["GET"])
@jwt_required
def invoice_item_statistics():
    errors = []
    invoice_id = parse_int(request.args, "invoice_id", errors)
    if errors:
        raise ValidationError(errors)
    return success(InvoiceItemService.statistics(invoice_id), "Statistics retrieved successfully")


@bp.route("/priority/<priority>", methods=["GET"])
@jwt_required
def invoice_items_by_priority(priority):
    items = InvoiceItemService.items_by_priority(priority)
    return success({
        "invoice_items": [item.to_dict() for item in items],
        "count": len(items),
    }, f"{priority} priority items retrieved successfully")


@bp.route("/<int:item_id>", methods=["GET"])
@jwt_required
def get_invoice_item(item_id):
    item = InvoiceItemService.get_item(item_id)
    return success({"invoice_item": item.to_dict()}, "Invoice item retrieved successfully")


@bp.route("/<int:item_id>", methods=["PUT"])
@jwt_required
def update_invoice_item(item_id):
    payload = request.get_json() or {}
    item = InvoiceItemService.update_item(item_id, payload)
    return success({"invoice_item": item.to_dict()}, "Invoice item updated successfully")


@bp.route("/<int:item_id>/status", methods=["PUT"])
@jwt_required
def update_invoice_item_status(item_id):
    payload = request.get_json() or {}
    item = InvoiceItemService.update_item_status(item_id, payload)
    return success({"invoice_item": item.to_dict()}, "Invoice item status updated successfully")


@bp.route("/<int:item_id>", methods=["DELETE"])
@jwt_required
def delete_invoice_item(item_id):
    InvoiceItemService.delete_item(item_id)
    return success(None, "Invoice item deleted successfully")
