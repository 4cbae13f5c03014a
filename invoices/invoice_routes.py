from flask import Blueprint, request
from invoices.invoice_service import InvoiceService, InvoiceFilter
from src.exceptions import ValidationError
from src.filters import parse_date, parse_int
from src.responses import success
from user.jwt_middleware import jwt_required

bp = Blueprint("invoices", __name__)


@bp.route("/", methods=["POST"])
@jwt_required
def create_invoice():
    payload = request.get_json() or {}
    invoice = InvoiceService.create_invoice(payload)
    return success({"invoice": invoice.to_dict()}, "Invoice created successfully", 201)


@bp.route("/", methods=["GET"])
@jwt_required
def list_invoices():
    f = InvoiceFilter.from_args(request.args)
    invoices, pagination, summary, total_customer_count = InvoiceService.list_invoices(f)
    return success({
        "invoices": [inv.to_dict() for inv in invoices],
        "pagination": pagination,
        "summary": summary,
        "total_customer_count": total_customer_count,
    }, "Invoices retrieved successfully")


@bp.route("/statistics", methods=["GET"])
@jwt_required
def invoice_statistics():
    errors = []
    start_date = parse_date(request.args, "start_date", errors)
    end_date = parse_date(request.args, "end_date", errors)
    if errors:
        raise ValidationError(errors)
    stats = InvoiceService.statistics(start_date, end_date)
    return success(stats, "Statistics retrieved successfully")


@bp.route("/count", methods=["GET"])
@jwt_required
def invoice_count():
    errors = []
    fiscal_year = parse_int(request.args, "fiscal_year", errors)
    if errors:
        raise ValidationError(errors)
    return success(InvoiceService.fiscal_year_count(fiscal_year), "Invoice count retrieved successfully")


@bp.route("/<int:invoice_id>", methods=["GET"])
@jwt_required
def get_invoice(invoice_id):
    invoice = InvoiceService.get_invoice(invoice_id)
    return success({"invoice": invoice.to_dict()}, "Invoice retrieved successfully")


@bp.route("/<int:invoice_id>", methods=["PUT"])
@jwt_required
def update_invoice(invoice_id):
    payload = request.get_json() or {}
    invoice = InvoiceService.update_invoice(invoice_id, payload)
    return success({"invoice": invoice.to_dict()}, "Invoice updated successfully")


@bp.route("/<int:invoice_id>/status", methods=["PUT"])
@jwt_required
def update_invoice_status(invoice_id):
    payload = request.get_json() or {}
    invoice = InvoiceService.update_status(invoice_id, payload)
    return success({"invoice": invoice.to_dict(include_items=False)}, "Invoice status updated successfully")


@bp.route("/<int:invoice_id>", methods=["DELETE"])
@jwt_required
def delete_invoice(invoice_id):
    InvoiceService.delete_invoice(invoice_id)
    return success(None, "Invoice deleted successfully")
