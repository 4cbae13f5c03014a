from flask import Blueprint, request
from payments.payment_service import PaymentService, PaymentFilter
from src.exceptions import ValidationError
from src.filters import parse_date
from src.money import money_str
from src.responses import success
from user.jwt_middleware import jwt_required

bp = Blueprint("payments", __name__)


@bp.route("/", methods=["POST"])
@jwt_required
def create_payment():
    payload = request.get_json() or {}
    payment = PaymentService.create_payment(payload)
    return success({"payment": payment.to_dict()}, "Payment created successfully", 201)


@bp.route("/", methods=["GET"])
@jwt_required
def list_payments():
    f = PaymentFilter.from_args(request.args)
    payments, pagination, summary = PaymentService.list_payments(f)
    return success({
        "payments": [p.to_dict() for p in payments],
        "pagination": pagination,
        "summary": summary,
    }, "Payments retrieved successfully")


@bp.route("/stats", methods=["GET"])
@jwt_required
def payment_stats():
    errors = []
    start_date = parse_date(request.args, "start_date", errors)
    end_date = parse_date(request.args, "end_date", errors)
    if errors:
        raise ValidationError(errors)
    return success({"stats": PaymentService.stats_by_type(start_date, end_date)},
                   "Payment statistics retrieved successfully")


@bp.route("/invoice/<invoice_id>", methods=["GET"])
@jwt_required
def payments_for_invoice(invoice_id):
    invoice, payments = PaymentService.payments_for_invoice(invoice_id)
    return success({
        "invoice_id": str(invoice.id),
        "invoice_number": invoice.invoice_number,
        "grand_total": money_str(invoice.grand_total),
        "paid_amount": money_str(invoice.paid_amount),
        "due_amount": money_str(invoice.due_amount),
        "payment_status": invoice.payment_status,
        "payments": [p.to_dict() for p in payments],
        "count": len(payments),
    }, "Invoice payments retrieved successfully")


@bp.route("/<int:payment_id>", methods=["GET"])
@jwt_required
def get_payment(payment_id):
    payment = PaymentService.get_payment(payment_id)
    return success({"payment": payment.to_dict()}, "Payment retrieved successfully")


@bp.route("/<int:payment_id>", methods=["PUT"])
@jwt_required
def update_payment(payment_id):
    payload = request.get_json() or {}
    payment = PaymentService.update_payment(payment_id, payload)
    return success({"payment": payment.to_dict()}, "Payment updated successfully")


@bp.route("/<int:payment_id>", methods=["DELETE"])
@jwt_required
def delete_payment(payment_id):
    PaymentService.delete_payment(payment_id)
    return success(None, "Payment deleted successfully")
