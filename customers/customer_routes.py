from flask import Blueprint, request
from src.extensions import db
from src.exceptions import DuplicateEntryError, NotFoundError, ValidationError
from src.filters import ListFilter, ilike_any
from src.logger import get_logger
from src.responses import success, paginate
from src.validators import Validator, PHONE_RE
from customers.customer import Customer
from user.jwt_middleware import jwt_required
from user.auth_middleware import require_roles
from user.user import MANAGEMENT_ROLES
import pandas as pd
import io

logger = get_logger("customers")

bp = Blueprint("customers", __name__)

FIELDS = ("name", "email", "phone", "company", "gst_no", "address", "city", "notes")


class CustomerFilter(ListFilter):
    SORT_FIELDS = ("created_at", "name", "email", "company", "city")


def _validate(data, partial=False):
    v = Validator(data, partial=partial)
    v.string("name", required=True, max_length=50)
    v.email("email", required=True)
    v.string("phone", pattern=PHONE_RE, message="phone must be a valid phone number")
    v.string("company", max_length=100)
    v.string("gst_no", max_length=15)
    v.string("address", max_length=500)
    v.string("city", max_length=100)
    v.string("notes", max_length=1000)
    return v.check()


def _get_active(customer_id):
    c = Customer.active().filter(Customer.id == customer_id).first()
    if not c:
        raise NotFoundError("Customer not found")
    return c


# -------------------- CREATE CUSTOMER --------------------
@bp.route("/", methods=["POST"])
@jwt_required
def create_customer():
    data = request.get_json() or {}
    cleaned = _validate(data)
    if Customer.active().filter_by(email=cleaned["email"]).first():
        raise DuplicateEntryError("Customer with this email already exists", field="email")

    cust = Customer(**{k: cleaned.get(k) for k in FIELDS})
    db.session.add(cust)
    db.session.commit()
    logger.info("Customer %s created", cust.id)
    return success({"customer": cust.to_dict()}, "Customer created successfully", 201)


# -------------------- LIST CUSTOMERS --------------------
@bp.route("/", methods=["GET"])
@jwt_required
def list_customers():
    f = CustomerFilter.from_args(request.args)
    q = Customer.active()
    if f.search:
        q = q.filter(ilike_any(f.search, Customer.name, Customer.email, Customer.company, Customer.phone))
    q = q.order_by(f.order_clause(Customer))

    customers, pagination = paginate(q, f.page, f.limit)
    return success({
        "customers": [c.to_dict() for c in customers],
        "pagination": pagination,
    }, "Customers retrieved successfully")


# -------------------- GET CUSTOMER --------------------
@bp.route("/<int:customer_id>", methods=["GET"])
@jwt_required
def get_customer(customer_id):
    c = _get_active(customer_id)
    return success({"customer": c.to_dict()}, "Customer retrieved successfully")


# -------------------- UPDATE CUSTOMER --------------------
@bp.route("/<int:customer_id>", methods=["PUT"])
@jwt_required
def update_customer(customer_id):
    c = _get_active(customer_id)
    data = request.get_json() or {}
    cleaned = _validate(data, partial=True)
    if cleaned.get("email") and cleaned["email"] != c.email:
        if Customer.active().filter(Customer.email == cleaned["email"], Customer.id != c.id).first():
            raise DuplicateEntryError("Customer with this email already exists", field="email")

    for field in FIELDS:
        if field in cleaned:
            setattr(c, field, cleaned[field])
    db.session.commit()
    return success({"customer": c.to_dict()}, "Customer updated successfully")


# -------------------- DELETE CUSTOMER --------------------
@bp.route("/<int:customer_id>", methods=["DELETE"])
@require_roles(*MANAGEMENT_ROLES)
def delete_customer(customer_id):
    c = _get_active(customer_id)
    c.is_deleted = True
    db.session.commit()
    logger.info("Customer %s soft-deleted", c.id)
    return success(None, "Customer deleted successfully")


# -------------------- BULK IMPORT --------------------
@bp.route("/bulk-import", methods=["POST"])
@require_roles(*MANAGEMENT_ROLES)
def bulk_import_customers():
    if 'file' not in request.files:
        raise ValidationError(["No file uploaded"])

    file = request.files['file']
    if file.filename == '':
        raise ValidationError(["No file selected"])
    if not file.filename.endswith('.csv'):
        raise ValidationError(["Only CSV files supported"])

    df = pd.read_csv(io.StringIO(file.read().decode('utf-8')))

    required_cols = ['name', 'email']
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise ValidationError([f"Missing columns: {', '.join(missing_cols)}"])

    results, success_count = Customer.bulk_import(df)
    return success({
        "success_count": success_count,
        "total_rows": len(df),
        "results": results
    }, "Customers imported")
