from flask import Blueprint, request
from src.extensions import db
from src.exceptions import NotFoundError
from src.responses import success
from src.validators import Validator, URL_RE
from company.company import Company
from user.auth_middleware import require_roles

bp = Blueprint("companies", __name__)

FIELDS = ("company_name", "company_legal_name", "gst_no", "logo_path", "primary_contact_number",
          "office_contact_number", "email", "website", "company_address")


def _validate(data, partial=False):
    v = Validator(data, partial=partial)
    v.string("company_name", required=True, max_length=100)
    v.string("company_legal_name", required=True, max_length=200)
    v.string("gst_no", max_length=15)
    v.string("logo_path", max_length=500)
    v.string("primary_contact_number", required=True, max_length=20)
    v.string("office_contact_number", max_length=20)
    v.email("email", required=True)
    v.string("website", max_length=255, pattern=URL_RE, message="website must be a valid http(s) URL")
    v.string("company_address", required=True, max_length=500)
    return v.check()


def _get_active(company_id):
    company = Company.active().filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    return company


@bp.route("/", methods=["POST"])
@require_roles("admin")
def create_company():
    data = request.get_json() or {}
    cleaned = _validate(data)

    company = Company()
    for key, value in cleaned.items():
        setattr(company, key, value)

    db.session.add(company)
    db.session.commit()
    return success({"company": company.to_dict()}, "Company created successfully", 201)


@bp.route("/", methods=["GET"])
@require_roles("admin")
def list_companies():
    companies = Company.active().order_by(Company.created_at.desc()).all()
    return success({"companies": [c.to_dict() for c in companies]}, "Companies retrieved successfully")


@bp.route("/<int:company_id>", methods=["GET"])
@require_roles("admin")
def get_company(company_id):
    return success({"company": _get_active(company_id).to_dict()}, "Company retrieved successfully")


@bp.route("/<int:company_id>", methods=["PUT"])
@require_roles("admin")
def update_company(company_id):
    company = _get_active(company_id)
    cleaned = _validate(request.get_json() or {}, partial=True)

    for key, value in cleaned.items():
        if key in FIELDS:
            setattr(company, key, value)

    db.session.commit()
    return success({"company": company.to_dict()}, "Company updated successfully")


@bp.route("/<int:company_id>", methods=["DELETE"])
@require_roles("admin")
def delete_company(company_id):
    company = _get_active(company_id)
    company.is_deleted = True
    db.session.commit()
    return success(None, "Company deleted successfully")
