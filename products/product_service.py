from dataclasses import dataclass
from typing import Optional

from src.extensions import db
from src.exceptions import DuplicateEntryError, NotFoundError
from src.filters import ListFilter, parse_bool, parse_choice, ilike_any
from src.logger import get_logger
from src.money import round2
from src.responses import paginate
from src.validators import Validator
from products.product import Product, PRODUCT_TYPES, TAX_RATES

logger = get_logger("products")

FIELDS = ("name", "type", "unit", "tax_rate", "hsn_code", "code", "price",
          "base_cost", "photo_url", "description", "is_active")


@dataclass
class ProductFilter(ListFilter):
    type: Optional[str] = None
    is_active: Optional[bool] = None

    SORT_FIELDS = ("created_at", "name", "price", "base_cost", "code")

    @classmethod
    def _parse(cls, args, errors):
        return {
            "type": parse_choice(args, "type", PRODUCT_TYPES, errors),
            "is_active": parse_bool(args, "is_active", errors),
        }


def validate_product(data, partial=False):
    v = Validator(data, partial=partial)
    v.string("name", required=True, max_length=100)
    v.string("type", choices=PRODUCT_TYPES)
    v.string("unit", max_length=20)
    v.integer("tax_rate", choices=TAX_RATES)
    v.string("hsn_code", max_length=20)
    v.string("code", max_length=50)
    v.decimal("price", min_value=0, places=2)
    v.decimal("base_cost", min_value=0, places=2)
    v.url("photo_url")
    v.string("description", max_length=500)
    v.boolean("is_active")
    return v.check()


class ProductService:
    @staticmethod
    def _ensure_code_free(code, exclude_id=None):
        if not code:
            return
        q = Product.active().filter(Product.code == code)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise DuplicateEntryError("Product with this code already exists", field="code")

    @staticmethod
    def create_product(data):
        cleaned = validate_product(data)
        ProductService._ensure_code_free(cleaned.get("code"))

        product = Product(
            name=cleaned["name"],
            type=cleaned.get("type") or "service",
            unit=cleaned.get("unit"),
            tax_rate=cleaned.get("tax_rate") or 0,
            hsn_code=cleaned.get("hsn_code"),
            code=cleaned.get("code"),
            price=round2(cleaned.get("price") or 0),
            base_cost=round2(cleaned.get("base_cost") or 0),
            photo_url=cleaned.get("photo_url"),
            description=cleaned.get("description"),
            is_active=True if cleaned.get("is_active") is None else cleaned["is_active"],
        )
        db.session.add(product)
        db.session.commit()
        logger.info("Product %s created (%s)", product.id, product.name)
        return product

    @staticmethod
    def list_products(f):
        q = Product.active()
        if f.type:
            q = q.filter(Product.type == f.type)
        if f.is_active is not None:
            q = q.filter(Product.is_active.is_(f.is_active))
        if f.search:
            q = q.filter(ilike_any(f.search, Product.name, Product.code, Product.description))
        q = q.order_by(f.order_clause(Product))
        return paginate(q, f.page, f.limit)

    @staticmethod
    def get_product(product_id):
        product = Product.active().filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    def update_product(product_id, data):
        product = ProductService.get_product(product_id)
        cleaned = validate_product(data, partial=True)
        if cleaned.get("code") and cleaned["code"] != product.code:
            ProductService._ensure_code_free(cleaned["code"], product.id)

        for field in FIELDS:
            if field not in cleaned:
                continue
            value = cleaned[field]
            if field in ("price", "base_cost"):
                value = round2(value or 0)
            elif field in ("type", "tax_rate", "is_active") and value is None:
                continue
            setattr(product, field, value)
        db.session.commit()
        return product

    @staticmethod
    def delete_product(product_id):
        product = ProductService.get_product(product_id)
        product.is_deleted = True
        db.session.commit()
        logger.info("Product %s soft-deleted", product.id)
        return product
