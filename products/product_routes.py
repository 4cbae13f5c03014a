from flask import Blueprint, request
from products.product_service import ProductService, ProductFilter
from src.responses import success
from user.jwt_middleware import jwt_required

bp = Blueprint("products", __name__)


@bp.route("/", methods=["POST"])
@jwt_required
def create_product():
    payload = request.get_json() or {}
    product = ProductService.create_product(payload)
    return success({"product": product.to_dict()}, "Product created successfully", 201)


@bp.route("/", methods=["GET"])
@jwt_required
def list_products():
    f = ProductFilter.from_args(request.args)
    products, pagination = ProductService.list_products(f)
    return success({
        "products": [p.to_dict() for p in products],
        "pagination": pagination,
    }, "Products retrieved successfully")


@bp.route("/<int:product_id>", methods=["GET"])
@jwt_required
def get_product(product_id):
    product = ProductService.get_product(product_id)
    return success({"product": product.to_dict()}, "Product retrieved successfully")


@bp.route("/<int:product_id>", methods=["PUT"])
@jwt_required
def update_product(product_id):
    payload = request.get_json() or {}
    product = ProductService.update_product(product_id, payload)
    return success({"product": product.to_dict()}, "Product updated successfully")


@bp.route("/<int:product_id>", methods=["DELETE"])
@jwt_required
def delete_product(product_id):
    ProductService.delete_product(product_id)
    return success(None, "Product deleted successfully")
