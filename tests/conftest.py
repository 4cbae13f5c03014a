from decimal import Decimal

import pytest

from src.config import TestConfig
from src.extensions import db
from src.main import create_app
from customers.customer import Customer
from products.product import Product
from user.jwt_utils import generate_access_token
from user.user import User


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(name, email, role, is_active=True):
    user = User(name=name, email=email, role=role, is_active=is_active)
    user.set_password("secret123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    return _make_user("Admin", "admin@example.com", "admin")


@pytest.fixture
def manager(app):
    return _make_user("Manager", "manager@example.com", "manager")


@pytest.fixture
def employee(app):
    return _make_user("Ravi", "ravi@example.com", "employee")


@pytest.fixture
def other_employee(app):
    return _make_user("Meena", "meena@example.com", "printing operator")


@pytest.fixture
def headers_for(app):
    def _headers(user):
        token = generate_access_token(user)["access_token"]
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


@pytest.fixture
def customer(app):
    c = Customer(name="Shree Prints", email="shree@example.com", phone="9876543210", company="Shree")
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def product(app):
    p = Product(name="Visiting Card", type="product", unit="box", code="VC-01",
                price=Decimal("100.00"), base_cost=Decimal("60.00"))
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def second_product(app):
    p = Product(name="Flex Banner", type="product", unit="sqft", code="FB-01",
                price=Decimal("25.50"), base_cost=Decimal("12.00"))
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def invoice_payload(customer, product):
    return {
        "customer_id": customer.id,
        "items": [{
            "product_id": product.id,
            "quantity": 2,
            "rate": 100,
            "discount_type": "percentage",
            "discount_value": 10,
        }],
    }
