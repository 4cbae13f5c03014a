"""
Existence checks for referenced records.

Every create or update that points at another record runs the matching
check first. A missing, soft-deleted or (for employees) inactive record
raises NotFoundError before anything is written.
"""
from src.extensions import db
from src.exceptions import NotFoundError
from customers.customer import Customer
from products.product import Product
from invoices.invoice import Invoice
from invoices.invoice_item import InvoiceItem
from tasks.task_assignment import TaskAssignment
from user.user import User


def _active(model, record_id):
    if record_id is None:
        return None
    record = db.session.get(model, record_id)
    if record is None or getattr(record, "is_deleted", False):
        return None
    return record


def require_customer(customer_id):
    customer = _active(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def require_product(product_id):
    product = _active(Product, product_id)
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def require_products(product_ids):
    """Fetch every referenced product, reporting all missing ids at once."""
    ids = list(dict.fromkeys(product_ids))
    found = {
        p.id: p for p in Product.active().filter(Product.id.in_(ids)).all()
    } if ids else {}
    missing = [pid for pid in ids if pid not in found]
    if missing:
        raise NotFoundError(
            "One or more products not found",
            details=[f"Product {pid} not found" for pid in missing],
        )
    return found


def require_invoice(invoice_id):
    invoice = _active(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def require_invoice_item(item_id):
    item = _active(InvoiceItem, item_id)
    if not item:
        raise NotFoundError("Invoice item not found")
    return item


def require_employee(user_id):
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user or not user.is_active:
        raise NotFoundError("Assigned employee not found or inactive")
    return user


def require_task(task_id):
    task = _active(TaskAssignment, task_id)
    if not task:
        raise NotFoundError("Task assignment not found")
    return task
