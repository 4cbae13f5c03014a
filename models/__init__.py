from src.extensions import db

# Import all models so migrations can detect them
from user.user import User
from company.company import Company
from customers.customer import Customer
from products.product import Product
from invoices.invoice import Invoice
from invoices.invoice_item import InvoiceItem
from payments.payment import Payment
from tasks.task_assignment import TaskAssignment
from locations.location import Country, State, City


__all__ = [
    "db",
    "User",
    "Company",
    "Customer",
    "Product",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "TaskAssignment",
    "Country",
    "State",
    "City",
]
