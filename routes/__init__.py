from customers.customer_routes import bp as customer_bp
from products.product_routes import bp as product_bp
from invoices.invoice_routes import bp as invoice_bp
from invoices.invoice_item_routes import bp as invoice_item_bp
from payments.payment_routes import bp as payment_bp
from tasks.task_routes import bp as task_bp
from locations.location_routes import bp as location_bp
from company.company_routes import bp as company_bp
from user.user_routes import auth_bp, bp as user_bp


def register_routes(app):
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(user_bp, url_prefix="/users")
    app.register_blueprint(customer_bp, url_prefix="/customers")
    app.register_blueprint(product_bp, url_prefix="/products")
    app.register_blueprint(invoice_bp, url_prefix="/invoices")
    app.register_blueprint(invoice_item_bp, url_prefix="/invoice-items")
    app.register_blueprint(payment_bp, url_prefix="/payments")
    app.register_blueprint(task_bp, url_prefix="/tasks")
    app.register_blueprint(location_bp, url_prefix="/locations")
    app.register_blueprint(company_bp, url_prefix="/companies")
