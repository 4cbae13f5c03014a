from datetime import datetime
from src.extensions import db
from src.money import money_str, format_amount

ITEM_PRIORITIES = ("Low", "Medium", "High")
ITEM_STEPS = ("Draft", "Design", "Printing", "Pending", "Completed")
OVERALL_STATUSES = ("Not Started", "In Progress", "On Hold", "Completed")


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    # Product snapshot
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(100), nullable=False)
    product_price = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    product_base_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    description = db.Column(db.String(500), nullable=True)

    priority = db.Column(db.String(10), nullable=False, default="Medium")
    delivery_date = db.Column(db.DateTime, nullable=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    rate = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    base_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_type = db.Column(db.String(10), nullable=False, default="percentage")  # percentage / fixed
    discount_value = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    profit = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    work_instructions = db.Column(db.Text, nullable=True)
    printing_operation = db.Column(db.String(200), nullable=True)
    printing_report = db.Column(db.String(1000), nullable=True)

    # Production workflow
    steps = db.Column(db.String(20), nullable=False, default="Draft")
    allocation = db.Column(db.String(100), nullable=True)
    user_allocation = db.Column(db.String(100), nullable=True)

    # Rolled up from task assignments, never written by clients
    overall_status = db.Column(db.String(20), nullable=False, default="Not Started")
    task_progress = db.Column(db.Integer, nullable=False, default=0)

    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    invoice = db.relationship("Invoice", back_populates="items")

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    def to_dict(self):
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "position": self.position,
            "product": {
                "id": self.product_id,
                "name": self.product_name,
                "price": money_str(self.product_price),
                "base_cost": money_str(self.product_base_cost),
            },
            "description": self.description,
            "priority": self.priority,
            "delivery_date": self.delivery_date.isoformat() if self.delivery_date else None,
            "quantity": f"{self.quantity:.3f}",
            "rate": money_str(self.rate),
            "base_cost": money_str(self.base_cost),
            "discount_type": self.discount_type,
            "discount_value": money_str(self.discount_value),
            "discount_amount": money_str(self.discount_amount),
            "total": money_str(self.total),
            "profit": money_str(self.profit),
            "formatted_rate": format_amount(self.rate),
            "formatted_total": format_amount(self.total),
            "work_instructions": self.work_instructions,
            "printing_operation": self.printing_operation,
            "printing_report": self.printing_report,
            "steps": self.steps,
            "allocation": self.allocation,
            "user_allocation": self.user_allocation,
            "overall_status": self.overall_status,
            "task_progress": self.task_progress,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
