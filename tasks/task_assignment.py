from datetime import datetime
from src.extensions import db
from src.money import round2
from sqlalchemy import event

TASK_TYPES = ("Design", "Printing", "QC", "Binding", "Packaging", "Delivery", "Custom")
TASK_STATUSES = ("Assigned", "In Progress", "On Hold", "Completed", "Cancelled")
TASK_PRIORITIES = ("Low", "Medium", "High", "Urgent")
OPEN_STATUSES = ("Assigned", "In Progress")
MAX_ATTACHMENTS = 10


class TaskAssignment(db.Model):
    __tablename__ = "task_assignments"

    id = db.Column(db.Integer, primary_key=True)
    invoice_item_id = db.Column(db.Integer, db.ForeignKey("invoice_items.id"), nullable=False, index=True)
    task_type = db.Column(db.String(20), nullable=False)
    task_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)

    # Employee doing the work and the user who handed it out
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="Assigned", index=True)
    priority = db.Column(db.String(10), nullable=False, default="Medium")
    estimated_hours = db.Column(db.Numeric(8, 2), nullable=True)
    actual_hours = db.Column(db.Numeric(8, 2), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    completed_date = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.String(1000), nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)

    # Ids of tasks this one waits on; informational only
    depends_on = db.Column(db.JSON, nullable=False, default=list)

    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    invoice_item = db.relationship("InvoiceItem", lazy=True)
    assignee = db.relationship("User", foreign_keys=[assigned_to], lazy=True)
    assigner = db.relationship("User", foreign_keys=[assigned_by], lazy=True)

    @classmethod
    def active(cls):
        return cls.query.filter(cls.is_deleted.is_(False))

    @property
    def is_overdue(self):
        if self.due_date and self.status not in ("Completed", "Cancelled"):
            return datetime.utcnow() > self.due_date
        return False

    @property
    def duration_hours(self):
        if self.start_date and self.completed_date:
            return round((self.completed_date - self.start_date).total_seconds() / 3600)
        return None

    def stamp_dates(self):
        """Fill start/completion dates implied by the status and round hours."""
        if self.status == "Completed" and not self.completed_date:
            self.completed_date = datetime.utcnow()
        if self.status == "In Progress" and not self.start_date:
            self.start_date = datetime.utcnow()
        if self.estimated_hours is not None:
            self.estimated_hours = round2(self.estimated_hours)
        if self.actual_hours is not None:
            self.actual_hours = round2(self.actual_hours)

    def to_dict(self):
        def _user(u):
            return {"id": u.id, "name": u.name, "role": u.role} if u else None

        return {
            "id": self.id,
            "invoice_item_id": self.invoice_item_id,
            "task_type": self.task_type,
            "task_name": self.task_name,
            "description": self.description,
            "assigned_to": _user(self.assignee),
            "assigned_by": _user(self.assigner),
            "status": self.status,
            "priority": self.priority,
            "estimated_hours": float(self.estimated_hours) if self.estimated_hours is not None else None,
            "actual_hours": float(self.actual_hours) if self.actual_hours is not None else None,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed_date": self.completed_date.isoformat() if self.completed_date else None,
            "notes": self.notes,
            "attachments": self.attachments or [],
            "depends_on": self.depends_on or [],
            "is_overdue": self.is_overdue,
            "duration": self.duration_hours,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@event.listens_for(TaskAssignment, "before_insert")
def stamp_task_before_insert(mapper, connection, target):
    target.stamp_dates()


@event.listens_for(TaskAssignment, "before_update")
def stamp_task_before_update(mapper, connection, target):
    target.stamp_dates()
