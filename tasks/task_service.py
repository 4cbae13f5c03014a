from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func

from src.extensions import db
from src.exceptions import AuthorizationError
from src.filters import ListFilter, parse_choice, parse_int, ilike_any
from src.gatekeepers import require_employee, require_invoice_item, require_task
from src.logger import get_logger
from src.money import round2
from src.responses import paginate
from src.validators import Validator
from tasks.status_propagator import refresh_item_progress
from tasks.task_assignment import (
    TaskAssignment, TASK_TYPES, TASK_STATUSES, TASK_PRIORITIES, OPEN_STATUSES, MAX_ATTACHMENTS,
)
from user.auth_middleware import has_role
from user.user import User, MANAGEMENT_ROLES

logger = get_logger("tasks")

PRIORITY_RANK = case(
    (TaskAssignment.priority == "Urgent", 4),
    (TaskAssignment.priority == "High", 3),
    (TaskAssignment.priority == "Medium", 2),
    else_=1,
)


@dataclass
class TaskFilter(ListFilter):
    invoice_item_id: Optional[int] = None
    assigned_to: Optional[int] = None
    status: Optional[str] = None
    task_type: Optional[str] = None
    priority: Optional[str] = None

    SORT_FIELDS = ("created_at", "due_date", "start_date", "priority", "status", "task_name")

    @classmethod
    def _parse(cls, args, errors):
        return {
            "invoice_item_id": parse_int(args, "invoice_item_id", errors),
            "assigned_to": parse_int(args, "assigned_to", errors),
            "status": parse_choice(args, "status", TASK_STATUSES, errors),
            "task_type": parse_choice(args, "task_type", TASK_TYPES, errors),
            "priority": parse_choice(args, "priority", TASK_PRIORITIES, errors),
        }


def _hours(value):
    return float(round2(value)) if value is not None else 0.0


def _validate(data, partial=False):
    v = Validator(data, partial=partial)
    v.integer("invoice_item_id", required=True, min_value=1)
    v.string("task_type", required=True, choices=TASK_TYPES)
    v.string("task_name", required=True, max_length=100)
    v.string("description", max_length=500)
    v.integer("assigned_to", required=True, min_value=1)
    v.string("status", choices=TASK_STATUSES)
    v.string("priority", choices=TASK_PRIORITIES)
    v.decimal("estimated_hours", min_value=0, places=2)
    v.decimal("actual_hours", min_value=0, places=2)
    v.datetime("start_date")
    v.datetime("due_date")
    v.datetime("completed_date")
    v.string("notes", max_length=1000)
    v.string_list("attachments", max_items=MAX_ATTACHMENTS)
    v.integer_list("depends_on")
    return v.check()


def _check_dates(start_date, due_date, completed_date):
    errors = []
    if start_date and due_date and due_date < start_date:
        errors.append("due_date must be on or after start_date")
    if start_date and completed_date and completed_date < start_date:
        errors.append("completed_date must be on or after start_date")
    return errors


class TaskService:
    @staticmethod
    def create_task(data, principal):
        cleaned = _validate(data)
        v = Validator({})
        for error in _check_dates(cleaned.get("start_date"), cleaned.get("due_date"), cleaned.get("completed_date")):
            v.add_error(error)
        v.check()

        item = require_invoice_item(cleaned["invoice_item_id"])
        require_employee(cleaned["assigned_to"])

        task = TaskAssignment(
            assigned_by=principal["user_id"],
            status=cleaned.pop("status", None) or "Assigned",
            priority=cleaned.pop("priority", None) or "Medium",
            attachments=cleaned.pop("attachments", None) or [],
            depends_on=cleaned.pop("depends_on", None) or [],
            is_deleted=False,
        )
        for field, value in cleaned.items():
            setattr(task, field, value)

        db.session.add(task)
        db.session.commit()
        logger.info("Task %s (%s) assigned to user %s by user %s", task.id, task.task_type,
                    task.assigned_to, task.assigned_by)

        refresh_item_progress(item.id)
        return task

    @staticmethod
    def list_tasks(f):
        q = TaskAssignment.active()
        if f.invoice_item_id:
            q = q.filter(TaskAssignment.invoice_item_id == f.invoice_item_id)
        if f.assigned_to:
            q = q.filter(TaskAssignment.assigned_to == f.assigned_to)
        if f.status:
            q = q.filter(TaskAssignment.status == f.status)
        if f.task_type:
            q = q.filter(TaskAssignment.task_type == f.task_type)
        if f.priority:
            q = q.filter(TaskAssignment.priority == f.priority)
        if f.search:
            q = q.filter(ilike_any(f.search, TaskAssignment.task_name, TaskAssignment.description,
                                   TaskAssignment.notes))

        if f.sort_by == "priority":
            order = PRIORITY_RANK.asc() if f.sort_order == "asc" else PRIORITY_RANK.desc()
        else:
            order = f.order_clause(TaskAssignment)
        return paginate(q.order_by(order), f.page, f.limit)

    @staticmethod
    def my_tasks(principal, status=None):
        q = TaskAssignment.active().filter(TaskAssignment.assigned_to == principal["user_id"])
        if status:
            q = q.filter(TaskAssignment.status == status)
        return q.order_by(
            PRIORITY_RANK.desc(),
            TaskAssignment.due_date.is_(None),
            TaskAssignment.due_date.asc(),
        ).all()

    @staticmethod
    def workload(employee_id=None):
        """Open task counts per employee, busiest first."""
        now = datetime.utcnow()
        q = db.session.query(
            TaskAssignment.assigned_to,
            User.name,
            User.role,
            func.count(TaskAssignment.id).label("total_tasks"),
            func.sum(case((TaskAssignment.priority == "Urgent", 1), else_=0)),
            func.sum(case((TaskAssignment.priority == "High", 1), else_=0)),
            func.sum(TaskAssignment.estimated_hours),
            func.sum(case((TaskAssignment.due_date.isnot(None) & (TaskAssignment.due_date < now), 1), else_=0)),
        ).join(User, User.id == TaskAssignment.assigned_to).filter(
            TaskAssignment.is_deleted.is_(False),
            TaskAssignment.status.in_(OPEN_STATUSES),
        )
        if employee_id:
            q = q.filter(TaskAssignment.assigned_to == employee_id)

        rows = q.group_by(TaskAssignment.assigned_to, User.name, User.role).order_by(
            func.count(TaskAssignment.id).desc()
        ).all()
        return [{
            "employee_id": user_id,
            "employee_name": name,
            "employee_role": role,
            "total_tasks": total,
            "urgent_tasks": int(urgent or 0),
            "high_priority_tasks": int(high or 0),
            "total_estimated_hours": _hours(estimated),
            "overdue_tasks": int(overdue or 0),
        } for user_id, name, role, total, urgent, high, estimated, overdue in rows]

    @staticmethod
    def statistics(start_date=None, end_date=None):
        q = db.session.query(
            TaskAssignment.status,
            func.count(TaskAssignment.id),
            func.sum(TaskAssignment.estimated_hours),
            func.sum(TaskAssignment.actual_hours),
            func.avg(TaskAssignment.estimated_hours),
            func.avg(TaskAssignment.actual_hours),
        ).filter(TaskAssignment.is_deleted.is_(False))
        if start_date:
            q = q.filter(TaskAssignment.created_at >= start_date)
        if end_date:
            q = q.filter(TaskAssignment.created_at <= end_date)

        rows = q.group_by(TaskAssignment.status).order_by(func.count(TaskAssignment.id).desc()).all()
        return [{
            "status": status,
            "count": count,
            "total_estimated_hours": _hours(est_sum),
            "total_actual_hours": _hours(act_sum),
            "avg_estimated_hours": _hours(est_avg),
            "avg_actual_hours": _hours(act_avg),
        } for status, count, est_sum, act_sum, est_avg, act_avg in rows]

    @staticmethod
    def tasks_for_item(invoice_item_id):
        require_invoice_item(invoice_item_id)
        return TaskAssignment.active().filter(
            TaskAssignment.invoice_item_id == invoice_item_id
        ).order_by(TaskAssignment.created_at.asc(), TaskAssignment.id.asc()).all()

    @staticmethod
    def get_task(task_id):
        return require_task(task_id)

    @staticmethod
    def update_task(task_id, data):
        task = require_task(task_id)
        cleaned = _validate(data, partial=True)

        v = Validator({})
        for error in _check_dates(
            cleaned.get("start_date", task.start_date),
            cleaned.get("due_date", task.due_date),
            cleaned.get("completed_date", task.completed_date),
        ):
            v.add_error(error)
        v.check()

        previous_item_id = task.invoice_item_id
        if cleaned.get("invoice_item_id") and cleaned["invoice_item_id"] != task.invoice_item_id:
            require_invoice_item(cleaned["invoice_item_id"])
        if cleaned.get("assigned_to") and cleaned["assigned_to"] != task.assigned_to:
            require_employee(cleaned["assigned_to"])

        for field, value in cleaned.items():
            if field in ("attachments", "depends_on"):
                value = value or []
            setattr(task, field, value)

        db.session.commit()
        logger.info("Task %s updated", task.id)

        refresh_item_progress(task.invoice_item_id)
        if previous_item_id != task.invoice_item_id:
            refresh_item_progress(previous_item_id)
        return task

    @staticmethod
    def update_status(task_id, data, principal):
        """Move a task through its lifecycle. Only the assignee or management may do this."""
        task = require_task(task_id)
        if task.assigned_to != principal["user_id"] and not has_role(principal, *MANAGEMENT_ROLES):
            raise AuthorizationError("Not authorized to update this task")

        v = Validator(data)
        status = v.string("status", required=True, choices=TASK_STATUSES)
        v.decimal("actual_hours", min_value=0, places=2)
        v.string("notes", max_length=1000)
        cleaned = v.check()

        task.status = status
        if cleaned.get("actual_hours") is not None:
            task.actual_hours = cleaned["actual_hours"]
        if cleaned.get("notes"):
            task.notes = cleaned["notes"]
        db.session.commit()
        logger.info("Task %s status changed to %s", task.id, status)

        refresh_item_progress(task.invoice_item_id)
        return task

    @staticmethod
    def delete_task(task_id):
        task = require_task(task_id)
        task.is_deleted = True
        db.session.commit()
        logger.info("Task %s soft-deleted", task.id)

        refresh_item_progress(task.invoice_item_id)
        return task
