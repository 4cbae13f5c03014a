from flask import Blueprint, request
from src.exceptions import ValidationError
from src.filters import parse_choice, parse_date, parse_int
from src.responses import success
from tasks.task_assignment import TASK_STATUSES
from tasks.task_service import TaskService, TaskFilter
from user.jwt_middleware import jwt_required, get_current_user
from user.auth_middleware import require_roles
from user.user import MANAGEMENT_ROLES

bp = Blueprint("tasks", __name__)


@bp.route("/", methods=["POST"])
@jwt_required
def create_task():
    payload = request.get_json() or {}
    task = TaskService.create_task(payload, get_current_user())
    return success({"task": task.to_dict()}, "Task assignment created successfully", 201)


@bp.route("/", methods=["GET"])
@jwt_required
def list_tasks():
    f = TaskFilter.from_args(request.args)
    tasks, pagination = TaskService.list_tasks(f)
    return success({
        "tasks": [t.to_dict() for t in tasks],
        "pagination": pagination,
    }, "Tasks retrieved successfully")


@bp.route("/my-tasks", methods=["GET"])
@jwt_required
def my_tasks():
    errors = []
    status = parse_choice(request.args, "status", TASK_STATUSES, errors)
    if errors:
        raise ValidationError(errors)
    tasks = TaskService.my_tasks(get_current_user(), status)
    return success({"tasks": [t.to_dict() for t in tasks]}, "My tasks retrieved successfully")


@bp.route("/workload", methods=["GET"])
@jwt_required
def employee_workload():
    errors = []
    employee_id = parse_int(request.args, "employee_id", errors)
    if errors:
        raise ValidationError(errors)
    return success({"workload": TaskService.workload(employee_id)}, "Employee workload retrieved successfully")


@bp.route("/statistics", methods=["GET"])
@jwt_required
def task_statistics():
    errors = []
    start_date = parse_date(request.args, "start_date", errors)
    end_date = parse_date(request.args, "end_date", errors)
    if errors:
        raise ValidationError(errors)
    return success({"statistics": TaskService.statistics(start_date, end_date)},
                   "Task statistics retrieved successfully")


@bp.route("/invoice-item/<int:item_id>", methods=["GET"])
@jwt_required
def tasks_for_invoice_item(item_id):
    tasks = TaskService.tasks_for_item(item_id)
    return success({"tasks": [t.to_dict() for t in tasks]}, "Tasks retrieved successfully")


@bp.route("/<int:task_id>", methods=["GET"])
@jwt_required
def get_task(task_id):
    task = TaskService.get_task(task_id)
    return success({"task": task.to_dict()}, "Task retrieved successfully")


@bp.route("/<int:task_id>", methods=["PUT"])
@require_roles(*MANAGEMENT_ROLES)
def update_task(task_id):
    payload = request.get_json() or {}
    task = TaskService.update_task(task_id, payload)
    return success({"task": task.to_dict()}, "Task updated successfully")


@bp.route("/<int:task_id>/status", methods=["PUT"])
@jwt_required
def update_task_status(task_id):
    payload = request.get_json() or {}
    task = TaskService.update_status(task_id, payload, get_current_user())
    return success({"task": task.to_dict()}, "Task status updated successfully")


@bp.route("/<int:task_id>", methods=["DELETE"])
@require_roles(*MANAGEMENT_ROLES)
def delete_task(task_id):
    TaskService.delete_task(task_id)
    return success(None, "Task deleted successfully")
