"""
Rolls task assignment statuses up into their invoice item.

An item's ``overall_status`` and ``task_progress`` are rebuilt from scratch
out of its non-deleted tasks every time one of them changes.
"""
from decimal import Decimal, ROUND_HALF_UP

from src.extensions import db
from src.logger import get_logger
from invoices.invoice_item import InvoiceItem
from tasks.task_assignment import TaskAssignment

logger = get_logger("tasks.propagation")


def progress_percent(completed, total):
    if not total:
        return 0
    value = Decimal(100 * completed) / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def derive_item_status(statuses):
    """Return ``(overall_status, task_progress)`` for a list of task statuses."""
    statuses = list(statuses)
    if not statuses:
        return "Not Started", 0

    total = len(statuses)
    completed = statuses.count("Completed")
    in_progress = statuses.count("In Progress")
    on_hold = statuses.count("On Hold")

    if completed == total:
        return "Completed", 100
    if completed > 0 or in_progress > 0:
        return "In Progress", progress_percent(completed, total)
    if on_hold > 0:
        # completed is 0 here, so this is always 0
        return "On Hold", progress_percent(completed, total)
    return "Not Started", 0


def refresh_item_progress(invoice_item_id):
    """
    Recompute and store the rollup for one invoice item.

    Runs after the task change is committed. Failures are logged and
    swallowed so they never undo that change.
    """
    try:
        item = db.session.get(InvoiceItem, invoice_item_id)
        if item is None or item.is_deleted:
            logger.warning("Invoice item %s not found while updating task progress", invoice_item_id)
            return None

        rows = db.session.query(TaskAssignment.status).filter(
            TaskAssignment.invoice_item_id == invoice_item_id,
            TaskAssignment.is_deleted.is_(False),
        ).all()
        overall_status, progress = derive_item_status(row.status for row in rows)

        item.overall_status = overall_status
        item.task_progress = progress
        db.session.commit()
        logger.info("Invoice item %s is %s (%s%%)", invoice_item_id, overall_status, progress)
        return overall_status, progress
    except Exception as e:
        db.session.rollback()
        logger.error("Failed to update status of invoice item %s: %s", invoice_item_id, str(e))
        return None
