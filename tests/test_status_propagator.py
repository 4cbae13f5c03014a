import pytest

from src.extensions import db
from invoices.invoice_item import InvoiceItem
from invoices.invoice_service import InvoiceService
from tasks.status_propagator import derive_item_status, progress_percent, refresh_item_progress
from tasks.task_assignment import TaskAssignment


@pytest.mark.parametrize("statuses, expected", [
    ([], ("Not Started", 0)),
    (["Completed", "In Progress", "Assigned"], ("In Progress", 33)),
    (["Completed", "Completed"], ("Completed", 100)),
    (["Completed", "Assigned", "Assigned"], ("In Progress", 33)),
    (["Completed", "Completed", "Assigned"], ("In Progress", 67)),
    (["On Hold", "Assigned"], ("On Hold", 0)),
    (["Assigned", "Cancelled"], ("Not Started", 0)),
    (["Completed", "Cancelled"], ("In Progress", 50)),
])
def test_derive_item_status(statuses, expected):
    assert derive_item_status(statuses) == expected


def test_progress_rounds_half_up():
    assert progress_percent(1, 8) == 13
    assert progress_percent(0, 0) == 0


def test_refresh_item_progress_ignores_deleted_tasks(app, invoice_payload, admin, employee):
    invoice = InvoiceService.create_invoice(invoice_payload)
    item = invoice.active_items[0]

    for status, deleted in (("Completed", False), ("Assigned", False), ("Assigned", True)):
        db.session.add(TaskAssignment(
            invoice_item_id=item.id, task_type="Printing", task_name="Print cards",
            assigned_to=employee.id, assigned_by=admin.id, status=status, is_deleted=deleted,
        ))
    db.session.commit()

    assert refresh_item_progress(item.id) == ("In Progress", 50)
    refreshed = db.session.get(InvoiceItem, item.id)
    assert refreshed.overall_status == "In Progress"
    assert refreshed.task_progress == 50


def test_refresh_item_progress_missing_item(app):
    assert refresh_item_progress(9999) is None
