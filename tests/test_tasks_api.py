import pytest


@pytest.fixture
def item_id(client, admin_headers, invoice_payload):
    invoice = client.post("/invoices/", json=invoice_payload, headers=admin_headers).get_json()["data"]["invoice"]
    return invoice["items"][0]["id"]


def _task(client, headers, item_id, assignee, **extra):
    payload = {
        "invoice_item_id": item_id,
        "task_type": "Printing",
        "task_name": "Print 200 cards",
        "assigned_to": assignee.id,
    }
    payload.update(extra)
    return client.post("/tasks/", headers=headers, json=payload)


def _item(client, headers, item_id):
    return client.get(f"/invoice-items/{item_id}", headers=headers).get_json()["data"]["invoice_item"]


def test_create_task(client, admin_headers, admin, employee, item_id):
    res = _task(client, admin_headers, item_id, employee, priority="High", attachments=["proof.pdf"],
                depends_on=[1, 2])
    assert res.status_code == 201
    task = res.get_json()["data"]["task"]
    assert task["status"] == "Assigned"
    assert task["priority"] == "High"
    assert task["assigned_to"] == {"id": employee.id, "name": "Ravi", "role": "employee"}
    assert task["assigned_by"]["id"] == admin.id
    assert task["attachments"] == ["proof.pdf"]
    assert task["depends_on"] == [1, 2]
    assert task["is_overdue"] is False


def test_create_task_validation(client, admin_headers, employee, item_id):
    res = _task(client, admin_headers, item_id, employee, task_type="Lamination",
                start_date="2024-05-10T00:00:00", due_date="2024-05-01T00:00:00",
                attachments=[f"file{i}.png" for i in range(11)])
    assert res.status_code == 400
    details = res.get_json()["details"]
    assert any(d.startswith("task_type must be one of") for d in details)
    assert "attachments cannot have more than 10 entries" in details


def test_due_date_before_start_rejected(client, admin_headers, employee, item_id):
    res = _task(client, admin_headers, item_id, employee,
                start_date="2024-05-10T00:00:00", due_date="2024-05-01T00:00:00")
    assert res.status_code == 400
    assert res.get_json()["details"] == ["due_date must be on or after start_date"]


def test_inactive_employee_cannot_be_assigned(client, admin_headers, employee, item_id):
    client.patch(f"/users/{employee.id}/status", headers=admin_headers, json={"is_active": False})
    res = _task(client, admin_headers, item_id, employee)
    assert res.status_code == 404
    assert res.get_json()["message"] == "Assigned employee not found or inactive"


def test_unknown_invoice_item(client, admin_headers, employee):
    assert _task(client, admin_headers, 999, employee).status_code == 404


def test_item_status_follows_tasks(client, admin_headers, headers_for, employee, item_id):
    ids = [_task(client, admin_headers, item_id, employee).get_json()["data"]["task"]["id"] for _ in range(3)]
    assert _item(client, admin_headers, item_id)["overall_status"] == "Not Started"

    employee_headers = headers_for(employee)
    client.put(f"/tasks/{ids[0]}/status", headers=employee_headers, json={"status": "Completed"})
    client.put(f"/tasks/{ids[1]}/status", headers=employee_headers, json={"status": "In Progress"})

    item = _item(client, admin_headers, item_id)
    assert item["overall_status"] == "In Progress"
    assert item["task_progress"] == 33

    client.delete(f"/tasks/{ids[2]}", headers=admin_headers)
    item = _item(client, admin_headers, item_id)
    assert item["task_progress"] == 50

    client.put(f"/tasks/{ids[1]}/status", headers=employee_headers, json={"status": "Completed"})
    item = _item(client, admin_headers, item_id)
    assert item["overall_status"] == "Completed"
    assert item["task_progress"] == 100


def test_status_update_stamps_dates(client, admin_headers, headers_for, employee, item_id):
    task_id = _task(client, admin_headers, item_id, employee).get_json()["data"]["task"]["id"]
    res = client.put(f"/tasks/{task_id}/status", headers=headers_for(employee),
                     json={"status": "In Progress", "actual_hours": "1.5", "notes": "Started"})
    task = res.get_json()["data"]["task"]
    assert task["start_date"] is not None
    assert task["completed_date"] is None
    assert task["actual_hours"] == 1.5
    assert task["notes"] == "Started"

    task = client.put(f"/tasks/{task_id}/status", headers=headers_for(employee),
                      json={"status": "Completed"}).get_json()["data"]["task"]
    assert task["completed_date"] is not None
    assert task["duration"] == 0


def test_only_assignee_or_management_updates_status(client, admin_headers, headers_for, employee,
                                                    other_employee, manager, item_id):
    task_id = _task(client, admin_headers, item_id, employee).get_json()["data"]["task"]["id"]

    res = client.put(f"/tasks/{task_id}/status", headers=headers_for(other_employee), json={"status": "Completed"})
    assert res.status_code == 403
    assert res.get_json()["message"] == "Not authorized to update this task"

    res = client.put(f"/tasks/{task_id}/status", headers=headers_for(manager), json={"status": "On Hold"})
    assert res.status_code == 200


def test_update_and_delete_need_management(client, admin_headers, headers_for, employee, other_employee,
                                           item_id):
    task_id = _task(client, admin_headers, item_id, employee).get_json()["data"]["task"]["id"]
    employee_headers = headers_for(employee)

    assert client.put(f"/tasks/{task_id}", headers=employee_headers, json={"priority": "Urgent"}).status_code == 403
    assert client.delete(f"/tasks/{task_id}", headers=employee_headers).status_code == 403

    res = client.put(f"/tasks/{task_id}", headers=admin_headers,
                     json={"priority": "Urgent", "assigned_to": other_employee.id})
    assert res.status_code == 200
    task = res.get_json()["data"]["task"]
    assert task["priority"] == "Urgent"
    assert task["assigned_to"]["id"] == other_employee.id

    assert client.delete(f"/tasks/{task_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/tasks/{task_id}", headers=admin_headers).status_code == 404


def test_my_tasks_sorted_by_priority_then_due_date(client, admin_headers, headers_for, employee,
                                                   other_employee, item_id):
    _task(client, admin_headers, item_id, employee, task_name="low", priority="Low")
    _task(client, admin_headers, item_id, employee, task_name="urgent late", priority="Urgent",
          due_date="2030-02-01T00:00:00")
    _task(client, admin_headers, item_id, employee, task_name="urgent soon", priority="Urgent",
          due_date="2030-01-01T00:00:00")
    _task(client, admin_headers, item_id, other_employee, task_name="not mine", priority="High")

    tasks = client.get("/tasks/my-tasks", headers=headers_for(employee)).get_json()["data"]["tasks"]
    assert [t["task_name"] for t in tasks] == ["urgent soon", "urgent late", "low"]


def test_workload_and_statistics(client, admin_headers, headers_for, employee, other_employee, item_id):
    _task(client, admin_headers, item_id, employee, priority="Urgent", estimated_hours="2.5",
          due_date="2000-01-01T00:00:00")
    _task(client, admin_headers, item_id, employee, priority="High", estimated_hours="1.5")
    done = _task(client, admin_headers, item_id, other_employee).get_json()["data"]["task"]["id"]
    client.put(f"/tasks/{done}/status", headers=headers_for(other_employee), json={"status": "Completed"})

    workload = client.get("/tasks/workload", headers=admin_headers).get_json()["data"]["workload"]
    assert len(workload) == 1
    assert workload[0] == {
        "employee_id": employee.id,
        "employee_name": "Ravi",
        "employee_role": "employee",
        "total_tasks": 2,
        "urgent_tasks": 1,
        "high_priority_tasks": 1,
        "total_estimated_hours": 4.0,
        "overdue_tasks": 1,
    }

    stats = client.get("/tasks/statistics", headers=admin_headers).get_json()["data"]["statistics"]
    by_status = {row["status"]: row for row in stats}
    assert by_status["Assigned"]["count"] == 2
    assert by_status["Assigned"]["total_estimated_hours"] == 4.0
    assert by_status["Completed"]["count"] == 1


def test_list_filters_and_item_tasks(client, admin_headers, employee, item_id):
    _task(client, admin_headers, item_id, employee, task_type="Design", task_name="Logo artwork")
    _task(client, admin_headers, item_id, employee, task_type="QC", task_name="Check colours")

    data = client.get("/tasks/?task_type=Design", headers=admin_headers).get_json()["data"]
    assert [t["task_name"] for t in data["tasks"]] == ["Logo artwork"]

    data = client.get("/tasks/?search=colour", headers=admin_headers).get_json()["data"]
    assert data["pagination"]["total"] == 1

    tasks = client.get(f"/tasks/invoice-item/{item_id}", headers=admin_headers).get_json()["data"]["tasks"]
    assert [t["task_name"] for t in tasks] == ["Logo artwork", "Check colours"]
