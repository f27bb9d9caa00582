import pytest

from ktv_shared.services import chat_service, employee_service, role_service, task_service
from ktv_shared.validation import ConflictError, PermissionDeniedError, ValidationError


def test_employee_ids_continue_per_division(app):
    first = employee_service.create_employee({"name": "Budi", "division": "kasir"})
    second = employee_service.create_employee({"name": "Ani", "division": "KASIR", "phone": "081234567890"})
    dj = employee_service.create_employee({"name": "Rio", "division": "DJ"})
    assert first["employee_id"] == "KAS-001"
    assert second["employee_id"] == "KAS-002"
    assert dj["employee_id"] == "DJ-001"

    employee_service.delete_employee(first["id"])
    third = employee_service.create_employee({"name": "Citra", "division": "KASIR"})
    assert third["employee_id"] == "KAS-003"


def test_employee_search_and_validation(app):
    employee_service.create_employee({"name": "Budi Santoso", "division": "OB"})
    employee_service.create_employee({"name": "Ani", "division": "DJ"})
    assert [e["name"] for e in employee_service.list_employees(search="santoso")] == ["Budi Santoso"]
    assert [e["name"] for e in employee_service.list_employees(division="dj")] == ["Ani"]

    with pytest.raises(ValidationError):
        employee_service.create_employee({"name": "Eko", "division": "CHEF"})
    with pytest.raises(ValidationError):
        employee_service.create_employee({"name": "Eko", "division": "OB", "user_id": 9999})
    with pytest.raises(ConflictError):
        employee_service.create_employee({"name": "Eko", "division": "OB", "employee_id": "OB-001"})


def test_role_assignment(make_user):
    user = make_user()
    assigned = role_service.assign_role(user.id, "cashier")
    with pytest.raises(ConflictError):
        role_service.assign_role(user.id, "cashier")
    with pytest.raises(ValidationError):
        role_service.assign_role(user.id, "janitor")

    listed = {u["user_id"]: u for u in role_service.list_users_with_roles()}
    assert [r["role"] for r in listed[user.id]["roles"]] == ["cashier"]

    role_service.remove_role(assigned["id"])
    listed = {u["user_id"]: u for u in role_service.list_users_with_roles()}
    assert listed[user.id]["roles"] == []


def test_chat_history_mentions_and_unread(make_user):
    manager = make_user("manager")
    waiter = make_user("waiter")

    joined = chat_service.join_general(waiter.id)
    assert joined["channel_name"] == "General"
    assert joined["can_mention_all"] is False
    assert chat_service.join_general(manager.id)["channel_id"] == joined["channel_id"]

    chat_service.send_message(manager.id, "@all briefing at 18:00")
    chat_service.send_message(manager.id, "@budi please restock room 3")
    assert chat_service.unread_count(waiter.id) == 2
    assert chat_service.unread_count(manager.id) == 0

    history = chat_service.list_messages()
    assert [m["is_all_mention"] for m in history] == [True, False]
    assert history[1]["mentions"] == ["budi"]

    chat_service.mark_read(waiter.id)
    assert chat_service.unread_count(waiter.id) == 0


def test_message_right_after_reading_is_unread(make_user):
    manager = make_user("manager")
    waiter = make_user("waiter")
    chat_service.send_message(manager.id, "doors open")
    chat_service.mark_read(waiter.id)

    # same clock second as the read marker
    chat_service.send_message(manager.id, "room 5 needs towels")
    assert chat_service.unread_count(waiter.id) == 1

    chat_service.send_message(waiter.id, "on it")
    chat_service.send_message(manager.id, "thanks")
    assert chat_service.unread_count(waiter.id) == 1


def test_only_management_mentions_all(make_user):
    waiter = make_user("waiter")
    with pytest.raises(PermissionDeniedError):
        chat_service.send_message(waiter.id, "@all free drinks")
    with pytest.raises(ValidationError):
        chat_service.send_message(waiter.id, "   ")


def test_cleaning_tasks(room, make_user):
    manager = make_user("manager")
    cleaner = make_user("waiter")
    task = task_service.create_task(
        {"room_id": room["id"], "assigned_to": cleaner.id, "notes": "Clean Ruby"}, manager.id
    )
    assert task["status"] == "pending"
    assert [t["id"] for t in task_service.list_tasks(assigned_to=cleaner.id)] == [task["id"]]

    done = task_service.update_task_status(task["id"], "completed")
    assert done["status"] == "completed"
    assert done["completed_at"] is not None
    assert [t["id"] for t in task_service.task_history(cleaner.id)] == [task["id"]]
