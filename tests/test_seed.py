from ktv_shared.db import get_session
from ktv_shared.services import employee_service, inventory_service, room_service, tax_service
from ktv_shared.services.seed import load_seed_data


def test_seed_fills_empty_tables_once(app):
    with get_session() as session:
        load_seed_data(session)

    rooms = room_service.list_rooms()
    products = inventory_service.list_products()
    employees = employee_service.list_employees()
    assert rooms
    assert products
    assert employees
    assert tax_service.get_active_tax_rate() == 11

    with get_session() as session:
        load_seed_data(session)
    assert len(room_service.list_rooms()) == len(rooms)
    assert len(inventory_service.list_products()) == len(products)


def test_seeded_employee_ids_line_up_with_generated_ones(app):
    with get_session() as session:
        load_seed_data(session)
    kasir = employee_service.list_employees(division="KASIR")
    created = employee_service.create_employee({"name": "Baru", "division": "KASIR"})
    assert created["employee_id"] == f"KAS-{len(kasir) + 1:03d}"
