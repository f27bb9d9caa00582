import pytest

from ktv_shared.db import get_session
from ktv_shared.models import Shift
from ktv_shared.services import cash_drawer_service, shift_service, transaction_service
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError


def test_shift_reconciles_cash_sales(make_user):
    cashier = make_user("cashier")
    shift = shift_service.start_shift(cashier.id, 500000)
    assert shift["status"] == "active"

    transaction_service.record_transaction(100000, "cash", cashier.id)
    transaction_service.record_transaction(40000, "card", cashier.id)

    live = shift_service.active_shift(cashier.id)
    assert live["total_transactions"] == 2
    assert live["total_sales"] == 140000

    closed = shift_service.end_shift(cashier.id, 590000, notes="short 10k")
    assert closed["status"] == "closed"
    assert closed["total_cash"] == 100000
    assert closed["total_card"] == 40000
    assert closed["cash_difference"] == -10000

    report = shift_service.shift_report(closed["id"])
    assert len(report["transactions"]) == 2
    assert shift_service.active_shift(cashier.id) is None


def test_reading_live_totals_leaves_the_shift_row_alone(make_user):
    cashier = make_user("cashier")
    shift = shift_service.start_shift(cashier.id, 0)
    transaction_service.record_transaction(75000, "cash", cashier.id)

    assert shift_service.active_shift(cashier.id)["total_cash"] == 75000
    with get_session() as session:
        stored = session.get(Shift, shift["id"])
        assert stored.total_transactions == 0
        assert stored.total_cash == 0


def test_one_active_shift_per_cashier(make_user):
    cashier = make_user("cashier")
    shift_service.start_shift(cashier.id, 0)
    with pytest.raises(ConflictError):
        shift_service.start_shift(cashier.id, 0)


def test_ending_without_shift(make_user):
    with pytest.raises(NotFoundError):
        shift_service.end_shift(make_user("cashier").id, 0)


def test_shift_history_is_per_user(make_user):
    first = make_user("cashier")
    second = make_user("cashier")
    shift_service.start_shift(first.id, 0)
    shift_service.start_shift(second.id, 0)
    assert [s["user_id"] for s in shift_service.shift_history(first.id)] == [first.id]
    assert len(shift_service.shift_history()) == 2


def test_drawer_tracks_petty_cash(make_user):
    cashier = make_user("cashier")
    drawer = cash_drawer_service.open_drawer(cashier.id, 200000)
    assert drawer["current_balance"] == 200000

    cash_drawer_service.record_cash_movement(cashier.id, "in", 50000, "Change from bank")
    drawer = cash_drawer_service.record_cash_movement(cashier.id, "out", 30000, "Ice")
    assert drawer["current_balance"] == 220000
    assert drawer["total_cash_in"] == 50000
    assert drawer["total_cash_out"] == 30000
    assert [m["type"] for m in drawer["movements"]] == ["in", "out"]

    with pytest.raises(ValidationError):
        cash_drawer_service.record_cash_movement(cashier.id, "out", 500000, "Too much")

    closed = cash_drawer_service.close_drawer(cashier.id, 215000)
    assert closed["status"] == "closed"
    assert closed["cash_difference"] == -5000
    assert cash_drawer_service.current_drawer(cashier.id) is None


def test_drawer_rules(make_user):
    cashier = make_user("cashier")
    with pytest.raises(NotFoundError):
        cash_drawer_service.record_cash_movement(cashier.id, "in", 1000, "Float")

    cash_drawer_service.open_drawer(cashier.id, 0)
    with pytest.raises(ConflictError):
        cash_drawer_service.open_drawer(cashier.id, 0)
    with pytest.raises(ValidationError):
        cash_drawer_service.record_cash_movement(cashier.id, "in", 1000, "  ")
    with pytest.raises(ValidationError):
        cash_drawer_service.record_cash_movement(cashier.id, "sideways", 1000, "Float")
