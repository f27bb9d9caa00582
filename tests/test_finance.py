import pytest

from ktv_shared.datetime_utils import venue_today
from ktv_shared.services import analytics_service, expense_service, room_service, transaction_service
from ktv_shared.validation import ValidationError


@pytest.fixture
def sales(room, product, make_user):
    cashier = make_user("cashier")
    room_service.start_session(room["id"])
    transaction_service.checkout_room(room["id"], "card", cashier.id)
    transaction_service.sell_items([{"product_id": product["id"], "quantity": 3}], "cash", cashier.id)
    return cashier


def test_daily_revenue_splits_by_method_and_room(sales):
    report = analytics_service.daily_revenue()
    assert report["transaction_count"] == 2
    assert report["total_revenue"] == 111000 + 49950
    assert report["by_payment_method"]["card"] == 111000
    assert report["by_payment_method"]["cash"] == 49950
    assert [r["room_name"] for r in report["room_ranking"]] == ["Ruby"]


def test_revenue_by_day_is_zero_filled(sales):
    rows = analytics_service.revenue_by_day(3)
    assert [r["date"] for r in rows][-1] == venue_today().isoformat()
    assert [r["transactions"] for r in rows] == [0, 0, 2]


def test_best_sellers(sales, product):
    top = analytics_service.best_sellers()
    assert top == [
        {
            "product_id": product["id"],
            "name_en": "Bottled Tea",
            "name_id": "Teh Botol",
            "quantity": 3,
            "revenue": 45000,
        }
    ]


def test_profit_subtracts_expenses(sales):
    expense_service.create_expense(
        {"amount": 60000, "category": "utilities", "expense_date": venue_today()}, sales.id
    )
    summary = analytics_service.financial_summary()
    assert summary["revenue"] == 160950
    assert summary["expenses"] == 60000
    assert summary["profit"] == 100950


def test_expense_rules(app):
    with pytest.raises(ValidationError):
        expense_service.create_expense({"amount": 0, "category": "x", "expense_date": venue_today()}, None)
    expense = expense_service.create_expense(
        {"amount": 10000, "category": "supplies", "expense_date": "2030-01-31"}, None
    )
    updated = expense_service.update_expense(expense["id"], {"amount": 12000})
    assert updated["amount"] == 12000
    assert [e["id"] for e in expense_service.list_expenses(date_from="2030-01-01")] == [expense["id"]]
    expense_service.delete_expense(expense["id"])
    assert expense_service.list_expenses() == []


def test_manager_overview(sales, room):
    overview = analytics_service.manager_overview()
    assert overview["rooms"]["available"] == 1
    assert overview["todays_revenue"] == 160950
