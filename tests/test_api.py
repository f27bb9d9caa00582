from http import HTTPStatus

from ktv_shared.services import room_service


def body(response):
    payload = response.get_json()
    assert payload["status"] == "success", payload
    return payload["data"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"status": "ok", "service": "ktv-api"}


def test_register_login_me_and_switch_role(client, mailer):
    response = client.post(
        "/api/auth/register",
        json={
            "email": "Dewi@Example.com",
            "password": "Secret123",
            "confirm_password": "Secret123",
            "full_name": "Dewi",
        },
    )
    assert response.status_code == HTTPStatus.CREATED
    user = body(response)
    assert user["email"] == "dewi@example.com"
    assert user["roles"] == []
    assert mailer.outbox[0]["to"] == "dewi@example.com"

    from ktv_shared.services.role_service import assign_role

    assign_role(user["id"], "cashier")
    assign_role(user["id"], "waiter")

    response = client.post(
        "/api/auth/login", json={"email": "dewi@example.com", "password": "Secret123"}
    )
    tokens = body(response)
    assert tokens["token_type"] == "Bearer"
    assert tokens["user"]["active_role"] == "cashier"
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    me = body(client.get("/api/auth/me", headers=headers))
    assert sorted(me["roles"]) == ["cashier", "waiter"]

    switched = body(client.post("/api/auth/switch-role", json={"role": "waiter"}, headers=headers))
    assert switched["user"]["active_role"] == "waiter"

    response = client.post("/api/auth/switch-role", json={"role": "owner"}, headers=headers)
    assert response.status_code == HTTPStatus.FORBIDDEN


def test_wrong_password_is_401(client, make_user):
    user = make_user("cashier")
    response = client.post("/api/auth/login", json={"email": user.email, "password": "Wrong1234"})
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    payload = response.get_json()
    assert payload["status"] == "error"
    assert payload["data"] is None
    assert payload["error"] == "Invalid email or password"


def test_schema_errors_use_the_error_envelope(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "a@example.com", "password": "Secret123", "confirm_password": "x", "full_name": "A"},
    )
    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["status"] == "error"
    assert payload["details"]["details"]


def test_anonymous_and_wrong_role_requests(client, auth_headers, room):
    assert client.get("/api/rooms").status_code == HTTPStatus.UNAUTHORIZED

    _, waiter = auth_headers("waiter")
    assert client.get("/api/rooms", headers=waiter).status_code == HTTPStatus.OK
    response = client.post(
        "/api/rooms",
        json={"room_number": "102", "room_name": "Jade", "capacity": 4, "hourly_rate": 80000},
        headers=waiter,
    )
    assert response.status_code == HTTPStatus.FORBIDDEN
    assert client.get("/api/transactions", headers=waiter).status_code == HTTPStatus.FORBIDDEN


def test_manager_creates_room_and_booking_conflicts_are_409(client, auth_headers):
    _, manager = auth_headers("manager")
    room = body(
        client.post(
            "/api/rooms",
            json={"room_number": "102", "room_name": "Jade", "capacity": 4, "hourly_rate": 80000},
            headers=manager,
        )
    )
    booking = {
        "room_id": room["id"],
        "customer_name": "Sari",
        "booking_date": "2030-05-17",
        "start_time": "19:00",
        "end_time": "21:00",
    }
    response = client.post("/api/bookings", json=booking, headers=manager)
    assert response.status_code == HTTPStatus.CREATED
    assert body(response)["total_amount"] == 160000

    response = client.post("/api/bookings", json={**booking, "start_time": "20:00", "end_time": "22:00"}, headers=manager)
    assert response.status_code == HTTPStatus.CONFLICT
    assert response.get_json()["status"] == "error"

    check = body(
        client.post(
            "/api/rpc/check-room-availability",
            json={**booking, "start_time": "21:00", "end_time": "22:00"},
            headers=manager,
        )
    )
    assert check == {"available": True}


def test_missing_records_are_404(client, auth_headers):
    _, manager = auth_headers("manager")
    response = client.get("/api/rooms/9999", headers=manager)
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_checkout_over_http_and_receipt(client, auth_headers, room, product):
    _, cashier = auth_headers("cashier")
    _, waiter = auth_headers("waiter")

    assert client.post(f"/api/rooms/{room['id']}/start-session", headers=waiter).status_code == HTTPStatus.OK
    response = client.post(
        "/api/fb-orders",
        json={"room_id": room["id"], "items": [{"product_id": product["id"], "quantity": 1}]},
        headers=waiter,
    )
    assert response.status_code == HTTPStatus.CREATED

    quote = body(client.get(f"/api/rooms/{room['id']}/checkout", headers=cashier))
    assert quote["final_amount"] == 127650  # (100000 + 15000) * 1.11

    tx = body(client.post(f"/api/rooms/{room['id']}/checkout", json={"payment_method": "cash"}, headers=cashier))
    assert tx["final_amount"] == 127650
    assert room_service.get_room(room["id"])["status"] == "available"

    response = client.get(f"/api/transactions/{tx['id']}/receipt.pdf", headers=cashier)
    assert response.status_code == HTTPStatus.OK
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")

    response = client.get("/api/transactions/9999/receipt.pdf", headers=cashier)
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_totals_and_split_rpc(client, auth_headers):
    _, cashier = auth_headers("cashier")
    totals = body(client.post("/api/rpc/calculate-transaction-total", json={"subtotal": 200000}, headers=cashier))
    assert totals["tax_amount"] == 22000
    assert totals["final_amount"] == 222000

    split = body(client.post("/api/rpc/split-bill", json={"total": 100001, "parts": 3}, headers=cashier))
    assert split["shares"] == [33335, 33333, 33333]

    response = client.post("/api/rpc/split-bill", json={"total": 1000, "parts": 11}, headers=cashier)
    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_tax_setting_overrides_default_rate(client, auth_headers):
    _, manager = auth_headers("manager")
    response = client.post("/api/tax-settings", json={"name": "PB1", "rate": 10}, headers=manager)
    assert response.status_code == HTTPStatus.CREATED
    assert body(client.get("/api/tax-settings", headers=manager))["active_rate"] == 10


def test_realtime_poll(client, auth_headers, room):
    _, waiter = auth_headers("waiter")
    first = body(client.get("/api/realtime/events?channel=rooms", headers=waiter))
    assert [e["channel"] for e in first["events"]] == ["rooms"]
    assert first["events"][0]["type"] == "INSERT"

    client.post(f"/api/rooms/{room['id']}/start-session", headers=waiter)
    later = body(client.get(f"/api/realtime/events?channel=rooms&after={first['cursor']}", headers=waiter))
    assert [e["payload"]["status"] for e in later["events"]] == ["occupied"]

    empty = body(client.get(f"/api/realtime/events?after={later['cursor']}", headers=waiter))
    assert empty == {"cursor": later["cursor"], "events": []}

    response = client.get("/api/realtime/events?channel=secrets", headers=waiter)
    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_csv_export(client, auth_headers, make_user):
    from ktv_shared.services.transaction_service import record_transaction

    record_transaction(50000, "cash", make_user("cashier").id, "Corkage")
    _, accountant = auth_headers("accountant")
    response = client.get("/api/reports/transactions.csv", headers=accountant)
    assert response.status_code == HTTPStatus.OK
    assert response.mimetype == "text/csv"
    lines = response.data.decode("utf-8").splitlines()
    assert len(lines) == 2
    assert "Corkage" in lines[1]
