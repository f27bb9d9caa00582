import json
from http import HTTPStatus

from ktv_api.cli import main
from ktv_shared.services import booking_service

ENDPOINTS = (
    "/functions/generate-recurring-bookings",
    "/functions/send-booking-reminders",
    "/functions/update-room-status",
    "/functions/send-verification-email",
)


def test_preflight_answers_ok(client):
    for path in ENDPOINTS:
        response = client.options(path, headers={"Origin": "https://app.example.com"})
        assert response.status_code == HTTPStatus.OK
        assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_service_key_is_enforced_when_configured(app, client):
    app.config["SERVICE_KEY"] = "cron-secret"

    response = client.post("/functions/update-room-status")
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert response.get_json() == {"error": "Unauthorized"}

    response = client.post(
        "/functions/update-room-status", headers={"Authorization": "Bearer wrong"}
    )
    assert response.status_code == HTTPStatus.UNAUTHORIZED

    response = client.post(
        "/functions/update-room-status", headers={"Authorization": "Bearer cron-secret"}
    )
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"message": "No expired bookings found", "checked": 0}

    response = client.post("/functions/update-room-status", headers={"apikey": "cron-secret"})
    assert response.status_code == HTTPStatus.OK


def test_recurring_generation_endpoint(client, room):
    from ktv_shared.datetime_utils import sunday_based_weekday, venue_today
    from ktv_shared.services.recurring_booking_service import create_recurring_booking

    today = venue_today()
    create_recurring_booking(
        {
            "room_id": room["id"],
            "customer_name": "Arisan",
            "frequency": "weekly",
            "day_of_week": sunday_based_weekday(today),
            "start_date": today,
            "start_time": "13:00",
            "end_time": "15:00",
        }
    )
    result = client.post("/functions/generate-recurring-bookings").get_json()
    assert result["success"] is True
    assert result["created"] == 1
    assert booking_service.list_bookings(booking_date=today)[0]["customer_name"] == "Arisan"


def test_verification_email(client, mailer):
    response = client.post(
        "/functions/send-verification-email",
        json={"email": "rina@example.com", "full_name": "Rina"},
    )
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"success": True, "email": "rina@example.com"}
    assert mailer.outbox[0]["to"] == "rina@example.com"
    assert "Test KTV" in mailer.outbox[0]["subject"]


def test_failures_come_back_as_500(client, mailer):
    mailer.fail = True
    response = client.post("/functions/send-verification-email", json={"email": "rina@example.com"})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.get_json() == {"error": "SMTP unavailable"}


def _last_json_line(capsys):
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_cli_runs_jobs_and_prints_json(app, capsys):
    assert main(["update-room-status"]) == 0
    assert _last_json_line(capsys) == {
        "message": "No expired bookings found",
        "checked": 0,
    }


def test_cli_reports_failures(app, mailer, capsys):
    mailer.fail = True
    assert main(["send-verification-email", "--email", "rina@example.com"]) == 1
    assert _last_json_line(capsys) == {"error": "SMTP unavailable"}
