"""Tests for the Flask API routes."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_event
from src.api.flask_server import SmartCalendarAPI
from src.auth.identity import InMemoryIdentityProvider
from src.scheduler.errors import ServiceCallError
from src.scheduler.suggestion_models import GENERIC_FAILURE_MESSAGE

UTC = timezone.utc


@pytest.fixture
def api(store, mock_llm_client):
    provider = InMemoryIdentityProvider()
    provider.create_user("ada@example.com", "secret123")
    api = SmartCalendarAPI(store=store, llm_client=mock_llm_client, identity_provider=provider)
    api.app.config["TESTING"] = True
    yield api
    api.shutdown()


@pytest.fixture
def client(api):
    return api.app.test_client()


def open_sheet(client, **payload):
    response = client.post("/sheets", json=payload)
    assert response.status_code == 201
    return response.get_json()["sheet_id"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_status_counts_events(client):
    assert client.get("/status").get_json()["events"] == 2


def test_unknown_route_is_json_404(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Endpoint not found"}


# --- Auth -------------------------------------------------------------------

def test_login_success(client):
    response = client.post("/auth/login", json={"email": "ada@example.com", "password": "secret123"})

    assert response.status_code == 200
    assert response.get_json()["redirect"] == "/dashboard"


def test_login_bad_input(client):
    response = client.post("/auth/login", json={"email": "ada", "password": "x"})

    assert response.status_code == 400
    assert set(response.get_json()["errors"]) == {"email", "password"}


def test_login_wrong_password(client):
    response = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.get_json()["error_code"] == "auth/invalid-credential"


def test_signup_then_duplicate(client):
    payload = {"email": "new@example.com", "password": "longenough"}

    assert client.post("/auth/signup", json=payload).status_code == 201
    assert client.post("/auth/signup", json=payload).status_code == 409


# --- Events -----------------------------------------------------------------

def test_list_events_in_start_order(client):
    events = client.get("/events").get_json()["events"]

    assert [e["id"] for e in events] == ["a", "b"]


def test_events_for_a_day(client):
    assert len(client.get("/events?day=2025-06-01").get_json()["events"]) == 2
    assert client.get("/events?day=2025-06-02").get_json()["events"] == []
    assert client.get("/events?day=June").status_code == 400


def test_past_future_and_reminders(api, client):
    now = datetime.now(UTC)
    api.store.put(make_event("soon", now + timedelta(hours=2), now + timedelta(hours=3),
                             reminder="30"))

    assert [e["id"] for e in client.get("/events/past").get_json()["events"]] == ["b", "a"]
    assert [e["id"] for e in client.get("/events/future").get_json()["events"]] == ["soon"]
    reminders = client.get("/reminders").get_json()["reminders"]
    assert [r["id"] for r in reminders] == ["soon-reminder"]


# --- One-shot suggestion ----------------------------------------------------

def test_suggestion_success(client):
    response = client.post("/suggestions", json={"duration": "30", "preferences": "afternoon"})

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "data": {"suggestedTime": "2025-06-01T14:30:00Z",
                 "reasoning": "Free afternoon after the design review"},
    }


def test_suggestion_invalid_duration(client, mock_llm_client):
    body = client.post("/suggestions", json={"duration": "0"}).get_json()

    assert body["success"] is False
    assert body["error"] == "Duration must be a positive number."
    assert body["title"] == "AI Suggestion Failed"
    mock_llm_client.suggest_optimal_time.assert_not_called()


def test_suggestion_service_failure(client, mock_llm_client):
    mock_llm_client.suggest_optimal_time.side_effect = ServiceCallError("down")

    body = client.post("/suggestions", json={"duration": 30}).get_json()

    assert body == {"success": False, "error": GENERIC_FAILURE_MESSAGE,
                    "title": "AI Suggestion Failed"}


# --- Sheets -----------------------------------------------------------------

def test_create_flow_with_suggestion(client, store):
    sheet_id = open_sheet(client)
    client.patch(f"/sheets/{sheet_id}", json={"title": "Planning", "duration": 45})

    suggested = client.post(f"/sheets/{sheet_id}/suggest?wait=true")
    assert suggested.status_code == 200
    assert suggested.get_json()["form"]["suggestion"]["suggestedTime"] == "2025-06-01T14:30:00Z"

    applied = client.post(f"/sheets/{sheet_id}/apply").get_json()
    assert applied["form"]["date"] == "2025-06-01"
    assert applied["form"]["time"] == "14:30"
    assert applied["form"]["duration"] == 45

    submitted = client.post(f"/sheets/{sheet_id}/submit")
    body = submitted.get_json()
    assert submitted.status_code == 201
    assert body["title"] == "Event Created"
    assert body["message"] == '"Planning" has been added.'
    assert body["event"]["start"] == "2025-06-01T14:30:00+00:00"
    assert body["event"]["end"] == "2025-06-01T15:15:00+00:00"
    assert len(store) == 3
    assert client.get(f"/sheets/{sheet_id}").status_code == 404


def test_failed_suggestion_keeps_form(client, mock_llm_client):
    mock_llm_client.suggest_optimal_time.return_value = {"suggestedTime": "2025-06-01T14:30:00Z"}
    sheet_id = open_sheet(client)
    before = client.get(f"/sheets/{sheet_id}").get_json()["form"]

    body = client.post(f"/sheets/{sheet_id}/suggest?wait=true").get_json()

    assert body["form"] == before
    assert body["suggestion_state"] == "failed"
    assert body["suggestion_error"] == GENERIC_FAILURE_MESSAGE
    assert body["suggestion_error_title"] == "AI Suggestion Failed"
    assert client.post(f"/sheets/{sheet_id}/apply").status_code == 409


def test_edit_flow_keeps_id(client, store):
    sheet_id = open_sheet(client, event_id="a")
    client.patch(f"/sheets/{sheet_id}", json={"title": "Standup (renamed)"})

    response = client.post(f"/sheets/{sheet_id}/submit")

    assert response.status_code == 200
    assert response.get_json()["title"] == "Event Updated"
    assert len(store) == 2
    assert store.get("a").title == "Standup (renamed)"


def test_edit_unknown_event(client):
    assert client.post("/sheets", json={"event_id": "missing"}).status_code == 404


def test_submit_with_errors_keeps_sheet(client, store):
    sheet_id = open_sheet(client)

    response = client.post(f"/sheets/{sheet_id}/submit", json={"duration": -1})

    assert response.status_code == 400
    assert set(response.get_json()["errors"]) == {"title", "duration"}
    assert client.get(f"/sheets/{sheet_id}").status_code == 200
    assert len(store) == 2


def test_cancel_sheet(client):
    sheet_id = open_sheet(client)

    response = client.delete(f"/sheets/{sheet_id}")

    assert response.get_json()["state"] == "closed"
    assert client.get(f"/sheets/{sheet_id}").status_code == 404


def test_submit_duration_past_calendar_range_is_a_field_error(client, store):
    sheet_id = open_sheet(client)

    response = client.post(f"/sheets/{sheet_id}/submit", json={"title": "x", "duration": 10 ** 12})

    assert response.status_code == 400
    assert response.get_json()["errors"] == {"duration": "Duration must be a positive number."}
    assert len(store) == 2


@pytest.mark.parametrize("method, path", [
    ("patch", "/sheets/{id}"),
    ("post", "/sheets/{id}/submit"),
])
def test_non_object_body_is_rejected(client, method, path):
    sheet_id = open_sheet(client)

    response = getattr(client, method)(path.format(id=sheet_id), json=["title"])

    assert response.status_code == 400
    assert response.get_json() == {"error": "Request body must be a JSON object"}


@pytest.mark.parametrize("path", ["/sheets", "/suggestions", "/auth/login", "/auth/signup"])
def test_non_object_body_is_rejected_on_create_routes(client, path):
    assert client.post(path, json=[1, 2]).status_code == 400


def test_idle_sheets_expire(api, client):
    api.config.SHEET_IDLE_TIMEOUT = 60
    stale_id = open_sheet(client)
    stale_sheet = api.sheets[stale_id]
    api._sheet_last_used[stale_id] -= 120

    fresh_id = open_sheet(client)

    assert client.get(f"/sheets/{stale_id}").status_code == 404
    assert client.get(f"/sheets/{fresh_id}").status_code == 200
    assert stale_sheet.state == "closed"


def test_open_sheets_are_capped(api, client):
    api.config.MAX_OPEN_SHEETS = 2
    first = open_sheet(client)
    second = open_sheet(client)
    api._sheet_last_used[first] -= 10
    api._sheet_last_used[second] -= 5
    client.get(f"/sheets/{first}")

    third = open_sheet(client)

    assert set(api.sheets) == {first, third}
    assert client.get(f"/sheets/{second}").status_code == 404
    assert client.get("/status").get_json()["open_sheets"] == 2
