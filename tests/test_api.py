"""HTTP and WebSocket tests for the Game Arena API."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from arena.config import settings
from arena.main import create_app
from arena.services.admin_service import create_admin_token, hash_password
from arena.stores.memory import InMemoryTicketStore

from helpers import FakeClock, make_settings


@pytest.fixture
def api_clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 17, 21, 30, 0))


@pytest.fixture
def client(api_clock):
    app = create_app(config=make_settings(), store=InMemoryTicketStore(), clock=api_clock)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token(settings.admin_username)}"}


class TestHealthAndWindow:
    """Test service metadata endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["store"] == "memory"

    def test_window_open(self, client):
        data = client.get("/vs/window").json()
        assert data["is_open"] is True
        assert data["closes_at"].startswith("2024-05-18T00:00:00")
        assert data["seconds_remaining"] == 2.5 * 3600
        assert data["time_remaining"] == "2h 30m 0s"

    def test_window_closed(self, client, api_clock):
        api_clock.set(datetime(2024, 5, 17, 20, 0, 0))
        data = client.get("/vs/window").json()
        assert data["is_open"] is False
        assert data["opens_at"].startswith("2024-05-17T21:00:00")
        assert data["time_remaining"] == "1h 0m 0s"


class TestMatchEndpoints:
    """Test the V/S request/status/cancel flow."""

    def test_request_pairs_two_players(self, client):
        first = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
        assert first.status_code == 200
        assert first.json()["status"] == "waiting"

        second = client.post("/vs/request", json={"user_id": "B", "match_size": "1v1"}).json()
        assert second["status"] == "paired"

        a = client.get(f"/vs/tickets/{first.json()['ticket_id']}").json()
        assert a["status"] == "paired"
        assert a["room_id"] == second["ticket"]["room_id"]
        assert a["opponent_ref"] == second["ticket_id"]

    def test_request_outside_window(self, client, api_clock):
        api_clock.set(datetime(2024, 5, 17, 20, 59, 59))
        response = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "outside_window"
        assert response.json()["detail"]["opens_at"].startswith("2024-05-17T21:00:00")

    def test_request_twice(self, client):
        first = client.post("/vs/request", json={"user_id": "A", "match_size": "2v2"}).json()
        response = client.post("/vs/request", json={"user_id": "A", "match_size": "2v2"})
        assert response.status_code == 409
        assert response.json()["detail"]["ticket_id"] == first["ticket_id"]

    def test_request_invalid_size(self, client):
        response = client.post("/vs/request", json={"user_id": "A", "match_size": "3v3"})
        assert response.status_code == 422

    def test_unknown_ticket(self, client):
        assert client.get("/vs/tickets/doesnotexist").status_code == 404

    def test_cancel(self, client):
        ticket = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        response = client.post("/vs/cancel", json={"ticket_id": ticket["ticket_id"], "user_id": "A"})
        assert response.json() == {"ok": True, "canceled": True}

        status = client.get(f"/vs/tickets/{ticket['ticket_id']}").json()
        assert status["status"] == "expired"
        assert status["expired_reason"] == "canceled"

    def test_cancel_foreign_ticket(self, client):
        ticket = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        response = client.post("/vs/cancel", json={"ticket_id": ticket["ticket_id"], "user_id": "B"})
        assert response.status_code == 404

    def test_history(self, client, api_clock):
        ticket = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        client.post("/vs/cancel", json={"ticket_id": ticket["ticket_id"], "user_id": "A"})
        api_clock.advance(30)
        fresh = client.post("/vs/request", json={"user_id": "A", "match_size": "4v4"}).json()

        data = client.get("/vs/history", params={"user_id": "A"}).json()
        assert [t["id"] for t in data["active"]] == [fresh["ticket_id"]]
        assert [t["id"] for t in data["history"]] == [ticket["ticket_id"]]


class TestNotificationEndpoints:
    """Test the inbox endpoints."""

    def test_pairing_fills_inbox(self, client):
        client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
        client.post("/vs/request", json={"user_id": "B", "match_size": "1v1"})

        data = client.get("/notifications", params={"user_id": "A"}).json()
        assert data["unread_count"] == 1
        assert data["notifications"][0]["title"] == "Match Found!"

        notification_id = data["notifications"][0]["id"]
        read = client.post(f"/notifications/{notification_id}/read", json={"user_id": "A"})
        assert read.status_code == 200
        assert read.json()["read"] is True

        unread = client.get("/notifications", params={"user_id": "A", "unread_only": True}).json()
        assert unread["notifications"] == []

    def test_read_all(self, client):
        client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
        client.post("/vs/request", json={"user_id": "B", "match_size": "1v1"})
        response = client.post("/notifications/read-all", json={"user_id": "B"})
        assert response.json() == {"ok": True, "marked": 1}

    def test_read_unknown_notification(self, client):
        response = client.post("/notifications/nope/read", json={"user_id": "A"})
        assert response.status_code == 404


class TestWebSocket:
    """Test the per-user event stream."""

    def test_pairing_is_pushed(self, client):
        with client.websocket_connect("/ws/events?user_id=A") as ws:
            hello = ws.receive_json()
            assert hello == {"type": "hello", "user_id": "A", "unread_count": 0}

            client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
            client.post("/vs/request", json={"user_id": "B", "match_size": "1v1"})

            messages = [ws.receive_json(), ws.receive_json()]
            assert [m["type"] for m in messages] == ["notification", "ticket_resolved"]
            assert messages[1]["outcome"] == "paired"

    def test_ping(self, client):
        with client.websocket_connect("/ws/events?user_id=A") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class TestAdmin:
    """Test admin authentication and bookkeeping endpoints."""

    def test_login(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_password_hash", hash_password("s3cret"))
        response = client.post("/admin/login", json={"username": settings.admin_username, "password": "s3cret"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        verify = client.get("/admin/verify", headers={"Authorization": f"Bearer {token}"})
        assert verify.json()["valid"] is True

    def test_login_wrong_password(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_password_hash", hash_password("s3cret"))
        response = client.post("/admin/login", json={"username": settings.admin_username, "password": "nope"})
        assert response.status_code == 401

    def test_stats_requires_token(self, client):
        assert client.get("/admin/stats").status_code == 401
        assert client.get("/admin/stats", headers={"Authorization": "Bearer garbage"}).status_code == 401

    def test_stats(self, client, admin_headers):
        client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"})
        data = client.get("/admin/stats", headers=admin_headers).json()
        assert data["tickets_by_status"] == {"waiting": 1}
        assert data["armed_timeouts"] == 1
        assert data["waiting"][0]["user_id"] == "A"
        assert data["window_open"] is True

    def test_complete_ticket(self, client, admin_headers):
        a = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        client.post("/vs/request", json={"user_id": "B", "match_size": "1v1"})

        response = client.post(
            f"/admin/tickets/{a['ticket_id']}/complete",
            json={"result": "won", "tokens_earned": 40},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["tokens_earned"] == 40

    def test_complete_waiting_ticket_conflicts(self, client, admin_headers):
        a = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        response = client.post(
            f"/admin/tickets/{a['ticket_id']}/complete", json={"result": "draw"}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_complete_rejects_unknown_result(self, client, admin_headers):
        a = client.post("/vs/request", json={"user_id": "A", "match_size": "1v1"}).json()
        response = client.post(
            f"/admin/tickets/{a['ticket_id']}/complete", json={"result": "forfeit"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_expire_ticket(self, client, admin_headers):
        a = client.post("/vs/request", json={"user_id": "A", "match_size": "2v2"}).json()
        response = client.post(f"/admin/tickets/{a['ticket_id']}/expire", headers=admin_headers)
        assert response.json() == {"ok": True, "expired": True, "status": "expired"}

        inbox = client.get("/notifications", params={"user_id": "A"}).json()
        assert inbox["notifications"][0]["title"] == "Match Timed Out"

    def test_expire_unknown_ticket(self, client, admin_headers):
        response = client.post("/admin/tickets/missing/expire", headers=admin_headers)
        assert response.status_code == 404
