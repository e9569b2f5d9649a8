import time

import pytest


@pytest.fixture()
def game_id(client):
    resp = client.post("/api/tickets/generate", json={"set_name": "default", "count": 12})
    assert resp.status_code == 201

    resp = client.post(
        "/api/games",
        json={"selected_prizes": ["quick_five", "top_line", "full_house", "half_sheet"], "max_tickets": 12},
    )
    assert resp.status_code == 201
    return resp.get_json()["data"]["id"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "success": True,
        "data": {"status": "ok", "database": "ok", "active_callers": 0},
        "error": None,
    }


def test_ticket_endpoints(client, game_id):
    body = client.get("/api/tickets?set=default&max=5").get_json()
    assert [t["ticket_number"] for t in body["data"]] == [1, 2, 3, 4, 5]

    assert client.get("/api/tickets/sets").get_json()["data"] == ["default"]

    ticket = client.get("/api/tickets/default/3").get_json()["data"]
    assert len(ticket["numbers"]) == 15

    missing = client.get("/api/tickets/default/99")
    assert missing.status_code == 404
    assert missing.get_json()["error"]["code"] == "not_found"


def test_generate_half_sheet_strips(client):
    resp = client.post("/api/tickets/generate", json={"set_name": "strips", "count": 6, "unique_group": 3})
    assert resp.status_code == 201
    assert resp.get_json()["data"] == {"set_name": "strips", "count": 6, "unique_group": 3}

    tickets = client.get("/api/tickets?set=strips").get_json()["data"]
    first = [n for t in tickets[:3] for n in t["numbers"]]
    assert len(set(first)) == 45

    resp = client.post("/api/tickets/generate", json={"set_name": "wide", "count": 6, "unique_group": 7})
    assert resp.status_code == 400


def test_create_game_uses_defaults(client, app):
    resp = client.post("/api/games", json={"selected_prizes": ["corners"]})
    data = resp.get_json()["data"]

    assert resp.status_code == 201
    assert data["status"] == "waiting"
    assert data["max_tickets"] == app.config["DEFAULT_MAX_TICKETS"]
    assert data["number_calling_delay"] == app.config["DEFAULT_CALLING_DELAY"]
    assert client.get("/api/games/latest").get_json()["data"]["id"] == data["id"]


def test_unknown_prize_is_rejected(client):
    resp = client.post("/api/games", json={"selected_prizes": ["jackpot"]})
    body = resp.get_json()

    assert resp.status_code == 400
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "validation_error"


def test_booking_flow(client, game_id):
    resp = client.post(
        f"/api/games/{game_id}/bookings",
        json={"player_name": "Asha", "player_phone": "555-0101", "ticket_numbers": [1, 2]},
    )
    assert resp.status_code == 201
    booking_id = resp.get_json()["data"][0]["id"]

    resp = client.post(f"/api/games/{game_id}/bookings", json={"player_name": "Ravi", "ticket_numbers": [3, 2]})
    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "conflict"

    # The rejected request must not leave ticket 3 booked.
    bookings = client.get(f"/api/games/{game_id}/bookings").get_json()["data"]
    assert len(bookings) == 2
    assert {b["player_name"] for b in bookings} == {"Asha"}

    resp = client.patch(f"/api/bookings/{booking_id}", json={"player_name": "Asha K"})
    assert resp.get_json()["data"]["player_name"] == "Asha K"


def test_game_play(client, game_id):
    for n, name in ((1, "Asha"), (2, "Asha"), (3, "Asha"), (4, "Ravi")):
        client.post(f"/api/games/{game_id}/bookings", json={"player_name": name, "ticket_numbers": [n]})

    assert client.post(f"/api/games/{game_id}/call").status_code == 409

    resp = client.post(f"/api/games/{game_id}/start")
    assert resp.get_json()["data"]["status"] == "active"
    assert client.post(f"/api/games/{game_id}/start").get_json()["error"]["code"] == "invalid_state"

    late = client.post(f"/api/games/{game_id}/bookings", json={"player_name": "Meera", "ticket_numbers": [5]})
    assert late.status_code == 409

    called = []
    for _ in range(90):
        data = client.post(f"/api/games/{game_id}/call").get_json()["data"]
        assert data["finished"] is False
        called.append(data["number"])
    assert sorted(called) == list(range(1, 91))

    data = client.post(f"/api/games/{game_id}/call").get_json()["data"]
    assert data["finished"] is True
    assert data["number"] is None

    winners = client.get(f"/api/games/{game_id}/winners").get_json()["data"]
    prizes = {w["prize_type"] for w in winners}
    assert prizes == {"quick_five", "top_line", "full_house", "half_sheet"}
    half = [w for w in winners if w["prize_type"] == "half_sheet"]
    assert len(half) == 1
    assert half[0]["ticket_number"] == 1
    assert half[0]["player_name"] == "Asha"

    assert client.post(f"/api/games/{game_id}/detect").get_json()["data"] == []

    sheets = client.get(f"/api/games/{game_id}/sheets").get_json()["data"]
    assert [s["tickets"] for s in sheets["half_sheets"]] == [[1, 2, 3]]
    assert sheets["half_sheets"][0]["is_winner"] is True
    assert sheets["full_sheets"] == []

    assert client.post(f"/api/games/{game_id}/end").get_json()["data"]["status"] == "ended"
    resp = client.patch(f"/api/games/{game_id}", json={"number_calling_delay": 3})
    assert resp.status_code == 409


def test_background_calling_requires_active_game(client, app, game_id):
    resp = client.post(f"/api/games/{game_id}/calling/start")
    assert resp.status_code == 409

    client.post(f"/api/games/{game_id}/start")
    resp = client.post(f"/api/games/{game_id}/calling/start")
    assert resp.status_code == 200

    registry = app.extensions["number_callers"]
    deadline = time.monotonic() + 60
    while registry.is_running(game_id) and time.monotonic() < deadline:
        time.sleep(0.05)
    assert not registry.is_running(game_id)

    game = client.get(f"/api/games/{game_id}").get_json()["data"]
    assert sorted(game["numbers_called"]) == list(range(1, 91))

    assert client.post(f"/api/games/{game_id}/calling/stop").get_json()["data"]["stopped"] is True
    assert client.post(f"/api/games/{game_id}/calling/stop").get_json()["data"]["stopped"] is False


def test_update_settings_while_waiting(client, game_id):
    resp = client.patch(f"/api/games/{game_id}", json={"selected_prizes": ["corners", "corners"]})
    assert resp.status_code == 400

    resp = client.patch(f"/api/games/{game_id}", json={"selected_prizes": ["corners"], "max_tickets": 9})
    data = resp.get_json()["data"]
    assert data["selected_prizes"] == ["corners"]
    assert data["max_tickets"] == 9
