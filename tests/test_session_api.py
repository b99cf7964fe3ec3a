from __future__ import annotations

import json

import fakeredis
from fastapi.testclient import TestClient

from pairs.session_store import SessionRegistry

Client = tuple[TestClient, fakeredis.FakeRedis, SessionRegistry]


def _create(client: TestClient, **extra) -> dict:
    body = {"player_names": ["Ann", "Bo"], "seed": 123, **extra}
    resp = client.post("/session", json=body)
    assert resp.status_code == 201
    return resp.json()


def _pair_ids(snapshot: dict) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for card in snapshot["cards"]:
        out.setdefault(card["value"], []).append(card["card_id"])
    return out


def test_create_and_fetch_session(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis

    created = _create(client)
    snap = created["snapshot"]

    assert snap["phase"] == "idle"
    assert len(snap["cards"]) == 12
    assert [p["name"] for p in snap["players"]] == ["Ann", "Bo"]
    assert snap["active_player_id"] == snap["players"][0]["player_id"]
    assert snap["accepted_commands"] == ["GUESS", "RESTART", "REVEAL"]
    assert snap["game_over"] is False

    resp = client.get(f"/session/{created['session_id']}")
    assert resp.status_code == 200
    assert resp.json()["cards"] == snap["cards"]

    listed = client.get("/session").json()["sessions"]
    assert [s["session_id"] for s in listed] == [created["session_id"]]


def test_same_seed_same_card_values_order(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis

    one = _create(client)["snapshot"]
    two = _create(client)["snapshot"]

    assert [c["value"] for c in one["cards"]] == [c["value"] for c in two["cards"]]


def test_create_session_validation(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis

    assert client.post("/session", json={"player_names": []}).status_code == 422
    assert client.post("/session", json={"player_names": ["  "]}).status_code == 422
    assert client.post("/session", json={"player_names": ["Ann"], "turn_delay_ms": -5}).status_code == 422


def test_get_unknown_session_404(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis
    resp = client.get("/session/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404


def test_guess_commands_resolve_after_manual_clock(client_and_redis: Client) -> None:
    client, _, registry = client_and_redis
    created = _create(client)
    sid = created["session_id"]
    pairs = _pair_ids(created["snapshot"])
    value = sorted(pairs)[0]
    first, second = pairs[value]

    resp = client.post(f"/session/{sid}/commands", json={"type": "GUESS", "card_id": first, "card_value": value})
    assert resp.status_code == 200
    assert resp.json()["phase"] == "resolving"

    resp = client.post(f"/session/{sid}/commands", json={"type": "GUESS", "card_id": second, "card_value": value})
    assert set(resp.json()["face_up_card_ids"]) == {first, second}

    session = next(s for s in registry.all() if str(s.session_id) == sid)
    session.timers.advance(1000)  # type: ignore[attr-defined]

    snap = client.get(f"/session/{sid}").json()
    ann = snap["players"][0]["player_id"]
    assert snap["phase"] == "idle"
    assert snap["points"] == {ann: 1}
    assert snap["matched"] == [value]
    assert snap["guess"] == []


def test_reveal_and_restart_commands(client_and_redis: Client) -> None:
    client, _, registry = client_and_redis
    sid = _create(client)["session_id"]

    snap = client.post(f"/session/{sid}/commands", json={"type": "REVEAL"}).json()
    assert snap["phase"] == "revealing"
    assert snap["reveal_active"] is True
    assert len(snap["face_up_card_ids"]) == 12

    snap = client.post(f"/session/{sid}/commands", json={"type": "RESTART"}).json()
    assert snap["phase"] == "idle"
    assert snap["matched"] == []
    assert snap["reveal_enabled"] is True

    # The reveal timer was cancelled by the restart.
    session = next(s for s in registry.all() if str(s.session_id) == sid)
    session.timers.advance(5000)  # type: ignore[attr-defined]
    assert client.get(f"/session/{sid}").json()["reveal_enabled"] is True


def test_unknown_or_malformed_commands_are_rejected(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis
    created = _create(client)
    sid = created["session_id"]

    for body in ({"type": "FLIP"}, {"type": "GUESS"}, {"card_id": "x"}):
        resp = client.post(f"/session/{sid}/commands", json=body)
        assert resp.status_code == 422, body

    assert client.get(f"/session/{sid}").json() == created["snapshot"]


def test_snapshots_are_published_to_the_outbox_stream(client_and_redis: Client) -> None:
    client, r, _ = client_and_redis
    sid = _create(client)["session_id"]

    client.post(f"/session/{sid}/commands", json={"type": "REVEAL"})
    client.post(f"/session/{sid}/commands", json={"type": "REVEAL"})

    entries = r.xrange(f"pairs:session:{sid}")
    # Creation + reveal; the second reveal was ignored.
    assert len(entries) == 2
    _, fields = entries[-1]
    assert fields["type"] == "snapshot"
    assert fields["phase"] == "revealing"
    assert json.loads(fields["snapshot"])["reveal_active"] is True

    resp = client.get(f"/session/{sid}/events", params={"count": 10})
    assert resp.status_code == 200
    assert len(resp.json()["messages"]) == 2

    assert client.get(f"/session/{sid}/events", params={"count": 0}).status_code == 422


def test_healthcheck_and_info(client_and_redis: Client) -> None:
    client, _, _ = client_and_redis
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json()["name"] == "pairs-engine"


def test_delete_session_cancels_timers_and_forgets_it(client_and_redis: Client) -> None:
    client, _, registry = client_and_redis
    created = _create(client)
    sid = created["session_id"]
    pairs = _pair_ids(created["snapshot"])
    value = sorted(pairs)[0]
    first, second = pairs[value]

    client.post(f"/session/{sid}/commands", json={"type": "GUESS", "card_id": first, "card_value": value})
    client.post(f"/session/{sid}/commands", json={"type": "GUESS", "card_id": second, "card_value": value})
    session = next(s for s in registry.all() if str(s.session_id) == sid)
    assert session.timers.pending == 1  # type: ignore[attr-defined]

    resp = client.delete(f"/session/{sid}")
    assert resp.status_code == 204

    assert session.timers.pending == 0  # type: ignore[attr-defined]
    assert registry.all() == []
    assert client.get(f"/session/{sid}").status_code == 404
    assert client.delete(f"/session/{sid}").status_code == 404
