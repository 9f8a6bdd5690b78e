"""Communities, stations, bookmarks, Q&A, articles, search and admin over HTTP."""

from __future__ import annotations

import pytest

import routes.stations
from open_charge_map import ChargingStation, ChargingStationLookupError
from models import Coords

COMMUNITY = {"name": "Polestar Drivers", "slug": "polestar-drivers", "type": "BRAND"}
STATION = {"name": "Fastned Utrecht", "coords": {"lat": 52.09, "lng": 5.12}, "address": "A2, Utrecht"}


def test_only_admin_creates_communities(client, register, admin):
    user = register()
    assert client.post("/api/communities", json=COMMUNITY, headers=user["headers"]).status_code == 403

    created = client.post("/api/communities", json=COMMUNITY, headers=admin["headers"])
    assert created.status_code == 201
    duplicate = client.post("/api/communities", json={**COMMUNITY, "name": "Copy"}, headers=admin["headers"])
    assert duplicate.status_code == 400

    assert client.get("/api/communities/slug/polestar-drivers").json()["id"] == created.json()["id"]
    actions = [log["action"] for log in client.get("/api/admin/audit-logs", headers=admin["headers"]).json()]
    assert actions == ["COMMUNITY_CREATED"]


def test_invalid_slug_rejected(client, admin):
    response = client.post("/api/communities", json={**COMMUNITY, "slug": "Not A Slug"}, headers=admin["headers"])
    assert response.status_code == 422


def test_join_and_leave_over_http(client, register, admin):
    community = client.post("/api/communities", json=COMMUNITY, headers=admin["headers"]).json()
    user = register()
    base = f"/api/communities/{community['id']}"

    client.post(f"{base}/join", headers=user["headers"])
    client.post(f"{base}/join", headers=user["headers"])
    assert client.get(base).json()["members_count"] == 1
    assert client.get(f"{base}/is-member", headers=user["headers"]).json() == {"is_member": True}

    assert client.post(f"{base}/leave", headers=user["headers"]).json() == {"success": True}
    assert client.post(f"{base}/leave", headers=user["headers"]).json() == {"success": False}
    assert client.get(base).json()["members_count"] == 0

    assert client.post("/api/communities/missing/join", headers=user["headers"]).status_code == 404


def test_community_moderator_can_edit(client, register, admin):
    mod, outsider = register(), register()
    community = client.post("/api/communities", json={**COMMUNITY, "moderators": [mod["id"]]},
                            headers=admin["headers"]).json()
    url = f"/api/communities/{community['id']}"

    assert client.put(url, json={"description": "Nordic EVs"}, headers=outsider["headers"]).status_code == 403
    updated = client.put(url, json={"description": "Nordic EVs"}, headers=mod["headers"]).json()
    assert updated["description"] == "Nordic EVs"
    assert updated["name"] == COMMUNITY["name"]


def test_station_bookmark_flow(client, register):
    user = register()
    station = client.post("/api/stations", json=STATION, headers=user["headers"])
    assert station.status_code == 201
    station_id = station.json()["id"]
    assert station.json()["added_by"] == user["id"]

    payload = {"target_type": "STATION", "target_id": station_id}
    first = client.post("/api/bookmarks", json=payload, headers=user["headers"]).json()
    second = client.post("/api/bookmarks", json=payload, headers=user["headers"]).json()
    assert first["id"] == second["id"]
    assert client.get(f"/api/stations/{station_id}").json()["bookmarks_count"] == 1

    check = client.get(f"/api/bookmarks/check/{station_id}", headers=user["headers"]).json()
    assert check == {"bookmarked": True, "bookmark_id": first["id"]}

    other = register()
    assert client.delete(f"/api/bookmarks/{first['id']}", headers=other["headers"]).status_code == 404
    assert client.delete(f"/api/bookmarks/{first['id']}", headers=user["headers"]).status_code == 200
    assert client.get(f"/api/stations/{station_id}").json()["bookmarks_count"] == 0


def test_station_validation(client, register):
    user = register()
    bad = {**STATION, "coords": {"lat": 120, "lng": 5}}
    assert client.post("/api/stations", json=bad, headers=user["headers"]).status_code == 422


def test_station_search_proxies_lookup(client, monkeypatch):
    captured = {}

    def fake_search(**kwargs):
        captured.update(kwargs)
        return [ChargingStation(external_id="ocm-1", name="Ionity", coords=Coords(lat=1, lng=2), address="A1")]

    monkeypatch.setattr(routes.stations, "search_charging_stations", fake_search)

    response = client.get("/api/stations/search", params={"lat": 1, "lng": 2, "countryCode": "DE", "maxResults": 3})
    assert response.status_code == 200
    assert response.json()[0]["external_id"] == "ocm-1"
    assert captured["country_code"] == "DE"
    assert captured["max_results"] == 3

    client.get("/api/charging-stations", params={"latitude": 5, "longitude": 6})
    assert captured["latitude"] == 5


def test_station_search_upstream_failure(client, monkeypatch):
    def failing_search(**kwargs):
        raise ChargingStationLookupError("timeout")

    monkeypatch.setattr(routes.stations, "search_charging_stations", failing_search)
    assert client.get("/api/stations/search", params={"lat": 1, "lng": 2}).status_code == 502


def test_question_solve_rules(client, register):
    asker, helper = register("Asker"), register("Helper")
    question = client.post("/api/questions", json={"title": "Cold weather range?", "body": "Details",
                                                  "tags": ["Winter", "winter"]},
                           headers=asker["headers"]).json()
    assert question["tags"] == ["winter"]

    answer = client.post(f"/api/questions/{question['id']}/answers", json={"body": "Precondition"},
                         headers=helper["headers"])
    assert answer.status_code == 201
    answer_id = answer.json()["id"]
    assert [n["type"] for n in client.get("/api/notifications", headers=asker["headers"]).json()] == ["ANSWER"]

    url = f"/api/questions/{question['id']}/solve"
    assert client.post(url, json={"answer_id": answer_id}, headers=helper["headers"]).status_code == 403
    assert client.post(url, json={"answer_id": "elsewhere"}, headers=asker["headers"]).status_code == 400

    solved = client.post(url, json={"answer_id": answer_id}, headers=asker["headers"]).json()
    assert solved["solved_answer_id"] == answer_id
    assert solved["answers_count"] == 1


def test_article_admin_only(client, register, admin):
    user = register()
    article = {"kind": "KNOWLEDGE", "title": "Home charging", "summary": "Basics", "body": "Install a wallbox"}
    assert client.post("/api/articles", json=article, headers=user["headers"]).status_code == 403

    created = client.post("/api/articles", json=article, headers=admin["headers"])
    assert created.status_code == 201
    article_id = created.json()["id"]

    comment = client.post(f"/api/articles/{article_id}/comments", json={"text": "Thanks"}, headers=user["headers"])
    assert comment.status_code == 201
    assert client.get(f"/api/articles/{article_id}").json()["comments_count"] == 1


def test_reports_need_moderator(client, register, admin):
    user = register()
    report = client.post("/api/reports", json={"target_type": "POST", "target_id": "p1", "reason": "spam"},
                         headers=user["headers"])
    assert report.status_code == 201
    assert client.get("/api/reports", headers=user["headers"]).status_code == 403

    handled = client.put(f"/api/reports/{report.json()['id']}", json={"status": "RESOLVED"}, headers=admin["headers"])
    assert handled.json()["handled_by"] == admin["id"]
    assert client.get("/api/reports", params={"status": "OPEN"}, headers=admin["headers"]).json() == []


def test_admin_updates_user(client, register, admin):
    user = register()
    url = f"/api/admin/users/{user['id']}"

    assert client.put(url, json={}, headers=admin["headers"]).status_code == 400
    assert client.put(f"/api/admin/users/{admin['id']}", json={"role": "USER"},
                      headers=admin["headers"]).status_code == 400

    banned = client.put(url, json={"status": "BANNED"}, headers=admin["headers"])
    assert banned.json()["status"] == "BANNED"
    assert client.get("/api/auth/me", headers=user["headers"]).status_code == 403

    logs = client.get("/api/admin/audit-logs", headers=admin["headers"]).json()
    assert logs[0]["action"] == "USER_UPDATED"
    assert logs[0]["metadata"] == {"status": "BANNED"}


def test_recount_endpoint(client, register, admin):
    assert client.post("/api/admin/recount", headers=register()["headers"]).status_code == 403
    assert client.post("/api/admin/recount", headers=admin["headers"]).json() == {"corrected": 0}


@pytest.mark.parametrize("path", ["/api/search", "/api/search/suggestions"])
def test_search_endpoints(client, register, admin, path):
    client.post("/api/communities", json=COMMUNITY, headers=admin["headers"])
    register("Polestar Paula")

    body = client.get(path, params={"q": "polestar"}).json()
    assert [c["slug"] for c in body["communities"]] == ["polestar-drivers"]
    assert [u["display_name"] for u in body["users"]] == ["Polestar Paula"]

    empty = client.get(path, params={"q": ""}).json()
    assert empty == {"communities": [], "posts": [], "stations": [], "users": []}
