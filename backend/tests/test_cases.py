import uuid


def test_create_case_defaults(client):
    r = client.post("/api/cases", json={"title": "Fraud Ring A"})
    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "Fraud Ring A"
    assert body["status"] == "active"
    assert body["tags"] == []
    assert body["entityCount"] == 0
    assert body["searchCount"] == 0
    assert body["version"] == 1
    assert body["createdAt"].endswith("Z")
    uuid.UUID(body["id"])


def test_create_case_rejects_blank_title(client):
    r = client.post("/api/cases", json={"title": "   "})
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"][0]["field"] == "title"


def test_create_case_rejects_long_title_and_bad_status(client):
    assert client.post("/api/cases", json={"title": "x" * 101}).status_code == 400
    assert client.post("/api/cases", json={"title": "x" * 100}).status_code == 201
    assert client.post("/api/cases", json={"title": "ok", "status": "closed"}).status_code == 400


def test_missing_title_is_a_400(client):
    r = client.post("/api/cases", json={"description": "no title"})
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_tags_are_trimmed_and_deduplicated(make_case):
    case = make_case(tags=[" fraud ", "fraud", "ring", ""])
    assert case["tags"] == ["fraud", "ring"]


def test_idempotency_key_returns_same_case(client):
    headers = {"Idempotency-Key": "create-1"}
    a = client.post("/api/cases", json={"title": "A"}, headers=headers).json()
    b = client.post("/api/cases", json={"title": "A"}, headers=headers).json()
    assert a["id"] == b["id"]
    assert len(client.get("/api/cases").json()) == 1


def test_get_unknown_case_is_404(client):
    r = client.get(f"/api/cases/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_list_cases_filters(client, make_case):
    make_case("Fraud Ring A", description="card skimming")
    make_case("Phishing wave", status="monitoring")
    make_case("Old one", status="archived")

    assert len(client.get("/api/cases").json()) == 3
    monitoring = client.get("/api/cases", params={"status": "monitoring"}).json()
    assert [c["title"] for c in monitoring] == ["Phishing wave"]
    found = client.get("/api/cases", params={"q": "SKIMMING"}).json()
    assert [c["title"] for c in found] == ["Fraud Ring A"]
    assert client.get("/api/cases", params={"status": "bogus"}).status_code == 400


def test_list_cases_newest_first(client, make_case):
    make_case("first")
    make_case("second")
    titles = [c["title"] for c in client.get("/api/cases").json()]
    assert titles == ["second", "first"]


def test_update_case_bumps_version_and_timestamp(client, make_case):
    case = make_case()
    r = client.patch(f"/api/cases/{case['id']}", json={"status": "monitoring", "notes": "watch"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "monitoring"
    assert body["notes"] == "watch"
    assert body["version"] == 2
    assert body["updatedAt"] >= case["updatedAt"]
    assert body["createdAt"] == case["createdAt"]


def test_update_case_with_stale_version_conflicts(client, make_case):
    case = make_case()
    assert client.patch(f"/api/cases/{case['id']}", json={"title": "B", "version": 1}).status_code == 200
    r = client.patch(f"/api/cases/{case['id']}", json={"title": "C", "version": 1})
    assert r.status_code == 409
    assert client.get(f"/api/cases/{case['id']}").json()["title"] == "B"


def test_update_case_validates(client, make_case):
    case = make_case()
    assert client.patch(f"/api/cases/{case['id']}", json={"title": ""}).status_code == 400
    assert client.patch(f"/api/cases/{case['id']}", json={"status": "done"}).status_code == 400
    assert client.patch(f"/api/cases/{uuid.uuid4()}", json={"title": "x"}).status_code == 404


def test_counters_follow_entities(client, make_case, make_entity):
    case = make_case()
    make_entity(case["id"], label="John Doe")
    make_entity(case["id"], type="phone", label="+62 812 0000")
    body = client.get(f"/api/cases/{case['id']}").json()
    assert body["entityCount"] == 2


def test_delete_case_requires_admin_key(client, make_case):
    case = make_case()
    assert client.delete(f"/api/cases/{case['id']}").status_code == 401
    r = client.delete(f"/api/cases/{case['id']}", headers={"X-Admin-Key": "wrong"})
    assert r.status_code == 401
    assert client.get(f"/api/cases/{case['id']}").status_code == 200


def test_delete_case_cascades(client, admin_headers, make_case, make_entity):
    case = make_case()
    a = make_entity(case["id"], label="A")
    b = make_entity(case["id"], label="B")
    rel = client.post(
        "/api/relationships",
        json={"sourceEntityId": a["id"], "targetEntityId": b["id"], "relationshipType": "owns"},
    ).json()

    assert client.delete(f"/api/cases/{case['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/cases/{case['id']}", headers=admin_headers).status_code == 404
    assert client.get(f"/api/cases/{case['id']}").status_code == 404
    assert client.get(f"/api/entities/{a['id']}").status_code == 404
    assert client.get(f"/api/relationships/{rel['id']}").status_code == 404


def test_timeline_records_changes(client, make_case, make_entity):
    case = make_case()
    client.patch(f"/api/cases/{case['id']}", json={"status": "monitoring"})
    make_entity(case["id"])
    events = client.get(f"/api/cases/{case['id']}/timeline").json()
    assert [e["eventType"] for e in events] == ["case_created", "case_updated", "entity_added"]
