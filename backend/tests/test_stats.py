from osint_desk.services import search_history


def test_empty_stats(client):
    body = client.get("/api/stats").json()
    assert body["totalCases"] == 0
    assert body["totalEntities"] == 0
    assert body["searchesToday"] == 0
    assert body["latestCases"] == []


def test_stats_counts(client, session, make_case, make_entity):
    active = make_case("Fraud Ring A")
    archived = make_case("Closed out", status="archived")
    make_entity(active["id"], label="John Doe", riskLevel="high")
    make_entity(active["id"], type="phone", label="+62 812", riskLevel="low")
    make_entity(archived["id"], label="Old Suspect", riskLevel="critical")
    search_history.record_search(session, search_type="email", search_query="a@x.io", result_count=1)

    body = client.get("/api/stats").json()
    assert body["totalCases"] == 2
    assert body["activeCases"] == 1
    assert body["totalEntities"] == 3
    assert body["totalSearches"] == 1
    assert body["searchesToday"] == 1
    # high/critical entities in non-archived cases only
    assert body["activeAlerts"] == 1
    assert body["byStatus"] == {"active": 1, "archived": 1}
    assert body["byRiskLevel"] == {"high": 1, "low": 1, "critical": 1}
    assert [c["title"] for c in body["latestCases"]] == ["Closed out", "Fraud Ring A"]
    assert body["latestCases"][1]["entityCount"] == 2
