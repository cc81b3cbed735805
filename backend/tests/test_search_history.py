from datetime import timedelta

import pytest

from osint_desk.core.clock import as_utc, utcnow
from osint_desk.core.errors import ValidationError
from osint_desk.services import search_history


def test_record_then_most_recent(session):
    search_history.record_search(session, search_type="email", search_query="a@x.io", result_count=2)
    row = search_history.record_search(session, search_type="phone", search_query="+62812", result_count=0)

    latest = search_history.list_recent(session, 1)
    assert [r.id for r in latest] == [row.id]
    assert latest[0].search_query == "+62812"


def test_timestamps_never_go_backwards(session, monkeypatch):
    first = search_history.record_search(session, search_type="name", search_query="a", result_count=0)

    # wall clock steps back an hour
    earlier = utcnow() - timedelta(hours=1)
    monkeypatch.setattr(search_history, "utcnow", lambda: earlier)
    second = search_history.record_search(session, search_type="name", search_query="b", result_count=0)

    assert as_utc(second.created_at) >= as_utc(first.created_at)
    assert search_history.list_recent(session, 1)[0].id == second.id


def test_record_validates(session):
    with pytest.raises(ValidationError):
        search_history.record_search(session, search_type="dna", search_query="x", result_count=0)
    with pytest.raises(ValidationError):
        search_history.record_search(session, search_type="name", search_query="x", result_count=-1)


def test_filters(session):
    search_history.record_search(session, search_type="email", search_query="alice@example.com", result_count=1)
    search_history.record_search(session, search_type="phone", search_query="+62812", result_count=3)
    search_history.record_search(session, search_type="email", search_query="bob@example.com", result_count=0)

    emails = search_history.list_recent(session, 10, search_type="email")
    assert [r.search_query for r in emails] == ["bob@example.com", "alice@example.com"]
    assert [r.search_query for r in search_history.list_recent(session, 10, text="ALICE")] == [
        "alice@example.com"
    ]
    assert len(search_history.list_recent(session, 10, date_range="today")) == 3
    assert len(search_history.list_recent(session, 2)) == 2


def test_range_start():
    now = utcnow()
    assert search_history.range_start("all", now) is None
    assert search_history.range_start(None, now) is None
    assert search_history.range_start("week", now) == now - timedelta(days=7)
    assert search_history.range_start("today", now).hour == 0
    with pytest.raises(ValidationError):
        search_history.range_start("decade", now)


def test_history_endpoint(client, session):
    for i in range(3):
        search_history.record_search(session, search_type="username", search_query=f"user{i}", result_count=i)

    r = client.get("/api/search-history", params={"limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert [h["searchQuery"] for h in body] == ["user2", "user1"]
    assert body[0]["searchType"] == "username"
    assert body[0]["resultCount"] == 2

    assert client.get("/api/search-history", params={"range": "bogus"}).status_code == 400
    assert client.get("/api/search-history", params={"type": "bogus"}).status_code == 400
