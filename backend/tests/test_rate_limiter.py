from datetime import timedelta

import pytest

from kryptohire.auth import utcnow
from kryptohire.errors import RateLimitError
from kryptohire.models import RateLimitEvent
from kryptohire.rate_limiter import check_rate_limit


def test_allows_requests_until_limit(db_session):
    assert check_rate_limit(db_session, "u1", limit=2, window_seconds=60) == 1
    assert check_rate_limit(db_session, "u1", limit=2, window_seconds=60) == 0
    with pytest.raises(RateLimitError) as exc:
        check_rate_limit(db_session, "u1", limit=2, window_seconds=60)
    assert exc.value.status_code == 429
    assert exc.value.details == {"limit": 2, "windowSeconds": 60}


def test_limits_are_per_user(db_session):
    old = (utcnow() - timedelta(minutes=5)).replace(tzinfo=None)
    db_session.add(RateLimitEvent(user_id="u2", action="tailor", created_at=old))
    db_session.commit()
    check_rate_limit(db_session, "u1", limit=1, window_seconds=60)
    assert db_session.query(RateLimitEvent).filter_by(user_id="u2").count() == 1
    assert check_rate_limit(db_session, "u2", limit=1, window_seconds=60) == 0


def test_events_outside_window_are_ignored(db_session):
    old = (utcnow() - timedelta(minutes=5)).replace(tzinfo=None)
    db_session.add_all([RateLimitEvent(user_id="u1", action="tailor", created_at=old) for _ in range(3)])
    db_session.commit()
    assert check_rate_limit(db_session, "u1", limit=1, window_seconds=60) == 0
    # the stale rows were pruned, only the new event is left
    assert db_session.query(RateLimitEvent).filter_by(user_id="u1").count() == 1


def test_limit_reached_through_api(client, auth_headers, monkeypatch):
    # the real service checks the limit before it reaches any model
    monkeypatch.setenv("RATE_LIMIT_REQUESTS", "0")
    r = client.post("/api/v1/jobs/import", json={"text": "Some listing"}, headers=auth_headers)
    assert r.status_code == 429
    body = r.json()["error"]
    assert body["code"] == "RATE_LIMIT_EXCEEDED"
    assert body["details"] == {"limit": 0, "windowSeconds": 60}
