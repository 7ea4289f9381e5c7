"""Tests for the blocked-attempt store."""

from datetime import datetime, timedelta, timezone

import pytest

from secureauth.storage.attempts import AttemptStore, BlockedAttempt, Statistic


def _attempt(host: str, when: datetime | None = None) -> BlockedAttempt:
    stamp = (when or datetime.now(timezone.utc)).isoformat()
    return BlockedAttempt(
        timestamp=stamp,
        url=f"http://{host}/login",
        hostname=host,
        risk_score=12.5,
        risk_level="CRITICAL",
    )


@pytest.fixture
async def store(tmp_path, event_loop):
    store = AttemptStore(tmp_path / "data" / "secureauth.db", history_limit=3)
    await store.connect()
    yield store
    await store.close()


def test_wire_format():
    attempt = _attempt("evil.tk")
    assert set(attempt.to_dict()) == {"timestamp", "url", "hostname", "riskScore", "riskLevel"}
    assert attempt.to_dict()["riskScore"] == 12.5


@pytest.mark.asyncio
async def test_log_and_list_newest_first(store, event_loop):
    await store.log_blocked_attempt(_attempt("one.tk"))
    await store.log_blocked_attempt(_attempt("two.tk"))
    attempts = await store.get_blocked_attempts()
    assert [a.hostname for a in attempts] == ["two.tk", "one.tk"]


@pytest.mark.asyncio
async def test_history_is_capped(store, event_loop):
    for i in range(5):
        await store.log_blocked_attempt(_attempt(f"site{i}.tk"))
    attempts = await store.get_blocked_attempts(limit=10)
    assert [a.hostname for a in attempts] == ["site4.tk", "site3.tk", "site2.tk"]
    stats = await store.get_statistics()
    assert stats["blocked_attempts"] == 5


@pytest.mark.asyncio
async def test_prune_old_attempts(store, event_loop):
    now = datetime(2026, 3, 10, tzinfo=timezone.utc)
    await store.log_blocked_attempt(_attempt("old.tk", now - timedelta(days=8)))
    await store.log_blocked_attempt(_attempt("new.tk", now - timedelta(days=1)))
    removed = await store.prune(days=7, now=now)
    assert removed == 1
    assert [a.hostname for a in await store.get_blocked_attempts()] == ["new.tk"]


@pytest.mark.asyncio
async def test_statistics(store, event_loop):
    assert await store.get_statistics() == {
        "total_scans": 0,
        "blocked_attempts": 0,
        "warnings_shown": 0,
        "allowed_logins": 0,
    }
    await store.increment(Statistic.TOTAL_SCANS)
    await store.increment(Statistic.TOTAL_SCANS)
    await store.increment(Statistic.WARNINGS_SHOWN)
    # Only log_blocked_attempt counts blocks
    await store.increment(Statistic.BLOCKED_ATTEMPTS)
    stats = await store.get_statistics()
    assert stats["total_scans"] == 2
    assert stats["warnings_shown"] == 1
    assert stats["blocked_attempts"] == 0


@pytest.mark.asyncio
async def test_clear_history(store, event_loop):
    await store.log_blocked_attempt(_attempt("evil.tk"))
    await store.increment(Statistic.ALLOWED_LOGINS)
    await store.clear_history()
    assert await store.get_blocked_attempts() == []
    assert set((await store.get_statistics()).values()) == {0}


@pytest.mark.asyncio
async def test_context_manager(tmp_path, event_loop):
    async with AttemptStore(tmp_path / "s.db") as store:
        await store.log_blocked_attempt(_attempt("evil.tk"))
    async with AttemptStore(tmp_path / "s.db") as store:
        assert len(await store.get_blocked_attempts()) == 1
