import asyncio
import logging

from admin_console.navigation.local_cache import LocalCache
from admin_console.navigation.writer import DebouncedWriter
from admin_console.tests.nav_helpers import FakeRemote, ids, make_item

SNAPSHOT_A = (make_item("a", 0),)
SNAPSHOT_AB = (make_item("a", 0), make_item("b", 1))
SNAPSHOT_ABC = (make_item("a", 0), make_item("b", 1), make_item("c", 2))


def _writer(cache: LocalCache, remote: FakeRemote, *, delay: float = 0.01, authenticated=lambda: True):
    return DebouncedWriter(
        cache,
        remote,
        cache_key="userMenu",
        is_authenticated=authenticated,
        delay=delay,
    )


def test_burst_of_changes_sends_last_snapshot_once(cache: LocalCache, fake_remote: FakeRemote) -> None:
    async def scenario() -> None:
        writer = _writer(cache, fake_remote)
        writer(SNAPSHOT_A)
        writer(SNAPSHOT_AB)
        writer(SNAPSHOT_ABC)
        assert writer.pending
        await asyncio.sleep(0.1)
        await writer.flush()

    asyncio.run(scenario())

    assert len(fake_remote.saved) == 1
    assert ids(fake_remote.saved[0]) == ["a", "b", "c"]


def test_cache_is_written_immediately_without_user(cache: LocalCache, fake_remote: FakeRemote) -> None:
    writer = _writer(cache, fake_remote, authenticated=lambda: False)

    writer(SNAPSHOT_AB)

    loaded = cache.load("userMenu")
    assert loaded is not None
    assert ids(loaded) == ["a", "b"]
    assert not writer.pending
    assert fake_remote.saved == []


def test_remote_failure_is_logged_without_rollback_or_retry(
    cache: LocalCache, fake_remote: FakeRemote, caplog
) -> None:
    fake_remote.save_error = RuntimeError("server down")

    async def scenario() -> DebouncedWriter:
        writer = _writer(cache, fake_remote)
        writer(SNAPSHOT_AB)
        await asyncio.sleep(0.1)
        await writer.flush()
        await asyncio.sleep(0.05)
        return writer

    with caplog.at_level(logging.ERROR):
        writer = asyncio.run(scenario())

    assert fake_remote.saved == []
    assert not writer.pending
    assert not writer.saving
    assert ids(cache.load("userMenu")) == ["a", "b"]
    assert "Échec de l'enregistrement distant" in caplog.text


def test_identical_snapshot_is_not_sent_twice(cache: LocalCache, fake_remote: FakeRemote) -> None:
    async def scenario() -> DebouncedWriter:
        writer = _writer(cache, fake_remote)
        writer(SNAPSHOT_AB)
        await writer.flush()
        writer(SNAPSHOT_AB)
        return writer

    writer = asyncio.run(scenario())

    assert not writer.pending
    assert len(fake_remote.saved) == 1


def test_flush_sends_pending_snapshot_immediately(cache: LocalCache, fake_remote: FakeRemote) -> None:
    async def scenario() -> None:
        writer = _writer(cache, fake_remote, delay=60)
        writer(SNAPSHOT_A)
        await writer.flush()
        assert not writer.pending

    asyncio.run(scenario())

    assert [ids(saved) for saved in fake_remote.saved] == [["a"]]


def test_logout_before_timer_fires_cancels_send(cache: LocalCache, fake_remote: FakeRemote) -> None:
    state = {"authenticated": True}

    async def scenario() -> None:
        writer = _writer(cache, fake_remote, authenticated=lambda: state["authenticated"])
        writer(SNAPSHOT_AB)
        state["authenticated"] = False
        await asyncio.sleep(0.1)
        await writer.flush()

    asyncio.run(scenario())

    assert fake_remote.saved == []


def test_close_cancels_pending_send_and_ignores_later_changes(
    cache: LocalCache, fake_remote: FakeRemote
) -> None:
    async def scenario() -> DebouncedWriter:
        writer = _writer(cache, fake_remote)
        writer(SNAPSHOT_A)
        writer.close()
        writer(SNAPSHOT_ABC)
        await asyncio.sleep(0.1)
        return writer

    writer = asyncio.run(scenario())

    assert writer.closed
    assert fake_remote.saved == []
    assert ids(cache.load("userMenu")) == ["a"]


def test_hold_keeps_cache_current_and_release_sends_last_state(
    cache: LocalCache, fake_remote: FakeRemote
) -> None:
    async def scenario() -> None:
        writer = _writer(cache, fake_remote)
        writer.hold()
        writer(SNAPSHOT_A)
        writer(SNAPSHOT_AB)
        assert not writer.pending
        assert ids(cache.load("userMenu")) == ["a", "b"]
        writer.release()
        assert writer.pending
        await writer.flush()

    asyncio.run(scenario())

    assert [ids(saved) for saved in fake_remote.saved] == [["a", "b"]]


def test_mark_synced_suppresses_redundant_send(cache: LocalCache, fake_remote: FakeRemote) -> None:
    async def scenario() -> None:
        writer = _writer(cache, fake_remote)
        writer.mark_synced(SNAPSHOT_AB)
        writer(SNAPSHOT_AB)
        assert not writer.pending
        writer(SNAPSHOT_ABC)
        await writer.flush()

    asyncio.run(scenario())

    assert [ids(saved) for saved in fake_remote.saved] == [["a", "b", "c"]]


def test_callable_cache_key_is_resolved_per_change(cache: LocalCache, fake_remote: FakeRemote) -> None:
    keys = iter(["userMenu:1", "userMenu:2"])
    writer = DebouncedWriter(
        cache,
        fake_remote,
        cache_key=lambda: next(keys),
        is_authenticated=lambda: False,
    )

    writer(SNAPSHOT_A)
    writer(SNAPSHOT_AB)

    assert ids(cache.load("userMenu:1")) == ["a"]
    assert ids(cache.load("userMenu:2")) == ["a", "b"]
