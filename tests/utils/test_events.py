import asyncio
import threading

import pytest

from app.utils import events
from app.utils.events import EventBus


@pytest.mark.asyncio
async def test_publish_runs_sync_and_async_handlers():
    bus = EventBus()
    seen = []

    def sync_handler(data):
        seen.append(("sync", data["n"], threading.current_thread() is not threading.main_thread()))

    async def async_handler(data):
        seen.append(("async", data["n"], False))

    bus.subscribe("exam_passed", sync_handler)
    bus.subscribe("exam_passed", async_handler)

    await bus.publish("exam_passed", {"n": 1})

    assert sorted(seen) == [("async", 1, False), ("sync", 1, True)]


@pytest.mark.asyncio
async def test_failing_handler_does_not_reach_publisher(monkeypatch):
    bus = EventBus()
    delivered = []
    logged = []
    monkeypatch.setattr(events.logger, "error", logged.append)

    def broken(data):
        raise RuntimeError("smtp down")

    bus.subscribe("exam_failed", broken)
    bus.subscribe("exam_failed", delivered.append)

    await bus.publish("exam_failed", {"user_id": 1})

    assert delivered == [{"user_id": 1}]
    assert len(logged) == 1
    assert "smtp down" in logged[0]


@pytest.mark.asyncio
async def test_subscribe_is_idempotent_and_unsubscribe_removes():
    bus = EventBus()
    calls = []

    async def handler(data):
        calls.append(data)

    bus.subscribe("certificate_issued", handler)
    bus.subscribe("certificate_issued", handler)
    assert bus.handlers_for("certificate_issued") == [handler]

    await bus.publish("certificate_issued", {})
    bus.unsubscribe("certificate_issued", handler)
    await bus.publish("certificate_issued", {})

    assert calls == [{}]


def test_publish_without_handlers_is_a_no_op():
    asyncio.run(EventBus().publish("nobody_listens", {}))
