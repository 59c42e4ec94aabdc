from treasury.events import (
    Event, EventBus,
    TRANSACTIONS_CHANGED, REPORT_GENERATED,
)
from datetime import datetime


def test_event_creation():
    event = Event(
        name=TRANSACTIONS_CHANGED,
        ts=datetime.now().isoformat(),
        payload={"user_id": "u1", "count": 3}
    )
    assert event.name == TRANSACTIONS_CHANGED
    assert event.payload["count"] == 3


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    results_collected = []

    def test_handler(event: Event, payload: dict) -> dict:
        results_collected.append(payload)
        return {"processed": True}

    bus.subscribe(REPORT_GENERATED, test_handler)
    results = bus.publish(REPORT_GENERATED, {"count": 1})

    assert len(results) == 1
    assert results[0]["processed"] is True
    assert results_collected == [{"count": 1}]


def test_multiple_subscribers_same_event():
    bus = EventBus()
    calls = []

    def handler1(event: Event, payload: dict) -> dict:
        calls.append(1)
        return {"handler": 1}

    def handler2(event: Event, payload: dict) -> dict:
        calls.append(2)
        return {"handler": 2}

    bus.subscribe(TRANSACTIONS_CHANGED, handler1)
    bus.subscribe(TRANSACTIONS_CHANGED, handler2)

    results = bus.publish(TRANSACTIONS_CHANGED, {"count": 2})

    assert [r["handler"] for r in results] == [1, 2]
    assert calls == [1, 2]


def test_publish_without_subscribers():
    bus = EventBus()
    assert bus.publish(REPORT_GENERATED, {}) == []


def test_unsubscribe():
    bus = EventBus()

    def handler(event: Event, payload: dict) -> dict:
        return {"called": True}

    bus.subscribe(REPORT_GENERATED, handler)
    bus.unsubscribe(REPORT_GENERATED, handler)
    bus.unsubscribe(REPORT_GENERATED, handler)
    assert bus.publish(REPORT_GENERATED, {}) == []


def test_handler_may_publish_other_events():
    bus = EventBus()
    seen = []

    def on_report(event: Event, payload: dict) -> dict:
        bus.publish(TRANSACTIONS_CHANGED, {"count": 0})
        return {}

    def on_tx(event: Event, payload: dict) -> dict:
        seen.append(event.name)
        return {}

    bus.subscribe(REPORT_GENERATED, on_report)
    bus.subscribe(TRANSACTIONS_CHANGED, on_tx)
    bus.publish(REPORT_GENERATED, {})
    assert seen == [TRANSACTIONS_CHANGED]


def test_user_scoped_subscription():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event.user_id)
        return {}

    def audit(event: Event, payload: dict) -> dict:
        return {"user": event.user_id}

    bus.subscribe(REPORT_GENERATED, handler, user_id="u1")
    bus.subscribe(REPORT_GENERATED, audit)

    assert bus.publish(REPORT_GENERATED, {"user_id": "u2", "count": 1}) == [{"user": "u2"}]
    assert len(bus.publish(REPORT_GENERATED, {"user_id": "u1", "count": 1})) == 2
    bus.publish(REPORT_GENERATED, {"count": 1})
    assert seen == ["u1"]


def test_event_timestamp_uses_bus_clock():
    bus = EventBus(clock=lambda: datetime(2024, 5, 1, 9, 0))
    stamps = []
    bus.subscribe(TRANSACTIONS_CHANGED, lambda e, p: stamps.append(e.ts) or {})
    bus.publish(TRANSACTIONS_CHANGED, {"count": 1})
    assert stamps == ["2024-05-01T09:00:00"]
