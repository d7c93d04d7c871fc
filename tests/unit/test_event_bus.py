# -*- coding: utf-8 -*-
"""
Тесты для core/event_bus.py
"""
from core.event_bus import LOCATION_UPDATED, EventBus


async def test_event_bus():
    bus = EventBus()
    received_events = []

    async def handler(event):
        received_events.append(event)

    bus.subscribe_async("test_event", handler)
    await bus.emit_event("test_event", {"data": "ok", "city_id": "abc"})

    assert len(received_events) == 1
    assert received_events[0]["data"] == "ok"
    assert received_events[0]["city_id"] == "abc"

    bus.clear_all_handlers()
    assert not bus.has_handlers("test_event")
    print("✅ test_event_bus passed")


async def test_event_bus_multiple_handlers():
    bus = EventBus()
    received_events = []

    async def handler1(event):
        received_events.append(("h1", event["data"]))

    def handler2(event):
        received_events.append(("h2", event["data"]))

    bus.subscribe_async("multi_event", handler1)
    bus.subscribe("multi_event", handler2)

    await bus.emit_event("multi_event", {"data": "multi"})

    assert ("h1", "multi") in received_events
    assert ("h2", "multi") in received_events


async def test_failing_handler_does_not_stop_delivery():
    bus = EventBus()
    received_events = []

    async def broken(_event):
        raise RuntimeError("handler bug")

    async def working(event):
        received_events.append(event["city"])

    bus.subscribe_async(LOCATION_UPDATED, broken)
    bus.subscribe_async(LOCATION_UPDATED, working)

    await bus.emit_event(LOCATION_UPDATED, {"city": "Austin"})

    assert received_events == ["Austin"]


async def test_unsubscribe_async():
    bus = EventBus()
    received_events = []

    async def handler(event):
        received_events.append(event)

    bus.subscribe_async(LOCATION_UPDATED, handler)
    bus.unsubscribe_async(LOCATION_UPDATED, handler)
    bus.unsubscribe_async(LOCATION_UPDATED, handler)

    await bus.emit_event(LOCATION_UPDATED, {})

    assert received_events == []
