"""Tests for the event bus and subscriber listing."""

from __future__ import annotations

from rtdiag.subscribers import (
    DEFAULT_EVENT_CATEGORIES,
    EventBus,
    default_bus,
    describe_subscriber,
    inspect_subscribers,
)


def on_created(event: object) -> None:
    del event


def on_deleted(event: object) -> None:
    del event


class Recorder:
    """Callable subscriber with a readable str()."""

    def __init__(self) -> None:
        self.events: list[object] = []

    def __call__(self, event: object) -> None:
        self.events.append(event)

    def __str__(self) -> str:
        return "Recorder"


class ObjectListed:
    pass


def test_empty_registry_lists_every_header() -> None:
    """Each whitelisted category gets a header even with no subscribers."""
    text = inspect_subscribers(EventBus())
    assert text == "".join(f"{category}:\n" for category in DEFAULT_EVENT_CATEGORIES)
    assert len(text.splitlines()) == len(DEFAULT_EVENT_CATEGORIES)


def test_subscribers_in_registry_order() -> None:
    bus = EventBus()
    recorder = Recorder()
    bus.subscribe("object.created", on_created)
    bus.subscribe("object.created", recorder)
    bus.subscribe("object.deleted", on_deleted)
    bus.subscribe("not.whitelisted", on_created)
    text = inspect_subscribers(bus, ["object.created", "object.deleted", "display.updated"])
    assert text == (
        "object.created:\n"
        f"    {__name__}.on_created\n"
        "    Recorder\n"
        "object.deleted:\n"
        f"    {__name__}.on_deleted\n"
        "display.updated:\n"
    )


def test_class_categories_use_short_name() -> None:
    bus = EventBus()
    bus.subscribe(ObjectListed, on_created)
    assert inspect_subscribers(bus, [ObjectListed]) == (
        f"ObjectListed:\n    {__name__}.on_created\n"
    )


def test_listing_reflects_live_state() -> None:
    bus = EventBus()
    bus.subscribe("object.created", on_created)
    before = inspect_subscribers(bus, ["object.created"])
    assert bus.unsubscribe("object.created", on_created)
    after = inspect_subscribers(bus, ["object.created"])
    assert before != after
    assert after == "object.created:\n"


class TestEventBus:
    """Tests for EventBus dispatch."""

    def test_publish_delivers_in_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []
        bus.subscribe("x", lambda event: seen.append(f"a:{event}"))
        bus.subscribe("x", lambda event: seen.append(f"b:{event}"))
        assert bus.publish("x", 1) == 2
        assert seen == ["a:1", "b:1"]

    def test_unsubscribe_during_publish(self) -> None:
        bus = EventBus()
        recorder = Recorder()

        def once(event: object) -> None:
            bus.unsubscribe("x", once)

        bus.subscribe("x", once)
        bus.subscribe("x", recorder)
        assert bus.publish("x", "evt") == 2
        assert recorder.events == ["evt"]
        assert bus.publish("x", "evt2") == 1

    def test_unsubscribe_unknown(self) -> None:
        assert EventBus().unsubscribe("x", on_created) is False

    def test_publish_without_subscribers(self) -> None:
        assert EventBus().publish("nothing", None) == 0


def test_describe_subscriber() -> None:
    assert describe_subscriber(on_created) == f"{__name__}.on_created"
    assert describe_subscriber(Recorder()) == "Recorder"


def test_default_bus_is_shared() -> None:
    assert default_bus() is default_bus()
