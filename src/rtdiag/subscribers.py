"""Publish/subscribe registry and the subscriber listing per event category."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from typing import Any, Protocol

from rtdiag_common.logging import get_logger
from rtdiag_common.settings import DEFAULT_EVENT_CATEGORIES

__all__ = [
    "DEFAULT_EVENT_CATEGORIES",
    "EventBus",
    "SubscriberRegistry",
    "category_name",
    "default_bus",
    "describe_subscriber",
    "inspect_subscribers",
]

LOGGER = get_logger(__name__)

Subscriber = Callable[[Any], object]


class SubscriberRegistry(Protocol):
    """Capability listing the live subscribers of an event category."""

    def subscribers_for(self, category: Hashable) -> Sequence[str]:
        """Return subscriber display strings in dispatch order."""
        ...


def category_name(category: Hashable) -> str:
    """Return the short display name of an event category."""
    if isinstance(category, type):
        return category.__name__
    return str(category)


def describe_subscriber(subscriber: object) -> str:
    """Return a stable display string for a subscriber.

    Functions, methods and classes render as ``module.qualname``; other
    objects (callable instances) use their own ``str()``.
    """
    qualname = getattr(subscriber, "__qualname__", None)
    module = getattr(subscriber, "__module__", None)
    if qualname and module:
        return f"{module}.{qualname}"
    return str(subscriber)


class EventBus:
    """Minimal in-process publish/subscribe registry.

    Subscribers are kept per category in subscription order. Publishing
    iterates over a copy so handlers may unsubscribe while being called.
    """

    def __init__(self) -> None:
        self._subscribers: dict[Hashable, list[Subscriber]] = {}

    def subscribe(self, category: Hashable, subscriber: Subscriber) -> None:
        self._subscribers.setdefault(category, []).append(subscriber)

    def unsubscribe(self, category: Hashable, subscriber: Subscriber) -> bool:
        handlers = self._subscribers.get(category, [])
        if subscriber not in handlers:
            return False
        handlers.remove(subscriber)
        return True

    def publish(self, category: Hashable, event: object) -> int:
        """Deliver ``event`` to every subscriber of ``category``; return the count."""
        handlers = list(self._subscribers.get(category, ()))
        for handler in handlers:
            handler(event)
        return len(handlers)

    def subscribers_for(self, category: Hashable) -> Sequence[str]:
        handlers = list(self._subscribers.get(category, ()))
        return [describe_subscriber(handler) for handler in handlers]


_DEFAULT_BUS = EventBus()


def default_bus() -> EventBus:
    """Return the process-wide event bus."""
    return _DEFAULT_BUS


def inspect_subscribers(
    registry: SubscriberRegistry,
    categories: Sequence[Hashable] = DEFAULT_EVENT_CATEGORIES,
) -> str:
    """Render the current subscribers of each category, in the order given.

    Every category gets a ``<name>:`` header, even with no subscribers.
    Subscribers are listed one per line, indented by four spaces, in the
    order the registry returns them. Nothing is cached.

    Parameters
    ----------
    registry : SubscriberRegistry
        Registry queried once per category.
    categories : Sequence[Hashable], optional
        Ordered category whitelist.

    Returns
    -------
    str
        The rendered listing.
    """
    lines: list[str] = []
    for category in categories:
        subscribers = list(registry.subscribers_for(category))
        lines.append(f"{category_name(category)}:\n")
        lines.extend(f"    {subscriber}\n" for subscriber in subscribers)
    LOGGER.debug(
        "Listed event subscribers",
        extra={"operation": "inspect_subscribers", "category_count": len(categories)},
    )
    return "".join(lines)
