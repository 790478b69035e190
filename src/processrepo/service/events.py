"""Entity lifecycle events and the injectable dispatcher that delivers them."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger("processrepo.events")


class EventKind(StrEnum):
    ENTITY_CREATED = "ENTITY_CREATED"
    ENTITY_INITIALIZED = "ENTITY_INITIALIZED"


@dataclass(frozen=True)
class EntityEvent:
    """A lifecycle event about a single entity."""

    kind: EventKind
    entity: Any


EventListener = Callable[[EntityEvent], None]


class EventDispatcher(Protocol):
    def is_enabled(self) -> bool: ...

    def dispatch(self, kind: EventKind, payload: Any) -> None: ...


@dataclass
class _Registration:
    listener: EventListener
    kinds: frozenset[EventKind] | None


class ListenerEventDispatcher:
    """Delivers events synchronously to registered listeners.

    Listeners run on the dispatching thread, in registration order; an
    exception raised by a listener propagates to the dispatcher's caller.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._lock = threading.Lock()
        self._registrations: list[_Registration] = []

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def add_listener(
        self, listener: EventListener, kinds: Iterable[EventKind] | None = None
    ) -> None:
        """Register a listener, optionally restricted to some event kinds."""
        registration = _Registration(
            listener=listener, kinds=frozenset(kinds) if kinds is not None else None
        )
        with self._lock:
            self._registrations.append(registration)

    def remove_listener(self, listener: EventListener) -> None:
        with self._lock:
            self._registrations = [r for r in self._registrations if r.listener != listener]

    def dispatch(self, kind: EventKind, payload: Any) -> None:
        event = EntityEvent(kind=kind, entity=payload)
        with self._lock:
            registrations = list(self._registrations)
        logger.debug("Dispatching %s to %d listener(s)", kind, len(registrations))
        for registration in registrations:
            if registration.kinds is None or kind in registration.kinds:
                registration.listener(event)
