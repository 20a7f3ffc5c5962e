"""Per-instance event bus carrying the three iteration lifecycle channels."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from async_simple_iterator.errors.types import InvalidArgument

logger = logging.getLogger(__name__)

BEFORE_EACH = "beforeEach"
AFTER_EACH = "afterEach"
ERROR = "error"

# Fixed channel order; also the order in which settings hooks get registered.
HOOK_NAMES: Tuple[str, ...] = (BEFORE_EACH, AFTER_EACH, ERROR)

Listener = Callable[..., Any]


class _Once:
    """Listener wrapper that unsubscribes itself before its first call."""

    def __init__(self, bus: "HookBus", name: str, listener: Listener) -> None:
        self.bus = bus
        self.name = name
        self.listener = listener

    def __call__(self, *args: Any) -> Any:
        self.bus.off(self.name, self)
        return self.listener(*args)


class HookBus:
    """
    Synchronous fan-out of lifecycle events to registered listeners.

    Rules
    -----
    - Only the ``beforeEach``, ``afterEach`` and ``error`` channels exist.
    - ``on`` is additive: registering the same callable twice makes it fire twice.
    - ``emit`` calls every listener in registration order before returning.
    - Listener exceptions propagate to the caller of ``emit``.

    Usage example
    -------------
        bus = HookBus()
        bus.on("beforeEach", lambda value, key, next: print(key))
        bus.emit("beforeEach", "./dev.json", "dev", done)
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in HOOK_NAMES}

    def _channel(self, name: str) -> List[Listener]:
        try:
            return self._listeners[name]
        except KeyError:
            raise InvalidArgument(
                f"Unknown hook channel {name!r}; expected one of {', '.join(HOOK_NAMES)}"
            ) from None

    def _add(self, name: str, listener: Listener, registered: Listener) -> "HookBus":
        channel = self._channel(name)
        if not callable(listener):
            raise InvalidArgument(f"Listener for {name!r} must be callable, got {type(listener).__name__}")
        channel.append(registered)
        logger.debug("Registered %s listener %r (total=%d)", name, listener, len(channel))
        return self

    def on(self, name: str, listener: Listener) -> "HookBus":
        """Register `listener` for all future emits on channel `name`."""
        return self._add(name, listener, listener)

    def once(self, name: str, listener: Listener) -> "HookBus":
        """Register `listener` for the next emit on channel `name` only."""
        return self._add(name, listener, _Once(self, name, listener))

    def off(self, name: Optional[str] = None, listener: Optional[Listener] = None) -> "HookBus":
        """
        Remove listeners.

        - name and listener: remove the first registration of `listener` (also as a ``once`` wrapper).
        - name only: clear that channel.
        - neither: clear every channel.
        """
        if name is None:
            for channel in self._listeners.values():
                channel.clear()
            return self

        channel = self._channel(name)
        if listener is None:
            channel.clear()
            return self

        for idx, registered in enumerate(channel):
            if registered == listener or (isinstance(registered, _Once) and registered.listener == listener):
                del channel[idx]
                break
        return self

    def emit(self, name: str, *args: Any) -> bool:
        """Fire channel `name` synchronously. Returns True if any listener ran."""
        # Snapshot so once-listeners can unsubscribe mid-emit.
        snapshot = tuple(self._channel(name))
        for listener in snapshot:
            listener(*args)
        return bool(snapshot)

    def listeners(self, name: str) -> Tuple[Listener, ...]:
        """Return the listeners currently registered on `name`."""
        return tuple(self._channel(name))

    def listener_count(self, name: str) -> int:
        return len(self._channel(name))
