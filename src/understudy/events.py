"""Per-double notification channel used by ``to_emit`` and by tests directly."""

import logging
from collections.abc import Callable
from typing import Any

Handler = Callable[..., Any]


class EventChannel:
    """Synchronous publish/subscribe channel.

    Handlers run in subscription order on the emitting thread and their
    exceptions propagate to the emitter.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self._handlers: dict[str, list[tuple[Handler, bool]]] = {}

    def on(self, event: str, handler: Handler) -> "EventChannel":
        """Subscribe ``handler`` to every future emission of ``event``."""
        self._handlers.setdefault(event, []).append((handler, False))
        return self

    def once(self, event: str, handler: Handler) -> "EventChannel":
        """Subscribe ``handler`` to the next emission of ``event`` only."""
        self._handlers.setdefault(event, []).append((handler, True))
        return self

    def off(self, event: str, handler: Handler | None = None) -> "EventChannel":
        """Remove ``handler`` from ``event``, or every handler when omitted."""
        if handler is None:
            self._handlers.pop(event, None)
            return self
        remaining = [entry for entry in self._handlers.get(event, []) if entry[0] != handler]
        if remaining:
            self._handlers[event] = remaining
        else:
            self._handlers.pop(event, None)
        return self

    def emit(self, event: str, *payload: Any) -> bool:
        """Deliver ``payload`` to the handlers of ``event``.

        Returns:
            True if at least one handler was subscribed
        """
        entries = list(self._handlers.get(event, []))
        if not entries:
            self.logger.debug(f"Event {event!r} emitted with no listeners")
            return False

        persistent = [entry for entry in entries if not entry[1]]
        if persistent:
            self._handlers[event] = persistent
        else:
            self._handlers.pop(event, None)

        for handler, _ in entries:
            handler(*payload)
        return True

    def listeners(self, event: str) -> list[Handler]:
        return [handler for handler, _ in self._handlers.get(event, [])]
