"""Event bus decoupling the engine from its consumers.

Logging sinks, WebSocket hubs and persistence layers subscribe here instead
of the engine calling them directly.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from .enums import EngineEvent


logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent, Dict[str, Any]], Any]


class EventBus:
    """Registry of listeners for engine notifications.

    Listeners receive ``(event, payload)``. Coroutine listeners are scheduled
    on the running loop; a listener that raises is logged and skipped.
    """

    def __init__(self):
        self._listeners: Dict[EngineEvent, List[Listener]] = {}
        self._global_listeners: List[Listener] = []
        self._pending: set = set()

    def subscribe(self, event: EngineEvent, callback: Listener) -> None:
        """Register a callback for one event type."""
        self._listeners.setdefault(EngineEvent(event), []).append(callback)

    def subscribe_all(self, callback: Listener) -> None:
        """Register a callback for every event type."""
        self._global_listeners.append(callback)

    def unsubscribe(self, callback: Listener, event: Optional[EngineEvent] = None) -> None:
        """Remove a callback from one event type, or from everything."""
        targets = [self._listeners.get(EngineEvent(event), [])] if event else [
            *self._listeners.values(),
            self._global_listeners,
        ]
        for listeners in targets:
            while callback in listeners:
                listeners.remove(callback)

    def emit(self, event: EngineEvent, payload: Optional[Dict[str, Any]] = None) -> None:
        """Deliver an event to every matching listener."""
        payload = payload or {}
        listeners = [*self._listeners.get(event, []), *self._global_listeners]
        for callback in listeners:
            try:
                result = callback(event, payload)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:
                logger.error(f"Listener {callback!r} failed on {event.value}: {e}")

    def _schedule(self, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async listener failed: {task.exception()}")
