from dataclasses import dataclass
from typing import Dict, List, Callable
import asyncio
import logging
logger = logging.getLogger(__name__)


STEP_START = "step_start"
STEP_PROGRESS = "step_progress"
STEP_COMPLETE = "step_complete"
STEP_FAIL = "step_fail"


@dataclass(frozen=True)
class StepEvent:
    """Status change of one workflow step."""
    step: str  # read, credentials, storage, start, poll, skip_poll
    message: str


class EventEmitter:
    """Simple event emitter for workflow step events."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = asyncio.Lock()

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event."""
        if event_name not in self._listeners:
            self._listeners[event_name] = []
        if callback not in self._listeners[event_name]:
            self._listeners[event_name].append(callback)

    def off(self, event_name: str, callback: Callable):
        """Unsubscribe from an event."""
        if event_name in self._listeners:
            if callback in self._listeners[event_name]:
                self._listeners[event_name].remove(callback)

    async def emit(self, event_name: str, *args, **kwargs):
        """Emit an event to all listeners."""
        if event_name not in self._listeners:
            return

        async with self._lock:
            for callback in self._listeners[event_name][:]:  # listeners may unsubscribe while we iterate
                try:
                    if asyncio.iscoroutinefunction(callback):
                        await callback(*args, **kwargs)
                    else:
                        callback(*args, **kwargs)
                except Exception as e:
                    logger.error(f"Error in event listener for {event_name}: {e}")
