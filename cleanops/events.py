"""
In-process event bus for "jobs changed" notifications.

Views and services subscribe to a typed event class instead of a global string
signal. Handlers run synchronously in publish order; a failing handler is logged
and does not stop the others.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobsChanged:
    """One or more jobs were created, rescheduled, reassigned or changed status"""

    job_ids: tuple[int, ...] = field(default_factory=tuple)
    reason: str = ""


Handler = Callable[[object], None]


class EventBus:
    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that removes it again"""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers[event_type].remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: object) -> int:
        """Deliver an event to every handler of its type. Returns the number delivered."""
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(f"❌ Event handler {handler!r} failed for {type(event).__name__}: {e}")
        return delivered

    def handler_count(self, event_type: Optional[type] = None) -> int:
        if event_type is None:
            return sum(len(handlers) for handlers in self._handlers.values())
        return len(self._handlers.get(event_type, []))


# Process-wide bus used by the job write endpoints
bus = EventBus()


def publish_jobs_changed(job_ids, reason: str = "") -> None:
    bus.publish(JobsChanged(job_ids=tuple(job_ids), reason=reason))
