"""
In-process appointment event bus.

Notification collaborators subscribe to appointment events. Publishing is
fire-and-forget: handlers are not awaited by the publisher and their
failures are logged, never retried or propagated.
"""

import asyncio
import inspect
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

from pydantic import BaseModel, Field

from models.appointment import Appointment, AppointmentStatus
from utils.datetime_utils import utc_now
from utils.logging_config import get_logger

logger = get_logger(__name__)


class AppointmentEventKind(str, Enum):
    """What happened to the appointment."""

    CREATED = "created"
    TRANSITIONED = "transitioned"
    CANCELLED = "cancelled"
    SHIFTED = "shifted"
    REMINDER_DUE = "reminder-due"


class AppointmentEvent(BaseModel):
    """Snapshot of an appointment after a change."""

    kind: AppointmentEventKind
    appointment: Appointment
    previous_status: Optional[AppointmentStatus] = None
    occurred_at: datetime = Field(default_factory=utc_now)

    class Config:
        use_enum_values = True

    @property
    def status(self) -> AppointmentStatus:
        return self.appointment.status_enum


EventHandler = Callable[[AppointmentEvent], Union[None, Awaitable[None]]]


class EventBus:
    """Synchronous fan-out with background execution of async handlers."""

    def __init__(self):
        self._handlers: List[EventHandler] = []
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, handler: EventHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def publish(self, event: AppointmentEvent) -> None:
        """Deliver an event to every subscriber without waiting on them."""
        logger.debug(
            f"Publishing {event.kind} for appointment {event.appointment.id} "
            f"to {len(self._handlers)} subscriber(s)"
        )
        for handler in list(self._handlers):
            try:
                result = handler(event)
            except Exception as e:
                logger.error(f"Event handler {handler!r} failed on {event.kind}: {e}", exc_info=True)
                continue

            if inspect.isawaitable(result):
                self._schedule(handler, event, result)

    def _schedule(self, handler: EventHandler, event: AppointmentEvent, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (sync caller): run the handler to completion here
            try:
                asyncio.run(self._await(awaitable))
            except Exception as e:
                logger.error(f"Event handler {handler!r} failed on {event.kind}: {e}", exc_info=True)
            return

        task = loop.create_task(self._await(awaitable))
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if error is not None:
                logger.error(
                    f"Event handler {handler!r} failed on {event.kind}: {error}",
                    exc_info=error,
                )

        task.add_done_callback(_done)

    @staticmethod
    async def _await(awaitable: Any) -> None:
        await awaitable

    async def drain(self) -> None:
        """Wait for in-flight async handlers (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get or create the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus
