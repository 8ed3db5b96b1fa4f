from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from floorops.application.mappers.event_envelope import serialize_event
from floorops.application.ports.publisher import FloorEventPublisher
from floorops.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory
from floorops.domain.billing.pricing import ServiceChargePolicy

logger = logging.getLogger("floorops.events")

DEFAULT_EVENTS_CHANNEL = "floorops:events"


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OperationContext:
    """Everything a component needs besides its arguments: storage, events and time."""

    uow_factory: UnitOfWorkFactory
    publisher: FloorEventPublisher
    trace: TraceContext = field(default_factory=lambda: TraceContext(None, None))
    clock: Callable[[], datetime] = utc_now
    currency: str = "USD"
    events_channel: str = DEFAULT_EVENTS_CHANNEL
    service_charge: ServiceChargePolicy = field(default_factory=ServiceChargePolicy)

    def now(self) -> datetime:
        return self.clock()

    def record_event(
        self,
        uow: UnitOfWork,
        event_type: str,
        actor: str,
        payload: dict[str, Any],
        occurred_at: datetime | None = None,
    ) -> None:
        uow.outbox.append(
            serialize_event(
                event_type=event_type,
                occurred_at=occurred_at or self.now(),
                actor=actor,
                payload=payload,
                trace_id=self.trace.trace_id,
                request_id=self.trace.request_id,
            )
        )

    def flush_events(self, uow: UnitOfWork) -> None:
        messages = list(uow.outbox)
        uow.outbox.clear()
        if not messages:
            return
        try:
            self.publisher.publish_batch(self.events_channel, messages)
        except Exception:
            logger.warning(
                "event_publish_failed",
                extra={"channel": self.events_channel, "event_count": len(messages)},
                exc_info=True,
            )
