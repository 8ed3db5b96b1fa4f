"""Per-request wiring of the application components to their adapters."""

from __future__ import annotations

from fastapi import Header

from floorops.api.middleware.request_id import get_request_id
from floorops.application.ports.publisher import FloorEventPublisher
from floorops.application.ports.unit_of_work import UnitOfWorkFactory
from floorops.application.use_cases.context import OperationContext, TraceContext
from floorops.domain.common.ids import ActorId
from floorops.infrastructure.db.unit_of_work import SqlAlchemyUnitOfWork
from floorops.infrastructure.messaging.redis_publisher import RedisFloorEventPublisher
from floorops.infrastructure.observability.otel import current_span_ids
from floorops.infrastructure.settings import (
    default_currency,
    events_channel,
    service_charge_policy,
)

ANONYMOUS_ACTOR = ActorId("anonymous")


def uow_factory() -> UnitOfWorkFactory:
    return SqlAlchemyUnitOfWork


def publisher() -> FloorEventPublisher:
    return RedisFloorEventPublisher()


def operation_context() -> OperationContext:
    return OperationContext(
        uow_factory=uow_factory(),
        publisher=publisher(),
        trace=TraceContext(trace_id=current_span_ids()[0], request_id=get_request_id()),
        currency=default_currency(),
        events_channel=events_channel(),
        service_charge=service_charge_policy(),
    )


def actor_id(x_actor_id: str | None = Header(default=None)) -> ActorId:
    if x_actor_id is None or not x_actor_id.strip():
        return ANONYMOUS_ACTOR
    return ActorId(x_actor_id.strip())
