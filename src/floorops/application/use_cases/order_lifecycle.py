from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from floorops.application.mappers.event_envelope import (
    order_assigned_payload,
    order_placed_payload,
    order_priority_changed_payload,
)
from floorops.application.metrics.floor_metrics import (
    record_kitchen_queue_size,
    record_order_placed,
)
from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.application.use_cases.billing import BillingEngine
from floorops.application.use_cases.context import OperationContext
from floorops.application.use_cases.order_transitions import (
    OrderNotFoundError,
    apply_order_transition,
    lock_order,
)
from floorops.application.use_cases.table_transitions import TableNotFoundError, TableTransitions
from floorops.domain.common.errors import ValidationError
from floorops.domain.common.ids import (
    ActorId,
    ComboId,
    MenuItemId,
    OrderId,
    OrderItemId,
    TableId,
    new_id,
)
from floorops.domain.common.money import Money
from floorops.domain.menu.entities import CatalogEntryNotFoundError
from floorops.domain.order.entities import (
    ComposedItem,
    InvalidQuantityError,
    ItemStatus,
    Order,
    OrderItemNotFoundError,
    OrderNotMutableError,
    OrderPriority,
    OrderStatus,
    ProductKind,
    StandaloneItem,
    create_pending_order,
    new_order_item_id,
)
from floorops.domain.order.events import OrderAssigned, OrderPlaced, OrderPriorityChanged
from floorops.domain.table.entities import Table

logger = logging.getLogger("floorops.orders")

KITCHEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY)


@dataclass(frozen=True)
class KitchenQueue:
    orders: list[Order]
    counts: dict[str, int]


def _validate_quantity(quantity: int) -> None:
    if quantity < 1:
        raise InvalidQuantityError(
            "quantity must be >= 1", details={"field": "quantity", "value": quantity}
        )


class OrderLifecycle:
    def __init__(self, ctx: OperationContext) -> None:
        self._ctx = ctx
        self._billing = BillingEngine(ctx)
        self._tables = TableTransitions(ctx)

    def get_or_create_active_order(
        self,
        uow: UnitOfWork,
        table_id: TableId,
        actor: ActorId,
    ) -> Order:
        """Return the table's active order, opening one if needed. Joins ``uow``."""
        if uow.tables.get_for_update(table_id) is None:
            raise TableNotFoundError(f"table {table_id} not found")
        existing = uow.orders.find_active_for_table(table_id)
        self._tables.on_order_opened(uow, table_id, actor)
        if existing is not None:
            return existing

        now = self._ctx.now()
        order = create_pending_order(
            order_id=OrderId(new_id("ord")),
            table_id=table_id,
            created_by=actor,
            currency=self._ctx.currency,
            now=now,
        )
        uow.orders.add(order)

        event = OrderPlaced(
            order_id=order.order_id, table_id=table_id, actor=actor, occurred_at=now
        )
        self._ctx.record_event(
            uow, "order.placed", actor, order_placed_payload(event, order), occurred_at=now
        )
        record_order_placed()
        logger.info(
            "order_placed",
            extra={"order_id": str(order.order_id), "table_id": str(table_id), "actor": str(actor)},
        )
        return order

    def add_item(
        self,
        table_id: TableId,
        menu_item_id: MenuItemId,
        quantity: int,
        notes: str | None,
        actor: ActorId,
    ) -> tuple[Order, StandaloneItem]:
        _validate_quantity(quantity)
        with self._ctx.uow_factory() as uow:
            menu_item = uow.catalog.get_menu_item(menu_item_id)
            if menu_item is None:
                raise CatalogEntryNotFoundError(f"menu item {menu_item_id} not found")
            menu_item.ensure_orderable()

            order = self._open_for_items(uow, table_id, actor)
            line = StandaloneItem(
                item_id=new_order_item_id(),
                product_kind=ProductKind.MENU_ITEM,
                product_id=str(menu_item.item_id),
                name=menu_item.name,
                quantity=quantity,
                unit_price=menu_item.price,
                total_price=menu_item.price.times(quantity),
                notes=notes,
            )
            order, line = order.add_menu_item(line)
            order = self._billing.recompute(uow, order)
            uow.commit()

        self._ctx.flush_events(uow)
        return order, line

    def add_combo(
        self,
        table_id: TableId,
        combo_id: ComboId,
        quantity: int,
        notes: str | None,
        actor: ActorId,
    ) -> tuple[Order, StandaloneItem]:
        _validate_quantity(quantity)
        with self._ctx.uow_factory() as uow:
            combo = uow.catalog.get_combo(combo_id)
            if combo is None:
                raise CatalogEntryNotFoundError(f"combo {combo_id} not found")
            combo.ensure_orderable()
            menu_items = uow.catalog.get_menu_items(
                [component.menu_item_id for component in combo.components]
            )

            order = self._open_for_items(uow, table_id, actor)
            header = StandaloneItem(
                item_id=new_order_item_id(),
                product_kind=ProductKind.COMBO,
                product_id=str(combo.combo_id),
                name=combo.name,
                quantity=quantity,
                unit_price=combo.price,
                total_price=combo.price.times(quantity),
                notes=notes,
            )
            zero = Money.zero(combo.price.currency)
            components: list[ComposedItem] = []
            for component in combo.components:
                menu_item = menu_items.get(str(component.menu_item_id))
                if menu_item is None:
                    raise CatalogEntryNotFoundError(
                        f"combo {combo_id} references missing menu item {component.menu_item_id}"
                    )
                components.append(
                    ComposedItem(
                        item_id=new_order_item_id(),
                        parent_item_id=header.item_id,
                        menu_item_id=menu_item.item_id,
                        name=menu_item.name,
                        quantity=component.quantity * quantity,
                        unit_price=zero,
                        total_price=zero,
                        notes=notes,
                    )
                )
            order = self._billing.recompute(uow, order.add_lines([header, *components]))
            uow.commit()

        self._ctx.flush_events(uow)
        return order, header

    def remove_item(
        self,
        order_item_id: OrderItemId,
        actor: ActorId,
    ) -> tuple[Order | None, Table | None]:
        """Remove a line; removing the last one deletes the order and frees the table."""
        with self._ctx.uow_factory() as uow:
            order = self._lock_order_by_item(uow, order_item_id)
            self._billing.ensure_unbilled(uow, order)
            remaining = order.remove_item(order_item_id)

            result: Order | None
            table: Table | None = None
            if remaining.items:
                result = self._billing.recompute(uow, remaining)
                if result.table_id is not None:
                    table = uow.tables.get(result.table_id)
            else:
                uow.orders.delete(order.order_id)
                table = self._tables.on_order_closed(uow, order.table_id, actor)
                result = None
                logger.info(
                    "order_deleted",
                    extra={"order_id": str(order.order_id), "actor": str(actor)},
                )
            uow.commit()

        self._ctx.flush_events(uow)
        return result, table

    def update_item_quantity(
        self,
        order_item_id: OrderItemId,
        quantity: int,
        actor: ActorId,
    ) -> Order:
        _validate_quantity(quantity)
        with self._ctx.uow_factory() as uow:
            order = self._lock_order_by_item(uow, order_item_id)
            self._billing.ensure_unbilled(uow, order)
            order, _ = order.update_item_quantity(order_item_id, quantity)
            order = self._billing.recompute(uow, order)
            uow.commit()
        return order

    def update_item_status(
        self,
        order_id: OrderId,
        order_item_id: OrderItemId,
        status: ItemStatus,
        actor: ActorId,
    ) -> Order:
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            updated = uow.orders.update(order.set_item_status(order_item_id, status))
            if updated.all_items_ready() and updated.status in (
                OrderStatus.PENDING,
                OrderStatus.PREPARING,
            ):
                updated = apply_order_transition(
                    self._ctx, uow, updated, OrderStatus.READY, actor
                )
            uow.commit()

        self._ctx.flush_events(uow)
        return updated

    def change_status(self, order_id: OrderId, new_status: OrderStatus, actor: ActorId) -> Order:
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            updated = apply_order_transition(self._ctx, uow, order, new_status, actor)
            uow.commit()

        self._ctx.flush_events(uow)
        return updated

    def change_priority(
        self,
        order_id: OrderId,
        priority: OrderPriority,
        actor: ActorId,
    ) -> Order:
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            if order.priority == priority:
                return order
            self._ensure_active(order)
            updated = uow.orders.update(replace(order, priority=priority))

            now = self._ctx.now()
            event = OrderPriorityChanged(
                order_id=order.order_id,
                old_priority=order.priority,
                new_priority=priority,
                actor=actor,
                occurred_at=now,
            )
            self._ctx.record_event(
                uow,
                "order.priority_changed",
                actor,
                order_priority_changed_payload(event),
                occurred_at=now,
            )
            uow.commit()

        self._ctx.flush_events(uow)
        return updated

    def assign(self, order_id: OrderId, assignee: ActorId, actor: ActorId) -> Order:
        if not str(assignee).strip():
            raise ValidationError("assignee must be non-empty", details={"field": "assignee"})
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            if order.assigned_to == assignee:
                return order
            self._ensure_active(order)
            updated = uow.orders.update(replace(order, assigned_to=assignee))

            now = self._ctx.now()
            event = OrderAssigned(
                order_id=order.order_id, assignee=assignee, actor=actor, occurred_at=now
            )
            self._ctx.record_event(
                uow, "order.assigned", actor, order_assigned_payload(event), occurred_at=now
            )
            uow.commit()

        self._ctx.flush_events(uow)
        return updated

    def get(self, order_id: OrderId) -> Order:
        with self._ctx.uow_factory() as uow:
            order = uow.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order

    def kitchen_queue(self, status: OrderStatus | None = None) -> KitchenQueue:
        if status is not None and status not in KITCHEN_STATUSES:
            raise ValidationError(
                f"kitchen queue does not hold {status.value} orders",
                details={"field": "status", "value": status.value},
            )
        with self._ctx.uow_factory() as uow:
            orders = uow.orders.list_by_status(KITCHEN_STATUSES)

        counts = {
            kitchen_status.value: sum(1 for order in orders if order.status == kitchen_status)
            for kitchen_status in KITCHEN_STATUSES
        }
        selected = [order for order in orders if status is None or order.status == status]
        selected.sort(key=lambda order: (order.priority_rank, order.created_at))
        record_kitchen_queue_size(counts)
        return KitchenQueue(orders=selected, counts=counts)

    def _open_for_items(self, uow: UnitOfWork, table_id: TableId, actor: ActorId) -> Order:
        active = self.get_or_create_active_order(uow, table_id, actor)
        order = lock_order(uow, active.order_id)
        self._billing.ensure_unbilled(uow, order)
        return order

    def _lock_order_by_item(self, uow: UnitOfWork, order_item_id: OrderItemId) -> Order:
        order = uow.orders.get_by_item_for_update(order_item_id)
        if order is None:
            raise OrderItemNotFoundError(f"order item {order_item_id} not found")
        return order

    def _ensure_active(self, order: Order) -> None:
        if not order.is_active:
            raise OrderNotMutableError(f"order {order.order_id} is {order.status.value}")
