from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from floorops.application.ports.repositories import OrderRepository, StaleOrderError
from floorops.domain.common.ids import (
    ActorId,
    MenuItemId,
    OrderId,
    OrderItemId,
    PromotionId,
    TableId,
)
from floorops.domain.common.money import Money
from floorops.domain.order.entities import (
    TERMINAL_ORDER_STATUSES,
    ComposedItem,
    ItemStatus,
    Order,
    OrderItem,
    OrderPriority,
    OrderStatus,
    ProductKind,
    StandaloneItem,
)
from floorops.infrastructure.db.models.order import OrderItemModel, OrderModel
from floorops.infrastructure.db.repositories.converters import aware, aware_or_none

_TERMINAL = [status.value for status in TERMINAL_ORDER_STATUSES]


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, order: Order) -> None:
        model = OrderModel(id=str(order.order_id), version=order.version)
        self._apply(model, order)
        self._session.add(model)
        self._session.flush()

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == str(order_id))
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def get_for_update(self, order_id: OrderId) -> Order | None:
        # selectinload keeps FOR UPDATE off the outer join a joinedload would add.
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == str(order_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def get_by_item_for_update(self, item_id: OrderItemId) -> Order | None:
        statement = select(OrderItemModel.order_id).where(OrderItemModel.id == str(item_id))
        order_id = self._session.execute(statement).scalar_one_or_none()
        if order_id is None:
            return None
        return self.get_for_update(OrderId(order_id))

    def update(self, order: Order) -> Order:
        model = self._session.get(OrderModel, str(order.order_id))
        if model is None:
            raise RuntimeError(f"order {order.order_id} not found during update")
        if model.version != order.version:
            raise StaleOrderError(
                f"order {order.order_id} was modified concurrently",
                details={"expected_version": order.version, "actual_version": model.version},
            )
        self._apply(model, order)
        model.version = order.version + 1
        self._session.flush()
        return replace(order, version=model.version)

    def delete(self, order_id: OrderId) -> None:
        model = self._session.get(OrderModel, str(order_id))
        if model is not None:
            self._session.delete(model)
            self._session.flush()

    def find_active_for_table(self, table_id: TableId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(
                OrderModel.table_id == str(table_id),
                OrderModel.status.not_in(_TERMINAL),
                OrderModel.deleted_at.is_(None),
            )
            .order_by(OrderModel.created_at)
            .limit(1)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def count_active_for_table(self, table_id: TableId) -> int:
        statement = select(func.count(OrderModel.id)).where(
            OrderModel.table_id == str(table_id),
            OrderModel.status.not_in(_TERMINAL),
            OrderModel.deleted_at.is_(None),
        )
        return int(self._session.execute(statement).scalar_one())

    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(
                OrderModel.status.in_([status.value for status in statuses]),
                OrderModel.deleted_at.is_(None),
            )
            .order_by(OrderModel.created_at, OrderModel.id)
        )
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def _apply(self, model: OrderModel, order: Order) -> None:
        model.order_number = order.order_number
        model.table_id = str(order.table_id) if order.table_id is not None else None
        model.status = order.status.value
        model.priority = order.priority.value
        model.subtotal_cents = order.subtotal.amount_cents
        model.tax_cents = order.tax_amount.amount_cents
        model.discount_cents = order.discount_amount.amount_cents
        model.total_cents = order.total_amount.amount_cents
        model.currency = order.currency
        model.promotion_id = str(order.promotion_id) if order.promotion_id else None
        model.special_instructions = order.special_instructions
        model.created_by = str(order.created_by)
        model.assigned_to = str(order.assigned_to) if order.assigned_to else None
        model.created_at = order.created_at
        model.ready_at = order.ready_at
        model.served_at = order.served_at
        model.completed_at = order.completed_at
        model.cancelled_at = order.cancelled_at
        model.deleted_at = order.deleted_at

        # Update rows in place so an unchanged line keeps its primary key row.
        existing = {item.id: item for item in model.items}
        rows: list[OrderItemModel] = []
        for position, item in enumerate(order.items):
            row = existing.get(str(item.item_id)) or OrderItemModel(id=str(item.item_id))
            _apply_item(row, item, position)
            rows.append(row)
        model.items = rows

    def _to_domain(self, model: OrderModel) -> Order:
        currency = model.currency
        return Order(
            order_id=OrderId(model.id),
            order_number=model.order_number,
            table_id=TableId(model.table_id) if model.table_id is not None else None,
            status=OrderStatus(model.status),
            priority=OrderPriority(model.priority),
            items=[_item_to_domain(row) for row in model.items],
            subtotal=Money(amount_cents=model.subtotal_cents, currency=currency),
            tax_amount=Money(amount_cents=model.tax_cents, currency=currency),
            discount_amount=Money(amount_cents=model.discount_cents, currency=currency),
            total_amount=Money(amount_cents=model.total_cents, currency=currency),
            created_by=ActorId(model.created_by),
            created_at=aware(model.created_at),
            promotion_id=PromotionId(model.promotion_id) if model.promotion_id else None,
            special_instructions=model.special_instructions,
            assigned_to=ActorId(model.assigned_to) if model.assigned_to else None,
            ready_at=aware_or_none(model.ready_at),
            served_at=aware_or_none(model.served_at),
            completed_at=aware_or_none(model.completed_at),
            cancelled_at=aware_or_none(model.cancelled_at),
            deleted_at=aware_or_none(model.deleted_at),
            version=model.version,
        )


def _apply_item(row: OrderItemModel, item: OrderItem, position: int) -> None:
    row.position = position
    row.kind = item.kind
    row.name = item.name
    row.quantity = item.quantity
    row.unit_price_cents = item.unit_price.amount_cents
    row.total_price_cents = item.total_price.amount_cents
    row.currency = item.unit_price.currency
    row.status = item.status.value
    row.notes = item.notes
    if isinstance(item, StandaloneItem):
        row.product_kind = item.product_kind.value
        row.product_id = item.product_id
        row.parent_item_id = None
        row.menu_item_id = None
    else:
        row.product_kind = None
        row.product_id = None
        row.parent_item_id = str(item.parent_item_id)
        row.menu_item_id = str(item.menu_item_id)


def _item_to_domain(row: OrderItemModel) -> OrderItem:
    unit_price = Money(amount_cents=row.unit_price_cents, currency=row.currency)
    total_price = Money(amount_cents=row.total_price_cents, currency=row.currency)
    if row.kind == "composed":
        return ComposedItem(
            item_id=OrderItemId(row.id),
            parent_item_id=OrderItemId(row.parent_item_id or ""),
            menu_item_id=MenuItemId(row.menu_item_id or ""),
            name=row.name,
            quantity=row.quantity,
            unit_price=unit_price,
            total_price=total_price,
            status=ItemStatus(row.status),
            notes=row.notes,
        )
    return StandaloneItem(
        item_id=OrderItemId(row.id),
        product_kind=ProductKind(row.product_kind or ProductKind.MENU_ITEM.value),
        product_id=row.product_id or "",
        name=row.name,
        quantity=row.quantity,
        unit_price=unit_price,
        total_price=total_price,
        status=ItemStatus(row.status),
        notes=row.notes,
    )
