from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Literal, Union
from uuid import uuid4

from floorops.domain.common.errors import NotFoundError, PreconditionError, ValidationError
from floorops.domain.common.ids import (
    ActorId,
    MenuItemId,
    OrderId,
    OrderItemId,
    PromotionId,
    TableId,
    new_id,
)
from floorops.domain.common.money import Money


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class ItemStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"


class ProductKind(str, Enum):
    MENU_ITEM = "menu_item"
    COMBO = "combo"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
ACTIVE_ORDER_STATUSES = frozenset(set(OrderStatus) - TERMINAL_ORDER_STATUSES)

_FORWARD_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
)
_PRIORITY_RANK = {OrderPriority.HIGH: 0, OrderPriority.NORMAL: 1, OrderPriority.LOW: 2}


def _validate_line(quantity: int, unit_price: Money, total_price: Money) -> None:
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    if unit_price.currency != total_price.currency:
        raise ValueError("total_price currency must match unit_price currency")
    if total_price.amount_cents != unit_price.amount_cents * quantity:
        raise ValueError("total_price must equal unit_price * quantity")


@dataclass(frozen=True)
class StandaloneItem:
    item_id: OrderItemId
    product_kind: ProductKind
    product_id: str
    name: str
    quantity: int
    unit_price: Money
    total_price: Money
    status: ItemStatus = ItemStatus.PENDING
    notes: str | None = None
    kind: Literal["standalone"] = field(default="standalone", init=False)

    def __post_init__(self) -> None:
        _validate_line(self.quantity, self.unit_price, self.total_price)

    @property
    def is_combo(self) -> bool:
        return self.product_kind == ProductKind.COMBO


@dataclass(frozen=True)
class ComposedItem:
    """A combo component, priced at zero; its cost sits on the combo line."""

    item_id: OrderItemId
    parent_item_id: OrderItemId
    menu_item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    total_price: Money
    status: ItemStatus = ItemStatus.PENDING
    notes: str | None = None
    kind: Literal["composed"] = field(default="composed", init=False)

    def __post_init__(self) -> None:
        _validate_line(self.quantity, self.unit_price, self.total_price)
        if self.unit_price.amount_cents != 0:
            raise ValueError("composed items are priced at zero")


OrderItem = Union[StandaloneItem, ComposedItem]


def new_order_item_id() -> OrderItemId:
    return OrderItemId(new_id("itm"))


def new_order_number(now: datetime) -> str:
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: str
    table_id: TableId | None
    status: OrderStatus
    priority: OrderPriority
    items: list[OrderItem]
    subtotal: Money
    tax_amount: Money
    discount_amount: Money
    total_amount: Money
    created_by: ActorId
    created_at: datetime
    promotion_id: PromotionId | None = None
    special_instructions: str | None = None
    assigned_to: ActorId | None = None
    ready_at: datetime | None = None
    served_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    deleted_at: datetime | None = None
    version: int = 1

    def __post_init__(self) -> None:
        currency = self.subtotal.currency
        for money in (self.tax_amount, self.discount_amount, self.total_amount):
            if money.currency != currency:
                raise ValueError("order amounts must share one currency")
        if self.discount_amount.amount_cents > self.subtotal.amount_cents:
            raise ValueError("discount_amount must not exceed subtotal")
        expected_total = (
            self.subtotal.amount_cents
            + self.tax_amount.amount_cents
            - self.discount_amount.amount_cents
        )
        if self.total_amount.amount_cents != expected_total:
            raise ValueError("total_amount must equal subtotal + tax_amount - discount_amount")

    @property
    def currency(self) -> str:
        return self.subtotal.currency

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ORDER_STATUSES

    @property
    def priority_rank(self) -> int:
        return _PRIORITY_RANK[self.priority]

    def find_item(self, item_id: OrderItemId) -> OrderItem:
        for item in self.items:
            if item.item_id == item_id:
                return item
        raise OrderItemNotFoundError(f"order item {item_id} not found on order {self.order_id}")

    def with_totals(self, subtotal: Money, tax_amount: Money, discount_amount: Money) -> Order:
        total = subtotal + tax_amount - discount_amount
        return replace(
            self,
            subtotal=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total,
        )

    def with_promotion(self, promotion_id: PromotionId, discount_amount: Money) -> Order:
        return replace(
            self,
            promotion_id=promotion_id,
            discount_amount=discount_amount,
            total_amount=self.subtotal + self.tax_amount - discount_amount,
        )

    def ensure_items_mutable(self) -> None:
        if not self.is_active:
            raise OrderNotMutableError(
                f"order {self.order_id} is {self.status.value}; items can no longer change"
            )

    def add_menu_item(self, line: StandaloneItem) -> tuple[Order, StandaloneItem]:
        """Add a menu item line, merging into a pending line for the same item and notes."""
        self.ensure_items_mutable()
        for index, item in enumerate(self.items):
            if (
                isinstance(item, StandaloneItem)
                and item.product_kind == ProductKind.MENU_ITEM
                and item.product_id == line.product_id
                and item.notes == line.notes
                and item.status == ItemStatus.PENDING
                and item.unit_price == line.unit_price
            ):
                quantity = item.quantity + line.quantity
                merged = replace(
                    item,
                    quantity=quantity,
                    total_price=item.unit_price.times(quantity),
                )
                items = list(self.items)
                items[index] = merged
                return replace(self, items=items), merged
        return replace(self, items=[*self.items, line]), line

    def add_lines(self, lines: list[OrderItem]) -> Order:
        self.ensure_items_mutable()
        return replace(self, items=[*self.items, *lines])

    def remove_item(self, item_id: OrderItemId) -> Order:
        self.ensure_items_mutable()
        target = self.find_item(item_id)
        remaining = [
            item
            for item in self.items
            if item.item_id != target.item_id
            and not (isinstance(item, ComposedItem) and item.parent_item_id == target.item_id)
        ]
        return replace(self, items=remaining)

    def update_item_quantity(self, item_id: OrderItemId, quantity: int) -> tuple[Order, OrderItem]:
        self.ensure_items_mutable()
        if quantity < 1:
            raise InvalidQuantityError(
                "quantity must be >= 1", details={"field": "quantity", "value": quantity}
            )
        target = self.find_item(item_id)
        if isinstance(target, ComposedItem) or target.is_combo:
            raise OrderNotMutableError(
                f"order item {item_id} belongs to a combo; remove and re-add the combo instead"
            )
        updated = replace(target, quantity=quantity, total_price=target.unit_price.times(quantity))
        items = [updated if item.item_id == item_id else item for item in self.items]
        return replace(self, items=items), updated

    def set_item_status(self, item_id: OrderItemId, status: ItemStatus) -> Order:
        self.ensure_items_mutable()
        target = self.find_item(item_id)
        updated = replace(target, status=status)
        items = [updated if item.item_id == item_id else item for item in self.items]
        return replace(self, items=items)

    def all_items_ready(self) -> bool:
        return bool(self.items) and all(item.status == ItemStatus.READY for item in self.items)

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        if new_status == self.status:
            return True
        if not self.is_active:
            return False
        if new_status == OrderStatus.CANCELLED:
            return True
        return _FORWARD_SEQUENCE.index(new_status) > _FORWARD_SEQUENCE.index(self.status)

    def transition_to(self, new_status: OrderStatus, now: datetime) -> Order:
        if new_status == self.status:
            return self
        if not self.can_transition_to(new_status):
            raise InvalidOrderTransitionError(
                f"cannot move order {self.order_id} from {self.status.value} "
                f"to {new_status.value}",
                details={"from": self.status.value, "to": new_status.value},
            )

        updated = replace(self, status=new_status)
        if new_status == OrderStatus.READY and self.ready_at is None:
            updated = replace(updated, ready_at=now)
        elif new_status == OrderStatus.SERVED and self.served_at is None:
            updated = replace(updated, served_at=now)
        elif new_status == OrderStatus.COMPLETED:
            updated = replace(updated, completed_at=now)
        elif new_status == OrderStatus.CANCELLED:
            updated = replace(updated, cancelled_at=now)
        return updated


def create_pending_order(
    order_id: OrderId,
    table_id: TableId,
    created_by: ActorId,
    currency: str,
    now: datetime,
    priority: OrderPriority = OrderPriority.NORMAL,
    special_instructions: str | None = None,
) -> Order:
    zero = Money.zero(currency)
    return Order(
        order_id=order_id,
        order_number=new_order_number(now),
        table_id=table_id,
        status=OrderStatus.PENDING,
        priority=priority,
        items=[],
        subtotal=zero,
        tax_amount=zero,
        discount_amount=zero,
        total_amount=zero,
        created_by=created_by,
        created_at=now,
        special_instructions=special_instructions,
    )


class InvalidOrderTransitionError(PreconditionError):
    code = "INVALID_ORDER_TRANSITION"


class OrderNotMutableError(PreconditionError):
    code = "ORDER_NOT_MUTABLE"


class OrderItemNotFoundError(NotFoundError):
    code = "ORDER_ITEM_NOT_FOUND"


class InvalidQuantityError(ValidationError):
    code = "INVALID_QUANTITY"
