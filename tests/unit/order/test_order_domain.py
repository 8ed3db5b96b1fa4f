from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floorops.domain.common.ids import ActorId, MenuItemId, OrderId, OrderItemId, TableId
from floorops.domain.common.money import Money
from floorops.domain.order.entities import (
    ComposedItem,
    InvalidOrderTransitionError,
    ItemStatus,
    Order,
    OrderNotMutableError,
    OrderStatus,
    ProductKind,
    StandaloneItem,
    create_pending_order,
)

NOW = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _line(item_id: str, product_id: str, price: int, quantity: int = 1, **kwargs) -> StandaloneItem:
    return StandaloneItem(
        item_id=OrderItemId(item_id),
        product_kind=kwargs.pop("product_kind", ProductKind.MENU_ITEM),
        product_id=product_id,
        name=product_id,
        quantity=quantity,
        unit_price=_usd(price),
        total_price=_usd(price * quantity),
        **kwargs,
    )


def _order() -> Order:
    return create_pending_order(
        order_id=OrderId("ord_001"),
        table_id=TableId("tbl_001"),
        created_by=ActorId("waiter_01"),
        currency="USD",
        now=NOW,
    )


def test_line_total_must_equal_unit_price_times_quantity() -> None:
    with pytest.raises(ValueError):
        StandaloneItem(
            item_id=OrderItemId("itm_a"),
            product_kind=ProductKind.MENU_ITEM,
            product_id="itm_001",
            name="Pizza",
            quantity=2,
            unit_price=_usd(500),
            total_price=_usd(900),
        )
    with pytest.raises(ValueError):
        _line("itm_a", "itm_001", 500, quantity=0)


def test_composed_items_are_priced_at_zero() -> None:
    with pytest.raises(ValueError):
        ComposedItem(
            item_id=OrderItemId("itm_c"),
            parent_item_id=OrderItemId("itm_a"),
            menu_item_id=MenuItemId("itm_001"),
            name="Pizza",
            quantity=1,
            unit_price=_usd(100),
            total_price=_usd(100),
        )


def test_order_total_must_match_its_parts() -> None:
    with pytest.raises(ValueError):
        replace(_order(), subtotal=_usd(1000), total_amount=_usd(900))
    with pytest.raises(ValueError):
        _order().with_totals(_usd(1000), _usd(0), _usd(1200))


def test_add_menu_item_merges_matching_pending_lines() -> None:
    order, first = _order().add_menu_item(_line("itm_a", "itm_001", 500))
    order, merged = order.add_menu_item(_line("itm_b", "itm_001", 500, quantity=2))

    assert len(order.items) == 1
    assert merged.item_id == first.item_id
    assert merged.quantity == 3
    assert merged.total_price == _usd(1500)


def test_add_menu_item_keeps_lines_with_different_notes_apart() -> None:
    order, _ = _order().add_menu_item(_line("itm_a", "itm_001", 500))
    order, second = order.add_menu_item(_line("itm_b", "itm_001", 500, notes="no onions"))

    assert len(order.items) == 2
    assert second.item_id == OrderItemId("itm_b")


def test_remove_item_drops_combo_components_with_their_header() -> None:
    header = _line("itm_h", "cmb_001", 1700, product_kind=ProductKind.COMBO)
    component = ComposedItem(
        item_id=OrderItemId("itm_c"),
        parent_item_id=header.item_id,
        menu_item_id=MenuItemId("itm_001"),
        name="Pizza",
        quantity=1,
        unit_price=_usd(0),
        total_price=_usd(0),
    )
    order = _order().add_lines([header, component, _line("itm_x", "itm_002", 300)])

    remaining = order.remove_item(header.item_id)

    assert [item.item_id for item in remaining.items] == [OrderItemId("itm_x")]


def test_update_quantity_rejects_combo_lines() -> None:
    header = _line("itm_h", "cmb_001", 1700, product_kind=ProductKind.COMBO)
    order = _order().add_lines([header])
    with pytest.raises(OrderNotMutableError):
        order.update_item_quantity(header.item_id, 2)


def test_items_are_frozen_once_the_order_is_terminal() -> None:
    order, line = _order().add_menu_item(_line("itm_a", "itm_001", 500))
    completed = order.transition_to(OrderStatus.COMPLETED, NOW)
    with pytest.raises(OrderNotMutableError):
        completed.add_menu_item(_line("itm_b", "itm_002", 300))
    with pytest.raises(OrderNotMutableError):
        completed.remove_item(line.item_id)


def test_transitions_move_forward_and_cancel_from_any_active_status() -> None:
    order = _order()
    ready = order.transition_to(OrderStatus.READY, NOW)
    assert ready.ready_at == NOW

    with pytest.raises(InvalidOrderTransitionError):
        ready.transition_to(OrderStatus.PREPARING, NOW)

    cancelled = ready.transition_to(OrderStatus.CANCELLED, NOW)
    assert cancelled.cancelled_at == NOW
    with pytest.raises(InvalidOrderTransitionError):
        cancelled.transition_to(OrderStatus.PENDING, NOW)
    assert cancelled.transition_to(OrderStatus.CANCELLED, NOW) is cancelled


def test_all_items_ready_needs_at_least_one_item() -> None:
    assert not _order().all_items_ready()
    order, line = _order().add_menu_item(_line("itm_a", "itm_001", 500))
    assert order.set_item_status(line.item_id, ItemStatus.READY).all_items_ready()
