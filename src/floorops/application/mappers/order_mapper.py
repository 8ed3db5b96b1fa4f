from __future__ import annotations

from floorops.application.dto.responses import OrderItemResponse, OrderResponse
from floorops.application.mappers.money_mapper import to_money_response
from floorops.domain.order.entities import ComposedItem, Order, OrderItem


def to_order_item_response(item: OrderItem) -> OrderItemResponse:
    if isinstance(item, ComposedItem):
        return OrderItemResponse(
            itemId=str(item.item_id),
            kind=item.kind,
            parentItemId=str(item.parent_item_id),
            menuItemId=str(item.menu_item_id),
            name=item.name,
            quantity=item.quantity,
            unitPrice=to_money_response(item.unit_price),
            totalPrice=to_money_response(item.total_price),
            status=item.status.value,
            notes=item.notes,
        )
    return OrderItemResponse(
        itemId=str(item.item_id),
        kind=item.kind,
        productKind=item.product_kind.value,
        productId=item.product_id,
        name=item.name,
        quantity=item.quantity,
        unitPrice=to_money_response(item.unit_price),
        totalPrice=to_money_response(item.total_price),
        status=item.status.value,
        notes=item.notes,
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        tableId=str(order.table_id) if order.table_id else None,
        status=order.status.value,
        priority=order.priority.value,
        items=[to_order_item_response(item) for item in order.items],
        subtotal=to_money_response(order.subtotal),
        taxAmount=to_money_response(order.tax_amount),
        discountAmount=to_money_response(order.discount_amount),
        totalAmount=to_money_response(order.total_amount),
        promotionId=str(order.promotion_id) if order.promotion_id else None,
        specialInstructions=order.special_instructions,
        createdBy=str(order.created_by),
        assignedTo=str(order.assigned_to) if order.assigned_to else None,
        createdAt=order.created_at,
        readyAt=order.ready_at,
        servedAt=order.served_at,
        completedAt=order.completed_at,
        cancelledAt=order.cancelled_at,
        version=order.version,
    )
