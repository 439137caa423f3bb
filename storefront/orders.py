# storefront/orders.py
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import EmptyCart, NotFound, ProductNotFound, ValidationError
from .logger import get_logger
from .models import Order, OrderItem, OrderStatus, Product, User, UserRole
from .pricing import unit_price
from .storage import Storage

_logger = get_logger(__name__)

# forward path; cancelled is reachable from any non-terminal state
_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
TERMINAL = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

EDITABLE_FIELDS = ("status", "shipping_address", "billing_address", "payment_method")


@dataclass(frozen=True)
class OrderLine:
    item: OrderItem
    product: Optional[Product]


@dataclass(frozen=True)
class OrderDetail:
    order: Order
    lines: List[OrderLine]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    if current in TERMINAL:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return _FLOW.index(target) > _FLOW.index(current)


def check_transition(current: str, target: str) -> OrderStatus:
    try:
        new = OrderStatus(target)
    except ValueError:
        raise ValidationError(
            "Invalid order data",
            [{"loc": ["body", "status"], "msg": f"Unknown order status '{target}'", "type": "enum"}],
        )
    old = OrderStatus(current)
    if not can_transition(old, new):
        raise ValidationError(
            "Invalid order data",
            [{
                "loc": ["body", "status"],
                "msg": f"Cannot move order from '{old.value}' to '{new.value}'",
                "type": "transition",
            }],
        )
    return new


def order_detail(storage: Storage, order: Order) -> OrderDetail:
    lines = [
        OrderLine(item=item, product=storage.get_product(item.product_id))
        for item in storage.list_order_items(order.id)
    ]
    return OrderDetail(order=order, lines=lines)


def place_order(
    storage: Storage,
    user: User,
    shipping_address: Optional[str] = None,
    billing_address: Optional[str] = None,
    payment_method: Optional[str] = None,
) -> OrderDetail:
    """
    Turn the user's cart into a pending order.

    Unit prices are resolved from the user's current role and copied onto
    each order item, so later catalog edits never change a placed order.
    The order, its items and the cleared cart are committed together; on any
    failure nothing is written.
    """
    cart_items = storage.list_cart_items(user.id)
    if not cart_items:
        raise EmptyCart()

    priced = []
    for item in cart_items:
        product = storage.get_product(item.product_id)
        if product is None:
            raise ProductNotFound(item.product_id)
        priced.append((item, product, unit_price(product, user.role)))

    total = sum(price * item.quantity for item, _, price in priced)

    try:
        order = storage.create_order(
            user_id=user.id,
            status=OrderStatus.PENDING.value,
            total_amount=round(total, 2),
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
        )
        lines = [
            OrderLine(
                item=storage.create_order_item(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=price,
                    unit_type=item.unit_type,
                ),
                product=product,
            )
            for item, product, price in priced
        ]
        storage.clear_cart(user.id)
        storage.commit()
    except Exception:
        storage.rollback()
        raise

    _logger.info(f"Order {order.id} placed by user {user.id}: {len(lines)} item(s), total {order.total_amount:.2f}")
    return OrderDetail(order=order, lines=lines)


def list_orders(storage: Storage, user: User, status: Optional[str] = None) -> List[OrderDetail]:
    if user.role == UserRole.ADMIN:
        orders = storage.list_orders()
    else:
        orders = storage.list_orders_by_user(user.id)
    if status:
        orders = [o for o in orders if o.status == status]
    return [order_detail(storage, o) for o in orders]


def update_order(storage: Storage, order_id: int, changes: Dict[str, Any]) -> OrderDetail:
    order = storage.get_order(order_id)
    if order is None:
        raise NotFound("Order not found")

    data = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    if "status" in data:
        previous = order.status
        data["status"] = check_transition(previous, data["status"]).value
        if data["status"] != previous:
            _logger.info(f"Order {order_id}: {previous} -> {data['status']}")

    order = storage.update_order(order_id, data)
    storage.commit()
    return order_detail(storage, order)
