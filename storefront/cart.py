# storefront/cart.py
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE, TAX_RATE
from .errors import NotFound
from .logger import get_logger
from .models import CartItem, Product
from .pricing import unit_price
from .storage import Storage

_logger = get_logger(__name__)


@dataclass(frozen=True)
class CartLine:
    item: CartItem
    product: Optional[Product]  # None once the product was deleted


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    tax: float
    shipping: float
    total: float


def cart_lines(storage: Storage, user_id: int) -> List[CartLine]:
    return [
        CartLine(item=item, product=storage.get_product(item.product_id))
        for item in storage.list_cart_items(user_id)
    ]


def _owned_item(storage: Storage, user_id: int, item_id: int) -> CartItem:
    item = storage.get_cart_item(item_id)
    if item is None or item.user_id != user_id:
        raise NotFound("Cart item not found")
    return item


def add_item(
    storage: Storage, user_id: int, product_id: int, quantity: int, unit_type: str
) -> Tuple[CartItem, bool]:
    """
    Add ``quantity`` of a product to the user's cart.

    A row already holding the same product and unit type absorbs the quantity
    instead of a second row being created. Returns ``(row, created)``.
    """
    if storage.get_product(product_id) is None:
        raise NotFound("Product not found")

    for existing in storage.list_cart_items(user_id):
        if existing.product_id == product_id and existing.unit_type == unit_type:
            merged = storage.update_cart_item(
                existing.id, {"quantity": existing.quantity + quantity}
            )
            _logger.debug(f"Merged {quantity} x product {product_id} into cart item {existing.id}")
            return merged, False

    item = storage.create_cart_item(
        user_id=user_id, product_id=product_id, quantity=quantity, unit_type=unit_type
    )
    return item, True


def update_item(
    storage: Storage,
    user_id: int,
    item_id: int,
    quantity: Optional[int] = None,
    unit_type: Optional[str] = None,
) -> CartItem:
    item = _owned_item(storage, user_id, item_id)
    changes = {}
    if quantity is not None:
        changes["quantity"] = quantity
    if unit_type is not None and unit_type != item.unit_type:
        # switching unit type onto an existing row folds this one into it
        for other in storage.list_cart_items(user_id):
            if other.id != item.id and other.product_id == item.product_id and other.unit_type == unit_type:
                added = changes.get("quantity", item.quantity)
                storage.delete_cart_item(item.id)
                return storage.update_cart_item(other.id, {"quantity": other.quantity + added})
        changes["unit_type"] = unit_type
    return storage.update_cart_item(item_id, changes)


def remove_item(storage: Storage, user_id: int, item_id: int) -> bool:
    _owned_item(storage, user_id, item_id)
    return storage.delete_cart_item(item_id)


def clear_cart(storage: Storage, user_id: int) -> bool:
    return storage.clear_cart(user_id)


def compute_totals(lines: List[CartLine], role) -> CartTotals:
    subtotal = sum(
        unit_price(line.product, role) * line.item.quantity
        for line in lines
        if line.product is not None
    )
    tax = subtotal * TAX_RATE
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    return CartTotals(
        subtotal=round(subtotal, 2),
        tax=round(tax, 2),
        shipping=round(shipping, 2),
        total=round(subtotal + tax + shipping, 2),
    )
