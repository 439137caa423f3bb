# storefront/pricing.py
from typing import Iterable, List

from .models import Product, UserRole


def unit_price(product: Product, role) -> float:
    """Wholesale accounts pay the wholesale column; everyone else pays retail."""
    if role == UserRole.WHOLESALE or role == UserRole.WHOLESALE.value:
        return float(product.wholesale_price)
    return float(product.retail_price)


def discount_percent(product: Product, role=UserRole.RETAIL) -> int:
    original = float(product.original_price or 0)
    if original <= 0:
        return 0
    return round(100 * (original - unit_price(product, role)) / original)


def price_warnings(products: Iterable[Product]) -> List[str]:
    # wholesale above retail is allowed, just suspicious
    return [
        f"Product {p.id} ({p.name}): wholesale price {p.wholesale_price:.2f} "
        f"exceeds retail price {p.retail_price:.2f}"
        for p in products
        if p.wholesale_price > p.retail_price
    ]
