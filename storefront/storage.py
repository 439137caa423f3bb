# storefront/storage.py
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .models import CartItem, Category, Order, OrderItem, Product, User


class Storage:
    """
    Entity store over a SQLAlchemy session.

    Writes are flushed so new rows get their ids immediately, but nothing is
    committed here: the caller decides when a unit of work ends.
    """

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def _add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def _update(self, obj, data: Dict[str, Any]):
        for key, value in data.items():
            setattr(obj, key, value)
        self.db.flush()
        return obj

    def _delete(self, obj) -> bool:
        if obj is None:
            return False
        self.db.delete(obj)
        self.db.flush()
        return True

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def create_user(self, **data) -> User:
        return self._add(User(**data))

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        user = self.get_user(user_id)
        return self._update(user, data) if user else None

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------
    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def create_category(self, **data) -> Category:
        return self._add(Category(**data))

    def list_categories(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Optional[Category]:
        category = self.get_category(category_id)
        return self._update(category, data) if category else None

    def delete_category(self, category_id: int) -> bool:
        return self._delete(self.get_category(category_id))

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------
    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def list_products(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.id).all()

    def list_products_by_category(self, category_id: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.category_id == category_id)
            .order_by(Product.id)
            .all()
        )

    def count_products(self) -> int:
        return self.db.query(Product).count()

    def create_product(self, **data) -> Product:
        return self._add(Product(**data))

    def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        product = self.get_product(product_id)
        return self._update(product, data) if product else None

    def delete_product(self, product_id: int) -> bool:
        return self._delete(self.get_product(product_id))

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------
    def get_order(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def list_orders_by_user(self, user_id: int) -> List[Order]:
        return self.db.query(Order).filter(Order.user_id == user_id).order_by(Order.id).all()

    def list_orders(self) -> List[Order]:
        return self.db.query(Order).order_by(Order.id).all()

    def create_order(self, **data) -> Order:
        return self._add(Order(**data))

    def update_order(self, order_id: int, data: Dict[str, Any]) -> Optional[Order]:
        order = self.get_order(order_id)
        return self._update(order, data) if order else None

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        return (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
            .all()
        )

    def create_order_item(self, **data) -> OrderItem:
        return self._add(OrderItem(**data))

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------
    def list_cart_items(self, user_id: int) -> List[CartItem]:
        return self.db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.id).all()

    def get_cart_item(self, item_id: int) -> Optional[CartItem]:
        return self.db.get(CartItem, item_id)

    def create_cart_item(self, **data) -> CartItem:
        return self._add(CartItem(**data))

    def update_cart_item(self, item_id: int, data: Dict[str, Any]) -> Optional[CartItem]:
        item = self.get_cart_item(item_id)
        return self._update(item, data) if item else None

    def delete_cart_item(self, item_id: int) -> bool:
        return self._delete(self.get_cart_item(item_id))

    def clear_cart(self, user_id: int) -> bool:
        self.db.query(CartItem).filter(CartItem.user_id == user_id).delete()
        self.db.flush()
        return True


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)
