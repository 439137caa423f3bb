# storefront/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    WHOLESALE = "wholesale"
    RETAIL = "retail"


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    LIMITED = "limited"
    INACTIVE = "inactive"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(80), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    email = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.RETAIL.value)

    company_name = Column(String(255), nullable=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    phone = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(120), nullable=False)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    category_id = Column(Integer, nullable=False, index=True)
    retail_price = Column(Float, nullable=False)
    wholesale_price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    unit = Column(String(40), nullable=False)
    unit_options = Column(JSON, nullable=False, default=list)  # [{value, label, price}]
    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value)

    is_bestseller = Column(Boolean, default=False)
    is_limited = Column(Boolean, default=False)
    is_organic = Column(Boolean, default=False)
    is_local = Column(Boolean, default=False)

    origin = Column(String(120), nullable=True)
    rating = Column(Float, nullable=True)
    original_price = Column(Float, nullable=True)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    total_amount = Column(Float, nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    shipping_address = Column(String(500), nullable=True)
    billing_address = Column(String(500), nullable=True)
    payment_method = Column(String(60), nullable=True)

    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    # no FK: items outlive the product they were bought from
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)  # price at time of order
    unit_type = Column(String(40), nullable=False)

    order = relationship("Order", back_populates="items")


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_type = Column(String(40), nullable=False)

    __table_args__ = (
        Index("idx_cart_items_user_product_unit", "user_id", "product_id", "unit_type"),
        {"sqlite_autoincrement": True},
    )
