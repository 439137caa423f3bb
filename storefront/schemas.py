# storefront/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

ProductStatusLit = Literal["active", "limited", "inactive"]
OrderStatusLit = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


# -----------------------------------------------------------------------------
# Auth / users
# -----------------------------------------------------------------------------
class RegisterIn(BaseModel):
    username: str = Field(..., min_length=3, max_length=80)
    password: str = Field(..., min_length=6, max_length=72)
    email: EmailStr
    role: Literal["wholesale", "retail"] = "retail"
    company_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class LoginIn(BaseModel):
    username: str
    password: str

class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: str
    company_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    model_config = {"from_attributes": True}

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------
class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: str = Field(..., min_length=1)

class CategoryPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, min_length=1)

    @field_validator("name", "icon")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v

class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: str
    model_config = {"from_attributes": True}


class UnitOption(BaseModel):
    value: str = Field(..., min_length=1)
    label: str
    price: float = Field(..., ge=0)

class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: int
    retail_price: float = Field(..., gt=0)
    wholesale_price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    unit: str = Field(..., min_length=1)
    unit_options: List[UnitOption] = Field(..., min_length=1)
    status: ProductStatusLit = "active"
    is_bestseller: bool = False
    is_limited: bool = False
    is_organic: bool = False
    is_local: bool = False
    origin: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    original_price: Optional[float] = Field(None, ge=0)

class ProductPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[int] = None
    retail_price: Optional[float] = Field(None, gt=0)
    wholesale_price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1)
    unit_options: Optional[List[UnitOption]] = Field(None, min_length=1)
    status: Optional[ProductStatusLit] = None
    is_bestseller: Optional[bool] = None
    is_limited: Optional[bool] = None
    is_organic: Optional[bool] = None
    is_local: Optional[bool] = None
    origin: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    original_price: Optional[float] = Field(None, ge=0)

    # columns that cannot be cleared, only omitted
    @field_validator(
        "name", "category_id", "retail_price", "wholesale_price", "stock", "unit",
        "unit_options", "status", "is_bestseller", "is_limited", "is_organic", "is_local",
    )
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v

class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: int
    retail_price: float
    wholesale_price: float
    stock: int
    unit: str
    unit_options: List[UnitOption] = []
    status: str
    is_bestseller: bool = False
    is_limited: bool = False
    is_organic: bool = False
    is_local: bool = False
    origin: Optional[str] = None
    rating: Optional[float] = None
    original_price: Optional[float] = None
    # resolved for the caller's role
    unit_price: float
    discount_percent: int = 0


# -----------------------------------------------------------------------------
# Cart
# -----------------------------------------------------------------------------
class CartItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    unit_type: str = Field(..., min_length=1)

class CartItemPatch(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    unit_type: Optional[str] = Field(None, min_length=1)

class CartItemOut(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int
    unit_type: str
    product: Optional[ProductOut] = None

class CartTotalsOut(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int


# -----------------------------------------------------------------------------
# Orders
# -----------------------------------------------------------------------------
class OrderIn(BaseModel):
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None
    payment_method: Optional[str] = None

class OrderPatch(BaseModel):
    status: Optional[OrderStatusLit] = None
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None
    payment_method: Optional[str] = None

class OrderItemOut(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: float
    unit_type: str
    product: Optional[ProductOut] = None

class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    total_amount: float
    order_date: datetime
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None
    payment_method: Optional[str] = None
    items: List[OrderItemOut] = []


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
class DashboardOut(BaseModel):
    total_products: int
    total_orders: int
    total_users: int
    total_revenue: float
    orders_by_status: Dict[str, int]
    recent_orders: List[OrderOut] = []


# -----------------------------------------------------------------------------
# Chatbot
# -----------------------------------------------------------------------------
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatbotIn(BaseModel):
    question: str = ""
    history: List[ChatMessage] = []

class ChatbotOut(BaseModel):
    response: str
