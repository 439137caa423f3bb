# storefront/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import cart as cart_service
from . import chatbot, config
from . import orders as order_service
from .auth import (
    authenticate,
    create_access_token,
    get_current_admin,
    get_current_token,
    get_current_user,
    get_optional_user,
    get_password_hash,
    revoke_token,
)
from .config import CORS_ORIGINS, SEED_DATA
from .database import Base, SessionLocal, engine
from .errors import NotFound, StorefrontError, ValidationError
from .logger import get_logger
from .models import OrderStatus, Product, User, UserRole
from .pricing import discount_percent, price_warnings, unit_price
from .schemas import (
    CartItemIn,
    CartItemOut,
    CartItemPatch,
    CartTotalsOut,
    CategoryIn,
    CategoryOut,
    CategoryPatch,
    ChatbotIn,
    ChatbotOut,
    DashboardOut,
    LoginIn,
    OrderIn,
    OrderItemOut,
    OrderOut,
    OrderPatch,
    ProductIn,
    ProductOut,
    ProductPatch,
    RegisterIn,
    TokenOut,
    UserOut,
)
from .seed import seed
from .storage import Storage, get_storage

_logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# DB: create tables, load demo data on startup
# -----------------------------------------------------------------------------
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if SEED_DATA:
        db = SessionLocal()
        try:
            seed(Storage(db))
        finally:
            db.close()
    yield


# -----------------------------------------------------------------------------
# App + CORS
# -----------------------------------------------------------------------------
app = FastAPI(title="GreenGrocer Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------------
@app.exception_handler(StorefrontError)
def storefront_error_handler(_request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def request_validation_handler(_request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content=ValidationError("Invalid request data", errors).to_dict())


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception):
    _logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _role(user: Optional[User]) -> str:
    return user.role if user else UserRole.RETAIL.value


def _product_out(pr: Optional[Product], role: str) -> Optional[ProductOut]:
    if pr is None:
        return None
    return ProductOut(
        id=pr.id,
        name=pr.name,
        description=pr.description,
        image=pr.image,
        category_id=pr.category_id,
        retail_price=pr.retail_price,
        wholesale_price=pr.wholesale_price,
        stock=pr.stock,
        unit=pr.unit,
        unit_options=pr.unit_options or [],
        status=pr.status,
        is_bestseller=bool(pr.is_bestseller),
        is_limited=bool(pr.is_limited),
        is_organic=bool(pr.is_organic),
        is_local=bool(pr.is_local),
        origin=pr.origin,
        rating=pr.rating,
        original_price=pr.original_price,
        unit_price=unit_price(pr, role),
        discount_percent=discount_percent(pr, role),
    )


def _cart_item_out(item, product, role: str) -> CartItemOut:
    return CartItemOut(
        id=item.id,
        user_id=item.user_id,
        product_id=item.product_id,
        quantity=item.quantity,
        unit_type=item.unit_type,
        product=_product_out(product, role),
    )


def _order_out(detail: order_service.OrderDetail, role: str) -> OrderOut:
    o = detail.order
    return OrderOut(
        id=o.id,
        user_id=o.user_id,
        status=o.status,
        total_amount=float(o.total_amount),
        order_date=o.order_date,
        shipping_address=o.shipping_address,
        billing_address=o.billing_address,
        payment_method=o.payment_method,
        items=[
            OrderItemOut(
                id=line.item.id,
                order_id=line.item.order_id,
                product_id=line.item.product_id,
                quantity=line.item.quantity,
                unit_price=float(line.item.unit_price),
                unit_type=line.item.unit_type,
                product=_product_out(line.product, role),
            )
            for line in detail.lines
        ],
    )


def _warn_prices(pr: Product) -> None:
    for warning in price_warnings([pr]):
        _logger.warning(warning)


def _check_category(storage: Storage, category_id: Optional[int]) -> None:
    if category_id is not None and storage.get_category(category_id) is None:
        raise ValidationError(
            "Invalid product data",
            [{"loc": ["body", "category_id"], "msg": f"Category {category_id} does not exist", "type": "value_error"}],
        )


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------
@app.post("/api/register", response_model=TokenOut, status_code=201)
def register(payload: RegisterIn, storage: Storage = Depends(get_storage)):
    if storage.get_user_by_username(payload.username):
        raise ValidationError(
            "Username already exists",
            [{"loc": ["body", "username"], "msg": "Username already exists", "type": "unique"}],
        )
    data = payload.model_dump()
    data["password"] = get_password_hash(payload.password)
    user = storage.create_user(**data)
    storage.commit()
    _logger.info(f"Registered {user.role} account '{user.username}'")
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"access_token": token, "token_type": "bearer", "user": UserOut.model_validate(user)}


@app.post("/api/login", response_model=TokenOut)
def login(payload: LoginIn, storage: Storage = Depends(get_storage)):
    user = authenticate(storage, payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"access_token": token, "token_type": "bearer", "user": UserOut.model_validate(user)}


@app.post("/api/logout", status_code=200)
def logout(token: str = Depends(get_current_token)):
    revoke_token(token)
    return {"ok": True}


@app.get("/api/user", response_model=UserOut)
def me(current: User = Depends(get_current_user)):
    return current


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------
@app.get("/api/categories", response_model=List[CategoryOut])
def list_categories(storage: Storage = Depends(get_storage)):
    return storage.list_categories()


@app.get("/api/categories/{cid}", response_model=CategoryOut)
def get_category(cid: int, storage: Storage = Depends(get_storage)):
    category = storage.get_category(cid)
    if not category:
        raise NotFound("Category not found")
    return category


@app.post("/api/categories", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryIn,
    _: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    category = storage.create_category(**payload.model_dump())
    storage.commit()
    return category


@app.put("/api/categories/{cid}", response_model=CategoryOut)
def update_category(
    cid: int,
    payload: CategoryPatch,
    _: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    category = storage.update_category(cid, payload.model_dump(exclude_unset=True))
    if not category:
        raise NotFound("Category not found")
    storage.commit()
    return category


@app.delete("/api/categories/{cid}", status_code=204)
def delete_category(
    cid: int,
    _: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    if not storage.delete_category(cid):
        raise NotFound("Category not found")
    storage.commit()
    return Response(status_code=204)


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------
@app.get("/api/products", response_model=List[ProductOut])
def list_products(
    category_id: Optional[int] = None,
    q: Optional[str] = None,
    organic: Optional[bool] = None,
    local: Optional[bool] = None,
    bestseller: Optional[bool] = None,
    current: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage),
):
    if category_id is not None:
        items = storage.list_products_by_category(category_id)
    else:
        items = storage.list_products()
    if q:
        needle = q.strip().lower()
        items = [
            p for p in items
            if needle in p.name.lower() or needle in (p.description or "").lower()
        ]
    if organic is not None:
        items = [p for p in items if bool(p.is_organic) == organic]
    if local is not None:
        items = [p for p in items if bool(p.is_local) == local]
    if bestseller is not None:
        items = [p for p in items if bool(p.is_bestseller) == bestseller]
    role = _role(current)
    return [_product_out(p, role) for p in items]


@app.get("/api/products/{pid}", response_model=ProductOut)
def get_product(
    pid: int,
    current: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage),
):
    pr = storage.get_product(pid)
    if not pr:
        raise NotFound("Product not found")
    return _product_out(pr, _role(current))


@app.post("/api/products", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductIn,
    current: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    _check_category(storage, payload.category_id)
    pr = storage.create_product(**payload.model_dump())
    storage.commit()
    _warn_prices(pr)
    return _product_out(pr, current.role)


@app.put("/api/products/{pid}", response_model=ProductOut)
def update_product(
    pid: int,
    payload: ProductPatch,
    current: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    data = payload.model_dump(exclude_unset=True)
    _check_category(storage, data.get("category_id"))
    pr = storage.update_product(pid, data)
    if not pr:
        raise NotFound("Product not found")
    storage.commit()
    _warn_prices(pr)
    return _product_out(pr, current.role)


@app.delete("/api/products/{pid}", status_code=204)
def delete_product(
    pid: int,
    _: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    if not storage.delete_product(pid):
        raise NotFound("Product not found")
    storage.commit()
    return Response(status_code=204)


# -----------------------------------------------------------------------------
# Cart
# -----------------------------------------------------------------------------
@app.get("/api/cart", response_model=List[CartItemOut])
def get_cart(current: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    return [
        _cart_item_out(line.item, line.product, current.role)
        for line in cart_service.cart_lines(storage, current.id)
    ]


@app.get("/api/cart/totals", response_model=CartTotalsOut)
def get_cart_totals(current: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    lines = cart_service.cart_lines(storage, current.id)
    totals = cart_service.compute_totals(lines, current.role)
    return CartTotalsOut(
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        total=totals.total,
        item_count=sum(line.item.quantity for line in lines),
    )


@app.post("/api/cart", response_model=CartItemOut, status_code=201)
def add_to_cart(
    payload: CartItemIn,
    response: Response,
    current: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    item, created = cart_service.add_item(
        storage, current.id, payload.product_id, payload.quantity, payload.unit_type
    )
    storage.commit()
    if not created:
        response.status_code = 200
    return _cart_item_out(item, storage.get_product(item.product_id), current.role)


@app.put("/api/cart/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: int,
    payload: CartItemPatch,
    current: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    item = cart_service.update_item(storage, current.id, item_id, payload.quantity, payload.unit_type)
    storage.commit()
    return _cart_item_out(item, storage.get_product(item.product_id), current.role)


@app.delete("/api/cart/{item_id}", status_code=204)
def remove_cart_item(
    item_id: int,
    current: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    cart_service.remove_item(storage, current.id, item_id)
    storage.commit()
    return Response(status_code=204)


@app.delete("/api/cart", status_code=204)
def clear_cart(current: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    cart_service.clear_cart(storage, current.id)
    storage.commit()
    return Response(status_code=204)


# -----------------------------------------------------------------------------
# Orders
# -----------------------------------------------------------------------------
@app.get("/api/orders", response_model=List[OrderOut])
def list_orders(
    status: Optional[str] = None,
    current: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return [_order_out(d, current.role) for d in order_service.list_orders(storage, current, status)]


@app.get("/api/orders/{oid}", response_model=OrderOut)
def get_order(oid: int, current: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    order = storage.get_order(oid)
    if not order:
        raise NotFound("Order not found")
    if current.role != UserRole.ADMIN and order.user_id != current.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return _order_out(order_service.order_detail(storage, order), current.role)


@app.post("/api/orders", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderIn,
    current: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    detail = order_service.place_order(
        storage,
        current,
        shipping_address=payload.shipping_address,
        billing_address=payload.billing_address,
        payment_method=payload.payment_method,
    )
    return _order_out(detail, current.role)


@app.put("/api/orders/{oid}", response_model=OrderOut)
def update_order(
    oid: int,
    payload: OrderPatch,
    current: User = Depends(get_current_admin),
    storage: Storage = Depends(get_storage),
):
    detail = order_service.update_order(storage, oid, payload.model_dump(exclude_unset=True))
    return _order_out(detail, current.role)


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
@app.get("/api/users", response_model=List[UserOut])
def list_users(_: User = Depends(get_current_admin), storage: Storage = Depends(get_storage)):
    return storage.list_users()


@app.get("/api/admin/dashboard", response_model=DashboardOut)
def dashboard(current: User = Depends(get_current_admin), storage: Storage = Depends(get_storage)):
    orders = storage.list_orders()
    by_status = {s.value: 0 for s in OrderStatus}
    for o in orders:
        by_status[o.status] = by_status.get(o.status, 0) + 1
    recent = sorted(orders, key=lambda o: o.id, reverse=True)[:5]
    return DashboardOut(
        total_products=storage.count_products(),
        total_orders=len(orders),
        total_users=len(storage.list_users()),
        total_revenue=round(sum(float(o.total_amount) for o in orders), 2),
        orders_by_status=by_status,
        recent_orders=[_order_out(order_service.order_detail(storage, o), current.role) for o in recent],
    )


# -----------------------------------------------------------------------------
# Chatbot
# -----------------------------------------------------------------------------
@app.post("/api/chatbot", response_model=ChatbotOut)
def ask_chatbot(payload: ChatbotIn):
    history = [m.model_dump() for m in payload.history]
    return {"response": chatbot.ask(payload.question, history)}


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"ok": True, "chatbot": bool(config.OPENAI_API_KEY)}
