# storefront/seed.py
from .auth import get_password_hash
from .logger import get_logger
from .models import UserRole
from .pricing import price_warnings
from .storage import Storage

_logger = get_logger(__name__)

CATEGORIES = [
    {"name": "Fruits", "description": "Fresh fruits from local and international farms", "icon": "fa-apple-alt"},
    {"name": "Vegetables", "description": "Organic and conventional vegetables", "icon": "fa-carrot"},
    {"name": "Dairy", "description": "Milk, cheese, and other dairy products", "icon": "fa-cheese"},
    {"name": "Bakery", "description": "Fresh bread and baked goods", "icon": "fa-bread-slice"},
    {"name": "Meat", "description": "Fresh and frozen meat products", "icon": "fa-drumstick-bite"},
    {"name": "Organic", "description": "Certified organic products", "icon": "fa-seedling"},
]

_IMG = "https://images.unsplash.com/{}?auto=format&fit=crop&w=500&h=350&q=80"

PRODUCTS = [
    {
        "name": "Organic Apples",
        "description": "Fresh, crisp organic apples straight from the orchard.",
        "image": _IMG.format("photo-1546630392-e4faba405ecb"),
        "category": "Fruits",
        "retail_price": 32.99,
        "wholesale_price": 24.99,
        "original_price": 29.99,
        "stock": 142,
        "unit": "case",
        "unit_options": [
            {"value": "case", "label": "Case (40 ct)", "price": 24.99},
            {"value": "half-case", "label": "Half Case (20 ct)", "price": 14.99},
            {"value": "lb", "label": "Per lb", "price": 2.49},
        ],
        "is_bestseller": True,
        "is_organic": True,
        "origin": "Washington",
        "rating": 4.8,
    },
    {
        "name": "Fresh Carrots",
        "description": "Sweet, crunchy carrots perfect for cooking or snacking.",
        "image": _IMG.format("photo-1601648764658-cf37e8c89b70"),
        "category": "Vegetables",
        "retail_price": 22.00,
        "wholesale_price": 18.50,
        "original_price": 22.00,
        "stock": 450,
        "unit": "case",
        "unit_options": [
            {"value": "case", "label": "Case (20 lb)", "price": 18.50},
            {"value": "half-case", "label": "Half Case (10 lb)", "price": 10.99},
            {"value": "lb", "label": "Per lb", "price": 1.99},
        ],
        "is_local": True,
        "rating": 4.5,
    },
    {
        "name": "Organic Strawberries",
        "description": "Sweet, juicy organic strawberries, freshly picked.",
        "image": _IMG.format("photo-1550989460-0adf9ea622e2"),
        "category": "Fruits",
        "retail_price": 38.00,
        "wholesale_price": 32.50,
        "original_price": 38.00,
        "stock": 84,
        "unit": "flat",
        "unit_options": [
            {"value": "flat", "label": "Flat (8 qt)", "price": 32.50},
            {"value": "half-flat", "label": "Half Flat (4 qt)", "price": 18.25},
            {"value": "quart", "label": "Single Quart", "price": 5.99},
        ],
        "is_limited": True,
        "is_organic": True,
        "origin": "California",
        "rating": 4.9,
    },
    {
        "name": "Premium Milk",
        "description": "Rich, creamy whole milk from grass-fed cows.",
        "image": _IMG.format("photo-1593114070538-560c8b7e83e5"),
        "category": "Dairy",
        "retail_price": 34.99,
        "wholesale_price": 28.99,
        "original_price": 34.99,
        "stock": 90,
        "unit": "case",
        "unit_options": [
            {"value": "case", "label": "Case (12 bottles)", "price": 28.99},
            {"value": "half-case", "label": "Half Case (6 bottles)", "price": 15.99},
            {"value": "bottle", "label": "Single Bottle", "price": 2.99},
        ],
        "is_local": True,
        "rating": 4.7,
    },
]

USERS = [
    {
        "username": "admin",
        "password": "admin123",
        "email": "admin@greengrocer.com",
        "role": UserRole.ADMIN.value,
        "first_name": "Admin",
        "last_name": "User",
    },
    {
        "username": "wholesale",
        "password": "wholesale123",
        "email": "wholesale@example.com",
        "role": UserRole.WHOLESALE.value,
        "company_name": "Restaurant Supply Co",
        "first_name": "Wholesale",
        "last_name": "Customer",
        "phone": "555-123-4567",
        "address": "123 Business St, Commerce City, CA 90001",
    },
    {
        "username": "retail",
        "password": "retail123",
        "email": "retail@example.com",
        "role": UserRole.RETAIL.value,
        "first_name": "Retail",
        "last_name": "Customer",
        "phone": "555-987-6543",
        "address": "456 Main St, Anytown, CA 90002",
    },
]


def seed(storage: Storage) -> bool:
    """Load the demo catalog and accounts into an empty store. Returns False if data exists."""
    if storage.list_categories():
        return False

    category_ids = {}
    for data in CATEGORIES:
        category_ids[data["name"]] = storage.create_category(**data).id

    products = []
    for data in PRODUCTS:
        data = dict(data)
        data["category_id"] = category_ids[data.pop("category")]
        products.append(storage.create_product(**data))
    for warning in price_warnings(products):
        _logger.warning(warning)

    for data in USERS:
        if storage.get_user_by_username(data["username"]):
            continue
        data = dict(data)
        data["password"] = get_password_hash(data["password"])
        storage.create_user(**data)

    storage.commit()
    _logger.info(f"Seeded {len(CATEGORIES)} categories, {len(PRODUCTS)} products, {len(USERS)} users")
    return True
