import unittest
from functools import lru_cache

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.auth import create_access_token, get_password_hash
from storefront.database import Base, get_db, make_engine
from storefront.main import app
from storefront.storage import Storage

PASSWORD = "secret123"

UNIT_OPTIONS = [
    {"value": "case", "label": "Case (40 ct)", "price": 24.99},
    {"value": "lb", "label": "Per lb", "price": 2.49},
]


@lru_cache(maxsize=1)
def password_hash() -> str:
    # bcrypt is slow; hash once for the whole run
    return get_password_hash(PASSWORD)


def product_data(**overrides):
    data = {
        "name": "Organic Apples",
        "description": "Fresh, crisp organic apples.",
        "image": None,
        "category_id": 1,
        "retail_price": 32.99,
        "wholesale_price": 24.99,
        "original_price": 29.99,
        "stock": 142,
        "unit": "case",
        "unit_options": UNIT_OPTIONS,
        "status": "active",
        "is_organic": True,
    }
    data.update(overrides)
    return data


class StoreTestCase(unittest.TestCase):
    """Fresh in-memory database per test, wired into the app through ``get_db``."""

    def setUp(self):
        self.engine = make_engine("sqlite://")
        # cleanups run last-in first-out: sessions close before the engine goes
        self.addCleanup(self.engine.dispose)
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        self.db = self.Session()
        self.storage = Storage(self.db)
        self.category = self.storage.create_category(name="Fruits", description=None, icon="fa-apple-alt")
        self.storage.commit()

    def tearDown(self):
        self.db.close()
        app.dependency_overrides.clear()

    # ---------- fixtures ----------

    def make_user(self, username: str, role: str = "retail", **extra):
        user = self.storage.create_user(
            username=username,
            password=password_hash(),
            email=f"{username}@greengrocer.com",
            role=role,
            **extra,
        )
        self.storage.commit()
        return user

    def make_product(self, **overrides):
        data = product_data(category_id=self.category.id)
        data.update(overrides)
        product = self.storage.create_product(**data)
        self.storage.commit()
        return product

    def auth(self, user) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    def fresh_storage(self) -> Storage:
        """Storage on a new session, so reads see what requests committed."""
        db = self.Session()
        self.addCleanup(db.close)
        return Storage(db)
