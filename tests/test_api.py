import unittest
from datetime import datetime, timedelta, timezone

from storefront.auth import RevokedTokens

from support import PASSWORD, StoreTestCase, product_data


class AuthApiTestCase(StoreTestCase):
    def test_register_login_me_logout(self):
        r = self.client.post("/api/register", json={
            "username": "bistro",
            "password": "bistro-pass",
            "email": "orders@bistro.com",
            "role": "wholesale",
            "company_name": "Bistro LLC",
        })
        self.assertEqual(r.status_code, 201, r.text)
        body = r.json()
        self.assertEqual(body["user"]["role"], "wholesale")
        self.assertNotIn("password", body["user"])

        r = self.client.post("/api/login", json={"username": "bistro", "password": "wrong-pass"})
        self.assertEqual(r.status_code, 401)

        r = self.client.post("/api/login", json={"username": "bistro", "password": "bistro-pass"})
        self.assertEqual(r.status_code, 200)
        headers = {"Authorization": f"Bearer {r.json()['access_token']}"}

        r = self.client.get("/api/user", headers=headers)
        self.assertEqual(r.json()["company_name"], "Bistro LLC")

        self.assertEqual(self.client.post("/api/logout", headers=headers).status_code, 200)
        self.assertEqual(self.client.get("/api/user", headers=headers).status_code, 401)

    def test_duplicate_username(self):
        self.make_user("retail")
        r = self.client.post("/api/register", json={
            "username": "retail", "password": "whatever1", "email": "x@greengrocer.com",
        })
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["errors"][0]["loc"], ["body", "username"])

    def test_cannot_self_register_as_admin(self):
        r = self.client.post("/api/register", json={
            "username": "sneaky", "password": "whatever1", "email": "x@greengrocer.com", "role": "admin",
        })
        self.assertEqual(r.status_code, 400)
        self.assertIsNone(self.fresh_storage().get_user_by_username("sneaky"))

    def test_login_with_stored_hash(self):
        self.make_user("retail")
        r = self.client.post("/api/login", json={"username": "retail", "password": PASSWORD})
        self.assertEqual(r.status_code, 200)

    def test_bad_token(self):
        r = self.client.get("/api/cart", headers={"Authorization": "Bearer nope"})
        self.assertEqual(r.status_code, 401)


class AccessControlTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user("admin", "admin")
        self.retail = self.make_user("retail", "retail")
        self.wholesale = self.make_user("wholesale", "wholesale")

    def test_protected_routes_require_login(self):
        for method, path in [
            ("get", "/api/cart"),
            ("post", "/api/orders"),
            ("get", "/api/orders"),
            ("get", "/api/users"),
            ("post", "/api/categories"),
        ]:
            r = getattr(self.client, method)(path)
            self.assertEqual(r.status_code, 401, f"{method} {path}")

    def test_admin_only_routes_forbid_customers(self):
        product = self.make_product()
        for user in (self.retail, self.wholesale):
            h = self.auth(user)
            self.assertEqual(self.client.get("/api/users", headers=h).status_code, 403)
            self.assertEqual(self.client.get("/api/admin/dashboard", headers=h).status_code, 403)
            self.assertEqual(
                self.client.post("/api/categories", json={"name": "Meat", "icon": "fa-drumstick-bite"}, headers=h).status_code,
                403,
            )
            self.assertEqual(self.client.put(f"/api/products/{product.id}", json={"stock": 1}, headers=h).status_code, 403)
            self.assertEqual(self.client.delete(f"/api/products/{product.id}", headers=h).status_code, 403)
            self.assertEqual(self.client.put("/api/orders/1", json={"status": "shipped"}, headers=h).status_code, 403)

    def test_user_list_strips_passwords(self):
        r = self.client.get("/api/users", headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        users = r.json()
        self.assertEqual([u["username"] for u in users], ["admin", "retail", "wholesale"])
        for u in users:
            self.assertNotIn("password", u)


class CatalogApiTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user("admin", "admin")
        self.h = self.auth(self.admin)

    def test_category_crud(self):
        r = self.client.post("/api/categories", json={"name": "Dairy", "icon": "fa-cheese"}, headers=self.h)
        self.assertEqual(r.status_code, 201)
        cid = r.json()["id"]
        self.assertGreater(cid, self.category.id)

        r = self.client.put(f"/api/categories/{cid}", json={"description": "Milk and cheese"}, headers=self.h)
        self.assertEqual(r.json()["description"], "Milk and cheese")
        self.assertEqual(r.json()["icon"], "fa-cheese")

        names = [c["name"] for c in self.client.get("/api/categories").json()]
        self.assertEqual(names, ["Fruits", "Dairy"])

        self.assertEqual(self.client.delete(f"/api/categories/{cid}", headers=self.h).status_code, 204)
        self.assertEqual(self.client.delete(f"/api/categories/{cid}", headers=self.h).status_code, 404)
        self.assertEqual(self.client.get(f"/api/categories/{cid}").status_code, 404)

    def test_category_validation(self):
        r = self.client.post("/api/categories", json={"name": "Dairy"}, headers=self.h)
        self.assertEqual(r.status_code, 400)
        self.assertIn(["body", "icon"], [e["loc"] for e in r.json()["errors"]])

    def test_product_crud_and_role_pricing(self):
        r = self.client.post("/api/products", json=product_data(category_id=self.category.id), headers=self.h)
        self.assertEqual(r.status_code, 201, r.text)
        pid = r.json()["id"]
        self.assertEqual(r.json()["unit_options"][0]["value"], "case")

        anon = self.client.get(f"/api/products/{pid}").json()
        self.assertEqual(anon["unit_price"], 32.99)
        self.assertEqual(anon["discount_percent"], -10)

        wholesale = self.make_user("wholesale", "wholesale")
        seen = self.client.get(f"/api/products/{pid}", headers=self.auth(wholesale)).json()
        self.assertEqual(seen["unit_price"], 24.99)
        self.assertEqual(seen["discount_percent"], 17)

        r = self.client.put(f"/api/products/{pid}", json={"stock": 5, "status": "limited"}, headers=self.h)
        self.assertEqual(r.json()["stock"], 5)
        self.assertEqual(r.json()["status"], "limited")
        self.assertEqual(r.json()["name"], "Organic Apples")

        self.assertEqual(self.client.delete(f"/api/products/{pid}", headers=self.h).status_code, 204)
        self.assertEqual(self.client.get(f"/api/products/{pid}").status_code, 404)

    def test_product_validation(self):
        bad = product_data(category_id=self.category.id, retail_price=0, unit_options=[])
        r = self.client.post("/api/products", json=bad, headers=self.h)
        self.assertEqual(r.status_code, 400)
        locs = [e["loc"] for e in r.json()["errors"]]
        self.assertIn(["body", "retail_price"], locs)
        self.assertIn(["body", "unit_options"], locs)

        r = self.client.post("/api/products", json=product_data(category_id=999), headers=self.h)
        self.assertEqual(r.status_code, 400)

        r = self.client.put("/api/products/999", json={"stock": 1}, headers=self.h)
        self.assertEqual(r.status_code, 404)

    def test_null_for_required_columns_is_rejected(self):
        product = self.make_product()
        for body in ({"name": None}, {"retail_price": None}, {"category_id": None},
                     {"unit_options": None}, {"is_organic": None}):
            r = self.client.put(f"/api/products/{product.id}", json=body, headers=self.h)
            self.assertEqual(r.status_code, 400, body)
            field = next(iter(body))
            self.assertIn(["body", field], [e["loc"] for e in r.json()["errors"]])

        r = self.client.put(f"/api/categories/{self.category.id}", json={"name": None}, headers=self.h)
        self.assertEqual(r.status_code, 400)
        r = self.client.put(f"/api/categories/{self.category.id}", json={"icon": None}, headers=self.h)
        self.assertEqual(r.status_code, 400)

        # nullable columns can still be cleared
        r = self.client.put(f"/api/products/{product.id}", json={"origin": None, "original_price": None}, headers=self.h)
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(r.json()["original_price"])
        r = self.client.put(f"/api/categories/{self.category.id}", json={"description": None}, headers=self.h)
        self.assertEqual(r.status_code, 200)

        stored = self.fresh_storage().get_product(product.id)
        self.assertEqual(stored.name, "Organic Apples")
        self.assertEqual(stored.retail_price, 32.99)

    def test_catalog_ignores_bad_or_ended_sessions(self):
        product = self.make_product()
        r = self.client.get("/api/products", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()[0]["unit_price"], 32.99)

        wholesale = self.make_user("wholesale", "wholesale")
        h = self.auth(wholesale)
        self.assertEqual(self.client.get(f"/api/products/{product.id}", headers=h).json()["unit_price"], 24.99)
        self.client.post("/api/logout", headers=h)
        r = self.client.get(f"/api/products/{product.id}", headers=h)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["unit_price"], 32.99)
        # protected routes still refuse the ended session
        self.assertEqual(self.client.get("/api/cart", headers=h).status_code, 401)

    def test_product_filters(self):
        veg = self.storage.create_category(name="Vegetables", icon="fa-carrot")
        self.storage.commit()
        self.make_product()
        self.make_product(name="Fresh Carrots", category_id=veg.id, is_organic=False, is_local=True,
                          description="Sweet, crunchy carrots")

        def names(**params):
            return [p["name"] for p in self.client.get("/api/products", params=params).json()]

        self.assertEqual(names(), ["Organic Apples", "Fresh Carrots"])
        self.assertEqual(names(category_id=veg.id), ["Fresh Carrots"])
        self.assertEqual(names(q="crunchy"), ["Fresh Carrots"])
        self.assertEqual(names(organic="true"), ["Organic Apples"])
        self.assertEqual(names(local="true"), ["Fresh Carrots"])
        self.assertEqual(self.client.get("/api/products", params={"category_id": "abc"}).status_code, 400)


class CartAndOrderApiTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user("admin", "admin")
        self.retail = self.make_user("retail", "retail", address="456 Main St")
        self.wholesale = self.make_user("wholesale", "wholesale")
        self.product = self.make_product(retail_price=25.0, wholesale_price=20.0)

    def test_cart_merge_over_http(self):
        h = self.auth(self.retail)
        r = self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 2, "unit_type": "case"}, headers=h)
        self.assertEqual(r.status_code, 201)
        r = self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 3, "unit_type": "case"}, headers=h)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["quantity"], 5)

        items = self.client.get("/api/cart", headers=h).json()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["product"]["name"], "Organic Apples")

    def test_cart_validation_and_missing_product(self):
        h = self.auth(self.retail)
        r = self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 0, "unit_type": "case"}, headers=h)
        self.assertEqual(r.status_code, 400)
        r = self.client.post("/api/cart", json={"product_id": 999, "quantity": 1, "unit_type": "case"}, headers=h)
        self.assertEqual(r.status_code, 404)

    def test_cart_ownership(self):
        r = self.client.post(
            "/api/cart", json={"product_id": self.product.id, "quantity": 1, "unit_type": "case"},
            headers=self.auth(self.retail),
        )
        item_id = r.json()["id"]
        other = self.auth(self.wholesale)
        self.assertEqual(self.client.put(f"/api/cart/{item_id}", json={"quantity": 4}, headers=other).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/cart/{item_id}", headers=other).status_code, 404)

        mine = self.auth(self.retail)
        self.assertEqual(self.client.put(f"/api/cart/{item_id}", json={"quantity": 4}, headers=mine).json()["quantity"], 4)
        self.assertEqual(self.client.delete(f"/api/cart/{item_id}", headers=mine).status_code, 204)
        self.assertEqual(self.client.delete("/api/cart", headers=mine).status_code, 204)

    def test_cart_totals(self):
        h = self.auth(self.retail)
        self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 2, "unit_type": "case"}, headers=h)
        totals = self.client.get("/api/cart/totals", headers=h).json()
        self.assertEqual(totals, {"subtotal": 50.0, "tax": 3.5, "shipping": 10.0, "total": 63.5, "item_count": 2})

        self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 6, "unit_type": "lb"}, headers=self.auth(self.wholesale))
        totals = self.client.get("/api/cart/totals", headers=self.auth(self.wholesale)).json()
        self.assertEqual(totals["subtotal"], 120.0)
        self.assertEqual(totals["shipping"], 0.0)
        self.assertAlmostEqual(totals["total"], 128.4)

    def test_checkout_flow(self):
        h = self.auth(self.retail)
        r = self.client.post("/api/orders", json={}, headers=h)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["detail"], "Cart is empty")
        self.assertEqual(self.fresh_storage().list_orders(), [])

        self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 2, "unit_type": "case"}, headers=h)
        r = self.client.post("/api/orders", json={"shipping_address": "456 Main St", "payment_method": "card"}, headers=h)
        self.assertEqual(r.status_code, 201, r.text)
        order = r.json()
        self.assertEqual(order["status"], "pending")
        self.assertEqual(order["total_amount"], 50.0)
        self.assertEqual([(i["quantity"], i["unit_price"], i["unit_type"]) for i in order["items"]], [(2, 25.0, "case")])
        self.assertEqual(self.client.get("/api/cart", headers=h).json(), [])

        # later price change leaves the order alone
        self.client.put(f"/api/products/{self.product.id}", json={"retail_price": 40.0}, headers=self.auth(self.admin))
        again = self.client.get(f"/api/orders/{order['id']}", headers=h).json()
        self.assertEqual(again["items"][0]["unit_price"], 25.0)
        self.assertEqual(again["items"][0]["product"]["retail_price"], 40.0)
        self.assertEqual(again["total_amount"], 50.0)

    def test_order_visibility(self):
        h = self.auth(self.retail)
        self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 1, "unit_type": "case"}, headers=h)
        oid = self.client.post("/api/orders", json={}, headers=h).json()["id"]

        self.assertEqual(self.client.get(f"/api/orders/{oid}", headers=self.auth(self.wholesale)).status_code, 403)
        self.assertEqual(self.client.get("/api/orders", headers=self.auth(self.wholesale)).json(), [])
        self.assertEqual(len(self.client.get("/api/orders", headers=self.auth(self.admin)).json()), 1)
        self.assertEqual(self.client.get("/api/orders/999", headers=h).status_code, 404)

    def test_admin_status_updates(self):
        h = self.auth(self.retail)
        self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 1, "unit_type": "case"}, headers=h)
        oid = self.client.post("/api/orders", json={}, headers=h).json()["id"]
        admin = self.auth(self.admin)

        r = self.client.put(f"/api/orders/{oid}", json={"status": "processing"}, headers=admin)
        self.assertEqual(r.json()["status"], "processing")
        r = self.client.put(f"/api/orders/{oid}", json={"status": "pending"}, headers=admin)
        self.assertEqual(r.status_code, 400)
        r = self.client.put(f"/api/orders/{oid}", json={"status": "teleported"}, headers=admin)
        self.assertEqual(r.status_code, 400)
        r = self.client.put(f"/api/orders/{oid}", json={"status": "cancelled"}, headers=admin)
        self.assertEqual(r.json()["status"], "cancelled")
        self.assertEqual(self.client.put("/api/orders/999", json={"status": "shipped"}, headers=admin).status_code, 404)

        self.assertEqual(
            [o["status"] for o in self.client.get("/api/orders", params={"status": "cancelled"}, headers=admin).json()],
            ["cancelled"],
        )

    def test_dashboard(self):
        for user in (self.retail, self.wholesale):
            h = self.auth(user)
            self.client.post("/api/cart", json={"product_id": self.product.id, "quantity": 2, "unit_type": "case"}, headers=h)
            self.client.post("/api/orders", json={}, headers=h)

        r = self.client.get("/api/admin/dashboard", headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        stats = r.json()
        self.assertEqual(stats["total_products"], 1)
        self.assertEqual(stats["total_orders"], 2)
        self.assertEqual(stats["total_users"], 3)
        self.assertEqual(stats["total_revenue"], 90.0)
        self.assertEqual(stats["orders_by_status"]["pending"], 2)
        self.assertEqual([o["user_id"] for o in stats["recent_orders"]], [self.wholesale.id, self.retail.id])


class RevokedTokensTestCase(unittest.TestCase):
    def test_prune_drops_expired_entries(self):
        store = RevokedTokens(prune_interval=timedelta(hours=24))
        now = datetime.now(timezone.utc)
        store.revoke("old", now - timedelta(minutes=1))
        store.revoke("live", now + timedelta(hours=1))
        self.assertTrue(store.is_revoked("old"))

        # interval not reached yet
        self.assertEqual(store.prune(now), 0)
        self.assertEqual(store.prune(now + timedelta(hours=25)), 2)
        self.assertEqual(len(store), 0)


if __name__ == "__main__":
    unittest.main()
