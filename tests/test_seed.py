import unittest

from storefront.auth import verify_password
from storefront.seed import seed

from support import StoreTestCase


class SeedTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        # seeding only fills an empty store
        self.storage.delete_category(self.category.id)
        self.storage.commit()

    def test_seed_loads_demo_data_once(self):
        self.assertTrue(seed(self.storage))
        self.assertFalse(seed(self.storage))

        names = [c.name for c in self.storage.list_categories()]
        self.assertEqual(names, ["Fruits", "Vegetables", "Dairy", "Bakery", "Meat", "Organic"])

        products = self.storage.list_products()
        self.assertEqual(len(products), 4)
        fruits = self.storage.get_category_by_name("Fruits")
        self.assertEqual(
            [p.name for p in self.storage.list_products_by_category(fruits.id)],
            ["Organic Apples", "Organic Strawberries"],
        )
        for p in products:
            self.assertLessEqual(p.wholesale_price, p.retail_price, p.name)
            self.assertTrue(p.unit_options)
            self.assertIn(p.unit, [o["value"] for o in p.unit_options])

        admin = self.storage.get_user_by_username("admin")
        self.assertEqual(admin.role, "admin")
        self.assertTrue(verify_password("admin123", admin.password))
        self.assertEqual(self.storage.get_user_by_username("wholesale").company_name, "Restaurant Supply Co")


if __name__ == "__main__":
    unittest.main()
