from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from marketplace.cart.domain.models.cart import MAX_LINE_QUANTITY
from marketplace.cart.infra.session_store import SESSION_CART_KEY
from marketplace.tests.factories import ProductFactory


class CartViewIntegrationTest(TestCase):
    def setUp(self):
        container.reset()
        self.client = APIClient()

        self.product1 = ProductFactory(price=Decimal("10.00"))
        self.product2 = ProductFactory(price=Decimal("5.00"))

        # URLs for the CartViewSet actions, using app_name and basename
        self.cart_list_url = reverse("marketplace:cart-list")
        self.cart_add_item_url = reverse("marketplace:cart-add-item")
        self.cart_remove_item_url = reverse("marketplace:cart-remove-item")
        self.cart_clear_url = reverse("marketplace:cart-clear")

    def add(self, product, quantity=None):
        payload = {"product_id": product.id if hasattr(product, "id") else product}
        if quantity is not None:
            payload["quantity"] = quantity
        return self.client.post(self.cart_add_item_url, payload, format="json")

    def test_list_empty_cart(self):
        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 0)
        self.assertTrue(response.data["is_empty"])
        self.assertEqual(response.data["total"], "0.00")

    def test_add_item_to_cart(self):
        response = self.add(self.product1, 2)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 1)
        self.assertEqual(response.data["items"][0]["product_id"], self.product1.id)
        self.assertEqual(response.data["items"][0]["quantity"], 2)
        self.assertEqual(response.data["total"], "20.00")

    def test_cart_persists_in_session(self):
        self.add(self.product1, 2)
        self.add(self.product2, 1)

        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.data["items_count"], 2)
        self.assertEqual(response.data["total"], "25.00")
        self.assertIn(SESSION_CART_KEY, self.client.session)

    def test_adding_twice_merges_quantity(self):
        self.add(self.product1, 1)
        response = self.add(self.product1, 3)

        self.assertEqual(response.data["items_count"], 1)
        self.assertEqual(response.data["items"][0]["quantity"], 4)

    def test_missing_or_bad_quantity_counts_as_one(self):
        self.add(self.product1)
        self.add(self.product1, "lots")
        response = self.add(self.product1, -3)

        self.assertEqual(response.data["items"][0]["quantity"], 3)

    def test_huge_quantity_is_capped(self):
        response = self.add(self.product1, 10**10)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items"][0]["quantity"], MAX_LINE_QUANTITY)
        self.assertEqual(response.data["total"], f"{Decimal('10.00') * MAX_LINE_QUANTITY:.2f}")

    def test_add_item_product_not_found(self):
        response = self.add("prod_missing", 1)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "product_not_found")

    def test_add_item_without_product_id(self):
        response = self.client.post(self.cart_add_item_url, {"quantity": 1}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_remove_item_from_cart(self):
        self.add(self.product1, 2)
        self.add(self.product2, 1)

        response = self.client.post(self.cart_remove_item_url, {"product_id": self.product1.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 1)
        self.assertEqual(response.data["total"], "5.00")

    def test_remove_absent_item_is_noop(self):
        self.add(self.product1, 1)

        response = self.client.post(self.cart_remove_item_url, {"product_id": "prod_other"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 1)

    def test_clear_cart(self):
        self.add(self.product1, 2)

        response = self.client.delete(self.cart_clear_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_empty"])
        self.assertEqual(self.client.get(self.cart_list_url).data["items_count"], 0)

    def test_carts_are_per_session(self):
        self.add(self.product1, 2)

        other = APIClient()
        response = other.get(self.cart_list_url)

        self.assertEqual(response.data["items_count"], 0)
