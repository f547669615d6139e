from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


PLACEHOLDER_IMAGE_URL = "/static/img/placeholder.svg"

# Initial catalogue, inserted by the 0002 data migration and `manage.py seed_products`
SEED_PRODUCTS = [
    {
        "id": "prod_1",
        "name": "Premium T-Shirt",
        "description": "High quality cotton t-shirt with logo",
        "price": Decimal("29.99"),
        "image_url": PLACEHOLDER_IMAGE_URL,
    },
    {
        "id": "prod_2",
        "name": "Designer Jeans",
        "description": "Comfortable jeans for everyday wear",
        "price": Decimal("89.99"),
        "image_url": PLACEHOLDER_IMAGE_URL,
    },
    {
        "id": "prod_3",
        "name": "Running Shoes",
        "description": "Lightweight shoes for optimal performance",
        "price": Decimal("119.99"),
        "image_url": PLACEHOLDER_IMAGE_URL,
    },
]


class Product(models.Model):
    # Stable, human-assigned identifier (e.g. "prod_1")
    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    image_url = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["id"]
        app_label = "marketplace"

    @property
    def formatted_price(self) -> str:
        return f"${self.price:.2f}"

    def __str__(self):
        return self.name
