# Inserts the initial catalogue. Existing rows are left untouched.

from decimal import Decimal

from django.db import migrations


PLACEHOLDER_IMAGE_URL = "/static/img/placeholder.svg"

PRODUCTS = [
    ("prod_1", "Premium T-Shirt", "High quality cotton t-shirt with logo", Decimal("29.99")),
    ("prod_2", "Designer Jeans", "Comfortable jeans for everyday wear", Decimal("89.99")),
    ("prod_3", "Running Shoes", "Lightweight shoes for optimal performance", Decimal("119.99")),
]


def seed_products(apps, schema_editor):
    Product = apps.get_model("marketplace", "Product")
    for product_id, name, description, price in PRODUCTS:
        Product.objects.get_or_create(
            id=product_id,
            defaults={
                "name": name,
                "description": description,
                "price": price,
                "image_url": PLACEHOLDER_IMAGE_URL,
            },
        )


def unseed_products(apps, schema_editor):
    Product = apps.get_model("marketplace", "Product")
    Product.objects.filter(id__in=[product_id for product_id, *_ in PRODUCTS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("marketplace", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_products, unseed_products),
    ]
