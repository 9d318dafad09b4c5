"""Seed the demo grocery catalog with opening stock.

Re-running is idempotent; existing products are matched by name and left
untouched, so stock is never restocked twice.
"""

from decimal import Decimal

from catalog.models import Product
from catalog.services import create_product
from django.core.management.base import BaseCommand
from django.db import transaction

PRODUCTS = [
    {
        "name": "Fresh Apples",
        "price": "3.99",
        "category": "Fruits",
        "unit": "lb",
        "description": "Fresh red apples, perfect for snacking",
        "stock": 50,
    },
    {
        "name": "Organic Bananas",
        "price": "2.49",
        "category": "Fruits",
        "unit": "bunch",
        "description": "Organic yellow bananas, rich in potassium",
        "stock": 30,
    },
    {
        "name": "Whole Milk",
        "price": "4.29",
        "category": "Dairy",
        "unit": "gallon",
        "description": "Fresh whole milk, 1 gallon",
        "stock": 25,
    },
    {
        "name": "Sourdough Bread",
        "price": "5.99",
        "category": "Bakery",
        "unit": "loaf",
        "description": "Freshly baked sourdough bread",
        "stock": 15,
    },
    {
        "name": "Chicken Breast",
        "price": "8.99",
        "category": "Meat",
        "unit": "lb",
        "description": "Fresh boneless chicken breast",
        "stock": 20,
    },
    {
        "name": "Spinach",
        "price": "2.99",
        "category": "Vegetables",
        "unit": "bag",
        "description": "Fresh baby spinach leaves",
        "stock": 35,
    },
]


class Command(BaseCommand):
    help = "Seed the demo grocery catalog (products with opening stock)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")
        created = 0
        for row in PRODUCTS:
            if Product.objects.filter(name=row["name"]).exists():
                continue
            create_product(
                name=row["name"],
                price=Decimal(row["price"]),
                category=row["category"],
                unit=row["unit"],
                description=row["description"],
                initial_stock=row["stock"],
            )
            created += 1
        self.stdout.write(self.style.SUCCESS(f"Catalog seeded: {created} created, {len(PRODUCTS) - created} existing."))
