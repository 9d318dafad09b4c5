"""Admin registrations for catalog app."""

from django.contrib import admin
from inventory.services import register_stock

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "price", "unit", "status", "updated_at")
    list_filter = ("status", "category")
    search_fields = ("name", "description")

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if not change:
            # Stock is added afterwards through the restock endpoint
            register_stock(product_id=obj.id)
