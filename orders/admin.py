from django.contrib import admin

from .models import IdempotencyKey, Order, OrderLine


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    readonly_fields = ("product", "product_name", "unit", "quantity", "unit_price")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "status", "customer_id", "total", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("number", "customer_id")
    date_hierarchy = "created_at"
    readonly_fields = ("reservation", "number", "customer_id", "total", "created_at", "voided_at")
    inlines = [OrderLineInline]


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at", "expires_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"
