"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockItem, StockLedgerEntry


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "available", "held", "sold", "updated_at")
    search_fields = ("product__name",)
    # Counters change only through inventory services
    readonly_fields = ("available", "held", "sold")


@admin.register(StockLedgerEntry)
class StockLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "reason", "delta", "quantity", "balance", "reference", "created_at")
    list_filter = ("reason",)
    search_fields = ("product__name", "reference")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False


# EOF
