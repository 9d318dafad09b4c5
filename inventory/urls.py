from django.urls import path

from .views import InventoryHealthView, LedgerListView, StockItemListView

urlpatterns = [
    path("health/", InventoryHealthView.as_view(), name="inventory-health"),
    path("stock-items/", StockItemListView.as_view(), name="stock-item-list"),
    path("ledger/", LedgerListView.as_view(), name="ledger-list"),
]

# EOF
