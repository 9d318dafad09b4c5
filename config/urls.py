"""URL configuration for the Pantry service.

All API routes are versioned under ``/api/v1/``.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .health import health

admin.site.site_header = "Pantry Admin"
admin.site.index_title = "Inventory"


class ScopedTokenObtainPairView(TokenObtainPairView):
    throttle_scope = "token"


urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Token auth for admin clients
    path("api/v1/auth/token/", ScopedTokenObtainPairView.as_view(), name="token-obtain"),
    path("api/v1/auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    # Versioned v1 routes
    path("api/v1/catalog/", include("catalog.urls")),
    path("api/v1/admin/catalog/", include("catalog.admin_urls")),
    path("api/v1/inventory/", include("inventory.urls")),
    path("api/v1/reservations/", include("reservations.urls")),
    path("api/v1/checkout/", include("checkout.urls")),
    path("api/v1/orders/", include("orders.urls")),
]
