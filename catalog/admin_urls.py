"""Admin router for catalog write endpoints."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .admin_views import DashboardView, ProductAdminViewSet

router = SimpleRouter()
router.register(r"products", ProductAdminViewSet, basename="admin-product")

urlpatterns = [
    path("dashboard/", DashboardView.as_view(), name="admin-dashboard"),
    path("", include(router.urls)),
]
