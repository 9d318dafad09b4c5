"""URL routes for the storefront catalog."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import CategoryListView, ProductViewSet

router = SimpleRouter()
router.register(r"products", ProductViewSet, basename="product")

urlpatterns = [
    path("categories/", CategoryListView.as_view(), name="category-list"),
    path("", include(router.urls)),
]
