"""Read-only storefront endpoints for browsing the catalog."""

from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from rest_framework.views import APIView

from . import selectors
from .models import Product
from .serializers import ProductSerializer
from .throttling import CatalogScopedRateThrottle


class ProductFilterSet(filters.FilterSet):
    category = filters.CharFilter(field_name="category")

    class Meta:
        model = Product
        fields = ["category"]


class SearchOrQFilter(drf_filters.SearchFilter):
    """SearchFilter that also accepts the storefront's `q` parameter."""

    def get_search_terms(self, request):
        params = request.query_params.get(self.search_param) or request.query_params.get("q") or ""
        params = params.replace("\x00", "")
        params = params.replace(",", " ")
        return params.split()


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description=(
            "Returns active products. Supports filtering by `category`, ordering by `name` or `price`, "
            "and search over name and description via either `search` or `q`."
        ),
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, location="query", description="Filter by category label"),
            OpenApiParameter("ordering", OpenApiTypes.STR, location="query", description="Order by `name` or `price`"),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search products by text"),
            OpenApiParameter("q", OpenApiTypes.STR, location="query", description="Alias for `search`"),
        ],
        examples=[
            OpenApiExample(
                "Product list",
                value={
                    "count": 1,
                    "next": None,
                    "previous": None,
                    "results": [
                        {
                            "id": 1,
                            "name": "Fresh Apples",
                            "description": "Fresh red apples, perfect for snacking",
                            "price": "3.99",
                            "category": "Fruits",
                            "unit": "lb",
                            "image_url": "",
                            "available": 50,
                            "in_stock": True,
                        }
                    ],
                },
                response_only=True,
            )
        ],
    ),
    retrieve=extend_schema(summary="Get product", tags=["Catalog Endpoints"]),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    filterset_class = ProductFilterSet
    filter_backends = [filters.DjangoFilterBackend, drf_filters.OrderingFilter, SearchOrQFilter]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price"]
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    def get_queryset(self):
        return selectors.list_products()


class CategoryListView(APIView):
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="List categories",
        description="Distinct category labels of active products, alphabetically.",
        examples=[OpenApiExample("Categories", value={"categories": ["Bakery", "Dairy", "Fruits"]})],
    )
    def get(self, request):
        return Response({"categories": selectors.list_categories()})
