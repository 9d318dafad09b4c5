"""Staff-only read access to reservations."""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, permissions

from . import selectors
from .serializers import ReservationSerializer


class ReservationListView(generics.ListAPIView):
    permission_classes = [permissions.IsAdminUser]
    throttle_classes = []
    serializer_class = ReservationSerializer

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List reservations",
        description="Filters: state (open/committed/released/expired), cart_id.",
        parameters=[
            OpenApiParameter(name="state", required=False, type=str),
            OpenApiParameter(name="cart_id", required=False, type=str),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return selectors.list_reservations(
            state=self.request.query_params.get("state") or None,
            cart_id=self.request.query_params.get("cart_id") or None,
        )
