"""URL routes for checkout (v1)."""

from django.urls import path

from .views import AbortCheckoutView, ConfirmCheckoutView, StartCheckoutView

app_name = "checkout"

urlpatterns = [
    path("", StartCheckoutView.as_view(), name="checkout-start"),
    path("<uuid:reservation_id>/confirm/", ConfirmCheckoutView.as_view(), name="checkout-confirm"),
    path("<uuid:reservation_id>/abort/", AbortCheckoutView.as_view(), name="checkout-abort"),
]
