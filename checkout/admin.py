from django.contrib import admin

from .models import CheckoutAttempt


@admin.register(CheckoutAttempt)
class CheckoutAttemptAdmin(admin.ModelAdmin):
    list_display = ("id", "cart_id", "customer_id", "state", "failure_code", "reservation", "order", "created_at")
    list_filter = ("state", "created_at")
    search_fields = ("cart_id", "customer_id", "failure_code")
    readonly_fields = ("reservation", "order", "created_at", "updated_at")
