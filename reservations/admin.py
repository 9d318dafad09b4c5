"""Admin registrations for reservations app."""

from django.contrib import admin

from .models import Reservation, ReservationLine


class ReservationLineInline(admin.TabularInline):
    model = ReservationLine
    extra = 0
    readonly_fields = ("product", "quantity")
    can_delete = False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "cart_id", "state", "created_at", "expires_at", "closed_at")
    list_filter = ("state",)
    search_fields = ("cart_id",)
    readonly_fields = ("state", "closed_at")
    inlines = [ReservationLineInline]
