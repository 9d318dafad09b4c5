"""Shared enumerations and choices used across apps."""

from django.db import models


class ActiveInactive(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class LedgerReason(models.TextChoices):
    """Why a stock ledger entry was written."""

    RESTOCK = "restock", "Restock"
    RESERVE = "reserve", "Reserve"
    RELEASE = "release", "Release"
    COMMIT = "commit", "Commit"


class ReservationState(models.TextChoices):
    OPEN = "open", "Open"
    COMMITTED = "committed", "Committed"
    RELEASED = "released", "Released"
    EXPIRED = "expired", "Expired"


class OrderStatus(models.TextChoices):
    """Lifecycle statuses for orders."""

    PLACED = "placed", "Placed"
    VOIDED = "voided", "Voided"


class CheckoutState(models.TextChoices):
    """Steps of a single checkout attempt."""

    STARTED = "started", "Started"
    RESERVED = "reserved", "Reserved"
    CONFIRMED = "confirmed", "Confirmed"
    PLACED = "placed", "Placed"
    ROLLED_BACK = "rolled_back", "Rolled back"
