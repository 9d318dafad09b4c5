"""Custom throttles for the catalog app.

Reads rates from Django settings at request time, so tests using
override_settings reliably affect rates.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class CatalogScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)

    def get_ident(self, request):
        # Browsing shoppers are usually anonymous; key them by session when one exists
        session = getattr(request, "session", None)
        if session is not None and session.session_key:
            return session.session_key
        return super().get_ident(request)
