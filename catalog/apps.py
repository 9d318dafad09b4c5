from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Product catalog browsed by the storefront and edited from the admin screen."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
    verbose_name = "Catalog"
