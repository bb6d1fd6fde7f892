from django.apps import AppConfig


class WarehousesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lagerapp.warehouses'

    def ready(self):
        """Import signals when app is ready"""
        import lagerapp.warehouses.signals  # noqa: F401
