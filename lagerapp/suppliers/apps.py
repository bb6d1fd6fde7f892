from django.apps import AppConfig


class SuppliersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lagerapp.suppliers'

    def ready(self):
        """Import signals when app is ready"""
        import lagerapp.suppliers.signals  # noqa: F401
