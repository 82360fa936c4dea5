from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'jewelerp.core'

    def ready(self):
        """Import signals when app is ready"""
        import jewelerp.core.cache_signals  # noqa: F401
