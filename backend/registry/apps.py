from django.apps import AppConfig


class RegistryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'registry'
    verbose_name = 'Self-employment registrations'

    def ready(self):
        # Import signal handlers that keep the expiry alert cache fresh
        from . import signals  # noqa: F401
