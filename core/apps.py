from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Core'

    pos_config = None

    def ready(self):
        from .config import PosConfig
        self.pos_config = PosConfig.from_settings(settings)
