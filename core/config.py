import uuid
from dataclasses import dataclass
from typing import Optional

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class PosConfig:
    """Runtime configuration for the ID bridge and order flows"""
    numeric_id_digits: int = 9
    reverse_lookup_limit: int = 100
    display_id_length: int = 8
    default_admin_id: Optional[uuid.UUID] = None

    def __post_init__(self):
        if self.numeric_id_digits < 1:
            raise ImproperlyConfigured('POS NUMERIC_ID_DIGITS must be a positive integer')
        if self.reverse_lookup_limit < 1:
            raise ImproperlyConfigured('POS REVERSE_LOOKUP_LIMIT must be a positive integer')

    @classmethod
    def from_settings(cls, settings):
        raw = getattr(settings, 'POS', {}) or {}
        admin_id = raw.get('DEFAULT_ADMIN_ID')
        try:
            admin_id = uuid.UUID(str(admin_id)) if admin_id else None
        except ValueError:
            raise ImproperlyConfigured(f"POS DEFAULT_ADMIN_ID is not a valid UUID: {admin_id!r}")

        return cls(
            numeric_id_digits=int(raw.get('NUMERIC_ID_DIGITS', cls.numeric_id_digits)),
            reverse_lookup_limit=int(raw.get('REVERSE_LOOKUP_LIMIT', cls.reverse_lookup_limit)),
            display_id_length=int(raw.get('DISPLAY_ID_LENGTH', cls.display_id_length)),
            default_admin_id=admin_id,
        )


def get_pos_config():
    """Return the config built by CoreConfig.ready()"""
    return apps.get_app_config('core').pos_config
