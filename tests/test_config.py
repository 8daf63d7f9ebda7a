"""
Tests for the POS runtime configuration.
"""

import json
import logging
import uuid
from types import SimpleNamespace

from django.conf import settings as django_settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

import pytest

from core.config import PosConfig, get_pos_config


class TestPosConfig:
    def test_defaults(self):
        config = PosConfig.from_settings(SimpleNamespace())

        assert config.numeric_id_digits == 9
        assert config.reverse_lookup_limit == 100
        assert config.display_id_length == 8
        assert config.default_admin_id is None

    def test_reads_pos_settings(self):
        admin_id = uuid.uuid4()
        settings = SimpleNamespace(POS={
            "NUMERIC_ID_DIGITS": "6",
            "REVERSE_LOOKUP_LIMIT": 20,
            "DISPLAY_ID_LENGTH": 10,
            "DEFAULT_ADMIN_ID": str(admin_id),
        })

        config = PosConfig.from_settings(settings)

        assert config.numeric_id_digits == 6
        assert config.reverse_lookup_limit == 20
        assert config.display_id_length == 10
        assert config.default_admin_id == admin_id

    @pytest.mark.parametrize("pos", [
        {"NUMERIC_ID_DIGITS": 0},
        {"REVERSE_LOOKUP_LIMIT": -1},
        {"DEFAULT_ADMIN_ID": "not-a-uuid"},
    ])
    def test_invalid_settings(self, pos):
        with pytest.raises(ImproperlyConfigured):
            PosConfig.from_settings(SimpleNamespace(POS=pos))

    def test_loaded_at_startup(self):
        assert isinstance(get_pos_config(), PosConfig)


class TestLoggingConfig:
    def test_json_formatter(self):
        formatter_config = django_settings.LOGGING["formatters"]["json"]
        formatter_class = import_string(formatter_config["()"])

        assert formatter_class.__module__ == "pythonjsonlogger.json"

        formatter = formatter_class(formatter_config["format"])
        record = logging.LogRecord("orders.views", logging.INFO, __file__, 1, "Order %s created", ("ab12",), None)
        output = json.loads(formatter.format(record))

        assert output["message"] == "Order ab12 created"
        assert output["levelname"] == "INFO"
