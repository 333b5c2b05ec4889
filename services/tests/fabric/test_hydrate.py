"""
Tests for config hydration.
"""

import json

import pytest

from pastures.config import Settings
from pastures.errors import ConfigParseError
from pastures.fabric.hydrate import config_path, hydrate_var_file, var_file_path


def _write_var_file(settings: Settings, body: dict) -> None:
    path = var_file_path(settings)
    path.write_text(json.dumps(body))


class TestPaths:
    def test_config_path_is_created(self, settings: Settings) -> None:
        path = config_path(settings)
        assert path.is_dir()
        assert path == settings.config_dir

    def test_var_file_name(self, settings: Settings) -> None:
        assert var_file_path(settings).name == "pastures.auto.tfvars.json"


class TestHydrate:
    def test_pins_outputs_bucket(self, settings: Settings, store_factory) -> None:
        _write_var_file(settings, {"prefix": "acme", "billing_account": {"id": "0-0-0"}})

        var_file = hydrate_var_file(settings, store_factory)

        assert var_file.config is not None
        assert var_file.config.prefix == "acme"
        assert var_file.bucket == "acme-prod-iac-core-outputs"
        assert var_file.remote_path == "tfvars/0-pastures.auto.tfvars.json"
        assert var_file.body["billing_account"] == {"id": "0-0-0"}

    def test_missing_file(self, settings: Settings) -> None:
        with pytest.raises(ConfigParseError):
            hydrate_var_file(settings)

    def test_malformed_json(self, settings: Settings) -> None:
        var_file_path(settings).write_text("{not json")
        with pytest.raises(ConfigParseError):
            hydrate_var_file(settings)

    def test_missing_prefix(self, settings: Settings) -> None:
        _write_var_file(settings, {"organization": {"id": 1, "domain": "example.com"}})
        with pytest.raises(ConfigParseError, match="prefix"):
            hydrate_var_file(settings)

    def test_invalid_prefix(self, settings: Settings) -> None:
        _write_var_file(settings, {"prefix": "Way-Too-Long-Prefix"})
        with pytest.raises(ConfigParseError):
            hydrate_var_file(settings)

    def test_file_left_untouched(self, settings: Settings, store_factory) -> None:
        raw = '{"prefix":"acme",   "extra": [1, 2]}'
        var_file_path(settings).write_text(raw)

        var_file = hydrate_var_file(settings, store_factory)
        var_file.save()

        assert var_file_path(settings).read_text() == raw
