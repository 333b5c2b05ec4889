"""
Tests for settings loading and the var file model.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from pastures.config import (
    FastConfig,
    Settings,
    StorageBackend,
    load_settings,
)


class TestSettings:
    def test_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PASTURES_LOG_LEVEL", raising=False)
        settings = load_settings(str(tmp_path / "absent.yaml"))

        assert settings.verbose is False
        assert settings.log_level == "INFO"
        assert settings.terraform_binary == "terraform"
        assert settings.foundation_stages == ["0-bootstrap", "1-resman", "2-networking-a-simple"]
        assert settings.storage.backend == StorageBackend.GCS

    def test_yaml_file(self, config_file: Path, buckets_root: Path) -> None:
        settings = load_settings(str(config_file))

        assert settings.storage.backend == StorageBackend.FILESYSTEM
        assert settings.storage.filesystem.root_dir == str(buckets_root)

    def test_env_overrides_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config = tmp_path / "pastures.yaml"
        config.write_text("terraform_binary: /opt/tf/terraform\nadmin_group: yaml-admins\n")
        monkeypatch.setenv("PASTURES_ADMIN_GROUP", "env-admins")

        settings = load_settings(str(config))

        assert settings.terraform_binary == "/opt/tf/terraform"
        assert settings.admin_group == "env-admins"

    def test_nested_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PASTURES_STORAGE__BACKEND", "filesystem")
        settings = load_settings(str(tmp_path / "absent.yaml"))
        assert settings.storage.backend == StorageBackend.FILESYSTEM

    def test_overrides_win(self, tmp_path: Path) -> None:
        settings = load_settings(str(tmp_path / "absent.yaml"), verbose=True)
        assert settings.verbose is True

    def test_derived_paths(self, tmp_path: Path) -> None:
        settings = load_settings(str(tmp_path / "absent.yaml"), config_dir=tmp_path)
        assert settings.fabric_path() == tmp_path / "cloud-foundation-fabric"
        assert settings.seeds_path() == tmp_path / "seeds"

    def test_explicit_fabric_dir(self, tmp_path: Path) -> None:
        settings = Settings(config_dir=tmp_path, fabric_dir=tmp_path / "fabric")
        assert settings.fabric_path() == tmp_path / "fabric"


class TestFastConfig:
    def test_extra_keys_kept(self) -> None:
        config = FastConfig.model_validate(
            {
                "prefix": "acme",
                "organization": {"id": 1234, "domain": "example.com"},
                "billing_account": {"id": "ABC"},
            }
        )
        assert config.organization is not None
        assert config.organization.id == 1234
        assert config.model_extra == {"billing_account": {"id": "ABC"}}

    @pytest.mark.parametrize("prefix", ["acme", "a1", "dev-01", "abcdefghi"])
    def test_valid_prefix(self, prefix: str) -> None:
        assert FastConfig(prefix=prefix).prefix == prefix

    @pytest.mark.parametrize("prefix", ["", "1acme", "Acme", "abcdefghij", "ac_me"])
    def test_invalid_prefix(self, prefix: str) -> None:
        with pytest.raises(ValidationError):
            FastConfig(prefix=prefix)

    def test_frozen(self) -> None:
        config = FastConfig(prefix="acme")
        with pytest.raises(ValidationError):
            config.prefix = "other"  # type: ignore[misc]
