"""
Fixtures for driving the CLI end to end against a fake terraform.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from tests.fakes import PREFIX, FakeRunner


@pytest.fixture
def cli_env(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    fabric_dir: Path,
    seeds_dir: Path,
) -> Path:
    """Point the CLI at temporary directories; return the config dir."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("PASTURES_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("PASTURES_FABRIC_DIR", str(fabric_dir))
    monkeypatch.setenv("PASTURES_SEEDS_DIR", str(seeds_dir))
    return config_dir


@pytest.fixture
def var_file_path(cli_env: Path) -> Path:
    cli_env.mkdir(parents=True, exist_ok=True)
    path = cli_env / "pastures.auto.tfvars.json"
    path.write_text(
        json.dumps(
            {
                "prefix": PREFIX,
                "organization": {"id": 1234567890, "domain": "example.com"},
                "billing_account": {"id": "ABCDEF-012345-6789AB"},
            },
            indent=2,
        )
    )
    return path


@pytest.fixture
def adc() -> Iterator[AsyncMock]:
    with patch("pastures.cli.main.app_default_credentials", new=AsyncMock()) as mock:
        yield mock


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def patched_runner(fake_runner: FakeRunner) -> Iterator[FakeRunner]:
    with patch("pastures.cli.main.TerraformRunner", return_value=fake_runner):
        yield fake_runner
