"""
Top-level test configuration for pastures.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from pastures.config import Settings, load_settings
from pastures.storage.filesystem import FilesystemStore
from pastures.storage.protocol import ObjectStore
from tests.fakes import FOUNDATION

# Ensure test-friendly defaults
os.environ.setdefault("PASTURES_JSON_LOGS", "false")
os.environ.setdefault("PASTURES_LOG_LEVEL", "DEBUG")


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo configure_logging() so handlers never outlive a captured stdout."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def buckets_root(tmp_path: Path) -> Path:
    root = tmp_path / "buckets"
    root.mkdir()
    return root


@pytest.fixture
def store_factory(buckets_root: Path) -> Callable[[str], ObjectStore]:
    def _open(bucket: str) -> ObjectStore:
        return FilesystemStore(root_dir=buckets_root, bucket=bucket)

    return _open


@pytest.fixture
def fabric_dir(tmp_path: Path) -> Path:
    root = tmp_path / "cloud-foundation-fabric"
    for stage in FOUNDATION:
        stage_dir = root / "fast" / "stages" / stage
        stage_dir.mkdir(parents=True)
        (stage_dir / "main.tf").write_text(f"# {stage}\n")
    return root


@pytest.fixture
def seeds_dir(tmp_path: Path) -> Path:
    root = tmp_path / "seeds"
    (root / "data-cloud").mkdir(parents=True)
    (root / "data-cloud" / "main.tf").write_text("# data-cloud seed\n")
    return root


@pytest.fixture
def config_file(tmp_path: Path, buckets_root: Path) -> Path:
    path = tmp_path / "pastures.yaml"
    path.write_text(
        "foundation_stages:\n"
        + "".join(f"  - {stage}\n" for stage in FOUNDATION)
        + "storage:\n"
        "  backend: filesystem\n"
        "  filesystem:\n"
        f"    root_dir: {buckets_root}\n"
    )
    return path


@pytest.fixture
def settings(tmp_path: Path, config_file: Path, fabric_dir: Path, seeds_dir: Path) -> Settings:
    """Settings pointing every path at the test's temporary directory."""
    return load_settings(
        str(config_file),
        config_dir=tmp_path / "config",
        fabric_dir=fabric_dir,
        seeds_dir=seeds_dir,
    )
