"""
Shared fixtures for storage tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from pastures.storage.filesystem import FilesystemStore


@pytest.fixture
def fs_store(tmp_path: Path) -> FilesystemStore:
    """Create a FilesystemStore for one bucket in a temporary directory."""
    return FilesystemStore(root_dir=tmp_path, bucket="demo-prod-iac-core-outputs")
