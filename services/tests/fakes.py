"""
Test doubles shared across the suite.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pastures.errors import EngineError, OutputMissingError
from pastures.fabric import keys
from pastures.terraform.runner import TfVar

PREFIX = "demo"
FOUNDATION = ["0-bootstrap", "1-resman", "2-networking-a-simple"]


class FakeRunner:
    """Records terraform calls instead of running terraform.

    Calls are stored as ``(command, stage_dir_name, detail)`` tuples where
    detail is the migrate flag for init, the rendered vars for apply/destroy
    and the output name for output.
    """

    def __init__(
        self,
        on_apply: Callable[[Path], None] | None = None,
        outputs: dict[str, str] | None = None,
        failures: dict[tuple[str, str], int] | None = None,
    ) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self.var_files: dict[tuple[str, str], list[Path]] = {}
        self._on_apply = on_apply
        self._outputs = outputs or {}
        self._failures = failures or {}

    def _check(self, command: str, path: Path) -> None:
        code = self._failures.get((command, path.name))
        if code:
            raise EngineError(command, code, str(path))

    async def init(self, path: Path, migrate: bool = False) -> None:
        self.calls.append(("init", path.name, migrate))
        self._check("init", path)

    async def plan(self, path: Path, var_files=(), tf_vars=()) -> None:
        self.calls.append(("plan", path.name, None))
        self.var_files[("plan", path.name)] = list(var_files)
        self._check("plan", path)

    async def apply(self, path: Path, var_files=(), tf_vars: list[TfVar] = ()) -> None:
        self.calls.append(("apply", path.name, list(tf_vars)))
        self.var_files[("apply", path.name)] = list(var_files)
        self._check("apply", path)
        if self._on_apply:
            self._on_apply(path)

    async def destroy(self, path: Path, var_files=(), tf_vars: list[TfVar] = ()) -> None:
        self.calls.append(("destroy", path.name, list(tf_vars)))
        self.var_files[("destroy", path.name)] = list(var_files)
        self._check("destroy", path)

    async def output(self, path: Path, name: str) -> str:
        self.calls.append(("output", path.name, name))
        if name not in self._outputs:
            raise OutputMissingError(name, "no outputs")
        return self._outputs[name]

    def stages_touched(self) -> list[str]:
        seen: list[str] = []
        for _, stage, _ in self.calls:
            if stage not in seen:
                seen.append(stage)
        return seen

    def commands_for(self, stage: str) -> list[str]:
        return [command for command, name, _ in self.calls if name == stage]

    def count(self, command: str) -> int:
        return sum(1 for c, _, _ in self.calls if c == command)


def publish_foundation_outputs(buckets_root: Path, prefix: str = PREFIX) -> None:
    """Write what an applied FAST foundation leaves in the outputs bucket."""
    outputs = buckets_root / keys.outputs_bucket(prefix)
    for stage in FOUNDATION:
        target = outputs / keys.providers_key(stage)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f'terraform {{ backend "gcs" {{ prefix = "{stage}" }} }}\n')
    for stage in ("0-globals", "0-bootstrap", "1-resman"):
        target = outputs / keys.tfvars_key(stage)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("{}\n")


def bootstrap_apply_hook(buckets_root: Path, prefix: str = PREFIX) -> Callable[[Path], None]:
    """Simulate FAST bootstrap: local state on first apply, outputs published."""

    def _on_apply(path: Path) -> None:
        if path.name == "0-bootstrap":
            (path / "terraform.tfstate").write_text('{"version": 4}\n')
            publish_foundation_outputs(buckets_root, prefix)

    return _on_apply
