"""
Terraform runner.

Executes terraform subcommands as child processes in a stage working
directory. Output is streamed straight to the terminal: stdout only when
verbose, stderr always. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pastures.errors import EngineError, OutputMissingError
from pastures.logging_config import get_logger

logger = get_logger(__name__)

# Grace period between SIGTERM and SIGKILL when a run is interrupted
TERMINATE_GRACE_SECONDS = 10


def render_value(value: str | bool | int) -> str:
    """Render a variable value the way terraform expects it on the command line.

    Booleans become ``true``/``false`` and integers their decimal form.
    Structured values must be rendered by the caller.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return value


@dataclass(frozen=True)
class TfVar:
    """A single ``-var name=value`` argument."""

    name: str
    value: str

    def as_arg(self) -> str:
        return f"{self.name}={self.value}"


def add_var(name: str, value: str | bool | int) -> TfVar:
    return TfVar(name=name, value=render_value(value))


class TerraformRunner:
    """Runs terraform in a working directory."""

    def __init__(self, binary: str = "terraform", verbose: bool = False) -> None:
        self._binary = binary
        self._verbose = verbose

    @property
    def verbose(self) -> bool:
        return self._verbose

    def build_args(
        self,
        command: str,
        var_files: Iterable[Path] = (),
        tf_vars: Iterable[TfVar] = (),
        flags: Sequence[str] = (),
    ) -> list[str]:
        """Build the argv for a subcommand.

        Var files come first in attachment order, so later files override
        earlier ones, followed by ``-var`` arguments in the given order.
        """
        args = [self._binary, command, "-input=false", *flags]
        for var_file in var_files:
            args.append(f"-var-file={var_file}")
        for var in tf_vars:
            args.extend(["-var", var.as_arg()])
        return args

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["TF_IN_AUTOMATION"] = "1"
        return env

    async def _run(self, command: str, path: Path, args: list[str]) -> None:
        logger.debug("Running terraform", command=command, path=str(path))

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=path,
                env=self._env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=None if self._verbose else asyncio.subprocess.DEVNULL,
                stderr=None,
            )
        except FileNotFoundError as e:
            logger.error("terraform binary not found", binary=self._binary)
            raise EngineError(command, 127, str(path)) from e

        try:
            returncode = await proc.wait()
        except asyncio.CancelledError:
            await _terminate(proc)
            raise

        if returncode != 0:
            raise EngineError(command, returncode, str(path))

    async def init(self, path: Path, migrate: bool = False) -> None:
        flags = ["-migrate-state", "-force-copy"] if migrate else []
        await self._run("init", path, self.build_args("init", flags=flags))

    async def plan(
        self,
        path: Path,
        var_files: Iterable[Path] = (),
        tf_vars: Iterable[TfVar] = (),
    ) -> None:
        await self._run("plan", path, self.build_args("plan", var_files, tf_vars))

    async def apply(
        self,
        path: Path,
        var_files: Iterable[Path] = (),
        tf_vars: Iterable[TfVar] = (),
    ) -> None:
        args = self.build_args("apply", var_files, tf_vars, flags=["-auto-approve"])
        await self._run("apply", path, args)

    async def destroy(
        self,
        path: Path,
        var_files: Iterable[Path] = (),
        tf_vars: Iterable[TfVar] = (),
    ) -> None:
        args = self.build_args("destroy", var_files, tf_vars, flags=["-auto-approve"])
        await self._run("destroy", path, args)

    async def output(self, path: Path, name: str) -> str:
        """Read a single output value as a raw string.

        Raises:
            OutputMissingError: If terraform cannot produce the output.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                "output",
                "-raw",
                name,
                cwd=path,
                env=self._env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise OutputMissingError(name, f"{self._binary} not found") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            await _terminate(proc)
            raise

        if proc.returncode != 0:
            raise OutputMissingError(name, stderr.decode(errors="replace").strip())

        value = stdout.decode().strip()
        if not value:
            raise OutputMissingError(name, "empty value")
        return value


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    logger.warning("Interrupted, stopping terraform", pid=proc.pid)
    proc.terminate()
    try:
        await asyncio.wait_for(proc.wait(), timeout=TERMINATE_GRACE_SECONDS)
    except TimeoutError:
        proc.kill()
        await proc.wait()
