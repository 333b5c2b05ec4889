"""
Stages: one unit of terraform execution each.

A stage owns a working directory, a backend descriptor and the list of
dependency objects it pulls from the outputs bucket before it runs.
Foundation stages are FAST stages copied from a cloud-foundation-fabric
checkout; the seed stage is the pasture template and always runs last.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import ClassVar

from pastures.errors import DependenciesMissingError, PastureError, TemplateError
from pastures.fabric import keys
from pastures.fabric.varfile import VarFile
from pastures.logging_config import get_logger
from pastures.storage import StoreFactory, open_store
from pastures.storage.protocol import ObjectStoreError
from pastures.terraform.runner import TerraformRunner, TfVar

logger = get_logger(__name__)

BOOTSTRAP_STAGE = "0-bootstrap"
LOCAL_STATE_FILE = "terraform.tfstate"
MIGRATED_STATE_FILE = "terraform.tfstate.pre-migration"


class StageType(StrEnum):
    FOUNDATION = "foundation"
    SEED = "seed"


class StageState(StrEnum):
    """Lifecycle of a stage within one run."""

    NEW = "new"
    HYDRATED = "hydrated"
    FIRST_RUN = "first_run"
    READY = "ready"
    READY_LOCAL = "ready_local"
    APPLIED_LOCAL = "applied_local"
    APPLIED_REMOTE = "applied_remote"
    DESTROYED = "destroyed"


@dataclass
class ProviderFile:
    """Backend descriptor for a stage.

    ``remote_path`` is slash-delimited; its first segment is the stage's state
    directory inside ``bucket``.
    """

    bucket: str
    remote_path: str
    local_path: Path

    @property
    def state_dir(self) -> str:
        return self.remote_path.split("/")[0]

    def exists(self) -> bool:
        return self.local_path.exists()

    def render(self) -> str:
        return (
            "terraform {\n"
            '  backend "gcs" {\n'
            f'    bucket = "{self.bucket}"\n'
            f'    prefix = "{self.state_dir}"\n'
            "  }\n"
            "}\n"
        )

    def write(self) -> None:
        self.local_path.parent.mkdir(parents=True, exist_ok=True)
        self.local_path.write_text(self.render())


class Stage:
    """Common behaviour of foundation and seed stages."""

    type: ClassVar[StageType]

    def __init__(
        self,
        name: str,
        path: Path,
        prefix: str,
        runner: TerraformRunner,
        store_factory: StoreFactory | None = None,
    ) -> None:
        self.name = name
        self.path = path
        self.prefix = prefix
        self.runner = runner
        self.var_files: list[VarFile] = []
        self.dependencies: list[str] = []
        self.state = StageState.NEW
        self.provider_file = ProviderFile(
            bucket=keys.state_bucket(prefix),
            remote_path=keys.state_path(name),
            local_path=path / f"{name}-providers.tf",
        )
        self._store_factory = store_factory or open_store

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} state={self.state}>"

    @property
    def is_bootstrap(self) -> bool:
        return self.name == BOOTSTRAP_STAGE

    @property
    def outputs_bucket(self) -> str:
        return keys.outputs_bucket(self.prefix)

    def add_var_file(self, var_file: VarFile) -> None:
        """Attach a var file. Later files override earlier ones."""
        self.var_files.append(var_file)

    def var_file_paths(self) -> list[Path]:
        return [vf.local_path for vf in self.var_files]

    def has_local_state(self) -> bool:
        return (self.path / LOCAL_STATE_FILE).exists()

    async def discover_files(self) -> None:
        """Fetch every dependency from the outputs bucket into the working directory.

        Raises:
            DependenciesMissingError: On the first dependency that cannot be fetched.
        """
        store = self._store_factory(self.outputs_bucket)
        try:
            for key in self.dependencies:
                try:
                    data = await store.get(key)
                except ObjectStoreError as e:
                    if self.state in (StageState.NEW, StageState.HYDRATED):
                        self.state = StageState.FIRST_RUN
                    raise DependenciesMissingError(self.name, key, str(e)) from e

                target = self.path / PurePosixPath(key).name
                target.write_bytes(data)
                logger.debug("Fetched dependency", stage=self.name, object=key)
        finally:
            await store.close()

        if self.state in (StageState.NEW, StageState.FIRST_RUN):
            self.state = StageState.HYDRATED

    async def init(self) -> None:
        """Initialise the working directory, migrating local state when needed.

        Local state is migrated once: when a ``terraform.tfstate`` exists and the
        providers file points at the remote backend. The local copy is kept
        under another name afterwards so it is never migrated twice.
        """
        if self.state == StageState.FIRST_RUN and not self.is_bootstrap:
            raise PastureError(f"Stage {self.name} cannot run without its dependencies")

        migrate = self.provider_file.exists() and self.has_local_state()
        if migrate:
            logger.info("Migrating local state to remote backend", stage=self.name)

        await self.runner.init(self.path, migrate=migrate)

        if migrate:
            (self.path / LOCAL_STATE_FILE).rename(self.path / MIGRATED_STATE_FILE)

        match self.state:
            case StageState.FIRST_RUN:
                self.state = StageState.READY_LOCAL
            case StageState.APPLIED_LOCAL:
                self.state = StageState.APPLIED_REMOTE
            case StageState.NEW | StageState.HYDRATED:
                self.state = StageState.READY

    async def plan(self) -> None:
        await self.runner.plan(self.path, self.var_file_paths())

    async def apply(self, tf_vars: list[TfVar] | None = None) -> None:
        await self.runner.apply(self.path, self.var_file_paths(), tf_vars or [])
        if self.state == StageState.READY_LOCAL:
            self.state = StageState.APPLIED_LOCAL
        else:
            self.state = StageState.APPLIED_REMOTE

    async def destroy(self, tf_vars: list[TfVar] | None = None) -> None:
        await self.runner.destroy(self.path, self.var_file_paths(), tf_vars or [])
        self.state = StageState.DESTROYED

    async def output(self, name: str) -> str:
        return await self.runner.output(self.path, name)


class FoundationStage(Stage):
    """A numbered FAST stage (``0-bootstrap``, ``1-resman``, ...)."""

    type = StageType.FOUNDATION

    def __init__(
        self,
        name: str,
        path: Path,
        prefix: str,
        runner: TerraformRunner,
        store_factory: StoreFactory | None = None,
    ) -> None:
        number = keys.stage_number(name)
        if number is None:
            raise ValueError(f"Foundation stage name must start with a number: {name}")
        super().__init__(name, path, prefix, runner, store_factory)
        self._number = number
        self.dependencies = keys.foundation_dependencies(name)

    @property
    def number(self) -> int:
        return self._number

    def materialize(self, fabric_dir: Path) -> None:
        """Copy the FAST stage sources into the working directory."""
        source = fabric_dir / "fast" / "stages" / self.name
        if not source.is_dir():
            raise TemplateError(f"FAST stage sources not found: {source}")

        shutil.copytree(source, self.path, dirs_exist_ok=True)
        logger.debug("Materialized foundation stage", stage=self.name, path=str(self.path))


class SeedStage(Stage):
    """The pasture template, deployed after the foundation."""

    type = StageType.SEED

    def __init__(
        self,
        name: str,
        path: Path,
        prefix: str,
        runner: TerraformRunner,
        store_factory: StoreFactory | None = None,
    ) -> None:
        super().__init__(name, path, prefix, runner, store_factory)
        self.dependencies = keys.seed_dependencies()

    @classmethod
    def hydrate_seed(
        cls,
        template: str,
        prefix: str,
        cfg_path: Path,
        seeds_dir: Path,
        runner: TerraformRunner,
        store_factory: StoreFactory | None = None,
    ) -> SeedStage:
        """Materialise template assets into ``<cfg_path>/<template>``.

        The providers file is rendered here since no foundation stage
        produces one for seeds. The shared var file is attached by the caller.
        """
        source = seeds_dir / template
        if not source.is_dir():
            raise TemplateError(f"Seed template not found: {source}")

        path = cfg_path / template
        shutil.copytree(source, path, dirs_exist_ok=True)

        seed = cls(template, path, prefix, runner, store_factory)
        seed.provider_file.write()
        logger.debug("Hydrated seed", template=template, path=str(path))
        return seed
