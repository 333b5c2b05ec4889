"""
Stage pipeline.

Builds the ordered list of stages for a template (foundation stages sorted by
their leading number, then the seed) and walks it under a mode. Execution is
strictly sequential: each stage finishes, including the var file upload and
state migration, before the next one starts fetching its dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from pastures.errors import (
    DependenciesMissingError,
    OutputMissingError,
    PastureError,
    StageError,
    TemplateError,
)
from pastures.fabric import keys
from pastures.fabric.stage import FoundationStage, ProviderFile, SeedStage, Stage, StageType
from pastures.fabric.varfile import VarFile
from pastures.logging_config import get_logger
from pastures.storage import StoreFactory
from pastures.terraform.runner import TerraformRunner, TfVar

logger = get_logger(__name__)

CONSOLE_URL = "https://console.cloud.google.com/welcome?project="


class Mode(StrEnum):
    PLANT = "plant"
    BURN = "burn"


@dataclass(frozen=True)
class PipelineOptions:
    """Flags for one invocation."""

    dry_run: bool = False
    skip_foundation: bool = False


class SeedOptions(Protocol):
    """Template flags that turn into seed variables."""

    def tf_vars(self, provider_file: ProviderFile) -> list[TfVar]: ...


@dataclass
class PipelineResult:
    """What a pipeline run did, in order."""

    mode: Mode
    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    dry_run_passed: bool | None = None
    project_id: str | None = None

    @property
    def project_url(self) -> str | None:
        if self.project_id is None:
            return None
        return CONSOLE_URL + self.project_id


def initialize_stages(
    cfg_path: Path,
    prefix: str,
    var_file: VarFile,
    stage_names: list[str],
    fabric_dir: Path,
    runner: TerraformRunner,
    store_factory: StoreFactory | None = None,
    materialize: bool = True,
) -> list[FoundationStage]:
    """Build the foundation stages in order and attach the shared var file.

    Sources are only copied when ``materialize`` is set; stages that will be
    skipped do not need a fabric checkout.
    """
    unnumbered = [name for name in stage_names if keys.stage_number(name) is None]
    if unnumbered:
        raise TemplateError(f"Foundation stage names must start with a number: {unnumbered}")

    stages = sorted(
        (
            FoundationStage(name, cfg_path / name, prefix, runner, store_factory)
            for name in set(stage_names)
        ),
        key=lambda s: (s.number, s.name),
    )
    for stage in stages:
        if materialize:
            stage.materialize(fabric_dir)
        stage.add_var_file(var_file)

    logger.debug("Foundation stages initialized", stages=[s.name for s in stages])
    return stages


class Pipeline:
    """Ordered stages executed under a mode."""

    def __init__(
        self,
        stages: list[Stage],
        var_file: VarFile,
        mode: Mode,
        options: PipelineOptions,
        seed_options: SeedOptions | None = None,
    ) -> None:
        self.stages = stages
        self.var_file = var_file
        self.mode = mode
        self.options = options
        self.seed_options = seed_options
        self._uploaded = False

    async def run(self) -> PipelineResult:
        """Walk the stages in order.

        Raises:
            StageError: On any fatal failure; later stages are not touched.
        """
        result = PipelineResult(mode=self.mode)

        for stage in self.stages:
            if stage.type == StageType.FOUNDATION and self.mode == Mode.BURN:
                logger.info("Skipping foundation stage", stage=stage.name)
                result.skipped.append(stage.name)
                continue

            if stage.type == StageType.FOUNDATION and self.options.skip_foundation:
                logger.info("Skipping foundation stage", stage=stage.name)
                result.skipped.append(stage.name)
                continue

            if self.options.dry_run and stage.is_bootstrap:
                await self._dry_run(stage)
                result.dry_run_passed = True
                result.processed.append(stage.name)
                break

            await self._run_stage(stage, result)
            result.processed.append(stage.name)

        return result

    async def _dry_run(self, stage: Stage) -> None:
        logger.info("Testing if foundation can be applied to GCP organization")

        try:
            await stage.init()
        except PastureError as e:
            raise StageError("Cannot initialize stage for dry run", e) from e

        try:
            await stage.plan()
        except PastureError as e:
            raise StageError("Foundation cannot be applied to GCP organization", e) from e

        logger.info("Foundation can be applied to GCP organization")

    def _seed_vars(self, stage: Stage) -> list[TfVar]:
        if stage.type != StageType.SEED:
            return []
        if self.seed_options is None:
            raise StageError(f"No template options for seed stage: {stage.name}")
        return self.seed_options.tf_vars(stage.provider_file)

    async def _run_stage(self, stage: Stage, result: PipelineResult) -> None:
        first_run = False
        tf_vars = self._seed_vars(stage)

        if self.mode == Mode.BURN:
            logger.info("Destroying stage", stage=stage.name)
        else:
            logger.info("Deploying stage", stage=stage.name)

        try:
            await stage.discover_files()
        except DependenciesMissingError as e:
            if not stage.is_bootstrap:
                raise StageError(f"Unable to retrieve stage dependencies for: {stage.name}", e) from e
            # An unreachable outputs bucket looks exactly like a first run
            logger.warning(
                "Pastures first run detected - running with local state",
                stage=stage.name,
                reason=str(e),
            )
            first_run = True

        logger.info("Initializing stage", stage=stage.name)
        try:
            await stage.init()
        except PastureError as e:
            raise StageError("Failed to migrate state to remote backend", e) from e

        if self.mode == Mode.BURN:
            logger.info("Starting destroy", stage=stage.name)
            try:
                await stage.destroy(tf_vars)
            except PastureError as e:
                raise StageError(f"Stage failed to destroy: {stage.name}", e) from e
            logger.info("Successfully destroyed stage", stage=stage.name)
            logger.info("Stage complete", stage=stage.name)
            return

        logger.info("Starting apply", stage=stage.name)
        try:
            await stage.apply(tf_vars)
        except PastureError as e:
            raise StageError(f"Stage failed to deploy: {stage.name}", e) from e
        logger.info("Successfully applied stage", stage=stage.name)

        if stage.is_bootstrap:
            await self._upload_var_file()

        if first_run:
            try:
                await stage.discover_files()
            except PastureError as e:
                raise StageError(f"Unable to retrieve stage dependencies for: {stage.name}", e) from e

            try:
                await stage.init()
            except PastureError as e:
                raise StageError("Failed to migrate state to remote backend", e) from e

        logger.info("Stage complete", stage=stage.name)

        if stage.type == StageType.SEED:
            try:
                result.project_id = await stage.output("project_id")
            except OutputMissingError as e:
                logger.warning("Unable to read seed project id", stage=stage.name, reason=str(e))
                return
            logger.info("Access your seed project", url=result.project_url)

    async def _upload_var_file(self) -> None:
        if self._uploaded:
            return
        logger.info("Uploading pasture vars to GCS bucket", bucket=self.var_file.bucket)
        try:
            await self.var_file.upload_file()
        except PastureError as e:
            raise StageError("Failed to upload pasture var file", e) from e
        self._uploaded = True


def build_pipeline(
    template: str,
    mode: Mode,
    options: PipelineOptions,
    var_file: VarFile,
    cfg_path: Path,
    stage_names: list[str],
    fabric_dir: Path,
    seeds_dir: Path,
    runner: TerraformRunner,
    seed_options: SeedOptions,
    store_factory: StoreFactory | None = None,
) -> Pipeline:
    """Construct the full stage list for ``template``: foundation first, seed last."""
    config = var_file.config
    if config is None:
        raise RuntimeError("Var file has no config attached")

    stages: list[Stage] = list(
        initialize_stages(
            cfg_path,
            config.prefix,
            var_file,
            stage_names,
            fabric_dir,
            runner,
            store_factory,
            materialize=mode == Mode.PLANT and not options.skip_foundation,
        )
    )

    seed = SeedStage.hydrate_seed(
        template, config.prefix, cfg_path, seeds_dir, runner, store_factory
    )
    seed.add_var_file(var_file)
    stages.append(seed)

    return Pipeline(stages, var_file, mode, options, seed_options)
