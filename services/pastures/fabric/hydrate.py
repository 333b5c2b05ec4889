"""
Config hydration.

Locates the per-user configuration directory, loads the shared var file,
validates it and pins its remote object reference to the prefix's outputs
bucket.
"""

from pathlib import Path

from pastures.config import Settings
from pastures.fabric.varfile import VarFile
from pastures.logging_config import get_logger
from pastures.storage import StoreFactory

logger = get_logger(__name__)


def config_path(settings: Settings) -> Path:
    """Return the configuration directory, creating it if needed."""
    path = settings.config_path()
    path.mkdir(parents=True, exist_ok=True)
    return path


def var_file_path(settings: Settings) -> Path:
    return config_path(settings) / settings.var_file_name


def hydrate_var_file(settings: Settings, store_factory: StoreFactory | None = None) -> VarFile:
    """Load the shared var file and fix its remote reference.

    Raises:
        ConfigParseError: If the file is missing, malformed or has a bad prefix.
    """
    var_file = VarFile.load(var_file_path(settings), store_factory)
    config = var_file.read_config()
    var_file.add_config(config)
    var_file.set_bucket(config.prefix)

    logger.debug(
        "Hydrated configuration",
        prefix=config.prefix,
        bucket=var_file.bucket,
        object=var_file.remote_path,
    )
    return var_file
