"""
Naming helpers for buckets and objects.

Bucket names follow the FAST foundation conventions so that the buckets
created by the bootstrap stage are the ones pastures reads and writes.
"""

import re

PASTURES_VARS_OBJECT = "tfvars/0-pastures.auto.tfvars.json"

_STAGE_NUMBER = re.compile(r"^(\d+)-")


def outputs_bucket(prefix: str) -> str:
    """Bucket holding provider files and tfvars produced by the foundation."""
    return f"{prefix}-prod-iac-core-outputs"


def state_bucket(prefix: str) -> str:
    """Bucket holding terraform state for the foundation and seeds."""
    return f"{prefix}-prod-iac-core-0"


def providers_key(stage_name: str) -> str:
    """Key for a stage's providers file in the outputs bucket."""
    return f"providers/{stage_name}-providers.tf"


def tfvars_key(stage_name: str) -> str:
    """Key for a stage's output tfvars in the outputs bucket."""
    return f"tfvars/{stage_name}.auto.tfvars.json"


def state_path(state_dir: str) -> str:
    """Object path of a stage's state within the state bucket."""
    return f"{state_dir}/default.tfstate"


def stage_number(stage_name: str) -> int | None:
    """Leading integer of a foundation stage name, e.g. 1 for ``1-resman``."""
    match = _STAGE_NUMBER.match(stage_name)
    if not match:
        return None
    return int(match.group(1))


# --- Stage dependencies ---


def foundation_dependencies(stage_name: str) -> list[str]:
    """Objects a foundation stage needs before it runs.

    Every stage needs its own providers file. Stages after bootstrap also need
    the globals tfvars and the tfvars of every earlier foundation stage.
    """
    number = stage_number(stage_name)
    deps = [providers_key(stage_name)]
    if number is None or number == 0:
        return deps

    deps.append(tfvars_key("0-globals"))
    deps.append(tfvars_key("0-bootstrap"))
    if number >= 2:
        deps.append(tfvars_key("1-resman"))
    return deps


def seed_dependencies() -> list[str]:
    """Objects a seed stage needs before it runs."""
    return [
        tfvars_key("0-globals"),
        tfvars_key("0-bootstrap"),
        tfvars_key("1-resman"),
    ]
