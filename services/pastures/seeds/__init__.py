"""
Pasture templates.

Each template declares its command-line flags once and turns the parsed
flags into the seed variables passed to terraform.
"""

import argparse
from collections.abc import Callable
from dataclasses import dataclass, field

from pastures.fabric.pipeline import SeedOptions
from pastures.seeds import data_cloud


@dataclass(frozen=True)
class Template:
    name: str
    help: str
    description: str
    add_arguments: Callable[[argparse.ArgumentParser], None]
    options_from_args: Callable[[argparse.Namespace], SeedOptions]
    one_of_required: tuple[str, ...] = field(default=())


TEMPLATES: dict[str, Template] = {
    data_cloud.NAME: Template(
        name=data_cloud.NAME,
        help=data_cloud.HELP,
        description=data_cloud.DESCRIPTION,
        add_arguments=data_cloud.add_arguments,
        options_from_args=data_cloud.options_from_args,
        one_of_required=data_cloud.JUMPSTART_FLAGS,
    ),
}


def get_template(name: str) -> Template:
    return TEMPLATES[name]
