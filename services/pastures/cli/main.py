"""
CLI entry point: plant, burn and plow.

Usage:
    pasture plant <template> [flags]
    pasture burn <template> [flags]
    pasture plow --prefix <prefix> --org-id <id> --domain <domain> --billing-account <id>

Every error exits with status 1. Error text goes to stderr; progress and the
seed project link go to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import NoReturn

import yaml
from pydantic import ValidationError

from pastures import __version__
from pastures.cli.plow import add_plow_arguments, cmd_plow
from pastures.config import DEFAULT_CONFIG_FILE, Settings, load_settings
from pastures.errors import ConfigParseError, PastureError
from pastures.fabric.hydrate import config_path, hydrate_var_file
from pastures.fabric.pipeline import Mode, PipelineOptions, build_pipeline
from pastures.google import app_default_credentials
from pastures.logging_config import configure_logging, get_logger
from pastures.seeds import TEMPLATES, get_template
from pastures.storage import store_factory
from pastures.terraform import TerraformRunner

logger = get_logger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _common_flags() -> argparse.ArgumentParser:
    """Persistent flags, accepted before or after the verb."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help=f"config file (default is {DEFAULT_CONFIG_FILE})",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="controls Terraform output verbosity",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        default=argparse.SUPPRESS,
        help="plan the bootstrap stage only and stop",
    )
    common.add_argument(
        "--skip-foundation",
        action="store_true",
        default=argparse.SUPPRESS,
        help="assume the FAST foundation already exists",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_flags()
    parser = _ArgumentParser(
        prog="pasture",
        description="Pastures is a CLI toolkit that will create POC landing zones in your "
        "Google Cloud organization. It relies on the Cloud Foundation Fabric framework to "
        "establish a GCP foundation, and it will deploy each 'pasture' as a Sandbox project.",
        parents=[common],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    verbs = parser.add_subparsers(dest="command", required=True)

    for mode, verb_help in (
        (Mode.PLANT, "Deploy a pasture"),
        (Mode.BURN, "Destroy a pasture (the foundation is left in place)"),
    ):
        verb = verbs.add_parser(mode.value, help=verb_help, parents=[common])
        templates = verb.add_subparsers(dest="template", required=True)
        for template in TEMPLATES.values():
            sub = templates.add_parser(
                template.name,
                help=template.help,
                description=template.description,
                formatter_class=argparse.RawDescriptionHelpFormatter,
                parents=[common],
            )
            template.add_arguments(sub)
            sub.set_defaults(func=cmd_template, mode=mode)

    plow = verbs.add_parser(
        "plow", help="Write the pasture configuration and prepare the organization", parents=[common]
    )
    add_plow_arguments(plow)
    plow.set_defaults(func=cmd_plow)

    return parser


def _check_one_of_required(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    template_name = getattr(args, "template", None)
    if template_name is None:
        return

    group = get_template(template_name).one_of_required
    if group and not any(getattr(args, flag.replace("-", "_"), False) for flag in group):
        parser.error(
            f"at least one of the flags in the group [{' '.join(group)}] is required"
        )


async def cmd_template(args: argparse.Namespace, settings: Settings) -> int:
    """Plant or burn a template."""
    template = get_template(args.template)
    seed_options = template.options_from_args(args)
    options = PipelineOptions(
        dry_run=getattr(args, "dry_run", False),
        skip_foundation=getattr(args, "skip_foundation", False),
    )

    cfg_path = config_path(settings)

    await app_default_credentials()

    stores = store_factory(settings.storage)
    var_file = hydrate_var_file(settings, stores)
    runner = TerraformRunner(settings.terraform_binary, verbose=settings.verbose)

    pipeline = build_pipeline(
        template=template.name,
        mode=args.mode,
        options=options,
        var_file=var_file,
        cfg_path=cfg_path,
        stage_names=settings.foundation_stages,
        fabric_dir=settings.fabric_path(),
        seeds_dir=settings.seeds_path(),
        runner=runner,
        seed_options=seed_options,
        store_factory=stores,
    )
    result = await pipeline.run()

    if result.project_url:
        print(f"Access your seed project: {result.project_url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _check_one_of_required(parser, args)

    overrides = {"verbose": True} if getattr(args, "verbose", False) else {}
    try:
        settings = load_settings(getattr(args, "config", None), **overrides)
    except (ValidationError, yaml.YAMLError, OSError) as e:
        print(f"Unable to load configuration: {e}", file=sys.stderr)
        return 1

    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 1
    except ConfigParseError as e:
        print("Unable to read var file. Try running pasture plow --rehydrate", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return 1
    except PastureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())
