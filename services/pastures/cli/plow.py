"""
``pasture plow``: hydrate the pasture configuration.

Writes the shared var file into the configuration directory and, unless told
otherwise, grants the organization roles FAST bootstrap needs to the
organization admins group.
"""

from __future__ import annotations

import argparse
from typing import Any

from pydantic import ValidationError

from pastures.config import FastConfig, Organization, Settings
from pastures.errors import ConfigParseError, PastureError
from pastures.fabric.hydrate import var_file_path
from pastures.fabric.varfile import VarFile
from pastures.google import REQUIRED_ORG_ROLES, app_default_credentials, set_required_org_iam_roles
from pastures.logging_config import get_logger

logger = get_logger(__name__)


def add_plow_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--prefix", required=True, help="Unique prefix for resource names")
    parser.add_argument("--org-id", type=int, required=True, help="Numeric GCP organization ID")
    parser.add_argument("--domain", required=True, help="Organization DNS domain")
    parser.add_argument("--billing-account", required=True, help="Billing account ID")
    parser.add_argument("--customer-id", default="", help="Cloud Identity customer ID")
    parser.add_argument(
        "--group",
        default=None,
        help="Group granted the organization roles (default: admin_group setting)",
    )
    parser.add_argument(
        "--rehydrate",
        action="store_true",
        help="Rewrite an existing var file, keeping keys not set by these flags",
    )
    parser.add_argument(
        "--skip-iam",
        action="store_true",
        help="Do not grant organization roles",
    )


def _plow_body(args: argparse.Namespace) -> dict[str, Any]:
    organization: dict[str, Any] = {"id": args.org_id, "domain": args.domain}
    if args.customer_id:
        organization["customer_id"] = args.customer_id
    return {
        "prefix": args.prefix,
        "organization": organization,
        "billing_account": {"id": args.billing_account},
    }


async def cmd_plow(args: argparse.Namespace, settings: Settings) -> int:
    body = _plow_body(args)
    path = var_file_path(settings)

    try:
        FastConfig.model_validate(body)
        organization = Organization.model_validate(body["organization"])
    except ValidationError as e:
        raise PastureError(f"Invalid plow arguments: {e.errors()[0]['msg']}") from e

    if path.exists():
        if not args.rehydrate:
            raise PastureError(f"Var file already exists at {path}; use --rehydrate to rewrite it")
        try:
            var_file = VarFile.load(path)
            var_file.update(**body)
            logger.info("Rehydrated var file", path=str(path))
        except ConfigParseError as e:
            logger.warning("Existing var file unreadable, replacing it", reason=str(e))
            VarFile.create(path, body)
    else:
        VarFile.create(path, body)

    if not args.skip_iam:
        group = args.group or settings.admin_group
        await app_default_credentials()
        await set_required_org_iam_roles(organization, group, REQUIRED_ORG_ROLES)

    print(f"Pasture configuration written to {path}")
    return 0
