"""Google Cloud helpers: credential probing and organization IAM."""

from pastures.google.credentials import app_default_credentials
from pastures.google.iam import REQUIRED_ORG_ROLES, set_required_org_iam_roles

__all__ = ["REQUIRED_ORG_ROLES", "app_default_credentials", "set_required_org_iam_roles"]
