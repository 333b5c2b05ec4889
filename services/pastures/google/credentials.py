"""
Application Default Credentials probe.

Terraform, the storage client and the IAM client all rely on ADC, so the CLI
checks them once before any stage runs.
"""

import asyncio
from typing import Any

import google.auth
import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError

from pastures.errors import AuthError
from pastures.logging_config import get_logger

logger = get_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


def _probe() -> Any:
    credentials, project_id = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    # Refreshing forces a token exchange, which fails on stale or revoked ADC
    credentials.refresh(google.auth.transport.requests.Request())
    logger.debug("Application Default Credentials valid", project_id=project_id)
    return credentials


async def app_default_credentials() -> Any:
    """Return usable ADC credentials.

    Raises:
        AuthError: If no credentials are found or the token cannot be refreshed.
    """
    try:
        return await asyncio.to_thread(_probe)
    except GoogleAuthError as e:
        raise AuthError(
            f"Application Default Credentials are not usable: {e}. "
            "Run 'gcloud auth application-default login'."
        ) from e
