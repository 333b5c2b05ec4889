"""
Organization IAM bindings.

Grants the roles FAST bootstrap needs to a Google group. The policy is read,
merged and written back with the etag from the read, so a concurrent edit
makes the write fail instead of being clobbered; the merge is then retried on
a fresh copy of the policy.
"""

from __future__ import annotations

from typing import Any

from google.api_core import exceptions as api_exceptions

from pastures.config import Organization
from pastures.errors import PolicyReadError, PolicyWriteError
from pastures.logging_config import get_logger

logger = get_logger(__name__)

MAX_POLICY_ATTEMPTS = 3

REQUIRED_ORG_ROLES = [
    "roles/billing.admin",
    "roles/logging.admin",
    "roles/iam.organizationRoleAdmin",
    "roles/orgpolicy.policyAdmin",
    "roles/resourcemanager.folderAdmin",
    "roles/resourcemanager.organizationAdmin",
    "roles/resourcemanager.projectCreator",
    "roles/resourcemanager.tagAdmin",
    "roles/owner",
]


def group_member(org: Organization, group_name: str) -> str:
    return f"group:{group_name}@{org.domain}"


def merge_roles(policy: Any, member: str, roles: list[str]) -> None:
    """Add ``member`` to each role's binding in ``policy``, in place.

    Members are appended without deduplication; the API treats repeated adds
    as a no-op.
    """
    for role in roles:
        for binding in policy.bindings:
            if binding.role == role:
                binding.members.append(member)
                break
        else:
            policy.bindings.add(role=role, members=[member])


def _new_client() -> Any:
    from google.cloud import resourcemanager_v3

    return resourcemanager_v3.OrganizationsAsyncClient()


async def set_required_org_iam_roles(
    org: Organization,
    group_name: str,
    roles: list[str],
    client: Any = None,
) -> None:
    """Grant ``roles`` on ``org`` to ``group:<group_name>@<org.domain>``.

    Raises:
        PolicyReadError: If the current policy cannot be fetched.
        PolicyWriteError: If the updated policy cannot be stored.
    """
    owns_client = client is None
    if owns_client:
        client = _new_client()

    resource = f"organizations/{org.id}"
    member = group_member(org, group_name)

    try:
        for attempt in range(1, MAX_POLICY_ATTEMPTS + 1):
            try:
                policy = await client.get_iam_policy(request={"resource": resource})
            except api_exceptions.GoogleAPICallError as e:
                raise PolicyReadError(f"Unable to read IAM policy for {resource}: {e}") from e

            merge_roles(policy, member, roles)

            try:
                await client.set_iam_policy(request={"resource": resource, "policy": policy})
            except api_exceptions.Aborted as e:
                logger.warning(
                    "IAM policy changed concurrently, retrying",
                    resource=resource,
                    attempt=attempt,
                )
                if attempt == MAX_POLICY_ATTEMPTS:
                    raise PolicyWriteError(
                        f"IAM policy for {resource} kept changing after {attempt} attempts: {e}"
                    ) from e
                continue
            except api_exceptions.GoogleAPICallError as e:
                raise PolicyWriteError(f"Unable to write IAM policy for {resource}: {e}") from e

            logger.info("Granted organization roles", member=member, roles=len(roles))
            return
    finally:
        if owns_client:
            await client.transport.close()
