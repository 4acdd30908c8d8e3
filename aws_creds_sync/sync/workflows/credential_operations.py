"""Workflows that copy AWS credentials from the environment into remote stores."""
import os
import asyncio
import logging
from typing import Awaitable, List, Mapping, Optional

from ..domains.circleci_client import CircleCIClient
from ..domains.errors import CredentialSyncError
from ..domains.models import CREDENTIAL_KEYS, SecretEntry, SyncReport, UpsertOutcome
from ..domains.terraform_client import TerraformClient

logger = logging.getLogger(__name__)


def read_credentials(environ: Optional[Mapping[str, str]] = None) -> List[SecretEntry]:
    """
    Read the fixed set of AWS credentials from the environment.

    Missing variables are returned with value None so the upsert step can
    report them as skipped.
    """
    if environ is None:
        environ = os.environ
    return [SecretEntry(name, environ.get(name) or None) for name in CREDENTIAL_KEYS]


async def run_upserts(resource: str, entries: List[SecretEntry], upserts: List[Awaitable[UpsertOutcome]]) -> SyncReport:
    """
    Await all upserts concurrently and collect their outcomes.

    Every upsert is allowed to settle before failures are reported, so one
    failed credential never cancels the others.

    Raises:
        CredentialSyncError: If any upsert failed
    """
    results = await asyncio.gather(*upserts, return_exceptions=True)

    report = SyncReport(resource=resource)
    failed = []
    for entry, result in zip(entries, results):
        if isinstance(result, BaseException):
            logger.error(f"Could not sync {entry.name} to {resource}: {result}")
            failed.append(entry.name)
        else:
            report.outcomes.append(result)

    if failed:
        raise CredentialSyncError(resource, failed)

    logger.debug(f"Applied {report.applied}, skipped {report.skipped} for {resource}")
    return report


async def sync_project_credentials(
    client: CircleCIClient,
    organization: str,
    project: str,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncReport:
    """
    Copy AWS credentials into a CircleCI project's environment variables.

    Raises:
        RequestFailedError: If the project lookup fails
        CredentialSyncError: If any variable could not be written
    """
    project_details = await client.get_project(organization, project)
    entries = read_credentials(environ)
    upserts = [client.upsert_variable(project_details.slug, e.name, e.value) for e in entries]
    return await run_upserts(f"project {project_details.slug}", entries, upserts)


async def sync_workspace_credentials(
    client: TerraformClient,
    organization: str,
    workspace: str,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncReport:
    """
    Copy AWS credentials into a Terraform Cloud workspace's variables.

    The existing variables are read once; each credential is then updated
    in place or created.

    Raises:
        ResourceNotFoundError: If no workspace has the given name
        RequestFailedError: If the lookup or variable listing fails
        CredentialSyncError: If any variable could not be written
    """
    workspace_details = await client.get_workspace(organization, workspace)
    existing_variables = await client.get_existing_variables(workspace_details.id)
    entries = read_credentials(environ)
    upserts = [
        client.upsert_variable(workspace_details.id, existing_variables, e.name, e.value)
        for e in entries
    ]
    return await run_upserts(f"workspace {workspace_details.name}", entries, upserts)
