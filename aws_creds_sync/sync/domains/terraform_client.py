"""Terraform Cloud workspace variable client."""
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from .config_loader import TargetSettings
from .errors import RequestFailedError, ResourceNotFoundError
from .http_client import ApiClient
from .models import (
    ENV_CATEGORY,
    HCL,
    SENSITIVE,
    CREATED,
    SKIPPED,
    UPDATED,
    UpsertOutcome,
    Workspace,
    WorkspaceVariable,
)

logger = logging.getLogger(__name__)


def create_variable_payload(name: str, value: str) -> Dict[str, Any]:
    """Build the JSON:API body for a new sensitive environment variable."""
    return {
        "data": {
            "type": "vars",
            "attributes": {
                "key": name,
                "value": value,
                "category": ENV_CATEGORY,
                "hcl": HCL,
                "sensitive": SENSITIVE,
            },
        }
    }


def update_variable_payload(variable: WorkspaceVariable, value: str) -> Dict[str, Any]:
    """Build the JSON:API body that replaces only the value of a variable."""
    return {
        "data": {
            "type": variable.type,
            "id": variable.id,
            "attributes": {"value": value},
        }
    }


def find_variable(variables: Iterable[WorkspaceVariable], name: str) -> Optional[WorkspaceVariable]:
    """Return the env-category variable with the given key, if any."""
    for variable in variables:
        if variable.key == name and variable.category == ENV_CATEGORY:
            return variable
    return None


class TerraformClient:
    """Resolves Terraform Cloud workspaces and upserts their variables."""

    def __init__(self, api: ApiClient):
        self.api = api

    @classmethod
    def from_settings(
        cls, settings: TargetSettings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "TerraformClient":
        api = ApiClient(
            settings.api_url,
            headers={
                "Content-Type": "application/vnd.api+json",
                "Authorization": f"Bearer {settings.api_token}",
            },
            timeout=settings.timeout,
            transport=transport,
        )
        return cls(api)

    async def close(self) -> None:
        await self.api.close()

    async def get_workspace(self, organization: str, workspace: str) -> Workspace:
        """
        Find a workspace by exact name within an organization.

        Follows `links.next` so every page of the listing is searched; a
        page that was already visited ends the listing.

        Raises:
            ResourceNotFoundError: If no workspace name matches exactly
            RequestFailedError: If a listing request fails
        """
        path: Optional[str] = f"organizations/{organization}/workspaces"
        seen = set()
        try:
            while path and path not in seen:
                seen.add(path)
                body = await self.api.get(path) or {}
                for item in body.get("data", []):
                    if item.get("attributes", {}).get("name") == workspace:
                        logger.debug(f"Resolved workspace {workspace} to id {item['id']}")
                        return Workspace(id=item["id"], name=workspace)
                path = (body.get("links") or {}).get("next")
        except RequestFailedError:
            logger.error(f"Failed to list workspaces in organization {organization}.")
            raise

        logger.error(f"No workspace exists with name {workspace} in organization {organization}.")
        raise ResourceNotFoundError(
            f"No workspace exists with name {workspace} in organization {organization}"
        )

    async def get_existing_variables(self, workspace_id: str) -> Tuple[WorkspaceVariable, ...]:
        """Fetch a snapshot of the workspace's environment variables."""
        try:
            body = await self.api.get(f"workspaces/{workspace_id}/vars") or {}
        except RequestFailedError:
            logger.error(f"Failed to read variables of workspace {workspace_id}.")
            raise

        variables = tuple(
            WorkspaceVariable(
                id=item["id"],
                type=item.get("type", "vars"),
                key=item["attributes"]["key"],
                category=item["attributes"].get("category"),
            )
            for item in body.get("data", [])
            if item.get("attributes", {}).get("category") == ENV_CATEGORY
        )
        logger.debug(f"Workspace {workspace_id} has {len(variables)} env variables")
        return variables

    async def upsert_variable(
        self,
        workspace_id: str,
        existing_variables: Iterable[WorkspaceVariable],
        name: str,
        value: Optional[str],
    ) -> UpsertOutcome:
        """
        Update the variable if it exists in the snapshot, otherwise create it.

        Args:
            workspace_id: Workspace id
            existing_variables: Snapshot from get_existing_variables
            name: Variable key
            value: New value; empty or None skips the variable

        Raises:
            RequestFailedError: If the PATCH or POST fails
        """
        if not value:
            logger.info(f"No value found for variable {name}. Skipping...")
            return UpsertOutcome(name, SKIPPED)

        existing = find_variable(existing_variables, name)
        try:
            if existing:
                await self.api.patch(
                    f"workspaces/{workspace_id}/vars/{existing.id}",
                    update_variable_payload(existing, value),
                )
                action = UPDATED
            else:
                await self.api.post(
                    f"workspaces/{workspace_id}/vars",
                    create_variable_payload(name, value),
                )
                action = CREATED
        except RequestFailedError:
            logger.error(f"Failed to update environment variable {name} in workspace {workspace_id}.")
            raise

        logger.info(f"Successfully {action} environment variable {name} in workspace {workspace_id}")
        return UpsertOutcome(name, action)
