"""CircleCI project environment variable client."""
import logging
from typing import Optional

import httpx

from .config_loader import TargetSettings
from .errors import RequestFailedError, ResourceNotFoundError
from .http_client import ApiClient
from .models import Project, UpsertOutcome, OVERWRITTEN, SKIPPED

logger = logging.getLogger(__name__)


class CircleCIClient:
    """Resolves CircleCI projects and overwrites their environment variables."""

    def __init__(self, api: ApiClient, vcs: str = "gh"):
        self.api = api
        self.vcs = vcs

    @classmethod
    def from_settings(
        cls, settings: TargetSettings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "CircleCIClient":
        api = ApiClient(
            settings.api_url,
            headers={"content-type": "application/json", "circle-token": settings.api_token},
            timeout=settings.timeout,
            transport=transport,
        )
        return cls(api, vcs=settings.vcs or "gh")

    async def close(self) -> None:
        await self.api.close()

    async def get_project(self, organization: str, project: str) -> Project:
        """
        Look up a project by organization and name.

        Returns:
            Project whose slug addresses it in later calls

        Raises:
            RequestFailedError: If the lookup fails (including 404)
            ResourceNotFoundError: If the response carries no project slug
        """
        try:
            data = await self.api.get(f"project/{self.vcs}/{organization}/{project}")
        except RequestFailedError:
            logger.error(f"Failed to find project {project} in organization {organization}.")
            raise

        if not data or not data.get("slug"):
            logger.error(f"Lookup of project {project} in organization {organization} returned no slug.")
            raise ResourceNotFoundError(f"No project slug returned for {project} in organization {organization}")

        logger.debug(f"Resolved project {project} to slug {data['slug']}")
        return Project(
            slug=data["slug"],
            name=data.get("name", project),
            organization_name=data.get("organization_name"),
        )

    async def upsert_variable(self, project_slug: str, name: str, value: Optional[str]) -> UpsertOutcome:
        """
        Create or overwrite an environment variable by name.

        CircleCI overwrites an existing variable with the same name, so no
        existence check is needed.
        """
        if not value:
            logger.info(f"No value found for variable {name}. Skipping...")
            return UpsertOutcome(name, SKIPPED)

        try:
            await self.api.post(f"project/{project_slug}/envvar", {"name": name, "value": value})
        except RequestFailedError:
            logger.error(f"Failed to update environment variable {name} in project {project_slug}.")
            raise

        logger.info(f"Successfully updated environment variable {name} in project {project_slug}")
        return UpsertOutcome(name, OVERWRITTEN)
