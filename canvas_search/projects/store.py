"""Client for the external project persistence service."""

from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from canvas_search.config import ProjectStoreSettings, get_settings
from canvas_search.exceptions import ProjectStoreError
from canvas_search.logging_config import get_logger

logger = get_logger(__name__)


class ProjectStore(ABC):
    """Abstract base class for project persistence.

    Project CRUD lives elsewhere; this side only writes back what
    description synthesis produced.
    """

    @abstractmethod
    async def patch_project_metadata(
        self,
        project_id: str,
        description: str,
        thumbnail: str | None = None,
    ) -> None:
        """Store a project's generated description and thumbnail.

        Args:
            project_id: Project identifier.
            description: Generated description.
            thumbnail: Thumbnail URL (a ``data:`` URL is accepted).

        Raises:
            ProjectStoreError: If the write fails.
        """
        ...


class HTTPProjectStore(ProjectStore):
    """Project store reached over the project REST API."""

    def __init__(
        self,
        settings: ProjectStoreSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().project_store
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def patch_project_metadata(
        self,
        project_id: str,
        description: str,
        thumbnail: str | None = None,
    ) -> None:
        """PATCH the project's description and thumbnail."""
        client = await self._get_client()
        url = f"{self._settings.base_url}/api/projects/{quote(project_id, safe='')}"

        body: dict[str, str] = {"description": description}
        if thumbnail is not None:
            body["thumbnailUrl"] = thumbnail

        headers = {}
        if self._settings.api_key:
            headers["Authorization"] = (
                f"Bearer {self._settings.api_key.get_secret_value()}"
            )

        try:
            response = await client.patch(url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Project metadata update failed: {e.response.status_code}",
                extra={"project_id": project_id, "status": e.response.status_code},
            )
            raise ProjectStoreError(
                f"Project store returned {e.response.status_code}",
                details={"project_id": project_id, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(
                f"Project store request error: {e}",
                extra={"project_id": project_id},
            )
            raise ProjectStoreError(
                f"Failed to reach project store: {e}",
                details={"project_id": project_id, "url": url},
            ) from e

        logger.debug("Patched project metadata", extra={"project_id": project_id})
