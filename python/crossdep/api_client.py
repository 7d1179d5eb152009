"""Client for the metadata (depot) service."""

import logging
from typing import Any, Dict, List, Optional, Set
from urllib.parse import quote

import requests

from .config import Settings
from .exceptions import NotFound, ProviderUnavailable
from .models import Entity, ProjectVersion
from .providers import MetadataProvider
from .ssl_config import create_session

logger = logging.getLogger(__name__)


class DepotClient(MetadataProvider):
    """Metadata provider backed by the depot REST API.

    The client does not cache; resolution calls own their caches. Transport
    retries are handled by the session adapter (see ``ssl_config``).
    """

    ENTITIES_PATH = "/api/projects/{group}/{artifact}/versions/{version}"
    DEPENDENCIES_PATH = "/api/projects/{group}/{artifact}/versions/{version}/projectDependencies"

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        """Initialize the API client."""
        self.settings = settings or Settings()
        self.base_url = self.settings.depot_url.rstrip('/')
        self.session = session or create_session(self.settings)

    def _url(self, template: str, version: ProjectVersion) -> str:
        path = template.format(
            group=quote(version.group, safe=''),
            artifact=quote(version.artifact, safe=''),
            version=quote(version.version, safe=''),
        )
        return f"{self.base_url}{path}"

    def _get_json(self, version: ProjectVersion, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        logger.debug(f"GET {url} params={params}")
        try:
            response = self.session.get(url, params=params, timeout=self.settings.timeout)
        except requests.RequestException as e:
            logger.error(f"Error contacting metadata service for {version}: {e}")
            raise ProviderUnavailable(version, str(e), self.base_url) from e

        if response.status_code == 404:
            logger.info(f"{version} not found in metadata service")
            raise NotFound(version)
        if response.status_code != 200:
            logger.error(f"Metadata service returned HTTP {response.status_code} for {version}")
            raise ProviderUnavailable(version, f"HTTP {response.status_code}", self.base_url)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(version, f"Failed to process response: {e}", self.base_url) from e

    def get_dependencies(self, version: ProjectVersion, transitive: bool = False) -> Set[ProjectVersion]:
        """
        Get the declared project dependencies of a published version.

        Args:
            version: The project version to look up
            transitive: Ask the service for the full transitive set

        Returns:
            Set of dependency project versions
        """
        url = self._url(self.DEPENDENCIES_PATH, version)
        data = self._get_json(version, url, {"transitive": "true" if transitive else "false"})
        if not isinstance(data, list):
            raise ProviderUnavailable(version, "expected a list of project versions", self.base_url)

        dependencies = set()
        try:
            for item in data:
                dependencies.add(ProjectVersion.of(item["groupId"], item["artifactId"], item["versionId"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailable(version, f"Invalid dependency entry: {e}", self.base_url) from e

        logger.debug(f"{version} has {len(dependencies)} {'transitive' if transitive else 'direct'} dependencies")
        return dependencies

    def get_entities(self, version: ProjectVersion) -> List[Entity]:
        """Get the entities of a published version."""
        data = self._get_json(version, self._url(self.ENTITIES_PATH, version))
        if not isinstance(data, list):
            raise ProviderUnavailable(version, "expected a list of entities", self.base_url)
        try:
            entities = [Entity.from_dict(item) for item in data]
        except ValueError as e:
            raise ProviderUnavailable(version, str(e), self.base_url) from e
        logger.debug(f"Fetched {len(entities)} entities for {version}")
        return entities

    def close(self):
        """Close the session and clean up resources."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
