"""Collaborator interfaces consumed by the resolver, plus in-memory implementations."""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .closure import transitive_closure
from .exceptions import NotFound
from .models import Entity, ProjectConfiguration, ProjectId, ProjectVersion, RevisionRef

logger = logging.getLogger(__name__)


class MetadataProvider(ABC):
    """Published project metadata (the package index / metadata service)."""

    @abstractmethod
    def get_dependencies(self, version: ProjectVersion, transitive: bool = False) -> Set[ProjectVersion]:
        """Return the declared dependencies of a published project version.

        Raises:
            NotFound: the project version is unknown
            ProviderUnavailable: the service could not be reached
        """

    @abstractmethod
    def get_entities(self, version: ProjectVersion) -> List[Entity]:
        """Return the entities of a published project version."""


class ProjectSource(ABC):
    """Live, version-control-backed project configurations (unpublished state)."""

    @abstractmethod
    def get_projects(self) -> List[ProjectId]:
        """Return every project that has a main-line (current) revision."""

    @abstractmethod
    def get_current_revision(self, project_id: ProjectId) -> str:
        """Return the id of the current revision of a project."""

    @abstractmethod
    def get_configuration(self, project_id: ProjectId, ref: RevisionRef) -> ProjectConfiguration:
        """Return the dependencies and entities of a project at ``ref``."""


class InMemoryMetadataProvider(MetadataProvider):
    """Dictionary-backed metadata provider that counts fetches per coordinate."""

    def __init__(self):
        self._versions: Dict[ProjectVersion, Tuple[frozenset, Tuple[Entity, ...]]] = {}
        self.dependency_calls: Counter = Counter()
        self.entity_calls: Counter = Counter()

    def add_version(
        self,
        version: ProjectVersion,
        dependencies: Iterable[ProjectVersion] = (),
        entities: Iterable[Entity] = (),
    ) -> "InMemoryMetadataProvider":
        self._versions[version] = (frozenset(dependencies), tuple(entities))
        return self

    def versions(self) -> List[ProjectVersion]:
        return sorted(self._versions)

    def _lookup(self, version: ProjectVersion) -> Tuple[frozenset, Tuple[Entity, ...]]:
        try:
            return self._versions[version]
        except KeyError:
            raise NotFound(version) from None

    def get_dependencies(self, version: ProjectVersion, transitive: bool = False) -> Set[ProjectVersion]:
        self.dependency_calls[version] += 1
        direct = self._lookup(version)[0]
        if not transitive:
            return set(direct)
        return transitive_closure(direct, lambda pv: self._lookup(pv)[0])

    def get_entities(self, version: ProjectVersion) -> List[Entity]:
        self.entity_calls[version] += 1
        return list(self._lookup(version)[1])


class InMemoryProjectSource(ProjectSource):
    """Dictionary-backed project source.

    Revisions are kept in insertion order per (project, workspace); the last
    revision added to the main line is the project's current revision.
    """

    def __init__(self):
        self._revisions: Dict[Tuple[ProjectId, Optional[str]], Dict[str, ProjectConfiguration]] = {}
        self._current: Dict[ProjectId, str] = {}

    def add_revision(
        self,
        project_id: ProjectId,
        revision_id: str,
        dependencies: Iterable[ProjectVersion] = (),
        entities: Iterable[Entity] = (),
        workspace_id: Optional[str] = None,
    ) -> "InMemoryProjectSource":
        config = ProjectConfiguration(project_id, frozenset(dependencies), tuple(entities))
        self._revisions.setdefault((project_id, workspace_id), {})[revision_id] = config
        if workspace_id is None:
            self._current[project_id] = revision_id
        return self

    def get_projects(self) -> List[ProjectId]:
        return sorted(self._current)

    def get_current_revision(self, project_id: ProjectId) -> str:
        try:
            return self._current[project_id]
        except KeyError:
            raise NotFound(project_id, f"Unknown project or no revisions: {project_id}") from None

    def get_configuration(self, project_id: ProjectId, ref: RevisionRef) -> ProjectConfiguration:
        revisions = self._revisions.get((project_id, ref.workspace_id))
        if not revisions:
            raise NotFound(project_id, f"Unknown project {project_id} ({ref})")
        if ref.revision_id is None:
            return list(revisions.values())[-1]
        try:
            return revisions[ref.revision_id]
        except KeyError:
            raise NotFound(project_id, f"Unknown {ref} of project {project_id}") from None
