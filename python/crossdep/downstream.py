"""Reverse dependency lookup: which projects depend on a given project."""

import logging
from abc import ABC, abstractmethod
from typing import Set

from .models import ProjectId, ProjectRevision, RevisionRef
from .providers import ProjectSource

logger = logging.getLogger(__name__)


class DownstreamSearch(ABC):
    """Finds projects whose current revision declares a dependency on a project."""

    @abstractmethod
    def find_downstream(self, project_id: ProjectId) -> Set[ProjectRevision]:
        """Return the current revisions of all projects depending on ``project_id``."""


class ProjectScanDownstreamSearch(DownstreamSearch):
    """
    Brute-force downstream search.

    There is no reverse dependency index, so every project's current
    configuration is read and its direct dependencies are checked. This is
    O(number of projects) per query.
    """

    def __init__(self, source: ProjectSource):
        self.source = source

    def find_downstream(self, project_id: ProjectId) -> Set[ProjectRevision]:
        results: Set[ProjectRevision] = set()
        projects = self.source.get_projects()
        logger.info(f"Scanning {len(projects)} projects for dependents of {project_id}")

        for other in projects:
            if other == project_id:
                continue
            revision_id = self.source.get_current_revision(other)
            config = self.source.get_configuration(other, RevisionRef(revision_id))
            if any(dep.project_id == project_id for dep in config.dependencies):
                logger.debug(f"{other}@{revision_id} depends on {project_id}")
                results.add(ProjectRevision(other, revision_id))

        logger.info(f"Found {len(results)} downstream projects of {project_id}")
        return results
