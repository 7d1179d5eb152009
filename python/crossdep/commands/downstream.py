"""Downstream command: find projects that depend on a project."""

import logging

from ..models import ProjectId
from ..resolver import DependencyResolver

logger = logging.getLogger(__name__)


def show_downstream(resolver: DependencyResolver, project: str) -> str:
    """List ``group:artifact@revision`` for every dependent project."""
    project_id = ProjectId.parse(project)
    dependents = sorted(resolver.get_downstream_projects(project_id))
    if not dependents:
        logger.info(f"No projects depend on {project_id}")
        return ''
    return '\n'.join(str(d) for d in dependents) + '\n'
