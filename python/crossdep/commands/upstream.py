"""Upstream command: list the dependencies of a published project version."""

import logging

from ..formatters import OutputFormatter
from ..models import ProjectVersion
from ..resolver import DependencyResolver

logger = logging.getLogger(__name__)

FORMATTERS = {
    'list': OutputFormatter.format_as_list,
    'json': OutputFormatter.format_as_json,
    'sbom': OutputFormatter.format_as_sbom,
}


def show_upstream(resolver: DependencyResolver, coordinate: str, transitive: bool = False,
                  output_format: str = 'list') -> str:
    """Resolve and format the upstream dependencies of ``coordinate``.

    Args:
        resolver: Resolver wired to a metadata provider
        coordinate: Project version as group:artifact:version
        transitive: Include indirect dependencies
        output_format: One of list, json, sbom
    """
    version = ProjectVersion.parse(coordinate)
    dependencies = resolver.get_upstream_dependencies(version.project_id, version.version, transitive)
    return FORMATTERS[output_format](dependencies)
