"""Test-entities command: build the entity set for a cross-project test."""

import logging
from typing import Optional

from ..formatters import OutputFormatter
from ..models import ProjectId, ProjectVersion, RevisionRef
from ..resolver import DependencyResolver

logger = logging.getLogger(__name__)


def build_test_entities(
    resolver: DependencyResolver,
    upstream: str,
    downstream: str,
    revision: Optional[str] = None,
    version: Optional[str] = None,
    workspace: Optional[str] = None,
    deps_only: bool = False,
    output_format: str = 'paths',
) -> str:
    """Reconcile ``upstream`` (at a revision or version) against ``downstream``.

    Args:
        resolver: Resolver with a metadata provider (and a source for revisions)
        upstream: Upstream project id (group:artifact)
        downstream: Downstream project version (group:artifact:version)
        revision: Upstream revision id; None with no version means current
        version: Published upstream version, instead of a revision
        workspace: Upstream workspace holding the revision
        deps_only: Print the reconciled dependency set instead of entities
        output_format: paths or json
    """
    upstream_id = ProjectId.parse(upstream)
    downstream_version = ProjectVersion.parse(downstream)
    ref = version if version else RevisionRef(revision_id=revision, workspace_id=workspace)

    if deps_only:
        dependencies = resolver.reconcile_for_cross_project_test(upstream_id, ref, downstream_version)
        if output_format == 'json':
            return OutputFormatter.format_as_json(dependencies)
        return OutputFormatter.format_as_list(dependencies)

    entities = resolver.build_entities_for_cross_project_test(upstream_id, ref, downstream_version)
    logger.info(f"Built {len(entities)} entities")
    return OutputFormatter.format_entities(entities, as_json=output_format == 'json')
