"""Reconciles an in-flight upstream project with a published downstream project.

The goal is a dependency set for testing ``downstream`` as though it already
depended on the unpublished state of ``upstream``. When a downstream
dependency names a project that upstream's tree also pins, the version from
upstream's own tree wins. Version splits that already exist inside upstream's
tree, or inside downstream's published tree, are passed through unchanged.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, Optional, Set

from .cache import RequestCache
from .closure import memoize_dependencies, transitive_closure
from .exceptions import (
    AssembledResultIncomplete,
    CircularDependency,
    DependencyVersionConflict,
    DirectDependencyConflict,
    IndirectDependencyConflict,
)
from .models import ProjectId, ProjectVersion
from .providers import MetadataProvider

logger = logging.getLogger(__name__)

FetchDependencies = Callable[[ProjectVersion], Iterable[ProjectVersion]]


def reconcile(
    upstream: ProjectId,
    upstream_direct_deps: Iterable[ProjectVersion],
    downstream: ProjectVersion,
    fetch_dependencies: FetchDependencies,
) -> Set[ProjectVersion]:
    """
    Compute the dependency set for testing ``downstream`` against in-flight ``upstream``.

    Entities of upstream and downstream themselves are supplied separately, so
    neither project appears in the result.

    Args:
        upstream: Project whose unpublished changes are being tested
        upstream_direct_deps: Upstream's in-flight direct dependencies
        downstream: Published project version to test
        fetch_dependencies: Returns the direct dependencies of a published version

    Returns:
        Set of project versions

    Raises:
        DirectDependencyConflict: downstream is the upstream project
        IndirectDependencyConflict: downstream is in upstream's dependency tree
        CircularDependency: a retained dependency leads back to ``downstream`` itself
        DependencyVersionConflict: a retained dependency's tree pins another
            version of a project upstream's tree already supplies
        AssembledResultIncomplete: upstream's tree still holds an excluded project
    """
    upstream_direct_deps = set(upstream_direct_deps)
    downstream_id = downstream.project_id

    if downstream_id == upstream:
        raise DirectDependencyConflict(upstream, downstream)

    upstream_transitive = {
        pv for pv in transitive_closure(upstream_direct_deps, fetch_dependencies)
        if pv.project_id != upstream
    }
    upstream_ids = {pv.project_id for pv in upstream_transitive}
    logger.info(f"Upstream {upstream} has {len(upstream_transitive)} transitive dependencies")

    if downstream_id in upstream_ids:
        raise IndirectDependencyConflict(upstream, downstream)

    downstream_direct = set(fetch_dependencies(downstream))
    retained: Set[ProjectVersion] = set()

    for dependency in sorted(downstream_direct):
        if dependency.project_id == upstream:
            logger.debug(f"Dropping {dependency}: replaced by in-flight {upstream}")
            continue
        if dependency in upstream_direct_deps:
            logger.debug(f"Dropping {dependency}: already a direct dependency of {upstream}")
            continue
        if dependency.project_id in upstream_ids:
            logger.debug(f"Dropping {dependency}: {upstream} depends on another version")
            continue

        expanded = transitive_closure([dependency], fetch_dependencies)
        if downstream in expanded:
            raise CircularDependency(downstream, dependency)
        logger.debug(f"Keeping {dependency} with {len(expanded) - 1} transitive dependencies")
        retained |= expanded

    excluded = {upstream, downstream_id}
    check_excluded(upstream_transitive, excluded)
    retained = _drop_excluded(retained, excluded)
    check_upstream_precedence(retained, upstream_transitive)

    result = retained | upstream_transitive
    logger.info(f"Reconciled {downstream} against {upstream}: {len(result)} dependencies")
    return result


def _drop_excluded(dependencies: Set[ProjectVersion], excluded: Set[ProjectId]) -> Set[ProjectVersion]:
    kept = set()
    for pv in sorted(dependencies):
        if pv.project_id in excluded:
            logger.debug(f"Dropping {pv}: superseded by the project under test")
        else:
            kept.add(pv)
    return kept


def check_excluded(dependencies: Set[ProjectVersion], excluded: Set[ProjectId]) -> None:
    """Raise AssembledResultIncomplete if any excluded project is present."""
    offending = {pv for pv in dependencies if pv.project_id in excluded}
    if offending:
        logger.error(f"Upstream tree unexpectedly contains {sorted(offending)}")
        raise AssembledResultIncomplete(
            f"Reconciled dependencies contain excluded projects "
            f"({', '.join(str(p) for p in sorted(excluded))})",
            offending,
        )


def check_upstream_precedence(
    retained: Iterable[ProjectVersion], upstream_transitive: Iterable[ProjectVersion]
) -> None:
    """
    Raise DependencyVersionConflict if a retained dependency's tree pins a
    version of a project that upstream's tree supplies at another version.
    """
    upstream_versions: Dict[ProjectId, Set[str]] = defaultdict(set)
    for pv in upstream_transitive:
        upstream_versions[pv.project_id].add(pv.version)
    for pv in sorted(retained):
        versions = upstream_versions.get(pv.project_id)
        if versions and pv.version not in versions:
            raise DependencyVersionConflict(pv.project_id, versions | {pv.version})



class SubstitutionResolver:
    """Runs ``reconcile`` against a metadata provider with a per-call cache."""

    def __init__(self, provider: MetadataProvider):
        self.provider = provider

    def reconcile(
        self,
        upstream: ProjectId,
        upstream_direct_deps: Iterable[ProjectVersion],
        downstream: ProjectVersion,
        cache: Optional[RequestCache] = None,
    ) -> Set[ProjectVersion]:
        fetch = memoize_dependencies(
            lambda pv: self.provider.get_dependencies(pv, transitive=False),
            cache if cache is not None else RequestCache(),
        )
        return reconcile(upstream, upstream_direct_deps, downstream, fetch)
