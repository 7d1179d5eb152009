"""Entry points used by the review and testing orchestration layer."""

import logging
from typing import List, Optional, Set, Tuple, Union

from .assembly import assemble_entities, fetch_cached_entities
from .cache import RequestCache
from .closure import get_direct_or_transitive, memoize_dependencies
from .downstream import DownstreamSearch, ProjectScanDownstreamSearch
from .models import Entity, ProjectId, ProjectRevision, ProjectVersion, RevisionRef
from .providers import MetadataProvider, ProjectSource
from .substitution import reconcile

logger = logging.getLogger(__name__)

SourceRef = Union[str, RevisionRef]


class DependencyResolver:
    """
    Resolves upstream dependencies and builds cross-project test models.

    Every public call creates its own caches; nothing is shared between calls,
    so a resolver may serve concurrent requests.

    Args:
        provider: Published metadata (dependencies and entities per version)
        source: Live project configurations; required for revision refs and
            downstream discovery
        downstream_search: Reverse lookup strategy; defaults to a full scan
            of ``source``
        max_workers: Concurrency of entity fetching
    """

    def __init__(
        self,
        provider: MetadataProvider,
        source: Optional[ProjectSource] = None,
        downstream_search: Optional[DownstreamSearch] = None,
        max_workers: int = 1,
    ):
        self.provider = provider
        self.source = source
        self.downstream_search = downstream_search
        self.max_workers = max_workers

    def _require_source(self) -> ProjectSource:
        if self.source is None:
            raise ValueError("A project source is required for revision and workspace lookups")
        return self.source

    def _dependency_fetcher(self, cache: RequestCache):
        return memoize_dependencies(
            lambda pv: self.provider.get_dependencies(pv, transitive=False), cache)

    def _direct_state(
        self, project_id: ProjectId, ref: SourceRef, fetch
    ) -> Tuple[Set[ProjectVersion], Optional[List[Entity]]]:
        """Direct dependencies at ``ref``, plus entities when they come from the source."""
        if isinstance(ref, RevisionRef):
            config = self._require_source().get_configuration(project_id, ref)
            return set(config.dependencies), list(config.entities)
        return set(fetch(ProjectVersion(project_id, ref))), None

    def get_upstream_dependencies(
        self, project_id: ProjectId, ref: SourceRef, transitive: bool = False
    ) -> Set[ProjectVersion]:
        """Dependencies of a project at a revision (RevisionRef) or version (str)."""
        fetch = self._dependency_fetcher(RequestCache())
        direct, _ = self._direct_state(project_id, ref, fetch)
        result = get_direct_or_transitive(direct, fetch, transitive)
        logger.info(f"{project_id} at {ref}: {len(result)} {'transitive' if transitive else 'direct'} dependencies")
        return result

    def get_downstream_projects(self, project_id: ProjectId) -> Set[ProjectRevision]:
        search = self.downstream_search or ProjectScanDownstreamSearch(self._require_source())
        return search.find_downstream(project_id)

    def reconcile_for_cross_project_test(
        self, upstream: ProjectId, upstream_ref: SourceRef, downstream: ProjectVersion
    ) -> Set[ProjectVersion]:
        """Reconciled dependency set only, without fetching entities."""
        fetch = self._dependency_fetcher(RequestCache())
        upstream_direct, _ = self._direct_state(upstream, upstream_ref, fetch)
        return reconcile(upstream, upstream_direct, downstream, fetch)

    def build_entities_for_cross_project_test(
        self, upstream: ProjectId, upstream_ref: SourceRef, downstream: ProjectVersion
    ) -> List[Entity]:
        """
        Entities for testing ``downstream`` against ``upstream`` at ``upstream_ref``.

        ``upstream_ref`` is a RevisionRef for in-flight state, or a version
        string for a published upstream.
        """
        logger.info(f"Building test entities: {downstream} against {upstream} at {upstream_ref}")
        fetch = self._dependency_fetcher(RequestCache())
        upstream_direct, upstream_entities = self._direct_state(upstream, upstream_ref, fetch)
        dependencies = reconcile(upstream, upstream_direct, downstream, fetch)

        entity_cache = RequestCache()
        if upstream_entities is None:
            # published upstream: its entities come from the provider like any dependency
            upstream_entities = fetch_cached_entities(
                self.provider, entity_cache, ProjectVersion(upstream, upstream_ref))
        return assemble_entities(
            self.provider,
            downstream,
            dependencies,
            upstream_entities,
            cache=entity_cache,
            max_workers=self.max_workers,
        )
