"""Assembles the flat entity list used for cross-project testing."""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Iterable, List, Optional

from .cache import RequestCache
from .exceptions import MetadataError, ProviderUnavailable
from .models import Entity, ProjectVersion
from .providers import MetadataProvider

logger = logging.getLogger(__name__)


def _fetch_entities(provider: MetadataProvider, version: ProjectVersion) -> List[Entity]:
    try:
        return list(provider.get_entities(version))
    except MetadataError:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch entities for {version}: {e}")
        raise ProviderUnavailable(version, f"{type(e).__name__}: {e}") from e


def fetch_cached_entities(
    provider: MetadataProvider,
    cache: RequestCache,
    version: ProjectVersion,
) -> List[Entity]:
    return cache.get_or_compute(version.to_dependency_string(),
                                lambda: _fetch_entities(provider, version))


def assemble_entities(
    provider: MetadataProvider,
    downstream: ProjectVersion,
    dependencies: Iterable[ProjectVersion],
    upstream_entities: Iterable[Entity],
    cache: Optional[RequestCache] = None,
    max_workers: int = 1,
) -> List[Entity]:
    """
    Concatenate upstream, downstream and dependency entities.

    Dependency entities are fetched through ``cache`` keyed by the canonical
    coordinate string, so a version reachable along several paths is fetched
    once. Any failure aborts the whole call; no partial list is returned.

    Args:
        provider: Source of published entities
        downstream: The downstream project version under test
        dependencies: Reconciled dependency set
        upstream_entities: In-flight entities of the upstream project
        cache: Request-scoped cache; a fresh one is used if omitted
        max_workers: Number of concurrent fetches (1 = sequential)

    Returns:
        upstream entities + downstream entities + dependency entities
    """
    cache = cache if cache is not None else RequestCache()
    ordered = sorted(set(dependencies))
    logger.info(f"Assembling entities for {downstream} with {len(ordered)} dependencies")

    downstream_entities = _fetch_entities(provider, downstream)

    if max_workers <= 1 or len(ordered) <= 1:
        per_dependency = [fetch_cached_entities(provider, cache, pv) for pv in ordered]
    else:
        per_dependency = _fetch_concurrently(provider, cache, ordered, max_workers)

    result = list(upstream_entities)
    result.extend(downstream_entities)
    for entities in per_dependency:
        result.extend(entities)

    logger.info(f"Assembled {len(result)} entities ({cache.misses} fetches, {cache.hits} cache hits)")
    return result


def _fetch_concurrently(
    provider: MetadataProvider,
    cache: RequestCache,
    ordered: List[ProjectVersion],
    max_workers: int,
) -> List[List[Entity]]:
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crossdep-fetch")
    try:
        futures = [executor.submit(fetch_cached_entities, provider, cache, pv) for pv in ordered]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                for pending in not_done:
                    pending.cancel()
                raise future.exception()
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


class EntityAssembler:
    """Entity assembly with a fresh cache per call."""

    def __init__(self, provider: MetadataProvider, max_workers: int = 1):
        self.provider = provider
        self.max_workers = max_workers

    def assemble(
        self,
        downstream: ProjectVersion,
        dependencies: Iterable[ProjectVersion],
        upstream_entities: Iterable[Entity],
    ) -> List[Entity]:
        return assemble_entities(
            self.provider,
            downstream,
            dependencies,
            upstream_entities,
            cache=RequestCache(),
            max_workers=self.max_workers,
        )
