"""Transitive closure over the implicit dependency graph.

The graph is never materialized: it is the function
``ProjectVersion -> set of ProjectVersion`` plus a visited-set walk.
"""

import logging
from collections import deque
from typing import Callable, Iterable, Optional, Set

from .cache import RequestCache
from .models import ProjectVersion

logger = logging.getLogger(__name__)

FetchDependencies = Callable[[ProjectVersion], Iterable[ProjectVersion]]


def transitive_closure(
    seed: Iterable[ProjectVersion],
    fetch_dependencies: FetchDependencies,
) -> Set[ProjectVersion]:
    """
    Expand ``seed`` into everything reachable through ``fetch_dependencies``.

    Each node is expanded at most once; a node already in the result is never
    re-queued, so the walk terminates even if the data contains a cycle.

    Args:
        seed: Starting set of project versions
        fetch_dependencies: Returns the direct dependencies of a project version

    Returns:
        The closure as a new set
    """
    result: Set[ProjectVersion] = set(seed)
    queue = deque(result)

    expanded = 0
    while queue:
        current = queue.popleft()
        expanded += 1
        for dependency in fetch_dependencies(current):
            if dependency in result:
                continue
            result.add(dependency)
            queue.append(dependency)

    logger.debug(f"Closure expanded {expanded} nodes, {len(result)} in result")
    return result


def memoize_dependencies(
    fetch_dependencies: FetchDependencies,
    cache: Optional[RequestCache] = None,
) -> FetchDependencies:
    """Wrap ``fetch_dependencies`` so each project version is fetched once."""
    cache = cache if cache is not None else RequestCache()

    def fetch(pv: ProjectVersion) -> Set[ProjectVersion]:
        return cache.get_or_compute(pv.to_dependency_string(),
                                    lambda: frozenset(fetch_dependencies(pv)))

    return fetch


def get_direct_or_transitive(
    direct: Iterable[ProjectVersion],
    fetch_dependencies: FetchDependencies,
    transitive: bool,
) -> Set[ProjectVersion]:
    """Return ``direct`` as a set, or its closure when ``transitive`` is set."""
    if not transitive:
        return set(direct)
    return transitive_closure(direct, fetch_dependencies)
