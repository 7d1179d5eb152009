"""Error types raised by crossdep."""

from typing import Iterable, Optional


class CrossDepError(Exception):
    """Base class for all crossdep errors."""


class MalformedCoordinate(CrossDepError, ValueError):
    """A project id or project version string could not be parsed."""

    def __init__(self, value, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid coordinate {value!r}: {reason}")


class DependencyConflict(CrossDepError):
    """Reconciling two dependency trees is not possible."""


class DirectDependencyConflict(DependencyConflict):
    """The downstream project is the upstream project itself."""

    def __init__(self, upstream, downstream):
        self.upstream = upstream
        self.downstream = downstream
        super().__init__(
            f"Downstream project {downstream} cannot be tested against its own "
            f"in-flight changes (upstream project {upstream})"
        )


class IndirectDependencyConflict(DependencyConflict):
    """The downstream project is reachable from the upstream dependency tree."""

    def __init__(self, upstream, downstream):
        self.upstream = upstream
        self.downstream = downstream
        super().__init__(
            f"Downstream project {downstream} is a transitive dependency of "
            f"upstream project {upstream}"
        )


class CircularDependency(DependencyConflict):
    """The downstream project depends on itself through its own dependencies."""

    def __init__(self, downstream, via):
        self.downstream = downstream
        self.via = via
        super().__init__(
            f"Downstream project {downstream} depends on itself through {via}"
        )


class DependencyVersionConflict(DependencyConflict):
    """A retained downstream dependency pins another version of a project upstream supplies."""

    def __init__(self, project_id, versions: Iterable[str]):
        self.project_id = project_id
        self.versions = sorted(versions)
        super().__init__(
            f"Conflicting versions of {project_id}: {', '.join(self.versions)}"
        )


class MetadataError(CrossDepError):
    """Base class for failures reported by a metadata provider."""

    def __init__(self, coordinate, message: str):
        self.coordinate = coordinate
        super().__init__(message)


class NotFound(MetadataError):
    """The project or version is unknown to the provider."""

    def __init__(self, coordinate, message: Optional[str] = None):
        super().__init__(coordinate, message or f"Unknown project or version: {coordinate}")


class ProviderUnavailable(MetadataError):
    """The provider could not be reached or returned an unusable response."""

    def __init__(self, coordinate, detail: str, server_url: Optional[str] = None):
        self.detail = detail
        self.server_url = server_url
        location = f" ({server_url})" if server_url else ""
        super().__init__(coordinate, f"Metadata service error for {coordinate}{location}: {detail}")


class AssembledResultIncomplete(CrossDepError):
    """An internal invariant of the resolution result was violated."""

    def __init__(self, message: str, offending=()):
        self.offending = sorted(offending)
        if self.offending:
            message = f"{message}: {', '.join(str(o) for o in self.offending)}"
        super().__init__(message)
