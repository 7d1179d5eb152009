"""Core data models for crossdep."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .exceptions import MalformedCoordinate

DELIMITER = ":"


@dataclass(frozen=True, order=True)
class ProjectId:
    """Identity of a project: a group and an artifact."""

    group: str
    artifact: str

    def __post_init__(self):
        if not self.group or not self.artifact:
            raise MalformedCoordinate(f"{self.group}{DELIMITER}{self.artifact}",
                                      "group and artifact must be non-empty")

    @classmethod
    def parse(cls, value: str) -> "ProjectId":
        """Parse ``group:artifact``, splitting on the first delimiter."""
        if not isinstance(value, str):
            raise MalformedCoordinate(value, "expected a string")
        index = value.find(DELIMITER)
        if index == -1:
            raise MalformedCoordinate(value, f"missing '{DELIMITER}' delimiter")
        group, artifact = value[:index], value[index + 1:]
        if not group or not artifact:
            raise MalformedCoordinate(value, "group and artifact must be non-empty")
        return cls(group, artifact)

    def __str__(self) -> str:
        return f"{self.group}{DELIMITER}{self.artifact}"


@dataclass(frozen=True, order=True)
class ProjectVersion:
    """A project pinned to an already-resolved version."""

    project_id: ProjectId
    version: str

    def __post_init__(self):
        if not self.version:
            raise MalformedCoordinate(f"{self.project_id}{DELIMITER}", "version must be non-empty")

    @classmethod
    def parse(cls, value: str) -> "ProjectVersion":
        """Parse ``group:artifact:version``, splitting on the last delimiter.

        The project id part contains the delimiter itself, so only the last
        occurrence separates the version.
        """
        if not isinstance(value, str):
            raise MalformedCoordinate(value, "expected a string")
        index = value.rfind(DELIMITER)
        if index == -1:
            raise MalformedCoordinate(value, f"missing '{DELIMITER}' delimiter")
        project_part, version = value[:index], value[index + 1:]
        if not project_part or not version:
            raise MalformedCoordinate(value, "project id and version must be non-empty")
        try:
            project_id = ProjectId.parse(project_part)
        except MalformedCoordinate as e:
            raise MalformedCoordinate(value, f"bad project id ({e.reason})") from e
        return cls(project_id, version)

    @classmethod
    def of(cls, group: str, artifact: str, version: str) -> "ProjectVersion":
        return cls(ProjectId(group, artifact), version)

    @property
    def group(self) -> str:
        return self.project_id.group

    @property
    def artifact(self) -> str:
        return self.project_id.artifact

    def to_dependency_string(self) -> str:
        """Canonical ``group:artifact:version`` form, used as a cache key."""
        return str(self)

    def __str__(self) -> str:
        return f"{self.project_id}{DELIMITER}{self.version}"


def parse_project_id(value: str) -> ProjectId:
    return ProjectId.parse(value)


def parse_project_version(value: str) -> ProjectVersion:
    return ProjectVersion.parse(value)


@dataclass(frozen=True)
class Entity:
    """A model element. Entities are identified by their path."""

    path: str
    classifier_path: str
    content: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        """Build an entity from the metadata service JSON shape."""
        if not isinstance(data, dict) or not data.get("path"):
            raise ValueError(f"Invalid entity: {data!r}")
        return cls(
            path=data["path"],
            classifier_path=data.get("classifierPath", ""),
            content=data.get("content") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "classifierPath": self.classifier_path,
            "content": self.content,
        }


@dataclass(frozen=True)
class RevisionRef:
    """A revision of a project, optionally inside a workspace.

    ``revision_id`` of None means the current revision. Plain strings are
    used for published versions instead of this type.
    """

    revision_id: Optional[str] = None
    workspace_id: Optional[str] = None

    def __str__(self) -> str:
        revision = self.revision_id or "current"
        if self.workspace_id:
            return f"workspace {self.workspace_id}@{revision}"
        return f"revision {revision}"


@dataclass(frozen=True)
class ProjectConfiguration:
    """Declared dependencies and entities of a project at one revision."""

    project_id: ProjectId
    dependencies: FrozenSet[ProjectVersion] = frozenset()
    entities: Tuple[Entity, ...] = ()


@dataclass(frozen=True, order=True)
class ProjectRevision:
    """A project at a specific revision, as returned by downstream discovery."""

    project_id: ProjectId
    revision_id: str

    def __str__(self) -> str:
        return f"{self.project_id}@{self.revision_id}"
