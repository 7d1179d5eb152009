"""Loads workspace snapshot files into in-memory providers.

A snapshot is a JSON document describing published versions and the live
state of projects::

    {
      "versions": {
        "com.acme:util:2.0": {
          "dependencies": ["com.acme:base:1.0"],
          "entities": [{"path": "util::Thing", "classifierPath": "meta::pure::metamodel::type::Class"}]
        }
      },
      "projects": {
        "com.acme:core": {
          "revisions": [{"id": "r7", "dependencies": ["com.acme:util:2.0"], "entities": []}],
          "workspaces": {"w1": [{"id": "r8", "dependencies": [], "entities": []}]}
        }
      }
    }

Revisions are listed oldest first; the last main-line revision is current.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import MalformedCoordinate
from .models import Entity, ProjectId, ProjectVersion
from .providers import InMemoryMetadataProvider, InMemoryProjectSource

logger = logging.getLogger(__name__)


def _parse_dependencies(raw: Any, where: str) -> List[ProjectVersion]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"{where}: 'dependencies' must be a list")
    try:
        return [ProjectVersion.parse(item) for item in raw]
    except MalformedCoordinate as e:
        raise ValueError(f"{where}: {e}") from e


def _parse_entities(raw: Any, where: str) -> List[Entity]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"{where}: 'entities' must be a list")
    try:
        return [Entity.from_dict(item) for item in raw]
    except ValueError as e:
        raise ValueError(f"{where}: {e}") from e


def _parse_revisions(
    source: InMemoryProjectSource,
    project_id: ProjectId,
    revisions: Any,
    workspace_id: Optional[str] = None,
) -> None:
    where = f"project {project_id}" + (f" workspace {workspace_id}" if workspace_id else "")
    if not isinstance(revisions, list):
        raise ValueError(f"{where}: revisions must be a list")
    for revision in revisions:
        if not isinstance(revision, dict) or not revision.get("id"):
            raise ValueError(f"{where}: every revision needs an 'id'")
        rev_where = f"{where} revision {revision['id']}"
        source.add_revision(
            project_id,
            str(revision["id"]),
            _parse_dependencies(revision.get("dependencies"), rev_where),
            _parse_entities(revision.get("entities"), rev_where),
            workspace_id=workspace_id,
        )


def parse_workspace_snapshot(data: Dict[str, Any]) -> Tuple[InMemoryMetadataProvider, InMemoryProjectSource]:
    """Build a metadata provider and project source from a snapshot document."""
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a JSON object")

    provider = InMemoryMetadataProvider()
    for coordinate, body in (data.get("versions") or {}).items():
        try:
            version = ProjectVersion.parse(coordinate)
        except MalformedCoordinate as e:
            raise ValueError(f"versions: {e}") from e
        body = body or {}
        provider.add_version(
            version,
            _parse_dependencies(body.get("dependencies"), str(version)),
            _parse_entities(body.get("entities"), str(version)),
        )

    source = InMemoryProjectSource()
    for coordinate, body in (data.get("projects") or {}).items():
        try:
            project_id = ProjectId.parse(coordinate)
        except MalformedCoordinate as e:
            raise ValueError(f"projects: {e}") from e
        body = body or {}
        _parse_revisions(source, project_id, body.get("revisions") or [])
        for workspace_id, revisions in (body.get("workspaces") or {}).items():
            _parse_revisions(source, project_id, revisions, workspace_id=workspace_id)

    logger.info(f"Loaded snapshot with {len(provider.versions())} versions and "
                f"{len(source.get_projects())} projects")
    return provider, source


def load_workspace_file(path: str) -> Tuple[InMemoryMetadataProvider, InMemoryProjectSource]:
    """Read a snapshot file from disk."""
    logger.debug(f"Reading workspace snapshot {path}")
    with open(Path(path), 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path} is not valid JSON: {e}") from e
    return parse_workspace_snapshot(data)
