"""Output formatters for resolved dependency sets and entity lists."""

import json
import logging
from typing import Collection, List
from uuid import uuid4

from packageurl import PackageURL
from cyclonedx.model.bom import Bom
from cyclonedx.model.component import Component, ComponentType
from cyclonedx.output.json import JsonV1Dot6

from .models import Entity, ProjectVersion

logger = logging.getLogger(__name__)


class OutputFormatter:
    """Formatter for various output formats."""

    @staticmethod
    def format_as_list(versions: Collection[ProjectVersion]) -> str:
        """Format coordinates as a sorted flat list (one per line)."""
        lines = [str(pv) for pv in sorted(versions)]
        return '\n'.join(lines) + '\n' if lines else ''

    @staticmethod
    def format_as_json(versions: Collection[ProjectVersion]) -> str:
        """Format coordinates in the metadata service's JSON shape."""
        items = [
            {"groupId": pv.group, "artifactId": pv.artifact, "versionId": pv.version}
            for pv in sorted(versions)
        ]
        return json.dumps(items, indent=2) + '\n'

    @staticmethod
    def build_purl(pv: ProjectVersion) -> PackageURL:
        """Build a Maven Package URL for a project version."""
        return PackageURL(type='maven', namespace=pv.group, name=pv.artifact, version=pv.version)

    @staticmethod
    def format_as_sbom(versions: Collection[ProjectVersion]) -> str:
        """Generate a CycloneDX SBOM (JSON) listing the project versions."""
        from . import __version__

        bom = Bom()
        bom.serial_number = uuid4()

        tool_component = Component(
            name="crossdep",
            version=__version__,
            type=ComponentType.APPLICATION,
        )
        bom.metadata.tools.components.add(tool_component)

        for pv in sorted(versions):
            purl = OutputFormatter.build_purl(pv)
            bom.components.add(Component(
                name=pv.artifact,
                group=pv.group,
                version=pv.version,
                type=ComponentType.LIBRARY,
                purl=purl,
                bom_ref=purl.to_string(),
            ))

        logger.debug(f"Built SBOM with {len(versions)} components")
        return JsonV1Dot6(bom).output_as_string(indent=2)

    @staticmethod
    def format_entities(entities: List[Entity], as_json: bool = False) -> str:
        """Format entities as paths (one per line) or as a JSON array."""
        if as_json:
            return json.dumps([e.to_dict() for e in entities], indent=2) + '\n'
        lines = [e.path for e in entities]
        return '\n'.join(lines) + '\n' if lines else ''
