"""Shared fixtures for crossdep tests."""

from collections import Counter

import pytest

from crossdep.models import Entity, ProjectId, ProjectVersion
from crossdep.providers import InMemoryMetadataProvider, InMemoryProjectSource

CLASS = "meta::pure::metamodel::type::Class"


def pv(coordinate: str) -> ProjectVersion:
    return ProjectVersion.parse(coordinate)


def pid(coordinate: str) -> ProjectId:
    return ProjectId.parse(coordinate)


def entity(path: str) -> Entity:
    return Entity(path=path, classifier_path=CLASS, content={"name": path.split("::")[-1]})


class GraphFetcher:
    """fetch_dependencies backed by a dict of coordinate strings, counting calls."""

    def __init__(self, edges):
        self.edges = {pv(k): {pv(d) for d in v} for k, v in edges.items()}
        self.calls = Counter()

    def __call__(self, version):
        self.calls[version] += 1
        return set(self.edges.get(version, set()))


@pytest.fixture
def graph():
    return GraphFetcher


@pytest.fixture
def provider():
    return InMemoryMetadataProvider()


@pytest.fixture
def source():
    return InMemoryProjectSource()


@pytest.fixture
def acme(provider, source):
    """
    com.acme:app:3.1 -> core:1.0, util:1.9, misc:1.0
    misc:1.0 -> extra:1.0, base:1.0
    core is being changed in-flight (revision r7) to depend on util:2.0.
    """
    provider.add_version(pv("com.acme:base:1.0"), [], [entity("base::Base")])
    provider.add_version(pv("com.acme:util:1.9"), [pv("com.acme:base:1.0")], [entity("util::Util")])
    provider.add_version(pv("com.acme:util:2.0"), [pv("com.acme:base:1.0")],
                         [entity("util::Util"), entity("util::New")])
    provider.add_version(pv("com.acme:extra:1.0"), [], [entity("extra::Extra")])
    provider.add_version(pv("com.acme:misc:1.0"), [pv("com.acme:extra:1.0"), pv("com.acme:base:1.0")],
                         [entity("misc::Misc")])
    provider.add_version(pv("com.acme:core:1.0"), [pv("com.acme:util:1.9")], [entity("core::Core")])
    provider.add_version(
        pv("com.acme:app:3.1"),
        [pv("com.acme:core:1.0"), pv("com.acme:util:1.9"), pv("com.acme:misc:1.0")],
        [entity("app::App")],
    )

    source.add_revision(pid("com.acme:core"), "r6", [pv("com.acme:util:1.9")], [entity("core::Core")])
    source.add_revision(pid("com.acme:core"), "r7", [pv("com.acme:util:2.0")],
                        [entity("core::Core"), entity("core::Added")])
    source.add_revision(pid("com.acme:core"), "w1r1", [pv("com.acme:util:2.0")],
                        [entity("core::Core"), entity("core::InWorkspace")], workspace_id="w1")
    source.add_revision(pid("com.acme:app"), "a1",
                        [pv("com.acme:core:1.0"), pv("com.acme:util:1.9"), pv("com.acme:misc:1.0")],
                        [entity("app::App")])
    source.add_revision(pid("com.acme:misc"), "m1", [pv("com.acme:util:1.5")], [entity("misc::Misc")])
    source.add_revision(pid("com.acme:util"), "u1", [pv("com.acme:base:1.0")], [entity("util::Util")])
    return provider, source
