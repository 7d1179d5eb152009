"""Tests for entity assembly."""

import threading

import pytest

from crossdep.assembly import EntityAssembler, assemble_entities
from crossdep.cache import RequestCache
from crossdep.exceptions import NotFound, ProviderUnavailable
from crossdep.providers import InMemoryMetadataProvider

from conftest import entity, pv


@pytest.fixture
def diamond_provider():
    provider = InMemoryMetadataProvider()
    provider.add_version(pv("g:d:1"), [pv("g:b:1"), pv("g:c:1")], [entity("d::D")])
    provider.add_version(pv("g:b:1"), [pv("g:s:1")], [entity("b::B")])
    provider.add_version(pv("g:c:1"), [pv("g:s:1")], [entity("c::C")])
    provider.add_version(pv("g:s:1"), [], [entity("s::S1"), entity("s::S2")])
    return provider


def test_concatenation_order(diamond_provider):
    upstream = [entity("u::U")]
    result = assemble_entities(diamond_provider, pv("g:d:1"), {pv("g:c:1"), pv("g:b:1"), pv("g:s:1")}, upstream)
    assert [e.path for e in result] == ["u::U", "d::D", "b::B", "c::C", "s::S1", "s::S2"]


def test_shared_dependency_fetched_once(diamond_provider):
    cache = RequestCache()
    deps = [pv("g:b:1"), pv("g:s:1"), pv("g:c:1"), pv("g:s:1")]
    assemble_entities(diamond_provider, pv("g:d:1"), deps, [], cache=cache)
    # reused across a second assembly in the same request as well
    assemble_entities(diamond_provider, pv("g:d:1"), [pv("g:s:1")], [], cache=cache)

    assert diamond_provider.entity_calls[pv("g:s:1")] == 1
    assert cache.hits == 1


def test_downstream_fetched_once_per_call(diamond_provider):
    assemble_entities(diamond_provider, pv("g:d:1"), [], [])
    assert diamond_provider.entity_calls[pv("g:d:1")] == 1


def test_missing_dependency_fails_whole_call(diamond_provider):
    with pytest.raises(NotFound) as excinfo:
        assemble_entities(diamond_provider, pv("g:d:1"), [pv("g:b:1"), pv("g:nope:1")], [entity("u::U")])
    assert excinfo.value.coordinate == pv("g:nope:1")


class ExplodingProvider(InMemoryMetadataProvider):

    def get_entities(self, version):
        if version.artifact == "bad":
            raise ConnectionError("socket closed")
        return super().get_entities(version)


def test_unexpected_provider_error_is_wrapped():
    provider = ExplodingProvider()
    provider.add_version(pv("g:d:1"), [], [])
    provider.add_version(pv("g:bad:1"), [], [])
    with pytest.raises(ProviderUnavailable) as excinfo:
        assemble_entities(provider, pv("g:d:1"), [pv("g:bad:1")], [])
    assert excinfo.value.coordinate == pv("g:bad:1")
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_concurrent_assembly_matches_sequential(diamond_provider):
    deps = {pv("g:b:1"), pv("g:c:1"), pv("g:s:1")}
    sequential = assemble_entities(diamond_provider, pv("g:d:1"), deps, [entity("u::U")])
    concurrent = assemble_entities(diamond_provider, pv("g:d:1"), deps, [entity("u::U")], max_workers=4)
    assert [e.path for e in concurrent] == [e.path for e in sequential]


def test_concurrent_failure_returns_no_partial_result():
    provider = ExplodingProvider()
    provider.add_version(pv("g:d:1"), [], [])
    for name in ("a", "b", "bad", "c"):
        provider.add_version(pv(f"g:{name}:1"), [], [entity(f"{name}::X")])
    with pytest.raises(ProviderUnavailable):
        assemble_entities(provider, pv("g:d:1"),
                          [pv(f"g:{n}:1") for n in ("a", "b", "bad", "c")], [], max_workers=3)


class CountingProvider(InMemoryMetadataProvider):

    def __init__(self):
        super().__init__()
        self.lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def get_entities(self, version):
        with self.lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            return super().get_entities(version)
        finally:
            with self.lock:
                self.in_flight -= 1


def test_assembler_uses_fresh_cache_per_call():
    provider = CountingProvider()
    provider.add_version(pv("g:d:1"), [], [])
    provider.add_version(pv("g:s:1"), [], [entity("s::S")])
    assembler = EntityAssembler(provider, max_workers=2)

    assembler.assemble(pv("g:d:1"), [pv("g:s:1")], [])
    assembler.assemble(pv("g:d:1"), [pv("g:s:1")], [])

    assert provider.entity_calls[pv("g:s:1")] == 2
    assert provider.max_in_flight <= 2
