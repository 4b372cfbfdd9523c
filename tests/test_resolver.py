import pytest
from conftest import ADDRESS_ONE, make_record
from eth_utils import to_checksum_address

from proxy_deploy.errors import UnresolvedDependency
from proxy_deploy.resolver import AddressResolver

DEPLOYED_ACCESS_CONTROL = to_checksum_address("0x" + "ac" * 20)


@pytest.fixture
def resolver(records, params):
    return AddressResolver(records=records, defaults=params.defaults)


def test_falls_back_to_default(resolver):
    assert resolver.resolve("AccessControl") == ADDRESS_ONE


def test_deployed_instance_wins_over_default(resolver, records):
    records.put(make_record("AccessControl", DEPLOYED_ACCESS_CONTROL))
    assert resolver.resolve("AccessControl") == DEPLOYED_ACCESS_CONTROL


def test_unresolved_dependency(resolver):
    with pytest.raises(UnresolvedDependency) as exc_info:
        resolver.resolve("Oracle")
    assert exc_info.value.name == "Oracle"
    assert exc_info.value.kind == "UnresolvedDependency"


def test_find_deployed_ignores_defaults(resolver):
    assert resolver.find_deployed("AccessControl") is None


def test_resolution_is_repeatable(resolver, records):
    records.put(make_record("AccessControl", DEPLOYED_ACCESS_CONTROL))
    results = {resolver.resolve("AccessControl") for _ in range(3)}
    assert results == {DEPLOYED_ACCESS_CONTROL}
    assert len(records.records()) == 1
