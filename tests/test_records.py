import json

import pytest
from conftest import CHAIN_ID, make_record
from eth_utils import to_checksum_address

from proxy_deploy.records import RecordStore, read_external_deployments, read_records

NETWORK = to_checksum_address("0x" + "42" * 20)
TIMELOCK = to_checksum_address("0x" + "77" * 20)


def test_put_and_get(records):
    assert records.get("Network") is None

    record = make_record("Network", NETWORK, contract_type="ConverterNetwork")
    records.put(record)

    assert records.get("Network") == record
    assert read_records(records.filepath) == [record]


def test_put_replaces_only_its_own_entry(records):
    network = make_record("Network", NETWORK)
    timelock = make_record("Governance", TIMELOCK)
    records.put(network)
    records.put(timelock)

    upgraded = network._replace(implementation_version=2)
    records.put(upgraded)

    assert records.get("Network") == upgraded
    assert records.get("Governance") == timelock


def test_records_are_scoped_by_chain(tmp_path):
    filepath = tmp_path / "records.json"
    bsc = RecordStore(filepath=filepath, chain_id=CHAIN_ID)
    ethereum = RecordStore(filepath=filepath, chain_id=1)

    bsc.put(make_record("Network", NETWORK))
    ethereum.put(make_record("Network", TIMELOCK, chain_id=1))

    assert bsc.get("Network").address == NETWORK
    assert ethereum.get("Network").address == TIMELOCK

    with open(filepath) as file:
        data = json.load(file)
    assert sorted(data) == ["1", str(CHAIN_ID)]
    assert data[str(CHAIN_ID)]["Network"]["initialized"] is True


def test_put_rejects_foreign_chain(records):
    with pytest.raises(ValueError):
        records.put(make_record("Network", NETWORK, chain_id=1))


def test_no_temporary_file_left_behind(records):
    records.put(make_record("Network", NETWORK))
    assert [p.name for p in records.filepath.parent.iterdir()] == ["records.json"]


def _write_external(directory, name, address):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{name}.json").write_text(json.dumps({"address": address, "abi": []}))


def test_external_deployments(tmp_path):
    external = tmp_path / "governance-contracts" / "bscmainnet"
    _write_external(external, "NormalTimelock", TIMELOCK.lower())
    (external / ".chainId").write_text("56")
    (external / "solcInputs.json").write_text(json.dumps([]))

    assert read_external_deployments(external) == {"NormalTimelock": TIMELOCK}

    records = RecordStore(
        filepath=tmp_path / "records.json", chain_id=CHAIN_ID, external_directories=[external]
    )
    assert records.deployed_address("NormalTimelock") == TIMELOCK
    assert records.get("NormalTimelock") is None


def test_own_records_shadow_external_deployments(tmp_path):
    external = tmp_path / "external"
    _write_external(external, "Network", TIMELOCK)
    records = RecordStore(
        filepath=tmp_path / "records.json", chain_id=CHAIN_ID, external_directories=[external]
    )
    records.put(make_record("Network", NETWORK))
    assert records.deployed_address("Network") == NETWORK


def test_uninitialized_record_is_not_a_deployed_instance(records):
    records.put(make_record("Network", NETWORK, initialized=False))
    assert records.deployed_address("Network") is None


def test_missing_external_directory(tmp_path):
    with pytest.raises(ValueError):
        RecordStore(
            filepath=tmp_path / "records.json",
            chain_id=CHAIN_ID,
            external_directories=[tmp_path / "missing"],
        )
