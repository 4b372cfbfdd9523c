import json
import os
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from proxy_deploy.utils import _load_json

ChainId = int
ComponentName = str


STANDARD_RECORDS_JSON_FORMAT = {"indent": 4, "separators": (",", ": "), "sort_keys": True}


class DeploymentRecord(NamedTuple):
    """Represents the persisted state of one proxied component on one chain."""

    chain_id: ChainId
    component_name: ComponentName
    contract_type: str
    address: ChecksumAddress
    proxy_admin_address: ChecksumAddress
    proxy_admin_owner: ChecksumAddress
    implementation_address: ChecksumAddress
    implementation_hash: str
    implementation_version: int
    initializer: str
    init_args_hash: str
    initialized: bool
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress

    def to_dict(self) -> Dict:
        data = self._asdict()
        del data["chain_id"]
        del data["component_name"]
        return data

    @classmethod
    def from_dict(cls, chain_id: ChainId, component_name: ComponentName, data: Dict):
        return cls(
            chain_id=int(chain_id),
            component_name=component_name,
            contract_type=data["contract_type"],
            address=to_checksum_address(data["address"]),
            proxy_admin_address=to_checksum_address(data["proxy_admin_address"]),
            proxy_admin_owner=to_checksum_address(data["proxy_admin_owner"]),
            implementation_address=to_checksum_address(data["implementation_address"]),
            implementation_hash=data["implementation_hash"],
            implementation_version=int(data["implementation_version"]),
            initializer=data["initializer"],
            init_args_hash=data["init_args_hash"],
            initialized=bool(data["initialized"]),
            tx_hash=data["tx_hash"],
            block_number=int(data["block_number"]),
            deployer=to_checksum_address(data["deployer"]),
        )


def read_records(filepath: Path) -> List[DeploymentRecord]:
    """Reads every record of a records file, across all chains."""
    data = _load_json(filepath)
    records = list()
    for chain_id, entries in data.items():
        for component_name, record_data in entries.items():
            records.append(DeploymentRecord.from_dict(chain_id, component_name, record_data))
    return records


def write_records(records: Iterable[DeploymentRecord], filepath: Path) -> Path:
    """Writes records to a file, replacing it atomically."""
    records = sorted(records, key=lambda r: (str(r.chain_id), r.component_name))
    data = defaultdict(dict)
    for record in records:
        data[str(record.chain_id)][record.component_name] = record.to_dict()

    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_filepath = filepath.with_suffix(".temp.json")
    with open(temp_filepath, "w") as file:
        json.dump(data, file, **STANDARD_RECORDS_JSON_FORMAT)
    os.replace(temp_filepath, filepath)
    return filepath


def read_external_deployments(directory: Path) -> Dict[str, ChecksumAddress]:
    """
    Reads a hardhat-deploy style deployments directory: one <Name>.json file
    per contract, each holding at least an 'address' key.
    """
    addresses = dict()
    if not directory.is_dir():
        raise ValueError(f"External deployments directory {directory} does not exist.")
    for filepath in sorted(directory.glob("*.json")):
        artifact = _load_json(filepath)
        if not isinstance(artifact, dict) or "address" not in artifact:
            continue  # e.g. .chainId or solcInputs
        addresses[filepath.stem] = to_checksum_address(artifact["address"])
    return addresses


class RecordStore:
    """
    Durable store of deployment records for a single chain.

    Records are kept in a JSON file shared by all chains; only the entries
    for ``chain_id`` are ever read or written through this store. External
    deployment directories are a read-only source of addresses.
    """

    def __init__(
        self,
        filepath: Path,
        chain_id: ChainId,
        external_directories: Optional[List[Path]] = None,
    ):
        self.filepath = Path(filepath)
        self.chain_id = int(chain_id)
        self._external = dict()
        for directory in external_directories or list():
            for name, address in read_external_deployments(Path(directory)).items():
                self._external.setdefault(name, address)

    def _read_all(self) -> List[DeploymentRecord]:
        if not self.filepath.exists():
            return list()
        return read_records(self.filepath)

    def records(self) -> List[DeploymentRecord]:
        return [r for r in self._read_all() if r.chain_id == self.chain_id]

    def get(self, component_name: ComponentName) -> Optional[DeploymentRecord]:
        for record in self.records():
            if record.component_name == component_name:
                return record
        return None

    def put(self, record: DeploymentRecord) -> None:
        if record.chain_id != self.chain_id:
            raise ValueError(
                f"Record for chain {record.chain_id} cannot be stored "
                f"in a store for chain {self.chain_id}."
            )
        others = [
            r
            for r in self._read_all()
            if (r.chain_id, r.component_name) != (record.chain_id, record.component_name)
        ]
        write_records([*others, record], self.filepath)

    def deployed_address(self, name: str) -> Optional[ChecksumAddress]:
        """Returns the address of a previously deployed instance, if any."""
        record = self.get(name)
        if record is not None and record.initialized:
            return record.address
        return self._external.get(name)
