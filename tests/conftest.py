import itertools

import pytest
from ape import project
from eth_utils import to_checksum_address

from proxy_deploy.constants import OZ_DEPENDENCY_NAME, OZ_DEPENDENCY_VERSION
from proxy_deploy.errors import LedgerError
from proxy_deploy.ledger import Ledger, ProxyDeployment, PublishedImplementation
from proxy_deploy.manager import init_args_hash
from proxy_deploy.params import DeploymentParameters
from proxy_deploy.records import DeploymentRecord, RecordStore

CHAIN_ID = 56
MAX_LOOPS_LIMIT = 20

DEPLOYER = to_checksum_address("0x" + "de" * 20)
GOVERNANCE = to_checksum_address("0x" + "60" * 20)
MULTISIG = to_checksum_address("0x" + "55" * 20)
STRANGER = to_checksum_address("0x" + "99" * 20)
ADDRESS_ONE = "0x0000000000000000000000000000000000000001"


class FakeLedger(Ledger):
    """In-memory ledger; records every operation it is asked to perform."""

    def __init__(self, deployer=DEPLOYER, two_step=False):
        self._deployer = deployer
        self.two_step = two_step
        self.code = dict()  # contract type -> bytecode version
        self.owners = dict()
        self.pending_owners = dict()
        self.implementations = dict()  # proxy -> implementation
        self.proxy_admins = dict()  # proxy admin -> owner
        self.calls = list()
        self.fail_on = set()
        self._addresses = (to_checksum_address(f"0x{i:040x}") for i in itertools.count(0x1000))

    @property
    def deployer(self):
        return self._deployer

    def operations(self, name):
        return [call for call in self.calls if call[0] == name]

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise LedgerError(f"{operation} reverted")

    def implementation_hash(self, contract_type):
        return f"0x{contract_type}-{self.code.get(contract_type, 1)}"

    def publish_implementation(self, contract_type):
        self.calls.append(("publish", contract_type))
        self._maybe_fail("publish")
        return PublishedImplementation(
            address=next(self._addresses),
            implementation_hash=self.implementation_hash(contract_type),
        )

    def deploy_proxy(self, contract_type, implementation, admin_owner, initializer, init_args):
        self.calls.append(("initialize", contract_type, initializer, tuple(init_args)))
        self._maybe_fail("initialize")
        proxy, proxy_admin = next(self._addresses), next(self._addresses)
        self.implementations[proxy] = implementation
        self.proxy_admins[proxy_admin] = admin_owner
        self.owners[proxy] = self.deployer
        return ProxyDeployment(
            address=proxy, proxy_admin_address=proxy_admin, tx_hash="0xabc", block_number=1
        )

    def upgrade_proxy(self, proxy, implementation):
        self.calls.append(("upgrade", proxy, implementation))
        self._maybe_fail("upgrade")
        self.implementations[proxy] = implementation

    def owner_of(self, contract_type, address):
        return self.owners[address]

    def pending_owner_of(self, contract_type, address):
        if not self.two_step:
            return None
        return self.pending_owners.get(address)

    def transfer_ownership(self, contract_type, address, new_owner):
        self.calls.append(("transfer", address, new_owner))
        self._maybe_fail("transfer")
        if self.owners[address] != self.deployer:
            raise LedgerError("Ownable: caller is not the owner")
        if self.two_step:
            self.pending_owners[address] = new_owner
        else:
            self.owners[address] = new_owner


def make_config(records_dir, **overrides):
    config = {
        "deployment": {"name": "converter-network-test", "chain_id": CHAIN_ID},
        "artifacts": {"dir": str(records_dir), "filename": "records.json"},
        "constants": {"MAX_LOOPS_LIMIT": MAX_LOOPS_LIMIT},
        "defaults": {"AccessControl": ADDRESS_ONE},
        "custody": {"governance": "Governance"},
        "components": [
            {
                "Network": {
                    "dependencies": ["AccessControl"],
                    "proxy": {
                        "contract_type": "ConverterNetwork",
                        "initializer": {
                            "method": "initialize",
                            "args": ["$AccessControl", "$MAX_LOOPS_LIMIT"],
                        },
                    },
                }
            }
        ],
    }
    config.update(overrides)
    return config


@pytest.fixture(scope="session")
def oz_dependency():
    return project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def params(config):
    return DeploymentParameters(config=config)


@pytest.fixture
def records(params):
    return RecordStore(filepath=params.records_filepath, chain_id=params.chain_id)


def make_record(name, address, contract_type=None, **fields):
    """Builds a persisted record as an earlier run would have left it."""
    record = DeploymentRecord(
        chain_id=CHAIN_ID,
        component_name=name,
        contract_type=contract_type or name,
        address=to_checksum_address(address),
        proxy_admin_address=to_checksum_address("0x" + "ad" * 20),
        proxy_admin_owner=DEPLOYER,
        implementation_address=to_checksum_address("0x" + "11" * 20),
        implementation_hash=f"0x{contract_type or name}-1",
        implementation_version=1,
        initializer="initialize",
        init_args_hash=init_args_hash([ADDRESS_ONE, MAX_LOOPS_LIMIT]),
        initialized=True,
        tx_hash="0x01",
        block_number=1,
        deployer=DEPLOYER,
    )
    return record._replace(**fields)
