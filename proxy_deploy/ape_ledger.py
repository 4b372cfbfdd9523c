import os
import typing
from typing import Any, List, Optional

from ape import chain, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import ApeException
from ape.utils import EMPTY_BYTES32
from eth_typing import ChecksumAddress
from eth_utils import keccak, to_checksum_address, to_hex
from ethpm_types import MethodABI
from web3 import Web3

from proxy_deploy.confirm import _confirm_deployment, _confirm_initialization, _continue
from proxy_deploy.constants import (
    EIP1967_ADMIN_SLOT,
    OZ_DEPENDENCY_NAME,
    OZ_DEPENDENCY_VERSION,
    PROXY_ADMIN_CONTRACT_TYPE,
    PROXY_CONTRACT_TYPE,
)
from proxy_deploy.errors import DeploymentConfigError, LedgerError
from proxy_deploy.ledger import Ledger, ProxyDeployment, PublishedImplementation
from proxy_deploy.networks import LOCAL_NETWORKS
from proxy_deploy.params import DeploymentParameters

w3 = Web3()


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def check_chain_id(params: DeploymentParameters) -> None:
    """Checks that the parameters file targets the connected chain."""
    connected_chain_id = networks.provider.network.chain_id
    if params.chain_id != connected_chain_id and not is_local_network():
        raise DeploymentConfigError(
            f"chain_id in params file ({params.chain_id}) does not match "
            f"chain_id of current network ({connected_chain_id})."
        )


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        import ape_infura  # noqa: F401
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use this script.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins() -> None:
    print("Checking plugins...")
    check_infura_plugin()


def get_chain_name(chain_id: int) -> str:
    """Returns the name of the chain given its chain ID."""
    for ecosystem_name, ecosystem in networks.ecosystems.items():
        for network_name, network in ecosystem.networks.items():
            if network.chain_id == chain_id:
                return f"{ecosystem_name} {network_name}"
    raise ValueError(f"Chain ID {chain_id} not found in networks.")


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def get_oz_contract_container(contract: str) -> ContractContainer:
    oz_dependency = project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]
    return getattr(oz_dependency, contract)


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _read_proxy_admin(proxy_address: ChecksumAddress) -> ChecksumAddress:
    admin_slot = chain.provider.get_storage(proxy_address, EIP1967_ADMIN_SLOT)
    if admin_slot == EMPTY_BYTES32:
        raise LedgerError(
            f"Admin slot for contract at {proxy_address} is empty. "
            "Are you sure this is an EIP1967-compatible proxy?"
        )
    return to_checksum_address(admin_slot[-20:])


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)


class ApeLedger(Transactor, Ledger):
    """Executes the orchestration's ledger operations with an ape account."""

    @property
    def deployer(self) -> ChecksumAddress:
        return to_checksum_address(self._account.address)

    def _deploy(self, container: ContractContainer, *args) -> ContractInstance:
        try:
            return self._account.deploy(container, *args)
        except ApeException as e:
            raise LedgerError(f"Deployment of {container.contract_type.name} failed: {e}") from e

    def _instance(self, contract_type: str, address: ChecksumAddress) -> ContractInstance:
        return get_contract_container(contract_type).at(address)

    def implementation_hash(self, contract_type: str) -> str:
        container = get_contract_container(contract_type)
        bytecode = container.contract_type.deployment_bytecode
        if bytecode is None or not bytecode.bytecode:
            raise DeploymentConfigError(f"{contract_type} has no deployment bytecode.")
        return to_hex(keccak(hexstr=bytecode.bytecode))

    def publish_implementation(self, contract_type: str) -> PublishedImplementation:
        container = get_contract_container(contract_type)
        if not self._autosign:
            _confirm_deployment(contract_type)
        instance = self._deploy(container)
        return PublishedImplementation(
            address=to_checksum_address(instance.address),
            implementation_hash=self.implementation_hash(contract_type),
        )

    def deploy_proxy(
        self,
        contract_type: str,
        implementation: ChecksumAddress,
        admin_owner: ChecksumAddress,
        initializer: str,
        init_args: List[Any],
    ) -> ProxyDeployment:
        initialize = getattr(self._instance(contract_type, implementation), initializer)
        _validate_method_args(method_abis=initialize.abis, args=init_args)
        if not self._autosign:
            _confirm_initialization(contract_type, method=initializer, args=init_args)
        data = initialize.encode_input(*init_args)

        proxy_container = get_oz_contract_container(PROXY_CONTRACT_TYPE)
        proxy = self._deploy(proxy_container, implementation, admin_owner, data)
        receipt = proxy.receipt
        return ProxyDeployment(
            address=to_checksum_address(proxy.address),
            proxy_admin_address=_read_proxy_admin(proxy.address),
            tx_hash=str(receipt.txn_hash),
            block_number=receipt.block_number,
        )

    def upgrade_proxy(self, proxy: ChecksumAddress, implementation: ChecksumAddress) -> None:
        proxy_admin = get_oz_contract_container(PROXY_ADMIN_CONTRACT_TYPE).at(
            _read_proxy_admin(proxy)
        )
        self._transact_confirmed(proxy_admin.upgradeAndCall, proxy, implementation, b"")

    def owner_of(self, contract_type: str, address: ChecksumAddress) -> ChecksumAddress:
        return to_checksum_address(self._instance(contract_type, address).owner())

    def pending_owner_of(
        self, contract_type: str, address: ChecksumAddress
    ) -> Optional[ChecksumAddress]:
        instance = self._instance(contract_type, address)
        if not any(abi.name == "pendingOwner" for abi in instance.contract_type.view_methods):
            return None
        return to_checksum_address(instance.pendingOwner())

    def transfer_ownership(
        self, contract_type: str, address: ChecksumAddress, new_owner: ChecksumAddress
    ) -> None:
        instance = self._instance(contract_type, address)
        self._transact_confirmed(instance.transferOwnership, new_owner)

    def _transact_confirmed(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        try:
            receipt = self.transact(method, *args)
            receipt.await_confirmations()
        except ApeException as e:
            raise LedgerError(f"{method} failed: {e}") from e
        if receipt.failed:
            raise LedgerError(f"{method} reverted in {receipt.txn_hash}")
        return receipt

    def print_info(self, params: DeploymentParameters, environment) -> None:
        print(
            f"Account: {self.deployer}",
            f"Params: {params.path}",
            f"Records: {params.records_filepath}",
            f"Environment: {environment.value}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
