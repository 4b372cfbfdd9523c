from enum import Enum
from typing import NamedTuple, Optional

from eth_typing import ChecksumAddress

from proxy_deploy.errors import NoCustodianConfigured, UnexpectedOwner
from proxy_deploy.ledger import Ledger
from proxy_deploy.networks import EnvironmentClassification
from proxy_deploy.params import CustodyParameters
from proxy_deploy.records import DeploymentRecord
from proxy_deploy.resolver import AddressResolver


class CustodianSource(Enum):
    RESOLVED_GOVERNANCE_CONTRACT = "governance"
    CONFIGURED_MULTISIG = "multisig"
    DEPLOYER = "deployer"
    PROXY_ADMIN_OWNER = "proxy admin owner"


class CustodianAccount(NamedTuple):
    address: ChecksumAddress
    source: CustodianSource


def select_custodian(
    resolver: AddressResolver,
    custody: CustodyParameters,
    deployer: Optional[ChecksumAddress] = None,
) -> CustodianAccount:
    """
    Picks the account that should end up in control of a component.
    Priority: deployed governance contract, configured multisig, deployer.
    The deployer is only a candidate when explicitly given.
    """
    if custody.governance:
        address = resolver.find_deployed(custody.governance)
        if address is not None:
            return CustodianAccount(address, CustodianSource.RESOLVED_GOVERNANCE_CONTRACT)
    if custody.multisig:
        return CustodianAccount(custody.multisig, CustodianSource.CONFIGURED_MULTISIG)
    if deployer is not None:
        return CustodianAccount(deployer, CustodianSource.DEPLOYER)
    raise NoCustodianConfigured(
        f"No deployed {custody.governance or 'governance contract'} "
        "and no multisig configured for this network."
    )


class OwnershipTransitioner:
    """Hands ownership of a deployed component over to its custodian on live networks."""

    def __init__(self, ledger: Ledger, resolver: AddressResolver, custody: CustodyParameters):
        self.ledger = ledger
        self.resolver = resolver
        self.custody = custody

    def custodian_for(self, instance: DeploymentRecord) -> CustodianAccount:
        """
        A proxy whose admin was handed out at deployment already names its
        custodian; the component follows it there.
        """
        if instance.proxy_admin_owner != self.ledger.deployer:
            return CustodianAccount(instance.proxy_admin_owner, CustodianSource.PROXY_ADMIN_OWNER)
        return select_custodian(self.resolver, self.custody)

    def finalize_ownership(
        self, instance: DeploymentRecord, environment: EnvironmentClassification
    ) -> None:
        if not environment.is_live:
            print(
                f"(i) {environment.value} network; "
                f"{instance.component_name} stays with deployer."
            )
            return

        custodian = self.custodian_for(instance)
        contract_type, address = instance.contract_type, instance.address

        owner = self.ledger.owner_of(contract_type, address)
        if owner == custodian.address:
            print(f"(i) {instance.component_name} already owned by {custodian.address}.")
            return

        pending_owner = self.ledger.pending_owner_of(contract_type, address)
        if pending_owner == custodian.address:
            print(
                f"(i) Ownership of {instance.component_name} already offered to "
                f"{custodian.address}; awaiting acceptance."
            )
            return

        if owner != self.ledger.deployer:
            raise UnexpectedOwner(
                f"{instance.component_name} at {address} is owned by {owner}, "
                f"neither the deployer {self.ledger.deployer} nor custodian {custodian.address}."
            )

        print(
            f"\nTransferring ownership of {instance.component_name} to "
            f"{custodian.address} ({custodian.source.value})."
        )
        self.ledger.transfer_ownership(contract_type, address, custodian.address)
