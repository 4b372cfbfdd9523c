from abc import ABC, abstractmethod
from typing import Any, List, NamedTuple, Optional

from eth_typing import ChecksumAddress


class PublishedImplementation(NamedTuple):
    address: ChecksumAddress
    implementation_hash: str


class ProxyDeployment(NamedTuple):
    address: ChecksumAddress
    proxy_admin_address: ChecksumAddress
    tx_hash: str
    block_number: int


class Ledger(ABC):
    """
    The narrow set of on-chain operations the orchestration core needs.

    Every state-changing method blocks until its transaction is confirmed
    and raises ``LedgerError`` if it fails.
    """

    @property
    @abstractmethod
    def deployer(self) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def implementation_hash(self, contract_type: str) -> str:
        """Returns the comparison key of the code that would be published."""
        raise NotImplementedError

    @abstractmethod
    def publish_implementation(self, contract_type: str) -> PublishedImplementation:
        raise NotImplementedError

    @abstractmethod
    def deploy_proxy(
        self,
        contract_type: str,
        implementation: ChecksumAddress,
        admin_owner: ChecksumAddress,
        initializer: str,
        init_args: List[Any],
    ) -> ProxyDeployment:
        """Deploys a proxy whose construction atomically runs the initializer."""
        raise NotImplementedError

    @abstractmethod
    def upgrade_proxy(self, proxy: ChecksumAddress, implementation: ChecksumAddress) -> None:
        raise NotImplementedError

    @abstractmethod
    def owner_of(self, contract_type: str, address: ChecksumAddress) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def pending_owner_of(
        self, contract_type: str, address: ChecksumAddress
    ) -> Optional[ChecksumAddress]:
        """Returns the pending owner of two-step ownership contracts, or None."""
        raise NotImplementedError

    @abstractmethod
    def transfer_ownership(
        self, contract_type: str, address: ChecksumAddress, new_owner: ChecksumAddress
    ) -> None:
        raise NotImplementedError
