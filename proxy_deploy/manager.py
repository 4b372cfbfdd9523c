import json
from typing import Any, List

from eth_typing import ChecksumAddress
from eth_utils import keccak, to_hex

from proxy_deploy.errors import (
    AlreadyInitializedMismatch,
    ImplementationPublishFailed,
    InitializationFailed,
    LedgerError,
)
from proxy_deploy.ledger import Ledger
from proxy_deploy.params import ComponentSpec
from proxy_deploy.records import DeploymentRecord, RecordStore


def init_args_hash(init_args: List[Any]) -> str:
    """Comparison key of the resolved arguments passed to the initializer."""
    encoded = json.dumps(init_args, default=str)
    return to_hex(keccak(text=encoded))


class DeploymentManager:
    """
    Ensures a component is deployed behind an upgradeable proxy.

    The manager is the only writer of its component's record. A record is
    persisted only after the proxy, and therefore the one-time initializer
    executed in its constructor, has been confirmed.
    """

    def __init__(self, ledger: Ledger, records: RecordStore, allow_upgrade: bool = False):
        self.ledger = ledger
        self.records = records
        self.allow_upgrade = allow_upgrade

    def ensure_deployed(
        self,
        component: ComponentSpec,
        proxy_admin_owner: ChecksumAddress,
        init_args: List[Any],
    ) -> DeploymentRecord:
        requested_hash = self.ledger.implementation_hash(component.contract_type)
        existing = self.records.get(component.name)

        if existing is not None and existing.initialized:
            self._check_structure(existing, component, proxy_admin_owner, init_args)
            if existing.implementation_hash == requested_hash:
                print(f"(i) {component.name} already deployed at {existing.address}; reusing.")
                return existing
            return self._upgrade(existing, component)

        return self._deploy(component, proxy_admin_owner, init_args)

    @staticmethod
    def _check_structure(
        record: DeploymentRecord,
        component: ComponentSpec,
        proxy_admin_owner: ChecksumAddress,
        init_args: List[Any],
    ) -> None:
        drift = list()
        if record.contract_type != component.contract_type:
            drift.append(f"contract type {record.contract_type} != {component.contract_type}")
        if record.initializer != component.initializer.method:
            drift.append(f"initializer {record.initializer} != {component.initializer.method}")
        if record.proxy_admin_owner != proxy_admin_owner:
            drift.append(f"proxy admin owner {record.proxy_admin_owner} != {proxy_admin_owner}")
        requested_args_hash = init_args_hash(init_args)
        if record.init_args_hash != requested_args_hash:
            drift.append(
                f"initializer arguments {record.init_args_hash} != {requested_args_hash} "
                f"{tuple(init_args)}"
            )
        if drift:
            raise AlreadyInitializedMismatch(
                f"Existing record for {component.name} at {record.address} differs from "
                f"the requested deployment: {'; '.join(drift)}"
            )

    def _publish(self, component: ComponentSpec):
        print(f"\nPublishing {component.contract_type} implementation for {component.name}.")
        try:
            return self.ledger.publish_implementation(component.contract_type)
        except LedgerError as e:
            raise ImplementationPublishFailed(
                f"Publishing {component.contract_type} implementation failed: {e}"
            ) from e

    def _deploy(
        self,
        component: ComponentSpec,
        proxy_admin_owner: ChecksumAddress,
        init_args: List[Any],
    ) -> DeploymentRecord:
        implementation = self._publish(component)

        print(
            f"\nDeploying proxy for {component.name} "
            f"(proxy admin owner {proxy_admin_owner}) and calling "
            f"{component.initializer.method}{tuple(init_args)}."
        )
        try:
            proxy = self.ledger.deploy_proxy(
                contract_type=component.contract_type,
                implementation=implementation.address,
                admin_owner=proxy_admin_owner,
                initializer=component.initializer.method,
                init_args=init_args,
            )
        except LedgerError as e:
            raise InitializationFailed(
                f"Proxy deployment with {component.initializer.method} "
                f"for {component.name} failed: {e}"
            ) from e

        record = DeploymentRecord(
            chain_id=self.records.chain_id,
            component_name=component.name,
            contract_type=component.contract_type,
            address=proxy.address,
            proxy_admin_address=proxy.proxy_admin_address,
            proxy_admin_owner=proxy_admin_owner,
            implementation_address=implementation.address,
            implementation_hash=implementation.implementation_hash,
            implementation_version=1,
            initializer=component.initializer.method,
            init_args_hash=init_args_hash(init_args),
            initialized=True,
            tx_hash=proxy.tx_hash,
            block_number=proxy.block_number,
            deployer=self.ledger.deployer,
        )
        self.records.put(record)
        print(f"(i) {component.name} deployed at {record.address}.")
        return record

    def _upgrade(self, record: DeploymentRecord, component: ComponentSpec) -> DeploymentRecord:
        if not self.allow_upgrade:
            raise AlreadyInitializedMismatch(
                f"{component.name} at {record.address} runs a different implementation "
                f"({record.implementation_hash}); upgrades must be explicitly allowed."
            )
        if record.proxy_admin_owner != self.ledger.deployer:
            raise AlreadyInitializedMismatch(
                f"Proxy admin of {component.name} is owned by {record.proxy_admin_owner}; "
                "the upgrade must be carried out by that account."
            )

        implementation = self._publish(component)
        print(f"\nUpgrading {component.name} at {record.address} to {implementation.address}.")
        try:
            self.ledger.upgrade_proxy(record.address, implementation.address)
        except LedgerError as e:
            raise ImplementationPublishFailed(
                f"Upgrading {component.name} to {implementation.address} failed: {e}"
            ) from e

        upgraded = record._replace(
            implementation_address=implementation.address,
            implementation_hash=implementation.implementation_hash,
            implementation_version=record.implementation_version + 1,
        )
        self.records.put(upgraded)
        return upgraded
