from typing import List, Optional

from eth_typing import ChecksumAddress

from proxy_deploy.custody import OwnershipTransitioner, select_custodian
from proxy_deploy.ledger import Ledger
from proxy_deploy.manager import DeploymentManager
from proxy_deploy.networks import EnvironmentClassification
from proxy_deploy.params import ComponentSpec, DeploymentParameters, ResolutionContext
from proxy_deploy.records import DeploymentRecord, RecordStore
from proxy_deploy.resolver import AddressResolver


class DeploymentOrchestrator:
    """
    Runs the deployment of named components: resolve dependencies, deploy
    or reuse the proxied instance, then settle custody.

    Each step completes before the next begins, so a rerun after any
    failure picks up exactly where the previous run stopped.
    """

    def __init__(
        self,
        params: DeploymentParameters,
        ledger: Ledger,
        environment: EnvironmentClassification,
        records: Optional[RecordStore] = None,
        allow_upgrade: bool = False,
    ):
        self.params = params
        self.ledger = ledger
        self.environment = environment
        self.records = records or RecordStore(
            filepath=params.records_filepath,
            chain_id=params.chain_id,
            external_directories=params.external_directories,
        )
        self.resolver = AddressResolver(records=self.records, defaults=params.defaults)
        self.manager = DeploymentManager(
            ledger=ledger, records=self.records, allow_upgrade=allow_upgrade
        )
        self.transitioner = OwnershipTransitioner(
            ledger=ledger, resolver=self.resolver, custody=params.custody
        )

    def proxy_admin_owner(self, component: ComponentSpec) -> ChecksumAddress:
        """
        Live networks hand the proxy admin to the custodian from the start.
        Once a proxy exists its admin owner is fixed, so reruns keep it.
        """
        if not self.environment.is_live:
            return self.ledger.deployer
        record = self.records.get(component.name)
        if (
            record is not None
            and record.initialized
            and record.proxy_admin_owner != self.ledger.deployer
        ):
            return record.proxy_admin_owner
        return select_custodian(self.resolver, self.params.custody).address

    def init_args(self, component: ComponentSpec) -> list:
        dependencies = {name: self.resolver.resolve(name) for name in component.dependencies}
        context = ResolutionContext(deployer=self.ledger.deployer, dependencies=dependencies)
        return component.initializer.resolve(context)

    def run(self, component_name: str) -> DeploymentRecord:
        component = self.params.component(component_name)
        print(f"\n# {component.name} ({self.environment.value})")

        init_args = self.init_args(component)
        proxy_admin_owner = self.proxy_admin_owner(component)

        record = self.manager.ensure_deployed(
            component=component,
            proxy_admin_owner=proxy_admin_owner,
            init_args=init_args,
        )
        self.transitioner.finalize_ownership(record, self.environment)
        return record

    def run_all(self, component_names: Optional[List[str]] = None) -> List[DeploymentRecord]:
        """Runs components sequentially, in parameters file order unless names are given."""
        names = component_names or list(self.params.components)
        return [self.run(name) for name in names]
