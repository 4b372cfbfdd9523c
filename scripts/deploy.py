#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from proxy_deploy.ape_ledger import ApeLedger, check_chain_id, check_plugins
from proxy_deploy.networks import classify_network
from proxy_deploy.options import (
    autosign_option,
    component_option,
    environment_option,
    multisig_option,
    params_file_option,
    upgrade_option,
)
from proxy_deploy.orchestrator import DeploymentOrchestrator
from proxy_deploy.params import DeploymentParameters


@click.command(cls=ConnectedProviderCommand, name="deploy")
@account_option()
@network_option(required=True)
@params_file_option
@component_option
@environment_option
@multisig_option
@upgrade_option
@autosign_option
def cli(account, network, params_file, components, environment, multisig, upgrade, auto):
    """Deploy proxied components and hand them over to their custodian."""

    # Setup
    check_plugins()
    params = DeploymentParameters.from_yaml(filepath=params_file)
    check_chain_id(params)
    if multisig:
        params.custody = params.custody._replace(multisig=multisig)

    environment = classify_network(network.name, override=environment)
    click.echo(f"Connected to {network.name} network ({environment.value}).")

    ledger = ApeLedger(account=account, autosign=auto)
    ledger.print_info(params, environment)

    orchestrator = DeploymentOrchestrator(
        params=params,
        ledger=ledger,
        environment=environment,
        allow_upgrade=upgrade,
    )
    records = orchestrator.run_all(list(components))

    for record in records:
        click.secho(
            f"{record.component_name} {record.address} "
            f"(implementation v{record.implementation_version} {record.implementation_address})",
            fg="green",
        )


if __name__ == "__main__":
    cli()
