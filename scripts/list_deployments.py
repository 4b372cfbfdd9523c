#!/usr/bin/python3

from itertools import groupby
from pathlib import Path
from typing import List

import click
from ape.cli import ConnectedProviderCommand

from proxy_deploy.ape_ledger import get_chain_name
from proxy_deploy.records import DeploymentRecord, read_records


def _format_chain_name(chain_name: str) -> str:
    """Format the chain name to capitalize each word and join with slashes."""
    return "/".join(word.capitalize() for word in chain_name.split())


def _display_records(records: List[DeploymentRecord]) -> None:
    """Display deployment records grouped by chain ID."""
    for chain_id, chain_records in groupby(records, key=lambda r: r.chain_id):
        chain_name = _format_chain_name(get_chain_name(chain_id))
        click.secho(f"\n{chain_name}", fg="yellow")

        for index, record in enumerate(chain_records, start=1):
            click.secho(f"    {index}. {record.component_name} {record.address}", fg="cyan")
            click.echo(f"        proxy admin: {record.proxy_admin_address}")
            click.echo(f"        proxy admin owner: {record.proxy_admin_owner}")
            click.echo(
                f"        implementation: v{record.implementation_version} "
                f"{record.implementation_address}"
            )


@click.command(cls=ConnectedProviderCommand, name="list-deployments")
@click.option(
    "--records-filepath",
    "-f",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Deployment records file.",
    required=True,
)
def cli(records_filepath):
    """List all proxied components recorded in a deployment records file."""
    records = read_records(records_filepath)
    _display_records(records)


if __name__ == "__main__":
    cli()
