from pathlib import Path

import click

from proxy_deploy.constants import DEPLOYMENT_PARAMS_DIR
from proxy_deploy.networks import EnvironmentClassification
from proxy_deploy.types import ChecksumAddress


def _locate_params_file(ctx, param, value: Path) -> Path:
    """Accepts a path, or one relative to the bundled deployment parameters."""
    for candidate in (value, DEPLOYMENT_PARAMS_DIR / value):
        if candidate.is_file():
            return candidate
    raise click.BadParameter(f"No parameters file found at {value}", ctx=ctx, param=param)


params_file_option = click.option(
    "--params-file",
    "-p",
    help="Deployment parameters YAML, e.g. local/converter-network.yml.",
    type=click.Path(dir_okay=False, path_type=Path),
    callback=_locate_params_file,
    required=True,
)

component_option = click.option(
    "--component",
    "-c",
    "components",
    help="Component to deploy; defaults to every component in the parameters file.",
    type=click.STRING,
    multiple=True,
)

environment_option = click.option(
    "--environment",
    "-e",
    help="Override the live/ephemeral classification of the connected network.",
    type=click.Choice([e.value for e in EnvironmentClassification]),
    required=False,
)

multisig_option = click.option(
    "--multisig",
    "-m",
    help="Fallback custodian address; overrides custody.multisig of the parameters file.",
    type=ChecksumAddress(),
    required=False,
)

upgrade_option = click.option(
    "--upgrade",
    help="Upgrade proxies whose implementation differs from the recorded one.",
    is_flag=True,
)

autosign_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)
