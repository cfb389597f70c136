#!/usr/bin/python3
import sys

import click

from deployment.options import deployment_options
from deployment.runner import main


@click.command()
@deployment_options
@click.option(
    "--contract",
    "-c",
    "contract_names",
    help="Deploy only this contract (repeatable); defaults to the whole pipeline.",
    type=click.STRING,
    multiple=True,
)
def cli(network, networks_file, params_file, build_dir, timeout, contract_names):
    """
    Deploys the contract pipeline to a network, in order.

    python scripts/deploy.py --network tbsc
    python scripts/deploy.py --network local -c IluminaryToken -c MockToken
    """
    outcome = main(
        network_id=network,
        contract_names=contract_names,
        networks_file=networks_file,
        params_file=params_file,
        build_dir=build_dir,
        timeout=timeout,
    )
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    cli()
