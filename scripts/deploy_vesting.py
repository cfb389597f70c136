#!/usr/bin/python3
import sys

import click

from deployment.constants import ILMT_VESTING
from deployment.options import deployment_options
from deployment.runner import main


@click.command()
@deployment_options
def cli(network, networks_file, params_file, build_dir, timeout):
    """Deploys the ILMT vesting contract."""
    outcome = main(
        network_id=network,
        contract_names=[ILMT_VESTING],
        networks_file=networks_file,
        params_file=params_file,
        build_dir=build_dir,
        timeout=timeout,
    )
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    cli()
