from pathlib import Path

import click

from deployment.constants import (
    BUILD_DIR,
    DEFAULT_CONFIRMATION_TIMEOUT,
    NETWORKS_FILEPATH,
    PARAMS_FILEPATH,
    SUPPORTED_NETWORKS,
)
from deployment.types import Seconds

network_option = click.option(
    "--network",
    "-n",
    help=f"Network to deploy to, as named in the networks file ({', '.join(SUPPORTED_NETWORKS)}).",
    type=click.STRING,
    required=True,
)

networks_file_option = click.option(
    "--networks-file",
    help="YAML file describing the deployment networks.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=NETWORKS_FILEPATH,
    show_default=True,
)

params_file_option = click.option(
    "--params-file",
    "-p",
    help="Constructor parameters YAML file.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=PARAMS_FILEPATH,
    show_default=True,
)

build_dir_option = click.option(
    "--build-dir",
    help="Directory holding the compiled contract artifacts.",
    type=click.Path(file_okay=False, path_type=Path),
    default=BUILD_DIR,
    show_default=True,
)

timeout_option = click.option(
    "--timeout",
    "-t",
    help="Seconds to wait for each contract creation to be mined.",
    type=Seconds(minimum=1),
    default=DEFAULT_CONFIRMATION_TIMEOUT,
    show_default=True,
)


def deployment_options(func):
    """Options shared by every deployment command."""
    for option in reversed(
        [network_option, networks_file_option, params_file_option, build_dir_option, timeout_option]
    ):
        func = option(func)
    return func
