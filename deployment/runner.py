import traceback
from pathlib import Path
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

import click
from eth_typing import ChecksumAddress
from eth_utils import to_hex
from hexbytes import HexBytes

from deployment.client import NetworkClient, connect
from deployment.config import DeploymentConfig
from deployment.constants import EXIT_INTERRUPTED, EXIT_SUCCESS
from deployment.exceptions import DeploymentError
from deployment.networks import NetworkConfig
from deployment.pipeline import Deployer, DeploymentPipeline, DeploymentResult
from deployment.registry import addresses_from_registry, registry_from_deployments

ClientFactory = Callable[[NetworkConfig], NetworkClient]


class RunOutcome(NamedTuple):
    """What a single invocation achieved; the caller maps it to an exit status."""

    network: str
    results: List[DeploymentResult]
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        if self.error is None:
            return EXIT_SUCCESS
        if isinstance(self.error, KeyboardInterrupt):
            return EXIT_INTERRUPTED
        if isinstance(self.error, DeploymentError):
            return self.error.exit_code
        return 1


def _known_addresses(
    pipeline: DeploymentPipeline, network: NetworkConfig
) -> Dict[str, ChecksumAddress]:
    """Addresses recorded by earlier runs; the local chain starts empty every time."""
    if network.is_local or pipeline.registry_filepath is None:
        return dict()
    return addresses_from_registry(pipeline.registry_filepath, chain_id=network.chain_id)


def _report_failure(error: BaseException, results: List[DeploymentResult]) -> None:
    click.echo(f"\nDeployment failed - {type(error).__name__}: {error}", err=True)
    lines = traceback.format_exception(type(error), error, error.__traceback__)
    click.echo("".join(lines), err=True)
    _report_partial(results)


def _report_interrupt(results: List[DeploymentResult], pending_tx: Optional[HexBytes]) -> None:
    click.echo("\nDeployment interrupted.", err=True)
    if pending_tx is not None:
        click.echo(
            f"Transaction {to_hex(pending_tx)} was sent but not confirmed. It cannot be "
            "recalled and may still be mined; check the network before deploying again.",
            err=True,
        )
    _report_partial(results)


def _report_partial(results: List[DeploymentResult]) -> None:
    if not results:
        return
    click.echo("Contracts deployed before stopping:", err=True)
    for result in results:
        click.echo(f"\t{result.contract_name} at {result.address} (tx {result.tx_hash})", err=True)


def _record(
    results: List[DeploymentResult],
    network: NetworkConfig,
    pipeline: DeploymentPipeline,
    config: DeploymentConfig,
) -> None:
    if not results or network.is_local or pipeline.registry_filepath is None:
        return
    registry_from_deployments(
        results=results,
        chain_id=network.chain_id,
        artifacts=config.artifacts,
        output_filepath=pipeline.registry_filepath,
    )


def run(
    network_id: str,
    config: DeploymentConfig,
    contract_names: Optional[Iterable[str]] = None,
    client_factory: ClientFactory = connect,
) -> RunOutcome:
    """
    Deploys the configured pipeline (or the named subset of it) to one network.

    Nothing is submitted until the network is selected and every step has been
    validated. Steps run strictly in order; a failure stops the run and leaves
    earlier deployments in place. Errors are reported here and returned, never raised.
    """
    results: List[DeploymentResult] = list()
    network, pipeline = None, config.pipeline
    deployer: Optional[Deployer] = None
    error = None
    try:
        network = config.networks.select(network_id)
        if contract_names:
            pipeline = pipeline.select(contract_names)
        labels = {step.contract_name: step.display_name for step in pipeline}

        known = _known_addresses(pipeline, network)
        pipeline.validate(config.artifacts, available=known)

        client = client_factory(network)
        deployer = Deployer(
            network=network, client=client, artifacts=config.artifacts, timeout=config.timeout
        )
        deployer.print_deployment_info(pipeline)
        for result in deployer.run(pipeline, known=known):
            results.append(result)
            print(f"{labels[result.contract_name]} deployed to: {result.address}")
    except KeyboardInterrupt as e:
        error = e
        _report_interrupt(results, pending_tx=deployer.pending_tx if deployer else None)
    except Exception as e:
        error = e
        _report_failure(e, results)

    if network is not None:
        try:
            _record(results, network, pipeline, config)
        except (OSError, ValueError) as e:
            _report_failure(e, results=[])
            error = error or e

    return RunOutcome(network=network_id, results=results, error=error)


def main(
    network_id: str,
    contract_names: Optional[Iterable[str]] = None,
    networks_file: Optional[Path] = None,
    params_file: Optional[Path] = None,
    build_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> RunOutcome:
    """Loads the configuration from disk and the process environment, then runs."""
    options = dict(
        networks_filepath=networks_file,
        params_filepath=params_file,
        build_dir=build_dir,
        timeout=timeout,
    )
    try:
        config = DeploymentConfig.load(**{k: v for k, v in options.items() if v is not None})
    except DeploymentError as e:
        _report_failure(e, results=[])
        return RunOutcome(network=network_id, results=[], error=e)
    return run(network_id, config, contract_names=contract_names)
