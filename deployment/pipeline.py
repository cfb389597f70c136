import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address, to_hex
from hexbytes import HexBytes

from deployment.artifacts import ArtifactStore
from deployment.client import NetworkClient
from deployment.constants import DEFAULT_CONFIRMATION_TIMEOUT
from deployment.exceptions import ConfigurationError, SubmissionFailed
from deployment.networks import NetworkConfig
from deployment.params import (
    CONTRACT_LABEL_KEY,
    ZERO_ADDRESS,
    ContractSpec,
    ResolutionContext,
    contract_spec_from_config,
    validate_constructor_args,
)
from deployment.utils import _load_yaml, get_registry_filepath


class DeploymentResult(NamedTuple):
    """A contract creation confirmed on-chain."""

    contract_name: str
    address: ChecksumAddress
    network: str
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress


class DeploymentStep(NamedTuple):
    spec: ContractSpec
    label: Optional[str] = None

    @property
    def contract_name(self) -> str:
        return self.spec.name

    @property
    def display_name(self) -> str:
        return self.label or self.spec.name


def _steps_from_config(config: typing.Dict) -> List[DeploymentStep]:
    contracts = config.get("contracts")
    if not contracts:
        raise ConfigurationError("Constructor parameters file missing 'contracts' field.")
    constants = config.get("constants") or dict()

    steps = list()
    for contract_info in contracts:
        if isinstance(contract_info, str):
            contract_name, contract_data = contract_info, dict()
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
        else:
            raise ConfigurationError("Malformed constructor parameters YAML.")

        spec = contract_spec_from_config(contract_name, contract_data, constants)
        label = contract_data.get(CONTRACT_LABEL_KEY) if isinstance(contract_data, dict) else None
        steps.append(DeploymentStep(spec=spec, label=label))

    return steps


class DeploymentPipeline:
    """An ordered set of contract deployments against one network."""

    def __init__(
        self,
        name: str,
        steps: Iterable[DeploymentStep],
        registry_filepath: Optional[Path] = None,
    ):
        self.name = name
        self.steps = list(steps)
        self.registry_filepath = registry_filepath

        seen = set()
        for step in self.steps:
            if step.contract_name in seen:
                raise ConfigurationError(
                    f"{step.contract_name} appears more than once in pipeline '{name}'."
                )
            seen.add(step.contract_name)

    @classmethod
    def from_config(cls, config: typing.Dict) -> "DeploymentPipeline":
        deployment = config.get("deployment") or dict()
        name = deployment.get("name", "deployment")
        return cls(
            name=name,
            steps=_steps_from_config(config),
            registry_filepath=get_registry_filepath(config),
        )

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentPipeline":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise ConfigurationError(f"Malformed constructor parameters file {filepath}.")
        return cls.from_config(config)

    @property
    def contract_names(self) -> List[str]:
        return [step.contract_name for step in self.steps]

    def select(self, contract_names: Iterable[str]) -> "DeploymentPipeline":
        """Returns a pipeline of only the named contracts, in pipeline order."""
        wanted = list(contract_names)
        unknown = [name for name in wanted if name not in self.contract_names]
        if unknown:
            raise ConfigurationError(
                f"{', '.join(unknown)} not part of pipeline '{self.name}'; "
                f"expected any of {', '.join(self.contract_names)}."
            )
        steps = [step for step in self.steps if step.contract_name in wanted]
        return DeploymentPipeline(
            name=self.name, steps=steps, registry_filepath=self.registry_filepath
        )

    def validate(self, artifacts: ArtifactStore, available: Iterable[str] = ()) -> None:
        """
        Checks every step before anything is submitted. References must point at an
        earlier step or at a contract already deployed to the network (`available`).
        Argument types are checked with the zero address standing in for references.
        """
        print(f"Validating pipeline '{self.name}'...")
        resolvable = set(available)
        for step in self.steps:
            for reference in step.spec.references:
                if reference not in resolvable:
                    raise ConfigurationError(
                        f"{step.contract_name} references ${reference}, which is not a constant "
                        "and is neither deployed earlier in this run nor recorded for this "
                        "network."
                    )
            placeholders = ResolutionContext(
                deployer=ZERO_ADDRESS,
                addresses={name: ZERO_ADDRESS for name in resolvable},
            )
            artifact = artifacts.get(step.contract_name)
            validate_constructor_args(artifact, step.spec.resolve(placeholders))
            resolvable.add(step.contract_name)

    def __iter__(self) -> Iterator[DeploymentStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


class Deployer:
    """
    Deploys contracts to one network through one client, waiting for each
    contract creation to be mined before returning.
    """

    def __init__(
        self,
        network: NetworkConfig,
        client: NetworkClient,
        artifacts: ArtifactStore,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ):
        self.network = network
        self.client = client
        self.artifacts = artifacts
        self.timeout = timeout
        # sent but not yet confirmed
        self.pending_tx: Optional[HexBytes] = None
        self._check_chain_id()

    def _check_chain_id(self) -> None:
        if self.network.is_local:
            return  # the simulated chain picks its own id
        chain_id = self.client.chain_id()
        if chain_id != self.network.chain_id:
            raise ConfigurationError(
                f"chain_id of network '{self.network.identifier}' ({self.network.chain_id}) "
                f"does not match chain_id of {self.network.rpc_url} ({chain_id})."
            )

    def print_deployment_info(self, pipeline: Optional[DeploymentPipeline] = None) -> None:
        lines = [
            f"Account: {self.client.deployer}",
            f"Network: {self.network.identifier}",
            f"Chain ID: {self.network.chain_id}",
        ]
        if pipeline is not None:
            lines.append(f"Contracts: {', '.join(pipeline.contract_names)}")
        print(*lines, sep="\n")

    def deploy(self, spec: ContractSpec) -> DeploymentResult:
        if not spec.is_resolved:
            raise ConfigurationError(
                f"Constructor parameters for {spec.name} contain unresolved variables."
            )
        artifact = self.artifacts.get(spec.name)
        args = validate_constructor_args(artifact, spec)

        if args:
            print(f"\nConstructor parameters for {spec.name}")
            for position, value in enumerate(args):
                name = spec.parameter_names[position] if spec.parameter_names else position
                print(f"\t{name}={value}")
        else:
            print(f"\n(i) No constructor parameters for {spec.name}")

        print(f"Deploying {spec.name} to {self.network.identifier}...")
        tx_hash = self.client.submit(artifact, args)
        self.pending_tx = tx_hash
        print(f"Transaction sent: {to_hex(tx_hash)}; waiting for confirmation...")

        receipt = self.client.wait_for_receipt(tx_hash, timeout=self.timeout)
        self.pending_tx = None
        return self._result_from_receipt(spec.name, receipt)

    def _result_from_receipt(self, contract_name: str, receipt) -> DeploymentResult:
        tx_hash = to_hex(receipt.tx_hash)
        if receipt.status != 1:
            raise SubmissionFailed(f"{contract_name} creation reverted in transaction {tx_hash}.")
        address = receipt.contract_address
        if not address or not is_address(address):
            raise SubmissionFailed(
                f"Transaction {tx_hash} was mined without creating {contract_name}."
            )
        address = to_checksum_address(address)
        if address == ZERO_ADDRESS:
            raise SubmissionFailed(f"{contract_name} reported at the zero address ({tx_hash}).")

        return DeploymentResult(
            contract_name=contract_name,
            address=address,
            network=self.network.identifier,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
            deployer=self.client.deployer,
        )

    def run(
        self,
        pipeline: DeploymentPipeline,
        known: Optional[Dict[str, ChecksumAddress]] = None,
    ) -> Iterator[DeploymentResult]:
        """
        Deploys the pipeline's steps in order, yielding each result once mined.
        `known` holds addresses of contracts deployed by earlier runs.
        """
        addresses: Dict[str, Any] = OrderedDict(known or {})
        for step in pipeline:
            context = ResolutionContext(deployer=self.client.deployer, addresses=addresses)
            result = self.deploy(step.spec.resolve(context))
            addresses[result.contract_name] = result.address
            yield result


def deploy(
    contract_spec: ContractSpec,
    network: NetworkConfig,
    client: NetworkClient,
    artifacts: ArtifactStore,
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
) -> DeploymentResult:
    """Deploys a single, fully resolved contract."""
    deployer = Deployer(network=network, client=client, artifacts=artifacts, timeout=timeout)
    return deployer.deploy(contract_spec)
