import itertools
import json
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple

from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from deployment.artifacts import ArtifactStore
from deployment.exceptions import ConfigurationError
from deployment.pipeline import DeploymentResult
from deployment.utils import _load_json

ChainId = int

# {chain_id: {contract_name: record}}
RegistryData = Dict[str, Dict[str, dict]]

STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """A contract deployed to one chain, as recorded in a registry file."""

    chain_id: ChainId
    name: str
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str

    @classmethod
    def from_result(
        cls, result: DeploymentResult, chain_id: ChainId, artifacts: ArtifactStore
    ) -> "RegistryEntry":
        artifact = artifacts.get(result.contract_name)
        return cls(
            chain_id=chain_id,
            name=result.contract_name,
            address=to_checksum_address(result.address),
            abi=list(artifact.abi),
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            deployer=result.deployer,
        )

    @classmethod
    def from_record(cls, chain_id: str, name: str, record: dict) -> "RegistryEntry":
        try:
            return cls(
                chain_id=int(chain_id),
                name=name,
                address=to_checksum_address(record["address"]),
                abi=record["abi"],
                tx_hash=record["tx_hash"],
                block_number=int(record["block_number"]),
                deployer=record["deployer"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Malformed registry record for {name} on chain {chain_id}: {e!r}"
            )

    def to_record(self) -> dict:
        abi = sorted(self.abi, key=lambda d: (d["type"], d.get("name", "")))
        return {
            "address": self.address,
            "abi": abi,
            "tx_hash": self.tx_hash,
            "block_number": int(self.block_number),
            "deployer": self.deployer,
        }


def _read_data(filepath: Path) -> RegistryData:
    data = _load_json(filepath)
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ConfigurationError(f"Malformed registry file {filepath}.")
    return data


def _write_data(data: RegistryData, filepath: Path) -> None:
    ordered = {
        chain_id: dict(sorted(records.items())) for chain_id, records in sorted(data.items())
    }
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(ordered, file, **STANDARD_REGISTRY_JSON_FORMAT)


def _unmerged_filepaths(filepath: Path) -> Iterator[Path]:
    yield filepath.with_suffix(".unmerged.json")
    for n in itertools.count(2):
        yield filepath.with_suffix(f".unmerged-{n}.json")


def _merge(data: RegistryData, entries: Iterable[RegistryEntry]) -> List[RegistryEntry]:
    """Adds entries to `data`; returns the ones whose contract is already recorded there."""
    collisions = list()
    for entry in entries:
        records = data.setdefault(str(entry.chain_id), dict())
        if entry.name in records:
            collisions.append(entry)
        else:
            records[entry.name] = entry.to_record()
    return collisions


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _read_data(filepath)
    return [
        RegistryEntry.from_record(chain_id, name, record)
        for chain_id, records in data.items()
        for name, record in records.items()
    ]


def write_registry(
    entries: List[RegistryEntry], filepath: Path, silent: bool = False
) -> List[Path]:
    """
    Records entries in a registry file, merging with whatever it already holds.

    A contract already recorded for a chain is never overwritten. Its new entry
    goes to the first `.unmerged` side file that does not record it yet; side
    files are merged into the same way. Returns the files written.
    """
    if not entries:
        if not silent:
            print("No entries provided.")
        return []

    written = list()
    pending = list(entries)
    for target in itertools.chain([filepath], _unmerged_filepaths(filepath)):
        if not pending:
            break
        if target.exists():
            data = _read_data(target)
            if not silent:
                print(f"Updating existing registry at {target}.")
        else:
            data = dict()
            if not silent:
                print(f"Creating new registry at {target}.")

        collisions = _merge(data, pending)
        if len(collisions) < len(pending):
            _write_data(data, target)
            written.append(target)
        if collisions and not silent:
            names = ", ".join(entry.name for entry in collisions)
            print(f"{names} already recorded in {target}; not overwriting.")
        pending = collisions

    return written


def registry_from_deployments(
    results: Iterable[DeploymentResult],
    chain_id: ChainId,
    artifacts: ArtifactStore,
    output_filepath: Path,
) -> List[Path]:
    """Records deployment results, with their ABIs, in a registry file."""
    entries = [RegistryEntry.from_result(result, chain_id, artifacts) for result in results]
    written = write_registry(entries=entries, filepath=output_filepath)
    for filepath in written:
        print(f"(i) Registry written to {filepath}!")
    return written


def addresses_from_registry(filepath: Path, chain_id: ChainId) -> Dict[str, ChecksumAddress]:
    """Returns the recorded contract addresses for a chain, if the registry exists."""
    if not filepath.exists():
        return dict()
    return {
        entry.name: entry.address
        for entry in read_registry(filepath=filepath)
        if entry.chain_id == chain_id
    }
