from pathlib import Path
from typing import Dict, List, NamedTuple

from eth_typing import ABI
from ethpm_types import ContractType
from ethpm_types.abi import ABIType

from deployment.exceptions import ConfigurationError
from deployment.utils import _load_json

DEBUG_ARTIFACT_SUFFIX = ".dbg.json"


class ContractArtifact(NamedTuple):
    """A compiled contract: its type, raw ABI and creation bytecode."""

    contract_type: ContractType
    abi: ABI
    bytecode: str

    @property
    def name(self) -> str:
        return self.contract_type.name

    @property
    def constructor_inputs(self) -> List[ABIType]:
        return list(self.contract_type.constructor.inputs)


def artifact_from_json(data: Dict) -> ContractArtifact:
    """Builds an artifact from hardhat compiler output."""
    try:
        name = data["contractName"]
        abi = data["abi"]
    except KeyError as e:
        raise ConfigurationError(f"Malformed contract artifact; missing {e}.")

    bytecode = data.get("bytecode") or "0x"
    if isinstance(bytecode, dict):
        # ethpm-style {"bytecode": "0x..."}
        bytecode = bytecode.get("bytecode") or "0x"

    contract_type = ContractType.model_validate(
        {"contractName": name, "abi": abi, "deploymentBytecode": {"bytecode": bytecode}}
    )
    return ContractArtifact(contract_type=contract_type, abi=abi, bytecode=bytecode)


class ArtifactStore:
    """Looks up compiled contracts by name in a hardhat build directory."""

    def __init__(self, build_dir: Path):
        self.build_dir = Path(build_dir)
        self._cache: Dict[str, ContractArtifact] = dict()

    def _find(self, contract_name: str) -> Path:
        filename = f"{contract_name}.json"
        candidates = [
            path
            for path in sorted(self.build_dir.rglob(filename))
            if not path.name.endswith(DEBUG_ARTIFACT_SUFFIX)
        ]
        if not candidates:
            raise ConfigurationError(
                f"No compiled artifact found for '{contract_name}' in {self.build_dir}. "
                "Compile the contracts first."
            )
        if len(candidates) != 1:
            paths = ", ".join(str(path) for path in candidates)
            raise ConfigurationError(f"Ambiguous artifact for '{contract_name}': {paths}")
        return candidates[0]

    def get(self, contract_name: str) -> ContractArtifact:
        if contract_name in self._cache:
            return self._cache[contract_name]

        filepath = self._find(contract_name)
        artifact = artifact_from_json(_load_json(filepath))
        if artifact.name != contract_name:
            raise ConfigurationError(
                f"Artifact {filepath} describes '{artifact.name}', expected '{contract_name}'."
            )
        if artifact.bytecode in ("", "0x"):
            raise ConfigurationError(
                f"'{contract_name}' has no creation bytecode; is it abstract or an interface?"
            )

        self._cache[contract_name] = artifact
        return artifact

    def __contains__(self, contract_name: str) -> bool:
        try:
            self.get(contract_name)
        except ConfigurationError:
            return False
        return True
