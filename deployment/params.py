import typing
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from web3 import Web3

from deployment.artifacts import ContractArtifact
from deployment.exceptions import ConfigurationError, InvalidConstructorArguments
from deployment.utils import checksum_if_address

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_LABEL_KEY = "label"

ZERO_ADDRESS = to_checksum_address("0x" + "00" * 20)

# Offline instance; only its ABI codec is used.
w3 = Web3()


class ResolutionContext(NamedTuple):
    """What a variable may resolve against at deployment time."""

    deployer: ChecksumAddress
    addresses: Dict[str, ChecksumAddress]


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(vars(self).items()))))


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: ResolutionContext) -> Any:
        return context.deployer

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.DEPLOYER_INDICATOR}"


class ContractName(Variable):
    """The address of another contract deployed to the same network."""

    def __init__(self, contract_name: str):
        self.contract_name = contract_name

    def resolve(self, context: ResolutionContext) -> Any:
        try:
            return context.addresses[self.contract_name]
        except KeyError:
            raise ConfigurationError(
                f"Cannot resolve ${self.contract_name}: it has not been deployed to this network."
            )

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.contract_name}"


def _variable_from_value(value: str, constants: Dict[str, Any]) -> Any:
    variable = value[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    if variable in constants:
        return constants[variable]
    return ContractName(variable)



def _process_raw_value(value: Any, constants: Dict[str, Any]) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, constants) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, constants)

    return value


def _resolve_param(value: Any, context: ResolutionContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


def _contains_variable(value: Any) -> bool:
    if isinstance(value, list):
        return any(_contains_variable(v) for v in value)
    return isinstance(value, Variable)


def _collect_references(value: Any) -> List[str]:
    if isinstance(value, list):
        return [name for v in value for name in _collect_references(v)]
    if isinstance(value, ContractName):
        return [value.contract_name]
    return []


class ContractSpec(NamedTuple):
    """One deployable contract and its ordered constructor arguments."""

    name: str
    constructor_args: Tuple[Any, ...] = ()
    parameter_names: Optional[Tuple[str, ...]] = None

    @property
    def references(self) -> List[str]:
        """Names of contracts whose addresses this contract consumes."""
        return [name for arg in self.constructor_args for name in _collect_references(arg)]

    @property
    def is_resolved(self) -> bool:
        return not any(_contains_variable(arg) for arg in self.constructor_args)

    def resolve(self, context: ResolutionContext) -> "ContractSpec":
        resolved_args = tuple(_resolve_param(arg, context) for arg in self.constructor_args)
        return self._replace(constructor_args=resolved_args)


def contract_spec_from_config(
    contract_name: str, contract_data: Optional[typing.Dict], constants: Dict[str, Any]
) -> ContractSpec:
    contract_data = contract_data or dict()
    if not isinstance(contract_data, dict):
        raise ConfigurationError(f"Malformed constructor parameter config for {contract_name}.")

    raw_params = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or []
    if isinstance(raw_params, dict):
        parameter_names = tuple(raw_params.keys())
        raw_values = list(raw_params.values())
    elif isinstance(raw_params, list):
        parameter_names = None
        raw_values = raw_params
    else:
        raise ConfigurationError(f"Malformed constructor parameter config for {contract_name}.")

    constructor_args = tuple(_process_raw_value(value, constants) for value in raw_values)
    return ContractSpec(
        name=contract_name, constructor_args=constructor_args, parameter_names=parameter_names
    )


def _prepare_value(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return checksum_if_address(value)
    if abi_type.startswith("address[") and isinstance(value, list):
        return [checksum_if_address(v) for v in value]
    return value


def validate_constructor_args(artifact: ContractArtifact, spec: ContractSpec) -> Tuple[Any, ...]:
    """
    Validates resolved constructor arguments against the constructor ABI.
    Returns the arguments ready for encoding.
    """
    contract_name = spec.name
    abi_inputs = artifact.constructor_inputs
    args = spec.constructor_args
    if len(args) != len(abi_inputs):
        raise InvalidConstructorArguments(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )

    prepared = list()
    for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
        if spec.parameter_names is not None:
            name = spec.parameter_names[position]
            if abi_input.name and abi_input.name != name:
                raise InvalidConstructorArguments(
                    f"{contract_name} constructor parameter '{name}' at position {position} "
                    f"does not match the expected ABI name '{abi_input.name}'."
                )

        value = _prepare_value(abi_input.type, value)
        if not w3.is_encodable(abi_input.type, value):
            raise InvalidConstructorArguments(
                f"{contract_name} constructor parameter at position {position} has a value "
                f"'{value}' whose type does not match expected ABI type '{abi_input.type}'"
            )
        prepared.append(value)

    return tuple(prepared)
