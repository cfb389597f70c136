import typing
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, NamedTuple, Optional

from eth_utils import is_hex, remove_0x_prefix

from deployment.exceptions import ConfigurationError, UnknownNetwork
from deployment.utils import _load_yaml

PRIVATE_KEY_HEX_LENGTH = 64


class NetworkConfig(NamedTuple):
    """A deployment target: where to connect and who signs."""

    identifier: str
    chain_id: int
    rpc_url: Optional[str] = None
    signing_credential: Optional[str] = None
    credential_source: Optional[str] = None
    explorer_api_key: Optional[str] = None
    poa: bool = False
    local: bool = False

    @property
    def is_local(self) -> bool:
        return self.local

    def __repr__(self) -> str:
        credential = "<unset>" if not self.signing_credential else "<redacted>"
        return (
            f"NetworkConfig(identifier={self.identifier!r}, chain_id={self.chain_id}, "
            f"rpc_url={self.rpc_url!r}, signing_credential={credential})"
        )

    def validate(self) -> None:
        """
        Fails fast when this network cannot be deployed to.
        The local network deploys with the simulated chain's own accounts.
        """
        if self.is_local:
            return
        if not self.rpc_url:
            raise ConfigurationError(f"No RPC endpoint configured for network '{self.identifier}'.")
        source = self.credential_source or "signing credential"
        if not self.signing_credential:
            raise ConfigurationError(
                f"{source} is not set; it is required to deploy to '{self.identifier}'."
            )
        if not _is_private_key(self.signing_credential):
            raise ConfigurationError(
                f"{source} is not a valid private key (expected 32 bytes, hex encoded)."
            )


def _is_private_key(value: str) -> bool:
    value = value.strip()
    return is_hex(value) and len(remove_0x_prefix(value)) == PRIVATE_KEY_HEX_LENGTH


def _network_from_config(
    identifier: str, network_config: typing.Dict, environ: Mapping[str, str]
) -> NetworkConfig:
    if not isinstance(network_config, dict):
        raise ConfigurationError(f"Malformed configuration for network '{identifier}'.")

    chain_id = network_config.get("chain_id")
    try:
        chain_id = int(chain_id)
    except (TypeError, ValueError):
        raise ConfigurationError(f"chain_id is not set for network '{identifier}'.")
    if chain_id <= 0:
        raise ConfigurationError(f"Invalid chain_id {chain_id} for network '{identifier}'.")

    local = bool(network_config.get("local", False))
    rpc_url = network_config.get("url")
    credential_source = network_config.get("accounts")
    if not local:
        if not rpc_url:
            raise ConfigurationError(f"url is not set for network '{identifier}'.")
        if not credential_source:
            raise ConfigurationError(
                f"accounts is not set for network '{identifier}'; "
                "expected the name of an environment variable holding the private key."
            )

    signing_credential = environ.get(credential_source) if credential_source else None
    explorer_envvar = network_config.get("explorer_api_key")
    explorer_api_key = environ.get(explorer_envvar) if explorer_envvar else None

    return NetworkConfig(
        identifier=identifier,
        chain_id=chain_id,
        rpc_url=rpc_url,
        signing_credential=signing_credential or None,
        credential_source=credential_source,
        explorer_api_key=explorer_api_key or None,
        poa=bool(network_config.get("poa", False)),
        local=local,
    )


class NetworkRegistry:
    """Read-only mapping of network identifiers to deployment targets."""

    def __init__(self, networks: typing.Iterable[NetworkConfig]):
        self._networks: Dict[str, NetworkConfig] = OrderedDict()
        for network in networks:
            if network.identifier in self._networks:
                raise ConfigurationError(f"Duplicate network identifier '{network.identifier}'.")
            self._networks[network.identifier] = network

    @classmethod
    def from_config(
        cls, config: typing.Dict, environ: Optional[Mapping[str, str]] = None
    ) -> "NetworkRegistry":
        environ = environ if environ is not None else {}
        networks_config = config.get("networks")
        if not networks_config:
            raise ConfigurationError("Networks file missing 'networks' field.")
        networks = [
            _network_from_config(identifier, network_config, environ)
            for identifier, network_config in networks_config.items()
        ]
        return cls(networks)

    @classmethod
    def from_yaml(
        cls, filepath: Path, environ: Optional[Mapping[str, str]] = None
    ) -> "NetworkRegistry":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise ConfigurationError(f"Malformed networks file {filepath}.")
        return cls.from_config(config, environ=environ)

    @property
    def identifiers(self) -> List[str]:
        return list(self._networks)

    def get(self, identifier: str) -> NetworkConfig:
        try:
            return self._networks[identifier]
        except KeyError:
            raise UnknownNetwork(identifier, known=self.identifiers)

    def select(self, identifier: str) -> NetworkConfig:
        """Returns the network, checked to be ready for deployment."""
        network = self.get(identifier)
        network.validate()
        return network

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._networks

    def __iter__(self) -> Iterator[NetworkConfig]:
        return iter(self._networks.values())

    def __len__(self) -> int:
        return len(self._networks)
