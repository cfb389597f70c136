from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional, Sequence

from eth_account import Account
from eth_typing import ChecksumAddress
from eth_utils import to_hex
from hexbytes import HexBytes
from web3 import EthereumTesterProvider, HTTPProvider, Web3
from web3.exceptions import TimeExhausted, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from deployment.artifacts import ContractArtifact
from deployment.constants import POLL_LATENCY
from deployment.exceptions import ConfirmationTimeout, SubmissionFailed
from deployment.networks import NetworkConfig


class Receipt(NamedTuple):
    """The parts of a mined contract creation transaction the deployer needs."""

    tx_hash: HexBytes
    contract_address: Optional[ChecksumAddress]
    block_number: int
    status: int


class NetworkClient(ABC):
    """
    Connection to a single network on behalf of a single deploying account.
    A client is never shared between networks.
    """

    def __init__(self, network: NetworkConfig):
        self.network = network

    @property
    @abstractmethod
    def deployer(self) -> ChecksumAddress:
        """Address of the account that signs contract creations."""
        raise NotImplementedError

    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def submit(self, artifact: ContractArtifact, args: Sequence[Any]) -> HexBytes:
        """Sends a contract creation transaction and returns its hash."""
        raise NotImplementedError

    @abstractmethod
    def wait_for_receipt(self, tx_hash: HexBytes, timeout: float) -> Receipt:
        """Blocks until the transaction is mined."""
        raise NotImplementedError


class Web3Client(NetworkClient):
    """
    web3.py backed client. The local network runs on an in-memory eth-tester
    chain whose first unlocked account deploys; other networks are reached over
    HTTP and transactions are signed locally with the configured private key.
    """

    def __init__(self, network: NetworkConfig, w3: Optional[Web3] = None):
        super().__init__(network)
        self.w3 = w3 or self._connect(network)
        if network.is_local:
            self._account = None
            self._deployer = self.w3.eth.accounts[0]
        else:
            self._account = Account.from_key(network.signing_credential.strip())
            self._deployer = self._account.address

    @staticmethod
    def _connect(network: NetworkConfig) -> Web3:
        if network.is_local:
            return Web3(EthereumTesterProvider())
        w3 = Web3(HTTPProvider(network.rpc_url))
        if network.poa:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    @property
    def deployer(self) -> ChecksumAddress:
        return self._deployer

    def chain_id(self) -> int:
        return self.w3.eth.chain_id

    def submit(self, artifact: ContractArtifact, args: Sequence[Any]) -> HexBytes:
        factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        constructor = factory.constructor(*args)
        try:
            if self._account is None:
                return HexBytes(constructor.transact({"from": self._deployer}))

            transaction = constructor.build_transaction(
                {
                    "from": self._deployer,
                    "nonce": self.w3.eth.get_transaction_count(self._deployer, "pending"),
                    "chainId": self.network.chain_id,
                }
            )
            signed = self._account.sign_transaction(transaction)
            return HexBytes(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        except (Web3Exception, ValueError, OSError) as e:
            raise SubmissionFailed(
                f"{artifact.name} creation rejected by {self.network.identifier}: {e}"
            ) from e

    def wait_for_receipt(self, tx_hash: HexBytes, timeout: float) -> Receipt:
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=POLL_LATENCY
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"Transaction {to_hex(tx_hash)} was not mined on "
                f"{self.network.identifier} within {timeout} seconds.",
                tx_hash=to_hex(tx_hash),
            ) from e

        return Receipt(
            tx_hash=HexBytes(receipt["transactionHash"]),
            contract_address=receipt.get("contractAddress"),
            block_number=receipt["blockNumber"],
            status=receipt["status"],
        )


def connect(network: NetworkConfig) -> NetworkClient:
    """Opens a client for the given network."""
    return Web3Client(network)
