import json

import pytest
from eth_account import Account
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes

from deployment.artifacts import ArtifactStore
from deployment.client import NetworkClient, Receipt
from deployment.config import DeploymentConfig
from deployment.exceptions import ConfirmationTimeout, SubmissionFailed
from deployment.networks import NetworkRegistry
from deployment.pipeline import DeploymentPipeline

# Common constants
VESTING_INIT_ADDRESS = "0x65C15831CE68a46dCc8eEe1d5D29Ea3993c84963"
TOKEN_INIT_ADDRESS = "0xAf060d531ad131092ba68a93D9954Af6E0C184f0"

TESTNET = "tbsc"
TESTNET_CHAIN_ID = 97
TESTNET_PRIVATE_KEY = "0x" + "11" * 32
TESTNET_DEPLOYER = Account.from_key(TESTNET_PRIVATE_KEY).address

REJECTION_REASON = "insufficient funds for gas * price + value"

# Creation code that returns a single STOP opcode as runtime code.
# Constructor arguments appended by the encoder are ignored.
STUB_BYTECODE = "0x6001600c60003960016000f300"


def constructor_abi(*inputs):
    return {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": name, "type": typ, "internalType": typ} for name, typ in inputs],
    }


def function_abi(name):
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address", "internalType": "address"}],
    }


CONTRACT_ABIS = {
    "ILMTVesting": [constructor_abi(("_admin", "address")), function_abi("admin")],
    "IluminaryToken": [constructor_abi(("_owner", "address")), function_abi("owner")],
    "MockToken": [function_abi("owner")],
    "TokenVault": [constructor_abi(("_token", "address"), ("_cap", "uint256"))],
}


def write_artifact(build_dir, contract_name, abi, bytecode=STUB_BYTECODE):
    """Writes a hardhat-style artifact (plus its debug file) for a contract."""
    contract_dir = build_dir / "contracts" / f"{contract_name}.sol"
    contract_dir.mkdir(parents=True, exist_ok=True)
    artifact = {
        "_format": "hh-sol-artifact-1",
        "contractName": contract_name,
        "sourceName": f"contracts/{contract_name}.sol",
        "abi": abi,
        "bytecode": bytecode,
        "deployedBytecode": "0x00",
        "linkReferences": {},
        "deployedLinkReferences": {},
    }
    with open(contract_dir / f"{contract_name}.json", "w") as file:
        json.dump(artifact, file)
    with open(contract_dir / f"{contract_name}.dbg.json", "w") as file:
        json.dump({"_format": "hh-sol-dbg-1", "buildInfo": "../../build-info/x.json"}, file)
    return contract_dir / f"{contract_name}.json"


class RecordingClient(NetworkClient):
    """
    Stands in for a network: hands out deterministic hashes and addresses and
    records every call, in order, into `events`.
    """

    def __init__(self, network, events=None, chain_id=None):
        super().__init__(network)
        self.events = events if events is not None else list()
        self.submissions = list()
        self.transactions = list()
        self._chain_id = network.chain_id if chain_id is None else chain_id
        self._pending = dict()

    @property
    def deployer(self):
        return TESTNET_DEPLOYER

    def chain_id(self):
        return self._chain_id

    def submit(self, artifact, args):
        nonce = len(self.submissions)
        tx_hash = HexBytes(keccak(text=f"{self.network.identifier}:{nonce}"))
        address = to_checksum_address(keccak(text=f"{artifact.name}:{nonce}")[-20:])
        self.submissions.append((artifact.name, tuple(args)))
        self.transactions.append(tx_hash)
        self._pending[tx_hash] = (artifact.name, address)
        self.events.append(("submit", artifact.name))
        return tx_hash

    def wait_for_receipt(self, tx_hash, timeout):
        contract_name, address = self._pending.pop(tx_hash)
        self.events.append(("confirmed", contract_name))
        return Receipt(
            tx_hash=tx_hash,
            contract_address=address,
            block_number=len(self.submissions),
            status=1,
        )


class RejectingClient(RecordingClient):
    def submit(self, artifact, args):
        self.events.append(("submit", artifact.name))
        raise SubmissionFailed(f"{artifact.name} creation rejected: {REJECTION_REASON}")


class StalledClient(RecordingClient):
    def wait_for_receipt(self, tx_hash, timeout):
        raise ConfirmationTimeout(f"Transaction {tx_hash.hex()} was not mined", tx_hash.hex())


class InterruptedClient(RecordingClient):
    def wait_for_receipt(self, tx_hash, timeout):
        raise KeyboardInterrupt


class RevertingClient(RecordingClient):
    def wait_for_receipt(self, tx_hash, timeout):
        receipt = super().wait_for_receipt(tx_hash, timeout)
        return receipt._replace(contract_address=None, status=0)


# Fixtures


@pytest.fixture
def build_dir(tmp_path):
    build_dir = tmp_path / "artifacts"
    for contract_name, abi in CONTRACT_ABIS.items():
        write_artifact(build_dir, contract_name, abi)
    return build_dir


@pytest.fixture
def artifacts(build_dir):
    return ArtifactStore(build_dir)


@pytest.fixture
def environ():
    return {"PRIVATE_KEY": TESTNET_PRIVATE_KEY, "BSC_API_KEY": "bsc-explorer-key"}


@pytest.fixture
def networks_config():
    return {
        "networks": {
            "local": {"chain_id": 1337, "local": True},
            TESTNET: {
                "url": "http://127.0.0.1:8545",
                "chain_id": TESTNET_CHAIN_ID,
                "accounts": "PRIVATE_KEY",
                "explorer_api_key": "BSC_API_KEY",
                "poa": True,
            },
        }
    }


@pytest.fixture
def networks(networks_config, environ):
    return NetworkRegistry.from_config(networks_config, environ=environ)


@pytest.fixture
def registry_filepath(tmp_path):
    return tmp_path / "registry" / "iluminary.json"


@pytest.fixture
def params_config(registry_filepath):
    return {
        "deployment": {"name": "iluminary"},
        "registry": {"dir": str(registry_filepath.parent), "filename": registry_filepath.name},
        "constants": {
            "VESTING_INIT_ADDRESS": VESTING_INIT_ADDRESS,
            "TOKEN_INIT_ADDRESS": TOKEN_INIT_ADDRESS,
        },
        "contracts": [
            {
                "ILMTVesting": {
                    "label": "iluminary vesting",
                    "constructor": ["$VESTING_INIT_ADDRESS"],
                }
            },
            {
                "IluminaryToken": {
                    "label": "Iluminary Token",
                    "constructor": ["$TOKEN_INIT_ADDRESS"],
                }
            },
            {"MockToken": {"label": "Mock Token"}},
        ],
    }


@pytest.fixture
def pipeline(params_config):
    return DeploymentPipeline.from_config(params_config)


@pytest.fixture
def config(networks, pipeline, artifacts):
    return DeploymentConfig(networks=networks, pipeline=pipeline, artifacts=artifacts, timeout=5)


@pytest.fixture
def testnet(networks):
    return networks.select(TESTNET)


@pytest.fixture
def events():
    return list()


@pytest.fixture
def recording_client(testnet, events):
    return RecordingClient(testnet, events=events)
