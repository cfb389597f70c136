import pytest

from deployment.artifacts import ArtifactStore
from deployment.exceptions import ConfigurationError
from tests.conftest import STUB_BYTECODE, constructor_abi, write_artifact


def test_load_artifact(artifacts):
    artifact = artifacts.get("TokenVault")
    assert artifact.name == "TokenVault"
    assert artifact.bytecode == STUB_BYTECODE
    inputs = artifact.constructor_inputs
    assert [(i.name, i.type) for i in inputs] == [("_token", "address"), ("_cap", "uint256")]

    # cached per store
    assert artifacts.get("TokenVault") is artifact


def test_artifact_without_constructor(artifacts):
    assert artifacts.get("MockToken").constructor_inputs == []


def test_missing_artifact(artifacts):
    assert "Treasury" not in artifacts
    with pytest.raises(ConfigurationError, match="No compiled artifact found for 'Treasury'"):
        artifacts.get("Treasury")


def test_ambiguous_artifact(build_dir):
    duplicate = write_artifact(build_dir / "contracts" / "mocks", "MockToken", [])
    assert duplicate.exists()
    with pytest.raises(ConfigurationError, match="Ambiguous artifact"):
        ArtifactStore(build_dir).get("MockToken")


def test_interface_has_no_bytecode(build_dir):
    write_artifact(build_dir, "IVesting", [constructor_abi()], bytecode="0x")
    with pytest.raises(ConfigurationError, match="no creation bytecode"):
        ArtifactStore(build_dir).get("IVesting")
