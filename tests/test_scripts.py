import pytest
from click.testing import CliRunner

from deployment.exceptions import UnknownNetwork
from scripts import deploy, deploy_mock, deploy_token, deploy_vesting


def test_unknown_network():
    result = CliRunner().invoke(deploy.cli, ["--network", "unknown-chain"])
    assert result.exit_code == UnknownNetwork.exit_code
    assert "Unknown network 'unknown-chain'" in result.output


def test_network_is_required():
    result = CliRunner().invoke(deploy_vesting.cli, [])
    assert result.exit_code == 2
    assert "--network" in result.output


@pytest.mark.parametrize(
    "timeout, message",
    [
        ("0", "0 is shorter than the minimum of 1 seconds"),
        ("0.5", "0.5 is shorter than the minimum of 1 seconds"),
        ("soon", "'soon' is not a number of seconds"),
    ],
)
def test_timeout_must_be_at_least_a_second(timeout, message):
    result = CliRunner().invoke(deploy_mock.cli, ["--network", "local", "--timeout", timeout])
    assert result.exit_code == 2
    assert message in result.output


def test_fractional_timeout(build_dir):
    result = CliRunner().invoke(
        deploy_mock.cli, ["--network", "local", "--build-dir", str(build_dir), "-t", "2.5"]
    )
    assert result.exit_code == 0, result.output


def test_deploy_vesting_to_local_chain(build_dir):
    result = CliRunner().invoke(
        deploy_vesting.cli, ["--network", "local", "--build-dir", str(build_dir)]
    )
    assert result.exit_code == 0, result.output
    assert "iluminary vesting deployed to: 0x" in result.output
    assert "Iluminary Token deployed to" not in result.output


def test_deploy_token_without_artifacts(tmp_path):
    result = CliRunner().invoke(
        deploy_token.cli, ["--network", "local", "--build-dir", str(tmp_path)]
    )
    assert result.exit_code != 0
    assert "No compiled artifact found for 'IluminaryToken'" in result.output


def test_deploy_subset_to_local_chain(build_dir):
    result = CliRunner().invoke(
        deploy.cli,
        ["--network", "local", "--build-dir", str(build_dir)]
        + ["-c", "MockToken", "-c", "ILMTVesting"],
    )
    assert result.exit_code == 0, result.output
    vesting_line = result.output.index("iluminary vesting deployed to")
    mock_line = result.output.index("Mock Token deployed to")
    assert vesting_line < mock_line
