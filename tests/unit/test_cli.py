"""Unit tests for the Cerberus CLI.

Commands are exercised against a mocked client; the ``token`` command
runs against the real default provider chain.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cerberus_client import __version__
from cerberus_client.cli.main import cli
from cerberus_client.core.exceptions import CerberusServerError
from cerberus_client.core.models import (
    CerberusListFilesResponse,
    CerberusListResponse,
    CerberusResponse,
    SecureFileSummary,
)


@pytest.fixture(autouse=True)
def setup_logging():
    """Keep the CLI from reconfiguring logging inside the runner."""
    with patch("cerberus_client.cli.main.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_client():
    """Patch the factory so commands get a mock client."""
    client = MagicMock()
    with patch("cerberus_client.factory.get_client", return_value=client) as get_client:
        client.get_client = get_client
        yield client


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("list", "read", "write", "delete", "files", "read-file", "write-file", "token"):
        assert command in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_list(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.list.return_value = CerberusListResponse(keys=["cache", "db"])

    result = cli_runner.invoke(cli, ["--url", "https://cerberus.example.com", "list", "app/my-service"])

    assert result.exit_code == 0
    assert "cache" in result.output
    assert "db" in result.output
    mock_client.list.assert_called_once_with("app/my-service")


def test_list_empty(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.list.return_value = CerberusListResponse()

    result = cli_runner.invoke(cli, ["list", "app/empty"])

    assert result.exit_code == 0
    assert "No keys found" in result.output


def test_url_and_region_reach_config(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.list.return_value = CerberusListResponse()

    cli_runner.invoke(cli, ["--url", "https://cerberus.example.com", "--region", "us-west-2", "list", "app"])

    config = mock_client.get_client.call_args.kwargs["config"]
    assert config.url == "https://cerberus.example.com"
    assert config.region == "us-west-2"


def test_config_file(cli_runner: CliRunner, mock_client: MagicMock, tmp_path: Path) -> None:
    config_file = tmp_path / "cerberus.yaml"
    config_file.write_text("url: https://from-file.example.com\nregion: eu-west-1\n")
    mock_client.list.return_value = CerberusListResponse()

    cli_runner.invoke(cli, ["--config", str(config_file), "--region", "us-east-1", "list", "app"])

    config = mock_client.get_client.call_args.kwargs["config"]
    assert config.url == "https://from-file.example.com"
    assert config.region == "us-east-1"


def test_read_json(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.read.return_value = CerberusResponse(data={"username": "admin"})

    result = cli_runner.invoke(cli, ["read", "app/my-service/db", "--format", "json", "--version-id", "v-1"])

    assert result.exit_code == 0
    assert '"username": "admin"' in result.output
    mock_client.read.assert_called_once_with("app/my-service/db", version_id="v-1")


def test_read_table(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.read.return_value = CerberusResponse(data={"username": "admin"})

    result = cli_runner.invoke(cli, ["read", "app/my-service/db"])

    assert result.exit_code == 0
    assert "username" in result.output
    assert "admin" in result.output


def test_read_failure(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.read.side_effect = CerberusServerError(403, ["permission denied"])

    result = cli_runner.invoke(cli, ["read", "app/my-service/db"])

    assert result.exit_code == 1
    assert "permission denied" in result.output


def test_write(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    result = cli_runner.invoke(cli, ["write", "app/my-service/db", "username=admin", "password=a=b"])

    assert result.exit_code == 0
    assert "Wrote 2 key(s)" in result.output
    mock_client.write.assert_called_once_with(
        "app/my-service/db", {"username": "admin", "password": "a=b"}
    )


def test_write_rejects_malformed_pair(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    result = cli_runner.invoke(cli, ["write", "app/my-service/db", "no-equals-sign"])

    assert result.exit_code == 2
    mock_client.write.assert_not_called()


def test_delete(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    result = cli_runner.invoke(cli, ["delete", "app/my-service/db"])

    assert result.exit_code == 0
    mock_client.delete.assert_called_once_with("app/my-service/db")


def test_files(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.list_files.return_value = CerberusListFilesResponse(
        has_next=True,
        next_offset=1,
        total_file_count=2,
        secure_file_summaries=[SecureFileSummary(path="app/my-service/cert.pem", size_in_bytes=27)],
    )

    result = cli_runner.invoke(cli, ["files", "app/my-service", "--limit", "1"])

    assert result.exit_code == 0
    assert "cert.pem" in result.output
    assert "--offset 1" in result.output
    mock_client.list_files.assert_called_once_with("app/my-service", limit=1, offset=None)


def test_read_file_to_path(cli_runner: CliRunner, mock_client: MagicMock, tmp_path: Path) -> None:
    mock_client.read_file_as_bytes.return_value = b"PEM"
    output = tmp_path / "cert.pem"

    result = cli_runner.invoke(cli, ["read-file", "app/my-service/cert.pem", "-o", str(output)])

    assert result.exit_code == 0
    assert output.read_bytes() == b"PEM"


def test_read_file_to_stdout(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    mock_client.read_file_as_bytes.return_value = b"PEM"

    result = cli_runner.invoke(cli, ["read-file", "app/my-service/cert.pem"])

    assert result.exit_code == 0
    assert result.stdout_bytes == b"PEM"


def test_write_file(cli_runner: CliRunner, mock_client: MagicMock, tmp_path: Path) -> None:
    source = tmp_path / "cert.pem"
    source.write_bytes(b"PEM")

    result = cli_runner.invoke(cli, ["write-file", "app/my-service/cert.pem", str(source)])

    assert result.exit_code == 0
    mock_client.write_file.assert_called_once_with("app/my-service/cert.pem", b"PEM")


def test_delete_file(cli_runner: CliRunner, mock_client: MagicMock) -> None:
    result = cli_runner.invoke(cli, ["delete-file", "app/my-service/cert.pem"])

    assert result.exit_code == 0
    mock_client.delete_file.assert_called_once_with("app/my-service/cert.pem")


def test_token_from_property(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(
        cli, ["--url", "https://cerberus.example.com", "-D", "cerberus.token=prop-token", "token"]
    )

    assert result.exit_code == 0
    assert result.output.strip() == "prop-token"


def test_invalid_property_definition(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-D", "missing-equals", "token"])

    assert result.exit_code == 2


def test_log_level_option(cli_runner: CliRunner, mock_client: MagicMock, setup_logging: MagicMock) -> None:
    mock_client.list.return_value = CerberusListResponse()

    cli_runner.invoke(cli, ["--log-level", "DEBUG", "list", "app"])

    setup_logging.assert_called_once_with(level="DEBUG", format="console")


def test_config_file_logging_section(
    cli_runner: CliRunner, mock_client: MagicMock, setup_logging: MagicMock, tmp_path: Path
) -> None:
    config_file = tmp_path / "cerberus.yaml"
    config_file.write_text(
        "url: https://from-file.example.com\nlogging:\n  format: json\n  output: stdout\n"
    )
    mock_client.list.return_value = CerberusListResponse()

    cli_runner.invoke(cli, ["--config", str(config_file), "--log-level", "ERROR", "list", "app"])

    setup_logging.assert_called_with(level="ERROR", format="json", output="stdout")
