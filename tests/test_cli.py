"""CLI tests: upload, health, and config commands against a mocked agent."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from fileopener import cli
from fileopener.config import ENDPOINT_ENV_VAR
from fileopener.upload.client import AgentClient

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch):
    """Run every command from an empty directory without env overrides."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENDPOINT_ENV_VAR, raising=False)


@pytest.fixture
def agent(monkeypatch):
    """Route the CLI's client through a mock agent; returns captured requests."""
    state: dict = {"handler": None, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    monkeypatch.setattr(
        cli,
        "_build_client",
        lambda config: AgentClient(config, transport=httpx.MockTransport(handler)),
    )
    return state


class TestUploadCommand:

    def test_success(self, agent, sample_path: Path):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"success": True, "filePath": "/tmp/agent-uploads/hello.txt"}
        )

        result = runner.invoke(cli.app, ["upload", str(sample_path)])

        assert result.exit_code == 0, result.output
        assert "hello.txt" in result.output
        assert "File uploaded successfully!" in result.output
        assert "/tmp/agent-uploads/hello.txt" in result.output
        assert len(agent["requests"]) == 1

    def test_application_failure(self, agent, sample_path: Path):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"success": False, "errorMessage": "File type not allowed"}
        )

        result = runner.invoke(cli.app, ["upload", str(sample_path)])

        assert result.exit_code == 1
        assert "File type not allowed" in result.output

    def test_server_error(self, agent, sample_path: Path):
        agent["handler"] = lambda r: httpx.Response(500)

        result = runner.invoke(cli.app, ["upload", str(sample_path)])

        assert result.exit_code == 1
        assert "Server error: 500" in result.output

    def test_network_error(self, agent, sample_path: Path):
        def refuse(request):
            raise httpx.ConnectError("Connection refused")

        agent["handler"] = refuse

        result = runner.invoke(cli.app, ["upload", str(sample_path)])

        assert result.exit_code == 1
        assert "Network error occurred" in result.output
        assert "Make sure the agent is running" in result.output

    def test_no_file_issues_no_request(self, agent):
        result = runner.invoke(cli.app, ["upload"])

        assert result.exit_code == 1
        assert "Please select a file first" in result.output
        assert agent["requests"] == []

    def test_missing_file(self, agent, tmp_path: Path):
        result = runner.invoke(cli.app, ["upload", str(tmp_path / "missing.pdf")])

        assert result.exit_code == 1
        assert "Cannot select file" in result.output
        assert agent["requests"] == []

    def test_endpoint_option(self, agent, sample_path: Path):
        agent["handler"] = lambda r: httpx.Response(200, json={"success": True, "filePath": "/x"})

        result = runner.invoke(
            cli.app, ["upload", str(sample_path), "--endpoint", "http://127.0.0.1:9000/upload"]
        )

        assert result.exit_code == 0, result.output
        assert str(agent["requests"][0].url) == "http://127.0.0.1:9000/upload"

    def test_malformed_endpoint_from_env(self, agent, sample_path: Path, monkeypatch):
        monkeypatch.setenv(ENDPOINT_ENV_VAR, "http://[::1:8080/upload")

        result = runner.invoke(cli.app, ["upload", str(sample_path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert agent["requests"] == []

    def test_malformed_endpoint_option(self, agent, sample_path: Path):
        result = runner.invoke(
            cli.app, ["upload", str(sample_path), "--endpoint", "http://[::1:8080/upload"]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert agent["requests"] == []

    def test_mistyped_config_value(self, agent, sample_path: Path, tmp_path: Path):
        path = tmp_path / "upload_config.json"
        path.write_text(json.dumps({"chunk_size": "64k"}))

        result = runner.invoke(cli.app, ["upload", str(sample_path), "--config", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "chunk_size" in result.output
        assert agent["requests"] == []


class TestOpenCommand:

    def test_opens_stored_file(self, agent):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"success": True, "filePath": "/tmp/agent-uploads/1697_report.pdf"}
        )

        result = runner.invoke(cli.app, ["open", "1697_report.pdf"])

        assert result.exit_code == 0, result.output
        assert "/tmp/agent-uploads/1697_report.pdf" in result.output
        assert str(agent["requests"][0].url) == "http://localhost:8080/open/1697_report.pdf"

    def test_accepts_reported_path(self, agent):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"success": True, "filePath": "/tmp/agent-uploads/1697_report.pdf"}
        )

        result = runner.invoke(cli.app, ["open", "/tmp/agent-uploads/1697_report.pdf"])

        assert result.exit_code == 0, result.output
        assert str(agent["requests"][0].url) == "http://localhost:8080/open/1697_report.pdf"

    def test_unknown_file(self, agent):
        agent["handler"] = lambda r: httpx.Response(
            404, json={"success": False, "errorMessage": "File not found"}
        )

        result = runner.invoke(cli.app, ["open", "gone.pdf"])

        assert result.exit_code == 1
        assert "Server error: 404" in result.output

    def test_agent_refuses_to_open(self, agent):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"success": False, "errorMessage": "Failed to open file"}
        )

        result = runner.invoke(cli.app, ["open", "broken.bin"])

        assert result.exit_code == 1
        assert "Failed to open file" in result.output

    def test_agent_down(self, agent):
        def refuse(request):
            raise httpx.ConnectError("Connection refused")

        agent["handler"] = refuse

        result = runner.invoke(cli.app, ["open", "a.txt"])

        assert result.exit_code == 1
        assert "Network error occurred" in result.output
        assert "Make sure the agent is running" in result.output


class TestHealthCommand:

    def test_agent_up(self, agent):
        agent["handler"] = lambda r: httpx.Response(
            200, json={"status": "OK", "timestamp": "2026-10-18T10:00:00Z"}
        )

        result = runner.invoke(cli.app, ["health"])

        assert result.exit_code == 0, result.output
        assert "Agent OK" in result.output
        assert str(agent["requests"][0].url) == "http://localhost:8080/health"

    def test_agent_down(self, agent):
        def refuse(request):
            raise httpx.ConnectError("Connection refused")

        agent["handler"] = refuse

        result = runner.invoke(cli.app, ["health"])

        assert result.exit_code == 1
        assert "Agent not reachable" in result.output


class TestConfigCommand:

    def test_show_defaults(self):
        result = runner.invoke(cli.app, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "openNow" in result.output
        assert "http://localhost:8080/upload" in result.output

    def test_show_from_file(self, tmp_path: Path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"endpoint": "http://agent.local:8080/upload"}))

        result = runner.invoke(cli.app, ["config", "show", "--config", str(path)])

        assert result.exit_code == 0, result.output
        assert "http://agent.local:8080/upload" in result.output

    def test_invalid_file(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{")

        result = runner.invoke(cli.app, ["config", "show", "--config", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
