from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import yaml
from typer.testing import CliRunner

from adblock2hosts.app import app
from adblock2hosts.orchestrator import Orchestrator

A = "https://lists.example.org/a.txt"
B = "https://lists.example.org/b.txt"


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.setenv("ADBLOCK2HOSTS_HOME", str(tmp_path))
    return CliRunner()


@pytest.fixture
def fake_network(monkeypatch: pytest.MonkeyPatch, rule_server):
    server = rule_server({A: "||example.com^\n||test.com^ # c\n", B: 503})
    monkeypatch.setattr(
        "adblock2hosts.app.Orchestrator",
        lambda config: Orchestrator(config, transport=server.transport),
    )
    return server


def test_convert_prints_accepted_rules(runner: CliRunner) -> None:
    result = runner.invoke(app, ["convert", "||example.com^", "|bad.com^", "||ads.example.net^$third-party"])
    assert result.exit_code == 0, result.output
    assert "0.0.0.0 example.com" in result.stdout
    assert "0.0.0.0 ads.example.net" in result.stdout
    assert "bad.com" not in result.stdout


def test_convert_reads_rules_from_file(runner: CliRunner, tmp_path: Path) -> None:
    rules = tmp_path / "rules.txt"
    rules.write_text("! comment\n||one.example.com^\n||two.example.com^\n", encoding="utf-8")
    result = runner.invoke(app, ["convert", "--file", str(rules)])
    assert result.exit_code == 0, result.output
    assert "0.0.0.0 one.example.com" in result.stdout
    assert "0.0.0.0 two.example.com" in result.stdout


def test_run_writes_hosts_file(runner: CliRunner, fake_network, tmp_path: Path) -> None:
    output = tmp_path / "hosts.txt"
    result = runner.invoke(app, ["run", "-s", A, "-s", B, "-o", str(output), "--quiet"])
    assert result.exit_code == 0, result.output
    assert "Wrote 2 entries" in result.stdout
    content = output.read_text(encoding="utf-8")
    assert content.endswith("0.0.0.0 example.com\n0.0.0.0 test.com\n")
    assert "# Failed to fetch: HTTP 503" in content
    assert sorted(fake_network.requested_urls()) == [A, B]


def test_run_without_data_skips_writing(runner: CliRunner, fake_network, tmp_path: Path) -> None:
    output = tmp_path / "hosts.txt"
    result = runner.invoke(app, ["run", "-s", B, "-o", str(output), "--quiet"])
    assert result.exit_code == 0, result.output
    assert "hosts file was not written" in result.stdout
    assert not output.exists()


def test_run_reports_write_failure(runner: CliRunner, fake_network, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    result = runner.invoke(app, ["run", "-s", A, "-o", str(blocker / "hosts.txt")])
    assert result.exit_code == 1


def test_run_rejects_invalid_source(runner: CliRunner, fake_network) -> None:
    result = runner.invoke(app, ["run", "-s", "ftp://nope"])
    assert result.exit_code == 2


def test_config_init_and_show(runner: CliRunner, tmp_path: Path) -> None:
    config_path = tmp_path / "settings.yaml"
    result = runner.invoke(app, ["--config", str(config_path), "config", "init"])
    assert result.exit_code == 0, result.output
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    assert payload["output_path"] == "hosts.txt"

    again = runner.invoke(app, ["--config", str(config_path), "config", "init"])
    assert again.exit_code == 1

    shown = runner.invoke(app, ["--config", str(config_path), "config", "show"])
    assert shown.exit_code == 0
    assert "sources:" in shown.stdout


def test_invalid_config_file_is_a_usage_error(runner: CliRunner, tmp_path: Path) -> None:
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("request_timeout: -1\n", encoding="utf-8")
    result = runner.invoke(app, ["--config", str(config_path), "config", "show"])
    assert result.exit_code == 2
