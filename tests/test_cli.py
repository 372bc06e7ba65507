# File: tests/test_cli.py
"""Tests for the click CLI (`a11y_scout/cli.py`) using click.testing.CliRunner.
Cover the `scan`, `test`, `audit`, `config` commands, `--version` and error handling.
"""
import asyncio
import json
import logging

import pytest
from click.testing import CliRunner

import a11y_scout.cli as cli_module
from a11y_scout import __version__
from a11y_scout.aggregator import ScanReport, ScanSummary, TargetedReport
from a11y_scout.cli import cli
from a11y_scout.crawler.models import PageRecord
from a11y_scout.logger import LOGGER_NAME
from a11y_scout.errors import ConfigError, ReconciliationError, TrackerError
from a11y_scout.tracker.models import Action, ReconciliationResult
from a11y_scout.tracker.reconcile import AuditReport

CONFIG = {
    "base_url": "https://example.com",
    "max_depth": 1,
    "timeout": 1.0,
    "user_agent": "Agent/1.0",
    "rate_limit": 1.0,
    "retry_times": 0,
    "tracker": {"owner": "acme", "repo": "site", "token": "super-secret"},
}


def _fake_report() -> ScanReport:
    return ScanReport(
        summary=ScanSummary(pages_scanned=1, total_violations=2, unique_violations=1, issues_created=1),
        pages=[PageRecord("https://example.com/", 0, 200, "Home")],
    )


@pytest.fixture()
def cfg_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(CONFIG), encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    for name in ("WEBSITE_URL", "MAX_PAGES", "GITHUB_TOKEN", "GITHUB_REPOSITORY", "GITHUB_OUTPUT"):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture(autouse=True)
def patch_start_scan(monkeypatch):
    """Replace start_scan so no crawl happens; record the arguments."""
    calls = []

    async def fake_scan(cfg, **kwargs):
        calls.append((cfg, kwargs))
        return _fake_report()

    monkeypatch.setattr(cli_module, "start_scan", fake_scan)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"a11y-scout, version {__version__}" in result.output


def test_show_config_masks_token(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "--limit", "7", "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["base_url"] == "https://example.com/"
    assert data["max_pages"] == 7
    assert data["tracker"]["token"] == "***"
    assert "super-secret" not in result.output


def test_missing_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WEBSITE_URL", raising=False)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_env_only_configuration(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WEBSITE_URL", "https://env.example.com")
    runner = CliRunner()
    result = runner.invoke(cli, ["config"])
    assert result.exit_code == 0
    assert json.loads(result.output)["base_url"] == "https://env.example.com/"


def test_scan_stdout(cfg_file, patch_start_scan):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "--limit", "3", "scan", "--no-issues"])
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["summary"]["unique_violations"] == 1
    assert output["pages"][0]["url"] == "https://example.com/"
    cfg, kwargs = patch_start_scan[0]
    assert cfg.max_pages == 3
    assert kwargs == {"reconcile": False}


def test_scan_json_and_html_files(cfg_file, tmp_path):
    out_json = tmp_path / "out" / "report.json"
    out_html = tmp_path / "out" / "report.html"
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--config", str(cfg_file), "scan", "--json", str(out_json), "--html", str(out_html), "--pretty"]
    )
    assert result.exit_code == 0
    assert json.loads(out_json.read_text(encoding="utf-8"))["summary"]["issues_created"] == 1
    assert "https://example.com/" in out_html.read_text(encoding="utf-8")


def test_scan_step_output_from_env(cfg_file, tmp_path, monkeypatch):
    out = tmp_path / "gh_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(out))
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "scan"])
    assert result.exit_code == 0
    assert "issues_created=1" in out.read_text(encoding="utf-8").splitlines()


def test_scan_timeout(monkeypatch, cfg_file):
    async def slow(cfg, **kwargs):
        await asyncio.sleep(2)
        return _fake_report()

    monkeypatch.setattr(cli_module, "start_scan", slow)

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "scan", "--scan-timeout", "0.2"])
    assert result.exit_code == 1
    assert "did not finish" in result.output


def test_scan_config_error(monkeypatch, cfg_file):
    async def broken(cfg, **kwargs):
        raise ConfigError("tracker owner, repo and token are required to reconcile issues")

    monkeypatch.setattr(cli_module, "start_scan", broken)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "scan"])
    assert result.exit_code == 1
    assert "Scan failed" in result.output


def test_scan_reconciliation_error_reports_progress(monkeypatch, cfg_file):
    async def partial(cfg, **kwargs):
        done = [ReconciliationResult("ab" * 32, Action.CREATED, 41)]
        raise ReconciliationError(TrackerError("create_issue", "rate limited", 403), done)

    monkeypatch.setattr(cli_module, "start_scan", partial)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "scan"])
    assert result.exit_code == 1
    assert "created #41" in result.output
    assert "HTTP 403" in result.output


def test_audit(monkeypatch, cfg_file):
    async def fake_audit(cfg):
        return AuditReport(duplicates={"ab" * 32: [1, 2]})

    monkeypatch.setattr(cli_module, "run_audit", fake_audit)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "audit"])
    assert result.exit_code == 2
    assert json.loads(result.output)["duplicates"] == {"ab" * 32: [1, 2]}


def test_audit_clean(monkeypatch, cfg_file):
    async def fake_audit(cfg):
        return AuditReport(untracked=[9])

    monkeypatch.setattr(cli_module, "run_audit", fake_audit)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "audit"])
    assert result.exit_code == 0


def test_scan_logs_stay_off_stdout(monkeypatch, cfg_file):
    async def chatty(cfg, **kwargs):
        logging.getLogger(LOGGER_NAME).info("Crawling [0]: %s", cfg.base_url)
        return _fake_report()

    monkeypatch.setattr(cli_module, "start_scan", chatty)
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "scan", "--no-issues"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["summary"]["pages_scanned"] == 1
    assert "Crawling [0]" in result.stderr


def test_scan_summary_issue(cfg_file, patch_start_scan):
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "scan", "--summary-issue", "12"])
    assert result.exit_code == 0
    _, kwargs = patch_start_scan[0]
    assert kwargs == {"reconcile": True, "summary_issue": 12}


@pytest.fixture()
def patch_targeted_test(monkeypatch):
    calls = []

    async def fake_test(cfg, urls, **kwargs):
        calls.append((urls, kwargs))
        return TargetedReport(urls=list(urls) + (kwargs["ticket"].urls if kwargs.get("ticket") else []),
                              rules=list(kwargs.get("rules") or []), ticket=kwargs.get("ticket"))

    monkeypatch.setattr(cli_module, "run_targeted_test", fake_test)
    return calls


def test_test_command_with_ticket(cfg_file, tmp_path, patch_targeted_test):
    ticket = tmp_path / "WEB-7.md"
    ticket.write_text(
        "Contrast\n\nSuccess criteria: 1.4.3: Contrast (Minimum)\nConformance: AA\n"
        "Pages: https://example.com/pricing\n",
        encoding="utf-8",
    )
    result = CliRunner().invoke(
        cli, ["--config", str(cfg_file), "test", "https://example.com/", "--ticket", str(ticket), "-r", "color-contrast"]
    )
    assert result.exit_code == 0
    urls, kwargs = patch_targeted_test[0]
    assert urls == ["https://example.com/"]
    assert kwargs["rules"] == ["color-contrast"]
    assert kwargs["ticket"].wcag.criterion == "1.4.3"
    output = json.loads(result.stdout)
    assert output["urls"] == ["https://example.com/", "https://example.com/pricing"]
    assert "WCAG: 1.4.3 Contrast (Minimum)" in result.stderr


def test_test_command_needs_urls(cfg_file, patch_targeted_test):
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "test"])
    assert result.exit_code == 1
    assert "No URLs to test" in result.output
    assert patch_targeted_test == []


def test_test_command_markdown_report(cfg_file, tmp_path, patch_targeted_test):
    out = tmp_path / "reports" / "page.md"
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "test", "https://example.com/", "--markdown", str(out)])
    assert result.exit_code == 0
    text = out.read_text(encoding="utf-8")
    assert text.startswith("# Accessibility Test Report")
    assert "No accessibility issues found." in text
