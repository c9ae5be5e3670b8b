"""Tests for the command line."""

import pytest
from typer.testing import CliRunner

from asngen.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ASNGEN_PREFIX", "ASN")
    monkeypatch.setenv("ASNGEN_NAMESPACE_RANGE", "600")
    monkeypatch.setenv("ASNGEN_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ASNGEN_DATABASE_URL", "asn.sqlite3")


class TestGenerate:
    def test_generate_in_namespace(self):
        result = runner.invoke(app, ["generate", "-n", "123", "-c", "2"])
        assert result.exit_code == 0
        assert "ASN123001" in result.output
        assert "ASN123002" in result.output

    def test_counters_persist_between_runs(self):
        runner.invoke(app, ["generate", "-n", "123"])
        result = runner.invoke(app, ["generate", "-n", "123", "--json"])
        assert result.exit_code == 0
        assert '"asn": "ASN123002"' in result.output
        assert '"client": "cli"' in result.output

    def test_unregistered_namespace(self):
        result = runner.invoke(app, ["generate", "-n", "700"])
        assert result.exit_code == 1
        assert "Unregistered namespace 700" in result.output


class TestBump:
    def test_bump_single_namespace(self):
        runner.invoke(app, ["generate", "-n", "123"])
        result = runner.invoke(app, ["bump", "50", "-n", "123", "--by", "alice"])
        assert result.exit_code == 0
        assert "ASN123051" in result.output
        assert "ASN123052" in result.output

    def test_delta_must_be_positive(self):
        result = runner.invoke(app, ["bump", "0", "-n", "123"])
        assert result.exit_code != 0


def test_recommend_bump_without_history():
    result = runner.invoke(app, ["recommend-bump", "--hours", "24", "-n", "123"])
    assert result.exit_code == 0
    assert "Recommended delta for 24h" in result.output


def test_stats():
    runner.invoke(app, ["generate", "-n", "123"])
    result = runner.invoke(app, ["stats", "-n", "123"])
    assert result.exit_code == 0
    assert "123" in result.output


def test_format():
    result = runner.invoke(app, ["format"])
    assert result.exit_code == 0
    assert "Configured ASN Format" in result.output
