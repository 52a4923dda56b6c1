"""Tests for the relay-probe command line."""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from relay_probe.cli import main
from relay_probe.verify.export import parse_csv


@pytest.fixture
def runner():
  return CliRunner()


class TestCli:
  """Test cases for the click entry point."""

  def test_list_models(self, runner):
    result = runner.invoke(main, ["--list-models"])

    assert result.exit_code == 0
    assert "Google Gemini:" in result.output
    assert "gemini-1.5-flash" in result.output
    assert "gpt-4o-mini" in result.output

  def test_list_targets(self, runner, tmp_path, monkeypatch):
    """Test listing target files, including one that fails to load."""
    monkeypatch.delenv("RELAY_UNSET_KEY", raising=False)
    (tmp_path / "good.yaml").write_text(yaml.safe_dump({
      "targets": {"relay": {"protocol": "openai", "model": "gpt-4o", "api_keys": ["a", "b"]}},
    }), encoding="utf-8")
    (tmp_path / "needs-env.yaml").write_text(yaml.safe_dump({
      "targets": {"g": {"api_keys": "${RELAY_UNSET_KEY}"}},
    }), encoding="utf-8")

    result = runner.invoke(main, ["--config-dir", str(tmp_path), "--list-targets"])

    assert result.exit_code == 0
    assert "good:" in result.output
    assert "relay" in result.output
    assert "keys=2" in result.output
    assert "needs-env: invalid" in result.output

  def test_missing_config_file(self, runner, tmp_path):
    result = runner.invoke(main, ["--config-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output

  def test_unknown_target_name(self, runner, tmp_path):
    (tmp_path / "default-targets.yaml").write_text(yaml.safe_dump({
      "targets": {"relay": {"api_keys": "sk-abc"}},
    }), encoding="utf-8")

    result = runner.invoke(main, ["--config-dir", str(tmp_path), "--target", "other"])

    assert result.exit_code == 1
    assert "Unknown target(s): other" in result.output

  def test_invalid_base_url_rejected(self, runner, tmp_path):
    (tmp_path / "default-targets.yaml").write_text(yaml.safe_dump({
      "targets": {"relay": {"base_url": "ftp://relay.example.com", "api_keys": "sk-abc"}},
    }), encoding="utf-8")

    result = runner.invoke(main, ["--config-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "base_url must start with http:// or https://" in result.output

  def test_adhoc_run_with_export(self, runner, tmp_path, make_factory):
    """Test an ad-hoc run from a keys file, including CSV output."""
    keys_file = tmp_path / "keys.txt"
    keys_file.write_text("sk-adhoc-valid-0001\n\nbad-adhoc-key-001\nsk-adhoc-valid-0002\n", encoding="utf-8")
    out_dir = tmp_path / "out"
    fake = make_factory()

    with patch("relay_probe.cli.ProberFactory", return_value=fake):
      result = runner.invoke(main, [
        "--keys-file", str(keys_file),
        "--protocol", "openai",
        "--model", "gpt-4o-mini",
        "--base-url", "https://relay.example.com/v1",
        "--output-dir", str(out_dir),
      ])

    assert result.exit_code == 0, result.output
    assert "total=3 valid=2 invalid=1" in result.output
    assert "sk-a...0001" in result.output
    assert [call[1] for call in fake.calls] == ["gpt-4o-mini"] * 3

    rows = parse_csv((out_dir / "adhoc_results.csv").read_text(encoding="utf-8"))
    assert [row["Key"] for row in rows] == ["sk-adhoc-valid-0001", "bad-adhoc-key-001", "sk-adhoc-valid-0002"]
    assert [row["Status"] for row in rows] == ["VALID", "INVALID", "VALID"]
    assert {row["Protocol"] for row in rows} == {"OPENAI"}

  def test_concurrency_must_be_positive(self, runner):
    result = runner.invoke(main, ["--concurrency", "0", "--list-models"])
    assert result.exit_code == 2

  @pytest.mark.parametrize("extra_args,message", [
    (["--base-url", "ftp://relay.example.com"], "base_url must start with http:// or https://"),
    (["--model", "  "], "model cannot be empty"),
  ])
  def test_adhoc_config_rejected_before_run(self, runner, tmp_path, make_factory, extra_args, message):
    """Test that an unusable ad-hoc configuration fails without sending requests."""
    keys_file = tmp_path / "keys.txt"
    keys_file.write_text("sk-adhoc-valid-0001\n", encoding="utf-8")
    fake = make_factory()

    with patch("relay_probe.cli.ProberFactory", return_value=fake):
      result = runner.invoke(main, ["--keys-file", str(keys_file), *extra_args])

    assert result.exit_code == 1
    assert f"Target 'adhoc' {message}" in result.output
    assert fake.calls == []
