"""Tests for the masonry CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from masonry.cli.masonry import masonry_cli


def _invoke(*args: str):
    return CliRunner().invoke(masonry_cli, list(args))


class TestDiff:
    def test_requires_certification(self):
        result = _invoke("diff")
        assert result.exit_code == 2

    def test_empty_gap(self, satisfied_workspace: Path):
        result = _invoke("diff", "LATO", "-o", str(satisfied_workspace))
        assert result.exit_code == 0
        assert result.stdout.strip().splitlines() == ["Number of missing controls: 0"]

    def test_single_gap(self, opencontrols: Path):
        result = _invoke("diff", "LATO", "-o", str(opencontrols))
        assert result.exit_code == 0
        assert result.stdout.strip().splitlines() == [
            "Number of missing controls: 1",
            "NIST-800-53@AC-2",
        ]

    def test_unknown_certification_fails(self, opencontrols: Path):
        result = _invoke("diff", "nope", "-o", str(opencontrols))
        assert result.exit_code == 1
        assert "CertificationNotFound" in result.stderr
        assert "Number of missing controls" not in result.stdout

    def test_all_errors_reported(self, opencontrols: Path, add_component):
        (opencontrols / "components" / "no-file").mkdir()
        add_component("bad", 'schema_version: "3.0.0"\nsatisfies:\n  - standard_key: NIST-800-53\n')
        result = _invoke("diff", "LATO", "-o", str(opencontrols))
        assert result.exit_code == 0
        assert "ComponentFileMissing" in result.stderr
        assert "MissingRequiredField" in result.stderr

    def test_json_output(self, opencontrols: Path):
        result = _invoke("diff", "LATO", "-o", str(opencontrols), "-f", "json")
        payload = json.loads(result.stdout)
        assert payload["missing_count"] == 1
        assert payload["missing"][0]["name"] == "Account Management"

    def test_junit_to_file(self, opencontrols: Path, tmp_path: Path):
        out = tmp_path / "gap.xml"
        result = _invoke("diff", "LATO", "-o", str(opencontrols), "-f", "junit", "--output", str(out))
        assert result.exit_code == 0
        assert "<failure" in out.read_text(encoding="utf-8")
        assert "JUnit XML: 1 tests, 1 failures" in result.stderr
        assert result.stdout == ""

    def test_junit_to_stdout(self, opencontrols: Path):
        result = _invoke("diff", "LATO", "-o", str(opencontrols), "-f", "junit")
        assert result.exit_code == 0
        assert "No component satisfies NIST-800-53@AC-2" in result.stdout

    def test_workers_must_be_positive(self, opencontrols: Path):
        result = _invoke("diff", "LATO", "-o", str(opencontrols), "--workers", "0")
        assert result.exit_code == 2

    @patch("masonry.core.orchestrator.run_diff")
    def test_options_reach_config(self, mock_diff, tmp_path: Path):
        mock_diff.return_value = 0
        result = _invoke("--verbose", "diff", "LATO", "-o", "oc", "--workers", "3", "-p", str(tmp_path))
        assert result.exit_code == 0
        config = mock_diff.call_args.args[0]
        assert config.certification == "LATO"
        assert config.opencontrol_dir == tmp_path / "oc"
        assert config.loader.max_workers == 3
        assert config.verbose is True


class TestInventory:
    def test_lists_components(self, satisfied_workspace: Path):
        result = _invoke("inventory", "LATO", "-o", str(satisfied_workspace))
        assert result.exit_code == 0
        assert result.stdout.strip() == "NIST-800-53@AC-2: auth"
