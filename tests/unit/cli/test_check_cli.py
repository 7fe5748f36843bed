"""Unit tests for the dupguard command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dupguard.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """An empty project directory used as the working directory."""
    root = tmp_path / "project"
    root.mkdir()
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(root)
    return root


def write_file(root, relative: str, text: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestCheckCommand:
    """Test `dupguard check`."""

    def test_no_files(self, runner, project):
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "No files to check" in result.output

    def test_no_files_json_report(self, runner, project):
        result = runner.invoke(cli, ["check", "-f", "json", "-o", "out.json"])
        assert result.exit_code == 0
        assert "No files to check" not in result.output
        report = json.loads((project / "out.json").read_text(encoding="utf-8"))
        assert report["groups"] == []
        assert report["stats"]["sources_scanned"] == 0

    def test_no_files_sarif_to_stdout(self, runner, project):
        result = runner.invoke(cli, ["check", "-f", "sarif"])
        assert result.exit_code == 0
        assert "No files to check" not in result.output
        assert '"version": "2.1.0"' in result.output
        assert '"results": []' in result.output

    def test_clean_project(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "No code duplication found" in result.output

    def test_duplicates_fail(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)

        result = runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Duplication 1:" in result.output
        assert "Multiple files (2 files):" in result.output

    def test_no_fail(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)
        result = runner.invoke(cli, ["check", "--no-fail"])
        assert result.exit_code == 0

    def test_explicit_paths(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)
        write_file(project, "lib/c.ts", block_text)

        result = runner.invoke(cli, ["check", "src/a.ts", "lib", "--no-fail", "-f", "json", "-o", "out.json"])

        assert result.exit_code == 0
        data = json.loads((project / "out.json").read_text(encoding="utf-8"))
        sources = [b["source_id"] for b in data["groups"][0]["blocks"]]
        assert sources == ["src/a.ts", "lib/c.ts"]

    def test_missing_path(self, runner, project):
        result = runner.invoke(cli, ["check", "missing.ts"])
        assert result.exit_code == 2
        assert "Path does not exist" in result.output

    def test_path_outside_root(self, runner, project, tmp_path, block_text):
        write_file(tmp_path, "other/a.ts", block_text)
        result = runner.invoke(cli, ["check", "../other/a.ts"])
        assert result.exit_code == 2
        assert "outside the project root" in result.output

    def test_min_lines_override(self, runner, project, make_lines):
        text = "\n".join(make_lines(8))
        write_file(project, "src/a.ts", text)
        write_file(project, "src/b.ts", text)

        assert runner.invoke(cli, ["check"]).exit_code == 0
        assert runner.invoke(cli, ["check", "--min-lines", "8"]).exit_code == 1

    def test_exclude_adds_to_config(self, runner, project, block_text):
        write_file(project, ".duprc", "duplication:\n  excluded_paths:\n    - generated/\n")
        write_file(project, "src/app.ts", block_text)
        write_file(project, "src/generated/a.ts", block_text)
        write_file(project, "src/legacy/b.ts", block_text)

        assert runner.invoke(cli, ["check"]).exit_code == 1
        assert runner.invoke(cli, ["check", "--exclude", "legacy/"]).exit_code == 0

    def test_rule_mode_checks_files_separately(self, runner, project, block_text, make_lines):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)
        assert runner.invoke(cli, ["check", "--mode", "rule"]).exit_code == 0

        write_file(project, "src/c.ts", "\n".join(make_lines(10) * 2))
        result = runner.invoke(cli, ["check", "--mode", "rule", "--jobs", "2"])
        assert result.exit_code == 1
        assert "Same file: src/c.ts" in result.output

    def test_staged(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)
        write_file(project, "src/c.ts", block_text)

        with patch("dupguard.cli.get_staged_files", return_value=["src/a.ts", "src/b.ts"]) as staged:
            result = runner.invoke(cli, ["check", "--staged", "--no-fail", "-f", "json", "-o", "out.json"])

        assert result.exit_code == 0
        assert staged.call_args[0][0] == project.resolve()
        data = json.loads((project / "out.json").read_text(encoding="utf-8"))
        assert data["stats"]["sources_scanned"] == 2

    def test_sarif_output(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)

        result = runner.invoke(cli, ["check", "-f", "sarif", "-o", "dup.sarif"])

        assert result.exit_code == 1
        sarif = json.loads((project / "dup.sarif").read_text(encoding="utf-8"))
        assert len(sarif["runs"][0]["results"]) == 1

    def test_output_directory_missing(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        result = runner.invoke(cli, ["check", "-f", "json", "-o", "missing/out.json"])
        assert result.exit_code == 2

    def test_project_root_option(self, runner, project, tmp_path, block_text):
        other = tmp_path / "other"
        write_file(other, "a.ts", block_text)
        write_file(other, "b.ts", block_text)
        result = runner.invoke(cli, ["check", "--project-root", str(other)])
        assert result.exit_code == 1

    def test_invalid_explicit_config(self, runner, project):
        write_file(project, "broken.toml", "[duplication\n")
        result = runner.invoke(cli, ["--config", "broken.toml", "check"])
        assert result.exit_code == 2

    def test_malformed_min_lines_falls_back_to_default(self, runner, project, block_text, monkeypatch):
        write_file(project, "src/a.ts", block_text)
        write_file(project, "src/b.ts", block_text)
        monkeypatch.setenv("MIN_DUPLICATION_LINES", "0")
        result = runner.invoke(cli, ["check", "src/a.ts", "src/b.ts"])
        assert result.exit_code == 1

    def test_numeric_string_in_config_file(self, runner, project, make_lines):
        text = "\n".join(make_lines(8))
        write_file(project, "src/a.ts", text)
        write_file(project, "src/b.ts", text)
        write_file(project, ".duprc", "duplication:\n  min_lines: \"8\"\n")
        assert runner.invoke(cli, ["check"]).exit_code == 1

    def test_unusable_config_section(self, runner, project, block_text):
        write_file(project, "src/a.ts", block_text)
        write_file(project, ".duprc", "duplication:\n  extensions: []\n")
        assert runner.invoke(cli, ["check"]).exit_code == 2

    def test_invalid_discovered_config_falls_back(self, runner, project):
        write_file(project, "dupguard.toml", "[duplication\n")
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "Using default configuration" in result.output


class TestConfigCommand:
    """Test `dupguard config`."""

    def test_table(self, runner, project):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "Duplication Configuration" in result.output

    def test_json_reflects_file(self, runner, project):
        write_file(project, ".duprc", "duplication:\n  min_lines: 14\n")
        result = runner.invoke(cli, ["config", "-f", "json"])
        assert result.exit_code == 0
        assert '"min_lines": 14' in result.output

    def test_env_overrides_file(self, runner, project, monkeypatch):
        write_file(project, ".duprc", "duplication:\n  min_lines: 14\n")
        monkeypatch.setenv("DUPGUARD_MIN_LINES", "16")
        result = runner.invoke(cli, ["config", "-f", "yaml"])
        assert "min_lines: 16" in result.output


class TestInitCommand:
    """Test `dupguard init`."""

    def test_creates_duprc(self, runner, project):
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (project / ".duprc").read_text(encoding="utf-8").startswith("# dupguard Configuration File")

    def test_toml(self, runner, project):
        result = runner.invoke(cli, ["init", "-f", "toml"])
        assert result.exit_code == 0
        assert (project / "dupguard.toml").exists()

    def test_refuses_to_overwrite(self, runner, project):
        write_file(project, ".duprc", "custom: true\n")
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 2
        assert (project / ".duprc").read_text(encoding="utf-8") == "custom: true\n"

    def test_force(self, runner, project):
        write_file(project, ".duprc", "custom: true\n")
        assert runner.invoke(cli, ["init", "--force"]).exit_code == 0
        assert "custom" not in (project / ".duprc").read_text(encoding="utf-8")


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "dupguard" in result.output
