"""Tests for trunk discovery, trunk.yaml parsing and command construction."""

import logging
import os
import stat

import pytest

from punchtrunk.config import AutofixPolicy, Phase, RunConfiguration
from punchtrunk.exceptions import ConfigurationError, InvalidPathError, ToolFailure, ToolNotFound
from punchtrunk.runtime import CancellationToken
from punchtrunk.toolchain import (
    CompetingToolNotifier,
    TrunkResolution,
    TrunkRunner,
    detect_competing_tools,
    discover_trunk_config,
    find_trunk_config_dir,
    load_trunk_config,
    normalize_trunk_version,
    resolve_trunk,
    trunk_check_args,
    trunk_env,
    trunk_fmt_args,
    trunk_version_matches,
    validate_trunk_binary,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="uses a shell script as fake trunk")

TRUNK_YAML = """\
version: 0.1
cli:
  version: 1.22.2
plugins:
  sources:
    - id: trunk
      ref: v1.6.0
      uri: https://github.com/trunk-io/plugins
runtimes:
  enabled:
    - node@18.12.1
lint:
  enabled:
    - ruff@0.4.0
    - prettier@3.2.5
"""


def make_fake_trunk(directory, script_body="exit 0"):
    """Executable shell script that logs its arguments next to itself."""
    path = directory / "trunk"
    log = directory / "calls.log"
    path.write_text(f'#!/bin/sh\necho "$@" >> "{log}"\n{script_body}\n')
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path, log


class TestBinaryResolution:
    @posix_only
    def test_validate_executable(self, tmp_path):
        trunk, _ = make_fake_trunk(tmp_path)
        assert validate_trunk_binary(trunk) == trunk

    def test_validate_missing(self, tmp_path):
        with pytest.raises(InvalidPathError, match="Invalid path"):
            validate_trunk_binary(tmp_path / "trunk")

    def test_validate_directory(self, tmp_path):
        with pytest.raises(InvalidPathError) as exc_info:
            validate_trunk_binary(tmp_path)
        assert "directory" in exc_info.value.reason

    @posix_only
    def test_validate_not_executable(self, tmp_path):
        plain = tmp_path / "trunk"
        plain.write_text("#!/bin/sh\n")
        plain.chmod(0o644)
        with pytest.raises(InvalidPathError):
            validate_trunk_binary(plain)

    @posix_only
    def test_explicit_binary_wins(self, tmp_path, monkeypatch):
        trunk, _ = make_fake_trunk(tmp_path)
        monkeypatch.setenv("PATH", "")
        resolution = resolve_trunk(str(trunk))
        assert resolution.path == trunk
        assert resolution.source == "--trunk-binary"

    @posix_only
    def test_env_binary(self, tmp_path, monkeypatch):
        trunk, _ = make_fake_trunk(tmp_path)
        monkeypatch.setenv("PUNCHTRUNK_TRUNK_BINARY", str(trunk))
        resolution = resolve_trunk(str(tmp_path / "missing"))
        assert resolution.source == "PUNCHTRUNK_TRUNK_BINARY"
        assert resolution.warnings and "missing" in resolution.warnings[0]

    @posix_only
    def test_home_trunk_bin(self, tmp_path, monkeypatch):
        bin_dir = tmp_path / "home" / ".trunk" / "bin"
        bin_dir.mkdir(parents=True)
        trunk, _ = make_fake_trunk(bin_dir)
        monkeypatch.setenv("PATH", str(tmp_path / "empty"))
        resolution = resolve_trunk()
        assert resolution.path == trunk
        assert resolution.source == "~/.trunk/bin"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path / "empty"))
        resolution = resolve_trunk()
        assert not resolution.available
        assert "not detected" in resolution.summary()

    def test_airgapped_summary(self, monkeypatch):
        monkeypatch.setenv("PUNCHTRUNK_AIRGAPPED", "1")
        assert "offline" in TrunkResolution().summary()


class TestTrunkConfig:
    def test_find_walks_upwards(self, tmp_path):
        (tmp_path / ".trunk").mkdir()
        (tmp_path / ".trunk" / "trunk.yaml").write_text(TRUNK_YAML)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_trunk_config_dir(nested) == (tmp_path / ".trunk").resolve()

    def test_load(self, tmp_path):
        (tmp_path / "trunk.yaml").write_text(TRUNK_YAML)
        config = load_trunk_config(tmp_path)
        assert config.cli_version == "1.22.2"
        assert config.directory == tmp_path

    def test_load_invalid_yaml(self, tmp_path):
        (tmp_path / "trunk.yaml").write_text("cli: [unterminated\n")
        with pytest.raises(ConfigurationError):
            load_trunk_config(tmp_path)

    def test_discover_explicit_dir_without_yaml(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="punchtrunk"):
            assert discover_trunk_config(tmp_path, str(tmp_path / "nothing")) is None
        assert "does not contain trunk.yaml" in caplog.text

    def test_discover_invalid_yaml_is_warning(self, tmp_path):
        (tmp_path / ".trunk").mkdir()
        (tmp_path / ".trunk" / "trunk.yaml").write_text("- just\n- a list\n")
        assert discover_trunk_config(tmp_path) is None

    @pytest.mark.parametrize(
        "expected, actual, matches",
        [
            ("1.22.2", "1.22.2", True),
            ("1.22.2", "trunk version 1.22.2", True),
            ("1.22.2", "1.21.0", False),
            ("", "1.21.0", True),
        ],
    )
    def test_version_matches(self, expected, actual, matches):
        assert trunk_version_matches(expected, actual) is matches

    def test_normalize_version(self):
        assert normalize_trunk_version("trunk 1.2.3\n") == "1.2.3"


class TestCommands:
    def test_fmt_args(self):
        assert trunk_fmt_args(["--all"]) == ["fmt", "--all"]

    @pytest.mark.parametrize(
        "policy, expected",
        [
            (AutofixPolicy.ALL, ["check", "--fix"]),
            (AutofixPolicy.NONE, ["check", "--no-fix"]),
            (AutofixPolicy.FORMAT_ONLY, ["check"]),
        ],
    )
    def test_check_args(self, policy, expected):
        assert trunk_check_args(policy) == expected

    def test_check_args_extra_last(self):
        assert trunk_check_args(AutofixPolicy.ALL, ("--filter=ruff",)) == ["check", "--fix", "--filter=ruff"]

    def test_env_exports_config_dir(self, tmp_path):
        env = trunk_env({"PATH": "/bin"}, tmp_path)
        assert env["TRUNK_CONFIG_DIR"] == str(tmp_path)
        assert env["TRUNK_TELEMETRY_OPTOUT"] == "1"

    def test_env_keeps_existing_config_dir(self, tmp_path):
        env = trunk_env({"TRUNK_CONFIG_DIR": "/custom"}, tmp_path)
        assert env["TRUNK_CONFIG_DIR"] == "/custom"


class TestCompetingTools:
    def test_detects_prettier_for_format(self, tmp_path):
        (tmp_path / ".prettierrc").write_text("{}")
        messages = detect_competing_tools(Phase.FORMAT, tmp_path)
        assert len(messages) == 1 and "Prettier" in messages[0]
        assert detect_competing_tools(Phase.CHECK, tmp_path) == []

    def test_pyproject_needs_black_section(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n")
        assert detect_competing_tools(Phase.FORMAT, tmp_path) == []
        (tmp_path / "pyproject.toml").write_text("[tool.black]\nline-length = 100\n")
        assert "Black" in detect_competing_tools(Phase.FORMAT, tmp_path)[0]

    def test_notifier_warns_once(self, tmp_path):
        (tmp_path / ".eslintrc.json").write_text("{}")
        notifier = CompetingToolNotifier()
        assert len(notifier.notify(Phase.CHECK, tmp_path)) == 1
        assert notifier.notify(Phase.CHECK, tmp_path) == []


@posix_only
class TestTrunkRunner:
    def test_runs_fmt_in_repo_root(self, tmp_path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        trunk, log = make_fake_trunk(bin_dir)
        repo = tmp_path / "repo"
        repo.mkdir()
        config = RunConfiguration(repo_root=str(repo), trunk_binary=str(trunk), trunk_args=("--ci",))

        TrunkRunner(config).run(Phase.FORMAT, CancellationToken())
        assert log.read_text().strip() == "fmt --ci"

    def test_check_failure_raises(self, tmp_path):
        trunk, log = make_fake_trunk(tmp_path, "exit 1")
        config = RunConfiguration(repo_root=str(tmp_path), trunk_binary=str(trunk), autofix="all")

        with pytest.raises(ToolFailure) as exc_info:
            TrunkRunner(config).run(Phase.CHECK, CancellationToken())
        assert exc_info.value.returncode == 1
        assert log.read_text().strip() == "check --fix"

    def test_missing_binary(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path / "empty"))
        config = RunConfiguration(repo_root=str(tmp_path))
        with pytest.raises(ToolNotFound):
            TrunkRunner(config).run(Phase.FORMAT, CancellationToken())

    def test_version_mismatch_warns(self, tmp_path, caplog):
        (tmp_path / ".trunk").mkdir()
        (tmp_path / ".trunk" / "trunk.yaml").write_text(TRUNK_YAML)
        trunk, _ = make_fake_trunk(
            tmp_path, 'if [ "$1" = "--version" ]; then echo 1.0.0; fi\nexit 0'
        )
        config = RunConfiguration(repo_root=str(tmp_path), trunk_binary=str(trunk))

        with caplog.at_level(logging.WARNING, logger="punchtrunk"):
            TrunkRunner(config).run(Phase.FORMAT, CancellationToken())
        assert "pins cli.version 1.22.2" in caplog.text

    def test_exports_trunk_config_dir(self, tmp_path):
        (tmp_path / ".trunk").mkdir()
        (tmp_path / ".trunk" / "trunk.yaml").write_text("version: 0.1\n")
        trunk, log = make_fake_trunk(tmp_path, 'echo "dir=$TRUNK_CONFIG_DIR" >> "$(dirname "$0")/calls.log"')
        config = RunConfiguration(repo_root=str(tmp_path), trunk_binary=str(trunk))

        TrunkRunner(config).run(Phase.FORMAT, CancellationToken())
        assert f"dir={(tmp_path / '.trunk').resolve()}" in log.read_text()
