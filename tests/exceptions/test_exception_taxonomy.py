"""Tests for the exception hierarchy."""

from pathlib import Path

from punchtrunk.exceptions import (
    ConfigurationError,
    ExecutionError,
    HistoryUnavailable,
    HotspotError,
    InvalidConfigError,
    InvalidPathError,
    MalformedInput,
    OutputUnwritable,
    PunchTrunkError,
    StageTimeout,
    ToolFailure,
    ToolNotFound,
)


class TestHierarchy:
    def test_everything_is_punchtrunk_error(self):
        for cls in (ConfigurationError, ExecutionError, HotspotError):
            assert issubclass(cls, PunchTrunkError)

    def test_tool_not_found_is_tool_failure(self):
        err = ToolNotFound("trunk", "not on PATH")
        assert isinstance(err, ToolFailure)
        assert err.returncode == 127
        assert "trunk is not available" in str(err)

    def test_config_errors(self):
        assert issubclass(InvalidConfigError, ConfigurationError)
        assert issubclass(InvalidPathError, ConfigurationError)


class TestMessages:
    def test_details_rendered(self):
        err = ToolFailure("trunk check", 2, "line one\nfinal line\n")
        assert str(err) == "trunk check exited with status 2 (tool=trunk check, returncode=2, stderr=final line)"

    def test_stage_timeout(self):
        err = StageTimeout("trunk fmt", timeout_seconds=30, command=("trunk", "fmt"))
        assert err.what == "trunk fmt"
        assert "timeout_seconds=30" in str(err)
        assert "command=trunk fmt" in str(err)

    def test_history_unavailable(self):
        err = HistoryUnavailable("shallow clone", Path("/repo"))
        assert err.reason == "shallow clone"
        assert err.details["repo_root"] == str(Path("/repo"))

    def test_recoverable_conditions(self):
        assert OutputUnwritable(Path("r/h.sarif"), "read-only").reason == "read-only"
        assert MalformedInput(Path("x.py"), "bad utf-8").filepath == Path("x.py")
