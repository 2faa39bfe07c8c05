"""Tests for the SARIF findings document and writer."""

import errno
import json

import pytest

from punchtrunk import __version__
from punchtrunk.exceptions import OutputUnwritable
from punchtrunk.formatters import FindingsWriter, build_sarif_document
from punchtrunk.formatters.sarif_formatter import RULE_ID, SARIF_VERSION, is_permission_or_read_only
from punchtrunk.hotspots import HotspotCandidate, rank_hotspots


def _candidate(path="src/a.py", churn=42, complexity=3.14, score=11.81):
    return HotspotCandidate(path=path, churn=churn, complexity=complexity, complexity_z=2.14, score=score)


class TestBuildSarifDocument:
    def test_shape(self):
        doc = build_sarif_document([_candidate()])
        assert doc["version"] == SARIF_VERSION == "2.1.0"
        assert "sarif" in doc["$schema"]
        (run,) = doc["runs"]
        driver = run["tool"]["driver"]
        assert driver["name"] == "PunchTrunk"
        assert driver["version"] == __version__
        assert driver["rules"][0]["id"] == RULE_ID

        (result,) = run["results"]
        assert result["ruleId"] == "hotspot"
        assert result["level"] == "note"
        assert result["message"]["text"] == "Hotspot candidate: churn=42, complexity=3.14, score=11.81"
        uri = result["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]
        assert uri == "src/a.py"

    def test_fixed_precision(self):
        doc = build_sarif_document([_candidate(complexity=2.0, score=1.23456)])
        assert "complexity=2.00, score=1.23" in doc["runs"][0]["results"][0]["message"]["text"]

    def test_forward_slash_uris(self):
        doc = build_sarif_document([_candidate(path="src\\win\\a.py")])
        uri = doc["runs"][0]["results"][0]["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]
        assert uri == "src/win/a.py"

    def test_preserves_ranked_order(self):
        candidates = rank_hotspots({"low.py": 1, "high.py": 50, "mid.py": 8}, {})
        doc = build_sarif_document(candidates)
        uris = [
            r["locations"][0]["physicalLocation"]["artifactLocation"]["uri"] for r in doc["runs"][0]["results"]
        ]
        assert uris == ["high.py", "mid.py", "low.py"]

    def test_empty_results_still_valid(self):
        doc = build_sarif_document([])
        assert doc["runs"][0]["results"] == []


class TestFindingsWriter:
    def test_writes_requested_path(self, tmp_path):
        target = tmp_path / "reports" / "hotspots.sarif"
        result = FindingsWriter(fallback_base=tmp_path / "tmp").write([_candidate()], target)

        assert result.path == target
        assert not result.fell_back
        assert result.count == 1
        data = json.loads(target.read_text(encoding="utf-8"))
        assert len(data["runs"][0]["results"]) == 1

    def test_empty_document_written(self, tmp_path):
        target = tmp_path / "out.sarif"
        FindingsWriter().write([], target)
        assert json.loads(target.read_text())["runs"][0]["results"] == []

    def test_falls_back_when_unwritable(self, tmp_path, monkeypatch):
        requested = tmp_path / "readonly" / "hotspots.sarif"
        fallback_base = tmp_path / "fallback"
        real_write = FindingsWriter._write_to

        def deny_requested(path, payload):
            if path == requested:
                raise OutputUnwritable(path, "read-only file system")
            real_write(path, payload)

        monkeypatch.setattr(FindingsWriter, "_write_to", staticmethod(deny_requested))
        result = FindingsWriter(fallback_base=fallback_base).write([_candidate()], requested)

        assert result.fell_back
        assert result.requested == requested
        assert result.path == fallback_base / "punchtrunk" / "reports" / "hotspots.sarif"
        assert json.loads(result.path.read_text())["runs"][0]["results"]
        assert not requested.exists()

    @pytest.mark.skipif(
        not hasattr(__import__("os"), "geteuid") or __import__("os").geteuid() == 0,
        reason="permission bits are not enforced for root",
    )
    def test_falls_back_on_read_only_directory(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            result = FindingsWriter(fallback_base=tmp_path / "tmp").write([], locked / "reports" / "h.sarif")
        finally:
            locked.chmod(0o700)
        assert result.fell_back
        assert result.path.exists()

    def test_fallback_base_may_be_callable(self, tmp_path):
        writer = FindingsWriter(fallback_base=lambda: tmp_path)
        assert writer.fallback_path(tmp_path / "x" / "f.sarif") == tmp_path / "punchtrunk" / "reports" / "f.sarif"


class TestPermissionClassification:
    def test_permission_error(self):
        assert is_permission_or_read_only(PermissionError(errno.EACCES, "denied"))

    def test_read_only_filesystem(self):
        assert is_permission_or_read_only(OSError(errno.EROFS, "Read-only file system"))

    def test_other_errors(self):
        assert not is_permission_or_read_only(OSError(errno.ENOSPC, "No space left on device"))
