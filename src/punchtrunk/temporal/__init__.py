"""Temporal analysis: churn and changed files from git history."""

from .git_churn import GitChurnCollector, parse_name_only, parse_numstat
from .models import ChurnReport, FileChurnRecord

__all__ = [
    "ChurnReport",
    "FileChurnRecord",
    "GitChurnCollector",
    "parse_name_only",
    "parse_numstat",
]
