"""
PunchTrunk - Trunk orchestration with git hotspot reporting.

Runs the Trunk formatter and linter under one deadline and ranks risky files
by recent churn and a lexical complexity proxy, emitting SARIF for code
scanning pipelines.
"""

__version__ = "0.4.0"
__author__ = "PunchTrunk maintainers"
