"""Output formatters for PunchTrunk."""

from .rich_formatter import RichFormatter
from .sarif_formatter import FindingsWriter, WriteResult, build_sarif_document

__all__ = ["FindingsWriter", "RichFormatter", "WriteResult", "build_sarif_document"]
