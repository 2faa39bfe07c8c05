"""Data models for churn collection."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FileChurnRecord:
    path: str  # repo-relative, forward slashes
    lines_changed: int  # added + removed within the window
    changed: bool = False  # differs from the base reference


@dataclass
class ChurnReport:
    churn: dict[str, int]  # path -> lines changed, files with history only
    changed: set[str] = field(default_factory=set)  # paths differing from base ref
    window_days: int = 90
    degraded: bool = False  # changed set came from a fallback diff

    def records(self) -> list[FileChurnRecord]:
        """One record per churned file, sorted by path."""
        return [
            FileChurnRecord(path=path, lines_changed=count, changed=path in self.changed)
            for path, count in sorted(self.churn.items())
        ]

    @property
    def total_files(self) -> int:
        return len(self.churn)

    def to_dict(self) -> dict:
        return {
            "churn": dict(self.churn),
            "changed": sorted(self.changed),
            "window_days": self.window_days,
            "degraded": self.degraded,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChurnReport":
        return cls(
            churn={str(k): int(v) for k, v in data["churn"].items()},
            changed=set(data.get("changed", [])),
            window_days=int(data.get("window_days", 90)),
            degraded=bool(data.get("degraded", False)),
        )
