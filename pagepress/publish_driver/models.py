"""Data models for the publish driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional

from pagepress.content_store.models import UnitFailure


class PublishStatus(str, Enum):
    """Overall outcome of one invocation."""
    CLEAN = "clean"
    WARNINGS = "warnings"
    ABORTED = "aborted"
    SKIPPED = "skipped"

    @property
    def exit_code(self) -> int:
        # 2 is left to argparse for usage errors
        return {
            PublishStatus.CLEAN: 0,
            PublishStatus.SKIPPED: 0,
            PublishStatus.ABORTED: 1,
            PublishStatus.WARNINGS: 3,
        }[self]


class DriverState(str, Enum):
    """Idle → Building → (Succeeded | Failed) → Idle."""
    IDLE = "idle"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PublishTrigger:
    """External change event. Carries only the branch that changed."""
    branch: str = ""


@dataclass
class BuildReport:
    """What a full rebuild produced."""
    output_dir: Path
    rendered: list[PurePosixPath] = field(default_factory=list)
    drafts_skipped: list[PurePosixPath] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)
    assets_copied: int = 0
    site_pages: int = 0

    @property
    def has_warnings(self) -> bool:
        return bool(self.failures)


@dataclass
class PublishResult:
    """Result of one publish driver invocation."""
    status: PublishStatus
    report: Optional[BuildReport] = None
    error: str = ""
    branch: str = ""
    commit: str = ""

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def format_summary(self) -> str:
        """Human-readable summary, listing every skipped unit and why."""
        lines = [f"Status: {self.status.value}"]
        report = self.report
        if report is not None:
            lines.append(
                f"Rendered {len(report.rendered)} units, "
                f"{report.site_pages} site pages, "
                f"{report.assets_copied} assets → {report.output_dir}"
            )
            if report.drafts_skipped:
                lines.append(f"Drafts not rendered: {len(report.drafts_skipped)}")
            if report.failures:
                lines.append(f"Skipped units ({len(report.failures)}):")
                for failure in report.failures:
                    lines.append(f"  - {failure}")
            else:
                lines.append("Skipped units: none")
        if self.commit:
            lines.append(f"Published {self.commit[:12]} to branch '{self.branch}'")
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)
