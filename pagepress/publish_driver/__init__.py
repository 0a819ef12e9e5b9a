# Publish Driver: full rebuild and hosting-branch replacement
"""
Publish driver module: orchestrates a full clean rebuild on trigger and
replaces the hosting branch with the rendered tree.
"""

from .builder import SiteBuilder
from .git_publisher import GitBranchPublisher
from .models import (
    BuildReport,
    DriverState,
    PublishResult,
    PublishStatus,
    PublishTrigger,
)
from .pipeline import PublishPipeline

__all__ = [
    "BuildReport",
    "DriverState",
    "GitBranchPublisher",
    "PublishPipeline",
    "PublishResult",
    "PublishStatus",
    "PublishTrigger",
    "SiteBuilder",
]
