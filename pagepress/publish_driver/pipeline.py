"""Full publishing pipeline, from trigger to hosting branch.

Orchestrates the complete flow:
Trigger → SiteBuilder (scan, render, write) → GitBranchPublisher

Units that fail to parse or render are left out and reported; the rest of
the site is still published. Environment failures and unexpected errors
abort the run with a summary.

Usage:
    pipeline = PublishPipeline(settings)
    result = pipeline.run(PublishTrigger(branch="develop"))
    print(result.format_summary())
"""

from __future__ import annotations

from typing import Optional

from pagepress.common.config import Settings
from pagepress.common.errors import PagepressError
from pagepress.common.logging import setup_logging

from .builder import SiteBuilder
from .git_publisher import GitBranchPublisher
from .models import BuildReport, DriverState, PublishResult, PublishStatus, PublishTrigger

logger = setup_logging(module_name="pagepress.publish_driver.pipeline")


class PublishPipeline:
    """One-shot build-and-deploy driver.

    Steps:
    1. Check the trigger branch against the configured source branch
    2. Full clean rebuild (SiteBuilder)
    3. Replace the hosting branch (GitBranchPublisher)
    """

    def __init__(
        self,
        settings: Settings,
        builder: Optional[SiteBuilder] = None,
        publisher: Optional[GitBranchPublisher] = None,
    ):
        self.settings = settings
        self._builder = builder
        self._publisher = publisher
        self.state = DriverState.IDLE
        self.transitions: list[DriverState] = []

    @property
    def builder(self) -> SiteBuilder:
        if self._builder is None:
            self._builder = SiteBuilder(self.settings)
        return self._builder

    @property
    def publisher(self) -> GitBranchPublisher:
        if self._publisher is None:
            self._publisher = GitBranchPublisher(self.settings.publish, repo_dir=self.settings.root_dir)
        return self._publisher

    def accepts(self, trigger: Optional[PublishTrigger]) -> bool:
        """A trigger without a branch, or for the source branch, starts a run."""
        if trigger is None or not trigger.branch:
            return True
        return trigger.branch == self.settings.publish.source_branch

    def run(
        self,
        trigger: Optional[PublishTrigger] = None,
        push: bool = True,
    ) -> PublishResult:
        """Execute one build, and publish it unless ``push`` is False.

        Args:
            trigger: Change event; None means "rebuild now"
            push: Replace the hosting branch after a successful build

        Returns:
            PublishResult; never raises, an unexpected error aborts the run
        """
        if not self.accepts(trigger):
            logger.info(
                "Ignoring trigger for branch '%s' (source branch is '%s')",
                trigger.branch, self.settings.publish.source_branch,
            )
            return PublishResult(status=PublishStatus.SKIPPED, branch=self.settings.publish.publish_branch)

        self._enter(DriverState.BUILDING)
        report: Optional[BuildReport] = None
        commit = ""
        try:
            builder = self.builder
            report = builder.build()
            if push:
                logger.info("Publishing %s to branch '%s'...", report.output_dir, self.settings.publish.publish_branch)
                commit = self.publisher.publish(report.output_dir)
        except PagepressError as e:
            self._enter(DriverState.FAILED)
            logger.error("Publish aborted: %s", e)
            result = PublishResult(
                status=PublishStatus.ABORTED,
                report=report,
                error=str(e),
                branch=self.settings.publish.publish_branch,
            )
        except Exception as e:
            self._enter(DriverState.FAILED)
            logger.exception("Publish aborted by an unexpected error")
            result = PublishResult(
                status=PublishStatus.ABORTED,
                report=report,
                error=f"unexpected error: {type(e).__name__}: {e}",
                branch=self.settings.publish.publish_branch,
            )
        else:
            self._enter(DriverState.SUCCEEDED)
            status = PublishStatus.WARNINGS if report.has_warnings else PublishStatus.CLEAN
            if status is PublishStatus.WARNINGS:
                logger.warning("Published with %d skipped units", len(report.failures))
            result = PublishResult(
                status=status,
                report=report,
                branch=self.settings.publish.publish_branch,
                commit=commit,
            )
        finally:
            self._enter(DriverState.IDLE)

        return result

    def _enter(self, state: DriverState) -> None:
        self.state = state
        self.transitions.append(state)
