"""Full clean rebuild of the site into the output directory.

The tree is written into a fresh staging directory next to the output
directory and swapped in only once every file is on disk. If anything goes
wrong at the environment level the staging directory is removed and the
previously built output stays as it was.
"""

from __future__ import annotations

import shutil
import tempfile
import uuid
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from jinja2 import TemplateError

from pagepress.common.config import Settings
from pagepress.common.errors import ConfigError, OutputError
from pagepress.common.logging import setup_logging
from pagepress.content_store import ContentStore
from pagepress.render_engine import RenderOutput, SitePage, SiteRenderer

from .models import BuildReport

logger = setup_logging(module_name="pagepress.publish_driver.builder")


class SiteBuilder:
    """Content store → render engine → output tree.

    Args:
        settings: Site settings (paths, build flags).
        store: Optional content store override.
        renderer: Optional renderer override.
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[ContentStore] = None,
        renderer: Optional[SiteRenderer] = None,
    ):
        self.settings = settings
        self.store = store or ContentStore(settings.content_path)
        self.renderer = renderer or SiteRenderer(settings.to_render_config())

    @property
    def output_dir(self) -> Path:
        return self.settings.output_path

    def build(self) -> BuildReport:
        """Run one full rebuild.

        Returns:
            BuildReport with rendered units and per-unit failures.

        Raises:
            ContentRootError: Content root missing or unreadable.
            OutputError: Output destination cannot be written.
            ConfigError: A theme template fails on site-level pages.
        """
        logger.info("Step 1: Scanning content in %s...", self.store.root)
        scan = self.store.scan()

        logger.info("Step 2: Rendering %d units...", len(scan.units))
        results = self.renderer.render_all(scan.units, jobs=self.settings.build.jobs)
        outputs = [r.output for r in results if r.output is not None]

        logger.info("Step 3: Rendering site pages...")
        try:
            site_pages = self.renderer.render_site_pages(outputs)
        except TemplateError as e:
            raise ConfigError(f"Theme template error on site pages: {e}") from e

        logger.info("Step 4: Writing output to %s...", self.output_dir)
        staging = self._make_staging()
        try:
            assets_copied = self._write_tree(staging, outputs, site_pages)
            self._swap_in(staging)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise OutputError(f"Cannot write output to {self.output_dir}: {e}") from e
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        failures = scan.failures + [r.failure for r in results if r.failure is not None]
        failures.sort(key=lambda f: f.path.as_posix())

        report = BuildReport(
            output_dir=self.output_dir,
            rendered=[o.unit_path for o in outputs],
            drafts_skipped=[r.unit_path for r in results if r.skipped],
            failures=failures,
            assets_copied=assets_copied,
            site_pages=len(site_pages),
        )
        logger.info(
            "Build complete: %d rendered, %d failed",
            len(report.rendered), len(report.failures),
        )
        return report

    # --- Internal ---

    def _make_staging(self) -> Path:
        parent = self.output_dir.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{self.output_dir.name}.staging-", dir=parent))
            staging.chmod(0o755)
        except OSError as e:
            raise OutputError(f"Cannot create staging directory in {parent}: {e}") from e
        return staging

    def _write_tree(
        self,
        root: Path,
        outputs: Iterable[RenderOutput],
        site_pages: Iterable[SitePage],
    ) -> int:
        static_dir = self.settings.static_path
        if static_dir.is_dir():
            shutil.copytree(static_dir, root, dirs_exist_ok=True)

        assets_copied = 0
        for output in outputs:
            _write_text(root, output.output_path, output.html)
            for asset in output.assets:
                target = root / asset.target.as_posix()
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(asset.source, target)
                assets_copied += 1

        for page in site_pages:
            _write_text(root, page.output_path, page.content)

        return assets_copied

    def _swap_in(self, staging: Path) -> None:
        """Replace the output directory with ``staging`` via renames."""
        target = self.output_dir
        backup = None
        if target.exists():
            backup = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
            target.rename(backup)
        try:
            staging.rename(target)
        except OSError:
            if backup is not None:
                backup.rename(target)
            raise
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)


def _write_text(root: Path, rel: PurePosixPath, content: str) -> None:
    path = root / rel.as_posix()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
