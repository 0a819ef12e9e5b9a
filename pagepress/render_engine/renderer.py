"""
Site Renderer for markdown content units.
Handles Jinja2 template loading and rendering of pages, tag listings,
the RSS feed and the sitemap.
"""

from __future__ import annotations

import re
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timezone
from email.utils import format_datetime
from pathlib import Path, PurePosixPath
from typing import Iterable, Mapping, Optional

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateError,
    select_autoescape,
)
from markupsafe import Markup

from pagepress.common.errors import ConfigError
from pagepress.common.logging import setup_logging
from pagepress.common.text import truncate_words
from pagepress.content_store.models import ContentUnit, FailureKind, UnitFailure

from .markup import ReferenceResolutionError, ReferenceResolver, markdown_to_html, plain_text
from .minify import minify_html
from .models import RenderConfig, RenderOutput, RenderResult, SitePage, TagEntry

logger = setup_logging(module_name="pagepress.render_engine.renderer")

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"
REQUIRED_TEMPLATES = (
    "single.html.jinja2",
    "list.html.jinja2",
    "tags.html.jinja2",
    "tag.html.jinja2",
    "feed.xml.jinja2",
    "sitemap.xml.jinja2",
)
INDEX_FILENAME = "index.html"
TAGS_SECTION = "tags"

_TAG_SEPARATOR_RE = re.compile(r"[\s/\\]+")


def tag_slug(name: str) -> str:
    """Directory name of a tag page.

    Tags differing only in case or in spacing share one page. Punctuation
    is kept, so ``C++`` and ``C#`` stay apart; URLs quote it.
    """
    folded = unicodedata.normalize("NFC", name.strip().casefold())
    return _TAG_SEPARATOR_RE.sub("-", folded).strip("-.") or "_"


def rfc822(value: date) -> str:
    """Format a calendar date as an RSS pubDate (midnight UTC)."""
    return format_datetime(datetime.combine(value, time(), tzinfo=timezone.utc))


def newest_first(outputs: Iterable[RenderOutput]) -> list[RenderOutput]:
    """Sort outputs by date descending, ties broken by content path."""
    return sorted(outputs, key=lambda o: (-o.date.toordinal(), o.unit_path.as_posix()))


class SiteRenderer:
    """
    Renders content units into HTML documents using Jinja2 templates.

    Usage:
        renderer = SiteRenderer(config)
        results = renderer.render_all(units, jobs=4)
        pages = renderer.render_site_pages([r.output for r in results if r.ok])
    """

    def __init__(self, config: RenderConfig):
        """
        Initialize the renderer.

        Args:
            config: Explicit render configuration. Templates found in
                    ``config.templates_dir`` override the packaged defaults.

        Raises:
            ConfigError: If a required template is missing or does not compile.
        """
        self.config = config

        loaders = []
        if config.templates_dir is not None:
            loaders.append(FileSystemLoader(str(config.templates_dir)))
        loaders.append(FileSystemLoader(str(DEFAULT_TEMPLATES_DIR)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html.jinja2", "xml.jinja2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["rfc822"] = rfc822
        self.env.globals.update(
            site=config.site,
            url_for=config.site.url_for,
            absolute_url=config.site.absolute_url,
            tag_url=lambda name: config.site.url_for(f"tags/{tag_slug(name)}/"),
        )

        try:
            for name in REQUIRED_TEMPLATES:
                self.env.get_template(name)
        except TemplateError as e:
            raise ConfigError(f"Theme template error: {e}") from e

    # --- Units ---

    def is_published(self, unit: ContentUnit) -> bool:
        """Drafts are left out unless the config asks for them."""
        return self.config.build_drafts or not unit.draft

    def render_unit(
        self,
        unit: ContentUnit,
        link_map: Optional[Mapping[str, str]] = None,
    ) -> RenderResult:
        """
        Render a single content unit.

        Never raises for a problem with the unit itself; unresolved
        references and template runtime errors come back as a failure.

        Args:
            unit: Parsed content unit
            link_map: Content path → url_path of every published unit,
                      used to resolve links between units

        Returns:
            RenderResult carrying the output, a failure, or the skipped flag
        """
        if not self.is_published(unit):
            return RenderResult(unit_path=unit.path, skipped=True)

        try:
            fragment = markdown_to_html(unit.body, self.config.markdown_extensions)
            resolver = ReferenceResolver(self.config, link_map)
            content, assets = resolver.resolve(fragment, unit)

            summary = unit.description or truncate_words(
                plain_text(content), self.config.summary_words,
            )
            page = {
                "title": unit.title,
                "date": unit.date,
                "tags": list(unit.tags),
                "author": unit.author or self.config.site.author,
                "description": unit.description,
                "summary": summary,
                "draft": unit.draft,
                "url_path": unit.url_path,
                "params": unit.params,
            }
            html = self.env.get_template("single.html.jinja2").render(
                page=page,
                content=Markup(content),
            )
        except (ReferenceResolutionError, TemplateError) as e:
            return RenderResult(
                unit_path=unit.path,
                failure=UnitFailure(path=unit.path, kind=FailureKind.RENDER, reason=str(e)),
            )
        except Exception as e:
            # Theme code can raise any exception at runtime.
            logger.debug("Template raised while rendering %s", unit.path, exc_info=True)
            return RenderResult(
                unit_path=unit.path,
                failure=UnitFailure(
                    path=unit.path,
                    kind=FailureKind.RENDER,
                    reason=f"template error: {type(e).__name__}: {e}",
                ),
            )

        output = RenderOutput(
            unit_path=unit.path,
            url_path=unit.url_path,
            output_path=PurePosixPath(unit.url_path) / INDEX_FILENAME,
            title=unit.title,
            date=unit.date,
            tags=unit.tags,
            summary=summary,
            html=self._finish(html),
            assets=assets,
            author=page["author"],
        )
        return RenderResult(unit_path=unit.path, output=output)

    def render_all(self, units: list[ContentUnit], jobs: int = 1) -> list[RenderResult]:
        """
        Render every unit, optionally on a thread pool.

        Each unit renders independently, so ``jobs`` only changes speed:
        results always come back in content-path order. When two units
        publish at the same URL, the later path fails. URLs under /tags/
        belong to the generated tag pages and fail too.

        A unit that fails is dropped from the link map and the units that
        rendered are resolved again, so a link to a failed unit fails the
        linking unit instead of pointing at a page that is never written.

        Args:
            units: Parsed content units
            jobs: Worker threads (1 renders inline)

        Returns:
            One RenderResult per unit
        """
        link_map = {
            unit.path.as_posix(): unit.url_path
            for unit in units
            if self.is_published(unit)
        }
        ordered = sorted(units, key=lambda u: u.path.as_posix())
        by_path = {u.path: u for u in ordered}

        results = self._claim_urls(self._render_batch(ordered, link_map, jobs))
        while True:
            dropped = [
                r.unit_path.as_posix() for r in results
                if r.failure is not None and r.unit_path.as_posix() in link_map
            ]
            if not dropped:
                break
            for key in dropped:
                del link_map[key]
            logger.debug("Re-resolving links without %d failed units", len(dropped))
            again = self._render_batch([by_path[r.unit_path] for r in results if r.ok], link_map, jobs)
            merged = {r.unit_path: r for r in results}
            merged.update((r.unit_path, r) for r in again)
            results = self._claim_urls([merged[u.path] for u in ordered])

        for result in results:
            if result.failure is not None:
                logger.warning("Render failed for %s: %s", result.unit_path, result.failure.reason)
        rendered = sum(1 for r in results if r.ok)
        skipped = sum(1 for r in results if r.skipped)
        logger.info(
            "Rendered %d units (%d drafts skipped, %d failed)",
            rendered, skipped, len(results) - rendered - skipped,
        )
        return results

    def _render_batch(
        self,
        units: list[ContentUnit],
        link_map: Mapping[str, str],
        jobs: int,
    ) -> list[RenderResult]:
        if jobs > 1 and len(units) > 1:
            with ThreadPoolExecutor(max_workers=jobs) as pool:
                return list(pool.map(lambda u: self.render_unit(u, link_map), units))
        return [self.render_unit(u, link_map) for u in units]

    @staticmethod
    def _claim_urls(results: list[RenderResult]) -> list[RenderResult]:
        """Fail units whose URL is reserved or already taken by an earlier path."""
        claimed: dict[PurePosixPath, PurePosixPath] = {}
        for i, result in enumerate(results):
            if result.output is None:
                continue
            reason = ""
            if PurePosixPath(result.output.url_path).parts[0] == TAGS_SECTION:
                reason = f"URL /{result.output.url_path} is reserved for tag pages"
            else:
                owner = claimed.setdefault(result.output.output_path, result.unit_path)
                if owner != result.unit_path:
                    reason = f"duplicate URL /{result.output.url_path} (already produced by {owner})"
            if reason:
                results[i] = RenderResult(
                    unit_path=result.unit_path,
                    failure=UnitFailure(path=result.unit_path, kind=FailureKind.RENDER, reason=reason),
                )
        return results

    # --- Site pages ---

    def build_tag_index(self, outputs: Iterable[RenderOutput]) -> list[TagEntry]:
        """Group outputs by tag. Tags sorted by slug, pages newest first."""
        entries: dict[str, TagEntry] = {}
        for output in newest_first(outputs):
            for name in output.tags:
                slug = tag_slug(name)
                entry = entries.setdefault(slug, TagEntry(name=name, slug=slug))
                if output not in entry.pages:
                    entry.pages.append(output)
        return [entries[slug] for slug in sorted(entries)]

    def render_site_pages(self, outputs: Iterable[RenderOutput]) -> list[SitePage]:
        """
        Render the home index, tag pages, RSS feed and sitemap.

        Args:
            outputs: Successfully rendered units

        Returns:
            SitePage documents, in a fixed order
        """
        pages = newest_first(outputs)
        tags = self.build_tag_index(pages)

        site_pages = [
            SitePage(
                output_path=PurePosixPath(INDEX_FILENAME),
                content=self._render("list.html.jinja2", pages=pages),
            ),
            SitePage(
                output_path=PurePosixPath("tags") / INDEX_FILENAME,
                content=self._render("tags.html.jinja2", tags=tags),
            ),
        ]
        for tag in tags:
            site_pages.append(SitePage(
                output_path=PurePosixPath(tag.url_path) / INDEX_FILENAME,
                content=self._render("tag.html.jinja2", tag=tag),
            ))
        site_pages.append(SitePage(
            output_path=PurePosixPath("index.xml"),
            content=self._render("feed.xml.jinja2", pages=pages),
        ))
        site_pages.append(SitePage(
            output_path=PurePosixPath("sitemap.xml"),
            content=self._render("sitemap.xml.jinja2", pages=pages, tags=tags),
        ))
        return site_pages

    # --- Internal ---

    def _render(self, template_name: str, **context) -> str:
        template = self.env.get_template(template_name)
        return self._finish(template.render(**context))

    def _finish(self, document: str) -> str:
        if self.config.minify:
            return minify_html(document)
        return document if document.endswith("\n") else document + "\n"
