"""
Data models for the render engine.
The render configuration is passed in explicitly; nothing here is global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote, urljoin, urlparse

from pagepress.content_store.models import UnitFailure


@dataclass(frozen=True)
class SiteInfo:
    """Site-wide values exposed to every template."""
    title: str = "My Blog"
    base_url: str = "/"  # "/" or "https://example.com/blog/"
    language: str = "en"
    author: str = ""
    description: str = ""

    @property
    def base_path(self) -> str:
        """Path component of base_url, always with leading and trailing slash."""
        path = urlparse(self.base_url).path or "/"
        if not path.startswith("/"):
            path = "/" + path
        if not path.endswith("/"):
            path += "/"
        return path

    def url_for(self, rel: str) -> str:
        """Root-relative URL for an unquoted site-relative path (``posts/foo/``)."""
        return self.base_path + quote(rel.lstrip("/"))

    def absolute_url(self, rel: str) -> str:
        """Absolute URL when base_url carries a host, else the root-relative one."""
        parsed = urlparse(self.base_url)
        if parsed.scheme and parsed.netloc:
            base = self.base_url if self.base_url.endswith("/") else self.base_url + "/"
            return urljoin(base, quote(rel.lstrip("/")))
        return self.url_for(rel)


@dataclass(frozen=True)
class RenderConfig:
    """Everything the render engine needs besides the unit itself."""
    site: SiteInfo = field(default_factory=SiteInfo)
    content_root: Path = Path("content")
    templates_dir: Optional[Path] = None  # theme overrides, file by file
    build_drafts: bool = False
    minify: bool = True
    summary_words: int = 70
    markdown_extensions: tuple[str, ...] = (
        "fenced_code",
        "tables",
        "footnotes",
        "sane_lists",
    )


@dataclass(frozen=True)
class AssetCopy:
    """A co-located file to copy into the output tree."""
    source: Path
    target: PurePosixPath  # relative to the output root


@dataclass
class RenderOutput:
    """Rendered document for one content unit."""
    unit_path: PurePosixPath
    url_path: str  # "posts/foo/"
    output_path: PurePosixPath  # "posts/foo/index.html"
    title: str
    date: date
    tags: tuple[str, ...]
    summary: str
    html: str
    assets: list[AssetCopy] = field(default_factory=list)
    author: str = ""


@dataclass
class RenderResult:
    """Either a render output or a structured failure, never both.

    ``skipped`` marks drafts left out on purpose; those carry neither.
    """
    unit_path: PurePosixPath
    output: Optional[RenderOutput] = None
    failure: Optional[UnitFailure] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.output is not None


@dataclass
class TagEntry:
    """One tag and the outputs carrying it, newest first."""
    name: str
    slug: str
    pages: list[RenderOutput] = field(default_factory=list)

    @property
    def url_path(self) -> str:
        return f"tags/{self.slug}/"


@dataclass
class SitePage:
    """A site-level document (home, tag listing, feed, sitemap)."""
    output_path: PurePosixPath
    content: str
