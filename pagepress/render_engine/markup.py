"""Markdown conversion and reference resolution.

Markdown bodies are converted with Python-Markdown, then every relative
``src``/``href`` in the resulting fragment is resolved against the unit's
directory:

- another ``.md`` file → that unit's published URL
- any other existing file → copied beside the unit's output
- anything missing or outside the content root → unresolved

External URLs, absolute paths, fragments and ``mailto:``-style links are
left untouched.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Mapping, Optional
from urllib.parse import unquote, urlparse

import markdown as md
from bs4 import BeautifulSoup

from pagepress.content_store.models import ContentUnit

from .models import AssetCopy, RenderConfig

REFERENCE_ATTRIBUTES = ("src", "href", "poster")
BUNDLE_INDEX = "index.md"


class ReferenceResolutionError(Exception):
    """One or more references in a unit could not be resolved."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("unresolved references: " + "; ".join(problems))


def markdown_to_html(body: str, extensions: tuple[str, ...]) -> str:
    """Convert a markdown body to an HTML fragment."""
    return md.markdown(body, extensions=list(extensions), output_format="html")


def fragment_inner_html(soup: BeautifulSoup) -> str:
    """Serialize the children of <body>, i.e. the fragment without wrappers."""
    body = soup.find("body")
    if body is None:
        return ""
    return "".join(str(child) for child in body.children)


def plain_text(html_fragment: str) -> str:
    """Visible text of an HTML fragment, whitespace-normalized."""
    if not html_fragment.strip():
        return ""
    soup = BeautifulSoup(html_fragment, "lxml")
    return " ".join(soup.get_text(" ", strip=True).split())


def default_url_path(rel: PurePosixPath) -> str:
    """URL a content file publishes at when its front matter sets no slug."""
    if rel.name == BUNDLE_INDEX:
        return f"{rel.parent.as_posix()}/" if rel.parent.name else ""
    parent = rel.parent.as_posix()
    if parent in ("", "."):
        return f"{rel.stem}/"
    return f"{parent}/{rel.stem}/"


class ReferenceResolver:
    """Rewrites relative references in one rendered unit.

    Args:
        config: Active render configuration (content root, site URLs).
        link_map: Content path (posix, relative to the root) → url_path of
            every unit being published. Links to content files outside the
            map fall back to ``default_url_path``.
    """

    def __init__(
        self,
        config: RenderConfig,
        link_map: Optional[Mapping[str, str]] = None,
    ):
        self.config = config
        self.root = Path(config.content_root).resolve()
        self.link_map = link_map

    def resolve(self, html_fragment: str, unit: ContentUnit) -> tuple[str, list[AssetCopy]]:
        """Rewrite references in ``html_fragment``.

        Returns:
            The rewritten fragment and the assets it needs, in document order.

        Raises:
            ReferenceResolutionError: Listing every unresolved reference.
        """
        if not html_fragment.strip():
            return "", []

        soup = BeautifulSoup(html_fragment, "lxml")
        assets: list[AssetCopy] = []
        problems: list[str] = []

        for tag in soup.find_all(True):
            for attr in REFERENCE_ATTRIBUTES:
                value = tag.get(attr)
                if not isinstance(value, str) or not self._is_relative(value):
                    continue
                try:
                    new_value, asset = self._resolve_one(value, unit)
                except ValueError as e:
                    problems.append(f"{value} ({e})")
                    continue
                tag[attr] = new_value
                if asset is not None and asset not in assets:
                    assets.append(asset)

        if problems:
            raise ReferenceResolutionError(problems)
        return fragment_inner_html(soup), assets

    # --- Internal ---

    @staticmethod
    def _is_relative(value: str) -> bool:
        value = value.strip()
        if not value or value.startswith(("#", "/")):
            return False
        parsed = urlparse(value)
        return not parsed.scheme and not parsed.netloc

    def _resolve_one(self, value: str, unit: ContentUnit) -> tuple[str, Optional[AssetCopy]]:
        parsed = urlparse(value.strip())
        suffix = f"#{parsed.fragment}" if parsed.fragment else ""
        if parsed.query:
            suffix = f"?{parsed.query}{suffix}"

        rel_target = unquote(parsed.path)
        target = (Path(unit.asset_dir) / rel_target).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError("outside the content root")

        if target.is_dir() and (target / BUNDLE_INDEX).is_file():
            target = target / BUNDLE_INDEX

        if target.suffix == ".md":
            return self._content_link(target) + suffix, None

        if not target.is_file():
            raise ValueError("file not found")

        asset_dir = Path(unit.asset_dir).resolve()
        if target.is_relative_to(asset_dir):
            out = PurePosixPath(unit.url_path) / target.relative_to(asset_dir).as_posix()
        else:
            out = PurePosixPath(target.relative_to(self.root).as_posix())

        url = self.config.site.url_for(out.as_posix())
        return url + suffix, AssetCopy(source=target, target=out)

    def _content_link(self, target: Path) -> str:
        rel = PurePosixPath(target.relative_to(self.root).as_posix())
        if self.link_map is not None:
            url = self.link_map.get(rel.as_posix())
            if url is None:
                if target.is_file():
                    raise ValueError("links to content that is not published")
                raise ValueError("content file not found")
            return self.config.site.url_for(url)
        if not target.is_file():
            raise ValueError("content file not found")
        return self.config.site.url_for(default_url_path(rel))
