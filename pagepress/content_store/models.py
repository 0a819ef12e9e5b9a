"""Data models for the content store.

A content unit is one markdown file: a front matter block followed by the
markup body. Front matter is validated with Pydantic; the resulting unit is
a plain dataclass handed to the render engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagepress.common.text import slugify


# === Enums ===

class FailureKind(str, Enum):
    """Where a per-unit failure happened."""
    PARSE = "parse"
    RENDER = "render"


# === Front matter ===

class FrontMatter(BaseModel):
    """Validated metadata block of a content unit.

    Unknown keys are kept and exposed to templates as ``params``.
    """
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    date: date
    tags: list[str] = Field(default_factory=list)
    author: str = ""
    draft: bool = False
    slug: str = ""
    description: str = ""

    @field_validator("title", "author", "slug", "description", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if value is None:
            return ""
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        # YAML yields date/datetime objects, TOML yields datetime, strings may
        # carry a time part (2020-08-14T09:30:00+02:00).
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip()).date()
            except ValueError:
                return value
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple, set)):
            return value
        cleaned = {str(tag).strip() for tag in value if str(tag).strip()}
        return sorted(cleaned)

    @property
    def params(self) -> dict[str, Any]:
        """Extra front matter keys, in declaration order."""
        return dict(self.model_extra or {})


# === Content unit ===

@dataclass
class ContentUnit:
    """One article: metadata plus markdown body.

    ``path`` is relative to the content root and uniquely identifies the
    unit. ``source`` is the absolute file location.
    """
    path: PurePosixPath
    source: Path
    title: str
    date: date
    body: str
    tags: tuple[str, ...] = ()
    author: str = ""
    draft: bool = False
    slug: str = ""
    description: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_front_matter(
        cls,
        path: PurePosixPath,
        source: Path,
        meta: FrontMatter,
        body: str,
    ) -> ContentUnit:
        return cls(
            path=path,
            source=source,
            title=meta.title,
            date=meta.date,
            body=body,
            tags=tuple(meta.tags),
            author=meta.author,
            draft=meta.draft,
            slug=meta.slug,
            description=meta.description,
            params=meta.params,
        )

    @property
    def is_bundle(self) -> bool:
        """True for ``<dir>/index.md`` page bundles."""
        return self.path.name == "index.md"

    @property
    def asset_dir(self) -> Path:
        """Directory whose files count as co-located assets."""
        return self.source.parent

    @property
    def url_path(self) -> str:
        """Site-relative directory the unit publishes to, e.g. ``posts/foo/``.

        Leaf files and bundles share the same scheme: ``posts/foo.md`` and
        ``posts/foo/index.md`` both publish at ``posts/foo/``. A front
        matter ``slug`` replaces the last segment.
        """
        if self.is_bundle:
            parent = self.path.parent
            section = parent.parent if parent.name else PurePosixPath(".")
            name = parent.name
        else:
            section = self.path.parent
            name = self.path.stem

        if self.slug:
            name = slugify(self.slug)
        if not name:
            name = slugify(self.title) or "untitled"

        if str(section) in ("", "."):
            return f"{name}/"
        return f"{section.as_posix()}/{name}/"

    @property
    def section(self) -> str:
        """Top-level content directory (``posts``), or '' for root files."""
        parts = PurePosixPath(self.url_path).parts
        return parts[0] if len(parts) > 1 else ""


# === Results ===

@dataclass
class UnitFailure:
    """Structured reason a single unit was skipped."""
    path: PurePosixPath
    kind: FailureKind
    reason: str

    def __str__(self) -> str:
        return f"{self.path} [{self.kind.value}]: {self.reason}"


@dataclass
class ScanResult:
    """Outcome of enumerating the content root."""
    units: list[ContentUnit] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.units) + len(self.failures)
