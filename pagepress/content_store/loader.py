"""Content store: enumerates and parses markdown content units.

Every ``*.md`` file under the content root is one unit. Each file is parsed
on its own: a malformed front matter block produces a ``UnitFailure`` for
that file and the scan carries on with the rest.

Usage:
    store = ContentStore(Path("content"))
    result = store.scan()
    for unit in result.units:
        ...
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path, PurePosixPath

import yaml
from pydantic import ValidationError

from pagepress.common.errors import ContentRootError
from pagepress.common.logging import setup_logging

from .models import ContentUnit, FailureKind, FrontMatter, ScanResult, UnitFailure

logger = setup_logging(module_name="pagepress.content_store.loader")

CONTENT_SUFFIX = ".md"
YAML_DELIMITER = "---"
TOML_DELIMITER = "+++"


class FrontMatterError(ValueError):
    """Raised while splitting or decoding a front matter block."""


def split_front_matter(text: str) -> tuple[str, str, str]:
    """Split a content file into (delimiter, raw metadata, body).

    Args:
        text: Full file contents.

    Returns:
        The delimiter (``---`` or ``+++``), the raw metadata text and the
        markup body following the closing delimiter.

    Raises:
        FrontMatterError: If the file does not open with a delimiter line or
            the block is never closed.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].strip() not in (YAML_DELIMITER, TOML_DELIMITER):
        raise FrontMatterError("missing front matter block")

    delimiter = lines[0].strip()
    for i in range(1, len(lines)):
        if lines[i].strip() == delimiter:
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            return delimiter, raw, body.lstrip("\r\n")

    raise FrontMatterError(f"unterminated front matter block (expected closing '{delimiter}')")


def decode_front_matter(delimiter: str, raw: str) -> dict:
    """Decode the raw metadata text into a mapping."""
    try:
        if delimiter == TOML_DELIMITER:
            data = tomllib.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise FrontMatterError(f"invalid front matter: {_first_line(str(e))}") from e

    if data is None:
        raise FrontMatterError("empty front matter block")
    if not isinstance(data, dict):
        raise FrontMatterError("front matter must be a key/value mapping")
    return data


def parse_unit(source: Path, root: Path) -> ContentUnit | UnitFailure:
    """Parse one content file.

    Args:
        source: Absolute path of the markdown file.
        root: Content root the unit's identity is relative to.

    Returns:
        The parsed ContentUnit, or a UnitFailure describing why it was skipped.
    """
    rel = PurePosixPath(source.relative_to(root).as_posix())

    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return _parse_failure(rel, f"cannot read file: {e}")

    try:
        delimiter, raw, body = split_front_matter(text)
        data = decode_front_matter(delimiter, raw)
    except FrontMatterError as e:
        return _parse_failure(rel, str(e))

    try:
        meta = FrontMatter(**{str(k): v for k, v in data.items()})
    except ValidationError as e:
        return _parse_failure(rel, _format_validation_error(e))

    return ContentUnit.from_front_matter(rel, source, meta, body)


class ContentStore:
    """Read-only view over a directory tree of content units."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def discover(self) -> list[Path]:
        """List every content file under the root, sorted by path.

        Files whose name starts with ``_`` (section metadata such as
        ``_index.md``) and anything inside a hidden directory are ignored.

        Raises:
            ContentRootError: If the root is missing or unreadable.
        """
        if not self.root.is_dir():
            raise ContentRootError(f"Content root not found: {self.root}")
        if not os.access(self.root, os.R_OK | os.X_OK):
            raise ContentRootError(f"Content root not readable: {self.root}")

        try:
            candidates = [
                p for p in self.root.rglob(f"*{CONTENT_SUFFIX}")
                if p.is_file() and not self._ignored(p)
            ]
        except OSError as e:
            raise ContentRootError(f"Cannot enumerate {self.root}: {e}") from e

        return sorted(candidates, key=lambda p: p.relative_to(self.root).as_posix())

    def scan(self) -> ScanResult:
        """Parse every content unit under the root.

        Returns:
            ScanResult with parsed units and per-unit parse failures, both in
            path order.
        """
        result = ScanResult()
        for source in self.discover():
            parsed = parse_unit(source, self.root)
            if isinstance(parsed, UnitFailure):
                logger.warning("Skipping %s: %s", parsed.path, parsed.reason)
                result.failures.append(parsed)
            else:
                result.units.append(parsed)

        logger.info(
            "Scanned %s: %d units, %d failed",
            self.root, len(result.units), len(result.failures),
        )
        return result

    def _ignored(self, path: Path) -> bool:
        rel_parts = path.relative_to(self.root).parts
        if path.name.startswith("_"):
            return True
        return any(part.startswith(".") for part in rel_parts)


# --- Internal helpers ---


def _parse_failure(path: PurePosixPath, reason: str) -> UnitFailure:
    return UnitFailure(path=path, kind=FailureKind.PARSE, reason=reason)


def _first_line(message: str) -> str:
    return message.strip().splitlines()[0] if message.strip() else message


def _format_validation_error(error: ValidationError) -> str:
    """Flatten a Pydantic error into ``field: message`` pairs."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "front matter"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
