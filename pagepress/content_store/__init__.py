# Content Store Module
# Markdown articles with YAML/TOML front matter

from .loader import (
    ContentStore,
    FrontMatterError,
    decode_front_matter,
    parse_unit,
    split_front_matter,
)
from .models import ContentUnit, FailureKind, FrontMatter, ScanResult, UnitFailure

__all__ = [
    "ContentStore",
    "ContentUnit",
    "FailureKind",
    "FrontMatter",
    "FrontMatterError",
    "ScanResult",
    "UnitFailure",
    "decode_front_matter",
    "parse_unit",
    "split_front_matter",
]
