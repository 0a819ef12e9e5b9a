# Render Engine Module
# Markdown → HTML with Jinja2 page templates

from .markup import (
    ReferenceResolutionError,
    ReferenceResolver,
    markdown_to_html,
    plain_text,
)
from .minify import minify_html
from .models import (
    AssetCopy,
    RenderConfig,
    RenderOutput,
    RenderResult,
    SiteInfo,
    SitePage,
    TagEntry,
)
from .renderer import SiteRenderer, newest_first, tag_slug

__all__ = [
    "AssetCopy",
    "ReferenceResolutionError",
    "ReferenceResolver",
    "RenderConfig",
    "RenderOutput",
    "RenderResult",
    "SiteInfo",
    "SitePage",
    "SiteRenderer",
    "TagEntry",
    "markdown_to_html",
    "minify_html",
    "newest_first",
    "plain_text",
    "tag_slug",
]
