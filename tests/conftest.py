"""Shared test fixtures for pagepress."""

import sys
from pathlib import Path
from textwrap import dedent

import pytest

# Ensure pagepress is importable without installing
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pagepress.common.config import Settings
from pagepress.render_engine.models import RenderConfig, SiteInfo

ENV_VARS = (
    "PAGEPRESS_BASE_URL",
    "PAGEPRESS_OUTPUT_DIR",
    "PAGEPRESS_JOBS",
    "PAGEPRESS_BUILD_DRAFTS",
    "PAGEPRESS_PUBLISH_BRANCH",
    "PAGEPRESS_SOURCE_BRANCH",
    "GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_REF_NAME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's or CI's environment out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_unit(
    root: Path,
    rel: str,
    title: str = "Hello World",
    date: str = "2024-01-15",
    body: str = "Some body text.",
    **front_matter,
) -> Path:
    """Write a markdown unit with YAML front matter under ``root``."""
    lines = ["---", f"title: {title}", f"date: {date}"]
    for key, value in front_matter.items():
        if isinstance(value, (list, tuple)):
            value = "[" + ", ".join(value) + "]"
        elif isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{key}: {value}")
    lines.append("---")
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n\n" + dedent(body).strip() + "\n", encoding="utf-8")
    return path


@pytest.fixture
def content_root(tmp_path) -> Path:
    root = tmp_path / "site" / "content"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def write_unit(content_root):
    """Writer for units under the content root: write_unit("posts/a.md", title="A")."""
    def write(rel: str, **kwargs) -> Path:
        return _write_unit(content_root, rel, **kwargs)
    return write


@pytest.fixture
def render_config(content_root) -> RenderConfig:
    """Unminified config so assertions can match template output."""
    return RenderConfig(
        site=SiteInfo(title="Test Site", base_url="https://example.com/", author="Tester"),
        content_root=content_root,
        minify=False,
    )


@pytest.fixture
def site_settings(content_root) -> Settings:
    """Settings rooted at the temporary site directory."""
    root_dir = content_root.parent
    return Settings(
        site={"title": "Test Site", "base_url": "https://example.com/"},
        build={"minify": False},
        root_dir=root_dir,
    )


@pytest.fixture
def site_yaml(content_root) -> Path:
    config = content_root.parent / "site.yaml"
    config.write_text(
        dedent("""\
            site:
              title: Test Site
              base_url: https://example.com/
            build:
              minify: false
            publish:
              source_branch: develop
              publish_branch: main
        """),
        encoding="utf-8",
    )
    return config
