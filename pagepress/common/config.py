"""Site configuration and paths.

Loads settings from site.yaml, a .env file and environment variables.
Relative paths are resolved against the directory holding site.yaml.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

if TYPE_CHECKING:
    from pagepress.render_engine.models import RenderConfig

CONFIG_FILENAME = "site.yaml"


class SiteSettings(BaseModel):
    """[site] section: identity shown in templates and feeds."""
    title: str = "My Blog"
    base_url: str = "/"
    language: str = "en"
    author: str = ""
    description: str = ""


class ContentSettings(BaseModel):
    """[content] section."""
    dir: str = "content"


class BuildSettings(BaseModel):
    """[build] section."""
    output_dir: str = "public"
    static_dir: str = "static"
    theme_dir: Optional[str] = None
    minify: bool = True
    build_drafts: bool = False
    jobs: int = Field(default=1, ge=1)
    summary_words: int = Field(default=70, ge=1)


class PublishSettings(BaseModel):
    """[publish] section: where the rendered tree goes."""
    source_branch: str = "develop"
    publish_branch: str = "main"
    remote: str = "origin"
    commit_message: str = "deploy: rebuild site"
    cname: str = ""
    nojekyll: bool = True
    user_name: str = "github-actions[bot]"
    user_email: str = "github-actions[bot]@users.noreply.github.com"


class Settings(BaseModel):
    """Top-level site settings."""
    site: SiteSettings = Field(default_factory=SiteSettings)
    content: ContentSettings = Field(default_factory=ContentSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    publish: PublishSettings = Field(default_factory=PublishSettings)
    root_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    @classmethod
    def load(cls, path: str | Path | None = None) -> Settings:
        """Load settings from site.yaml, falling back to defaults.

        Args:
            path: Explicit config file. Defaults to ./site.yaml.

        Returns:
            Settings with environment overrides applied.

        Raises:
            ConfigError: If the file exists but is not valid YAML or does
                not match the settings schema.
        """
        config_path = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME
        root_dir = config_path.resolve().parent

        load_dotenv(root_dir / ".env")

        data: dict = {}
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except (yaml.YAMLError, OSError) as e:
                raise ConfigError(f"Cannot read {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{config_path} must contain a mapping")
        elif path is not None:
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            settings = cls(**{**data, "root_dir": root_dir})
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {config_path}: {e}") from e
        return settings.with_env_overrides()

    def with_env_overrides(self) -> Settings:
        """Return a copy with PAGEPRESS_* environment variables applied."""
        data = self.model_dump()
        if url := os.getenv("PAGEPRESS_BASE_URL"):
            data["site"]["base_url"] = url
        if out := os.getenv("PAGEPRESS_OUTPUT_DIR"):
            data["build"]["output_dir"] = out
        if jobs := os.getenv("PAGEPRESS_JOBS"):
            data["build"]["jobs"] = jobs
        if drafts := os.getenv("PAGEPRESS_BUILD_DRAFTS"):
            data["build"]["build_drafts"] = drafts.lower() in ("true", "1", "yes")
        if branch := os.getenv("PAGEPRESS_PUBLISH_BRANCH"):
            data["publish"]["publish_branch"] = branch
        if branch := os.getenv("PAGEPRESS_SOURCE_BRANCH"):
            data["publish"]["source_branch"] = branch
        try:
            return Settings(**data, root_dir=self.root_dir)
        except ValidationError as e:
            raise ConfigError(f"Invalid environment override: {e}") from e

    # === Resolved paths ===

    def _resolve(self, value: str) -> Path:
        p = Path(value)
        if p.is_absolute():
            return p
        return self.root_dir / p

    @property
    def content_path(self) -> Path:
        return self._resolve(self.content.dir)

    @property
    def output_path(self) -> Path:
        return self._resolve(self.build.output_dir)

    @property
    def static_path(self) -> Path:
        return self._resolve(self.build.static_dir)

    @property
    def theme_path(self) -> Path | None:
        if not self.build.theme_dir:
            return None
        return self._resolve(self.build.theme_dir)

    def to_render_config(self) -> RenderConfig:
        """Build the explicit configuration handed to the render engine."""
        from pagepress.render_engine.models import RenderConfig, SiteInfo

        return RenderConfig(
            site=SiteInfo(
                title=self.site.title,
                base_url=self.site.base_url,
                language=self.site.language,
                author=self.site.author,
                description=self.site.description,
            ),
            content_root=self.content_path,
            templates_dir=self.theme_path,
            build_drafts=self.build.build_drafts,
            minify=self.build.minify,
            summary_words=self.build.summary_words,
        )
