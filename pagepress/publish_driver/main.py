"""CLI entry point for building and publishing the site.

Usage:
    pagepress build
    pagepress publish
    pagepress publish --branch develop --jobs 4
    python -m pagepress.publish_driver.main build --drafts --output /tmp/preview
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from pagepress import __version__
from pagepress.common.config import Settings
from pagepress.common.errors import ConfigError
from pagepress.common.logging import set_level, setup_logging

from .models import PublishResult, PublishStatus, PublishTrigger
from .pipeline import PublishPipeline

logger = setup_logging(module_name="pagepress.publish_driver.main")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        help="Path to site.yaml (default: ./site.yaml)",
    )
    common.add_argument(
        "--content",
        type=Path,
        help="Content root override",
    )
    common.add_argument(
        "--output",
        type=Path,
        help="Output directory override",
    )
    common.add_argument(
        "--drafts",
        action="store_true",
        help="Render units marked draft: true",
    )
    common.add_argument(
        "--jobs",
        type=int,
        help="Render worker threads (default from config, 1)",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )

    parser = argparse.ArgumentParser(
        prog="pagepress",
        description="Build a static site from markdown content and publish it to a hosting branch",
    )
    parser.add_argument("--version", action="version", version=f"pagepress {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("build", parents=[common], help="Full clean rebuild into the output directory")
    publish = sub.add_parser("publish", parents=[common], help="Rebuild and replace the hosting branch")
    publish.add_argument(
        "--branch",
        default=os.getenv("GITHUB_REF_NAME", ""),
        help="Branch that triggered the run (default: $GITHUB_REF_NAME)",
    )
    publish.add_argument(
        "--no-push",
        action="store_true",
        help="Build only; leave the hosting branch untouched",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Load site.yaml and apply command-line overrides."""
    settings = Settings.load(args.config)
    build = settings.build.model_copy()
    content = settings.content.model_copy()

    if args.content is not None:
        content.dir = str(args.content.resolve())
    if args.output is not None:
        build.output_dir = str(args.output.resolve())
    if args.drafts:
        build.build_drafts = True
    if args.jobs is not None:
        if args.jobs < 1:
            raise ConfigError("--jobs must be at least 1")
        build.jobs = args.jobs

    return settings.model_copy(update={"build": build, "content": content})


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_level(logging.DEBUG)

    try:
        settings = load_settings(args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        result = PublishResult(status=PublishStatus.ABORTED, error=str(e))
        print(result.format_summary())
        return result.exit_code

    pipeline = PublishPipeline(settings)
    if args.command == "build":
        result = pipeline.run(push=False)
    else:
        result = pipeline.run(PublishTrigger(branch=args.branch), push=not args.no_push)

    print(result.format_summary())
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
