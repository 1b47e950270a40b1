#!/usr/bin/env python3
"""
Zine → Astro content migration tools.

- migrate: content/posts/*.smd -> src/content/blog/<name>.mdx,
  content/{about,contact}.smd -> src/content/pages/<name>.mdx
  frontmatter: title, description, date, author, tags, cover?, preview?,
  featured, draft
- images: resize referenced source images into WebP variants under
  assets/ and write assets.zig listing every asset the bundler embeds
- asset-imports: point converted <Image> tags at `@assets/...` imports
- all: migrate, then images

Key behaviour:
- Zine `.key = value` frontmatter → YAML (ISO dates, quoted strings)
- Fenced ```html <picture>``` blocks → <Image> with `/blog/` sources
- Raw inline HTML outside code wrapped in code spans for MDX
- Path traversal, file size and directory size guards on every input
- One bad document or image is reported and skipped, never fatal
- Exit status 1 when anything failed
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Sequence

from .config import load_config
from .migrate import migrate_content, rewrite_asset_imports
from .pipeline import process_images
from .report import RunReport


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Migrate Zine content to Astro MDX and build the asset manifest.",
    )
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=None,
        help="Path to zine2mdx.yml (default: ./zine2mdx.yml if present)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="Convert .smd posts and pages to .mdx")
    sub.add_parser("images", help="Process referenced images and write the manifest")
    sub.add_parser("asset-imports", help="Rewrite <Image> sources as asset imports")
    sub.add_parser("all", help="Run migrate, then images")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    cfg_path = args.config
    if cfg_path is not None and not cfg_path.exists():
        print(f"ERROR: config file {cfg_path} not found", file=sys.stderr)
        return 2
    config = load_config(cfg_path)

    report = RunReport(args.command)
    if args.command in ("migrate", "all"):
        report.merge(migrate_content(config))
    if args.command in ("images", "all"):
        report.merge(process_images(config))
    if args.command == "asset-imports":
        report.merge(rewrite_asset_imports(config))

    if report.failures:
        print(f"{len(report.failures)} item(s) failed", file=sys.stderr)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
