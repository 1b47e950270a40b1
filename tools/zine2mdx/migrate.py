from __future__ import annotations

import pathlib
from typing import List, Optional

from .config import CONVERTED_SUFFIX, LEGACY_SUFFIX, PipelineConfig
from .errors import IOFailure, MigrationError
from .frontmatter import read_legacy_document, to_astro_frontmatter
from .markdown_processing import convert_to_asset_imports, fix_cover_paths, rewrite_document
from .paths import check_size
from .report import RunReport
from .utils import _norm_text, sorted_files, write_if_changed


def _read_text(path: pathlib.Path, max_bytes: int) -> str:
    check_size(path, max_bytes)
    try:
        return _norm_text(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise IOFailure(f"could not read {path}: {exc}") from exc


def convert_text(
    text: str,
    default_author: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> str:
    """Legacy `.smd` text in, MDX text out."""
    doc = read_legacy_document(text)
    fm = to_astro_frontmatter(doc.frontmatter, default_author=default_author)
    return rewrite_document(fm.render() + doc.body, width, height).text


def convert_to_mdx(
    smd_path: pathlib.Path, out_dir: pathlib.Path, config: PipelineConfig
) -> pathlib.Path:
    text = _read_text(smd_path, config.limits.max_content_bytes)
    mdx = convert_text(
        text,
        config.default_author,
        config.images.component_width,
        config.images.component_height,
    )
    out_path = out_dir / (smd_path.stem + CONVERTED_SUFFIX)
    try:
        written = write_if_changed(out_path, mdx)
    except OSError as exc:
        raise IOFailure(f"could not write {out_path}: {exc}") from exc
    if written:
        print(f"✓ converted {smd_path} → {out_path}")
    else:
        print(f"= {out_path.name} unchanged, skip")
    return out_path


def _convert_all(
    files: List[pathlib.Path],
    out_dir: pathlib.Path,
    config: PipelineConfig,
    report: RunReport,
) -> None:
    for path in files:
        try:
            convert_to_mdx(path, out_dir, config)
        except MigrationError as exc:
            report.record(path, exc)
            continue
        report.ok()


def migrate_content(config: PipelineConfig) -> RunReport:
    report = RunReport("migrate")

    posts_dir = config.resolve(config.posts_dir)
    if posts_dir.is_dir():
        posts = sorted_files(
            p for p in posts_dir.iterdir() if p.is_file() and p.suffix == LEGACY_SUFFIX
        )
        print(f"Migrating {len(posts)} blog posts...")
        _convert_all(posts, config.resolve(config.blog_out), config, report)
    else:
        print(f"- no posts directory at {posts_dir}")

    content_dir = config.resolve(config.content_dir)
    pages = [content_dir / name for name in config.migrate_pages]
    pages = [p for p in pages if p.exists()]
    print(f"Migrating {len(pages)} pages...")
    _convert_all(pages, config.resolve(config.pages_out), config, report)

    print(report.summary())
    return report


def rewrite_asset_imports(config: PipelineConfig) -> RunReport:
    """Second pass over converted posts: import-based images and /blog/ covers."""
    report = RunReport("asset-imports")
    blog_dir = config.resolve(config.blog_out)
    if not blog_dir.is_dir():
        print(f"- no converted posts at {blog_dir}")
        return report

    for path in sorted_files(blog_dir.glob(f"*{CONVERTED_SUFFIX}")):
        try:
            text = _read_text(path, config.limits.max_content_bytes)
            result = convert_to_asset_imports(text)
            updated = fix_cover_paths(result.text)
            if updated == text:
                print(f"= {path.name} has no images to convert")
                report.skip()
                continue
            path.write_text(updated, encoding="utf-8")
        except OSError as exc:
            report.fail(path, IOFailure(f"could not write {path}: {exc}"))
            continue
        except MigrationError as exc:
            report.record(path, exc)
            continue
        print(f"✓ asset imports in {path.name}")
        report.ok()

    print(report.summary())
    return report
