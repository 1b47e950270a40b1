from __future__ import annotations

import pathlib
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set

from .config import (
    COVER_SRC,
    HTML_SRC_OR_SRCSET,
    IMAGE_EXTS,
    MD_IMAGE,
    PICTURE_BLOCK,
    PROCESSED_ASSET,
    VARIANT_MARKERS,
)
from .errors import FormatError, IOFailure, MigrationError
from .frontmatter import read_legacy_document
from .paths import check_size, list_tree, require_safe
from .report import RunReport


@dataclass
class SourceImage:
    name: str
    path: pathlib.Path
    size: int


@dataclass
class ImageReference:
    file_path: pathlib.Path
    image_name: str
    alt_text: str
    class_name: Optional[str] = None


@dataclass
class ContentScan:
    references: Dict[str, ImageReference]
    asset_paths: Set[pathlib.Path]


def scan_source_images(
    source_dirs: List[pathlib.Path],
    max_files: int,
    max_image_bytes: int,
    report: RunReport,
) -> Dict[str, SourceImage]:
    """Map image file name to the SourceImage found for it."""
    found: Dict[str, SourceImage] = {}
    for source_dir in source_dirs:
        if not source_dir.is_dir():
            continue
        print(f"Scanning {source_dir} for images...")
        for rel in list_tree(source_dir, max_files):
            try:
                clean = require_safe(rel)
                full = source_dir / clean
                if not full.is_file() or full.suffix.lower() not in IMAGE_EXTS:
                    continue
                size = check_size(full, max_image_bytes)
            except MigrationError as exc:
                report.record(f"{source_dir}/{rel}", exc)
                continue
            name = full.name
            found[name] = SourceImage(name=name, path=full.resolve(), size=size)
            print(f"- found image {name} at {full}")
    return found


def is_external(url: str) -> bool:
    return url.startswith("http")


def is_variant(url: str) -> bool:
    return any(marker in url for marker in VARIANT_MARKERS)


def iter_markdown_images(content: str) -> Iterator[tuple[str, str]]:
    for m in MD_IMAGE.finditer(content):
        yield m.group("alt"), m.group("url")


def iter_html_sources(html: str) -> Iterator[str]:
    """Every URL in src/srcset attributes; srcset entries drop their width."""
    for m in HTML_SRC_OR_SRCSET.finditer(html):
        url = m.group("url")
        if m.group("attr") == "srcset":
            for candidate in url.split(","):
                parts = candidate.split()
                if parts:
                    yield parts[0]
        else:
            yield url


def _cover_html(content: str) -> Optional[str]:
    try:
        fm = read_legacy_document(content).frontmatter
    except FormatError:
        return None
    custom = fm.get("custom")
    cover = fm.get("cover")
    if cover is None and isinstance(custom, dict):
        cover = custom.get("cover")
    return cover if isinstance(cover, str) else None


def processed_asset_paths(
    urls: Iterable[str],
    asset_root: pathlib.Path,
    file_path: pathlib.Path,
    report: RunReport,
) -> Set[pathlib.Path]:
    paths: Set[pathlib.Path] = set()
    for url in urls:
        clean = url[1:] if url.startswith("/") else url
        if not PROCESSED_ASSET.search(clean):
            continue
        try:
            rel = require_safe(clean, allow_relative_up=True)
        except MigrationError as exc:
            report.record(f"{file_path.name}: {clean}", exc)
            continue
        paths.add(asset_root / rel)
    return paths


def scan_content(
    content: str,
    file_path: pathlib.Path,
    sources: Dict[str, SourceImage],
    asset_root: pathlib.Path,
    report: RunReport,
) -> ContentScan:
    references: Dict[str, ImageReference] = {}
    for alt, url in iter_markdown_images(content):
        if is_external(url) or is_variant(url):
            continue
        name = pathlib.PurePosixPath(url).name
        if name not in sources:
            continue
        references[f"{file_path}:{name}"] = ImageReference(
            file_path=file_path,
            image_name=name,
            alt_text=alt,
            class_name="cover" if "cover" in url else None,
        )
        print(f"- markdown image {name} in {file_path.name}")

    assets: Set[pathlib.Path] = set()
    for block in PICTURE_BLOCK.findall(content):
        assets |= processed_asset_paths(
            iter_html_sources(block), asset_root, file_path, report
        )

    cover = _cover_html(content)
    if cover:
        cover_urls = (m.group("src") for m in COVER_SRC.finditer(cover))
        assets |= processed_asset_paths(cover_urls, asset_root, file_path, report)

    if assets:
        print(f"- {len(assets)} existing processed images in {file_path.name}")
    return ContentScan(references=references, asset_paths=assets)


def scan_content_file(
    file_path: pathlib.Path,
    sources: Dict[str, SourceImage],
    asset_root: pathlib.Path,
    max_content_bytes: int,
    report: RunReport,
) -> ContentScan:
    try:
        check_size(file_path, max_content_bytes)
        content = file_path.read_text(encoding="utf-8")
    except MigrationError as exc:
        report.record(file_path, exc)
        return ContentScan(references={}, asset_paths=set())
    except (OSError, UnicodeDecodeError) as exc:
        report.fail(file_path, IOFailure(f"could not read {file_path}: {exc}"))
        return ContentScan(references={}, asset_paths=set())
    return scan_content(content, file_path, sources, asset_root, report)
