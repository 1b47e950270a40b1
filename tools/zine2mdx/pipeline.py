"""
Image pipeline: source images + content references -> WebP variants -> manifest.

All state for a run lives on one ImageRun; nothing is shared between runs.
Stages run in order and each one only adds to the run's maps and sets:

1. snapshot files already under the asset root
2. scan source-image directories
3. scan content files for markdown images, <picture> blocks and covers
4. transform each distinct referenced image once
5. add parent directories, report (or perform) cleanup
6. write the manifest
"""

from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from typing import Dict, List, Set

from .config import LEGACY_SUFFIX, PipelineConfig
from .errors import IOFailure, MigrationError
from .images import ImageTransformer, ProcessedImage
from .manifest import add_parent_dirs, emit_manifest
from .report import RunReport
from .scanner import (
    ImageReference,
    SourceImage,
    scan_content_file,
    scan_source_images,
)
from .utils import sorted_files


@dataclass
class ImageRun:
    config: PipelineConfig
    report: RunReport = field(default_factory=lambda: RunReport("images"))
    existing_files: Set[pathlib.Path] = field(default_factory=set)
    sources: Dict[str, SourceImage] = field(default_factory=dict)
    references: Dict[str, ImageReference] = field(default_factory=dict)
    processed: Dict[str, ProcessedImage] = field(default_factory=dict)
    referenced_files: Set[pathlib.Path] = field(default_factory=set)
    manifest: List[str] = field(default_factory=list)

    # ---------- stages

    def snapshot_existing(self) -> None:
        asset_dir = self.config.asset_dir
        if not asset_dir.is_dir():
            return
        self.existing_files = {p for p in asset_dir.rglob("*") if p.is_file()}

    def seed_static_assets(self) -> None:
        for name in self.config.manifest.static_assets:
            self.referenced_files.add(self.config.asset_dir / name)

    def scan_sources(self) -> None:
        dirs = [self.config.resolve(d) for d in self.config.source_image_dirs]
        self.sources = scan_source_images(
            dirs,
            self.config.limits.max_files,
            self.config.limits.max_image_bytes,
            self.report,
        )

    def content_files(self) -> List[pathlib.Path]:
        posts_dir = self.config.resolve(self.config.posts_dir)
        posts: List[pathlib.Path] = []
        if posts_dir.is_dir():
            posts = sorted_files(
                p for p in posts_dir.iterdir() if p.is_file() and p.suffix == LEGACY_SUFFIX
            )
        content_dir = self.config.resolve(self.config.content_dir)
        pages = [content_dir / name for name in self.config.pages]
        return [p for p in posts + pages if p.exists()]

    def scan_references(self) -> None:
        files = self.content_files()
        print(f"Processing {len(files)} content files...")
        for path in files:
            scan = scan_content_file(
                path,
                self.sources,
                self.config.asset_dir,
                self.config.limits.max_content_bytes,
                self.report,
            )
            self.references.update(scan.references)
            self.referenced_files |= scan.asset_paths
        print(f"Found {len(self.references)} image references to process")

    def output_dir_for(self, content_file: pathlib.Path) -> pathlib.Path:
        asset_dir = self.config.asset_dir
        posts_dir = self.config.resolve(self.config.posts_dir).resolve()
        if content_file.resolve().parent == posts_dir:
            return asset_dir / "posts" / content_file.stem
        if content_file.stem == "index":
            return asset_dir / "images"
        return asset_dir / content_file.stem

    def transform(self) -> None:
        images = self.config.images
        for ref in self.references.values():
            if ref.image_name in self.processed:
                continue
            source = self.sources.get(ref.image_name)
            if source is None:
                print(f"! source image not found: {ref.image_name}")
                continue
            print(f"Processing image: {ref.image_name}")
            transformer = ImageTransformer(
                self.output_dir_for(ref.file_path), images.sizes, images.quality
            )
            try:
                result = transformer.process(
                    source.path, pathlib.PurePath(ref.image_name).stem, ref.class_name
                )
            except MigrationError as exc:
                self.report.record(ref.image_name, exc)
                continue
            self.processed[ref.image_name] = result
            self.referenced_files |= transformer.referenced_files
            largest = result.largest
            size = f" ({largest.width}x{largest.height})" if largest else ""
            print(f"✓ processed {ref.image_name}{size}")
            self.report.ok()

    def cleanup(self) -> None:
        stale = sorted(self.existing_files - self.referenced_files)
        if not self.config.cleanup_stale_assets:
            print(
                f"- skipping cleanup, found {len(self.existing_files)} existing files, "
                f"referenced {len(self.referenced_files)} files"
            )
            return
        for path in stale:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.report.fail(path, IOFailure(f"could not remove {path}: {exc}"))
                continue
            print(f"- removed stale asset {path}")

    def write_manifest(self) -> None:
        self.manifest = emit_manifest(
            self.referenced_files,
            self.config.asset_dir,
            self.config.manifest_file,
            self.config.manifest.format_command,
        )

    # ---------- driver

    def run(self) -> RunReport:
        self.config.asset_dir.mkdir(parents=True, exist_ok=True)
        print("Starting local image processing...")
        self.snapshot_existing()
        self.seed_static_assets()
        self.scan_sources()
        self.scan_references()
        self.transform()
        add_parent_dirs(self.referenced_files)
        self.cleanup()
        try:
            self.write_manifest()
        except MigrationError as exc:
            self.report.record(self.config.manifest_file, exc)
        print(self.report.summary())
        return self.report


def process_images(config: PipelineConfig) -> RunReport:
    return ImageRun(config).run()
