#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

# ---------- Defaults

CONFIG_FILE_NAME = "zine2mdx.yml"

CONTENT_DIR = "content"
POSTS_DIR = "content/posts"
PAGE_FILES = ("about.smd", "contact.smd", "index.smd")
MIGRATE_PAGE_FILES = ("about.smd", "contact.smd")
ASSET_ROOT = "assets"
SOURCE_IMAGE_DIRS = (
    "content/images",
    "content/posts/images",
    "content/pages/images",
)
BLOG_OUT = "src/content/blog"
PAGES_OUT = "src/content/pages"
DEFAULT_AUTHOR = "Simon Hartcher"

LEGACY_SUFFIX = ".smd"
CONVERTED_SUFFIX = ".mdx"

MAX_CONTENT_BYTES = 50 * 1024 * 1024
MAX_IMAGE_BYTES = 100 * 1024 * 1024
MAX_FILES = 1000

IMAGE_SIZES = (
    ("thumbnail", 300),
    ("small", 600),
    ("medium", 900),
    ("large", 1200),
    ("xlarge", 1800),
)
WEBP_QUALITY = 80
COMPONENT_SIZE = (800, 533)

MANIFEST_PATH = "assets.zig"
STATIC_ASSETS = (
    "styles.css",
    "styles.min.css",
    "pico.violet.min.css",
    "main.min.js",
)
MANIFEST_FORMAT_COMMAND = ("zig", "fmt")

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
VARIANT_MARKERS = ("-thumbnail", "-small")

# Zine marks raw HTML blocks with "=html"; MDX wants the plain name.
FENCE_LANG_ALIASES = {"=html": "html"}
INLINE_HTML_TAGS = ("script", "style", "head", "body", "html", "template")

IMAGE_COMPONENT_IMPORT = "import { Image } from 'astro:assets';"
ASSET_IMPORT_ALIAS = "@assets"

# Some shared regexes

ZINE_DOCUMENT = re.compile(
    r"\A---\n(?P<frontmatter>.*?)\n---(?:\n\n?|\Z)(?P<body>.*)\Z", re.DOTALL
)
YAML_FRONTMATTER = re.compile(r"\A---\n.*?\n---\n", re.DOTALL)
MD_IMAGE = re.compile(r"!\[(?P<alt>[^\]]*)\]\((?P<url>[^)]+)\)")
PICTURE_BLOCK = re.compile(r"<picture[^>]*>[\s\S]*?</picture>")
PICTURE_FENCE = re.compile(r"```html\n(?P<picture><picture>.*?</picture>)\n```")
PICTURE_IMG = re.compile(r'<img src="(?P<src>[^"]*)"[^>]*alt="(?P<alt>[^"]*)"[^>]*>')
HTML_SRC_OR_SRCSET = re.compile(
    r'\b(?P<attr>src|srcset)\s*=\s*([\'"])(?P<url>[^\'"]*)\2'
)
COVER_SRC = re.compile(r"""src=(['"])(?P<src>[^'"]*)\1""")
PROCESSED_ASSET = re.compile(r"posts[^'\"]*\.webp$")
FENCE = re.compile(r"(^```.*?$)(.*?)(^```$)", re.MULTILINE | re.DOTALL)
FENCE_OPEN = re.compile(r"^(?P<ticks>```)(?P<lang>[^\s`]+)[ \t]*$", re.MULTILINE)
INLINE_CODE = re.compile(r"`[^`\n]*`")
IMAGE_IMPORT = re.compile(r"import.*Image.*from.*astro:assets")
BLOG_IMAGE_COMPONENT = re.compile(
    r'<Image\s+src="/blog/(?P<path>[^"]+)"\s+alt="(?P<alt>[^"]*)"\s*'
    r"(?:width=\{[^}]+\}\s*)?(?:height=\{[^}]+\}\s*)?/>"
)
POSTS_COVER = re.compile(r"""cover:\s*["']/posts/(?P<path>[^"']+)["']""")


# ---------- Config objects


@dataclass
class LimitConfig:
    max_content_bytes: int = MAX_CONTENT_BYTES
    max_image_bytes: int = MAX_IMAGE_BYTES
    max_files: int = MAX_FILES


@dataclass
class ImageConfig:
    sizes: Tuple[Tuple[str, int], ...] = IMAGE_SIZES
    quality: int = WEBP_QUALITY
    component_width: Optional[int] = COMPONENT_SIZE[0]
    component_height: Optional[int] = COMPONENT_SIZE[1]


@dataclass
class ManifestConfig:
    path: pathlib.Path = pathlib.Path(MANIFEST_PATH)
    static_assets: Tuple[str, ...] = STATIC_ASSETS
    format_command: Tuple[str, ...] = MANIFEST_FORMAT_COMMAND


@dataclass
class PipelineConfig:
    """Directories, limits and switches for one migration or image run."""

    root: pathlib.Path = field(default_factory=pathlib.Path.cwd)
    content_dir: pathlib.Path = pathlib.Path(CONTENT_DIR)
    posts_dir: pathlib.Path = pathlib.Path(POSTS_DIR)
    pages: Tuple[str, ...] = PAGE_FILES
    migrate_pages: Tuple[str, ...] = MIGRATE_PAGE_FILES
    asset_root: pathlib.Path = pathlib.Path(ASSET_ROOT)
    source_image_dirs: Tuple[pathlib.Path, ...] = tuple(
        pathlib.Path(p) for p in SOURCE_IMAGE_DIRS
    )
    blog_out: pathlib.Path = pathlib.Path(BLOG_OUT)
    pages_out: pathlib.Path = pathlib.Path(PAGES_OUT)
    default_author: str = DEFAULT_AUTHOR
    cleanup_stale_assets: bool = False
    limits: LimitConfig = field(default_factory=LimitConfig)
    images: ImageConfig = field(default_factory=ImageConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)

    def resolve(self, p: pathlib.Path) -> pathlib.Path:
        return p if p.is_absolute() else self.root / p

    @property
    def asset_dir(self) -> pathlib.Path:
        return self.resolve(self.asset_root)

    @property
    def manifest_file(self) -> pathlib.Path:
        return self.resolve(self.manifest.path)


def _paths(value: Any, default: Tuple[pathlib.Path, ...]) -> Tuple[pathlib.Path, ...]:
    if not value:
        return default
    if isinstance(value, str):
        return (pathlib.Path(value),)
    return tuple(pathlib.Path(str(v)) for v in value)


def _strings(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _build_limits(data: Optional[Mapping[str, Any]]) -> LimitConfig:
    if not data:
        return LimitConfig()
    return LimitConfig(
        max_content_bytes=int(data.get("max_content_bytes", MAX_CONTENT_BYTES)),
        max_image_bytes=int(data.get("max_image_bytes", MAX_IMAGE_BYTES)),
        max_files=int(data.get("max_files", MAX_FILES)),
    )


def _build_images(data: Optional[Mapping[str, Any]]) -> ImageConfig:
    if not data:
        return ImageConfig()
    sizes = data.get("sizes")
    return ImageConfig(
        sizes=(
            tuple((str(k), int(v)) for k, v in sizes.items())
            if isinstance(sizes, Mapping)
            else IMAGE_SIZES
        ),
        quality=int(data.get("quality", WEBP_QUALITY)),
        component_width=data.get("component_width", COMPONENT_SIZE[0]),
        component_height=data.get("component_height", COMPONENT_SIZE[1]),
    )


def _build_manifest(data: Optional[Mapping[str, Any]]) -> ManifestConfig:
    if not data:
        return ManifestConfig()
    return ManifestConfig(
        path=pathlib.Path(str(data.get("path", MANIFEST_PATH))),
        static_assets=_strings(data.get("static_assets"), STATIC_ASSETS),
        format_command=_strings(data.get("format_command"), MANIFEST_FORMAT_COMMAND),
    )


def build_config(data: Mapping[str, Any], root: pathlib.Path) -> PipelineConfig:
    return PipelineConfig(
        root=root,
        content_dir=pathlib.Path(str(data.get("content_dir", CONTENT_DIR))),
        posts_dir=pathlib.Path(str(data.get("posts_dir", POSTS_DIR))),
        pages=_strings(data.get("pages"), PAGE_FILES),
        migrate_pages=_strings(data.get("migrate_pages"), MIGRATE_PAGE_FILES),
        asset_root=pathlib.Path(str(data.get("asset_root", ASSET_ROOT))),
        source_image_dirs=_paths(
            data.get("source_image_dirs"),
            tuple(pathlib.Path(p) for p in SOURCE_IMAGE_DIRS),
        ),
        blog_out=pathlib.Path(str(data.get("blog_out", BLOG_OUT))),
        pages_out=pathlib.Path(str(data.get("pages_out", PAGES_OUT))),
        default_author=str(data.get("default_author", DEFAULT_AUTHOR)),
        cleanup_stale_assets=bool(data.get("cleanup_stale_assets", False)),
        limits=_build_limits(data.get("limits")),
        images=_build_images(data.get("images")),
        manifest=_build_manifest(data.get("manifest")),
    )


def read_yaml(path: pathlib.Path) -> Dict[str, Any]:
    if path.exists():
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return {}


def load_config(path: Optional[pathlib.Path] = None) -> PipelineConfig:
    """
    Read `zine2mdx.yml` (or `path`) into a PipelineConfig.

    Relative paths in the file are anchored at the file's directory; with
    no file at all every default is anchored at the working directory.
    """
    cfg_path = path or (pathlib.Path.cwd() / CONFIG_FILE_NAME)
    data: Dict[str, Any] = read_yaml(cfg_path)
    root = cfg_path.resolve().parent if cfg_path.exists() else pathlib.Path.cwd()
    return build_config(data, root)
