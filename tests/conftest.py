from __future__ import annotations

import pathlib

import pytest
from PIL import Image

from zine2mdx.config import ManifestConfig, PipelineConfig

PICTURE = (
    '<picture><source type="image/webp" srcset="/../posts/{slug}/{id}-thumbnail.webp 300w, '
    '/../posts/{slug}/{id}-small.webp 600w," sizes="100vw">'
    '<img src="/../posts/{slug}/{id}-xlarge.webp" alt="{alt}" class=""></picture>'
)


def picture_block(slug: str, image_id: str, alt: str = "Image") -> str:
    return "```html\n" + PICTURE.format(slug=slug, id=image_id, alt=alt) + "\n```"


def write_image(
    path: pathlib.Path, size=(2000, 1000), mode="RGB", alpha: int = 255
) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color=(200, 80, 40, alpha)[: len(mode)]).save(path)
    return path


def legacy_post(title: str = "Hello", date: str = "2020-01-01", body: str = "Body text.\n") -> str:
    return (
        "---\n"
        f'.title = "{title}",\n'
        f'.date = "{date}",\n'
        '.author = "Simon Hartcher",\n'
        '.layout = "post.shtml",\n'
        '.tags = ["a", "b"],\n'
        "---\n\n" + body
    )


@pytest.fixture
def site(tmp_path: pathlib.Path) -> pathlib.Path:
    (tmp_path / "content" / "posts").mkdir(parents=True)
    (tmp_path / "content" / "images").mkdir(parents=True)
    (tmp_path / "assets").mkdir()
    return tmp_path


@pytest.fixture
def config(site: pathlib.Path) -> PipelineConfig:
    return PipelineConfig(root=site, manifest=ManifestConfig(format_command=()))
