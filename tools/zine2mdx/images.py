from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from PIL import Image, UnidentifiedImageError

from .config import IMAGE_SIZES, WEBP_QUALITY
from .errors import TransformFailure


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


@dataclass
class GeneratedAsset:
    path: pathlib.Path
    width: int
    height: int
    tag: str


@dataclass
class ProcessedImage:
    image_id: str
    source: pathlib.Path
    variants: List[GeneratedAsset] = field(default_factory=list)
    class_name: Optional[str] = None

    @property
    def largest(self) -> Optional[GeneratedAsset]:
        return max(self.variants, key=lambda v: v.width, default=None)


def _target_size(size: Tuple[int, int], max_width: int) -> Tuple[int, int]:
    w, h = size
    if w <= max_width:
        return w, h
    return max_width, max(1, round(h * max_width / w))


def _webp_ready(im: Image.Image) -> Image.Image:
    has_alpha = ("A" in im.mode) or (im.info.get("transparency") is not None)
    if has_alpha:
        return im.convert("RGBA")
    return im.convert("RGB")


class ImageTransformer:
    """
    Writes `<id>-<tag>.webp` for every configured width into `output_dir`.

    Variants never upscale. Every written path is added to
    `referenced_files` so the manifest can pick it up.
    """

    def __init__(
        self,
        output_dir: pathlib.Path,
        sizes: Tuple[Tuple[str, int], ...] = IMAGE_SIZES,
        quality: int = WEBP_QUALITY,
    ) -> None:
        self.output_dir = output_dir
        self.sizes = sizes
        self.quality = quality
        self.referenced_files: Set[pathlib.Path] = set()

    def variant_path(self, image_id: str, tag: str) -> pathlib.Path:
        return self.output_dir / f"{image_id}-{tag}.webp"

    def process(
        self,
        source: pathlib.Path,
        image_id: str,
        class_name: Optional[str] = None,
    ) -> ProcessedImage:
        result = ProcessedImage(image_id=image_id, source=source, class_name=class_name)
        try:
            with Image.open(source) as im:
                im.seek(0)
                base = _webp_ready(im)
        except (OSError, UnidentifiedImageError) as exc:
            raise TransformFailure(f"could not open {source}: {exc}") from exc

        ensure_dir(self.output_dir)
        for tag, max_width in self.sizes:
            width, height = _target_size(base.size, max_width)
            out = self.variant_path(image_id, tag)
            variant = base if (width, height) == base.size else base.resize(
                (width, height), Image.Resampling.LANCZOS
            )
            try:
                variant.save(out, format="WEBP", quality=self.quality, method=6)
            except (OSError, ValueError) as exc:
                raise TransformFailure(f"could not write {out}: {exc}") from exc
            self.referenced_files.add(out)
            result.variants.append(GeneratedAsset(path=out, width=width, height=height, tag=tag))
        return result
