import pytest
from conftest import write_image
from PIL import Image

from zine2mdx.errors import TransformFailure
from zine2mdx.images import ImageTransformer


def test_variants_for_every_size(tmp_path):
    src = write_image(tmp_path / "src" / "photo.png", size=(2000, 1000))
    out = tmp_path / "assets" / "posts" / "p"
    transformer = ImageTransformer(out)
    result = transformer.process(src, "photo")

    assert [v.tag for v in result.variants] == [
        "thumbnail",
        "small",
        "medium",
        "large",
        "xlarge",
    ]
    thumb = out / "photo-thumbnail.webp"
    with Image.open(thumb) as im:
        assert im.format == "WEBP"
        assert im.size == (300, 150)
    assert result.largest.width == 1800
    assert transformer.referenced_files == {v.path for v in result.variants}


def test_small_sources_are_not_upscaled(tmp_path):
    src = write_image(tmp_path / "tiny.png", size=(500, 250))
    result = ImageTransformer(tmp_path / "out").process(src, "tiny")
    sizes = {v.tag: (v.width, v.height) for v in result.variants}
    assert sizes["thumbnail"] == (300, 150)
    assert sizes["small"] == (500, 250)
    assert sizes["xlarge"] == (500, 250)
    with Image.open(tmp_path / "out" / "tiny-xlarge.webp") as im:
        assert im.size == (500, 250)


def test_alpha_channel_survives(tmp_path):
    src = write_image(tmp_path / "logo.png", size=(400, 400), mode="RGBA", alpha=128)
    ImageTransformer(tmp_path / "out", sizes=(("small", 200),)).process(src, "logo")
    with Image.open(tmp_path / "out" / "logo-small.webp") as im:
        assert im.mode == "RGBA"


def test_unreadable_source_is_a_transform_failure(tmp_path):
    src = tmp_path / "broken.png"
    src.write_bytes(b"not an image")
    transformer = ImageTransformer(tmp_path / "out")
    with pytest.raises(TransformFailure) as excinfo:
        transformer.process(src, "broken")
    assert excinfo.value.code == "TRANSFORM"
    assert transformer.referenced_files == set()
