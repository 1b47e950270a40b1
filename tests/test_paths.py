import pytest

from zine2mdx.errors import IOFailure, PathSafetyViolation, SizeLimitExceeded
from zine2mdx.paths import (
    check_size,
    is_path_safe,
    is_within,
    limit_entries,
    list_tree,
    require_safe,
    sanitize_path,
)


@pytest.mark.parametrize(
    "path",
    ["../../etc/passwd", "../img.png", "a/../b.png", "/etc/passwd", "C:\\x.png", "a\0.png", "a\\..\\b.png"],
)
def test_strict_rejects(path):
    assert not is_path_safe(path)


@pytest.mark.parametrize("path", ["img.png", "posts/2020/img.webp", "weird..name.png"])
def test_strict_accepts(path):
    assert is_path_safe(path)


def test_relaxed_allows_one_level_up():
    assert is_path_safe("../posts/img.webp", allow_relative_up=True)
    assert not is_path_safe("../../../posts/img.webp", allow_relative_up=True)
    assert not is_path_safe("..\\..\\posts\\img.webp", allow_relative_up=True)
    assert not is_path_safe("/posts/img.webp", allow_relative_up=True)
    assert not is_path_safe("../posts/\0img.webp", allow_relative_up=True)


@pytest.mark.parametrize(
    "path",
    ["..\\../posts/x.webp", "../\\../posts/x.webp", "./.././../posts/x.webp", "../posts/../../x.webp", ".."],
)
def test_relaxed_rejects_mixed_double_traversal(path):
    assert not is_path_safe(path, allow_relative_up=True)
    with pytest.raises(PathSafetyViolation):
        require_safe(path, allow_relative_up=True)


def test_sanitize_path():
    assert sanitize_path("../posts/img.webp") == "posts/img.webp"
    assert sanitize_path("posts/./a/../img.webp") == "posts/img.webp"
    assert sanitize_path("posts\\img.webp") == "posts/img.webp"


def test_require_safe():
    assert require_safe("../posts/a.webp", allow_relative_up=True) == "posts/a.webp"
    with pytest.raises(PathSafetyViolation):
        require_safe("../posts/a.webp")


def test_check_size(tmp_path):
    f = tmp_path / "a.txt"
    f.write_bytes(b"x" * 10)
    assert check_size(f, 10) == 10
    with pytest.raises(SizeLimitExceeded):
        check_size(f, 9)
    with pytest.raises(IOFailure):
        check_size(tmp_path / "missing.txt", 10)


def test_limit_entries_keeps_first_n(capsys):
    assert limit_entries(["a", "b", "c"], 2, "dir") == ["a", "b"]
    assert "processing first 2" in capsys.readouterr().out
    assert limit_entries(["a"], 2, "dir") == ["a"]


def test_list_tree_sorted_and_truncated(tmp_path):
    for name in ["c.png", "a.png", "sub/b.png"]:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(b"")
    assert list_tree(tmp_path, 10) == ["a.png", "c.png", "sub", "sub/b.png"]
    assert list_tree(tmp_path, 2) == ["a.png", "c.png"]


def test_is_within(tmp_path):
    assert is_within(tmp_path / "assets" / "a.webp", tmp_path / "assets")
    assert not is_within(tmp_path / "other" / "a.webp", tmp_path / "assets")
    assert not is_within(tmp_path / "assets" / ".." / "a.webp", tmp_path / "assets")
