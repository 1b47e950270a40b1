from __future__ import annotations

import pathlib
import posixpath
import re
from typing import List, Sequence, TypeVar

from .errors import IOFailure, PathSafetyViolation, SizeLimitExceeded

T = TypeVar("T")

_LEADING_UP = re.compile(r"^\.\./")


def _is_absolute(path: str) -> bool:
    return (
        pathlib.PurePosixPath(path).is_absolute()
        or pathlib.PureWindowsPath(path).is_absolute()
    )


def is_path_safe(path: str, allow_relative_up: bool = False) -> bool:
    """
    Gate for paths coming from directory listings or from content.

    Strict mode (the default) is for freshly enumerated files: any `..`
    segment is refused. `allow_relative_up` is for URLs already embedded
    in legacy HTML, which legitimately climb one level (`../posts/...`);
    two consecutive `..` segments are still refused, whatever separators
    or `.` segments sit between them.
    """
    if "\0" in path:
        return False
    if _is_absolute(path):
        return False
    segments = [s for s in re.split(r"[/\\]", path) if s not in ("", ".")]
    if allow_relative_up:
        if any(a == b == ".." for a, b in zip(segments, segments[1:])):
            return False
        clean = sanitize_path(path)
        return clean != ".." and not clean.startswith("../")
    return ".." not in segments


def sanitize_path(path: str) -> str:
    normalized = posixpath.normpath(path.replace("\\", "/"))
    return _LEADING_UP.sub("", normalized, count=1)


def require_safe(path: str, allow_relative_up: bool = False) -> str:
    if not is_path_safe(path, allow_relative_up):
        raise PathSafetyViolation(f"potentially unsafe path: {path!r}")
    return sanitize_path(path)


def check_size(path: pathlib.Path, max_bytes: int) -> int:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise IOFailure(f"could not stat {path}: {exc}") from exc
    if size > max_bytes:
        raise SizeLimitExceeded(
            f"{path.name} is {size} bytes (limit {max_bytes // 1024 // 1024}MB)"
        )
    return size


def limit_entries(entries: Sequence[T], max_files: int, where: object) -> List[T]:
    if len(entries) > max_files:
        print(
            f"! {where} contains {len(entries)} files, "
            f"processing first {max_files}"
        )
    return list(entries[:max_files])


def list_tree(directory: pathlib.Path, max_files: int) -> List[str]:
    """Relative POSIX paths under `directory`, sorted, capped at `max_files`."""
    entries = sorted(
        p.relative_to(directory).as_posix() for p in directory.rglob("*")
    )
    return limit_entries(entries, max_files, directory)


def is_within(path: pathlib.Path, root: pathlib.Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True
