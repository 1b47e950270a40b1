from __future__ import annotations

import json
import pathlib
import subprocess
from typing import Iterable, List, Sequence, Set

from .errors import IOFailure
from .paths import is_within
from .utils import run

MANIFEST_HEADER = "pub const assets = [_][]const u8{"
MANIFEST_FOOTER = "};"


def add_parent_dirs(referenced: Set[pathlib.Path]) -> None:
    referenced |= {p.parent for p in list(referenced)}


def manifest_entries(
    referenced: Iterable[pathlib.Path], asset_root: pathlib.Path
) -> List[str]:
    """Asset-root relative POSIX paths of referenced regular files, sorted."""
    root = asset_root.resolve()
    entries = set()
    for p in referenced:
        path = p if p.is_absolute() else pathlib.Path.cwd() / p
        if not is_within(path, root):
            continue
        if not path.is_file():
            continue
        entries.add(path.resolve().relative_to(root).as_posix())
    return sorted(entries)


def render_manifest(entries: Sequence[str]) -> str:
    body = "".join(f"{json.dumps(e)}," for e in entries)
    return f"{MANIFEST_HEADER}{body}{MANIFEST_FOOTER}"


def format_manifest(path: pathlib.Path, command: Sequence[str]) -> None:
    if not command:
        return
    try:
        run([*command, path], cwd=path.parent)
    except (OSError, subprocess.CalledProcessError) as exc:
        print(f"! could not format {path.name}: {exc}")
        return
    print(f"✓ formatted {path.name}")


def emit_manifest(
    referenced: Iterable[pathlib.Path],
    asset_root: pathlib.Path,
    out_path: pathlib.Path,
    format_command: Sequence[str] = (),
) -> List[str]:
    print(f"Generating {out_path.name}...")
    entries = manifest_entries(referenced, asset_root)
    for entry in entries:
        print(f"- adding asset {entry}")
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(render_manifest(entries), encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"could not write {out_path}: {exc}") from exc
    format_manifest(out_path, format_command)
    return entries
