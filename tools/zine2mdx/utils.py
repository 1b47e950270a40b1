from __future__ import annotations

import pathlib
import re
import subprocess
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import yaml
from yaml.nodes import MappingNode, ScalarNode


def run(cmd, cwd=None):
    print("+", " ".join(str(c) for c in cmd), "[cwd=" + str(cwd or pathlib.Path.cwd()) + "]")
    subprocess.check_call([str(c) for c in cmd], cwd=str(cwd) if cwd else None)


def natural_key(s: str):
    return [int(t) if t.isdigit() else t for t in re.split(r'(\d+)', s.lower())]


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def iso_timestamp(value: datetime) -> str:
    """Render like JavaScript's Date.toISOString(): UTC, milliseconds, `Z`."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# ---------- YAML frontmatter


class Timestamp(str):
    """An ISO timestamp that should be emitted as a plain YAML scalar."""


class Frontmatter(dict):
    """Ordered frontmatter mapping emitted with bare keys."""


class _FrontmatterDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper, data):
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


def _represent_timestamp(dumper, data):
    return dumper.represent_scalar("tag:yaml.org,2002:timestamp", str(data))


def _represent_list(dumper, data):
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


def _represent_frontmatter(dumper, data):
    pairs = [
        (ScalarNode("tag:yaml.org,2002:str", str(key)), dumper.represent_data(value))
        for key, value in data.items()
    ]
    return MappingNode("tag:yaml.org,2002:map", pairs, flow_style=False)


_FrontmatterDumper.add_representer(str, _represent_str)
_FrontmatterDumper.add_representer(Timestamp, _represent_timestamp)
_FrontmatterDumper.add_representer(list, _represent_list)
_FrontmatterDumper.add_representer(Frontmatter, _represent_frontmatter)


def yaml_frontmatter_block(data: Dict[str, Any]) -> str:
    dumped = yaml.dump(
        Frontmatter(data),
        Dumper=_FrontmatterDumper,
        sort_keys=False,
        allow_unicode=True,
        width=4096,
    ).rstrip()
    return f"---\n{dumped}\n---\n\n"


# ---------- Files


def write_if_changed(path: pathlib.Path, text: str) -> bool:
    """Write `text` unless the file already holds exactly that. True if written."""
    if path.exists() and path.read_text(encoding="utf-8") == text:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return True


def sorted_files(paths: Iterable[pathlib.Path]) -> List[pathlib.Path]:
    return sorted(paths, key=lambda p: natural_key(p.name))
