from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .config import COVER_SRC, DEFAULT_AUTHOR, ZINE_DOCUMENT
from .errors import FormatError
from .utils import Timestamp, _norm_text, iso_timestamp, yaml_frontmatter_block

_STRING_QUOTES = re.compile(r'^"|",$|"$')
_ARRAY_BRACKETS = re.compile(r"^\[|\],$|\]$")
_ITEM_QUOTES = re.compile(r'^"|"$')
_ZINE_DATE = re.compile(r'^@date\(\s*"(?P<value>[^"]*)"\s*\)$')


@dataclass
class LegacyDocument:
    raw: str
    frontmatter: Dict[str, Any]
    body: str


@dataclass
class AstroFrontmatter:
    title: str
    date: datetime
    description: str = ""
    author: str = DEFAULT_AUTHOR
    tags: List[str] = field(default_factory=list)
    cover: Optional[str] = None
    preview: Optional[str] = None
    featured: bool = False
    draft: bool = False

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "date": Timestamp(iso_timestamp(self.date)),
            "author": self.author,
            "tags": list(self.tags),
        }
        if self.cover:
            data["cover"] = self.cover
        if self.preview:
            data["preview"] = self.preview
        data["featured"] = self.featured
        data["draft"] = self.draft
        return data

    def render(self) -> str:
        return yaml_frontmatter_block(self.as_dict())


def split_document(text: str) -> Tuple[str, str]:
    """Return (frontmatter block, body) of a `---` delimited document."""
    m = ZINE_DOCUMENT.match(_norm_text(text))
    if not m:
        raise FormatError("Invalid frontmatter format")
    return m.group("frontmatter"), m.group("body")


def _parse_value(value: str) -> Any:
    if value.startswith('"') and (value.endswith('",') or value.endswith('"')):
        return _STRING_QUOTES.sub("", value)
    if value.startswith("[") and (value.endswith("],") or value.endswith("]")):
        inner = _ARRAY_BRACKETS.sub("", value)
        items = (_ITEM_QUOTES.sub("", item.strip()) for item in inner.split(","))
        return [item for item in items if item]
    if value in ("true", "true,"):
        return True
    if value in ("false", "false,"):
        return False
    return re.sub(r",$", "", value)


def parse_zine_frontmatter(block: str) -> Dict[str, Any]:
    """
    Parse Zine's `.key = value` frontmatter into nested dicts.

    `.key = {` opens a nested object and `},` closes it. A stray `},`
    with nothing open falls back to the root object instead of failing.
    """
    root: Dict[str, Any] = {}
    current = root
    stack: List[Dict[str, Any]] = []

    for line in block.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.startswith(".") and " = " in trimmed:
            key, value = trimmed.split(" = ", 1)
            key = key[1:]
            if value == "{":
                current[key] = {}
                stack.append(current)
                current = current[key]
            else:
                current[key] = _parse_value(value)
        elif trimmed == "},":
            current = stack.pop() if stack else root
    return root


def read_legacy_document(text: str) -> LegacyDocument:
    block, body = split_document(text)
    return LegacyDocument(raw=text, frontmatter=parse_zine_frontmatter(block), body=body)


def parse_date(value: Any) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise FormatError(f"missing or non-text date: {value!r}")
    s = value.strip()
    m = _ZINE_DATE.match(s)
    if m:
        s = m.group("value").strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError as exc:
        raise FormatError(f"invalid date: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_cover(cover_html: Any) -> Optional[str]:
    if not isinstance(cover_html, str):
        return None
    m = COVER_SRC.search(cover_html)
    if not m:
        return None
    return m.group("src").replace("/..", "", 1)


def _flag(value: Any) -> bool:
    return value is True


def _text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise FormatError(f"frontmatter field {key!r} must be text, got {value!r}")


def _tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list) and all(isinstance(t, str) for t in value):
        return list(value)
    raise FormatError(f"frontmatter field 'tags' must be a list of text, got {value!r}")


def to_astro_frontmatter(
    zine: Dict[str, Any], default_author: str = DEFAULT_AUTHOR
) -> AstroFrontmatter:
    title = zine.get("title")
    if not isinstance(title, str) or not title:
        raise FormatError("frontmatter has no title")

    custom = zine.get("custom")
    if not isinstance(custom, dict):
        custom = {}

    if "draft" in zine:
        draft = _flag(zine["draft"])
    else:
        draft = _flag(custom.get("draft"))

    return AstroFrontmatter(
        title=title,
        date=parse_date(zine.get("date")),
        description=_text(zine, "description") or "",
        author=_text(zine, "author") or default_author,
        tags=_tags(zine.get("tags")),
        cover=extract_cover(custom.get("cover")),
        preview=_text(custom, "preview") or None,
        featured=_flag(custom.get("featured")),
        draft=draft,
    )
