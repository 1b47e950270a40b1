from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .config import (
    ASSET_IMPORT_ALIAS,
    BLOG_IMAGE_COMPONENT,
    FENCE,
    FENCE_LANG_ALIASES,
    FENCE_OPEN,
    IMAGE_COMPONENT_IMPORT,
    IMAGE_IMPORT,
    INLINE_CODE,
    INLINE_HTML_TAGS,
    PICTURE_FENCE,
    PICTURE_IMG,
    POSTS_COVER,
    YAML_FRONTMATTER,
)


@dataclass
class RewriteResult:
    text: str
    converted: int = 0


def map_noncode(md: str, fn):
    parts, last = [], 0
    for m in FENCE.finditer(md):
        pre = md[last : m.start()]
        parts.append(fn(pre))
        parts.append(md[m.start() : m.end()])
        last = m.end()
    parts.append(fn(md[last:]))
    return "".join(parts)


def map_noncode_noninline(md: str, fn):
    def _outside_spans(s):
        parts, last = [], 0
        for m in INLINE_CODE.finditer(s):
            parts.append(fn(s[last : m.start()]))
            parts.append(m.group(0))
            last = m.end()
        parts.append(fn(s[last:]))
        return "".join(parts)

    return map_noncode(md, _outside_spans)


def normalize_fence_languages(
    md: str, aliases: Optional[Dict[str, str]] = None
) -> str:
    aliases = FENCE_LANG_ALIASES if aliases is None else aliases

    def _repl(m):
        lang = m.group("lang")
        if lang not in aliases:
            return m.group(0)
        return f"{m.group('ticks')}{aliases[lang]}"

    return FENCE_OPEN.sub(_repl, md)


def clean_image_src(src: str) -> str:
    return src.replace("/..", "", 1).replace("/posts/", "/blog/", 1)


def image_component(
    src: str,
    alt: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> str:
    attrs = [f'src="{src}"', f'alt="{alt}"']
    if width and height:
        attrs += [f"width={{{width}}}", f"height={{{height}}}"]
    return f"<Image {' '.join(attrs)} />"


def convert_picture_blocks(
    md: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> RewriteResult:
    """
    Replace fenced ```html <picture>…</picture>``` blocks with `<Image>`.

    Blocks whose `<img>` has no recognizable src/alt pair are kept as
    they are.
    """
    converted = 0

    def _repl(m):
        nonlocal converted
        img = PICTURE_IMG.search(m.group("picture"))
        if not img:
            return m.group(0)
        converted += 1
        return image_component(
            clean_image_src(img.group("src")), img.group("alt"), width, height
        )

    text = PICTURE_FENCE.sub(_repl, md)
    return RewriteResult(text=text, converted=converted)


def escape_inline_html(md: str, tags: Iterable[str] = INLINE_HTML_TAGS) -> str:
    names = "|".join(re.escape(t) for t in tags)
    if not names:
        return md
    raw_tag = re.compile(rf"</?(?:{names})\b[^>]*>", re.IGNORECASE)

    def _wrap(s):
        return raw_tag.sub(lambda m: f"`{m.group(0)}`", s)

    return map_noncode_noninline(md, _wrap)


def insert_after_frontmatter(text: str, snippet: str) -> str:
    m = YAML_FRONTMATTER.match(text)
    if not m:
        return text
    return text[: m.end()] + snippet + text[m.end() :]


def insert_image_import(text: str) -> str:
    if IMAGE_IMPORT.search(text):
        return text
    return insert_after_frontmatter(text, f"\n{IMAGE_COMPONENT_IMPORT}\n")


def rewrite_body(
    body: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    inline_tags: Iterable[str] = INLINE_HTML_TAGS,
) -> RewriteResult:
    body = normalize_fence_languages(body)
    result = convert_picture_blocks(body, width, height)
    return RewriteResult(
        text=escape_inline_html(result.text, inline_tags),
        converted=result.converted,
    )


def rewrite_document(
    text: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
    inline_tags: Iterable[str] = INLINE_HTML_TAGS,
) -> RewriteResult:
    """Rewrite the body of an MDX document that already has YAML frontmatter."""
    m = YAML_FRONTMATTER.match(text)
    head, body = (text[: m.end()], text[m.end() :]) if m else ("", text)
    result = rewrite_body(body, width, height, inline_tags)
    out = head + result.text
    if result.converted:
        out = insert_image_import(out)
    return RewriteResult(text=out, converted=result.converted)


# ---------- Asset imports


def import_identifier(image_path: str) -> str:
    name = pathlib.PurePosixPath(image_path).name
    stem = re.sub(r"\.(webp|jpg|jpeg|png|gif)$", "", name, flags=re.IGNORECASE)
    ident = re.sub(r"[^a-zA-Z0-9]", "_", stem)
    if not ident or ident[0].isdigit():
        ident = f"img_{ident}"
    return ident


def convert_to_asset_imports(text: str, alias: str = ASSET_IMPORT_ALIAS) -> RewriteResult:
    """
    Point `<Image src="/blog/...">` at imported assets so Astro optimizes them.

    Each distinct image gets one `import x from '@assets/...'` after the
    frontmatter; the component's src becomes `{x}`. Different images that
    would share an identifier get `_2`, `_3`, ... suffixes.
    """
    imports: List[str] = []
    idents: Dict[str, str] = {}

    def _ident_for(path):
        if path in idents:
            return idents[path]
        base = import_identifier(path)
        ident, n = base, 1
        while ident in idents.values():
            n += 1
            ident = f"{base}_{n}"
        idents[path] = ident
        imports.append(f"import {ident} from '{alias}/{path}';")
        return ident

    def _repl(m):
        ident = _ident_for(m.group("path"))
        return f'<Image src={{{ident}}} alt="{m.group("alt")}" />'

    converted = BLOG_IMAGE_COMPONENT.sub(_repl, text)
    if not imports:
        return RewriteResult(text=text)

    snippet = ""
    if not IMAGE_IMPORT.search(converted):
        snippet += f"\n{IMAGE_COMPONENT_IMPORT}\n"
    snippet += "\n".join(imports) + "\n"
    return RewriteResult(
        text=insert_after_frontmatter(converted, snippet), converted=len(imports)
    )


def fix_cover_paths(text: str) -> str:
    return POSTS_COVER.sub(lambda m: f'cover: "/blog/{m.group("path")}"', text)
