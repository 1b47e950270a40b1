from datetime import datetime, timezone

import pytest
import yaml

from zine2mdx.errors import FormatError
from zine2mdx.frontmatter import (
    extract_cover,
    parse_date,
    parse_zine_frontmatter,
    split_document,
    to_astro_frontmatter,
)


def test_nested_object_then_sibling_key():
    block = '.a = {\n.b = "x"\n},\n.c = "y"'
    assert parse_zine_frontmatter(block) == {"a": {"b": "x"}, "c": "y"}


def test_value_kinds():
    block = "\n".join(
        [
            '.title = "Adventures = fun",',
            '.tags = ["zig", "gamedev"],',
            ".aliases = [],",
            ".draft = true,",
            ".featured = false",
            '.date = @date("2025-03-27T00:00:00"),',
            "",
            '.layout = "post.shtml",',
        ]
    )
    fm = parse_zine_frontmatter(block)
    assert fm["title"] == "Adventures = fun"
    assert fm["tags"] == ["zig", "gamedev"]
    assert fm["aliases"] == []
    assert fm["draft"] is True
    assert fm["featured"] is False
    assert fm["date"] == '@date("2025-03-27T00:00:00")'
    assert fm["layout"] == "post.shtml"


def test_stray_close_returns_to_root():
    block = '},\n.a = "1",\n.b = {\n.c = "2",\n},\n},\n.d = "3",'
    assert parse_zine_frontmatter(block) == {"a": "1", "b": {"c": "2"}, "d": "3"}


@pytest.mark.parametrize("sep", ["\n", "\n\n"])
def test_split_document_accepts_one_or_two_newlines(sep):
    block, body = split_document(f'---\n.title = "x",\n---{sep}Body\n')
    assert block == '.title = "x",'
    assert body == "Body\n"


def test_split_document_normalizes_crlf():
    block, body = split_document('---\r\n.title = "x",\r\n---\r\n\r\nBody\r\n')
    assert block == '.title = "x",'
    assert body == "Body\n"


def test_split_document_without_delimiters():
    with pytest.raises(FormatError):
        split_document("# just markdown\n")


def test_defaults_when_fields_missing():
    fm = to_astro_frontmatter({"title": "T", "date": "2020-01-01"}, default_author="Someone")
    assert fm.description == ""
    assert fm.author == "Someone"
    assert fm.tags == []
    assert fm.featured is False
    assert fm.draft is False
    assert fm.cover is None
    assert fm.preview is None


def test_custom_block_fields():
    fm = to_astro_frontmatter(
        {
            "title": "T",
            "date": "2020-01-01",
            "draft": True,
            "custom": {
                "cover": "<img src='/../posts/p/cover-xlarge.webp' alt=''>",
                "preview": "/posts/p/preview.webp",
                "featured": True,
            },
        }
    )
    assert fm.cover == "/posts/p/cover-xlarge.webp"
    assert fm.preview == "/posts/p/preview.webp"
    assert fm.featured is True
    assert fm.draft is True


def test_draft_falls_back_to_custom_block():
    fm = to_astro_frontmatter(
        {"title": "T", "date": "2020-01-01", "custom": {"draft": True}}
    )
    assert fm.draft is True


def test_cover_without_src_is_left_unset():
    assert extract_cover("<picture></picture>") is None
    assert extract_cover(None) is None


def test_missing_title_is_a_format_error():
    with pytest.raises(FormatError):
        to_astro_frontmatter({"date": "2020-01-01"})


@pytest.mark.parametrize("value", [None, "", "next tuesday", "2020-13-45"])
def test_bad_dates_are_format_errors(value):
    with pytest.raises(FormatError):
        parse_date(value)


def test_date_forms():
    assert parse_date("2020-01-01") == datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert parse_date('@date("2020-06-03T10:30:00")') == datetime(
        2020, 6, 3, 10, 30, tzinfo=timezone.utc
    )
    assert parse_date("2020-06-03T10:30:00Z") == datetime(
        2020, 6, 3, 10, 30, tzinfo=timezone.utc
    )


def test_render_is_yaml_with_quoted_strings():
    fm = to_astro_frontmatter(
        {"title": "Hello", "date": "2020-01-01", "tags": ["a", "b"]},
        default_author="Simon Hartcher",
    )
    assert fm.render() == (
        "---\n"
        'title: "Hello"\n'
        'description: ""\n'
        "date: 2020-01-01T00:00:00.000Z\n"
        'author: "Simon Hartcher"\n'
        'tags: ["a", "b"]\n'
        "featured: false\n"
        "draft: false\n"
        "---\n\n"
    )


def test_render_round_trips_recognized_fields():
    source = {
        "title": 'Colons: "quotes" and ünïcode',
        "date": "2021-07-04T12:00:00",
        "author": "Guest",
        "tags": ["one", "two words"],
        "draft": True,
        "custom": {"featured": True},
    }
    fm = to_astro_frontmatter(source)
    loaded = yaml.safe_load(fm.render().strip().strip("-"))
    assert loaded["title"] == source["title"]
    assert loaded["author"] == "Guest"
    assert loaded["tags"] == ["one", "two words"]
    assert loaded["featured"] is True
    assert loaded["draft"] is True
    assert loaded["date"].replace(tzinfo=None) == datetime(2021, 7, 4, 12, 0)


@pytest.mark.parametrize(
    "extra",
    [
        {"tags": True},
        {"tags": {"a": "b"}},
        {"description": False},
        {"author": {"name": "x"}},
        {"custom": {"preview": True}},
    ],
)
def test_wrongly_typed_fields_are_format_errors(extra):
    with pytest.raises(FormatError):
        to_astro_frontmatter({"title": "T", "date": "2020-01-01", **extra})
