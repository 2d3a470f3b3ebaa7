"""Unit tests for front matter parsing and metadata coercion"""

import datetime as dt

import pytest

from pressgen.content import (
    DEFAULT_LANG,
    Metadata,
    dump_front_matter,
    load_document,
    parse_document,
    parse_front_matter,
    split_post_filename,
)
from pressgen.errors import MalformedDocument


SAMPLE = """\
---
title: Hello
layout: post
date: 2020-01-01
tags:
  - java
  - json
---
# Heading
Body
"""


def test_parse_front_matter_splits_meta_and_body():
    meta, body = parse_front_matter(SAMPLE)
    assert meta["title"] == "Hello"
    assert meta["tags"] == ["java", "json"]
    assert body == "# Heading\nBody\n"


def test_parse_document_coerces_metadata():
    doc = parse_document(SAMPLE, "_posts/hello.md")
    assert doc.path == "_posts/hello.md"
    assert doc.is_post
    assert doc.metadata.date == dt.datetime(2020, 1, 1)
    assert doc.metadata.tags == ("java", "json")
    assert doc.metadata.lang == DEFAULT_LANG


def test_body_is_kept_verbatim():
    text = "---\ntitle: T\nlayout: page\n---\n\n  indented\r\nline\n\n"
    doc = parse_document(text, "p.md")
    assert doc.body == "\n  indented\r\nline\n\n"


def test_byte_order_mark_is_ignored():
    doc = parse_document("\ufeff" + SAMPLE, "hello.md")
    assert doc.title == "Hello"


def test_load_document_keeps_crlf_body(tmp_path):
    path = tmp_path / "notes.md"
    path.write_bytes(b"---\r\ntitle: T\r\nlayout: page\r\n---\r\nline one\r\nline two\r\n")
    doc = load_document(path, tmp_path)
    assert doc.path == "notes.md"
    assert doc.body == "line one\r\nline two\r\n"


@pytest.mark.parametrize("meta,key", [
    ("title: No\nlayout: page", "title"),
    ("title: 1.10\nlayout: page", "title"),
    ("title: 2020\nlayout: page", "title"),
    ("title: x\nlayout: page\nlang: no", "lang"),
    ("title: x\nlayout: page\nauthor: yes", "author"),
])
def test_unquoted_non_text_values_are_rejected(meta, key):
    with pytest.raises(MalformedDocument) as excinfo:
        parse_document(f"---\n{meta}\n---\n", "p.md")
    assert f"'{key}' must be text" in excinfo.value.reason


def test_quoted_values_are_kept_as_written():
    doc = parse_document("---\ntitle: 'No'\nlayout: page\ndescription: \"1.10\"\n---\n", "p.md")
    assert doc.title == "No"
    assert doc.metadata.description == "1.10"


@pytest.mark.parametrize("text,reason", [
    ("title: x\nlayout: page\n", "opening"),
    ("---\ntitle: x\nlayout: page\n", "never closed"),
    ("---\nlayout: page\n---\nbody\n", "'title'"),
    ("---\ntitle: x\n---\nbody\n", "'layout'"),
    ("---\ntitle: ''\nlayout: page\n---\n", "'title'"),
    ("---\ntitle: [unclosed\nlayout: page\n---\n", "invalid front matter"),
    ("---\n- a\n- b\n---\n", "mapping"),
    ("---\ntitle: x\nlayout: post\ndate: someday\n---\n", "invalid date"),
    ("---\ntitle: x\nlayout: post\n---\n", "no date"),
])
def test_malformed_documents(text, reason):
    with pytest.raises(MalformedDocument) as excinfo:
        parse_document(text, "bad.md")
    assert excinfo.value.path == "bad.md"
    assert reason in excinfo.value.reason


def test_post_date_comes_from_filename():
    doc = parse_document("---\ntitle: x\nlayout: post\n---\n", "_posts/2019-12-31-new-year.md")
    assert doc.metadata.date == dt.datetime(2019, 12, 31)


def test_front_matter_date_wins_over_filename():
    text = "---\ntitle: x\nlayout: post\ndate: 2021-03-04 10:20:00\n---\n"
    doc = parse_document(text, "_posts/2019-12-31-new-year.md")
    assert doc.metadata.date == dt.datetime(2021, 3, 4, 10, 20)


def test_jekyll_style_offset_date():
    text = "---\ntitle: x\nlayout: post\ndate: 2020-05-01 08:00:00 +0200\n---\n"
    doc = parse_document(text, "x.md")
    assert doc.metadata.date.utcoffset() == dt.timedelta(hours=2)


def test_split_post_filename():
    assert split_post_filename("_posts/2020-02-15-hola-mundo.md") == (dt.date(2020, 2, 15), "hola-mundo")
    assert split_post_filename("about.md") == (None, None)
    assert split_post_filename("2020-13-45-bad.md") == (None, None)


@pytest.mark.parametrize("value,expected", [
    ("java, json", ("java", "json")),
    ("java json", ("java", "json")),
    ("[java, java, json]", ("java", "json")),
])
def test_tags_from_strings(value, expected):
    doc = parse_document(f"---\ntitle: x\nlayout: page\ntags: {value}\n---\n", "p.md")
    assert doc.metadata.tags == expected


def test_draft_and_unpublished():
    draft = parse_document("---\ntitle: x\nlayout: page\ndraft: true\n---\n", "p.md")
    hidden = parse_document("---\ntitle: x\nlayout: page\npublished: false\n---\n", "q.md")
    assert draft.metadata.draft
    assert hidden.metadata.draft


def test_unknown_keys_are_kept_as_extra():
    doc = parse_document("---\ntitle: x\nlayout: page\nimage: /a.png\n---\n", "p.md")
    assert doc.metadata.extra == {"image": "/a.png"}


def test_metadata_round_trip():
    """Dumping and re-parsing the front matter keeps every recognized key."""
    metadata = Metadata(
        title="Inyección de dependencias",
        layout="post",
        date=dt.datetime(2020, 1, 1, 10, 30),
        lang="es-es",
        tags=("java", "di"),
        description="Sin contenedor",
        author="Autor",
        slug="di-sin-framework",
        permalink="/di/",
        draft=True,
    )
    doc = parse_document(dump_front_matter(metadata) + "body\n", "x.md")
    assert doc.metadata == metadata
    assert doc.body == "body\n"


def test_round_trip_of_parsed_document():
    doc = parse_document(SAMPLE, "hello.md")
    again = parse_document(dump_front_matter(doc.metadata), "hello.md")
    assert again.metadata == doc.metadata
