import pytest
from pydantic import ValidationError

from tocsync.models.components import InsertionPoint, SyncConfig
from tocsync.toc import TOCGenerator, slugify, synchronize
from tocsync.toc.generator import plain_title, unique_slug

SLUG_TESTS = [
    ("A", "a", "lower-cased"),
    ("Hello, World!", "hello-world", "punctuation stripped"),
    ("A  lot   of\tspace", "a-lot-of-space", "whitespace runs become one hyphen"),
    ("snake_case name", "snake_case-name", "underscores kept"),
    ("Pre-existing - dashes", "pre-existing---dashes", "hyphens kept"),
    ("Café au lait", "café-au-lait", "unicode letters kept"),
    ("`code` *em*", "code-em", "inline markup stripped"),
    ("!!!", "section", "empty slug falls back"),
]


@pytest.mark.parametrize("title, expected, msg", SLUG_TESTS)
def test_slugify(title: str, expected: str, msg: str):
    assert slugify(title) == expected, f"unexpected: {msg}"


def test_unique_slug_skips_taken_suffixes():
    used = set()
    assert [unique_slug(s, used) for s in ["a", "a-1", "a", "a"]] == ["a", "a-1", "a-2", "a-3"]


def test_plain_title():
    assert plain_title("See [the docs](http://x.y) now") == "See the docs now"
    assert plain_title("![logo](logo.png) Project") == "logo Project"
    assert plain_title("Ref [link][1]") == "Ref link"
    assert plain_title("<a name='x'></a>Anchor") == "Anchor"


HEADING_TESTS = [
    ("# A\n## B\n# A", [(1, "A", "a"), (2, "B", "b"), (1, "A", "a-1")], "duplicate slugs"),
    ("Title\n=====\n\nSub\n---\n", [(1, "Title", "title"), (2, "Sub", "sub")], "setext"),
    ("```\n# not\n```\n# Yes", [(1, "Yes", "yes")], "code fence excluded"),
    ("#NoSpace\n# \n####### Seven\n", [], "not headings"),
    ("# Closing hashes ##\n", [(1, "Closing hashes", "closing-hashes")], "closing sequence"),
    ("# C#\n", [(1, "C#", "c")], "hash inside title"),
    ("    # indented code\n", [], "indented code"),
    ("", [], "empty document"),
]


@pytest.mark.parametrize("text, expected, msg", HEADING_TESTS)
def test_extract_headings(text: str, expected: list, msg: str):
    headings = TOCGenerator().extract_headings(text)
    assert [h.as_tuple() for h in headings] == expected, f"unexpected: {msg}"


def test_heading_line_numbers():
    headings = TOCGenerator().extract_headings("intro\n\n# A\n\nB\n-\n")
    assert [h.line_number for h in headings] == [3, 5]


SYNC_TESTS = [
    (
        "# Title\n\nIntro\n\n## Usage\n",
        "# Title\n<!-- toc -->\n\n- [Title](#title)\n  - [Usage](#usage)\n\n<!-- tocstop -->\n"
        "\nIntro\n\n## Usage\n",
        "inserted right after the first h1",
    ),
    (
        "",
        "<!-- toc -->\n<!-- tocstop -->\n",
        "empty document gets a marker-only block",
    ),
    (
        "plain text\n",
        "<!-- toc -->\n<!-- tocstop -->\nplain text\n",
        "heading-less document",
    ),
    (
        "# T\n<!-- toc -->\n- old\n<!-- tocstop -->\n## New\n",
        "# T\n<!-- toc -->\n\n- [T](#t)\n  - [New](#new)\n\n<!-- tocstop -->\n## New\n",
        "existing block refreshed",
    ),
    (
        "## A\n### B\n",
        "<!-- toc -->\n\n- [A](#a)\n  - [B](#b)\n\n<!-- tocstop -->\n## A\n### B\n",
        "no h1 inserts at the top",
    ),
    (
        "---\ntitle: x\n---\n## A\n",
        "---\ntitle: x\n---\n<!-- toc -->\n\n- [A](#a)\n\n<!-- tocstop -->\n## A\n",
        "top insertion goes below front matter",
    ),
    (
        "# Title",
        "# Title\n<!-- toc -->\n\n- [Title](#title)\n\n<!-- tocstop -->",
        "heading without line terminator",
    ),
    (
        "# T\r\n\r\n## S\r\n",
        "# T\r\n<!-- toc -->\r\n\r\n- [T](#t)\r\n  - [S](#s)\r\n\r\n<!-- tocstop -->\r\n\r\n## S\r\n",
        "crlf preserved",
    ),
    (
        "# T\n<!-- toc -->\n## S\n",
        "# T\n<!-- toc -->\n\n- [T](#t)\n  - [S](#s)\n\n<!-- tocstop -->\n## S\n",
        "lone open marker expanded",
    ),
    (
        "# T\n```\n<!-- toc -->\n```\n",
        "# T\n<!-- toc -->\n\n- [T](#t)\n\n<!-- tocstop -->\n```\n<!-- toc -->\n```\n",
        "marker in code fence ignored",
    ),
    (
        "Title\n=====\ntext\n",
        "Title\n=====\n<!-- toc -->\n\n- [Title](#title)\n\n<!-- tocstop -->\ntext\n",
        "inserted after a setext underline",
    ),
    (
        "# T\n<!-- toc -->\n<!-- tocstop -->",
        "# T\n<!-- toc -->\n\n- [T](#t)\n\n<!-- tocstop -->",
        "block at end without terminator",
    ),
]


@pytest.mark.parametrize("text, expected, msg", SYNC_TESTS)
def test_synchronize(text: str, expected: str, msg: str):
    assert synchronize(text) == expected, f"unexpected: {msg}"


def test_duplicate_blocks_are_merged():
    text = "<!-- toc -->\n<!-- tocstop -->\n# A\n<!-- toc -->\nx\n<!-- tocstop -->\ntail\n"
    result = TOCGenerator().sync(text)
    assert result.text == "<!-- toc -->\n\n- [A](#a)\n\n<!-- tocstop -->\n# A\ntail\n"
    assert len(result.warnings) == 1
    assert not result.inserted


def test_trailing_duplicate_block_without_terminator():
    text = "<!-- toc -->\n<!-- tocstop -->\n# A\n<!-- toc -->\n<!-- tocstop -->"
    assert synchronize(text) == "<!-- toc -->\n\n- [A](#a)\n\n<!-- tocstop -->\n# A"


def test_removed_block_joins_setext_heading():
    text = "<!-- toc -->\nA\n<!-- toc -->\n===\n"
    result = TOCGenerator().sync(text)
    assert result.text == "<!-- toc -->\n\n- [A](#a)\n\n<!-- tocstop -->\nA\n===\n"
    assert [h.as_tuple() for h in result.headings] == [(1, "A", "a")]
    assert len(result.warnings) == 1
    assert result.changed and not result.inserted
    assert synchronize(result.text) == result.text


def test_sync_result_flags():
    generator = TOCGenerator()
    first = generator.sync("# A\n")
    assert first.changed and first.inserted
    assert [h.slug for h in first.headings] == ["a"]

    second = generator.sync(first.text)
    assert not second.changed and not second.inserted
    assert second.text == first.text


def test_insert_at_top():
    config = SyncConfig(insertion_point=InsertionPoint.TOP)
    assert synchronize("# T\n", config) == "<!-- toc -->\n\n- [T](#t)\n\n<!-- tocstop -->\n# T\n"


DEPTH_TESTS = [
    ({"max_depth": 2}, ["- [A](#a)", "  - [B](#b)", "- [D](#d)"], "max depth"),
    ({"min_depth": 2}, ["- [B](#b)", "  - [C](#c)"], "min depth re-bases indentation"),
    ({"skip_first_h1": True}, ["  - [B](#b)", "    - [C](#c)", "- [D](#d)"], "first h1 skipped"),
    ({"bullet": "*", "indent": 4}, ["* [A](#a)", "    * [B](#b)", "        * [C](#c)", "* [D](#d)"], "layout"),
]


@pytest.mark.parametrize("options, expected, msg", DEPTH_TESTS)
def test_render_options(options: dict, expected: list, msg: str):
    generator = TOCGenerator(SyncConfig(**options))
    headings = generator.select(generator.extract_headings("# A\n## B\n### C\n# D\n"))
    assert generator.render(headings) == expected, f"unexpected: {msg}"


def test_depth_filter_keeps_slugs_of_hidden_headings():
    generator = TOCGenerator(SyncConfig(min_depth=2))
    headings = generator.select(generator.extract_headings("# X\n## X\n"))
    assert [h.slug for h in headings] == ["x-1"]


def test_custom_markers():
    config = SyncConfig(open_marker="<!-- BEGIN TOC -->", close_marker="<!-- END TOC -->")
    once = synchronize("# T\n", config)
    assert once == "# T\n<!-- BEGIN TOC -->\n\n- [T](#t)\n\n<!-- END TOC -->\n"
    assert synchronize(once, config) == once


def test_invalid_config():
    with pytest.raises(ValidationError):
        SyncConfig(min_depth=3, max_depth=2)
    with pytest.raises(ValidationError):
        SyncConfig(bullet="#")
    with pytest.raises(ValidationError):
        SyncConfig(unknown=True)


MARKER_ERROR_TESTS = [
    ({"open_marker": "", "close_marker": ""}, "empty markers"),
    ({"open_marker": "   "}, "blank open marker"),
    ({"open_marker": "<!-- x -->", "close_marker": "<!-- x -->"}, "equal markers"),
    ({"open_marker": "<!-- x -->", "close_marker": "  <!-- x -->  "}, "equal once stripped"),
    ({"open_marker": "<!-- tocstop -->"}, "open marker equals the default close marker"),
    ({"open_marker": "<!-- a\n-->"}, "line break"),
    ({"close_marker": "<!-- a -->\r<!-- b -->"}, "carriage return"),
    ({"open_marker": "```toc"}, "code fence"),
    ({"close_marker": "---"}, "front matter delimiter"),
    ({"open_marker": "<!-- tocstop -->", "close_marker": "<!-- end -->"}, "open marker is a close marker"),
    ({"open_marker": "<!-- begin -->", "close_marker": "<!-- TOC -->"}, "close marker is an open marker"),
]


@pytest.mark.parametrize("options, msg", MARKER_ERROR_TESTS)
def test_invalid_markers(options: dict, msg: str):
    with pytest.raises(ValidationError):
        SyncConfig(**options)


def test_indented_markers_are_stored_stripped():
    config = SyncConfig(open_marker="    <!-- a -->", close_marker="\t<!-- b --> ")
    assert (config.open_marker, config.close_marker) == ("<!-- a -->", "<!-- b -->")

    once = synchronize("# T\n## S\n", config)
    assert once == "# T\n<!-- a -->\n\n- [T](#t)\n  - [S](#s)\n\n<!-- b -->\n## S\n"
    assert synchronize(once, config) == once


DOCUMENTS = [
    "",
    "\n",
    "# A\n## B\n# A",
    "# Title\n\nIntro\n\n## Usage\n\n```sh\n# run it\n```\n",
    "Title\n=====\n\nSub\n---\ntext\n",
    "## only\n### deeper",
    "---\nlayout: page\n---\n",
    "# T\n<!-- toc -->\n",
    "# T\n<!-- tocstop -->\n## S\n",
    "<!-- toc -->\n<!-- tocstop -->\n# A\n<!-- toc -->\nx\n<!-- tocstop -->",
    "<!-- toc -->\nA\n<!-- toc -->\n===\n",
    "Para\n<!-- toc -->\n<!-- tocstop -->\n<!-- toc -->\n<!-- tocstop -->\n---\n",
    "# T\r\n## S\r\n",
    "Para\n---\n",
    "   \n\t\n",
    "# [Link](x) `code` <b>bold</b>\n## Ünïcödé\n## !!!\n",
]


@pytest.mark.parametrize("text", DOCUMENTS)
def test_idempotent(text: str):
    once = synchronize(text)
    assert synchronize(once) == once


@pytest.mark.parametrize("text", DOCUMENTS)
def test_content_preserved(text: str):
    generator = TOCGenerator()
    assert generator.strip(generator.synchronize(text)) == generator.strip(text)


def test_strip_without_block_is_identity():
    assert TOCGenerator().strip("# A\ntext") == "# A\ntext"
