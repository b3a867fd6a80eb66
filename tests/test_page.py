"""Tests for plain page rendering."""

from datetime import datetime

import pytest

from codebrowser.generator.config import PLAIN_PAGE_DISCLAIMER
from codebrowser.generator.page import (
    make_footer,
    render_plain_page,
    resolve_data_path,
    root_prefix,
    write_plain_page,
)
from codebrowser.generator.projects import ProjectInfo


def test_footer_with_and_without_revision():
    when = datetime(2024, 3, 7)
    assert make_footer(ProjectInfo("app", "/src/"), when) == "Generated on <em>2024-Mar-07</em> from project app"
    assert make_footer(ProjectInfo("app", "/src/", revision="v1.2"), when).endswith(
        " revision <em>v1.2</em>"
    )


@pytest.mark.parametrize(
    "relative_name, data_path, expected",
    [
        ("app/a.cc", "../data", "../../data"),
        ("app/dir/a.cc", "../data", "../../../data"),
        ("app/a.cc", "https://cdn.example.org/data/", "https://cdn.example.org/data"),
        ("app/a.cc", "/static/data", "/static/data"),
    ],
)
def test_data_path_is_relative_to_the_page(relative_name, data_path, expected):
    assert resolve_data_path(relative_name, data_path) == expected


def test_root_prefix():
    assert root_prefix("app/dir/a.cc") == "../../"


def test_rendered_page_escapes_source_and_numbers_lines():
    page = render_plain_page(
        "app/README",
        "a <b> & c\nsecond\n",
        "Generated on <em>2024-Mar-07</em> from project app",
        PLAIN_PAGE_DISCLAIMER,
        "../data",
    )
    assert '<p class="warnmsg">' in page
    assert PLAIN_PAGE_DISCLAIMER in page
    assert "a &lt;b&gt; &amp; c" in page
    assert '<th id="2">2</th>' in page
    assert '<th id="3">' not in page
    assert "../../data/codebrowser.js" in page
    assert "Generated on <em>2024-Mar-07</em> from project app" in page


def test_anchors_are_placed_on_their_line():
    page = render_plain_page("app/a.cc", "int x;\nint y;\n", "", None, "../data", anchors={2: ["c:@y"]})
    assert 'warnmsg' not in page
    assert '<tr><th id="2">2</th><td><a class="def" id="c:@y"></a>int y;</td></tr>' in page


def test_write_plain_page(tmp_path):
    source = tmp_path / "notes.txt"
    source.write_bytes(b"caf\xe9\n")
    page = write_plain_page(tmp_path / "out", "app/doc/notes.txt", source, "footer", PLAIN_PAGE_DISCLAIMER, "../data")
    assert page == tmp_path / "out" / "app" / "doc" / "notes.txt.html"
    assert "caf\ufffd" in page.read_text(encoding="utf-8")


def test_unreadable_source_raises(tmp_path):
    with pytest.raises(OSError):
        write_plain_page(tmp_path / "out", "app/gone", tmp_path / "gone", "footer", PLAIN_PAGE_DISCLAIMER, "../data")
