from __future__ import annotations

from pathlib import Path

from issue_archive.records import build_issue_record, read_issue_record


def _record(html: str, name: str = "issue-1.html"):
    return build_issue_record(html, Path(".issues") / name)


def test_title_prefers_title_element() -> None:
    rec = _record("<html><head><title> Spring  Update </title></head>"
                  "<body><h1>Heading</h1></body></html>")
    assert rec.title == "Spring Update"


def test_title_falls_back_to_h1_then_slug() -> None:
    assert _record("<body><h1>Heading</h1></body>").title == "Heading"
    assert _record("<body><div>nothing</div></body>").title == "issue-1"
    assert _record("<title>   </title><body></body>").title == "issue-1"


def test_summary_is_first_paragraph_collapsed() -> None:
    rec = _record("<body><p>  Hello\n   world </p><p>Second</p></body>")
    assert rec.summary == "Hello world"


def test_inline_markup_adds_no_spaces() -> None:
    rec = _record(
        "<html><body><h1>Issue <em>42</em>: News</h1>"
        "<p>Hello <b>world</b>! Read the <a href=\"/d\">docs</a>.</p>"
        "</body></html>"
    )
    assert rec.title == "Issue 42: News"
    assert rec.summary == "Hello world! Read the docs."


def test_summary_truncated_with_ellipsis() -> None:
    rec = _record(f"<body><p>{'word ' * 80}</p></body>")
    assert rec.summary is not None
    assert len(rec.summary) <= 200
    assert rec.summary.endswith("…")


def test_summary_absent_without_paragraph_text() -> None:
    assert _record("<body><h1>Only heading</h1></body>").summary is None
    assert _record("<body><p>   </p></body>").summary is None


def test_time_element_wins() -> None:
    rec = _record(
        '<head><meta name="date" content="2020-01-01"><title>May 5, 2019</title>'
        '</head><body><time datetime="2021-03-04T10:00">x</time></body>'
    )
    assert rec.published_on == "2021-03-04"
    assert rec.year == "2021"


def test_invalid_time_falls_through_to_meta() -> None:
    rec = _record(
        '<head><meta name="date" content="2020-01-01"></head>'
        '<body><time datetime="tbd">x</time></body>'
    )
    assert rec.published_on == "2020-01-01"


def test_date_from_title_then_heading() -> None:
    rec = _record("<title>Notes for Sept 3, 2020</title><body><h1>x</h1></body>")
    assert rec.published_on == "2020-09-03"
    rec = _record("<title>Notes</title><body><h1>Jan 2nd, 2019</h1></body>")
    assert rec.published_on == "2019-01-02"


def test_date_from_slug_with_numeric_prefix() -> None:
    rec = _record("<title>Notes</title>", name="012_march-4-2021.html")
    assert rec.published_on == "2021-03-04"
    assert rec.slug == "012_march-4-2021"


def test_undated_record() -> None:
    rec = _record("<title>Notes</title><body><p>Hi</p></body>", name="notes.html")
    assert rec.published_on is None
    assert rec.year is None


def test_content_html_is_body_inner_markup() -> None:
    rec = _record('<html><body><p>x</p><img src="a.png"></body></html>')
    assert rec.content_html == '<p>x</p><img src="a.png"/>'


def test_content_html_without_body_is_whole_document() -> None:
    html = "<p>fragment only</p>"
    assert _record(html).content_html == html


def test_read_issue_record_sets_source_path(issues_dir: Path) -> None:
    path = issues_dir / "2021-03-04_index.html"
    path.write_text("<title>2021-03-04 Index</title>", encoding="utf-8")
    rec = read_issue_record(path)
    assert rec.source_path == ".issues/2021-03-04_index.html"
    assert rec.slug == "2021-03-04_index"
    assert rec.published_on == "2021-03-04"
