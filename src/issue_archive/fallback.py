from __future__ import annotations

import re

from bs4 import BeautifulSoup

from .dates import format_long_date, is_weekday_name
from .records import IssueRecord, collapse_whitespace, truncate

TITLE_MAX_CHARS = 90

_FIRST_SENTENCE = re.compile(r"^(.+?[.!?])(?:\s|$)", re.DOTALL)


def looks_auto_generated(title: str | None, slug: str) -> bool:
    if title is None:
        return True
    title = title.strip()
    if not title:
        return True
    return (
        title == slug
        or "_" in title
        or title[0].isdigit()
        or is_weekday_name(title)
    )


def title_from_summary(summary: str | None) -> str | None:
    if not summary:
        return None
    text = collapse_whitespace(summary)
    m = _FIRST_SENTENCE.match(text)
    sentence = m.group(1) if m else text
    sentence = sentence.strip()
    if not sentence:
        return None
    return truncate(sentence, TITLE_MAX_CHARS)


def title_from_heading(content_html: str) -> str | None:
    soup = BeautifulSoup(content_html, "html.parser")
    heading = soup.find("h2")
    if heading is None:
        return None
    text = collapse_whitespace(heading.get_text())
    if not text:
        return None
    return truncate(text, TITLE_MAX_CHARS)


def apply_fallback(record: IssueRecord) -> bool:
    """Replace an auto-generated-looking title with something readable.

    Tries the summary's first sentence, then the first ``<h2>`` of the body,
    then the long-form publication date. Returns True if the title changed.
    """

    if not looks_auto_generated(record.title, record.slug):
        return False

    for candidate in (
        title_from_summary(record.summary),
        title_from_heading(record.content_html),
    ):
        if candidate and not looks_auto_generated(candidate, record.slug):
            record.title = candidate
            return True

    long_date = format_long_date(record.published_on)
    if long_date:
        record.title = long_date
        return True
    return False
