from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup

from .dates import normalize_date_value, recognize_date

SUMMARY_MAX_CHARS = 200
ELLIPSIS = "…"


@dataclass
class IssueRecord:
    slug: str
    title: str
    summary: str | None
    content_html: str
    published_on: str | None
    year: str | None
    source_path: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + ELLIPSIS


def derive_slug(path: Path) -> str:
    return path.stem


def _node_text(soup: BeautifulSoup, selector: str) -> str:
    node = soup.select_one(selector)
    if node is None:
        return ""
    return collapse_whitespace(node.get_text())


def _attr_text(val: object) -> str:
    if isinstance(val, list):
        if not val:
            return ""
        return str(val[0])
    return str(val or "")


def extract_title(soup: BeautifulSoup, fallback: str) -> str:
    for selector in ("title", "h1"):
        text = _node_text(soup, selector)
        if text:
            return text
    return fallback


def extract_summary(soup: BeautifulSoup) -> str | None:
    text = _node_text(soup, "p")
    if not text:
        return None
    return truncate(text, SUMMARY_MAX_CHARS)


def extract_published_on(soup: BeautifulSoup, *, slug: str) -> str | None:
    """Resolve a publication date, most explicit source first.

    Order: ``<time datetime>``, ``<meta name="date">``, a date phrase in the
    title, in the first ``<h1>``, and finally in the slug.
    """

    time_el = soup.select_one("time[datetime]")
    if time_el is not None:
        found = normalize_date_value(_attr_text(time_el.get("datetime")))
        if found:
            return found

    meta = soup.find("meta", attrs={"name": re.compile(r"^date$", re.I)})
    if meta is not None:
        found = normalize_date_value(_attr_text(meta.get("content")))
        if found:
            return found

    for selector in ("title", "h1"):
        found = recognize_date(_node_text(soup, selector))
        if found:
            return found

    # Slugs are often prefixed with a sequence number ("012_march-4-2021").
    stripped = re.sub(r"^[\d_]+", "", slug)
    return recognize_date(stripped) or recognize_date(slug)


def build_issue_record(
    html: str,
    path: Path,
    *,
    issues_dir_name: str = ".issues",
) -> IssueRecord:
    soup = BeautifulSoup(html, "html.parser")
    slug = derive_slug(path)
    published_on = extract_published_on(soup, slug=slug)

    body = soup.body
    content_html = body.decode_contents() if body is not None else html

    return IssueRecord(
        slug=slug,
        title=extract_title(soup, slug),
        summary=extract_summary(soup),
        content_html=content_html,
        published_on=published_on,
        year=published_on[:4] if published_on else None,
        source_path=f"{issues_dir_name}/{path.name}",
    )


def read_issue_record(path: Path, *, issues_dir_name: str = ".issues") -> IssueRecord:
    html = path.read_text(encoding="utf-8", errors="replace")
    return build_issue_record(html, path, issues_dir_name=issues_dir_name)
