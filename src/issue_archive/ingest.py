from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .fallback import apply_fallback
from .records import IssueRecord, derive_slug, read_issue_record
from .subjects import assign_subjects, load_subjects

logger = logging.getLogger(__name__)

UNDATED = "Undated"


@dataclass
class IngestConfig:
    issues_dir: Path
    output_path: Path
    subjects_path: Path | None = None


@dataclass(frozen=True)
class IngestSummary:
    output_path: Path
    issues: int
    subjects: int
    subjects_assigned: int
    titles_from_fallback: int
    groups: int


def list_issue_files(issues_dir: Path) -> list[Path]:
    """Return issue files in name order, one per slug.

    ``a.html`` and ``a.HTML`` would share the slug ``a``; the first in name
    order is kept and the rest are skipped with a warning.
    """

    if not issues_dir.is_dir():
        raise FileNotFoundError(f"Missing issues directory at {issues_dir}")
    candidates = sorted(
        p
        for p in issues_dir.iterdir()
        if p.is_file() and p.suffix.lower() == ".html"
    )
    seen: dict[str, Path] = {}
    for path in candidates:
        slug = derive_slug(path)
        if slug in seen:
            logger.warning(
                "Skipping %s: slug %r already used by %s",
                path.name,
                slug,
                seen[slug].name,
            )
            continue
        seen[slug] = path
    return list(seen.values())


def _sort_key_desc(record: IssueRecord) -> tuple[int, str, str]:
    # Used with reverse=True: dated first, newest first, slug descending.
    return (1 if record.published_on else 0, record.published_on or "", record.slug)


def sort_records(records: list[IssueRecord]) -> list[IssueRecord]:
    return sorted(records, key=_sort_key_desc, reverse=True)


def group_by_year(records: list[IssueRecord]) -> list[dict[str, Any]]:
    """Bucket records by year, newest year first and ``Undated`` last.

    Records keep their relative order inside each bucket.
    """

    buckets: dict[str, list[IssueRecord]] = {}
    for record in records:
        buckets.setdefault(record.year or UNDATED, []).append(record)

    def _year_key(year: str) -> tuple[int, int]:
        if year == UNDATED:
            return (1, 0)
        try:
            return (0, -int(year))
        except ValueError:
            return (0, 0)

    return [
        {"year": year, "items": buckets[year]}
        for year in sorted(buckets, key=_year_key)
    ]


def build_index(records: list[IssueRecord]) -> dict[str, Any]:
    ordered = sort_records(records)
    groups = group_by_year(ordered)
    return {
        "issues": [r.to_dict() for r in ordered],
        "groups": [
            {"year": g["year"], "items": [r.to_dict() for r in g["items"]]}
            for g in groups
        ],
    }


def write_index(index: dict[str, Any], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(index, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
        newline="\n",
    )


def run_ingest(config: IngestConfig) -> IngestSummary:
    issue_files = list_issue_files(config.issues_dir)
    dir_name = config.issues_dir.name

    records = [read_issue_record(p, issues_dir_name=dir_name) for p in issue_files]
    subjects = load_subjects(config.subjects_path)
    assigned = assign_subjects(records, subjects)
    fallbacks = sum(1 for r in records if apply_fallback(r))

    index = build_index(records)
    write_index(index, config.output_path)
    logger.info("wrote %d issue(s) to %s", len(records), config.output_path)

    return IngestSummary(
        output_path=config.output_path,
        issues=len(records),
        subjects=len(subjects),
        subjects_assigned=assigned,
        titles_from_fallback=fallbacks,
        groups=len(index["groups"]),
    )
