from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .dates import recognize_date, to_epoch_ms
from .records import IssueRecord

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
MAX_MATCH_DISTANCE_MS = 5 * DAY_MS


@dataclass
class SubjectEntry:
    raw_date: str
    iso_date: str | None
    time: int | None
    subject: str
    used: bool = False


def subject_entry(raw_date: str, subject: str) -> SubjectEntry:
    iso_date = recognize_date(raw_date)
    return SubjectEntry(
        raw_date=raw_date,
        iso_date=iso_date,
        time=to_epoch_ms(iso_date),
        subject=subject,
    )


def parse_subjects(items: Iterable[Any]) -> list[SubjectEntry]:
    entries: list[SubjectEntry] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        subject = str(item.get("subject") or "").strip()
        if not subject:
            continue
        entries.append(subject_entry(str(item.get("date") or ""), subject))
    return entries


def load_subjects(path: Path | None) -> list[SubjectEntry]:
    """Load ``[{"date": ..., "subject": ...}]`` from ``path``.

    A missing file means there is no authoritative data, not an error.
    """

    if path is None or not path.exists():
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Subjects file must contain a JSON list: {path}")
    entries = parse_subjects(data)
    unresolved = sum(1 for e in entries if e.time is None)
    if unresolved:
        logger.info("%d subject(s) in %s have no usable date", unresolved, path)
    return entries


def _closest(
    candidates: list[SubjectEntry], target: int, *, future: bool
) -> tuple[SubjectEntry | None, int]:
    best: SubjectEntry | None = None
    best_diff = 0
    for entry in candidates:
        if entry.used or entry.time is None:
            continue
        if future != (entry.time >= target):
            continue
        diff = abs(entry.time - target)
        if best is None or diff < best_diff:
            best = entry
            best_diff = diff
            if diff == 0:
                break
    return best, best_diff


def assign_subjects(
    records: list[IssueRecord], subjects: list[SubjectEntry]
) -> int:
    """Overwrite titles with the nearest-dated subject, greedily.

    Records are visited oldest first. Each takes the closest unused subject
    dated on or after it, else the closest one before it, and keeps it only
    if the two dates are at most five days apart. A subject is consumed by
    at most one record. Returns the number of titles replaced.
    """

    for entry in subjects:
        entry.used = False

    dated_subjects = sorted(
        (e for e in subjects if e.time is not None), key=lambda e: e.time or 0
    )
    timed_records: list[tuple[int, IssueRecord]] = []
    for record in records:
        time_ms = to_epoch_ms(record.published_on)
        if time_ms is not None:
            timed_records.append((time_ms, record))
    timed_records.sort(key=lambda pair: pair[0])

    assigned = 0
    for time_ms, record in timed_records:
        match, diff = _closest(dated_subjects, time_ms, future=True)
        if match is None:
            match, diff = _closest(dated_subjects, time_ms, future=False)
        if match is None or diff > MAX_MATCH_DISTANCE_MS:
            continue
        match.used = True
        logger.debug("subject %r -> %s", match.subject, record.slug)
        record.title = match.subject
        assigned += 1
    return assigned
