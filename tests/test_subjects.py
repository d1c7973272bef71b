from __future__ import annotations

import json
from pathlib import Path

import pytest

from issue_archive.records import IssueRecord
from issue_archive.subjects import (
    assign_subjects,
    load_subjects,
    parse_subjects,
    subject_entry,
)


def _rec(slug: str, published_on: str | None, title: str = "untitled") -> IssueRecord:
    return IssueRecord(
        slug=slug,
        title=title,
        summary=None,
        content_html="",
        published_on=published_on,
        year=published_on[:4] if published_on else None,
        source_path=f".issues/{slug}.html",
    )


def test_load_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_subjects(tmp_path / "subjects.json") == []
    assert load_subjects(None) == []


def test_load_rejects_non_list(tmp_path: Path) -> None:
    path = tmp_path / "subjects.json"
    path.write_text(json.dumps({"date": "x"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_subjects(path)


def test_load_normalizes_dates_and_skips_blank_subjects(tmp_path: Path) -> None:
    path = tmp_path / "subjects.json"
    path.write_text(
        json.dumps(
            [
                {"date": "March 4, 2021", "subject": "Weekly Standup"},
                {"date": "sept-3-2020", "subject": "  "},
                {"date": "someday", "subject": "Unscheduled"},
            ]
        ),
        encoding="utf-8",
    )
    entries = load_subjects(path)
    assert [e.subject for e in entries] == ["Weekly Standup", "Unscheduled"]
    assert entries[0].iso_date == "2021-03-04"
    assert entries[0].time is not None
    assert entries[1].iso_date is None
    assert entries[1].time is None


def test_exact_date_match() -> None:
    records = [_rec("a", "2021-03-04")]
    subjects = [subject_entry("March 4, 2021", "Weekly Standup")]
    assert assign_subjects(records, subjects) == 1
    assert records[0].title == "Weekly Standup"


def test_match_within_five_days_only() -> None:
    near = [_rec("a", "2021-03-04")]
    assert assign_subjects(near, [subject_entry("2021-03-09", "Near")]) == 1
    assert near[0].title == "Near"

    far = [_rec("b", "2021-03-04")]
    assert assign_subjects(far, [subject_entry("2021-03-10", "Far")]) == 0
    assert far[0].title == "untitled"


def test_future_candidate_preferred_over_closer_past() -> None:
    records = [_rec("a", "2021-03-10")]
    subjects = parse_subjects(
        [
            {"date": "2021-03-09", "subject": "Past"},
            {"date": "2021-03-13", "subject": "Future"},
        ]
    )
    assign_subjects(records, subjects)
    assert records[0].title == "Future"


def test_past_candidate_used_when_no_future_exists() -> None:
    records = [_rec("a", "2021-03-10")]
    assign_subjects(records, [subject_entry("2021-03-07", "Past")])
    assert records[0].title == "Past"


def test_subject_is_never_reused() -> None:
    records = [_rec("b", "2021-03-02"), _rec("a", "2021-03-01")]
    subjects = [subject_entry("2021-03-02", "Only One")]
    assert assign_subjects(records, subjects) == 1
    titles = {r.slug: r.title for r in records}
    # The older issue is processed first and claims the subject.
    assert titles == {"a": "Only One", "b": "untitled"}


def test_each_record_gets_its_own_subject() -> None:
    records = [_rec(f"i{n}", f"2021-03-{n:02d}") for n in (1, 8, 15)]
    subjects = parse_subjects(
        [
            {"date": "2021-03-15", "subject": "Third"},
            {"date": "2021-03-01", "subject": "First"},
            {"date": "2021-03-08", "subject": "Second"},
        ]
    )
    assert assign_subjects(records, subjects) == 3
    assert [r.title for r in records] == ["First", "Second", "Third"]
    assert all(s.used for s in subjects)


def test_undated_inputs_are_ignored() -> None:
    records = [_rec("a", None), _rec("b", "2021-03-04")]
    subjects = [subject_entry("someday", "Nope"), subject_entry("2021-03-04", "Yes")]
    assert assign_subjects(records, subjects) == 1
    assert records[0].title == "untitled"
    assert records[1].title == "Yes"


def test_assignment_is_repeatable() -> None:
    subjects = parse_subjects(
        [
            {"date": "2021-03-02", "subject": "A"},
            {"date": "2021-03-05", "subject": "B"},
        ]
    )

    def run() -> list[str]:
        records = [_rec("x", "2021-03-01"), _rec("y", "2021-03-04")]
        assign_subjects(records, subjects)
        return [r.title for r in records]

    assert run() == run() == ["A", "B"]
