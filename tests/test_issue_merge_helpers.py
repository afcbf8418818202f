"""이슈 병합 결합 규칙 테스트.

Unit tests for the merge data-combination helpers (no database).
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

from app.utils.issue_merge import (
    MAX_MERGED_IMAGES,
    NOTE_BLOCK_SEPARATOR,
    clean_duplicate_ids,
    collect_reporters,
    combine_images,
    combine_notes,
)

MERGED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _issue(title: str = "Leak", notes: str | None = None, images: list[str] | None = None, reporter=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        title=title,
        notes=notes,
        images=images,
        reported_by=reporter or uuid.uuid4(),
    )


class TestCleanDuplicateIds:
    """중복 ID 정리."""

    def test_removes_master_and_repeats_keeping_order(self):
        master, a, b = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        assert clean_duplicate_ids(master, [b, master, a, b, master]) == [b, a]

    def test_only_master_leaves_nothing(self):
        master = uuid.uuid4()
        assert clean_duplicate_ids(master, [master, master]) == []


class TestCollectReporters:
    """알림 대상 신고자."""

    def test_first_seen_order_without_master_reporter(self):
        r_master, r1, r2 = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        master = _issue(reporter=r_master)
        dups = [_issue(reporter=r2), _issue(reporter=r_master), _issue(reporter=r1), _issue(reporter=r2)]
        assert collect_reporters(master, dups) == [r2, r1]


class TestCombineNotes:
    """메모 결합 순서."""

    def test_blocks_in_fixed_order(self):
        master = _issue(notes="leak started")
        d1 = _issue(title="Ceiling drip", notes="same leak, room 203")
        d2 = _issue(title="Wet floor", notes="")

        notes = combine_notes(master, [d1, d2], MERGED_AT, "confirmed single leak")

        original = notes.index("leak started")
        merge = notes.index("confirmed single leak")
        dup = notes.index("same leak, room 203")
        summary = notes.index("[Merge Summary]")
        assert original < merge < dup < summary
        assert f"[Merge Notes - {MERGED_AT.isoformat()}]" in notes
        assert f'Issue "Ceiling drip" ({d1.id}): same leak, room 203' in notes
        assert f'Issue "Wet floor"' not in notes
        assert f"Merged 2 duplicate issue(s) on {MERGED_AT.isoformat()}:" in notes
        assert f"- Ceiling drip ({d1.id})" in notes
        assert f"- Wet floor ({d2.id})" in notes
        assert notes.count(NOTE_BLOCK_SEPARATOR) == 3

    def test_empty_sections_are_skipped(self):
        master = _issue(notes="")
        d1 = _issue(notes=None)

        notes = combine_notes(master, [d1], MERGED_AT, merge_notes="")

        assert notes.startswith("[Merge Summary]")
        assert "[Original Notes]" not in notes
        assert "[Merge Notes" not in notes
        assert "[Merged Issue Notes]" not in notes

    def test_whitespace_notes_are_kept(self):
        """공백만 있는 메모도 존재하는 메모로 취급."""
        master = _issue(notes="   ")
        d1 = _issue(title="Drip", notes="  ")

        notes = combine_notes(master, [d1], MERGED_AT, merge_notes="  ")

        assert notes.startswith("[Original Notes]\n   ")
        assert f"[Merge Notes - {MERGED_AT.isoformat()}]\n  " in notes
        assert f'[Merged Issue Notes]\nIssue "Drip" ({d1.id}):   ' in notes

    def test_duplicate_note_lines_separated_by_blank_line(self):
        master = _issue()
        d1 = _issue(title="A", notes="first")
        d2 = _issue(title="B", notes="second")

        notes = combine_notes(master, [d1, d2], MERGED_AT)

        assert f'Issue "A" ({d1.id}): first\n\nIssue "B" ({d2.id}): second' in notes


class TestCombineImages:
    """이미지 결합."""

    def test_nine_unique_images_all_kept(self):
        master = _issue(images=["a", "b"])
        d3 = _issue(images=["b", "c"])
        d4 = _issue(images=["c", "d", "e", "f", "g", "h", "i"])
        assert combine_images(master, [d3, d4]) == ["a", "b", "c", "d", "e", "f", "g", "h", "i"]

    def test_truncated_to_max(self):
        master = _issue(images=[f"m{i}" for i in range(6)])
        dup = _issue(images=[f"d{i}" for i in range(6)] + ["m0"])
        combined = combine_images(master, [dup])
        assert len(combined) == MAX_MERGED_IMAGES
        assert combined == [f"m{i}" for i in range(6)] + [f"d{i}" for i in range(4)]

    def test_missing_images_treated_as_empty(self):
        assert combine_images(_issue(images=None), [_issue(images=None)]) == []
