"""이슈 병합 데이터 결합 유틸리티.

Data-combination helpers for merging duplicate issues into a master issue.
Pure functions over Issue-like objects; no database access, so the merge
service and the tests share exactly the same rules.

Ordering rules:
    - duplicate ids: master id removed, first occurrence kept
    - reporters: first-seen order, master reporter excluded
    - notes: original -> operator merge notes -> duplicate notes -> summary
    - images: first-seen order, de-duplicated, capped at MAX_MERGED_IMAGES
"""

from datetime import datetime
from typing import Iterable, Protocol, Sequence, TypeVar
from uuid import UUID

# 병합 후 이미지 최대 개수: fixed ceiling, not configurable
MAX_MERGED_IMAGES: int = 10

# 메모 블록 구분자: delimiter between note blocks
NOTE_BLOCK_SEPARATOR: str = "\n\n---\n\n"

K = TypeVar("K")


class MergeableIssue(Protocol):
    id: UUID
    title: str
    notes: str | None
    images: list[str] | None
    reported_by: UUID


def ordered_unique(items: Iterable[K]) -> list[K]:
    """첫 등장 순서를 유지하며 중복 제거 (De-duplicate, keeping first-seen order)."""
    return list(dict.fromkeys(items))


def clean_duplicate_ids(master_id: UUID, duplicate_ids: Iterable[UUID]) -> list[UUID]:
    """마스터 ID를 제외하고 중복을 제거한 ID 목록.

    Drop every occurrence of the master id and repeated ids.
    Self-merge is silently ignored rather than rejected.
    """
    return ordered_unique(i for i in duplicate_ids if i != master_id)


def collect_reporters(master: MergeableIssue, duplicates: Sequence[MergeableIssue]) -> list[UUID]:
    """병합 알림을 받을 신고자 목록.

    Reporters of the duplicates, first-seen order, without the master's
    reporter (who gets a separate notification).
    """
    return [r for r in ordered_unique(d.reported_by for d in duplicates) if r != master.reported_by]


def combine_notes(
    master: MergeableIssue,
    duplicates: Sequence[MergeableIssue],
    merged_at: datetime,
    merge_notes: str | None = None,
) -> str:
    """마스터 이슈의 새 메모를 만듭니다.

    Build the master's combined notes. Blocks appear in this order, joined by
    NOTE_BLOCK_SEPARATOR:

        1. [Original Notes]        the master's own notes, if any
        2. [Merge Notes - <ts>]    operator-supplied merge notes, if any
        3. [Merged Issue Notes]    one line per duplicate that has notes
        4. [Merge Summary]         every merged duplicate's title and id

    Args:
        master: 마스터 이슈 (Issue receiving the merge)
        duplicates: 병합되는 이슈 목록 (Issues being merged, in merge order)
        merged_at: 병합 시각 (Timestamp used for the labels and summary)
        merge_notes: 운영자 메모 (Operator rationale, optional)

    Returns:
        str: 결합된 메모 (Combined note thread)
    """
    stamp: str = merged_at.isoformat()
    parts: list[str] = []

    if master.notes:
        parts.append(f"[Original Notes]\n{master.notes}")

    if merge_notes:
        parts.append(f"[Merge Notes - {stamp}]\n{merge_notes}")

    duplicate_notes: list[str] = [
        f'Issue "{d.title}" ({d.id}): {d.notes}' for d in duplicates if d.notes
    ]
    if duplicate_notes:
        parts.append("[Merged Issue Notes]\n" + "\n\n".join(duplicate_notes))

    summary_lines: str = "\n".join(f"- {d.title} ({d.id})" for d in duplicates)
    parts.append(
        f"[Merge Summary]\nMerged {len(duplicates)} duplicate issue(s) on {stamp}:\n{summary_lines}"
    )

    return NOTE_BLOCK_SEPARATOR.join(parts)


def combine_images(master: MergeableIssue, duplicates: Sequence[MergeableIssue]) -> list[str]:
    """이미지 참조를 합칩니다: 첫 등장 순서, 중복 제거, 최대 10개.

    Union of the master's images followed by each duplicate's, in first-seen
    order, truncated to MAX_MERGED_IMAGES.
    """
    sources: list[list[str]] = [master.images or []] + [d.images or [] for d in duplicates]
    combined: list[str] = ordered_unique(img for images in sources for img in images)
    return combined[:MAX_MERGED_IMAGES]
