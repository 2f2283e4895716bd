"""Three-chapter reading buffer: previous, current and next chapter joined together."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from novel_looker.models import BookSource, ChapterMeta, ChapterStore, ContentFetcher

EMPTY_CONTENT_PLACEHOLDER = "（本章空白）"
SECTION_SEPARATOR = "\n\n"
_ROW_MAX = 0xFFFF


def _line_count(text: str) -> int:
    """Number of lines, counting only ``\\n`` breaks and ignoring a trailing one."""
    if not text:
        return 0
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return len(parts)


def _row_count(text: str) -> int:
    return min(max(_line_count(text), 1), _ROW_MAX)


@dataclass
class ChapterBuffer:
    """Up to three chapters joined by blank lines, with the row where each ends.

    ``prev_end_row`` and ``curr_end_row`` are exclusive row ends; the next
    section starts one separator row after ``curr_end_row``.
    """

    combined_text: str
    prev_chapter_idx: int | None
    curr_chapter_idx: int
    next_chapter_idx: int | None
    prev_end_row: int
    curr_end_row: int

    def total_rows(self) -> int:
        """Rendered rows of the whole buffer, at least 1."""
        return _row_count(self.combined_text)


class RebuildError(Exception):
    """A rebuild of the buffer around a new chapter did not fully succeed."""


class CurrFailed(RebuildError):
    """The current chapter could not be loaded; the buffer is unusable."""

    def __init__(self, idx: int, cause: BaseException) -> None:
        super().__init__(f"載入第 {idx + 1} 章失敗: {cause}")
        self.idx = idx
        self.cause = cause


class PartialDegraded(RebuildError):
    """The previous or next chapter failed; ``buffer`` is usable but smaller."""

    def __init__(self, buffer: ChapterBuffer) -> None:
        super().__init__("部分章節載入失敗")
        self.buffer = buffer


def assemble_buffer(
    chapters: Sequence[ChapterMeta],
    pos: int,
    prev_pos: int | None,
    next_pos: int | None,
    prev_text: str | None,
    curr_text: str,
    next_text: str | None,
) -> ChapterBuffer:
    """Join the present sections and compute their row offsets.

    Empty sections are replaced by a one-row placeholder.
    """

    def render(text: str) -> str:
        return text if text else EMPTY_CONTENT_PLACEHOLDER

    curr = render(curr_text)
    prev = render(prev_text) if prev_text is not None else None
    nxt = render(next_text) if next_text is not None else None

    sections = [s for s in (prev, curr, nxt) if s is not None]
    prev_end_row = _row_count(prev) if prev is not None else 0
    separator = 1 if prev is not None else 0
    curr_end_row = min(prev_end_row + separator + _row_count(curr), _ROW_MAX)

    return ChapterBuffer(
        combined_text=SECTION_SEPARATOR.join(sections),
        prev_chapter_idx=chapters[prev_pos].index if prev_pos is not None else None,
        curr_chapter_idx=chapters[pos].index,
        next_chapter_idx=chapters[next_pos].index if next_pos is not None else None,
        prev_end_row=prev_end_row,
        curr_end_row=curr_end_row,
    )


def load_content_or_fetch(
    novel_id: int,
    chapters: Sequence[ChapterMeta],
    pos: int,
    fetcher: ContentFetcher,
    source: BookSource,
    store: ChapterStore,
) -> str:
    """Return cached chapter text, or fetch it and cache it on a miss."""
    meta = chapters[pos]
    try:
        cached = store.get_chapter_content(novel_id, meta.index)
    except Exception:  # a broken cache lookup is treated as a miss
        cached = None
    if cached is not None:
        return cached
    text = fetcher.fetch_chapter_content(source, meta.url)
    try:
        store.save_chapter_content(novel_id, meta.index, text)
    except Exception:  # caching is best effort
        pass
    return text


def _neighbours(pos: int, count: int) -> tuple[int | None, int | None]:
    prev_pos = pos - 1 if pos > 0 else None
    next_pos = pos + 1 if pos < count - 1 else None
    return prev_pos, next_pos


def init_buffer(
    pos: int,
    novel_id: int,
    chapters: Sequence[ChapterMeta],
    fetcher: ContentFetcher,
    source: BookSource,
    store: ChapterStore,
) -> ChapterBuffer:
    """Build the buffer when the reader opens; any load failure propagates."""
    if not chapters:
        raise ValueError("無章節可讀")
    prev_pos, next_pos = _neighbours(pos, len(chapters))

    def load(p: int) -> str:
        return load_content_or_fetch(novel_id, chapters, p, fetcher, source, store)

    curr = load(pos)
    prev = load(prev_pos) if prev_pos is not None else None
    nxt = load(next_pos) if next_pos is not None else None
    return assemble_buffer(chapters, pos, prev_pos, next_pos, prev, curr, nxt)


def rebuild_buffer(
    pos: int,
    novel_id: int,
    chapters: Sequence[ChapterMeta],
    fetcher: ContentFetcher,
    source: BookSource,
    store: ChapterStore,
) -> ChapterBuffer:
    """Rebuild the buffer around ``pos`` while the reader is running.

    Raises CurrFailed if the current chapter cannot be loaded, and
    PartialDegraded (carrying the smaller buffer) if a neighbour fails.
    """
    if not chapters:
        raise CurrFailed(0, ValueError("無章節可讀"))
    curr_idx = chapters[pos].index
    prev_pos, next_pos = _neighbours(pos, len(chapters))

    def load(p: int) -> str:
        return load_content_or_fetch(novel_id, chapters, p, fetcher, source, store)

    try:
        curr = load(pos)
    except Exception as exc:
        raise CurrFailed(curr_idx, exc) from exc

    degraded = False

    def load_neighbour(p: int | None) -> tuple[int | None, str | None]:
        nonlocal degraded
        if p is None:
            return None, None
        try:
            return p, load(p)
        except Exception:
            degraded = True
            return None, None

    prev_final, prev = load_neighbour(prev_pos)
    next_final, nxt = load_neighbour(next_pos)

    buffer = assemble_buffer(chapters, pos, prev_final, next_final, prev, curr, nxt)
    if degraded:
        raise PartialDegraded(buffer)
    return buffer


def viewport_top_chapter(buffer: ChapterBuffer, scroll: int) -> int:
    """Chapter index (not position) owning the row at ``scroll``."""
    if scroll < buffer.prev_end_row:
        return (
            buffer.prev_chapter_idx
            if buffer.prev_chapter_idx is not None
            else buffer.curr_chapter_idx
        )
    if scroll < buffer.curr_end_row:
        return buffer.curr_chapter_idx
    return (
        buffer.next_chapter_idx
        if buffer.next_chapter_idx is not None
        else buffer.curr_chapter_idx
    )


def progress_text(buffer: ChapterBuffer, scroll: int, total: int) -> str:
    """Status-bar label ``第 X 章 / 共 N 章 (Y%)`` for the viewport top."""
    chapter_no = viewport_top_chapter(buffer, scroll) + 1
    percent = 0 if total == 0 else min(max(chapter_no, 0) * 100 // total, 100)
    return f"第 {chapter_no} 章 / 共 {total} 章 ({percent}%)"