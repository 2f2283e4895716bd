"""Library data types and an in-memory chapter store."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ChapterMeta:
    """One table-of-contents entry. ``index`` need not be dense."""

    index: int
    name: str
    url: str


@dataclass
class Novel:
    """A book on the shelf, tied to the source it is read from."""

    source_url: str
    book_url: str
    name: str
    author: str | None = None
    intro: str | None = None
    cover_url: str | None = None
    toc_url: str | None = None
    id: int | None = None


@dataclass
class BookSource:
    """Identity of a book source; scraping rules live elsewhere."""

    book_source_url: str
    book_source_name: str
    book_source_group: str | None = None
    enabled: bool = True
    book_url_pattern: str | None = None
    header: str | None = None


@dataclass(frozen=True)
class ReadProgress:
    """Where a reader left off: chapter position and row offset."""

    novel_id: int
    chapter_index: int
    scroll_offset: int = 0


@runtime_checkable
class ChapterStore(Protocol):
    """Storage the reader needs: novels, sources, TOCs, content, progress."""

    def get_novel(self, novel_id: int) -> Novel | None: ...

    def get_source(self, url: str) -> BookSource | None: ...

    def list_chapters(self, novel_id: int) -> list[ChapterMeta]: ...

    def get_chapter_content(self, novel_id: int, index: int) -> str | None: ...

    def save_chapter_content(self, novel_id: int, index: int, content: str) -> None: ...

    def get_progress(self, novel_id: int) -> ReadProgress | None: ...

    def save_progress(self, progress: ReadProgress) -> None: ...


@runtime_checkable
class ContentFetcher(Protocol):
    """Fetches the text of one chapter from a book source."""

    def fetch_chapter_content(self, source: BookSource, url: str) -> str: ...


@dataclass
class MemoryLibrary:
    """A ChapterStore kept entirely in memory."""

    _novels: dict[int, Novel] = field(default_factory=dict)
    _sources: dict[str, BookSource] = field(default_factory=dict)
    _tocs: dict[int, list[ChapterMeta]] = field(default_factory=dict)
    _contents: dict[tuple[int, int], str] = field(default_factory=dict)
    _progress: dict[int, ReadProgress] = field(default_factory=dict)
    _next_id: int = 1

    def add_novel(self, novel: Novel) -> int:
        """Store a novel under a fresh id and return that id."""
        novel_id = self._next_id
        self._next_id += 1
        self._novels[novel_id] = dataclasses.replace(novel, id=novel_id)
        self._tocs[novel_id] = []
        return novel_id

    def get_novel(self, novel_id: int) -> Novel | None:
        novel = self._novels.get(novel_id)
        return dataclasses.replace(novel) if novel is not None else None

    def save_source(self, source: BookSource) -> None:
        """Insert or replace a source keyed by its URL."""
        self._sources[source.book_source_url] = source

    def get_source(self, url: str) -> BookSource | None:
        return self._sources.get(url)

    def _require_novel(self, novel_id: int) -> None:
        if novel_id not in self._novels:
            raise KeyError(f"找不到小說 #{novel_id}")

    def replace_toc(self, novel_id: int, chapters: list[ChapterMeta]) -> None:
        """Replace a novel's chapter list, discarding its cached content."""
        self._require_novel(novel_id)
        self._tocs[novel_id] = sorted(chapters, key=lambda c: c.index)
        for key in [k for k in self._contents if k[0] == novel_id]:
            del self._contents[key]

    def list_chapters(self, novel_id: int) -> list[ChapterMeta]:
        """Chapters of a novel ordered by index; empty for unknown novels."""
        return list(self._tocs.get(novel_id, []))

    def get_chapter_content(self, novel_id: int, index: int) -> str | None:
        return self._contents.get((novel_id, index))

    def save_chapter_content(self, novel_id: int, index: int, content: str) -> None:
        """Cache a chapter's text; the chapter must be in the novel's TOC."""
        self._require_novel(novel_id)
        if not any(c.index == index for c in self._tocs[novel_id]):
            raise KeyError(f"小說 #{novel_id} 沒有第 {index} 章")
        self._contents[(novel_id, index)] = content

    def get_progress(self, novel_id: int) -> ReadProgress | None:
        return self._progress.get(novel_id)

    def save_progress(self, progress: ReadProgress) -> None:
        self._progress[progress.novel_id] = progress