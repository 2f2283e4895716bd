# novel-looker

The reading core of a novel reader, as a plain Python library with no dependencies.

- `novel_looker.models`: data types for chapters, novels, book sources and reading progress. It also has the `ChapterStore` and `ContentFetcher` protocols and an in-memory store, `MemoryLibrary`.
- `novel_looker.buffer`: a three-chapter scrolling buffer. It joins the previous, current and next chapters with blank lines and keeps the rows where each one ends. It also works out which chapter is at the top of the viewport and builds a progress label.
- `novel_looker.fuzzy`: fuzzy matching of chapter names. Ties are broken by how close a chapter is to an anchor chapter.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Storage and fetching

The buffer reads chapter text through a `ChapterStore`, which it uses as a cache. A store must provide these methods:

- `get_novel`
- `get_source`
- `list_chapters`
- `get_chapter_content`
- `save_chapter_content`
- `get_progress`
- `save_progress`

When the store has no text for a chapter, the text is fetched with a `ContentFetcher`, an object with `fetch_chapter_content(source, url)`. The fetched text is then written back to the store.

`MemoryLibrary` is a store kept in memory:

- `add_novel` assigns an id and returns it.
- `replace_toc` replaces a novel's chapter list, sorted by index, and discards that novel's cached content.
- `save_chapter_content` raises `KeyError` when the novel is unknown or the chapter is not in its table of contents.

```python
from novel_looker.models import BookSource, ChapterMeta, MemoryLibrary, Novel

lib = MemoryLibrary()
lib.save_source(BookSource(book_source_url="https://source.example.com/", book_source_name="demo"))
novel_id = lib.add_novel(Novel(source_url="https://source.example.com/",
                               book_url="https://source.example.com/book/1",
                               name="Demo"))
lib.replace_toc(novel_id, [ChapterMeta(index=i, name=f"第 {i + 1} 章",
                                       url=f"https://source.example.com/c{i}")
                           for i in range(3)])
for i, text in enumerate(["A", "B", "C"]):
    lib.save_chapter_content(novel_id, i, text)


class NoFetch:
    def fetch_chapter_content(self, source, url):
        raise LookupError(url)

fetcher = NoFetch()
```

## Buffers and progress

```python
from novel_looker.buffer import init_buffer, progress_text, viewport_top_chapter

chapters = lib.list_chapters(novel_id)
source = lib.get_source("https://source.example.com/")
buf = init_buffer(1, novel_id, chapters, fetcher, source, lib)
viewport_top_chapter(buf, buf.prev_end_row)            # -> 1
progress_text(buf, buf.prev_end_row, len(chapters))    # -> "第 2 章 / 共 3 章 (66%)"
buf.total_rows()                                       # -> 5
```

A chapter with empty text appears as the one-row placeholder `（本章空白）`. Buffer positions are indices into the chapter list. The chapter indices stored in the buffer are the `ChapterMeta.index` values, and these do not need to be consecutive.

`init_buffer` raises `ValueError("無章節可讀")` when the chapter list is empty. It lets any fetch error propagate.

`rebuild_buffer` is meant to run while reading. Both of its errors are subclasses of `RebuildError`:

- It raises `CurrFailed` when the current chapter cannot be loaded. The exception carries `idx` and `cause`.
- It raises `PartialDegraded` when the previous or next chapter fails. The exception's `buffer` is smaller but can still be used.

## Fuzzy table-of-contents filter

```python
from novel_looker.fuzzy import apply_fuzzy_filter, fuzzy_score, pick_best_with_anchor

fuzzy_score("第二章 入魔", "入魔")        # an int, or None when there is no match
scored = apply_fuzzy_filter("出關", chapters, anchor=1)
best = pick_best_with_anchor(scored, 1)   # (position, score) or None
```

Matching is smart-case: it ignores case unless the query contains an upper-case letter.

`apply_fuzzy_filter` returns `(position, score)` pairs, sorted by score from highest to lowest. Equal scores are ordered by distance from `anchor`. Without an anchor they keep their original order. An empty query returns every position with score 0.

## What this package does not do

- It has no terminal screen, key or mouse handling, rendering, or command to run.
- It has no network fetcher. You supply your own `ContentFetcher`.
- It has no persistent storage. `MemoryLibrary` keeps everything in memory only.