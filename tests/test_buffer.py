import pytest

from novel_looker.buffer import (
    EMPTY_CONTENT_PLACEHOLDER,
    ChapterBuffer,
    CurrFailed,
    PartialDegraded,
    RebuildError,
    assemble_buffer,
    init_buffer,
    load_content_or_fetch,
    progress_text,
    rebuild_buffer,
    viewport_top_chapter,
)
from novel_looker.models import BookSource, ChapterMeta, MemoryLibrary, Novel


def url_of(i):
    return f"https://test.example/book/1/c{i}"


def chapters_n(n):
    return [ChapterMeta(index=i, name=f"第 {i + 1} 章", url=url_of(i)) for i in range(n)]


class MockFetcher:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def fetch_chapter_content(self, source, url):
        self.calls.append(url)
        resp = self.responses.get(url)
        if resp is None:
            raise RuntimeError(f"no mock for url {url}")
        if isinstance(resp, Exception):
            raise resp
        return resp


def mock_source():
    return BookSource(book_source_url="https://test.example/", book_source_name="test")


def seed(contents):
    store = MemoryLibrary()
    novel_id = store.add_novel(
        Novel(source_url="https://test.example/", book_url="https://test.example/book/1", name="Test")
    )
    chapters = chapters_n(len(contents))
    store.replace_toc(novel_id, chapters)
    for i, text in enumerate(contents):
        if text is not None:
            store.save_chapter_content(novel_id, i, text)
    return store, novel_id, store.list_chapters(novel_id)


def test_int_buffer_01_normal_3_chapters_cache_hit():
    store, novel_id, chapters = seed(["A", "B", "C", "D"])
    fetcher = MockFetcher()
    buf = init_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    assert buf.prev_chapter_idx == 0
    assert buf.curr_chapter_idx == 1
    assert buf.next_chapter_idx == 2
    assert all(c in buf.combined_text for c in "ABC")
    assert buf.prev_end_row == 1
    assert buf.curr_end_row > buf.prev_end_row
    assert fetcher.calls == []


def test_int_buffer_02_first_chapter_degraded():
    store, novel_id, chapters = seed(["A", "B", "C"])
    fetcher = MockFetcher()
    buf = init_buffer(0, novel_id, chapters, fetcher, mock_source(), store)
    assert buf.prev_chapter_idx is None
    assert buf.curr_chapter_idx == 0
    assert buf.next_chapter_idx == 1
    assert buf.prev_end_row == 0


def test_int_buffer_03_last_chapter_degraded():
    store, novel_id, chapters = seed(["A", "B", "C"])
    last = len(chapters) - 1
    buf = init_buffer(last, novel_id, chapters, MockFetcher(), mock_source(), store)
    assert buf.prev_chapter_idx == last - 1
    assert buf.curr_chapter_idx == last
    assert buf.next_chapter_idx is None


def test_int_buffer_04_cache_hit_no_fetch():
    store, novel_id, chapters = seed(["A", "B", "C"])
    fetcher = MockFetcher()
    buf = init_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    assert fetcher.calls == []
    assert buf.combined_text == "A\n\nB\n\nC"


def test_int_buffer_04b_cache_miss_save_back():
    store, novel_id, chapters = seed([None, "B", None])
    fetcher = MockFetcher({url_of(0): "A-fetched", url_of(2): "C-fetched"})
    init_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    assert store.get_chapter_content(novel_id, 0) == "A-fetched"
    assert store.get_chapter_content(novel_id, 2) == "C-fetched"
    assert sorted(fetcher.calls) == [url_of(0), url_of(2)]


def test_init_buffer_propagates_fetch_error():
    store, novel_id, chapters = seed(["A", None, "C"])
    fetcher = MockFetcher({url_of(1): RuntimeError("boom")})
    with pytest.raises(RuntimeError, match="boom"):
        init_buffer(1, novel_id, chapters, fetcher, mock_source(), store)


def test_int_buffer_05_rebuild_partial_degraded_on_next_fail():
    store, novel_id, chapters = seed(["A", "B", None])
    fetcher = MockFetcher({url_of(2): RuntimeError("network down")})
    with pytest.raises(PartialDegraded) as info:
        rebuild_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    buf = info.value.buffer
    assert buf.prev_chapter_idx == 0
    assert buf.curr_chapter_idx == 1
    assert buf.next_chapter_idx is None
    assert "A" in buf.combined_text
    assert "B" in buf.combined_text
    assert isinstance(info.value, RebuildError)


def test_int_buffer_06_rebuild_curr_failed():
    store, novel_id, chapters = seed(["A", None, "C"])
    fetcher = MockFetcher({url_of(1): RuntimeError("curr boom")})
    with pytest.raises(CurrFailed) as info:
        rebuild_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    assert info.value.idx == 1
    assert "curr boom" in str(info.value.cause)


def test_rebuild_buffer_success():
    store, novel_id, chapters = seed(["A", "B", "C", "D"])
    buf = rebuild_buffer(2, novel_id, chapters, MockFetcher(), mock_source(), store)
    assert (buf.prev_chapter_idx, buf.curr_chapter_idx, buf.next_chapter_idx) == (1, 2, 3)
    assert buf.combined_text == "B\n\nC\n\nD"


def test_rebuild_buffer_empty_chapters_curr_failed():
    store, novel_id, chapters = seed([])
    with pytest.raises(CurrFailed) as info:
        rebuild_buffer(0, novel_id, chapters, MockFetcher(), mock_source(), store)
    assert info.value.idx == 0


def test_int_boundary_empty_chapters():
    store, novel_id, chapters = seed([])
    with pytest.raises(ValueError, match="無章節可讀"):
        init_buffer(0, novel_id, chapters, MockFetcher(), mock_source(), store)


def test_int_boundary_empty_content():
    store, novel_id, chapters = seed(["A", None, "C"])
    fetcher = MockFetcher({url_of(1): ""})
    buf = init_buffer(1, novel_id, chapters, fetcher, mock_source(), store)
    assert "（本章空白）" in buf.combined_text
    assert buf.prev_end_row == 1
    assert buf.curr_end_row > buf.prev_end_row


def test_load_content_or_fetch_prefers_cache():
    store, novel_id, chapters = seed(["cached"])
    fetcher = MockFetcher({url_of(0): "fresh"})
    assert load_content_or_fetch(novel_id, chapters, 0, fetcher, mock_source(), store) == "cached"
    assert fetcher.calls == []


def test_assemble_buffer_offsets():
    chapters = chapters_n(3)
    buf = assemble_buffer(chapters, 1, 0, 2, "A\nA2", "B\nB2", "C")
    assert buf.combined_text == "A\nA2\n\nB\nB2\n\nC"
    assert buf.prev_end_row == 2
    assert buf.curr_end_row == 5
    assert buf.total_rows() == 7


def test_assemble_buffer_placeholder_and_no_neighbours():
    buf = assemble_buffer(chapters_n(1), 0, None, None, None, "", None)
    assert buf.combined_text == EMPTY_CONTENT_PLACEHOLDER
    assert buf.prev_end_row == 0
    assert buf.curr_end_row == 1
    assert buf.total_rows() == 1


def test_total_rows_ignores_trailing_newline():
    buf = assemble_buffer(chapters_n(1), 0, None, None, None, "B\n", None)
    assert buf.curr_end_row == 1
    assert buf.total_rows() == 1


def test_total_rows_of_five_line_buffer():
    buf = assemble_buffer(chapters_n(3), 1, 0, 2, "A", "B", "C")
    assert buf.total_rows() == 5


def test_int_viewport_01_in_prev_region():
    buf = assemble_buffer(chapters_n(3), 1, 0, 2, "A\nA2", "B\nB2", "C")
    assert viewport_top_chapter(buf, 0) == 0
    assert viewport_top_chapter(buf, 1) == 0


def test_int_viewport_02_in_curr_region():
    buf = assemble_buffer(chapters_n(3), 1, 0, 2, "A", "B\nB2", "C")
    assert viewport_top_chapter(buf, 1) == 1
    assert viewport_top_chapter(buf, 3) == 1


def test_int_viewport_03_in_next_region():
    buf = assemble_buffer(chapters_n(3), 1, 0, 2, "A", "B", "C\nC2")
    assert viewport_top_chapter(buf, 3) == 2
    assert viewport_top_chapter(buf, 10) == 2
    buf2 = assemble_buffer(chapters_n(2), 1, 0, None, "A", "B", None)
    assert viewport_top_chapter(buf2, 99) == 1


def test_int_progress_01_text_format_in_three_regions():
    buf = ChapterBuffer(
        combined_text="x" * 100,
        prev_chapter_idx=4,
        curr_chapter_idx=5,
        next_chapter_idx=6,
        prev_end_row=10,
        curr_end_row=21,
    )
    assert progress_text(buf, 0, 100) == "第 5 章 / 共 100 章 (5%)"
    assert progress_text(buf, 15, 100) == "第 6 章 / 共 100 章 (6%)"
    assert progress_text(buf, 25, 100) == "第 7 章 / 共 100 章 (7%)"


def test_int_progress_01_first_chapter_no_prev():
    buf = ChapterBuffer(
        combined_text="x" * 50,
        prev_chapter_idx=None,
        curr_chapter_idx=0,
        next_chapter_idx=1,
        prev_end_row=0,
        curr_end_row=10,
    )
    assert progress_text(buf, 0, 100) == "第 1 章 / 共 100 章 (1%)"


def test_progress_text_zero_total_and_clamp():
    buf = ChapterBuffer("x", None, 9, None, 0, 1)
    assert progress_text(buf, 0, 0) == "第 10 章 / 共 0 章 (0%)"
    assert progress_text(buf, 0, 5) == "第 10 章 / 共 5 章 (100%)"