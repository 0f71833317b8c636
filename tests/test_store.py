"""Tests for SegmentStore edit operations."""

import pytest

from mediacut.errors import SegmentIndexError
from mediacut.models import TranscriptSegment
from mediacut.store import SegmentStore


def _seg(start, end, text, speaker="A"):
    return TranscriptSegment(start=start, end=end, text=text, speaker=speaker)


@pytest.fixture
def store() -> SegmentStore:
    return SegmentStore([
        _seg("00:00.000", "00:02.000", "one", "A"),
        _seg("00:02.000", "00:04.000", "two", "B"),
        _seg("00:04.000", "00:06.000", "three", "A"),
    ])


class TestImmutability:
    def test_operations_return_new_store(self, store):
        before = list(store)
        store.delete(0)
        store.merge_down(0)
        store.rename_speaker("A", "C")
        assert list(store) == before

    def test_equality(self, store):
        assert store == SegmentStore(list(store))


class TestEditDelete:
    def test_edit(self, store):
        new = store.edit(1, _seg("00:02.000", "00:04.000", "TWO", "B"))
        assert new[1].text == "TWO"
        assert len(new) == 3

    def test_delete(self, store):
        new = store.delete(1)
        assert [s.text for s in new] == ["one", "three"]

    def test_delete_many_keeps_the_rest(self, store):
        new = store.delete_many([0, 2])
        assert [s.text for s in new] == ["two"]

    def test_delete_many_ignores_duplicates(self, store):
        assert len(store.delete_many([2, 2, 0])) == 1

    @pytest.mark.parametrize("index", [-1, 3, 99])
    def test_out_of_range(self, store, index):
        with pytest.raises(SegmentIndexError):
            store.delete(index)

    def test_index_error_is_index_error(self, store):
        with pytest.raises(IndexError):
            store[5]

    def test_delete_many_validates_all_first(self, store):
        with pytest.raises(SegmentIndexError):
            store.delete_many([0, 7])


class TestMerge:
    def test_merge_down_count(self, store):
        new = store.merge_down(0)
        assert len(new) == len(store) - 1
        assert new[0] == _seg("00:00.000", "00:04.000", "one two", "A")

    def test_merge_down_last_is_noop(self, store):
        assert store.merge_down(2) is store

    def test_merge_selected_adjacent(self, store):
        new = store.merge_selected([1, 2])
        assert len(new) == 2
        assert new[1] == _seg("00:02.000", "00:06.000", "two three", "B")

    def test_merge_selected_with_gap(self, store):
        new = store.merge_selected([2, 0])
        assert [s.text for s in new] == ["one three", "two"]
        assert new[0].start == "00:00.000"
        assert new[0].end == "00:06.000"

    def test_merge_selected_spread_keeps_gap_segments(self):
        s = SegmentStore([_seg(f"00:0{i}.000", f"00:0{i}.500", f"s{i}") for i in range(5)])
        new = s.merge_selected({0, 2, 4})
        assert len(new) == len(s) - 2
        assert [x.text for x in new] == ["s0 s2 s4", "s1", "s3"]
        assert (new[0].start, new[0].end) == ("00:00.000", "00:04.500")

    def test_merge_selected_single_is_noop(self, store):
        assert store.merge_selected([1]) is store


class TestSplit:
    def test_split_at_midpoint(self):
        s = SegmentStore([_seg("00:00.000", "00:04.000", "a b c d")])
        new = s.split(0)
        assert len(new) == 2
        assert new[0] == _seg("00:00.000", "00:02.000", "a b")
        assert new[1] == _seg("00:02.000", "00:04.000", "c d")

    def test_split_at_time(self):
        s = SegmentStore([_seg("00:00.000", "00:04.000", "a b c d")])
        new = s.split(0, at=1.0)
        assert new[0].end == "00:01.000"
        assert new[0].text == "a"
        assert new[1].text == "b c d"

    def test_split_keeps_both_halves_non_empty(self):
        s = SegmentStore([_seg("00:00.000", "00:10.000", "a b")])
        new = s.split(0, at=0.1)
        assert new[0].text == "a"
        assert new[1].text == "b"

    def test_split_clamps_time(self):
        s = SegmentStore([_seg("00:02.000", "00:04.000", "x y")])
        new = s.split(0, at=99.0)
        assert new[0].end == "00:04.000"


class TestSpeakers:
    def test_rename(self, store):
        new = store.rename_speaker("A", "Host")
        assert [s.speaker for s in new] == ["Host", "B", "Host"]

    def test_lossy_rename(self, store):
        assert store.is_lossy_rename("A", "B") is True
        assert store.is_lossy_rename("A", "C") is False
        assert store.is_lossy_rename("A", "A") is False

    def test_speakers_in_first_seen_order(self, store):
        assert store.speakers() == ["A", "B"]


class TestSort:
    def test_sort_restores_order(self):
        s = SegmentStore([
            _seg("00:05.000", "00:06.000", "late"),
            _seg("00:01.000", "00:02.000", "early"),
        ])
        assert [x.text for x in s.sort()] == ["early", "late"]

    def test_sort_is_stable(self):
        s = SegmentStore([
            _seg("00:01.000", "00:02.000", "first"),
            _seg("00:01.000", "00:03.000", "second"),
        ])
        assert [x.text for x in s.sort()] == ["first", "second"]

    def test_sort_overlapping_out_of_order(self):
        s = SegmentStore([
            _seg("00:05.000", "00:09.000", "c"),
            _seg("00:01.000", "00:06.000", "a"),
            _seg("00:03.000", "00:04.000", "b"),
            _seg("00:01.000", "00:02.000", "a2"),
        ])
        ordered = s.sort()
        assert [x.text for x in ordered] == ["a", "a2", "b", "c"]
        assert ordered[0].end == "00:06.000"
