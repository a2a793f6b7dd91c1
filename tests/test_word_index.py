"""Tests for tlmode.word_index.WordIndex."""

from __future__ import annotations

import asyncio

import pytest

from tlmode.reactive import Writable
from tlmode.word_index import WordIndex

from .helpers import Collector, drain


class TestVocabulary:
    def test_words_kept_once_in_first_insertion_order(self) -> None:
        index = WordIndex()
        for word in ["b", "a", "b", "c", "a"]:
            index.add_word(word)
        assert index.get_words() == ["b", "a", "c"]

    def test_initial_words_are_deduplicated(self) -> None:
        index = WordIndex(["x", "y", "x"])
        assert index.get_words() == ["x", "y"]
        assert len(index) == 2

    def test_duplicate_add_does_not_count_as_change(self) -> None:
        index = WordIndex()
        index.add_word("a")
        index.add_word("a")
        assert index.pending_changes == 1

    def test_get_words_returns_a_copy(self) -> None:
        index = WordIndex(["a"])
        words = index.get_words()
        words.append("b")
        assert index.get_words() == ["a"]
        assert "b" not in index

    def test_add_sentence_splits_on_non_word_runs(self) -> None:
        index = WordIndex()
        index.add_sentence("hello  there, friend")
        assert index.get_words() == ["hello", "there", "friend"]

    def test_add_sentence_keeps_empty_piece_from_trailing_punctuation(self) -> None:
        index = WordIndex()
        index.add_sentence("hello, world!")
        assert index.get_words() == ["hello", "world", ""]

    def test_add_sentence_keeps_empty_piece_from_leading_punctuation(self) -> None:
        index = WordIndex()
        index.add_sentence("...hi")
        assert index.get_words() == ["", "hi"]

    def test_add_sentence_handles_unicode_words(self) -> None:
        index = WordIndex()
        index.add_sentence("ぺこら desu")
        assert index.get_words() == ["ぺこら", "desu"]


class TestComplete:
    def test_prefix_matches_sorted(self) -> None:
        index = WordIndex(["pekora", "peko", "miko", "pekopeko"])
        assert index.complete("pek") == ["peko", "pekopeko", "pekora"]

    def test_empty_prefix_returns_everything_sorted(self) -> None:
        index = WordIndex(["c", "a", "b"])
        assert index.complete("") == ["a", "b", "c"]

    def test_no_match_returns_empty(self) -> None:
        index = WordIndex(["a"])
        assert index.complete("z") == []

    def test_results_are_subset_of_words(self) -> None:
        index = WordIndex(["ab", "abc", "b", "a"])
        result = index.complete("a")
        assert set(result) <= set(index.get_words())
        assert all(word.startswith("a") for word in result)
        assert result == sorted(result)


class TestFlush:
    def test_flush_without_loop_delivers_pending(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        index.add_word("b")
        assert col.calls == []
        assert index.flush() is True
        assert col.calls == [["a", "b"]]
        assert index.pending_changes == 0

    def test_flush_with_nothing_pending_is_noop(self) -> None:
        index = WordIndex(["a"])
        col = Collector()
        index.subscribe(col)
        assert index.flush() is False
        assert col.calls == []

    def test_cancelled_subscription_not_notified(self) -> None:
        index = WordIndex()
        col = Collector()
        sub = index.subscribe(col)
        sub.cancel()
        index.add_word("a")
        index.flush()
        assert col.calls == []

    def test_subscriber_gets_snapshot(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        index.flush()
        col.calls[0].append("mutated")
        assert index.get_words() == ["a"]

    @pytest.mark.asyncio
    async def test_burst_is_coalesced_into_one_notification(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        for word in ["a", "b", "c", "d"]:
            index.add_word(word)
        assert col.calls == []
        await drain()
        assert col.calls == [["a", "b", "c", "d"]]
        assert index.pending_changes == 0

    @pytest.mark.asyncio
    async def test_separate_bursts_notify_separately(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        await drain()
        index.add_word("b")
        await drain()
        assert col.calls == [["a"], ["a", "b"]]

    @pytest.mark.asyncio
    async def test_duplicate_add_does_not_notify(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        await drain()
        index.add_word("a")
        await drain()
        assert col.calls == [["a"]]

    @pytest.mark.asyncio
    async def test_subscribers_called_in_registration_order(self) -> None:
        index = WordIndex()
        order: list[str] = []
        index.subscribe(lambda words: order.append("first"))
        index.subscribe(lambda words: order.append("second"))
        index.add_word("a")
        await drain()
        assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_stop_holds_changes_until_start(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.stop()
        assert index.running is False
        index.add_word("a")
        await drain()
        assert col.calls == []
        assert index.pending_changes == 1

        index.start()
        await drain()
        assert col.calls == [["a"]]

    @pytest.mark.asyncio
    async def test_stop_cancels_armed_tick(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        index.stop()
        await drain()
        assert col.calls == []

    @pytest.mark.asyncio
    async def test_manual_flush_disarms_tick(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        assert index.flush() is True
        await drain()
        assert col.calls == [["a"]]

    @pytest.mark.asyncio
    async def test_idle_index_stays_quiet(self) -> None:
        index = WordIndex()
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        await drain(ticks=20)
        assert col.calls == [["a"]]
        assert index.pending_changes == 0

    @pytest.mark.asyncio
    async def test_explicit_loop_is_used(self) -> None:
        loop = asyncio.get_running_loop()
        index = WordIndex(loop=loop)
        col = Collector()
        index.subscribe(col)
        index.add_word("a")
        await drain()
        assert col.calls == [["a"]]


class TestSyncWith:
    def test_wiring_replaces_vocabulary_with_store_value(self) -> None:
        index = WordIndex(["old"])
        store: Writable[list[str]] = Writable(["x", "y"])
        index.sync_with(store)
        assert index.get_words() == ["x", "y"]

    def test_store_update_replaces_not_merges(self) -> None:
        index = WordIndex()
        store: Writable[list[str]] = Writable(["a"])
        index.sync_with(store)
        store.set(["b", "c"])
        assert index.get_words() == ["b", "c"]

    def test_store_update_is_deduplicated(self) -> None:
        index = WordIndex()
        store: Writable[list[str]] = Writable([])
        index.sync_with(store)
        store.set(["a", "a", "b"])
        assert index.get_words() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_round_trip_external_set_then_internal_add(self) -> None:
        index = WordIndex()
        store: Writable[list[str]] = Writable([])
        index.sync_with(store)
        store.set(["ext1", "ext2"])
        index.add_word("mine")
        await drain()
        assert store.get() == ["ext1", "ext2", "mine"]

    @pytest.mark.asyncio
    async def test_external_set_before_flush_wins(self) -> None:
        index = WordIndex()
        store: Writable[list[str]] = Writable([])
        index.sync_with(store)
        index.add_word("pending")
        store.set(["external"])
        await drain()
        # The replace dropped the unflushed word; the flush republishes
        # the replaced vocabulary
        assert store.get() == ["external"]
        assert index.get_words() == ["external"]

    @pytest.mark.asyncio
    async def test_cancel_stops_both_directions(self) -> None:
        index = WordIndex()
        store: Writable[list[str]] = Writable([])
        sub = index.sync_with(store)
        sub.cancel()
        store.set(["external"])
        index.add_word("mine")
        await drain()
        assert index.get_words() == ["mine"]
        assert store.get() == ["external"]
