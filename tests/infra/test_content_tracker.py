"""Testes para infra/content_tracker.py.

Cobre atomicidade sob concorrência, expiração com relógio manual e o ciclo
de vida da task de varredura.
"""

from __future__ import annotations

import asyncio
import threading

import pytest

from note_tweet_connector.config.settings import Settings
from note_tweet_connector.infra.content_tracker import ContentTracker, create_content_tracker
from tests.helpers.payloads import FakeClock

TTL = 5 * 60 * 60
SWEEP_INTERVAL = 60


class TestCheckAndMark:
    def test_first_call_wins(self, tracker: ContentTracker) -> None:
        assert tracker.check_and_mark("hello") is True
        assert tracker.check_and_mark("hello") is False

    def test_equivalent_text_is_duplicate(self, tracker: ContentTracker) -> None:
        assert tracker.check_and_mark("Hello World") is True
        assert tracker.check_and_mark("hello\nworld https://t.co/x") is False

    def test_is_marked_does_not_mark(self, tracker: ContentTracker) -> None:
        assert tracker.is_marked("hello") is False
        assert tracker.is_marked("hello") is False
        assert len(tracker) == 0

    def test_is_marked_after_mark(self, tracker: ContentTracker) -> None:
        tracker.check_and_mark("hello")
        assert tracker.is_marked("hello") is True

    def test_repeat_hit_keeps_original_timestamp(
        self, tracker: ContentTracker, clock: FakeClock
    ) -> None:
        tracker.check_and_mark("hello")
        clock.advance(TTL - 10)
        assert tracker.check_and_mark("hello") is False
        clock.advance(20)
        tracker.sweep()
        assert tracker.check_and_mark("hello") is True

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "日本語のノート 🎉", "x" * 10_000, "\n\n\n", "null"],
    )
    def test_total_over_any_input(self, tracker: ContentTracker, text: str) -> None:
        assert tracker.check_and_mark(text) is True
        assert tracker.check_and_mark(text) is False
        assert tracker.is_marked(text) is True

    def test_distinct_texts_are_independent(self, tracker: ContentTracker) -> None:
        texts = [f"post {chr(ord('a') + i)}" for i in range(26)]
        assert all(tracker.check_and_mark(t) for t in texts)
        assert len(tracker) == 26

    def test_invalid_ttl_rejected(self) -> None:
        with pytest.raises(ValueError):
            ContentTracker(ttl_seconds=0)
        with pytest.raises(ValueError):
            ContentTracker(ttl_seconds=10, sweep_interval_seconds=0)


class TestConcurrency:
    def test_threads_same_text_single_winner(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        barrier = threading.Barrier(100)
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            outcome = tracker.check_and_mark("concurrent text")
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(100)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 99

    def test_threads_distinct_texts_all_win(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        texts = [f"distinct {chr(ord('a') + i)}" for i in range(26)]
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker(text: str) -> None:
            outcome = tracker.check_and_mark(text)
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker, args=(t,)) for t in texts]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 26

    @pytest.mark.asyncio
    async def test_tasks_same_text_single_winner(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)

        async def worker() -> bool:
            await asyncio.sleep(0)
            return tracker.check_and_mark("async text")

        results = await asyncio.gather(*(worker() for _ in range(100)))
        assert results.count(True) == 1


class TestExpiry:
    def test_entry_kept_before_ttl(self, tracker: ContentTracker, clock: FakeClock) -> None:
        tracker.check_and_mark("hello")
        clock.advance(TTL - 1)
        assert tracker.sweep() == 0
        assert tracker.is_marked("hello") is True

    def test_entry_removed_after_ttl(self, tracker: ContentTracker, clock: FakeClock) -> None:
        tracker.check_and_mark("hello")
        clock.advance(TTL + SWEEP_INTERVAL)
        assert tracker.sweep() == 1
        assert tracker.is_marked("hello") is False
        assert tracker.check_and_mark("hello") is True

    def test_sweep_only_removes_expired(self, tracker: ContentTracker, clock: FakeClock) -> None:
        tracker.check_and_mark("old")
        clock.advance(TTL - 100)
        tracker.check_and_mark("new")
        clock.advance(200)

        assert tracker.sweep() == 1
        assert tracker.is_marked("old") is False
        assert tracker.is_marked("new") is True
        assert len(tracker) == 1


class TestSweepLifecycle:
    @pytest.mark.asyncio
    async def test_background_sweep_removes_expired(self) -> None:
        clock = FakeClock()
        tracker = ContentTracker(ttl_seconds=10, sweep_interval_seconds=0.01, clock=clock)
        tracker.check_and_mark("hello")
        clock.advance(11)

        await tracker.start()
        try:
            for _ in range(100):
                if len(tracker) == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            await tracker.stop()

        assert len(tracker) == 0

    @pytest.mark.asyncio
    async def test_stop_is_prompt_and_tracker_stays_usable(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL, sweep_interval_seconds=3600)
        await tracker.start()
        assert tracker.is_running is True

        await asyncio.wait_for(tracker.stop(), timeout=1.0)

        assert tracker.is_running is False
        assert tracker.check_and_mark("after stop") is True

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        await tracker.start()
        task = tracker._sweep_task
        await tracker.start()
        assert tracker._sweep_task is task
        await tracker.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        await tracker.stop()
        assert tracker.is_running is False

    @pytest.mark.asyncio
    async def test_stop_absorbs_cancelled_sweeper(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        await tracker.start()
        tracker._sweep_task.cancel()

        await tracker.stop()

        assert tracker.is_running is False

    @pytest.mark.asyncio
    async def test_stop_propagates_caller_cancellation(self) -> None:
        tracker = ContentTracker(ttl_seconds=TTL)
        await tracker.start()
        sweeper = tracker._sweep_task
        # Varredura que não reage ao evento de parada
        tracker._sweep_task = asyncio.create_task(asyncio.sleep(3600))

        stopping = asyncio.create_task(tracker.stop())
        await asyncio.sleep(0)
        stopping.cancel()

        with pytest.raises(asyncio.CancelledError):
            await stopping
        await asyncio.wait_for(sweeper, timeout=1.0)


class TestFactory:
    def test_uses_settings(self) -> None:
        settings = Settings(_env_file=None, tracker_expiry_seconds=120)
        tracker = create_content_tracker(settings)
        assert isinstance(tracker, ContentTracker)
        assert tracker.ttl_seconds == 120
