"""Tests for the in-process AnalysisQueue."""

from __future__ import annotations

import threading
import uuid

from thumbsup.infra.tasks.cancellation import EventCancellationToken
from thumbsup.pipeline.analysis_queue import AnalysisQueue

from tests.unit.pipeline_fakes import FakeCancellationToken


class TestAnalysisQueue:
    def test_fifo_order(self):
        queue = AnalysisQueue(poll_interval=0.01)
        ids = [uuid.uuid4() for _ in range(3)]
        for submission_id in ids:
            assert queue.enqueue(submission_id)
        assert [queue.try_dequeue() for _ in ids] == ids
        assert queue.try_dequeue() is None

    def test_waiting_duplicate_is_coalesced(self):
        queue = AnalysisQueue()
        submission_id = uuid.uuid4()
        assert queue.enqueue(submission_id)
        assert not queue.enqueue(submission_id)
        assert len(queue) == 1

    def test_can_requeue_after_dequeue(self):
        queue = AnalysisQueue()
        submission_id = uuid.uuid4()
        queue.enqueue(submission_id)
        queue.try_dequeue()
        assert queue.enqueue(submission_id)
        assert len(queue) == 1

    def test_dequeue_yields_until_cancelled(self):
        queue = AnalysisQueue(poll_interval=0.01)
        ids = [uuid.uuid4(), uuid.uuid4()]
        for submission_id in ids:
            queue.enqueue(submission_id)

        token = FakeCancellationToken()
        seen = []
        for submission_id in queue.dequeue(token):
            seen.append(submission_id)
            if len(seen) == len(ids):
                token.cancelled = True
        assert seen == ids

    def test_dequeue_returns_immediately_when_already_cancelled(self):
        queue = AnalysisQueue(poll_interval=0.01)
        queue.enqueue(uuid.uuid4())
        assert list(queue.dequeue(FakeCancellationToken(cancelled=True))) == []
        assert len(queue) == 1

    def test_blocked_dequeue_wakes_on_enqueue(self):
        queue = AnalysisQueue(poll_interval=5.0)
        submission_id = uuid.uuid4()
        result = []

        def consume():
            result.append(queue.try_dequeue(timeout=5.0))

        consumer = threading.Thread(target=consume)
        consumer.start()
        queue.enqueue(submission_id)
        consumer.join(timeout=5.0)
        assert result == [submission_id]

    def test_blocked_dequeue_observes_cancellation(self):
        queue = AnalysisQueue(poll_interval=0.01)
        token = EventCancellationToken()
        done = threading.Event()

        def consume():
            list(queue.dequeue(token))
            done.set()

        consumer = threading.Thread(target=consume, daemon=True)
        consumer.start()
        token.cancel()
        assert done.wait(timeout=5.0)

    def test_concurrent_producers_lose_nothing(self):
        queue = AnalysisQueue()
        ids = [uuid.uuid4() for _ in range(200)]

        def produce(chunk):
            for submission_id in chunk:
                queue.enqueue(submission_id)

        threads = [threading.Thread(target=produce, args=(ids[i::4],)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        drained = []
        while (submission_id := queue.try_dequeue()) is not None:
            drained.append(submission_id)
        assert sorted(drained) == sorted(ids)
