"""Tests for AnalysisWorker retry, failure recording and loop resilience."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

from thumbsup.domain.content_analysis.errors import (
    AnalysisCancelled,
    CapabilityNotConfiguredError,
    TransientCapabilityError,
)
from thumbsup.pipeline.analysis_queue import AnalysisQueue
from thumbsup.pipeline.analysis_worker import AnalysisWorker
from thumbsup.utils.retry import RetryPolicy

from tests.unit.pipeline_fakes import FakeCancellationToken


def _worker(extractor, queue=None, attempts=3):
    return AnalysisWorker(
        queue or AnalysisQueue(poll_interval=0.01),
        extractor,
        retry_policy=RetryPolicy(attempts=attempts, base_delay=1.0),
    )


class TestProcess:
    def test_success(self):
        extractor = MagicMock()
        worker = _worker(extractor)
        submission_id = uuid.uuid4()

        assert worker.process(submission_id, FakeCancellationToken())
        extractor.analyze.assert_called_once()
        extractor.record_failure.assert_not_called()
        assert worker.stats.processed == 1

    def test_transient_failures_are_retried_with_doubling_backoff(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = [
            TransientCapabilityError("db busy"),
            TimeoutError("slow"),
            MagicMock(),
        ]
        token = FakeCancellationToken()
        worker = _worker(extractor)

        assert worker.process(uuid.uuid4(), token)
        assert extractor.analyze.call_count == 3
        assert token.waits == [1.0, 2.0]
        assert worker.stats.retried == 2

    def test_exhausted_retries_record_failure(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = TimeoutError("still slow")
        worker = _worker(extractor)
        submission_id = uuid.uuid4()

        assert not worker.process(submission_id, FakeCancellationToken())
        assert extractor.analyze.call_count == 3
        extractor.record_failure.assert_called_once()
        recorded_id, reason = extractor.record_failure.call_args.args
        assert recorded_id == submission_id
        assert "still slow" in reason
        assert worker.stats.failed == 1

    def test_terminal_failure_is_recorded_without_retry(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = CapabilityNotConfiguredError("OCR capability is not configured")
        token = FakeCancellationToken()
        worker = _worker(extractor)

        worker.process(uuid.uuid4(), token)
        assert extractor.analyze.call_count == 1
        assert token.waits == []
        reason = extractor.record_failure.call_args.args[1]
        assert reason.startswith("CapabilityNotConfiguredError")

    def test_failure_reason_is_bounded(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = ValueError("x" * 10_000)
        worker = AnalysisWorker(AnalysisQueue(), extractor, RetryPolicy(), failure_reason_max_length=100)

        worker.process(uuid.uuid4(), FakeCancellationToken())
        assert len(extractor.record_failure.call_args.args[1]) == 100

    def test_cancelled_analysis_records_nothing(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = AnalysisCancelled("shutdown")
        worker = _worker(extractor)

        assert not worker.process(uuid.uuid4(), FakeCancellationToken())
        extractor.record_failure.assert_not_called()
        assert worker.stats.cancelled == 1

    def test_cancel_during_backoff_stops_retrying(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = TimeoutError()
        worker = _worker(extractor)

        assert not worker.process(uuid.uuid4(), FakeCancellationToken(cancel_on_wait=True))
        assert extractor.analyze.call_count == 1
        extractor.record_failure.assert_not_called()

    def test_error_while_recording_failure_is_contained(self):
        extractor = MagicMock()
        extractor.analyze.side_effect = ValueError("bad")
        extractor.record_failure.side_effect = RuntimeError("db down")
        worker = _worker(extractor)

        assert not worker.process(uuid.uuid4(), FakeCancellationToken())


class TestRun:
    def test_one_failure_does_not_stop_the_loop(self):
        queue = AnalysisQueue(poll_interval=0.01)
        bad, good = uuid.uuid4(), uuid.uuid4()
        queue.enqueue(bad)
        queue.enqueue(good)

        extractor = MagicMock()

        def analyze(submission_id, cancel):
            if submission_id == bad:
                raise ValueError("corrupt media")
            return MagicMock()

        extractor.analyze.side_effect = analyze
        worker = _worker(extractor, queue)
        # one is_cancelled check per loop turn, plus one after each dequeue
        token = FakeCancellationToken(cancel_after_checks=4)

        worker.run(token)

        analyzed = [call.args[0] for call in extractor.analyze.call_args_list]
        assert analyzed == [bad, good]
        assert extractor.record_failure.call_args.args[0] == bad
        assert worker.stats.processed == 1
        assert worker.stats.failed == 1
