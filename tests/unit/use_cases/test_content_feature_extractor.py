"""Tests for ContentFeatureExtractor against an in-memory database."""

from __future__ import annotations

import logging
import threading
import time
import uuid

import pytest

from thumbsup.domain.content_analysis.errors import AnalysisCancelled
from thumbsup.domain.content_analysis.models import AnalysisStatus
from thumbsup.infra.tasks.cancellation import EventCancellationToken
from thumbsup.use_cases.content_analysis.analyze_submission import ContentFeatureExtractor
from thumbsup.utils.retry import RetryPolicy

from tests.unit.pipeline_fakes import (
    T0,
    FakeCancellationToken,
    FakeOcr,
    FakeThemes,
    FixedClock,
    add_feature,
    image_paths,
    make_client,
    make_submission,
)


def _extractor(uow_factory, ocr, themes, **kwargs):
    kwargs.setdefault("retry_policy", RetryPolicy())
    kwargs.setdefault("call_timeout", None)
    kwargs.setdefault("now_fn", FixedClock())
    return ContentFeatureExtractor(uow_factory, ocr, themes, **kwargs)


def _seed(session, *, images=2, videos=0):
    submission = make_submission(session, make_client(session), images=images, videos=videos)
    submission_id = submission.id
    paths = image_paths(session, submission)
    session.commit()
    return submission_id, paths


def _stored(uow_factory, submission_id):
    with uow_factory() as uow:
        return uow.content_features.get(submission_id)


class TestAnalyze:
    def test_transient_ocr_failures_are_retried_until_text_arrives(self, session, uow_factory):
        submission_id, paths = _seed(session, images=2)
        ocr = FakeOcr({paths[0]: [TimeoutError("read timed out"), TimeoutError("read timed out"), "SALE"]})
        themes = FakeThemes({paths[1]: ['{"colors": ["red"]}']})
        token = FakeCancellationToken()

        feature = _extractor(uow_factory, ocr, themes).analyze(submission_id, token)

        assert feature.status is AnalysisStatus.COMPLETED
        assert feature.ocr_text == "SALE"
        assert feature.insights.colors == ("red",)
        assert feature.extracted_at == T0
        assert token.waits == [1.0, 2.0]
        assert ocr.calls[paths[0]] == 3
        assert _stored(uow_factory, submission_id).status is AnalysisStatus.COMPLETED

    def test_ocr_text_is_joined_in_media_order(self, session, uow_factory):
        submission_id, paths = _seed(session, images=2)
        ocr = FakeOcr({paths[0]: ["first"], paths[1]: ["  second  "]})

        feature = _extractor(uow_factory, ocr, FakeThemes()).analyze(submission_id)

        assert feature.ocr_text == "first\nsecond"

    def test_insights_from_every_image_are_combined(self, session, uow_factory):
        submission_id, paths = _seed(session, images=2)
        themes = FakeThemes({
            paths[0]: ['{"keywords": ["coffee", "latte"]}'],
            paths[1]: ['```json\n{"keywords": ["coffee"], "vibes": ["cozy"]}\n```'],
        })

        feature = _extractor(uow_factory, FakeOcr(), themes).analyze(submission_id)

        assert feature.status is AnalysisStatus.COMPLETED
        assert set(feature.insights.keywords) == {"coffee", "latte"}
        assert feature.insights.vibes == ("cozy",)
        assert feature.ocr_text is None

    def test_video_only_submission_is_no_images_without_calls(self, session, uow_factory):
        submission_id, _ = _seed(session, images=0, videos=1)
        ocr, themes = FakeOcr(), FakeThemes()

        feature = _extractor(uow_factory, ocr, themes).analyze(submission_id)

        assert feature.status is AnalysisStatus.NO_IMAGES
        assert ocr.total_calls == 0
        assert themes.total_calls == 0
        assert feature.last_analyzed_at == T0

    def test_nothing_extracted_is_no_signals(self, session, uow_factory):
        submission_id, _ = _seed(session, images=1)

        feature = _extractor(uow_factory, FakeOcr(default="   "), FakeThemes(default="")).analyze(submission_id)

        assert feature.status is AnalysisStatus.NO_SIGNALS
        assert feature.ocr_text is None
        assert not feature.insights.has_any_data
        assert feature.failure_reason is None

    def test_every_call_failing_is_failed(self, session, uow_factory):
        submission_id, _ = _seed(session, images=1)
        ocr = FakeOcr(default=ValueError("unsupported image format"))
        themes = FakeThemes(default=ValueError("unsupported image format"))

        feature = _extractor(uow_factory, ocr, themes).analyze(submission_id)

        assert feature.status is AnalysisStatus.FAILED
        assert "All 2 capability calls failed" in feature.failure_reason
        assert "unsupported image format" in feature.failure_reason
        # terminal errors are not retried
        assert ocr.total_calls == 1
        assert themes.total_calls == 1

    def test_partial_failure_still_completes(self, session, uow_factory):
        submission_id, paths = _seed(session, images=1)
        ocr = FakeOcr(default=ValueError("corrupt file"))
        themes = FakeThemes({paths[0]: ['["Neon", "Retro"]']})

        feature = _extractor(uow_factory, ocr, themes).analyze(submission_id)

        assert feature.status is AnalysisStatus.COMPLETED
        assert feature.tags == ("Neon", "Retro")

    def test_missing_submission_returns_none(self, uow_factory):
        ocr = FakeOcr()
        assert _extractor(uow_factory, ocr, FakeThemes()).analyze(uuid.uuid4()) is None
        assert ocr.total_calls == 0

    def test_reanalysis_replaces_previous_result(self, session, uow_factory):
        submission = make_submission(session, make_client(session), images=1)
        submission_id = submission.id
        add_feature(session, submission, AnalysisStatus.FAILED, failure_reason="old failure")
        session.commit()

        feature = _extractor(uow_factory, FakeOcr(default="MENU"), FakeThemes()).analyze(submission_id)

        assert feature.status is AnalysisStatus.COMPLETED
        assert feature.failure_reason is None
        assert feature.ocr_text == "MENU"


class TestTimeoutsAndCancellation:
    def test_hung_capability_times_out(self, session, uow_factory):
        submission_id, paths = _seed(session, images=1)
        release = threading.Event()

        class HangingOcr(FakeOcr):
            def extract_text(self, image_path):
                release.wait(5)
                return "too late"

        extractor = _extractor(
            uow_factory,
            HangingOcr(),
            FakeThemes({paths[0]: ['{"keywords": ["neon"]}']}),
            retry_policy=RetryPolicy(attempts=1),
            call_timeout=0.05,
        )
        try:
            feature = extractor.analyze(submission_id)
        finally:
            release.set()
            extractor.close()

        assert feature.status is AnalysisStatus.COMPLETED
        assert feature.ocr_text is None
        assert feature.insights.keywords == ("neon",)

    def test_abandoned_hung_call_is_logged(self, session, uow_factory, caplog):
        submission_id, _ = _seed(session, images=1)
        release = threading.Event()

        class HangingOcr(FakeOcr):
            def extract_text(self, image_path):
                release.wait(5)
                return "too late"

        extractor = _extractor(
            uow_factory,
            HangingOcr(),
            FakeThemes(),
            retry_policy=RetryPolicy(attempts=1),
            call_timeout=0.05,
        )
        caplog.set_level(logging.WARNING)
        try:
            extractor.analyze(submission_id)
        finally:
            release.set()
            extractor.close()

        assert any("still running" in record.getMessage() for record in caplog.records)

    def test_cancel_interrupts_wait_on_hung_call(self, session, uow_factory):
        submission_id, _ = _seed(session, images=1)
        release = threading.Event()

        class HangingOcr(FakeOcr):
            def extract_text(self, image_path):
                release.wait(5)
                return "too late"

        extractor = _extractor(
            uow_factory,
            HangingOcr(),
            FakeThemes(),
            retry_policy=RetryPolicy(attempts=1),
            call_timeout=30,
            cancel_poll_interval=0.05,
        )
        token = EventCancellationToken()
        timer = threading.Timer(0.2, token.cancel)
        started = time.monotonic()
        timer.start()
        try:
            with pytest.raises(AnalysisCancelled):
                extractor.analyze(submission_id, token)
            elapsed = time.monotonic() - started
        finally:
            timer.cancel()
            release.set()
            extractor.close()

        assert elapsed < 2.0
        assert _stored(uow_factory, submission_id).status is AnalysisStatus.PENDING

    def test_cancel_during_backoff_leaves_row_pending(self, session, uow_factory):
        submission_id, paths = _seed(session, images=1)
        ocr = FakeOcr({paths[0]: [TimeoutError("read timed out")]})
        token = FakeCancellationToken(cancel_on_wait=True)

        with pytest.raises(AnalysisCancelled):
            _extractor(uow_factory, ocr, FakeThemes()).analyze(submission_id, token)

        stored = _stored(uow_factory, submission_id)
        assert stored.status is AnalysisStatus.PENDING
        assert stored.last_analyzed_at == T0

    def test_cancelled_before_first_image(self, session, uow_factory):
        submission_id, _ = _seed(session, images=1)
        ocr = FakeOcr()

        with pytest.raises(AnalysisCancelled):
            _extractor(uow_factory, ocr, FakeThemes()).analyze(
                submission_id, FakeCancellationToken(cancelled=True)
            )

        assert ocr.total_calls == 0
        assert _stored(uow_factory, submission_id).status is AnalysisStatus.PENDING


class TestRecordFailure:
    def test_records_bounded_reason(self, session, uow_factory):
        submission = make_submission(session, make_client(session), images=1)
        submission_id = submission.id
        add_feature(session, submission, AnalysisStatus.PENDING, keywords=["stale"])
        session.commit()

        extractor = _extractor(uow_factory, FakeOcr(), FakeThemes(), failure_reason_max_length=12)
        feature = extractor.record_failure(submission_id, "RuntimeError: model crashed hard")

        assert feature.status is AnalysisStatus.FAILED
        assert feature.failure_reason == "RuntimeError"
        assert not feature.insights.has_any_data

    def test_missing_submission(self, uow_factory):
        extractor = _extractor(uow_factory, FakeOcr(), FakeThemes())
        assert extractor.record_failure(uuid.uuid4(), "boom") is None
