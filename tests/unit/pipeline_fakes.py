"""Shared fakes and seed helpers for the content-analysis pipeline tests."""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from sqlalchemy.orm import Session

from thumbsup.domain.common.ports import CancellationToken
from thumbsup.domain.content_analysis.models import AnalysisStatus, ThemeInsights
from thumbsup.domain.content_analysis.ports import OcrCapability, ThemeExtractionCapability
from thumbsup.infra.db.models import Client, ContentFeatureRow, MediaFile, Review, Submission

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock / cancellation
# ---------------------------------------------------------------------------


class FixedClock:
    """Callable ``now_fn`` that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class FakeCancellationToken(CancellationToken):
    """Records waits instead of sleeping.

    ``cancel_after_checks`` flips the token once ``is_cancelled`` has been
    asked that many times, which lets a test bound an otherwise endless loop.
    """

    def __init__(self, *, cancelled: bool = False, cancel_after_checks: int | None = None,
                 cancel_on_wait: bool = False) -> None:
        self.cancelled = cancelled
        self.cancel_after_checks = cancel_after_checks
        self.cancel_on_wait = cancel_on_wait
        self.checks = 0
        self.waits: list[float] = []

    def is_cancelled(self) -> bool:
        self.checks += 1
        if self.cancel_after_checks is not None and self.checks > self.cancel_after_checks:
            self.cancelled = True
        return self.cancelled

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        if self.cancel_on_wait:
            self.cancelled = True
        return self.cancelled


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class _ScriptedCapability:
    """Per-path script of results; an Exception entry is raised instead of returned.

    The last scripted entry repeats once the script runs out.
    """

    def __init__(self, script: dict[str, list[Any]] | None = None, default: Any = None) -> None:
        self._script = {path: list(steps) for path, steps in (script or {}).items()}
        self._default = default
        self.calls: dict[str, int] = defaultdict(int)

    def _next(self, path: str) -> Any:
        self.calls[path] += 1
        steps = self._script.get(path)
        if not steps:
            result = self._default
        elif len(steps) == 1:
            result = steps[0]
        else:
            result = steps.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class FakeOcr(_ScriptedCapability, OcrCapability):

    def extract_text(self, image_path: str) -> str | None:
        return self._next(image_path)


class FakeThemes(_ScriptedCapability, ThemeExtractionCapability):

    def extract_themes(self, image_path: str) -> str | None:
        return self._next(image_path)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


def make_client(session: Session, name: str = "Acme Coffee") -> Client:
    client = Client(id=uuid.uuid4(), name=name, email=f"{name.split()[0].lower()}@example.com")
    session.add(client)
    session.flush()
    return client


def make_submission(
    session: Session,
    client: Client,
    *,
    images: int = 0,
    videos: int = 0,
    created_at: datetime | None = None,
) -> Submission:
    submission = Submission(
        id=uuid.uuid4(),
        client_id=client.id,
        message="New post draft",
        created_at=created_at or T0,
    )
    session.add(submission)
    session.flush()
    order = 0
    for kind, count in (("image", images), ("video", videos)):
        for _ in range(count):
            session.add(
                MediaFile(
                    id=uuid.uuid4(),
                    submission_id=submission.id,
                    file_name=f"{kind}-{order}",
                    file_path=f"/media/{submission.id}/{kind}-{order}",
                    file_type=kind,
                    display_order=order,
                )
            )
            order += 1
    session.flush()
    return submission


def image_paths(session: Session, submission: Submission) -> list[str]:
    rows = (
        session.query(MediaFile)
        .filter(MediaFile.submission_id == submission.id, MediaFile.file_type == "image")
        .order_by(MediaFile.display_order)
        .all()
    )
    return [row.file_path for row in rows]


def add_review(
    session: Session,
    submission: Submission,
    status: str,
    *,
    comment: str | None = None,
    reviewed_at: datetime | None = None,
) -> Review:
    review = Review(
        id=uuid.uuid4(),
        submission_id=submission.id,
        status=status,
        comment=comment,
        reviewed_at=reviewed_at or T0,
    )
    session.add(review)
    session.flush()
    return review


def add_feature(
    session: Session,
    submission: Submission,
    status: AnalysisStatus = AnalysisStatus.COMPLETED,
    *,
    keywords: Iterable[str] = (),
    colors: Iterable[str] = (),
    ocr_text: str | None = None,
    last_analyzed_at: datetime | None = None,
    failure_reason: str | None = None,
) -> ContentFeatureRow:
    insights = ThemeInsights.create(keywords=keywords, colors=colors)
    row = ContentFeatureRow(
        submission_id=submission.id,
        analysis_status=status.value,
        ocr_text=ocr_text,
        insights_json=insights.to_dict(),
        last_analyzed_at=last_analyzed_at,
        failure_reason=failure_reason,
    )
    session.add(row)
    session.flush()
    return row
