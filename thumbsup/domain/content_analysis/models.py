"""Domain models for the content-analysis bounded context.

Pure value objects and enums describing what was extracted from a
submission's media, independent of the ORM and of the model provider.
All dataclasses use frozen=True for immutability.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AnalysisStatus(str, Enum):
    """Lifecycle states of a submission's content feature."""

    PENDING = "pending"
    COMPLETED = "completed"
    NO_SIGNALS = "no_signals"
    NO_IMAGES = "no_images"
    FAILED = "failed"


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


# ---------------------------------------------------------------------------
# Theme insights
# ---------------------------------------------------------------------------


def normalize_tags(values: Iterable[Any] | None, *, lowercase: bool = False) -> tuple[str, ...]:
    """Trim, drop empties and dedupe case-insensitively.

    The first-seen casing of each tag wins unless *lowercase* is set.
    Non-string members are ignored.
    """
    if not values:
        return ()
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        tag = value.strip()
        if not tag:
            continue
        if lowercase:
            tag = tag.lower()
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(tag)
    return tuple(result)


@dataclass(frozen=True)
class ThemeInsights:
    """Five normalized tag sets describing an image or a whole submission.

    Construct through :meth:`create` (or the parser) so every set is
    trimmed and case-insensitively unique.
    """

    subjects: tuple[str, ...] = ()
    vibes: tuple[str, ...] = ()
    notable_elements: tuple[str, ...] = ()
    colors: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        *,
        subjects: Iterable[Any] | None = None,
        vibes: Iterable[Any] | None = None,
        notable_elements: Iterable[Any] | None = None,
        colors: Iterable[Any] | None = None,
        keywords: Iterable[Any] | None = None,
    ) -> ThemeInsights:
        return cls(
            subjects=normalize_tags(subjects),
            vibes=normalize_tags(vibes),
            notable_elements=normalize_tags(notable_elements),
            colors=normalize_tags(colors),
            keywords=normalize_tags(keywords),
        )

    @classmethod
    def empty(cls) -> ThemeInsights:
        return cls()

    @classmethod
    def from_keywords(cls, tags: Iterable[Any], *, lowercase: bool = False) -> ThemeInsights:
        return cls(keywords=normalize_tags(tags, lowercase=lowercase))

    @classmethod
    def combine(cls, many: Iterable[ThemeInsights | None]) -> ThemeInsights:
        """Per-set union of *many*, normalized; ``None`` entries are skipped."""
        items = [item for item in many if item is not None]
        return cls.create(
            subjects=[tag for item in items for tag in item.subjects],
            vibes=[tag for item in items for tag in item.vibes],
            notable_elements=[tag for item in items for tag in item.notable_elements],
            colors=[tag for item in items for tag in item.colors],
            keywords=[tag for item in items for tag in item.keywords],
        )

    @property
    def has_any_data(self) -> bool:
        return bool(
            self.subjects or self.vibes or self.notable_elements or self.colors or self.keywords
        )

    def flatten(self) -> tuple[str, ...]:
        """Union of all five sets, case-insensitively unique, sorted."""
        unique = normalize_tags(
            [*self.subjects, *self.vibes, *self.notable_elements, *self.colors, *self.keywords]
        )
        return tuple(sorted(unique, key=lambda tag: (tag.casefold(), tag)))

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "subjects": list(self.subjects),
            "vibes": list(self.vibes),
            "notableElements": list(self.notable_elements),
            "colors": list(self.colors),
            "keywords": list(self.keywords),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ThemeInsights:
        if not data:
            return cls.empty()
        return cls.create(
            subjects=data.get("subjects"),
            vibes=data.get("vibes"),
            notable_elements=data.get("notableElements", data.get("notable_elements")),
            colors=data.get("colors"),
            keywords=data.get("keywords"),
        )


# ---------------------------------------------------------------------------
# Content feature
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContentFeature:
    """Persisted analysis result, at most one per submission."""

    submission_id: uuid.UUID
    status: AnalysisStatus
    ocr_text: str | None = None
    insights: ThemeInsights = field(default_factory=ThemeInsights.empty)
    extracted_at: datetime | None = None
    last_analyzed_at: datetime | None = None
    failure_reason: str | None = None

    @property
    def tags(self) -> tuple[str, ...]:
        return self.insights.flatten()


# ---------------------------------------------------------------------------
# Submission snapshot (read model owned by the submission flow)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MediaItem:
    media_id: uuid.UUID
    kind: MediaKind
    path: str
    order: int = 0

    @property
    def is_image(self) -> bool:
        return self.kind is MediaKind.IMAGE


@dataclass(frozen=True)
class SubmissionSnapshot:
    """Just enough of a submission to analyze it."""

    submission_id: uuid.UUID
    client_id: uuid.UUID
    media: tuple[MediaItem, ...] = ()
    message: str | None = None

    @property
    def images(self) -> tuple[MediaItem, ...]:
        return tuple(
            sorted((item for item in self.media if item.is_image), key=lambda item: item.order)
        )


__all__ = [
    "AnalysisStatus",
    "ContentFeature",
    "MediaItem",
    "MediaKind",
    "SubmissionSnapshot",
    "ThemeInsights",
    "normalize_tags",
]
