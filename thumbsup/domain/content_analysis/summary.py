"""Plain-language description of one analyzed submission.

The description lists the leading subjects, notable elements, colors and
vibes, then checks how far the submission's own message is echoed by the
extracted tags.
"""

from __future__ import annotations

import re

from .models import AnalysisStatus, ContentFeature, SubmissionSnapshot

NO_MEDIA_TEXT = "No media files were attached."
PENDING_TEXT = "Content analysis pending. Media uploaded and awaiting processing."
NO_MESSAGE_TEXT = "No message provided to assess alignment."
WEAK_ALIGNMENT_TEXT = (
    "The current visual themes only partially reflect the stated message; "
    "consider reinforcing key terms or adding supporting elements."
)

_MESSAGE_SPLIT_RE = re.compile(r"[ \n\r\t,.;:!]+")
_MIN_TOKEN_LENGTH = 3
_OVERLAP_LIMIT = 10


def _message_tokens(message: str) -> list[str]:
    """Distinct lowercase words of at least three characters, in message order."""
    tokens: list[str] = []
    for token in _MESSAGE_SPLIT_RE.split(message.lower()):
        token = token.strip()
        if len(token) >= _MIN_TOKEN_LENGTH and token not in tokens:
            tokens.append(token)
    return tokens


def describe_alignment(message: str | None, feature: ContentFeature) -> str:
    if message is None or not message.strip():
        return NO_MESSAGE_TEXT
    concepts = {tag.lower() for tag in feature.tags}
    overlap = [token for token in _message_tokens(message) if token in concepts][:_OVERLAP_LIMIT]
    if not overlap:
        return WEAK_ALIGNMENT_TEXT
    return f"The visuals align with the stated message through concepts such as: {', '.join(overlap)}."


def describe_submission(snapshot: SubmissionSnapshot, feature: ContentFeature | None) -> str:
    if not snapshot.media:
        return NO_MEDIA_TEXT
    if feature is None or feature.status is AnalysisStatus.PENDING:
        return PENDING_TEXT

    insights = feature.insights
    kind = "image" if all(item.is_image for item in snapshot.media) else "media"
    count = len(snapshot.media)
    text = f"This {kind} submission contains {count} {kind if count == 1 else kind + 's'}"
    if insights.subjects:
        text += f" featuring {', '.join(insights.subjects[:5])}"
    if insights.notable_elements:
        text += f". Notable elements include {', '.join(insights.notable_elements[:5])}"
    if insights.colors:
        text += f". Dominant colors: {', '.join(insights.colors[:7])}"
    if insights.vibes:
        text += f". Overall vibe: {', '.join(insights.vibes[:5])}"
    if feature.status is AnalysisStatus.FAILED:
        text += ". Analysis failed, so no visual themes are available"
    return f"{text}. {describe_alignment(snapshot.message, feature)}"


__all__ = ["describe_alignment", "describe_submission"]
