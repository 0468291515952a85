"""Tolerant parser for theme-extraction model output.

Vision models answer in whatever shape they like: a structured object,
a bare array, an object with a ``tags`` list, or a plain comma separated
sentence, often wrapped in Markdown fences or preceded by a reasoning
block.  :func:`parse_theme_insights` tries an explicit, ordered list of
strategies and returns the first non-empty result.  It never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from .models import ThemeInsights

logger = logging.getLogger(__name__)

# Field name (lowercased, separators removed) → ThemeInsights attribute
_STRUCTURED_FIELDS = {
    "subjects": "subjects",
    "vibes": "vibes",
    "notableelements": "notable_elements",
    "colors": "colors",
    "keywords": "keywords",
}

_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\n?")
_EMBEDDED_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?(.*?)```", re.DOTALL)
_DELIMITERS_RE = re.compile(r"[,;\r\n]+")

_NOT_JSON = object()


def strip_code_fences(raw: str) -> str:
    """Remove a reasoning block and Markdown fence wrapping from *raw*."""
    text = raw.strip()

    # Reasoning models emit <think>…</think> ahead of the answer
    if "<think>" in text and "</think>" in text:
        text = text.split("</think>")[-1].strip()

    if text.startswith("```"):
        text = _OPENING_FENCE_RE.sub("", text, count=1).rstrip()
        if text.endswith("```"):
            text = text[:-3]
        return text.strip()

    match = _EMBEDDED_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def _normalize_key(key: str) -> str:
    return re.sub(r"[\s_-]+", "", key).lower()


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


# ── Strategies ───────────────────────────────────────────────────────────
# Each takes the fence-stripped text and the decoded JSON document
# (or _NOT_JSON) and returns insights or None.


def _parse_structured(text: str, document: Any) -> ThemeInsights | None:
    if not isinstance(document, dict):
        return None
    fields: dict[str, list[str]] = {}
    for key, value in document.items():
        if not isinstance(key, str):
            continue
        attribute = _STRUCTURED_FIELDS.get(_normalize_key(key))
        values = _string_list(value)
        if attribute is None or values is None:
            continue
        fields.setdefault(attribute, []).extend(values)
    if not fields:
        return None
    insights = ThemeInsights.create(**fields)
    return insights if insights.has_any_data else None


def _parse_tag_list(text: str, document: Any) -> ThemeInsights | None:
    if isinstance(document, dict):
        tags = next(
            (value for key, value in document.items()
             if isinstance(key, str) and key.strip().lower() == "tags"),
            None,
        )
        document = tags
    values = _string_list(document)
    if not values:
        return None
    insights = ThemeInsights.from_keywords(values)
    return insights if insights.has_any_data else None


def _parse_delimited(text: str, document: Any) -> ThemeInsights | None:
    if isinstance(document, str):
        text = document
    insights = ThemeInsights.from_keywords(_DELIMITERS_RE.split(text), lowercase=True)
    return insights if insights.has_any_data else None


ParseStrategy = Callable[[str, Any], "ThemeInsights | None"]

PARSE_STRATEGIES: tuple[ParseStrategy, ...] = (
    _parse_structured,
    _parse_tag_list,
    _parse_delimited,
)


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return _NOT_JSON


def parse_theme_insights(raw: str | None) -> ThemeInsights:
    """Parse raw model output into normalized :class:`ThemeInsights`.

    Always returns a value; unusable input yields an empty result.
    """
    if not isinstance(raw, str) or not raw.strip():
        return ThemeInsights.empty()

    try:
        text = strip_code_fences(raw)
    except Exception:
        logger.warning("Could not strip fences from model output; parsing it verbatim", exc_info=True)
        text = raw.strip()
    if not text:
        return ThemeInsights.empty()

    document = _decode(text)
    for strategy in PARSE_STRATEGIES:
        try:
            insights = strategy(text, document)
        except Exception:
            logger.warning("Theme parse strategy %s failed", strategy.__name__, exc_info=True)
            continue
        if insights is not None:
            return insights

    logger.debug("No theme signals found in model output: %s", text[:200])
    return ThemeInsights.empty()


__all__ = ["PARSE_STRATEGIES", "parse_theme_insights", "strip_code_fences"]
