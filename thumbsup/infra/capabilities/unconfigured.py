"""Placeholder capabilities used until the host registers real ones.

Every call fails terminally, so submissions analyzed without a
configured model end up ``failed`` with a clear reason instead of
silently producing ``no_signals``.
"""

from __future__ import annotations

from thumbsup.domain.content_analysis.errors import CapabilityNotConfiguredError
from thumbsup.domain.content_analysis.ports import OcrCapability, ThemeExtractionCapability


class UnconfiguredOcrCapability(OcrCapability):

    def extract_text(self, image_path: str) -> str | None:
        raise CapabilityNotConfiguredError("OCR capability is not configured")


class UnconfiguredThemeExtractionCapability(ThemeExtractionCapability):

    def extract_themes(self, image_path: str) -> str | None:
        raise CapabilityNotConfiguredError("Theme extraction capability is not configured")
