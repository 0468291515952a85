"""Tests for the DI bootstrap hooks used by the host application."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from thumbsup.domain.content_analysis.errors import CapabilityNotConfiguredError, is_transient_error
from thumbsup.use_cases.billing.webhook_ledger import LoggingBillingEventApplier
from thumbsup.wiring import bootstrap

from tests.unit.pipeline_fakes import FakeOcr, FakeThemes


@pytest.fixture(autouse=True)
def _isolated_singletons(monkeypatch):
    for name in (
        "_ocr_capability",
        "_theme_capability",
        "_extractor",
        "_pipeline_runtime",
        "_billing_event_applier",
    ):
        monkeypatch.setattr(bootstrap, name, None)


class TestCapabilities:
    def test_defaults_fail_terminally(self):
        with pytest.raises(CapabilityNotConfiguredError) as exc_info:
            bootstrap.get_ocr_capability().extract_text("/media/a.png")
        assert not is_transient_error(exc_info.value)

        with pytest.raises(CapabilityNotConfiguredError):
            bootstrap.get_theme_capability().extract_themes("/media/a.png")

    def test_registering_rebuilds_the_extractor(self):
        before = bootstrap.get_content_feature_extractor()
        ocr, themes = FakeOcr(), FakeThemes()

        bootstrap.register_capabilities(ocr=ocr, themes=themes)
        after = bootstrap.get_content_feature_extractor()

        try:
            assert bootstrap.get_ocr_capability() is ocr
            assert bootstrap.get_theme_capability() is themes
            assert after is not before
            assert after is bootstrap.get_content_feature_extractor()
        finally:
            before.close()
            after.close()

    def test_registering_while_running_is_rejected(self, monkeypatch):
        monkeypatch.setattr(bootstrap, "_pipeline_runtime", MagicMock(is_running=True))

        with pytest.raises(RuntimeError):
            bootstrap.register_capabilities(ocr=FakeOcr())


class TestBillingApplier:
    def test_default_applier_only_logs(self):
        assert isinstance(bootstrap.get_billing_event_applier(), LoggingBillingEventApplier)

    def test_registered_applier_is_used(self):
        applier = MagicMock()
        bootstrap.register_billing_event_applier(applier)
        assert bootstrap.get_billing_event_applier() is applier
