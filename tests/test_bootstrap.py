"""Tests for building the orchestrator from settings."""

from unittest.mock import patch

import pytest

from cognigen.bootstrap import build_orchestrator
from cognigen.config import Settings
from cognigen.exceptions import MissingCredentialError
from cognigen.models import AssessmentPhase


class TestBuildOrchestrator:
    """Tests for build_orchestrator."""

    def test_missing_api_key(self, history_path):
        """Test that a missing key fails before any request."""
        config = Settings(_env_file=None, google_api_key=None, history_file=str(history_path))

        with pytest.raises(MissingCredentialError, match="GOOGLE_API_KEY"):
            build_orchestrator(config)

    @patch("cognigen.providers.google_provider.genai.configure")
    @patch("cognigen.providers.google_provider.genai.GenerativeModel")
    def test_wires_settings(self, mock_model_class, mock_configure, history_path):
        """Test that settings reach every component."""
        config = Settings(
            _env_file=None,
            google_api_key="test-key",
            google_model="gemini-test",
            history_file=str(history_path),
            questions_per_category=3,
            timeout_flash_ms=250,
            audio_enabled=False,
            analysis_summary_length=40,
        )

        orchestrator = build_orchestrator(config, confirm=lambda message: False)

        assert orchestrator.phase == AssessmentPhase.INTRO
        assert orchestrator.questions_per_category == 3
        assert orchestrator.flash_seconds == pytest.approx(0.25)
        assert orchestrator.summary_length == 40
        assert orchestrator.state.audio_enabled is False
        assert orchestrator.analyzer.provider.model == "gemini-test"
        assert orchestrator.history.path == history_path
        mock_configure.assert_called_once_with(api_key="test-key")
