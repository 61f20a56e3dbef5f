"""Wiring: builds a ready-to-run orchestrator from Settings."""

import logging
from typing import Optional

from cognigen.analysis import ResultAnalyzer
from cognigen.config import Settings, settings as default_settings
from cognigen.exceptions import MissingCredentialError
from cognigen.generator import QuestionGenerator
from cognigen.history import HistoryStore
from cognigen.orchestrator import AssessmentOrchestrator, ConfirmCallback, SessionState
from cognigen.providers.google_provider import GoogleProvider
from cognigen.section_loader import SectionLoader

logger = logging.getLogger(__name__)


def build_orchestrator(
    config: Optional[Settings] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> AssessmentOrchestrator:
    """
    Build an orchestrator backed by the Gemini provider.

    Args:
        config: Settings to build from (defaults to the global settings)
        confirm: Callback asking the user to confirm restart and quit

    Returns:
        Orchestrator in the intro phase

    Raises:
        MissingCredentialError: If no Google API key is configured
    """
    config = config or default_settings
    if not config.google_api_key:
        raise MissingCredentialError("google", "GOOGLE_API_KEY")

    provider = GoogleProvider(api_key=config.google_api_key, model=config.google_model)
    generator = QuestionGenerator(
        provider,
        temperature=config.generation_temperature,
        max_tokens=config.generation_max_tokens,
        timeout_seconds=config.request_timeout_seconds,
    )
    analyzer = ResultAnalyzer(
        provider,
        temperature=config.analysis_temperature,
        max_tokens=config.analysis_max_tokens,
        timeout_seconds=config.analysis_timeout_seconds,
    )
    history = HistoryStore(config.history_file)
    logger.info(
        f"Loaded {len(history)} assessment records from {config.history_file}"
    )

    kwargs = {}
    if confirm is not None:
        kwargs["confirm"] = confirm
    return AssessmentOrchestrator(
        loader=SectionLoader(generator, time_limit_seconds=config.time_limit_seconds),
        analyzer=analyzer,
        history=history,
        questions_per_category=config.questions_per_category,
        tick_interval=config.tick_interval_seconds,
        flash_seconds=config.timeout_flash_ms / 1000,
        summary_length=config.analysis_summary_length,
        state=SessionState(audio_enabled=config.audio_enabled),
        **kwargs,
    )
