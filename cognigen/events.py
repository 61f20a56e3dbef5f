"""Events the orchestrator publishes to front ends."""

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

from cognigen.models import AssessmentPhase


class EventType(str, enum.Enum):
    """Kinds of orchestrator events."""

    PHASE_CHANGED = "phase_changed"
    SECTION_READY = "section_ready"
    LOAD_FAILED = "load_failed"
    QUESTION_SHOWN = "question_shown"
    REASONING_REVEALED = "reasoning_revealed"
    TICK = "tick"
    TIMEOUT_ALERT = "timeout_alert"
    FLASH_ENDED = "flash_ended"
    ANSWER_RECORDED = "answer_recorded"
    ANALYSIS_READY = "analysis_ready"


@dataclass(frozen=True)
class AssessmentEvent:
    """Something a front end may want to render."""

    type: EventType
    phase: AssessmentPhase
    data: Dict[str, Any] = field(default_factory=dict)


EventListener = Callable[[AssessmentEvent], None]
