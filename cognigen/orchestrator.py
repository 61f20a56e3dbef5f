"""Assessment orchestrator: the phase state machine.

Phases:
    intro -> instructions -> test -> (instructions -> test)* -> analysis
    analysis -> intro (return) or instructions (retake)
    intro <-> history

The orchestrator owns the session state and coordinates the question timer,
the section loader, the category queue and the response ledger. Every public
operation is synchronous; the only suspension points are the timer's
wake-ups, section loads and the analysis request, all of which run as asyncio
tasks and re-check generation markers before touching the state.

Operations that are not valid in the current state (an answer outside the
test phase, a second timeout for the same question, ...) are ignored and
logged at DEBUG level.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from cognigen.analysis import ResultAnalyzer
from cognigen.events import AssessmentEvent, EventListener, EventType
from cognigen.exceptions import HistoryStoreError, SectionLoadError
from cognigen.history import HistoryStore
from cognigen.instructions import SectionInstructions, get_instructions
from cognigen.ledger import ResponseLedger, score_percent
from cognigen.logging_config import session_id_context
from cognigen.models import (
    AnalysisResult,
    AssessmentCategory,
    AssessmentMode,
    AssessmentPhase,
    AssessmentRecord,
    FULL_ASSESSMENT_ORDER,
    Question,
    ReasoningStep,
    UserResponse,
)
from cognigen.queue_manager import CategoryQueue
from cognigen.section_loader import LoadStatus, SectionLoad, SectionLoader
from cognigen.timer import QuestionTimer

logger = logging.getLogger(__name__)

LOAD_FAILURE_MESSAGE = "Failed to load section. Please check your connection."
RESTART_PROMPT = "Restart this section? Current progress for this test will be lost."
QUIT_PROMPT = "Are you sure you want to quit this assessment? Your progress will be lost."

ConfirmCallback = Callable[[str], bool]


def _always_confirm(_message: str) -> bool:
    return True


@dataclass
class SessionState:
    """Mutable state of the single active session."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    phase: AssessmentPhase = AssessmentPhase.INTRO
    queue: CategoryQueue = field(default_factory=CategoryQueue)
    questions: List[Question] = field(default_factory=list)
    question_index: int = 0
    ledger: ResponseLedger = field(default_factory=ResponseLedger)
    reasoning_step: ReasoningStep = ReasoningStep.STATEMENT
    is_loading: bool = False
    is_analyzing: bool = False
    question_shown_at: Optional[float] = None
    has_timed_out: bool = False
    timeout_flash: bool = False
    audio_enabled: bool = True
    error: Optional[str] = None
    analysis: Optional[AnalysisResult] = None
    last_record: Optional[AssessmentRecord] = None

    @property
    def responses(self) -> Sequence[UserResponse]:
        return self.ledger.responses

    @property
    def current_category(self) -> Optional[AssessmentCategory]:
        return self.queue.current()

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.question_index < len(self.questions):
            return self.questions[self.question_index]
        return None


class AssessmentOrchestrator:
    """Drives one assessment session from intro to analysis."""

    def __init__(
        self,
        loader: SectionLoader,
        analyzer: ResultAnalyzer,
        history: HistoryStore,
        questions_per_category: int = 40,
        tick_interval: Optional[float] = 1.0,
        flash_seconds: float = 0.6,
        summary_length: int = 100,
        confirm: ConfirmCallback = _always_confirm,
        clock: Callable[[], float] = time.monotonic,
        state: Optional[SessionState] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            loader: Section loader backed by the question-generation collaborator
            analyzer: Analysis collaborator
            history: Store that completed runs are appended to
            questions_per_category: Questions loaded for every section
            tick_interval: Seconds per timer tick; None delivers ticks only
                through timer.tick()
            flash_seconds: Length of the alert window after a timeout
            summary_length: Characters of the analysis summary kept in history
            confirm: Asks the user to confirm restart and quit
            clock: Monotonic clock in seconds, used for answer latency
            state: Session state to drive (a fresh one by default)
        """
        self.state = state or SessionState()
        self.loader = loader
        self.analyzer = analyzer
        self.history = history
        self.questions_per_category = questions_per_category
        self.flash_seconds = flash_seconds
        self.summary_length = summary_length
        self._confirm = confirm
        self._clock = clock
        self.timer = QuestionTimer(
            on_timeout=self.timeout,
            on_tick=self._on_tick,
            tick_interval=tick_interval,
        )
        self.analysis_task: Optional[asyncio.Task] = None
        self._listeners: List[EventListener] = []
        self._question_serial = 0
        self._run_serial = 0
        self._flash_handle: Optional[asyncio.TimerHandle] = None

    # --- Views ---

    @property
    def phase(self) -> AssessmentPhase:
        return self.state.phase

    @property
    def time_left(self) -> int:
        return self.timer.remaining

    @property
    def current_question(self) -> Optional[Question]:
        return self.state.current_question

    @property
    def instructions(self) -> Optional[SectionInstructions]:
        """Instruction copy for the section about to run, if any."""
        category = self.state.current_category
        return get_instructions(category) if category else None

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an event listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # --- Intro / history ---

    def start(self, categories: Iterable[AssessmentCategory]) -> bool:
        """Begin a run over the given categories."""
        if self.state.phase != AssessmentPhase.INTRO:
            return self._ignore("start", "a run can only start from intro")
        return self._begin_run(CategoryQueue(categories))

    def start_full(self) -> bool:
        """Begin a run over all five categories."""
        return self.start(FULL_ASSESSMENT_ORDER)

    def start_practice(self, category: AssessmentCategory) -> bool:
        """Begin a single-category practice run."""
        return self.start((category,))

    def retake(self) -> bool:
        """Run the finished assessment's categories again."""
        if self.state.phase != AssessmentPhase.ANALYSIS:
            return self._ignore("retake", "only a finished run can be retaken")
        return self._begin_run(CategoryQueue(self.state.queue.categories))

    def show_history(self) -> bool:
        if self.state.phase != AssessmentPhase.INTRO:
            return self._ignore("show_history", "history is only reachable from intro")
        self._set_phase(AssessmentPhase.HISTORY)
        return True

    def return_to_intro(self) -> bool:
        if self.state.phase not in (AssessmentPhase.HISTORY, AssessmentPhase.ANALYSIS):
            return self._ignore("return_to_intro", "use quit() to leave a running test")
        self.state.error = None
        self._set_phase(AssessmentPhase.INTRO)
        return True

    def history_records(self) -> List[AssessmentRecord]:
        """Completed runs, newest first."""
        return self.history.records()

    def toggle_audio(self) -> bool:
        """Flip the timeout buzzer on or off.

        Returns:
            Whether audio is now enabled
        """
        self.state.audio_enabled = not self.state.audio_enabled
        return self.state.audio_enabled

    # --- Instructions / test ---

    def dismiss_instructions(self) -> bool:
        """Start the loaded section's first question."""
        state = self.state
        if state.phase != AssessmentPhase.INSTRUCTIONS:
            return self._ignore("dismiss_instructions", "not showing instructions")
        if state.is_loading or not state.questions:
            return self._ignore("dismiss_instructions", "section is still loading")
        state.question_index = 0
        self._set_phase(AssessmentPhase.TEST)
        self._present_question()
        return True

    def reveal_reasoning_question(self) -> bool:
        """Move a Reasoning question from its statement to its question.

        The time limit only starts counting once the question is visible.
        """
        state = self.state
        question = state.current_question
        if (
            state.phase != AssessmentPhase.TEST
            or question is None
            or question.category != AssessmentCategory.REASONING
            or state.reasoning_step != ReasoningStep.STATEMENT
        ):
            return self._ignore("reveal_reasoning_question", "no statement showing")
        state.reasoning_step = ReasoningStep.QUESTION
        self.timer.release()
        self._emit(EventType.REASONING_REVEALED, question_id=question.id)
        return True

    def answer(self, selected: str, from_timeout: bool = False) -> Optional[UserResponse]:
        """Record an answer to the current question and move on.

        Args:
            selected: The answer the user picked
            from_timeout: Whether the call comes from the timeout path, which
                may answer during the alert window

        Returns:
            The recorded response, or None if the answer was ignored
        """
        state = self.state
        if state.phase != AssessmentPhase.TEST:
            self._ignore("answer", "not in test phase")
            return None
        if state.timeout_flash and not from_timeout:
            self._ignore("answer", "timeout alert is showing")
            return None
        question = state.current_question
        if question is None:
            self._ignore("answer", "no question showing")
            return None
        if (
            question.category == AssessmentCategory.REASONING
            and state.reasoning_step == ReasoningStep.STATEMENT
        ):
            self._ignore("answer", "reasoning question not revealed yet")
            return None

        now = self._clock()
        shown_at = state.question_shown_at if state.question_shown_at is not None else now
        response = UserResponse(
            question_id=question.id,
            category=question.category,
            selected_answer=str(selected),
            correct_answer=question.correct_answer,
            time_taken_ms=max(0, round((now - shown_at) * 1000)),
            is_correct=question.is_correct(selected),
            question_context=question.context(),
            timed_out=state.has_timed_out,
        )

        self._stop_question()
        state.ledger.record(response)
        logger.debug(
            f"Recorded answer {response.selected_answer!r} for {question.id} "
            f"(correct={response.is_correct}, {response.time_taken_ms}ms)",
            extra={"question_index": state.question_index},
        )
        self._advance()
        self._emit(EventType.ANSWER_RECORDED, response=response)
        return response

    def timeout(self, generation: Optional[int] = None) -> bool:
        """Raise the timeout alert for the current question.

        Fires at most once per question. The answer is not submitted; the
        user still has to answer, but not while the alert is showing.

        Args:
            generation: Timer generation the timeout belongs to; a timeout
                from a superseded countdown is ignored
        """
        state = self.state
        if state.phase != AssessmentPhase.TEST:
            return self._ignore("timeout", "not in test phase")
        if generation is not None and generation != self.timer.generation:
            return self._ignore("timeout", f"stale timer generation {generation}")
        if state.has_timed_out:
            return self._ignore("timeout", "already timed out")
        question = state.current_question
        if question is None:
            return self._ignore("timeout", "no question showing")
        if self.timer.held:
            return self._ignore("timeout", "reasoning question not revealed yet")

        serial = self._question_serial
        self.timer.cancel()
        state.has_timed_out = True
        state.timeout_flash = True
        logger.info(
            f"Time limit reached for {question.id}",
            extra={"question_index": state.question_index},
        )
        self._emit(
            EventType.TIMEOUT_ALERT,
            question_id=question.id,
            audible=state.audio_enabled,
        )

        if self.flash_seconds > 0:
            loop = asyncio.get_running_loop()
            self._flash_handle = loop.call_later(
                self.flash_seconds, self._end_flash, serial
            )
        else:
            self._end_flash(serial)
        return True

    def restart_section(self) -> bool:
        """Discard the current section's answers and load it afresh."""
        state = self.state
        if state.phase not in (AssessmentPhase.TEST, AssessmentPhase.INSTRUCTIONS):
            return self._ignore("restart_section", "no section running")
        category = state.current_category
        if category is None:
            return self._ignore("restart_section", "queue is exhausted")
        if not self._confirm(RESTART_PROMPT):
            logger.debug("Section restart declined")
            return False

        self._stop_question()
        state.is_loading = True
        state.questions = []
        state.question_index = 0
        removed = state.ledger.clear_category(category)
        logger.info(
            f"Restarting {category.value} section, discarded {removed} responses",
            extra={"category": category.value},
        )
        self._set_phase(AssessmentPhase.INSTRUCTIONS)
        self._load_section(category)
        return True

    def quit(self) -> bool:
        """Abandon the run and return to intro."""
        state = self.state
        if state.phase not in (AssessmentPhase.TEST, AssessmentPhase.INSTRUCTIONS):
            return self._ignore("quit", "no run in progress")
        if not self._confirm(QUIT_PROMPT):
            logger.debug("Quit declined")
            return False

        self._stop_question()
        self.loader.invalidate()
        state.queue = CategoryQueue()
        state.questions = []
        state.question_index = 0
        state.ledger.clear()
        state.is_loading = False
        state.reasoning_step = ReasoningStep.STATEMENT
        logger.info("Assessment abandoned")
        self._set_phase(AssessmentPhase.INTRO)
        session_id_context.set(None)
        return True

    # --- Awaiting background work ---

    async def wait_for_section(self) -> None:
        """Wait until the most recent section load has settled."""
        load = self.loader.current
        if load is not None and load.task is not None:
            await asyncio.wait({load.task})

    async def wait_for_analysis(self) -> Optional[AnalysisResult]:
        """Wait for the finished run's analysis."""
        if self.analysis_task is None:
            return None
        return await self.analysis_task

    # --- Internals ---

    def _begin_run(self, queue: CategoryQueue) -> bool:
        if len(queue) == 0:
            raise ValueError("an assessment needs at least one category")
        state = self.state
        self._run_serial += 1
        state.session_id = uuid.uuid4().hex
        session_id_context.set(state.session_id)
        state.queue = queue
        state.ledger.clear()
        state.analysis = None
        state.last_record = None
        state.is_analyzing = False
        state.error = None
        state.is_loading = True
        logger.info(
            f"Starting {queue.mode.value} assessment with {len(queue)} sections"
        )
        self._set_phase(AssessmentPhase.INSTRUCTIONS)
        self._load_section(queue.current())
        return True

    def _load_section(self, category: AssessmentCategory) -> None:
        state = self.state
        self._stop_question()
        state.is_loading = True
        state.questions = []
        state.question_index = 0
        load = self.loader.begin(category, self.questions_per_category)
        load.add_done_callback(self._on_section_loaded)

    def _on_section_loaded(self, load: SectionLoad) -> None:
        state = self.state
        if not self.loader.is_current(load) or state.phase != AssessmentPhase.INSTRUCTIONS:
            logger.debug(
                f"Dropping stale {load.category.value} load "
                f"(generation {load.generation})",
                extra={"generation": load.generation},
            )
            return
        if load.status == LoadStatus.FAILED:
            self._fail_to_intro(load.error)
            return

        state.questions = list(load.questions)
        state.question_index = 0
        state.is_loading = False
        self._emit(
            EventType.SECTION_READY,
            category=load.category,
            count=len(state.questions),
        )

    def _fail_to_intro(self, error: Optional[SectionLoadError]) -> None:
        state = self.state
        logger.error(f"Section load failed: {error}")
        self._stop_question()
        self.loader.invalidate()
        state.is_loading = False
        state.questions = []
        state.question_index = 0
        state.queue = CategoryQueue()
        state.error = LOAD_FAILURE_MESSAGE
        self._set_phase(AssessmentPhase.INTRO)
        self._emit(
            EventType.LOAD_FAILED,
            message=LOAD_FAILURE_MESSAGE,
            reason=error.reason if error else None,
        )

    def _present_question(self) -> None:
        state = self.state
        question = state.current_question
        self._question_serial += 1
        self._cancel_flash()
        state.question_shown_at = self._clock()
        state.has_timed_out = False
        state.timeout_flash = False
        state.reasoning_step = ReasoningStep.STATEMENT
        # Reasoning statements are untimed; the countdown starts on reveal
        self.timer.arm(
            question.time_limit_seconds,
            held=question.category == AssessmentCategory.REASONING,
        )
        self._emit(
            EventType.QUESTION_SHOWN,
            question_id=question.id,
            index=state.question_index,
            total=len(state.questions),
            time_left=self.timer.remaining,
        )

    def _advance(self) -> None:
        state = self.state
        next_index = state.question_index + 1
        if next_index < len(state.questions):
            state.question_index = next_index
            self._present_question()
            return

        if state.queue.advance():
            state.is_loading = True
            state.questions = []
            state.question_index = 0
            self._set_phase(AssessmentPhase.INSTRUCTIONS)
            self._load_section(state.queue.current())
        else:
            self._finish()

    def _finish(self) -> None:
        state = self.state
        state.questions = []
        state.question_index = 0
        state.is_analyzing = True
        self._set_phase(AssessmentPhase.ANALYSIS)
        self.analysis_task = asyncio.get_running_loop().create_task(
            self._complete_run(
                self._run_serial,
                state.session_id,
                state.queue.mode,
                state.ledger.responses,
            )
        )

    async def _complete_run(
        self,
        run_serial: int,
        session_id: str,
        mode: AssessmentMode,
        responses: Sequence[UserResponse],
    ) -> AnalysisResult:
        result = await self.analyzer.analyze(responses)
        correct = sum(1 for r in responses if r.is_correct)
        record = AssessmentRecord(
            id=session_id,
            mode=mode,
            score=score_percent(correct, len(responses)),
            total_questions=len(responses),
            analysis_summary=self._excerpt(result.summary),
        )
        try:
            self.history.append(record)
        except HistoryStoreError as e:
            logger.error(f"Failed to record assessment history: {e}")

        if run_serial == self._run_serial:
            state = self.state
            state.analysis = result
            state.last_record = record
            state.is_analyzing = False
            self._emit(EventType.ANALYSIS_READY, analysis=result, record=record)
        return result

    def _excerpt(self, summary: str) -> str:
        if len(summary) <= self.summary_length:
            return summary
        return summary[: self.summary_length].rstrip() + "..."

    def _stop_question(self) -> None:
        self.timer.cancel()
        self._cancel_flash()
        self.state.timeout_flash = False

    def _end_flash(self, serial: int) -> None:
        if serial != self._question_serial:
            return
        self._flash_handle = None
        if self.state.timeout_flash:
            self.state.timeout_flash = False
            self._emit(EventType.FLASH_ENDED)

    def _cancel_flash(self) -> None:
        if self._flash_handle is not None:
            self._flash_handle.cancel()
            self._flash_handle = None

    def _on_tick(self, remaining: int) -> None:
        self._emit(EventType.TICK, time_left=remaining)

    def _set_phase(self, phase: AssessmentPhase) -> None:
        previous = self.state.phase
        if previous == phase:
            return
        self.state.phase = phase
        logger.info(
            f"Phase {previous.value} -> {phase.value}",
            extra={"phase": phase.value},
        )
        self._emit(EventType.PHASE_CHANGED, previous=previous)

    def _emit(self, event_type: EventType, **data) -> None:
        event = AssessmentEvent(type=event_type, phase=self.state.phase, data=data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed on {event_type.value} event")

    def _ignore(self, operation: str, reason: str) -> bool:
        logger.debug(f"Ignoring {operation}: {reason}")
        return False
