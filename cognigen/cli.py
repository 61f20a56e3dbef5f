"""Terminal front end for the assessment orchestrator.

Examples:
  # Full five-section assessment
  cognigen full

  # Practice a single section
  cognigen practice "Word Meaning"

  # List past runs
  cognigen history

During a test, type the answer and press Enter. ":restart" restarts the
current section, ":quit" abandons the run and ":audio" toggles the buzzer.
"""

import argparse
import asyncio
import logging
import random
import sys
from typing import List, Optional, Sequence

from cognigen.bootstrap import build_orchestrator
from cognigen.config import settings
from cognigen.events import AssessmentEvent, EventType
from cognigen.exceptions import MissingCredentialError
from cognigen.history import HistoryStore
from cognigen.logging_config import setup_logging
from cognigen.models import (
    AnalysisResult,
    AssessmentCategory,
    AssessmentPhase,
    FULL_ASSESSMENT_ORDER,
    NumberPayload,
    PerceptualPayload,
    Question,
    ReasoningPayload,
    ReasoningStep,
    SpatialPayload,
    WordPayload,
)
from cognigen.orchestrator import QUIT_PROMPT, RESTART_PROMPT, AssessmentOrchestrator

logger = logging.getLogger(__name__)

COMMAND_RESTART = ":restart"
COMMAND_QUIT = ":quit"
COMMAND_AUDIO = ":audio"

# Chiral shape: no rotation of it equals its mirror image
_SPATIAL_GLYPH = (".##", "##.", ".#.")


def _rotate(grid: Sequence[str]) -> List[str]:
    return ["".join(row) for row in zip(*reversed(grid))]


def _mirror(grid: Sequence[str]) -> List[str]:
    return [row[::-1] for row in grid]


def spatial_pair_lines(is_match: bool, rng: random.Random) -> List[str]:
    """Draw a top/bottom glyph pair side by side.

    The bottom glyph is a rotation of the top one when the pair matches and
    a rotated mirror image otherwise.
    """
    top_mirrored = rng.random() < 0.5
    bottom_mirrored = top_mirrored if is_match else not top_mirrored

    def draw(mirrored: bool) -> List[str]:
        grid = _mirror(_SPATIAL_GLYPH) if mirrored else list(_SPATIAL_GLYPH)
        for _ in range(rng.randrange(4)):
            grid = _rotate(grid)
        return grid

    return [f"{a}   {b}" for a, b in zip(draw(top_mirrored), draw(bottom_mirrored))]


def render_question(question: Question, step: ReasoningStep, rng: random.Random) -> str:
    """Text shown for a question in the terminal."""
    payload = question.payload
    if isinstance(payload, ReasoningPayload):
        if step == ReasoningStep.STATEMENT:
            return f"{payload.statement}\n(press Enter to see the question)"
        return f"{payload.question}\nOptions: {' / '.join(payload.options)}"
    if isinstance(payload, PerceptualPayload):
        pairs = "   ".join(f"{top}/{bottom}" for top, bottom in payload.pairs)
        return f"{pairs}\nHow many pairs contain the same letter?"
    if isinstance(payload, NumberPayload):
        numbers = "   ".join(str(n) for n in payload.triplet)
        return (
            f"{numbers}\nWhich of the highest and lowest number is further "
            "from the remaining one?"
        )
    if isinstance(payload, WordPayload):
        return f"{'   '.join(payload.options)}\nWhich word is the odd one out?"
    if isinstance(payload, SpatialPayload):
        lines = []
        for index, is_match in enumerate(payload.pairs, start=1):
            lines.append(f"Pair {index}:")
            lines.extend(f"  {row}" for row in spatial_pair_lines(is_match, rng))
        lines.append("How many pairs contain the SAME symbol (rotated)?")
        return "\n".join(lines)
    raise TypeError(f"Unsupported payload {type(payload).__name__}")


def render_analysis(result: AnalysisResult) -> str:
    """Plain-text analysis report."""
    lines = [
        f"Estimated percentile: {result.iq_estimate_range}",
        "",
        result.summary,
        "",
        "Category scores:",
    ]
    lines.extend(f"  {s.category}: {s.score:g}%" for s in result.category_scores)
    for title, items in (
        ("Strengths", result.strengths),
        ("Weaknesses", result.weaknesses),
        ("Recommendations", result.recommendations),
    ):
        lines.append(f"{title}:")
        lines.extend(f"  - {item}" for item in items)
    if result.incorrect_questions:
        lines.append("Mistakes:")
        for item in result.incorrect_questions:
            lines.append(
                f"  {item.question_text} -> you said {item.user_answer}, "
                f"answer {item.correct_answer}. {item.explanation}"
            )
    return "\n".join(lines)


class TerminalRenderer:
    """Prints orchestrator events that need no user input."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def __call__(self, event: AssessmentEvent) -> None:
        if event.type == EventType.TIMEOUT_ALERT:
            bell = "\a" if event.data.get("audible") else ""
            self._write(f"{bell}*** Time's up! Answer to continue. ***")
        elif event.type == EventType.LOAD_FAILED:
            self._write(f"Error: {event.data['message']}")
        elif event.type == EventType.SECTION_READY:
            self._write(f"Section ready: {event.data['count']} questions.")

    def _write(self, text: str) -> None:
        print(text, file=self.stream, flush=True)


async def read_line(prompt: str) -> str:
    """Read a line without blocking the event loop."""
    loop = asyncio.get_running_loop()
    return (await loop.run_in_executor(None, input, prompt)).strip()


async def confirm_in_terminal(message: str) -> bool:
    answer = await read_line(f"{message} [y/N] ")
    return answer.lower() in ("y", "yes")


async def _handle_command(orchestrator: AssessmentOrchestrator, line: str) -> bool:
    """Apply an in-test command.

    Returns:
        True if the line was a command
    """
    if line == COMMAND_RESTART:
        if await confirm_in_terminal(RESTART_PROMPT):
            orchestrator.restart_section()
    elif line == COMMAND_QUIT:
        if await confirm_in_terminal(QUIT_PROMPT):
            orchestrator.quit()
    elif line == COMMAND_AUDIO:
        enabled = orchestrator.toggle_audio()
        print(f"Audio {'on' if enabled else 'off'}")
    else:
        return False
    return True


async def run_assessment(
    orchestrator: AssessmentOrchestrator,
    categories: Sequence[AssessmentCategory],
    rng: Optional[random.Random] = None,
) -> int:
    """Run one assessment interactively.

    Returns:
        Exit code (0 when the run completed)
    """
    rng = rng or random.Random()
    orchestrator.subscribe(TerminalRenderer())
    orchestrator.start(categories)

    while orchestrator.phase in (AssessmentPhase.INSTRUCTIONS, AssessmentPhase.TEST):
        state = orchestrator.state
        if orchestrator.phase == AssessmentPhase.INSTRUCTIONS:
            info = orchestrator.instructions
            print(f"\n=== {info.title} ({state.queue.position_label()}) ===")
            print(info.description)
            print(f"How to answer: {info.tips}")
            if state.is_loading:
                print("Generating questions...")
                await orchestrator.wait_for_section()
                continue
            line = await read_line("Press Enter to begin. ")
            if not await _handle_command(orchestrator, line):
                orchestrator.dismiss_instructions()
            continue

        question = orchestrator.current_question
        print(f"\n[{state.question_index + 1}/{len(state.questions)}] "
              f"{question.time_limit_seconds}s")
        print(render_question(question, state.reasoning_step, rng))
        if (
            question.category == AssessmentCategory.REASONING
            and state.reasoning_step == ReasoningStep.STATEMENT
        ):
            line = await read_line("")
            if not await _handle_command(orchestrator, line):
                orchestrator.reveal_reasoning_question()
            continue

        line = await read_line("> ")
        if await _handle_command(orchestrator, line):
            continue
        if orchestrator.answer(line) is None:
            print("Answer not accepted, try again.")

    if orchestrator.phase != AssessmentPhase.ANALYSIS:
        return 1 if orchestrator.state.error else 0

    print("\nAnalyzing your results...")
    result = await orchestrator.wait_for_analysis()
    record = orchestrator.state.last_record
    if record is not None:
        print(f"Score: {record.score}% over {record.total_questions} questions")
    print(render_analysis(result))
    return 0


def print_history(store: HistoryStore) -> None:
    records = store.records()
    if not records:
        print("No assessments recorded yet.")
        return
    for record in records:
        print(
            f"{record.date:%Y-%m-%d %H:%M}  {record.mode.value:<8} "
            f"{record.score:>3}%  {record.total_questions:>3} questions  "
            f"{record.analysis_summary}"
        )


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="cognigen",
        description="Timed GIA-style cognitive assessment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable DEBUG logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("full", help="Run all five sections")
    practice = subparsers.add_parser("practice", help="Run a single section")
    practice.add_argument(
        "category",
        choices=[c.value for c in AssessmentCategory],
        help="Section to practice",
    )
    subparsers.add_parser("history", help="List completed assessments")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_arguments(argv)
    config = settings.model_copy(update={"debug": True}) if args.verbose else settings
    setup_logging(config)

    if args.command == "history":
        print_history(HistoryStore(config.history_file))
        return 0

    try:
        orchestrator = build_orchestrator(config)
    except MissingCredentialError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "full":
        categories = FULL_ASSESSMENT_ORDER
    else:
        categories = (AssessmentCategory(args.category),)

    try:
        return asyncio.run(run_assessment(orchestrator, categories))
    except (KeyboardInterrupt, EOFError):
        print("\nAssessment abandoned.")
        return 130
