"""
Comic Studio: Terminal UI.

A four-screen wizard:

    prompt → options → processing → done → (any input) → prompt

State is an immutable AppState. Transitions are pure functions that return
a new state; render() is a pure view of a state. ComicTerminal is the only
part that does I/O: it prints the view, reads a line when the screen takes
input, and runs the assembler when the state enters PROCESSING.
"""

import logging
import os
import sys
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from comic_studio.models import (
    DEFAULT_PANELS,
    MAX_PANELS,
    MIN_PANELS,
    GenerationRequest,
    GenerationResult,
    clamp_panel_count,
)

logger = logging.getLogger(__name__)

RED = "\033[31m"
GREEN = "\033[32m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


class Step(Enum):
    PROMPT = "prompt"
    OPTIONS = "options"
    PROCESSING = "processing"
    DONE = "done"


@dataclass(frozen=True)
class AppState:
    step: Step = Step.PROMPT
    prompt: str = ""
    panel_count: int = DEFAULT_PANELS
    generation_count: int = 0
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    comic_dir: Optional[str] = None


# ============================================================
# Transitions
# ============================================================

def submit_prompt(state: AppState, text: str) -> AppState:
    """PROMPT → OPTIONS. Blank input keeps the prompt screen."""
    text = text.strip()
    if not text:
        return state
    return replace(state, step=Step.OPTIONS, prompt=text)


def submit_options(state: AppState, text: str) -> AppState:
    """OPTIONS → PROCESSING with a clamped panel count."""
    return replace(
        state,
        step=Step.PROCESSING,
        panel_count=clamp_panel_count(text),
        generation_count=state.generation_count + 1,
        result=None,
        error=None,
        comic_dir=None,
    )


def complete(state: AppState, result: GenerationResult, comic_dir: Optional[str] = None) -> AppState:
    """PROCESSING → DONE (success)."""
    return replace(state, step=Step.DONE, result=result, error=None, comic_dir=comic_dir)


def fail(state: AppState, message: str) -> AppState:
    """PROCESSING → DONE (error)."""
    return replace(state, step=Step.DONE, result=None, error=message)


def restart(state: AppState, text: str = "") -> AppState:
    """DONE → PROMPT with everything reset."""
    return AppState()


def handle_input(state: AppState, text: str) -> AppState:
    """Dispatch a submitted line to the current screen's transition."""
    if state.step is Step.PROMPT:
        return submit_prompt(state, text)
    if state.step is Step.OPTIONS:
        return submit_options(state, text)
    if state.step is Step.DONE:
        return restart(state, text)
    # PROCESSING accepts no input
    return state


def build_request(state: AppState) -> GenerationRequest:
    return GenerationRequest(prompt=state.prompt, panel_count=state.panel_count)


# ============================================================
# View
# ============================================================

def input_label(state: AppState) -> str:
    if state.step is Step.PROMPT:
        return "Story idea> "
    if state.step is Step.OPTIONS:
        return f"Panels [{DEFAULT_PANELS}]> "
    return "> "


def render(state: AppState) -> str:
    """Text for the current screen."""
    if state.step is Step.PROMPT:
        return "\n".join([
            f"{BOLD}Enter your comic story idea:{RESET}",
            f"{DIM}e.g., A superhero saves a cat from a tree{RESET}",
        ])

    if state.step is Step.OPTIONS:
        return "\n".join([
            f"{DIM}Story: {state.prompt}{RESET}",
            f"{BOLD}Number of panels ({MIN_PANELS}-{MAX_PANELS}, default {DEFAULT_PANELS}):{RESET}",
        ])

    if state.step is Step.PROCESSING:
        return "\n".join([
            "Generating your comic...",
            f"{DIM}Prompt: {state.prompt}{RESET}",
            f"{DIM}Panels: {state.panel_count}{RESET}",
        ])

    if state.error is not None:
        return "\n".join([
            f"{RED}Error: {state.error}{RESET}",
            f"{DIM}Press Enter to start a new comic...{RESET}",
        ])

    result = state.result
    story = result.story
    lines = [
        f"{GREEN}Comic generated successfully!{RESET}",
        f"Title: {story.title}",
        f"Genre: {story.genre}",
        f"Characters: {', '.join(story.character_names)}",
        f"Panels: {result.metadata.total_panels}",
        f"Processing time: {result.metadata.processing_time_ms / 1000:.1f}s",
    ]
    if state.comic_dir:
        lines.append(f"Saved to: {state.comic_dir}")
    lines.append(f"{DIM}Press Enter to create another comic...{RESET}")
    return "\n".join(lines)


def format_progress(stage: str, details: dict) -> Optional[str]:
    """One progress line for the processing screen, or None to stay quiet."""
    if stage == "story":
        return "  Writing story..."
    if stage == "story_ready":
        return f"  Story: \"{details['title']}\" ({', '.join(details['characters'])})"
    if stage == "panel":
        return f"  Panel {details['index']}/{details['total']}: {details['description']}"
    if stage == "image":
        return f"    Rendering image for panel {details['panel_id']}..."
    return None


# ============================================================
# Driver
# ============================================================

def discard_typeahead(stream=None):
    """Drop keys typed while a comic was generating (POSIX ttys only)."""
    stream = stream or sys.stdin
    if os.name != "posix" or not stream.isatty():
        return
    import termios
    termios.tcflush(stream, termios.TCIFLUSH)


class ComicTerminal:
    """Single-threaded interactive session over the state machine."""

    def __init__(
        self,
        assembler,
        read_line: Optional[Callable[[str], str]] = None,
        write: Callable[[str], None] = print,
        flush_input: Optional[Callable[[], None]] = None,
    ):
        self.assembler = assembler
        self._read_line = read_line or input
        self._write = write
        if flush_input is None:
            flush_input = discard_typeahead if read_line is None else (lambda: None)
        self._flush_input = flush_input

    async def run(self, state: Optional[AppState] = None) -> AppState:
        """Run until end of input. Returns the last state."""
        state = state or AppState()
        while True:
            self._write(render(state))

            if state.step is Step.PROCESSING:
                state = await self._process(state)
                # Keys pressed during processing must not answer the done screen
                self._flush_input()
                continue

            try:
                # Nothing else runs while a screen waits for input
                text = self._read_line(input_label(state))
            except EOFError:
                self._write("")
                return state
            state = handle_input(state, text)

    async def _process(self, state: AppState) -> AppState:
        """Run the assembler for the current state and move to DONE."""
        comic_dir = None

        def on_progress(stage: str, details: dict):
            nonlocal comic_dir
            if "comic_dir" in details:
                comic_dir = details["comic_dir"]
            line = format_progress(stage, details)
            if line:
                self._write(line)

        try:
            result = await self.assembler.generate(build_request(state), on_progress=on_progress)
        except Exception as e:
            logger.error(f"Comic generation failed: {e}", exc_info=True)
            return fail(state, str(e) or e.__class__.__name__)

        return complete(state, result, comic_dir)
