"""
Comic Studio: Terminal UI tests.

Covers the pure state transitions, the view, and a scripted session through
ComicTerminal with a fake assembler (no API keys, no network).

Usage:
    python test_comic_ui.py
    pytest test_comic_ui.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent))

from comic_studio.errors import ImageDownloadError
from comic_studio.models import GenerationResult
from comic_studio.terminal_ui import (
    AppState,
    ComicTerminal,
    Step,
    complete,
    discard_typeahead,
    fail,
    handle_input,
    render,
)


def make_result(panel_count: int = 4) -> GenerationResult:
    panels = [
        {
            "id": i,
            "description": f"Panel {i}",
            "characters": ["Captain Volt"],
            "setting": "Park",
            "visualStyle": "wide shot",
            "imagePrompt": "hero and cat",
        }
        for i in range(1, panel_count + 1)
    ]
    return GenerationResult.model_validate({
        "story": {
            "title": "Whiskers Aloft",
            "genre": "superhero",
            "theme": "Kindness",
            "characters": [
                {"name": "Captain Volt", "description": "hero", "visualDescription": "blue cape"},
                {"name": "Mittens", "description": "kitten", "visualDescription": "grey"},
            ],
            "panels": panels,
            "artStyle": "western comic",
        },
        "generatedImages": [
            {"panelId": i, "imageUrl": f"file:///tmp/panel-{i}.jpg", "imagePath": f"panel-{i}.jpg"}
            for i in range(1, panel_count + 1)
        ],
        "metadata": {"generatedAt": "2026-01-01T00:00:00.000Z", "totalPanels": panel_count,
                     "processingTimeMs": 12345},
    })


class FakeAssembler:
    """Records requests; returns a result or raises the queued error."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def generate(self, request, on_progress=None):
        self.requests.append(request)
        if on_progress:
            on_progress("story", {"prompt": request.prompt, "panel_count": request.panel_count})
            on_progress("story_ready", {"title": "Whiskers Aloft", "characters": ["Captain Volt"],
                                        "comic_dir": ".workspace/comics/comic-x"})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def scripted(lines):
    """read_line stand-in: yields lines, then EOF."""
    queue = list(lines)
    prompts = []

    def read_line(prompt: str) -> str:
        prompts.append(prompt)
        if not queue:
            raise EOFError
        return queue.pop(0)

    read_line.prompts = prompts
    return read_line


# ============================================================
# Transitions
# ============================================================

def test_transitions():
    """prompt → options → processing → done → prompt."""
    state = AppState()
    assert state.step is Step.PROMPT

    assert handle_input(state, "   ") == state, "Blank prompt stays on prompt screen"

    state = handle_input(state, "  A superhero saves a cat from a tree ")
    assert state.step is Step.OPTIONS
    assert state.prompt == "A superhero saves a cat from a tree"

    state = handle_input(state, "20")
    assert state.step is Step.PROCESSING
    assert state.panel_count == 12
    assert state.generation_count == 1

    assert handle_input(state, "ignored") == state, "No input while processing"

    done = complete(state, make_result(), comic_dir="out")
    assert done.step is Step.DONE and done.result is not None and done.error is None

    again = handle_input(done, "anything")
    assert again == AppState(), "Restart resets all state and counters"

    failed = fail(state, "Failed to download image: 404")
    assert failed.step is Step.DONE and failed.result is None
    assert handle_input(failed, "") == AppState()

    print("  PASS: State transitions")


def test_panel_count_options():
    """Options input never produces an out-of-range count."""
    base = AppState(step=Step.OPTIONS, prompt="cat")
    for raw, expected in {"0": 1, "20": 12, "": 4, "five": 4, "6": 6}.items():
        assert handle_input(base, raw).panel_count == expected, raw

    print("  PASS: Options clamp panel count")


# ============================================================
# View
# ============================================================

def test_render():
    """Each screen shows what the user needs."""
    assert "story idea" in render(AppState()).lower()
    assert "1-12" in render(AppState(step=Step.OPTIONS, prompt="cat"))

    processing = render(AppState(step=Step.PROCESSING, prompt="cat", panel_count=6))
    assert "cat" in processing and "6" in processing

    done = render(complete(AppState(step=Step.PROCESSING), make_result(), comic_dir="out/comic-1"))
    for fragment in ("Whiskers Aloft", "superhero", "Captain Volt, Mittens", "Panels: 4",
                     "12.3s", "out/comic-1"):
        assert fragment in done, f"Missing {fragment!r}"

    error = render(fail(AppState(step=Step.PROCESSING), "Failed to download image: 404"))
    assert "\033[31m" in error, "Errors render in red"
    assert "Failed to download image: 404" in error

    print("  PASS: Screens render")


# ============================================================
# Session
# ============================================================

def test_terminal_session():
    """Two comics in one session; the failed one keeps the UI alive."""
    async def run():
        assembler = FakeAssembler([
            ImageDownloadError("Failed to download image: 404", status_code=404),
            make_result(2),
        ])
        output = []
        read_line = scripted([
            "A superhero saves a cat from a tree", "0",   # first comic → fails
            "",                                           # back to prompt
            "A dragon learns to bake", "2",               # second comic → succeeds
        ])
        terminal = ComicTerminal(assembler, read_line=read_line, write=output.append)
        final = await terminal.run()

        assert [r.panel_count for r in assembler.requests] == [1, 2]
        assert assembler.requests[1].prompt == "A dragon learns to bake"

        text = "\n".join(output)
        assert "Failed to download image: 404" in text
        assert "Whiskers Aloft" in text
        assert "Writing story..." in text

        assert final.step is Step.DONE
        assert final.error is None
        assert final.comic_dir == ".workspace/comics/comic-x"
        assert final.generation_count == 1, "Counter reset on restart"

    asyncio.run(run())
    print("  PASS: Interactive session")


def test_terminal_discards_typeahead():
    """Input buffered during processing is dropped before the done screen reads."""
    async def run():
        events = []
        queue = ["A superhero saves a cat from a tree", "3", ""]

        def read_line(prompt: str) -> str:
            events.append(("read", prompt))
            if not queue:
                raise EOFError
            return queue.pop(0)

        terminal = ComicTerminal(
            FakeAssembler([make_result(3)]),
            read_line=read_line,
            write=lambda s: None,
            flush_input=lambda: events.append(("flush", None)),
        )
        await terminal.run()

        assert [e[0] for e in events] == ["read", "read", "flush", "read", "read"]
        assert events[3] == ("read", "> "), "Done screen reads only after the flush"

    asyncio.run(run())
    print("  PASS: Typeahead discarded after processing")


def test_discard_typeahead_ignores_pipes():
    """Non-tty input (pipes, files) is left untouched."""
    class Piped:
        def isatty(self):
            return False

    discard_typeahead(Piped())
    print("  PASS: Non-tty input untouched")


def test_terminal_ends_on_eof():
    """End of input at the first prompt exits without generating."""
    async def run():
        assembler = FakeAssembler([])
        final = await ComicTerminal(assembler, read_line=scripted([]), write=lambda s: None).run()
        assert final == AppState()
        assert assembler.requests == []

    asyncio.run(run())
    print("  PASS: EOF exits cleanly")


# ============================================================
# Runner
# ============================================================

def main():
    """Run tests."""
    tests = [
        test_transitions,
        test_panel_count_options,
        test_render,
        test_terminal_session,
        test_terminal_discards_typeahead,
        test_discard_typeahead_ignores_pipes,
        test_terminal_ends_on_eof,
    ]
    passed = 0
    failed = 0

    print("\nComic Studio UI Tests")
    print("=" * 50)

    for func in tests:
        print(f"\n{func.__name__}:")
        try:
            func()
            passed += 1
        except Exception as e:
            print(f"  FAIL: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("\n" + "=" * 50)
    print(f"Results: {passed} passed, {failed} failed")

    if failed > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
