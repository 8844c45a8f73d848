"""
Comic Studio: Interactive Entry Point

Asks for a story idea and a panel count, then generates the comic:
story (Claude) → detailed panel briefs (Claude) → panel images (Flux on Replicate).
Output lands in .workspace/comics/ and .workspace/images/.

Usage:
    python comic_main.py

Environment:
    Requires .env file (or shell variables) with:
    - ANTHROPIC_API_KEY (story + panel descriptions)
    - REPLICATE_API_TOKEN (image generation)

Press Ctrl-C (or Ctrl-D at a prompt) to quit.
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

from comic_studio.comic_generator import ComicAssembler
from comic_studio.config import ComicConfig
from comic_studio.errors import ConfigError
from comic_studio.image_renderer import FluxImageRenderer
from comic_studio.llm_client import ClaudeClient
from comic_studio.panel_detailer import PanelDetailer
from comic_studio.story_writer import StoryWriter
from comic_studio.terminal_ui import ComicTerminal
from comic_studio.workspace import Workspace

logger = logging.getLogger("comic_studio")


def setup_logging(config: ComicConfig, workspace: Workspace):
    """Console gets warnings only so the wizard stays readable; the log file gets everything."""
    workspace.ensure()
    console = logging.StreamHandler()
    console.setLevel(config.log_level)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[
            console,
            logging.FileHandler(workspace.root / "comic_studio.log", encoding="utf-8"),
        ],
    )
    # Keep HTTP client chatter out of the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


def build_assembler(config: ComicConfig, workspace: Workspace) -> tuple[ComicAssembler, ClaudeClient]:
    """Construct the service clients once and wire them into the pipeline."""
    llm = ClaudeClient(api_key=config.anthropic_api_key, model=config.text_model)
    renderer = FluxImageRenderer(
        api_token=config.replicate_api_token,
        model=config.image_model,
        max_wait=config.image_max_wait,
    )
    assembler = ComicAssembler(
        story_writer=StoryWriter(llm),
        panel_detailer=PanelDetailer(llm),
        image_renderer=renderer,
        workspace=workspace,
        redetail_before_render=config.redetail_before_render,
    )
    return assembler, llm


async def run(config: ComicConfig):
    workspace = Workspace(config.workspace_dir)
    setup_logging(config, workspace)
    assembler, llm = build_assembler(config, workspace)
    logger.info(f"Comic Studio started (text={config.text_model}, image={config.image_model}, "
                f"workspace={workspace.root})")

    print("=" * 50)
    print("  COMIC STUDIO")
    print("  (Describe a story, get an illustrated comic)")
    print("=" * 50)
    print()

    try:
        await ComicTerminal(assembler).run()
    finally:
        await assembler.close()
        await llm.close()


def main():
    try:
        config = ComicConfig.from_env()
        config.validate()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        print("\nBye.")


if __name__ == "__main__":
    main()
