"""
Comic Studio: prompt-to-comic generation.

One request → a story, N detailed panel briefs, N rendered panel images:
1. story.json (Claude structured output)
2. panel-<id>.json per panel (panel + detailed visual description)
3. images/panel-<id>.jpg (Flux Kontext Max on Replicate)
4. result.json (story + image records + timing)

Usage:
    from comic_studio import ComicAssembler, GenerationRequest

    result = await assembler.generate(
        GenerationRequest(prompt="A superhero saves a cat from a tree", panel_count=4),
    )
"""

from comic_studio.comic_generator import ComicAssembler
from comic_studio.models import GenerationRequest, GenerationResult, Panel, Story

__all__ = [
    "ComicAssembler",
    "GenerationRequest",
    "GenerationResult",
    "Panel",
    "Story",
]
