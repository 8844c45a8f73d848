"""
Comic Studio: Panel Detailer.

Expands a panel's terse visual fields into a full illustration brief that is
used as the image-generation prompt.
"""

import logging

from comic_studio.models import Panel

logger = logging.getLogger(__name__)

DETAIL_SYSTEM_PROMPT = """You are an expert comic artist and illustrator. You write extremely detailed visual descriptions of comic panels, to be used as prompts for AI image generation. Cover:
- Specific visual details, composition and framing
- Character positioning and expressions
- Environmental details and atmosphere
- Art style elements and rendering techniques
- Colour palette
- Lighting and shadows"""


def build_detail_prompt(panel: Panel, art_style: str) -> str:
    return (
        "Create a detailed visual description for this comic panel:\n\n"
        f"Panel Description: {panel.description}\n"
        f"Characters: {', '.join(panel.characters)}\n"
        f"Setting: {panel.setting}\n"
        f"Visual Style: {panel.visual_style}\n"
        f"Art Style: {art_style}\n"
        f"Original Image Prompt: {panel.image_prompt}\n\n"
        "Write a comprehensive visual description an artist could use to draw this panel: "
        "composition, character poses and expressions, background elements, colour, "
        "lighting and artistic technique."
    )


class PanelDetailer:

    def __init__(self, llm):
        self.llm = llm

    async def describe(self, panel: Panel, art_style: str) -> str:
        """One model call → detailed description for one panel. Not cached."""
        logger.info(f"Detailing panel {panel.id}")
        return await self.llm.generate_text(
            system=DETAIL_SYSTEM_PROMPT,
            prompt=build_detail_prompt(panel, art_style),
        )
