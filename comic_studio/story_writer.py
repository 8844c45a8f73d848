"""
Comic Studio: Story Writer.

Turns a GenerationRequest into a validated Story with one structured Claude
call. No retries: a response that fails validation aborts the request.
"""

import logging

from comic_studio.errors import StoryValidationError
from comic_studio.models import GenerationRequest, Story

logger = logging.getLogger(__name__)

STORY_SYSTEM_PROMPT = """You are a professional comic writer and story designer. You write engaging comic stories with well-developed characters, compelling narratives and detailed visual descriptions.

When writing the story:
- Every panel must move the story forward
- Character descriptions must be detailed and consistent, because each image is generated independently
- Image prompts must be specific and self-contained, written for an AI image generator
- Vary shot types and compositions for visual interest
- Dialogue should flow naturally and serve the story

Number the panels 1, 2, 3, ... in reading order."""

STORY_TOOL_DESCRIPTION = "Submit the complete comic story: title, genre, theme, characters, panels and art style."


def build_story_prompt(request: GenerationRequest) -> str:
    """User prompt for the story call."""
    lines = [
        f'Create a {request.panel_count}-panel comic story based on this prompt: "{request.prompt}"',
        "",
    ]
    if request.genre:
        lines.append(f"Genre: {request.genre}")
    if request.art_style:
        lines.append(f"Art Style: {request.art_style}")
    lines += [
        "",
        "Focus on creating:",
        "1. A compelling story arc that fits the panel count",
        "2. Consistent character designs with detailed visual descriptions",
        "3. Varied and dynamic panel compositions",
        "4. Clear, engaging dialogue when appropriate",
        "5. Detailed image prompts optimized for Flux image generation",
        "",
        f"The story must have exactly {request.panel_count} panels.",
    ]
    return "\n".join(lines)


class StoryWriter:
    """Generates the structured story for a comic request."""

    def __init__(self, llm):
        self.llm = llm

    async def generate_story(self, request: GenerationRequest) -> Story:
        logger.info(f"Generating {request.panel_count}-panel story for: {request.prompt[:80]}")

        story = await self.llm.generate_object(
            system=STORY_SYSTEM_PROMPT,
            prompt=build_story_prompt(request),
            schema=Story,
            tool_name="submit_comic_story",
            tool_description=STORY_TOOL_DESCRIPTION,
        )

        if len(story.panels) != request.panel_count:
            raise StoryValidationError(
                f"Story has {len(story.panels)} panels, expected {request.panel_count}"
            )

        logger.info(f"Story ready: '{story.title}' ({story.genre}), "
                    f"{len(story.panels)} panels, characters: {', '.join(story.character_names)}")
        return story
