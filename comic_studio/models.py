"""
Comic Studio: Data models.

Pydantic models for the generation pipeline:
GenerationRequest → Story (Panels, Characters) → GenerationResult.

Models serialize with camelCase keys (the on-disk JSON format) and accept
either camelCase or snake_case on input. Every model is frozen; the
assembler builds new objects rather than mutating existing ones.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MIN_PANELS = 1
MAX_PANELS = 12
DEFAULT_PANELS = 4


class ComicModel(BaseModel):
    """Base: camelCase aliases, immutable, JSON helpers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, dropping absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================
# Request
# ============================================================

class GenerationRequest(ComicModel):
    """What the user asked for."""
    prompt: str = Field(min_length=1, description="User's original prompt for the comic")
    panel_count: int = Field(
        default=DEFAULT_PANELS, ge=MIN_PANELS, le=MAX_PANELS,
        description="Number of panels to generate",
    )
    art_style: Optional[str] = Field(default=None, description="Preferred art style for the comic")
    genre: Optional[str] = Field(default=None, description="Preferred genre for the comic")

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value


def clamp_panel_count(raw: Optional[str], default: int = DEFAULT_PANELS) -> int:
    """
    Turn free-text panel count input into a valid count.

    Blank or non-numeric input gives the default; numbers outside
    [MIN_PANELS, MAX_PANELS] are clamped to the nearest bound.
    """
    text = (raw or "").strip()
    try:
        value = int(text)
    except ValueError:
        return default
    return max(MIN_PANELS, min(MAX_PANELS, value))


# ============================================================
# Story
# ============================================================

class DialogueLine(ComicModel):
    character: str
    text: str


class StoryCharacter(ComicModel):
    name: str
    description: str
    visual_description: str = Field(
        description="Physical appearance for consistent character generation",
    )


class Panel(ComicModel):
    """A single comic panel as written by the story model."""
    id: int = Field(description="1-based position of the panel in the story")
    description: str = Field(description="Detailed description of what happens in this panel")
    characters: list[str] = Field(description="List of characters appearing in this panel")
    setting: str = Field(description="Location or setting where the panel takes place")
    dialogue: Optional[list[DialogueLine]] = Field(
        default=None, description="Dialogue spoken by characters in this panel",
    )
    visual_style: str = Field(
        description="Visual style and mood for the panel "
                    "(e.g., 'dramatic close-up', 'wide establishing shot')",
    )
    image_prompt: str = Field(description="Detailed prompt for image generation optimized for Flux")


class Story(ComicModel):
    """The full structured narrative for one request."""
    title: str = Field(description="Title of the comic story")
    genre: str = Field(description="Genre of the comic (e.g., superhero, slice-of-life, adventure)")
    theme: str = Field(description="Main theme or message of the story")
    characters: list[StoryCharacter] = Field(description="Main characters in the story")
    panels: list[Panel] = Field(description="Sequential panels that make up the comic story")
    art_style: str = Field(
        description="Overall art style for the comic "
                    "(e.g., 'manga style', 'western comic book', 'watercolor illustration')",
    )

    @model_validator(mode="after")
    def _check_panel_ids(self) -> "Story":
        ids = [p.id for p in self.panels]
        expected = list(range(1, len(self.panels) + 1))
        if ids != expected:
            raise ValueError(
                f"panel ids must be 1..{len(self.panels)} in order, got {ids}"
            )
        return self

    @property
    def character_names(self) -> list[str]:
        return [c.name for c in self.characters]


class PanelRecord(Panel):
    """Contents of panel-<id>.json: the panel plus its enrichment."""
    detailed_visual_description: str
    art_style: str

    @classmethod
    def from_panel(cls, panel: Panel, detailed_description: str, art_style: str) -> "PanelRecord":
        return cls(
            **panel.model_dump(),
            detailed_visual_description=detailed_description,
            art_style=art_style,
        )


# ============================================================
# Result
# ============================================================

class GeneratedImageRecord(ComicModel):
    panel_id: int
    image_url: str = Field(description="file:// URI of the downloaded image")
    image_path: str = Field(description="Image path relative to the working directory")


class ResultMetadata(ComicModel):
    generated_at: str
    total_panels: int
    processing_time_ms: int


class GenerationResult(ComicModel):
    """Terminal artifact of one successful request (result.json)."""
    story: Story
    generated_images: list[GeneratedImageRecord]
    metadata: ResultMetadata

    @model_validator(mode="after")
    def _check_counts(self) -> "GenerationResult":
        if self.metadata.total_panels != len(self.story.panels):
            raise ValueError("totalPanels must equal the number of story panels")
        if len(self.generated_images) != self.metadata.total_panels:
            raise ValueError("generatedImages must have one entry per panel")
        return self
