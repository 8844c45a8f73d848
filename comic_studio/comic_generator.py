"""
Comic Studio: Main Orchestrator.

ComicAssembler ties the stages together for one request:
  Request → Story → (per panel: Detail → Image) → result.json

Panels are processed strictly in order. Any failure aborts the request;
files already written for earlier panels stay on disk and result.json is
only written once every panel has an image.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from comic_studio.models import (
    GeneratedImageRecord,
    GenerationRequest,
    GenerationResult,
    PanelRecord,
    ResultMetadata,
)
from comic_studio.workspace import Workspace, iso_timestamp

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict], None]


class ComicAssembler:
    """
    End-to-end comic generator.

    Usage:
        assembler = ComicAssembler(story_writer, panel_detailer, image_renderer, workspace)
        result = await assembler.generate(GenerationRequest(prompt="...", panel_count=4))
    """

    def __init__(
        self,
        story_writer,
        panel_detailer,
        image_renderer,
        workspace: Workspace,
        redetail_before_render: bool = False,
    ):
        self.story_writer = story_writer
        self.panel_detailer = panel_detailer
        self.image_renderer = image_renderer
        self.workspace = workspace
        self.redetail_before_render = redetail_before_render

    async def generate(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> GenerationResult:
        """
        Generate a complete comic.

        Args:
            request: Validated generation request
            on_progress: Optional callback(stage: str, details: dict)

        Returns:
            GenerationResult, also persisted as result.json
        """
        started = time.monotonic()
        self.workspace.ensure()

        # === Stage 1: Story ===
        self._progress(on_progress, "story", {"prompt": request.prompt,
                                              "panel_count": request.panel_count})
        logger.info("=" * 60)
        logger.info(f"COMIC: {request.prompt[:60]}")
        logger.info("=" * 60)

        story = await self.story_writer.generate_story(request)

        comic_dir = self.workspace.new_comic_dir()
        self.workspace.write_json(comic_dir / "story.json", story.to_json_dict())
        self._progress(on_progress, "story_ready", {
            "title": story.title,
            "characters": story.character_names,
            "comic_dir": str(comic_dir),
        })

        # === Stage 2: Panels ===
        images_dir = self.workspace.images_dir
        generated_images = []
        total = len(story.panels)

        for index, panel in enumerate(story.panels, start=1):
            logger.info(f"Panel {index}/{total}: {panel.description[:80]}")
            self._progress(on_progress, "panel", {"panel_id": panel.id, "index": index,
                                                  "total": total,
                                                  "description": panel.description})

            detailed = await self.panel_detailer.describe(panel, story.art_style)
            record = PanelRecord.from_panel(panel, detailed, story.art_style)
            self.workspace.write_json(comic_dir / f"panel-{panel.id}.json", record.to_json_dict())

            if self.redetail_before_render:
                detailed = await self.panel_detailer.describe(panel, story.art_style)

            self._progress(on_progress, "image", {"panel_id": panel.id, "index": index,
                                                  "total": total})
            try:
                image_path = await self.image_renderer.render(detailed, panel.id, images_dir)
            except Exception as e:
                logger.error(f"Panel {panel.id} failed: {e}")
                raise

            generated_images.append(GeneratedImageRecord(
                panel_id=panel.id,
                image_url=Path(image_path).resolve().as_uri(),
                image_path=os.path.relpath(image_path, os.getcwd()),
            ))
            logger.info(f"Panel {panel.id} image generated and saved")

        # === Stage 3: Result ===
        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = GenerationResult(
            story=story,
            generated_images=generated_images,
            metadata=ResultMetadata(
                generated_at=iso_timestamp(),
                total_panels=total,
                processing_time_ms=elapsed_ms,
            ),
        )
        self.workspace.write_json(comic_dir / "result.json", result.to_json_dict())

        self._progress(on_progress, "complete", {"comic_dir": str(comic_dir),
                                                 "processing_time_ms": elapsed_ms})
        logger.info("=" * 60)
        logger.info("COMIC COMPLETE")
        logger.info(f"  Title: {story.title}")
        logger.info(f"  Panels: {total}")
        logger.info(f"  Output: {comic_dir}")
        logger.info(f"  Time: {elapsed_ms / 1000:.1f}s")
        logger.info("=" * 60)

        return result

    async def close(self):
        """Clean up resources."""
        await self.image_renderer.close()

    def _progress(self, callback: Optional[ProgressCallback], stage: str, details: dict):
        """Report progress if callback is set."""
        if callback:
            try:
                callback(stage, details)
            except Exception as e:
                logger.warning(f"Progress callback failed at '{stage}': {e}")
