"""
Comic Studio: Workspace.

On-disk layout:
    <root>/comics/comic-<timestamp>/story.json
    <root>/comics/comic-<timestamp>/panel-<id>.json
    <root>/comics/comic-<timestamp>/result.json
    <root>/images/panel-<id>.jpg
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from comic_studio.errors import WorkspaceError

logger = logging.getLogger(__name__)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def comic_dir_name(moment: Optional[datetime] = None) -> str:
    """comic-<timestamp>, with ':' and '.' made filesystem-safe."""
    stamp = iso_timestamp(moment).replace(":", "-").replace(".", "-")
    return f"comic-{stamp}"


class Workspace:
    """Root directory under which all generated artifacts are written."""

    def __init__(self, root: Union[str, Path] = ".workspace"):
        self.root = Path(root)

    @property
    def comics_dir(self) -> Path:
        return self.root / "comics"

    @property
    def images_dir(self) -> Path:
        return self.root / "images"

    def ensure(self) -> Path:
        """Create root, comics/ and images/ if missing. Returns the root."""
        for directory in (self.root, self.comics_dir, self.images_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise WorkspaceError(f"Cannot create directory {directory}: {e}") from e
        return self.root

    def new_comic_dir(self, moment: Optional[datetime] = None) -> Path:
        """Create a fresh timestamped directory for one comic."""
        path = self.comics_dir / comic_dir_name(moment)
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise WorkspaceError(f"Cannot create comic directory {path}: {e}") from e
        logger.info(f"Comic directory: {path}")
        return path

    def write_json(self, path: Path, data: dict) -> Path:
        """Write pretty-printed JSON. Raises WorkspaceError on failure."""
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise WorkspaceError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {path}")
        return path
