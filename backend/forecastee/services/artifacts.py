"""
Artifact storage for downloaded video reports.

Each pipeline run gets its own directory under the storage root. The
VideoArtifact handle points at the file written there and must be released
by its owner, which deletes the file.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

from forecastee.config import settings

logger = logging.getLogger(__name__)


class VideoArtifact:
    """Locally addressable handle to downloaded video content.

    Attributes:
        path: Local file holding the video bytes
        uri: Source location the bytes were fetched from
        content: Raw video bytes
        mime_type: Content type reported by the download
    """

    def __init__(
        self,
        path: Path,
        uri: str,
        content: bytes,
        mime_type: str = "video/mp4",
        store: Optional["ArtifactStore"] = None,
    ):
        self.path = path
        self.uri = uri
        self.content = content
        self.mime_type = mime_type
        self._store = store
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Free the local file. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        if self._store is not None:
            self._store.remove(self.path)
        else:
            self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        state = "released" if self._released else f"{len(self.content)} bytes"
        return f"VideoArtifact(path={str(self.path)!r}, {state})"


class ArtifactStore:
    """
    Manage per-run video files.

    Creates:
    - {base_dir}/{run_id}/report.mp4

    Implements path traversal protection to prevent directory escape.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize ArtifactStore with base directory.

        Args:
            base_dir: Root directory for all run artifacts.
                     If None, uses settings.storage.tmp_dir
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_run_dir(self, run_id: uuid.UUID | str) -> Path:
        """
        Get or create the directory for one pipeline run.

        Raises:
            ValueError: If run_id resolves outside base_dir
        """
        run_dir = (self.base_dir / str(run_id)).resolve()

        if not run_dir.is_relative_to(self.base_dir) or run_dir == self.base_dir:
            raise ValueError("Invalid run path")

        run_dir.mkdir(exist_ok=True)
        return run_dir

    def save_video(
        self,
        run_id: uuid.UUID | str,
        data: bytes,
        uri: str,
        mime_type: str = "video/mp4",
    ) -> VideoArtifact:
        """
        Write video bytes for a run and return the handle.

        Args:
            run_id: Pipeline run identifier
            data: MP4 video data
            uri: Source location of the data
            mime_type: Content type of the data

        Returns:
            VideoArtifact owned by the caller
        """
        filepath = self.get_run_dir(run_id) / "report.mp4"
        filepath.write_bytes(data)
        logger.info(f"Saved video report ({len(data)} bytes) to {filepath}")
        return VideoArtifact(filepath, uri, data, mime_type=mime_type, store=self)

    def remove(self, path: Path) -> None:
        """Delete an artifact file and its run directory once empty."""
        path = Path(path).resolve()
        if not path.is_relative_to(self.base_dir):
            raise ValueError("Invalid artifact path")
        path.unlink(missing_ok=True)
        run_dir = path.parent
        if run_dir != self.base_dir and run_dir.exists() and not any(run_dir.iterdir()):
            run_dir.rmdir()
        logger.debug(f"Released artifact {path}")
