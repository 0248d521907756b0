"""Discovery of settings archives on local disks."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .paths import is_server_path
from .probe import format_bytes, to_iso

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".omSettings"

SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        "System Volume Information",
        "$RECYCLE.BIN",
        "Recovery",
        "boot",
        "System32",
        "cache",
        "Cache",
        "temp",
        "Temp",
        "AppData",
    }
)

# Checked in order against the path with forward slashes.
SOURCE_MARKERS = [
    ("Public/Documents", "shared-backup"),
    ("Documents", "user-manual-export"),
    ("Downloads", "user-download"),
    ("Temp", "temporary"),
    ("AppData", "appdata"),
    ("ProgramData", "program-data"),
]


def classify_source(path: str) -> str:
    """Where an archive most likely came from, judged by its path."""
    if path.startswith("\\\\"):
        return "network-share"
    normalized = path.replace("\\", "/")
    for marker, source in SOURCE_MARKERS:
        if marker in normalized:
            return source
    return "other"


@dataclass
class ArchiveCandidate:
    """A settings archive found on disk."""

    path: str
    size: int
    modified: datetime
    source: str

    @property
    def size_readable(self) -> str:
        return format_bytes(self.size)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "size": self.size,
            "modified": to_iso(self.modified),
            "sizeReadable": self.size_readable,
            "source": self.source,
        }


class ConfigurationLocator:
    """Searches local directories for ``.omSettings`` exports.

    Roots classified as server paths are never searched.
    """

    def __init__(self, search_paths: list[str], max_depth: int = 3) -> None:
        self.search_paths = list(search_paths)
        self.max_depth = max_depth

    def search_for_settings(self) -> list[ArchiveCandidate]:
        """All archives under the search roots, most recently modified first.

        Archives with equal modification times keep discovery order.
        """
        found: list[ArchiveCandidate] = []

        for root in self.search_paths:
            if is_server_path(root):
                logger.warning("Skipping server location in search paths: %s", root)
                continue
            if not os.path.isdir(root):
                continue
            for file_path in self._walk(root, 0):
                candidate = self._candidate(file_path)
                if candidate is not None:
                    found.append(candidate)

        found.sort(key=lambda c: c.modified, reverse=True)
        logger.debug("Found %d settings archives", len(found))
        return found

    def find_latest(self) -> ArchiveCandidate | None:
        """The most recently modified archive, or None."""
        found = self.search_for_settings()
        return found[0] if found else None

    def _walk(self, directory: str, depth: int) -> list[str]:
        if depth >= self.max_depth:
            return []

        files: list[str] = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            if entry.name not in SKIP_DIRS:
                                files.extend(self._walk(entry.path, depth + 1))
                        elif entry.is_file() and entry.name.endswith(ARCHIVE_SUFFIX):
                            files.append(entry.path)
                    except OSError as e:
                        logger.debug("Skipping %s: %s", entry.path, e)
        except OSError as e:
            logger.debug("Cannot read %s: %s", directory, e)
        return files

    def _candidate(self, file_path: str) -> ArchiveCandidate | None:
        try:
            st = os.stat(file_path)
        except OSError as e:
            logger.debug("Cannot stat %s: %s", file_path, e)
            return None
        return ArchiveCandidate(
            path=str(Path(file_path)),
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            source=classify_source(file_path),
        )
