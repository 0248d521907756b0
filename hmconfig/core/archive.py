"""Settings archive validation and extraction."""

import logging
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..models.configuration import Configuration
from .manifest import ManifestParseError, ManifestParser
from .results import ErrorKind

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK"
MANIFEST_NAME = "XSREGISTER.XML"
COPY_BUFFER_SIZE = 1024 * 1024


@dataclass
class ExtractionResult:
    """Outcome of extracting one archive.

    On success the scratch directory belongs to the caller, who must hand
    the result to ``ArchiveExtractor.cleanup`` once done. On failure the
    scratch directory has already been removed.
    """

    success: bool
    scratch_dir: Path | None = None
    manifest_path: Path | None = None
    config: Configuration | None = None
    error_kind: str | None = None
    error: str = ""


class ArchiveExtractor:
    """Validates ``.omSettings`` archives and extracts them to scratch space."""

    def __init__(self, scratch_root: Path | None = None, parser: ManifestParser | None = None) -> None:
        """Initialize extractor.

        Args:
            scratch_root: Where scratch directories are created (defaults to
                the directory holding the archive)
            parser: Manifest parser to use
        """
        self.scratch_root = Path(scratch_root) if scratch_root else None
        self.parser = parser or ManifestParser()

    def extract(self, archive_path: Path) -> ExtractionResult:
        """Validate, extract and parse an archive.

        Args:
            archive_path: Path to the archive file

        Returns:
            ExtractionResult carrying the parsed Configuration on success
        """
        archive_path = Path(archive_path)

        if not archive_path.is_file():
            return ExtractionResult(
                success=False,
                error_kind=ErrorKind.NOT_FOUND,
                error=f"Archive not found: {archive_path}",
            )

        try:
            with open(archive_path, "rb") as f:
                signature = f.read(2)
        except OSError as e:
            return ExtractionResult(success=False, error_kind=ErrorKind.IO_ERROR, error=str(e))

        if signature != ZIP_SIGNATURE:
            return ExtractionResult(
                success=False,
                error_kind=ErrorKind.INVALID_FORMAT,
                error=f"Not a settings archive (bad signature): {archive_path.name}",
            )

        try:
            scratch_dir = self._make_scratch_dir(archive_path)
        except OSError as e:
            logger.warning("Cannot create scratch directory for %s: %s", archive_path.name, e)
            return ExtractionResult(
                success=False,
                error_kind=ErrorKind.IO_ERROR,
                error=f"Cannot create scratch directory: {e}",
            )

        try:
            result = self._extract_into(archive_path, scratch_dir)
        except Exception:
            shutil.rmtree(scratch_dir, ignore_errors=True)
            raise

        if not result.success:
            shutil.rmtree(scratch_dir, ignore_errors=True)
            result.scratch_dir = None
            logger.warning("Extraction of %s failed: %s", archive_path.name, result.error)
        return result

    def cleanup(self, result: ExtractionResult) -> None:
        """Remove the scratch directory of a successful extraction."""
        if result.scratch_dir is not None and result.scratch_dir.exists():
            shutil.rmtree(result.scratch_dir)
            logger.debug("Removed scratch directory %s", result.scratch_dir)
        result.scratch_dir = None
        result.manifest_path = None

    def _make_scratch_dir(self, archive_path: Path) -> Path:
        root = self.scratch_root or archive_path.parent
        root.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        return Path(tempfile.mkdtemp(prefix=f".tmp_{timestamp}_", dir=root))

    def _extract_into(self, archive_path: Path, scratch_dir: Path) -> ExtractionResult:
        try:
            self._unpack(archive_path, scratch_dir)
        except (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError) as e:
            return ExtractionResult(
                success=False,
                scratch_dir=scratch_dir,
                error_kind=ErrorKind.INVALID_FORMAT,
                error=f"Corrupt archive: {e}",
            )
        except OSError as e:
            return ExtractionResult(
                success=False,
                scratch_dir=scratch_dir,
                error_kind=ErrorKind.IO_ERROR,
                error=f"Extraction failed: {e}",
            )

        manifest_path = self._find_manifest(scratch_dir)
        if manifest_path is None:
            return ExtractionResult(
                success=False,
                scratch_dir=scratch_dir,
                error_kind=ErrorKind.MANIFEST_MISSING,
                error=f"{MANIFEST_NAME} not found in archive",
            )

        try:
            config = self.parser.parse_file(manifest_path)
        except ManifestParseError as e:
            return ExtractionResult(
                success=False,
                scratch_dir=scratch_dir,
                error_kind=ErrorKind.PARSE_ERROR,
                error=str(e),
            )

        logger.info("Extracted %s to %s", archive_path.name, scratch_dir)
        return ExtractionResult(
            success=True,
            scratch_dir=scratch_dir,
            manifest_path=manifest_path,
            config=config,
        )

    def _unpack(self, archive_path: Path, scratch_dir: Path) -> None:
        """Stream every member to disk, refusing entries that escape scratch_dir."""
        root = scratch_dir.resolve()
        with zipfile.ZipFile(archive_path) as archive:
            for info in archive.infolist():
                target = (root / info.filename).resolve()
                if target != root and root not in target.parents:
                    logger.warning("Skipping archive member outside extraction root: %s", info.filename)
                    continue
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_BUFFER_SIZE)

    def _find_manifest(self, scratch_dir: Path) -> Path | None:
        exact = scratch_dir / MANIFEST_NAME
        if exact.is_file():
            return exact
        for candidate in scratch_dir.iterdir():
            if candidate.is_file() and candidate.name.upper() == MANIFEST_NAME:
                return candidate
        return None
