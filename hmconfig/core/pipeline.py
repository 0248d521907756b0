"""End-to-end settings import: archive to stored profile."""

import logging
from pathlib import Path

from .archive import ExtractionResult
from .context import ServiceContext
from .profiles import InvalidUsernameError, validate_username
from .probe import format_bytes
from .results import ErrorKind, OperationResult
from .server_paths import analyze_paths
from .tokens import build_token_map

logger = logging.getLogger(__name__)


def _extract_checked(context: ServiceContext, archive_path: Path) -> OperationResult:
    """Size precondition plus extraction; on success data["extraction"] holds the result."""
    if not archive_path.is_file():
        return OperationResult.fail(ErrorKind.NOT_FOUND, f"Archive not found: {archive_path}")

    size = archive_path.stat().st_size
    limit = context.settings.max_archive_bytes
    if size > limit:
        return OperationResult.fail(
            ErrorKind.TOO_LARGE,
            f"Archive is {format_bytes(size)}, limit is {format_bytes(limit)}",
        )

    extraction = context.extractor.extract(archive_path)
    if not extraction.success or extraction.config is None:
        context.extractor.cleanup(extraction)
        return OperationResult.fail(
            extraction.error_kind or ErrorKind.PARSE_ERROR,
            extraction.error or "Archive yielded no configuration",
        )
    return OperationResult.ok(extraction=extraction)


def import_settings(
    context: ServiceContext,
    archive_path: Path,
    username: str,
    keep_archive: bool = True,
) -> OperationResult:
    """Extract, parse and map an archive, then store the results in the user's profile.

    The scratch directory is always released before returning.

    Args:
        context: Services of this process
        archive_path: The ``.omSettings`` file
        username: Profile to store into; also feeds the token map
        keep_archive: Also store a copy of the archive in the profile

    Returns:
        OperationResult with "config", "scan_config" and "manifest_path"
    """
    archive_path = Path(archive_path)
    try:
        validate_username(username)
    except InvalidUsernameError as e:
        return OperationResult.fail(ErrorKind.INVALID_INPUT, str(e))

    checked = _extract_checked(context, archive_path)
    if not checked.success:
        logger.warning("Import of %s failed: %s", archive_path, checked.message)
        return checked

    extraction: ExtractionResult = checked.get("extraction")
    try:
        config = extraction.config

        token_map = build_token_map(username, context.installation)
        scan = context.generator.generate(config, token_map)

        steps = []
        if keep_archive:
            steps.append(context.profiles.save_user_settings(username, archive_path))
        steps.append(context.profiles.save_parsed_config(username, config))
        steps.append(context.profiles.save_scan_config(username, scan))
        manifest = context.manifests.create_manifest(analyze_paths(config.to_dict()), username)
        steps.append(manifest)

        for step in steps:
            if not step.success:
                return step
    finally:
        context.extractor.cleanup(extraction)

    logger.info(
        "Imported %s for %s: %d scan paths, %d network shares",
        archive_path.name,
        username,
        len(scan.paths_to_scan),
        len(scan.network_shares),
    )
    return OperationResult.ok(
        f"Imported {archive_path.name} for {username}",
        config=config,
        scan_config=scan,
        manifest_path=manifest.get("manifest_path"),
    )


def import_latest(context: ServiceContext, username: str) -> OperationResult:
    """Import the most recently modified archive the locator can find."""
    candidate = context.locator.find_latest()
    if candidate is None:
        return OperationResult.fail(ErrorKind.NOT_FOUND, "No .omSettings files found in the search paths")

    logger.info("Latest settings archive: %s (%s)", candidate.path, candidate.source)
    result = import_settings(context, Path(candidate.path), username)
    result.data["candidate"] = candidate
    return result


def analyze_settings(context: ServiceContext, archive_path: Path, username: str) -> OperationResult:
    """Classify every path in an archive and write the user's server-path manifest.

    Nothing else is stored in the profile.
    """
    archive_path = Path(archive_path)
    checked = _extract_checked(context, archive_path)
    if not checked.success:
        return checked

    extraction: ExtractionResult = checked.get("extraction")
    try:
        analysis = analyze_paths(extraction.config.to_dict())
    finally:
        context.extractor.cleanup(extraction)

    result = context.manifests.create_manifest(analysis, username)
    result.data["analysis"] = analysis
    return result
