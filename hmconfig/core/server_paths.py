"""Server-path manifests: which configured paths live on network shares."""

import json
import logging
import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..models.mapping import utc_now_iso
from .paths import PathKind, classify_path, is_likely_path
from .profiles import validate_username
from .results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = "omSettings-server-paths.json"
FORMAT_VERSION = "1.0"
MAX_DEPTH = 10


@dataclass
class PathAnalysis:
    """Path-like strings of a structure, bucketed by classification."""

    generated_at: str = field(default_factory=utc_now_iso)
    total_paths: int = 0
    server_paths: list[dict[str, Any]] = field(default_factory=list)
    local_paths: list[dict[str, Any]] = field(default_factory=list)
    unreachable_paths: list[dict[str, Any]] = field(default_factory=list)
    unclear_paths: list[dict[str, Any]] = field(default_factory=list)

    def add(self, value: str) -> None:
        self.total_paths += 1
        result = classify_path(value)
        if result.kind == PathKind.SERVER:
            self.server_paths.append(
                {"path": value, "drive": result.drive, "isUNC": result.is_unc, "category": result.category}
            )
        elif result.kind == PathKind.LOCAL:
            self.local_paths.append({"path": value, "drive": result.drive, "category": result.category})
        elif result.kind == PathKind.UNREACHABLE:
            self.unreachable_paths.append({"path": value, "reason": result.note})
        else:
            self.unclear_paths.append({"path": value, "note": result.note})


def analyze_paths(data: Any) -> PathAnalysis:
    """Classify every path-like string in a nested dict/list structure."""
    analysis = PathAnalysis()

    def visit(node: Any, depth: int) -> None:
        if depth > MAX_DEPTH:
            return
        if isinstance(node, str):
            if is_likely_path(node):
                analysis.add(node)
        elif isinstance(node, list):
            for item in node:
                visit(item, depth + 1)
        elif isinstance(node, dict):
            for value in node.values():
                visit(value, depth + 1)

    visit(data, 0)
    return analysis


def _distinct(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class ServerPathsManifestStore:
    """Writes and reads ``<username>-omSettings-server-paths.json`` files."""

    def __init__(self, manifests_dir: Path) -> None:
        self.manifests_dir = Path(manifests_dir)

    def manifest_path(self, username: str) -> Path:
        return self.manifests_dir / f"{validate_username(username)}-{MANIFEST_SUFFIX}"

    def create_manifest(self, analysis: PathAnalysis, username: str = "all-users") -> OperationResult:
        """Write the manifest for a user, replacing any previous one."""
        manifest = {
            "formatVersion": FORMAT_VERSION,
            "description": "Server paths manifest - lists which omSettings paths must be accessed from server",
            "generatedAt": utc_now_iso(),
            "generatedFor": username,
            "generatedBy": os.getenv("USERNAME") or os.getenv("USER") or "unknown",
            "machineHostname": socket.gethostname(),
            "summary": {
                "totalPaths": analysis.total_paths,
                "serverPaths": len(analysis.server_paths),
                "localPaths": len(analysis.local_paths),
                "unreachablePaths": len(analysis.unreachable_paths),
                "unclearPaths": len(analysis.unclear_paths),
            },
            "serverPaths": {
                "count": len(analysis.server_paths),
                "paths": analysis.server_paths,
                "serverDrivesUsed": _distinct([p["drive"] for p in analysis.server_paths]),
            },
            "localPaths": {
                "count": len(analysis.local_paths),
                "paths": analysis.local_paths,
                "localDrivesUsed": _distinct([p["drive"] for p in analysis.local_paths]),
            },
            "unreachablePaths": {
                "count": len(analysis.unreachable_paths),
                "paths": analysis.unreachable_paths,
            },
            "unclearPaths": {
                "count": len(analysis.unclear_paths),
                "paths": analysis.unclear_paths,
            },
        }

        try:
            path = self.manifest_path(username)
        except ValueError as e:
            return OperationResult.fail(ErrorKind.INVALID_INPUT, str(e))

        try:
            self.manifests_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2)
                f.write("\n")
        except OSError as e:
            logger.warning("Could not write server-path manifest %s: %s", path, e)
            return OperationResult.fail(ErrorKind.IO_ERROR, f"Failed to create manifest: {e}")

        logger.info("Server-path manifest for %s: %d server paths", username, len(analysis.server_paths))
        return OperationResult.ok(
            f"Manifest created: {len(analysis.server_paths)} server paths identified",
            manifest_path=path,
            manifest=manifest,
        )

    def load_manifest(self, username: str = "all-users") -> dict[str, Any] | None:
        path = self.manifest_path(username)
        if not path.is_file():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def get_server_paths(self, username: str = "all-users") -> list[dict[str, Any]]:
        manifest = self.load_manifest(username)
        if manifest is None:
            return []
        return manifest.get("serverPaths", {}).get("paths", [])

    def list_manifests(self) -> list[Path]:
        if not self.manifests_dir.is_dir():
            return []
        return sorted(self.manifests_dir.glob(f"*-{MANIFEST_SUFFIX}"))
