"""Local vs. server path classification.

Only the drive letters C, D, E and F count as local disks. Every other
drive letter, including the usual network mappings (P:, Y:, Z:), and every
UNC path is treated as a server location. This is a fixed policy; it is not
detected from the host.
"""

import re
from dataclasses import dataclass

LOCAL_DRIVES = frozenset({"C", "D", "E", "F"})

_DRIVE_RE = re.compile(r"^([A-Za-z]):")
_LIKELY_DRIVE_RE = re.compile(r"^[A-Za-z]:\\")
_LIKELY_UNC_RE = re.compile(r"^\\\\[^\\]+\\")


class PathKind:
    """Classification outcomes."""

    LOCAL = "local"
    SERVER = "server"
    UNREACHABLE = "unreachable"
    UNCLEAR = "unclear"


@dataclass(frozen=True)
class PathClassification:
    """Result of classifying a path string."""

    kind: str
    drive: str
    category: str = ""
    is_unc: bool = False
    note: str = ""


def classify_path(path: str) -> PathClassification:
    """Classify a path as local, server or unclear. Never raises."""
    if path.startswith("\\\\"):
        return PathClassification(
            kind=PathKind.SERVER,
            drive="network-share",
            category="UNC-network-share",
            is_unc=True,
        )

    match = _DRIVE_RE.match(path)
    if match:
        drive = match.group(1).upper()
        if drive in LOCAL_DRIVES:
            return PathClassification(kind=PathKind.LOCAL, drive=drive, category=f"local-drive-{drive}")
        return PathClassification(kind=PathKind.SERVER, drive=drive, category=f"server-drive-{drive}")

    if path.startswith("/"):
        return PathClassification(
            kind=PathKind.UNCLEAR,
            drive="unix-path",
            note="Unix-style path - context dependent",
        )

    return PathClassification(
        kind=PathKind.UNCLEAR,
        drive="unknown",
        note="Path format not recognized",
    )


def is_likely_path(value: object) -> bool:
    """Heuristic pre-filter: does this string look like a filesystem path?"""
    if not isinstance(value, str) or len(value) < 3:
        return False
    if _LIKELY_DRIVE_RE.match(value) or _LIKELY_UNC_RE.match(value):
        return True
    return value.startswith("/") and len(value) > 3


def is_server_path(path: str | None) -> bool:
    """True for UNC paths and non-local drive letters."""
    if not path:
        return False
    return classify_path(path).kind == PathKind.SERVER


def is_network_share_value(value: str | None) -> bool:
    """True if a manifest value should be mirrored into the network shares."""
    return bool(value) and is_likely_path(value) and is_server_path(value)
