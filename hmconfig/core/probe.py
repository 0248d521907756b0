"""Filesystem probes and the modification-time comparison primitive.

Both the mapping registry and the update monitor decide staleness through
``compare_modification``. Server paths live on network shares that can hang,
so probes of them run in a worker thread bounded by a timeout; a timeout is
reported as an unreachable file, never raised.
"""

import logging
import math
import os
import stat
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

MS_PER_DAY = 1000 * 60 * 60 * 24


class ProbeState:
    """Outcome of probing a file."""

    OK = "ok"
    MISSING = "missing"
    UNREACHABLE = "unreachable"


class ProbeTimeoutError(TimeoutError):
    """A filesystem probe did not answer within its timeout."""

    pass


def format_bytes(size: int | None) -> str:
    """Human-readable size, e.g. ``1.5 KB``."""
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    exponent = min(int(math.log(size, 1024)), len(units) - 1)
    return f"{round(size / 1024 ** exponent, 2):g} {units[exponent]}"


def to_iso(moment: datetime) -> str:
    """ISO-8601 with millisecond precision, the mapping table's format."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO timestamp as written by this tool or older tables (``Z`` suffix)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class FileSnapshot:
    """Modification time and size of a file at one moment.

    Times are truncated to milliseconds so snapshots survive a round trip
    through the JSON mapping table unchanged.
    """

    modified: datetime
    size: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileSnapshot":
        ms = st.st_mtime_ns // 1_000_000
        modified = datetime.fromtimestamp(ms // 1000, tz=timezone.utc).replace(
            microsecond=(ms % 1000) * 1000
        )
        return cls(modified=modified, size=st.st_size)

    @classmethod
    def from_iso(cls, modified: str | None, size: int | None) -> "FileSnapshot | None":
        parsed = parse_iso(modified)
        if parsed is None:
            return None
        return cls(modified=parsed, size=size or 0)

    @property
    def modified_iso(self) -> str:
        return to_iso(self.modified)


@dataclass
class Probe:
    """Result of probing one path."""

    path: str
    state: str
    snapshot: FileSnapshot | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.state == ProbeState.OK


def stat_with_timeout(path: str, timeout: float | None = None) -> os.stat_result:
    """``os.stat`` that gives up after ``timeout`` seconds.

    Raises:
        ProbeTimeoutError: If the stat did not return in time
        OSError: Whatever ``os.stat`` raised
    """
    if timeout is None:
        return os.stat(path)

    outcome: dict[str, Any] = {}

    def worker() -> None:
        try:
            outcome["stat"] = os.stat(path)
        except OSError as e:
            outcome["error"] = e

    thread = threading.Thread(target=worker, name=f"probe:{path}", daemon=True)
    thread.start()
    thread.join(timeout)

    if thread.is_alive():
        raise ProbeTimeoutError(f"No answer from {path} within {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["stat"]


def probe_file(path: str, timeout: float | None = None) -> Probe:
    """Snapshot a regular file, classifying failures instead of raising."""
    try:
        st = stat_with_timeout(path, timeout)
    except ProbeTimeoutError as e:
        logger.warning("Probe timed out: %s", e)
        return Probe(path=path, state=ProbeState.UNREACHABLE, error=str(e))
    except (FileNotFoundError, NotADirectoryError):
        return Probe(path=path, state=ProbeState.MISSING, error=f"File not found: {path}")
    except OSError as e:
        logger.warning("Cannot stat %s: %s", path, e)
        return Probe(path=path, state=ProbeState.UNREACHABLE, error=str(e))

    if not stat.S_ISREG(st.st_mode):
        return Probe(path=path, state=ProbeState.MISSING, error=f"Not a regular file: {path}")

    return Probe(path=path, state=ProbeState.OK, snapshot=FileSnapshot.from_stat(st))


@dataclass
class ComparisonResult:
    """Server file compared with a previously known snapshot."""

    server_path: str
    server_state: str
    known: FileSnapshot | None
    server: FileSnapshot | None = None
    has_update: bool = False
    diff_ms: int = 0  # server minus known; positive when the server is newer
    diff_days: int = 0
    size_changed: bool = False
    error: str = ""

    @property
    def server_available(self) -> bool:
        return self.server_state == ProbeState.OK

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "serverPath": self.server_path,
            "serverState": self.server_state,
            "hasUpdate": self.has_update,
            "serverModified": self.server.modified_iso if self.server else None,
            "lastKnownModified": self.known.modified_iso if self.known else None,
            "diffMs": self.diff_ms,
            "diffDays": self.diff_days,
            "serverSize": format_bytes(self.server.size) if self.server else None,
            "lastKnownSize": format_bytes(self.known.size) if self.known else None,
            "sizeChanged": self.size_changed,
            "error": self.error,
        }


def compare_modification(
    server_path: str,
    known: FileSnapshot | None,
    timeout: float | None = None,
) -> ComparisonResult:
    """Compare the server file's current state with a known snapshot.

    An update is available when the server file is strictly newer than the
    snapshot. Without a snapshot any existing server file counts as newer.
    """
    probe = probe_file(server_path, timeout)
    server = probe.snapshot
    if not probe.ok or server is None:
        return ComparisonResult(
            server_path=server_path,
            server_state=probe.state,
            known=known,
            error=probe.error,
        )

    if known is None:
        return ComparisonResult(
            server_path=server_path,
            server_state=ProbeState.OK,
            known=None,
            server=server,
            has_update=True,
            size_changed=True,
        )

    diff_ms = int((server.modified - known.modified).total_seconds() * 1000)
    return ComparisonResult(
        server_path=server_path,
        server_state=ProbeState.OK,
        known=known,
        server=server,
        has_update=diff_ms > 0,
        diff_ms=diff_ms,
        diff_days=int(abs(diff_ms) / MS_PER_DAY + 0.5),
        size_changed=server.size != known.size,
    )
