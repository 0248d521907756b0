"""Server/local file mapping records and update notifications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

SYNC_HISTORY_LIMIT = 10


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class MappingStatus:
    """Status values of a file mapping."""

    UNMAPPED = "unmapped"  # Added, never checked or synced
    CURRENT = "current"  # Server not newer than last snapshot
    OUTDATED = "outdated"  # Server newer than last snapshot
    SYNCED = "synced"  # Local copy refreshed from server
    ERROR = "error"
    SERVER_FILE_MISSING = "server-file-missing"

    ALL = (UNMAPPED, CURRENT, OUTDATED, SYNCED, ERROR, SERVER_FILE_MISSING)


@dataclass
class SyncHistoryEntry:
    """One completed sync of a mapping."""

    synced_at: str
    server_modified: str
    server_size: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "syncedAt": self.synced_at,
            "serverModified": self.server_modified,
            "serverSize": self.server_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncHistoryEntry":
        """Create from dictionary."""
        return cls(
            synced_at=data.get("syncedAt", ""),
            server_modified=data.get("serverModified", ""),
            server_size=data.get("serverSize", 0),
        )


@dataclass
class FileMapping:
    """Tracked association between a server file and its local cached copy.

    The JSON shape (camelCase keys) is the on-disk format of the mapping
    table and must stay readable by older tables.
    """

    server_path: str
    file_type: str = "other"
    status: str = MappingStatus.UNMAPPED
    created_at: str = field(default_factory=utc_now_iso)
    last_checked: str | None = None
    last_server_modified: str | None = None
    last_server_size: int | None = None
    last_local_modified: str | None = None
    last_local_size: int | None = None
    last_synced_at: str | None = None
    server_update_detected: str | None = None
    check_count: int = 0
    sync_count: int = 0
    sync_history: list[SyncHistoryEntry] = field(default_factory=list)

    def record_sync(self, entry: SyncHistoryEntry) -> None:
        """Append to the sync history, evicting the oldest beyond the limit."""
        self.sync_history.append(entry)
        if len(self.sync_history) > SYNC_HISTORY_LIMIT:
            self.sync_history = self.sync_history[-SYNC_HISTORY_LIMIT:]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "serverPath": self.server_path,
            "fileType": self.file_type,
            "status": self.status,
            "createdAt": self.created_at,
            "lastChecked": self.last_checked,
            "lastServerModified": self.last_server_modified,
            "lastServerSize": self.last_server_size,
            "lastLocalModified": self.last_local_modified,
            "lastLocalSize": self.last_local_size,
            "lastSyncedAt": self.last_synced_at,
            "serverUpdateDetected": self.server_update_detected,
            "checkCount": self.check_count,
            "syncCount": self.sync_count,
            "syncHistory": [h.to_dict() for h in self.sync_history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileMapping":
        """Create from dictionary."""
        return cls(
            server_path=data["serverPath"],
            file_type=data.get("fileType", "other"),
            status=data.get("status", MappingStatus.UNMAPPED),
            created_at=data.get("createdAt", ""),
            last_checked=data.get("lastChecked"),
            last_server_modified=data.get("lastServerModified"),
            last_server_size=data.get("lastServerSize"),
            last_local_modified=data.get("lastLocalModified"),
            last_local_size=data.get("lastLocalSize"),
            last_synced_at=data.get("lastSyncedAt"),
            server_update_detected=data.get("serverUpdateDetected"),
            check_count=data.get("checkCount") or 0,
            sync_count=data.get("syncCount") or 0,
            sync_history=[SyncHistoryEntry.from_dict(h) for h in data.get("syncHistory") or []],
        )


@dataclass
class UpdateNotification:
    """A newer server version waiting for the user's decision.

    Lifecycle: pending, then either approved+synced or rejected. Terminal
    notifications never change again.
    """

    id: str
    server_path: str
    local_path: str
    server_modified: str
    local_modified: str
    diff_days: int
    server_size: str = ""
    local_size: str = ""
    size_changed: bool = False
    created_at: str = field(default_factory=utc_now_iso)
    type: str = "server-update-available"
    approved: bool = False
    synced: bool = False
    synced_at: str | None = None
    backup_path: str | None = None
    rejected_at: str | None = None
    message: str = ""

    @property
    def is_rejected(self) -> bool:
        return self.rejected_at is not None

    @property
    def is_pending(self) -> bool:
        return not self.approved and not self.synced and not self.is_rejected

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "type": self.type,
            "serverPath": self.server_path,
            "localPath": self.local_path,
            "serverModified": self.server_modified,
            "localModified": self.local_modified,
            "diffDays": self.diff_days,
            "serverSize": self.server_size,
            "localSize": self.local_size,
            "sizeChanged": self.size_changed,
            "approved": self.approved,
            "synced": self.synced,
            "syncedAt": self.synced_at,
            "backupPath": self.backup_path,
            "rejectedAt": self.rejected_at,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UpdateNotification":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            server_path=data["serverPath"],
            local_path=data["localPath"],
            server_modified=data.get("serverModified", ""),
            local_modified=data.get("localModified", ""),
            diff_days=data.get("diffDays", 0),
            server_size=data.get("serverSize", ""),
            local_size=data.get("localSize", ""),
            size_changed=data.get("sizeChanged", False),
            created_at=data.get("createdAt", ""),
            type=data.get("type", "server-update-available"),
            approved=data.get("approved", False),
            synced=data.get("synced", False),
            synced_at=data.get("syncedAt"),
            backup_path=data.get("backupPath"),
            rejected_at=data.get("rejectedAt"),
            message=data.get("message", ""),
        )
