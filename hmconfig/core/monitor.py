"""Server update detection and the user-approved sync workflow."""

import logging
import os
import shutil
import tempfile
import threading
import uuid
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..models.mapping import UpdateNotification, utc_now_iso
from .paths import PathKind, classify_path
from .probe import compare_modification, format_bytes, probe_file
from .registry import FileCacheRegistry
from .results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)


def _copy_atomically(source: str, destination: Path) -> None:
    """Copy source over destination via a temp file and rename.

    The destination is either left as it was or fully replaced.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    os.close(fd)
    try:
        shutil.copy2(source, tmp_name)
        os.replace(tmp_name, destination)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class UpdateMonitor:
    """Detects newer server versions of cached files and applies them on approval.

    Notifications live in memory for the lifetime of the monitor. Each one
    is pending until approved (the local copy is backed up, then replaced)
    or rejected (nothing on disk changes). Terminal notifications are never
    modified again; a later check raises a fresh notification instead.
    """

    def __init__(
        self,
        registry: FileCacheRegistry,
        current_dir: Path,
        backups_dir: Path,
        probe_timeout: float | None = None,
    ) -> None:
        """Initialize monitor.

        Args:
            registry: Mapping table updated after approved syncs
            current_dir: Where copies of server files are cached
            backups_dir: Where local files are backed up before an overwrite
            probe_timeout: Seconds allowed for each server-file stat
        """
        self.registry = registry
        self.current_dir = Path(current_dir)
        self.backups_dir = Path(backups_dir)
        self.probe_timeout = probe_timeout
        self._notifications: list[UpdateNotification] = []
        self._queue_lock = threading.Lock()
        self._path_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def _path_lock(self, local_path: str) -> threading.Lock:
        with self._queue_lock:
            lock = self._path_locks.get(local_path)
            if lock is None:
                lock = self._path_locks[local_path] = threading.Lock()
            return lock

    def check_for_updates(self, server_path: str, local_path: str) -> OperationResult:
        """Compare a server file directly with a local file.

        Returns:
            OperationResult with "has_update" and "comparison"; fails when the
            local file does not exist
        """
        local = probe_file(local_path)
        if not local.ok:
            return OperationResult.fail(ErrorKind.NOT_FOUND, f"Local cache file not found: {local_path}")

        comparison = compare_modification(server_path, local.snapshot, self.probe_timeout)
        if not comparison.server_available:
            return OperationResult.ok(
                comparison.error,
                has_update=False,
                comparison=comparison,
            )
        return OperationResult.ok(
            "Server file is newer" if comparison.has_update else "Local copy is up to date",
            has_update=comparison.has_update,
            comparison=comparison,
        )

    def create_update_notification(self, server_path: str, local_path: str) -> OperationResult:
        """Queue a notification if the server file is newer than the local copy."""
        check = self.check_for_updates(server_path, local_path)
        if not check.success:
            return check
        comparison = check.get("comparison")
        if not check.get("has_update"):
            return OperationResult.fail(
                ErrorKind.NO_UPDATE_AVAILABLE,
                comparison.error or "Server file is not newer than local cache",
            )

        notification = UpdateNotification(
            id=f"update-{uuid.uuid4().hex[:12]}",
            server_path=server_path,
            local_path=local_path,
            server_modified=comparison.server.modified_iso,
            local_modified=comparison.known.modified_iso,
            diff_days=comparison.diff_days,
            server_size=format_bytes(comparison.server.size),
            local_size=format_bytes(comparison.known.size),
            size_changed=comparison.size_changed,
            message=f"Server file is {comparison.diff_days} day(s) newer",
        )

        with self._queue_lock:
            self._notifications.append(notification)

        logger.info("Update available for %s (%s)", local_path, notification.id)
        return OperationResult.ok("Update notification created", notification=notification)

    def get_pending_updates(self) -> list[UpdateNotification]:
        with self._queue_lock:
            return [n for n in self._notifications if n.is_pending]

    def get_notification(self, notification_id: str) -> UpdateNotification | None:
        with self._queue_lock:
            for notification in self._notifications:
                if notification.id == notification_id:
                    return notification
        return None

    def approve_update(self, notification_id: str) -> OperationResult:
        """Back up the local file, then replace it with the server version.

        If the server file has gone, the backup fails or the copy fails, the
        local file keeps its previous bytes and the notification stays
        pending.
        """
        notification = self.get_notification(notification_id)
        if notification is None:
            return OperationResult.fail(
                ErrorKind.NOTIFICATION_NOT_FOUND, f"Notification not found: {notification_id}"
            )

        with self._path_lock(notification.local_path):
            if not notification.is_pending:
                return OperationResult.fail(
                    ErrorKind.INVALID_STATE, f"Notification {notification_id} is no longer pending"
                )

            server = probe_file(notification.server_path, self.probe_timeout)
            if not server.ok:
                return OperationResult.fail(
                    ErrorKind.SERVER_FILE_NOT_FOUND,
                    f"Server file no longer exists: {notification.server_path}",
                )

            local_path = Path(notification.local_path)
            if not local_path.is_file():
                return OperationResult.fail(
                    ErrorKind.NOT_FOUND, f"Local file not found: {notification.local_path}"
                )

            try:
                backup_path = self._backup_local(local_path)
            except OSError as e:
                logger.warning("Backup of %s failed, update not applied: %s", local_path, e)
                return OperationResult.fail(ErrorKind.IO_ERROR, f"Backup failed: {e}")

            try:
                _copy_atomically(notification.server_path, local_path)
            except OSError as e:
                logger.warning("Copy from %s failed: %s", notification.server_path, e)
                return OperationResult.fail(
                    ErrorKind.IO_ERROR, f"Failed to sync update: {e}", backup_path=str(backup_path)
                )

            notification.approved = True
            notification.synced = True
            notification.synced_at = utc_now_iso()
            notification.backup_path = str(backup_path)

        message = "Updated local cache from server"
        registry_synced = None  # None when the local path is not tracked
        registry_error = ""
        if self.registry.get_mapping(notification.local_path) is not None:
            synced = self.registry.mark_as_synced(notification.local_path)
            registry_synced = synced.success
            if not synced.success:
                registry_error = synced.message
                message += f", but the mapping was not updated: {synced.message}"
                logger.warning("Registry not updated for %s: %s", notification.local_path, synced.message)

        logger.info("Updated %s from server (backup %s)", local_path, backup_path)
        return OperationResult.ok(
            message,
            notification=notification,
            backup_path=str(backup_path),
            registry_synced=registry_synced,
            registry_error=registry_error,
        )

    def reject_update(self, notification_id: str) -> OperationResult:
        """Keep the local copy. No filesystem side effects."""
        notification = self.get_notification(notification_id)
        if notification is None:
            return OperationResult.fail(
                ErrorKind.NOTIFICATION_NOT_FOUND, f"Notification not found: {notification_id}"
            )

        with self._path_lock(notification.local_path):
            if not notification.is_pending:
                return OperationResult.fail(
                    ErrorKind.INVALID_STATE, f"Notification {notification_id} is no longer pending"
                )
            notification.rejected_at = utc_now_iso()

        logger.info("Rejected update %s for %s", notification_id, notification.local_path)
        return OperationResult.ok("Update rejected, keeping local cache", notification=notification)

    def _backup_local(self, local_path: Path) -> Path:
        """Copy the local file into the backups directory with a timestamp."""
        self.backups_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self.backups_dir / f"{local_path.stem}_{timestamp}{local_path.suffix}"
        shutil.copy2(local_path, backup_path)
        return backup_path

    def copy_from_server_to_local(
        self,
        server_path: str,
        filename: str | None = None,
        file_type: str = "other",
    ) -> OperationResult:
        """Cache a server file under current_dir and start tracking it.

        Args:
            server_path: File on a network share
            filename: Name to cache under (defaults to the server file's name)
            file_type: Type tag stored with the mapping

        Returns:
            OperationResult with "local_path" of the timestamped copy
        """
        if classify_path(server_path).kind == PathKind.LOCAL:
            return OperationResult.fail(ErrorKind.NOT_A_SERVER_PATH, f"Not a server path: {server_path}")

        server = probe_file(server_path, self.probe_timeout)
        if not server.ok:
            return OperationResult.fail(ErrorKind.SERVER_FILE_NOT_FOUND, f"Server file not found: {server_path}")

        name = Path(filename or server_path.replace("\\", "/").rsplit("/", 1)[-1])
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        local_path = self.current_dir / f"{name.stem}_{timestamp}{name.suffix}"

        try:
            _copy_atomically(server_path, local_path)
        except OSError as e:
            logger.warning("Failed to cache %s: %s", server_path, e)
            return OperationResult.fail(ErrorKind.IO_ERROR, f"Failed to cache server file: {e}")

        added = self.registry.add_mapping(server_path, str(local_path), file_type)
        if added.success:
            added = self.registry.mark_as_synced(str(local_path))
        if not added.success:
            logger.warning("Cached %s but could not track it: %s", server_path, added.message)

        logger.info("Cached %s as %s", server_path, local_path)
        return OperationResult.ok(
            "Copied from server to local cache",
            local_path=str(local_path),
            size=format_bytes(local_path.stat().st_size),
            tracked=added.success,
        )

    def get_tracking_info(self) -> dict[str, Any]:
        """Summary of the cache directory and notification queue."""
        cached = [p for p in self.current_dir.iterdir() if p.is_file()] if self.current_dir.exists() else []
        with self._queue_lock:
            total = len(self._notifications)
        return {
            "cacheDir": str(self.current_dir),
            "totalCachedFiles": len(cached),
            "trackedMappings": len(self.registry.get_all()),
            "pendingUpdates": len(self.get_pending_updates()),
            "totalNotifications": total,
        }
