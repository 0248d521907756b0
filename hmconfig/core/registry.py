"""Persistent registry of server file to local cache mappings."""

import json
import logging
import os
import tempfile
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..models.mapping import FileMapping, MappingStatus, SyncHistoryEntry, utc_now_iso
from .paths import PathKind, classify_path
from .probe import FileSnapshot, ProbeState, compare_modification, probe_file
from .results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)


class FileCacheRegistry:
    """Mapping table keyed by local path, written through to a JSON file.

    Every successful mutation rewrites the whole table (temp file plus
    atomic rename), so the file on disk always reflects the last completed
    call. That is a full-table rewrite per check or sync, fine for the
    tens to low hundreds of mappings it is meant for.

    Operations on the same local path are serialised; mutations are applied
    to a copy of the entry and only become visible once persisted.
    """

    def __init__(self, mapping_file: Path, probe_timeout: float | None = None) -> None:
        """Initialize registry.

        Args:
            mapping_file: JSON file holding the table
            probe_timeout: Seconds allowed for each server-file stat
        """
        self.mapping_file = Path(mapping_file)
        self.probe_timeout = probe_timeout
        self._mappings: dict[str, FileMapping] | None = None
        self._table_lock = threading.RLock()
        self._key_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._key_locks_guard = threading.Lock()

    @property
    def mappings(self) -> dict[str, FileMapping]:
        """Get or load the mapping table."""
        with self._table_lock:
            if self._mappings is None:
                self._mappings = self._load()
            return self._mappings

    def _load(self) -> dict[str, FileMapping]:
        """Load the table from disk or start an empty one."""
        if not self.mapping_file.exists():
            return {}
        with open(self.mapping_file, encoding="utf-8") as f:
            data = json.load(f)
        mappings = {local: FileMapping.from_dict(entry) for local, entry in data.items()}
        logger.debug("Loaded %d file mappings from %s", len(mappings), self.mapping_file)
        return mappings

    def _write(self, table: dict[str, FileMapping]) -> None:
        self.mapping_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.mapping_file.name}.", suffix=".tmp", dir=self.mapping_file.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({local: m.to_dict() for local, m in table.items()}, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.mapping_file)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _commit(self, local_path: str, mapping: FileMapping | None) -> None:
        """Persist the table with one entry replaced (or removed when None)."""
        with self._table_lock:
            table = dict(self.mappings)
            if mapping is None:
                table.pop(local_path, None)
            else:
                table[local_path] = mapping
            self._write(table)
            self._mappings = table

    @contextmanager
    def _locked(self, local_path: str) -> Iterator[None]:
        with self._key_locks_guard:
            lock = self._key_locks.get(local_path)
            if lock is None:
                lock = self._key_locks[local_path] = threading.Lock()
        with lock:
            yield

    def _copy_of(self, local_path: str) -> FileMapping | None:
        with self._table_lock:
            current = self.mappings.get(local_path)
        return FileMapping.from_dict(current.to_dict()) if current else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add_mapping(self, server_path: str, local_path: str, file_type: str = "other") -> OperationResult:
        """Start tracking a server file, replacing any mapping for local_path.

        Args:
            server_path: File on a network share
            local_path: Where the cached copy lives (the table key)
            file_type: Free-form type tag, e.g. "config" or "tool-db"

        Returns:
            OperationResult with the new mapping under "mapping"
        """
        if classify_path(server_path).kind == PathKind.LOCAL:
            return OperationResult.fail(ErrorKind.NOT_A_SERVER_PATH, f"Not a server path: {server_path}")

        with self._locked(local_path):
            probe = probe_file(server_path, self.probe_timeout)
            if not probe.ok or probe.snapshot is None:
                return OperationResult.fail(
                    ErrorKind.SERVER_FILE_NOT_FOUND, f"Server file not found: {server_path}"
                )

            mapping = FileMapping(
                server_path=server_path,
                file_type=file_type,
                status=MappingStatus.UNMAPPED,
                last_server_modified=probe.snapshot.modified_iso,
                last_server_size=probe.snapshot.size,
            )
            try:
                self._commit(local_path, mapping)
            except OSError as e:
                logger.warning("Could not persist mapping for %s: %s", local_path, e)
                return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not save mapping: {e}")

        logger.info("Mapped %s -> %s", server_path, local_path)
        return OperationResult.ok("Mapping added", local_path=local_path, mapping=mapping)

    def check_for_update(self, local_path: str) -> OperationResult:
        """Compare the server file against the mapping's last snapshot.

        Never touches the local cached copy. A missing or unreachable server
        file is reported as status ``server-file-missing``, not as a failure.

        Returns:
            OperationResult with "has_update", "status", "mapping" and
            "comparison" (a ComparisonResult)
        """
        with self._locked(local_path):
            mapping = self._copy_of(local_path)
            if mapping is None:
                return OperationResult.fail(ErrorKind.MAPPING_NOT_FOUND, f"No mapping found for: {local_path}")

            known = FileSnapshot.from_iso(mapping.last_server_modified, mapping.last_server_size)
            comparison = compare_modification(mapping.server_path, known, self.probe_timeout)
            now = utc_now_iso()
            mapping.last_checked = now

            if not comparison.server_available:
                mapping.status = MappingStatus.SERVER_FILE_MISSING
            else:
                mapping.check_count += 1
                if comparison.has_update:
                    mapping.status = MappingStatus.OUTDATED
                    mapping.server_update_detected = now
                else:
                    mapping.status = MappingStatus.CURRENT

            try:
                self._commit(local_path, mapping)
            except OSError as e:
                logger.warning("Could not persist check of %s: %s", local_path, e)
                return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not save mapping: {e}")

        if comparison.server_state == ProbeState.OK:
            logger.debug("Checked %s: %s", local_path, mapping.status)
        else:
            logger.warning("Server file missing for %s: %s", local_path, comparison.error)

        return OperationResult.ok(
            comparison.error or mapping.status,
            local_path=local_path,
            has_update=comparison.has_update,
            status=mapping.status,
            mapping=mapping,
            comparison=comparison,
        )

    def mark_as_synced(self, local_path: str) -> OperationResult:
        """Record that the local copy now matches the server file.

        Re-snapshots the server file, bumps the sync counter and appends to
        the bounded sync history.
        """
        with self._locked(local_path):
            mapping = self._copy_of(local_path)
            if mapping is None:
                return OperationResult.fail(ErrorKind.MAPPING_NOT_FOUND, f"No mapping found: {local_path}")

            probe = probe_file(mapping.server_path, self.probe_timeout)
            if not probe.ok or probe.snapshot is None:
                return OperationResult.fail(
                    ErrorKind.SERVER_FILE_NOT_FOUND, f"Server file missing: {mapping.server_path}"
                )

            now = utc_now_iso()
            mapping.status = MappingStatus.SYNCED
            mapping.last_server_modified = probe.snapshot.modified_iso
            mapping.last_server_size = probe.snapshot.size
            mapping.last_synced_at = now
            mapping.sync_count += 1
            mapping.record_sync(
                SyncHistoryEntry(
                    synced_at=now,
                    server_modified=probe.snapshot.modified_iso,
                    server_size=probe.snapshot.size,
                )
            )

            local = probe_file(local_path)
            if local.ok and local.snapshot is not None:
                mapping.last_local_modified = local.snapshot.modified_iso
                mapping.last_local_size = local.snapshot.size

            try:
                self._commit(local_path, mapping)
            except OSError as e:
                logger.warning("Could not persist sync of %s: %s", local_path, e)
                return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not save mapping: {e}")

        logger.info("Marked %s as synced (%d syncs)", local_path, mapping.sync_count)
        return OperationResult.ok("Marked as synced", local_path=local_path, mapping=mapping)

    def remove(self, local_path: str) -> OperationResult:
        """Stop tracking a local path. The cached file itself is left alone."""
        with self._locked(local_path):
            if self.get_mapping(local_path) is None:
                return OperationResult.fail(ErrorKind.MAPPING_NOT_FOUND, f"Mapping not found: {local_path}")
            try:
                self._commit(local_path, None)
            except OSError as e:
                return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not save mapping table: {e}")

        logger.info("Removed mapping for %s", local_path)
        return OperationResult.ok("Mapping removed", local_path=local_path)

    def get_mapping(self, local_path: str) -> FileMapping | None:
        with self._table_lock:
            return self.mappings.get(local_path)

    def get_all(self) -> dict[str, FileMapping]:
        with self._table_lock:
            return dict(self.mappings)

    def get_by_status(self, status: str) -> dict[str, FileMapping]:
        with self._table_lock:
            return {local: m for local, m in self.mappings.items() if m.status == status}

    def find_by_server_path(self, server_path: str) -> list[str]:
        """Local paths whose mapping points at server_path."""
        with self._table_lock:
            return [local for local, m in self.mappings.items() if m.server_path == server_path]

    def get_statistics(self) -> dict[str, Any]:
        """Summary counts over the whole table."""
        with self._table_lock:
            mappings = list(self.mappings.values())

        by_status = {status: 0 for status in MappingStatus.ALL}
        for mapping in mappings:
            by_status[mapping.status] = by_status.get(mapping.status, 0) + 1

        checked = [m.last_checked for m in mappings if m.last_checked]
        return {
            "totalMappings": len(mappings),
            "byStatus": by_status,
            "totalChecks": sum(m.check_count for m in mappings),
            "totalSyncs": sum(m.sync_count for m in mappings),
            "lastChecked": max(checked) if checked else None,
        }
