"""Tests for filesystem probes and the modification comparison."""

import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from hmconfig.core.probe import (
    FileSnapshot,
    ProbeState,
    ProbeTimeoutError,
    compare_modification,
    format_bytes,
    parse_iso,
    probe_file,
    stat_with_timeout,
)

T0 = 1_700_000_000


def write_file(path: Path, content: str, mtime: float) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


class TestFormatBytes:
    """Tests for format_bytes."""

    def test_values(self) -> None:
        assert format_bytes(0) == "0 Bytes"
        assert format_bytes(None) == "0 Bytes"
        assert format_bytes(512) == "512 Bytes"
        assert format_bytes(1024) == "1 KB"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(5 * 1024 * 1024) == "5 MB"


class TestTimestamps:
    """Tests for ISO parsing and snapshots."""

    def test_parse_z_suffix(self) -> None:
        parsed = parse_iso("2023-11-14T22:13:20.000Z")

        assert parsed == datetime.fromtimestamp(T0, tz=timezone.utc)

    def test_parse_empty(self) -> None:
        assert parse_iso(None) is None
        assert parse_iso("") is None

    def test_snapshot_survives_iso_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_file(Path(tmpdir) / "f.txt", "abc", T0 + 0.123456)
            snapshot = FileSnapshot.from_stat(os.stat(path))

            again = FileSnapshot.from_iso(snapshot.modified_iso, snapshot.size)

            assert again == snapshot
            assert snapshot.modified_iso.endswith(".123+00:00")


class TestProbeFile:
    """Tests for probe_file and stat_with_timeout."""

    def test_existing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_file(Path(tmpdir) / "f.txt", "abcd", T0)

            probe = probe_file(str(path), timeout=5)

            assert probe.ok
            assert probe.snapshot is not None
            assert probe.snapshot.size == 4

    def test_missing_file(self) -> None:
        probe = probe_file("/nonexistent/file.cfg", timeout=5)

        assert probe.state == ProbeState.MISSING

    def test_directory_is_not_a_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert probe_file(tmpdir).state == ProbeState.MISSING

    def test_stat_times_out(self) -> None:
        release = threading.Event()

        def hanging_stat(path: str) -> os.stat_result:
            release.wait(5)
            raise FileNotFoundError(path)

        try:
            with patch("hmconfig.core.probe.os.stat", side_effect=hanging_stat):
                with pytest.raises(ProbeTimeoutError):
                    stat_with_timeout("/slow/share/file.cfg", timeout=0.05)
        finally:
            release.set()

    def test_timeout_reported_as_unreachable(self) -> None:
        with patch("hmconfig.core.probe.stat_with_timeout", side_effect=ProbeTimeoutError("slow")):
            probe = probe_file("/slow/share/file.cfg", timeout=0.05)

        assert probe.state == ProbeState.UNREACHABLE
        assert not probe.ok


class TestCompareModification:
    """Tests for compare_modification."""

    def test_server_newer(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            server = write_file(Path(tmpdir) / "server.cfg", "new content", T0 + 3 * 86400)
            known = FileSnapshot(modified=datetime.fromtimestamp(T0, tz=timezone.utc), size=3)

            result = compare_modification(str(server), known, timeout=5)

            assert result.server_available
            assert result.has_update
            assert result.diff_ms == 3 * 86400 * 1000
            assert result.diff_days == 3
            assert result.size_changed

    def test_server_not_newer(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            server = write_file(Path(tmpdir) / "server.cfg", "abc", T0)
            known = FileSnapshot(modified=datetime.fromtimestamp(T0 + 60, tz=timezone.utc), size=3)

            result = compare_modification(str(server), known)

            assert not result.has_update
            assert result.diff_ms == -60_000
            assert not result.size_changed

    def test_equal_times_are_not_an_update(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            server = write_file(Path(tmpdir) / "server.cfg", "abc", T0)
            known = FileSnapshot.from_stat(os.stat(server))

            assert not compare_modification(str(server), known).has_update

    def test_missing_server(self) -> None:
        known = FileSnapshot(modified=datetime.fromtimestamp(T0, tz=timezone.utc), size=3)

        result = compare_modification("/nonexistent/server.cfg", known)

        assert not result.server_available
        assert result.server_state == ProbeState.MISSING
        assert not result.has_update

    def test_to_dict(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            server = write_file(Path(tmpdir) / "server.cfg", "x" * 2048, T0 + 86400)
            known = FileSnapshot(modified=datetime.fromtimestamp(T0, tz=timezone.utc), size=1024)

            data = compare_modification(str(server), known).to_dict()

            assert data["hasUpdate"] is True
            assert data["serverSize"] == "2 KB"
            assert data["lastKnownSize"] == "1 KB"
            assert data["diffDays"] == 1
