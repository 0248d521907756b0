"""Tests for path analysis and server-path manifests."""

import json
import tempfile
from pathlib import Path

from hmconfig.core.results import ErrorKind
from hmconfig.core.server_paths import PathAnalysis, ServerPathsManifestStore, analyze_paths

DATA = {
    "machines": [{"name": "DMU50", "mdfPath": "P:\\machines\\dmu50.mdf"}],
    "databases": {"tool": [{"path": "\\\\srv\\tools\\main.db"}, {"path": "C:\\db\\local.db"}]},
    "misc": ["/opt/hypermill/cfg", "Z:\\shared\\x", "not a path", 42, None],
}


class TestAnalyzePaths:
    """Tests for analyze_paths."""

    def test_buckets(self) -> None:
        analysis = analyze_paths(DATA)

        assert analysis.total_paths == 5
        assert [p["path"] for p in analysis.server_paths] == [
            "P:\\machines\\dmu50.mdf",
            "\\\\srv\\tools\\main.db",
            "Z:\\shared\\x",
        ]
        assert analysis.server_paths[1]["isUNC"] is True
        assert [p["drive"] for p in analysis.local_paths] == ["C"]
        assert analysis.unclear_paths == [{"path": "/opt/hypermill/cfg", "note": "Unix-style path - context dependent"}]

    def test_depth_limit(self) -> None:
        nested: object = "P:\\deep"
        for _ in range(12):
            nested = [nested]

        assert analyze_paths(nested).total_paths == 0
        assert analyze_paths([[["P:\\shallow"]]]).total_paths == 1


class TestServerPathsManifestStore:
    """Tests for ServerPathsManifestStore."""

    def test_create_and_load(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ServerPathsManifestStore(Path(tmpdir) / "manifests")

            result = store.create_manifest(analyze_paths(DATA), "alice")

            assert result.success
            path = result.get("manifest_path")
            assert path.name == "alice-omSettings-server-paths.json"
            with open(path) as f:
                manifest = json.load(f)
            assert manifest["generatedFor"] == "alice"
            assert manifest["summary"]["serverPaths"] == 3
            assert manifest["serverPaths"]["serverDrivesUsed"] == ["P", "network-share", "Z"]
            assert manifest["localPaths"]["localDrivesUsed"] == ["C"]
            assert store.load_manifest("alice") == manifest
            assert len(store.get_server_paths("alice")) == 3
            assert store.list_manifests() == [path]

    def test_missing_manifest(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ServerPathsManifestStore(Path(tmpdir))

            assert store.load_manifest() is None
            assert store.get_server_paths() == []

    def test_invalid_username(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ServerPathsManifestStore(Path(tmpdir))

            result = store.create_manifest(PathAnalysis(), "a/b")

            assert result.error_kind == ErrorKind.INVALID_INPUT
