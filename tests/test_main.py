"""Tests for the command line interface."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from hmconfig.main import main

T0 = 1_700_000_000


def write_config(tmpdir: str) -> str:
    config_path = Path(tmpdir) / "hmconfig.yaml"
    config_path.write_text(f"data_dir: {Path(tmpdir) / 'data'}\nsearch_paths:\n  - {tmpdir}\n")
    return str(config_path)


def run(argv: list[str]) -> int:
    with patch.dict(os.environ, {}, clear=True), patch("hmconfig.models.settings.load_dotenv"):
        return main(argv)


class TestMain:
    """Tests for main()."""

    def test_no_command_prints_help(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert run(["--config", write_config(tmpdir)]) == 1

    def test_mapping_stats(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert run(["--config", write_config(tmpdir), "mapping", "stats"]) == 0
            assert (Path(tmpdir) / "data" / "metadata").is_dir()

    def test_mapping_add_check_sync(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = write_config(tmpdir)
            server = Path(tmpdir) / "share" / "a.cfg"
            server.parent.mkdir()
            server.write_text("v1")
            local = str(Path(tmpdir) / "local" / "a.cfg")

            assert run(["--config", config, "mapping", "add", str(server), local, "--type", "config"]) == 0
            os.utime(server, (T0, T0))
            assert run(["--config", config, "mapping", "check"]) == 0
            assert run(["--config", config, "mapping", "sync", local]) == 0
            assert run(["--config", config, "mapping", "list", "--status", "synced"]) == 0
            assert run(["--config", config, "mapping", "remove", local]) == 0

    def test_failed_operation_exits_1(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = write_config(tmpdir)

            assert run(["--config", config, "mapping", "add", "C:\\local\\a.cfg", "/tmp/a.cfg"]) == 1
            assert run(["--config", config, "mapping", "sync", "/nowhere"]) == 1

    def test_updates_review_approve_all(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = write_config(tmpdir)
            server = Path(tmpdir) / "share" / "a.cfg"
            local = Path(tmpdir) / "local" / "a.cfg"
            server.parent.mkdir()
            local.parent.mkdir()
            server.write_text("server v2")
            local.write_text("local v1")
            os.utime(server, (T0, T0))
            os.utime(local, (T0 - 86400, T0 - 86400))

            assert run(["--config", config, "mapping", "add", str(server), str(local)]) == 0
            os.utime(server, (T0 + 86400, T0 + 86400))

            assert run(["--config", config, "updates", "review", "--approve-all"]) == 0
            assert local.read_text() == "server v2"

    def test_profile_list_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert run(["--config", write_config(tmpdir), "profile", "list"]) == 0

    def test_internal_error_exits_2(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("hmconfig.main.create_context", side_effect=RuntimeError("boom")):
                assert run(["--config", write_config(tmpdir), "mapping", "stats"]) == 2
