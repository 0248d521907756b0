"""Tests for application settings."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from hmconfig.models.settings import AppSettings


class TestAppSettings:
    """Tests for AppSettings loading."""

    def test_defaults(self) -> None:
        settings = AppSettings()

        assert settings.probe_timeout == 5.0
        assert settings.max_archive_bytes == 500 * 1024 * 1024
        assert settings.mapping_file == Path("./data") / "metadata" / "file-mapping.json"
        assert not any(p.startswith(("P:", "Y:", "Z:")) for p in settings.search_paths)

    def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = AppSettings.load(Path(tmpdir) / "missing.yaml", use_env=False)

            assert settings.to_dict() == AppSettings().to_dict()

    def test_load_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "hmconfig.yaml"
            config_path.write_text(
                "data_dir: /srv/hmconfig\n"
                "probe_timeout: 2\n"
                "search_paths:\n"
                "  - /home/alice/Documents\n"
                "hypermill_version: 34.0\n"
            )

            settings = AppSettings.load(config_path, use_env=False)

            assert settings.data_dir == "/srv/hmconfig"
            assert settings.probe_timeout == 2.0
            assert settings.search_paths == ["/home/alice/Documents"]
            assert settings.hypermill_version == "34.0"
            assert settings.search_depth == 3

    def test_env_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            env = {
                "HMCONFIG_DATA_DIR": tmpdir,
                "HMCONFIG_PROBE_TIMEOUT": "0.5",
                "HMCONFIG_MAX_ARCHIVE_MB": "1",
                "HMCONFIG_LOG_LEVEL": "DEBUG",
            }
            with patch.dict(os.environ, env, clear=True), patch("hmconfig.models.settings.load_dotenv"):
                settings = AppSettings.load(Path(tmpdir) / "missing.yaml")

            assert settings.data_dir == tmpdir
            assert settings.probe_timeout == 0.5
            assert settings.max_archive_bytes == 1024 * 1024
            assert settings.log_level == "DEBUG"

    def test_save_and_reload(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "nested" / "hmconfig.yaml"
            settings = AppSettings(data_dir=tmpdir, search_paths=["/a", "/b"], search_depth=5)

            settings.save(config_path)

            assert AppSettings.load(config_path, use_env=False).to_dict() == settings.to_dict()

    def test_ensure_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = AppSettings(data_dir=tmpdir)

            settings.ensure_directories()

            for name in ("metadata", "current", "backups", "profiles", "manifests", "tmp"):
                assert (Path(tmpdir) / name).is_dir()
