"""Per-user profile store: archives, parsed configurations and scan configs."""

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..models.configuration import Configuration
from ..models.scan import ScanConfig
from .probe import to_iso
from .results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)

SETTINGS_DIR = "settings"
PARSED_DIR = "parsed"
SCANNER_DIR = "scanner-config"
BACKUPS_DIR = "backups"
LATEST_ARCHIVE = "latest.omSettings"
PARSED_FILE = "config.json"
SCAN_FILE = "scan-paths.json"


class InvalidUsernameError(ValueError):
    """Username cannot be used as a profile directory name."""

    pass


def validate_username(username: str) -> str:
    """Return the username if it is safe to use as a directory name.

    Raises:
        InvalidUsernameError: If empty, a dot name or containing a path separator
    """
    if not username or username in (".", "..") or "/" in username or "\\" in username:
        raise InvalidUsernameError(f"Invalid username: {username!r}")
    return username


class ProfileStore:
    """JSON-file store under ``<profiles_dir>/<username>/``."""

    def __init__(self, profiles_dir: Path) -> None:
        self.profiles_dir = Path(profiles_dir)

    def user_dir(self, username: str) -> Path:
        return self.profiles_dir / validate_username(username)

    def create_profile(self, username: str) -> Path:
        """Create the profile directory tree if needed and return its root."""
        user_dir = self.user_dir(username)
        for sub in (SETTINGS_DIR, PARSED_DIR, SCANNER_DIR, BACKUPS_DIR):
            (user_dir / sub).mkdir(parents=True, exist_ok=True)
        return user_dir

    def save_user_settings(self, username: str, archive_path: Path) -> OperationResult:
        """Store a copy of an archive as both a timestamped file and the latest one."""
        archive_path = Path(archive_path)
        if not archive_path.is_file():
            return OperationResult.fail(ErrorKind.NOT_FOUND, f"Settings file not found: {archive_path}")

        try:
            settings_dir = self.create_profile(username) / SETTINGS_DIR
        except InvalidUsernameError as e:
            return OperationResult.fail(ErrorKind.INVALID_INPUT, str(e))

        timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        saved_path = settings_dir / f"user-settings-{timestamp}.omSettings"
        latest_path = settings_dir / LATEST_ARCHIVE
        try:
            shutil.copy2(archive_path, saved_path)
            shutil.copy2(archive_path, latest_path)
        except OSError as e:
            logger.warning("Could not store settings for %s: %s", username, e)
            return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not store settings: {e}")

        logger.info("Stored settings archive for %s: %s", username, saved_path.name)
        return OperationResult.ok("Settings stored", saved_path=saved_path, latest_path=latest_path)

    def get_latest_user_settings(self, username: str) -> Path | None:
        latest = self.user_dir(username) / SETTINGS_DIR / LATEST_ARCHIVE
        return latest if latest.is_file() else None

    def save_parsed_config(self, username: str, config: Configuration) -> OperationResult:
        return self._save_json(username, PARSED_DIR, PARSED_FILE, config.to_dict())

    def get_parsed_config(self, username: str) -> Configuration | None:
        data = self._load_json(username, PARSED_DIR, PARSED_FILE)
        return Configuration.from_dict(data) if data is not None else None

    def save_scan_config(self, username: str, scan: ScanConfig) -> OperationResult:
        """Store a scan config, replacing the previous one entirely."""
        return self._save_json(username, SCANNER_DIR, SCAN_FILE, scan.to_dict())

    def get_scan_config(self, username: str) -> ScanConfig | None:
        data = self._load_json(username, SCANNER_DIR, SCAN_FILE)
        return ScanConfig.from_dict(data) if data is not None else None

    def get_profile_summary(self, username: str) -> dict[str, Any] | None:
        """Overview of one profile, or None if it does not exist."""
        user_dir = self.user_dir(username)
        if not user_dir.is_dir():
            return None

        latest = self.get_latest_user_settings(username)
        st = user_dir.stat()
        return {
            "username": username,
            "profileDirectory": str(user_dir),
            "hasSettings": latest is not None,
            "settingsFile": str(latest) if latest else None,
            "hasParsedConfig": (user_dir / PARSED_DIR / PARSED_FILE).is_file(),
            "hasScanConfig": (user_dir / SCANNER_DIR / SCAN_FILE).is_file(),
            "lastModified": to_iso(datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)),
        }

    def list_profiles(self) -> list[dict[str, Any]]:
        if not self.profiles_dir.is_dir():
            return []
        summaries = []
        for entry in sorted(self.profiles_dir.iterdir()):
            if entry.is_dir():
                summary = self.get_profile_summary(entry.name)
                if summary is not None:
                    summaries.append(summary)
        return summaries

    def delete_profile(self, username: str) -> OperationResult:
        try:
            user_dir = self.user_dir(username)
        except InvalidUsernameError as e:
            return OperationResult.fail(ErrorKind.INVALID_INPUT, str(e))

        if not user_dir.is_dir():
            return OperationResult.fail(ErrorKind.NOT_FOUND, f"Profile not found: {username}")
        try:
            shutil.rmtree(user_dir)
        except OSError as e:
            return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not delete profile: {e}")

        logger.info("Deleted profile %s", username)
        return OperationResult.ok(f"Deleted profile {username}", username=username)

    def _save_json(self, username: str, subdir: str, filename: str, data: dict[str, Any]) -> OperationResult:
        try:
            path = self.create_profile(username) / subdir / filename
        except InvalidUsernameError as e:
            return OperationResult.fail(ErrorKind.INVALID_INPUT, str(e))

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
        except OSError as e:
            logger.warning("Could not write %s: %s", path, e)
            return OperationResult.fail(ErrorKind.IO_ERROR, f"Could not write {path.name}: {e}")

        return OperationResult.ok(f"Saved {path.name}", path=path)

    def _load_json(self, username: str, subdir: str, filename: str) -> dict[str, Any] | None:
        path = self.user_dir(username) / subdir / filename
        if not path.is_file():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)
