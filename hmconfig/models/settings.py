"""Application settings loaded from YAML with environment overrides."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_FILE = "hmconfig.yaml"
MAPPING_FILENAME = "file-mapping.json"


def default_search_paths() -> list[str]:
    """Local-only locations where settings exports usually end up.

    Company server drives are intentionally absent.
    """
    home = Path.home()
    public_docs = "C:\\Users\\Public\\Documents"
    return [
        str(home / "Documents"),
        str(home / "Downloads"),
        f"{public_docs}\\OPEN MIND",
        f"{public_docs}\\OPEN MIND\\backup",
        str(home / "AppData" / "Roaming" / "OPEN MIND"),
        str(home / "AppData" / "Local" / "OPEN MIND"),
        "C:\\ProgramData\\OPEN MIND",
        "C:\\Program Files\\OPEN MIND\\hyperMILL\\33.0",
        "C:\\Program Files\\OPEN MIND\\hyperMILL\\34.0",
        str(home / "AppData" / "Local" / "Temp"),
    ]


@dataclass
class AppSettings:
    """Runtime configuration for hmconfig."""

    data_dir: str = "./data"
    log_level: str = "INFO"
    probe_timeout: float = 5.0  # Seconds allowed for a server-path stat
    max_archive_size_mb: int = 500
    search_paths: list[str] = field(default_factory=default_search_paths)
    search_depth: int = 3
    hypermill_version: str = "33.0"
    program_root: str = "C:\\Program Files\\OPEN MIND"
    users_root: str = "C:\\Users"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def metadata_dir(self) -> Path:
        return self.data_path / "metadata"

    @property
    def mapping_file(self) -> Path:
        return self.metadata_dir / MAPPING_FILENAME

    @property
    def current_dir(self) -> Path:
        return self.data_path / "current"

    @property
    def backups_dir(self) -> Path:
        return self.data_path / "backups"

    @property
    def scratch_dir(self) -> Path:
        return self.data_path / "tmp"

    @property
    def profiles_dir(self) -> Path:
        return self.data_path / "profiles"

    @property
    def manifests_dir(self) -> Path:
        return self.data_path / "manifests"

    @property
    def max_archive_bytes(self) -> int:
        return self.max_archive_size_mb * 1024 * 1024

    def ensure_directories(self) -> None:
        """Create every storage directory that does not exist yet."""
        for directory in (
            self.metadata_dir,
            self.current_dir,
            self.backups_dir,
            self.profiles_dir,
            self.manifests_dir,
            self.scratch_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    def apply_env(self) -> None:
        """Override settings from HMCONFIG_* environment variables (and .env)."""
        load_dotenv()

        self.data_dir = os.getenv("HMCONFIG_DATA_DIR", self.data_dir)
        self.log_level = os.getenv("HMCONFIG_LOG_LEVEL", self.log_level)

        timeout = os.getenv("HMCONFIG_PROBE_TIMEOUT")
        if timeout:
            self.probe_timeout = float(timeout)

        max_mb = os.getenv("HMCONFIG_MAX_ARCHIVE_MB")
        if max_mb:
            self.max_archive_size_mb = int(max_mb)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        """Create from dictionary, falling back to defaults for missing keys."""
        defaults = cls()
        return cls(
            data_dir=data.get("data_dir", defaults.data_dir),
            log_level=data.get("log_level", defaults.log_level),
            probe_timeout=float(data.get("probe_timeout", defaults.probe_timeout)),
            max_archive_size_mb=int(data.get("max_archive_size_mb", defaults.max_archive_size_mb)),
            search_paths=data.get("search_paths") or defaults.search_paths,
            search_depth=int(data.get("search_depth", defaults.search_depth)),
            hypermill_version=str(data.get("hypermill_version", defaults.hypermill_version)),
            program_root=data.get("program_root", defaults.program_root),
            users_root=data.get("users_root", defaults.users_root),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "data_dir": self.data_dir,
            "log_level": self.log_level,
            "probe_timeout": self.probe_timeout,
            "max_archive_size_mb": self.max_archive_size_mb,
            "search_paths": self.search_paths,
            "search_depth": self.search_depth,
            "hypermill_version": self.hypermill_version,
            "program_root": self.program_root,
            "users_root": self.users_root,
        }

    @classmethod
    def load(cls, config_path: Path | None = None, use_env: bool = True) -> "AppSettings":
        """Load settings from a YAML file; a missing file yields defaults.

        Args:
            config_path: YAML file (defaults to $HMCONFIG_CONFIG or ./hmconfig.yaml)
            use_env: Apply HMCONFIG_* environment overrides after loading
        """
        if config_path is None:
            config_path = Path(os.getenv("HMCONFIG_CONFIG", DEFAULT_CONFIG_FILE))

        data: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        settings = cls.from_dict(data)
        if use_env:
            settings.apply_env()
        return settings

    def save(self, config_path: Path) -> None:
        """Save settings to a YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
