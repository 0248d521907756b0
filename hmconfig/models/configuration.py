"""Configuration records extracted from a settings archive manifest."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class VersionInfo:
    """Product version declared on the manifest root."""

    name: str = ""
    major: str = ""
    minor: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "major": self.major, "minor": self.minor}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VersionInfo":
        """Create from dictionary."""
        return cls(
            name=data.get("name", ""),
            major=data.get("major", ""),
            minor=data.get("minor", ""),
        )


@dataclass
class RegistryEntry:
    """A registry-style setting value (ConfigRegistry element)."""

    value: str | None = None
    default: str | None = None
    registry_path: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        return {
            "value": self.value,
            "default": self.default,
            "registryPath": self.registry_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegistryEntry":
        """Create from dictionary."""
        return cls(
            value=data.get("value"),
            default=data.get("default"),
            registry_path=data.get("registryPath"),
        )


@dataclass
class Machine:
    """A machine definition (MDF) reference."""

    name: str
    mdf_path: str | None = None
    post_processor: str | None = None
    machine_model: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "mdfPath": self.mdf_path,
            "postProcessor": self.post_processor,
            "machineModel": self.machine_model,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Machine":
        """Create from dictionary."""
        return cls(
            name=data.get("name", ""),
            mdf_path=data.get("mdfPath"),
            post_processor=data.get("postProcessor"),
            machine_model=data.get("machineModel"),
        )


@dataclass
class DatabaseRef:
    """A tool or macro database location."""

    path: str
    type: str = "global"

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"path": self.path, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DatabaseRef":
        """Create from dictionary."""
        return cls(path=data["path"], type=data.get("type", "global"))


@dataclass
class UserEntry:
    """A user directory or user file entry; ``path`` may contain tokens."""

    key: str
    path: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"key": self.key, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserEntry":
        """Create from dictionary."""
        return cls(key=data["key"], path=data["path"])


@dataclass
class NamedPath:
    """A named path collected during the manifest walk."""

    name: str
    path: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NamedPath":
        """Create from dictionary."""
        return cls(name=data["name"], path=data["path"])


def _registry_map_to_dict(entries: dict[str, RegistryEntry]) -> dict[str, Any]:
    return {k: v.to_dict() for k, v in entries.items()}


def _registry_map_from_dict(data: dict[str, Any] | None) -> dict[str, RegistryEntry]:
    return {k: RegistryEntry.from_dict(v) for k, v in (data or {}).items()}


@dataclass
class PathGroups:
    """Registry path entries grouped by scope."""

    shared: dict[str, RegistryEntry] = field(default_factory=dict)
    user: dict[str, RegistryEntry] = field(default_factory=dict)
    company: dict[str, RegistryEntry] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "shared": _registry_map_to_dict(self.shared),
            "user": _registry_map_to_dict(self.user),
            "company": _registry_map_to_dict(self.company),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PathGroups":
        """Create from dictionary."""
        return cls(
            shared=_registry_map_from_dict(data.get("shared")),
            user=_registry_map_from_dict(data.get("user")),
            company=_registry_map_from_dict(data.get("company")),
        )


@dataclass
class Databases:
    """Tool and macro database references in document order."""

    tool: list[DatabaseRef] = field(default_factory=list)
    macro: list[DatabaseRef] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "tool": [d.to_dict() for d in self.tool],
            "macro": [d.to_dict() for d in self.macro],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Databases":
        """Create from dictionary."""
        return cls(
            tool=[DatabaseRef.from_dict(d) for d in data.get("tool") or []],
            macro=[DatabaseRef.from_dict(d) for d in data.get("macro") or []],
        )


@dataclass
class UserSettings:
    """Per-user directories and files, with tokenized path templates."""

    user_directories: list[UserEntry] = field(default_factory=list)
    user_files: list[UserEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "userDirectories": [e.to_dict() for e in self.user_directories],
            "userFiles": [e.to_dict() for e in self.user_files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        """Create from dictionary."""
        return cls(
            user_directories=[UserEntry.from_dict(e) for e in data.get("userDirectories") or []],
            user_files=[UserEntry.from_dict(e) for e in data.get("userFiles") or []],
        )


@dataclass
class Configuration:
    """Everything extracted from one settings archive.

    Sequences keep document order and are never deduplicated. ``network_shares``
    is an additive side-collection: a path can appear there and in any other
    section at the same time.
    """

    version: VersionInfo = field(default_factory=VersionInfo)
    paths: PathGroups = field(default_factory=PathGroups)
    machines: list[Machine] = field(default_factory=list)
    databases: Databases = field(default_factory=Databases)
    user_settings: UserSettings = field(default_factory=UserSettings)
    automation_paths: list[NamedPath] = field(default_factory=list)
    network_shares: list[NamedPath] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version.to_dict(),
            "paths": self.paths.to_dict(),
            "machines": [m.to_dict() for m in self.machines],
            "databases": self.databases.to_dict(),
            "userSettings": self.user_settings.to_dict(),
            "automationPaths": [p.to_dict() for p in self.automation_paths],
            "networkShares": [p.to_dict() for p in self.network_shares],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Configuration":
        """Create from dictionary."""
        return cls(
            version=VersionInfo.from_dict(data.get("version") or {}),
            paths=PathGroups.from_dict(data.get("paths") or {}),
            machines=[Machine.from_dict(m) for m in data.get("machines") or []],
            databases=Databases.from_dict(data.get("databases") or {}),
            user_settings=UserSettings.from_dict(data.get("userSettings") or {}),
            automation_paths=[NamedPath.from_dict(p) for p in data.get("automationPaths") or []],
            network_shares=[NamedPath.from_dict(p) for p in data.get("networkShares") or []],
        )
