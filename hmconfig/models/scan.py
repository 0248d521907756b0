"""Scan configuration records: concrete locations a monitor should watch."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class ScanPath:
    """A resolved location to monitor."""

    path: str  # Tokens resolved
    path_template: str  # As found in the manifest
    type: str  # automation-center, tool-database, configuration, database, other
    key: str
    description: str = ""
    is_file: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "pathTemplate": self.path_template,
            "type": self.type,
            "key": self.key,
            "description": self.description,
            "isFile": self.is_file,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanPath":
        """Create from dictionary."""
        return cls(
            path=data["path"],
            path_template=data.get("pathTemplate", data["path"]),
            type=data.get("type", "other"),
            key=data.get("key", ""),
            description=data.get("description", ""),
            is_file=data.get("isFile", False),
        )


@dataclass
class ScanMachine:
    """Machine definition carried into the scan config."""

    name: str
    mdf_path: str | None = None
    post_processor: str | None = None
    machine_model: str | None = None
    is_network_path: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "mdfPath": self.mdf_path,
            "postProcessor": self.post_processor,
            "machineModel": self.machine_model,
            "isNetworkPath": self.is_network_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanMachine":
        """Create from dictionary."""
        return cls(
            name=data.get("name", ""),
            mdf_path=data.get("mdfPath"),
            post_processor=data.get("postProcessor"),
            machine_model=data.get("machineModel"),
            is_network_path=data.get("isNetworkPath", False),
        )


@dataclass
class ScanDatabase:
    """Database reference carried into the scan config."""

    path: str
    type: str = "global"
    is_network_path: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"path": self.path, "type": self.type, "isNetworkPath": self.is_network_path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanDatabase":
        """Create from dictionary."""
        return cls(
            path=data["path"],
            type=data.get("type", "global"),
            is_network_path=data.get("isNetworkPath", False),
        )


@dataclass
class ScanDatabases:
    """Tool and macro databases of the scan config."""

    tool_databases: list[ScanDatabase] = field(default_factory=list)
    macro_databases: list[ScanDatabase] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "toolDatabases": [d.to_dict() for d in self.tool_databases],
            "macroDatabases": [d.to_dict() for d in self.macro_databases],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanDatabases":
        """Create from dictionary."""
        return cls(
            tool_databases=[ScanDatabase.from_dict(d) for d in data.get("toolDatabases") or []],
            macro_databases=[ScanDatabase.from_dict(d) for d in data.get("macroDatabases") or []],
        )


@dataclass
class ScanShare:
    """Network share found in the manifest."""

    name: str
    path: str
    is_accessible: bool | None = None  # Decided by the monitoring component

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "path": self.path, "isAccessible": self.is_accessible}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanShare":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            path=data["path"],
            is_accessible=data.get("isAccessible"),
        )


@dataclass
class ScanConfig:
    """Generated scan targets for one user.

    A new generation fully replaces any stored scan config for the user.
    """

    username: str
    generated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    source_scan: str = "hyperMILL-omSettings"
    token_map: dict[str, str] = field(default_factory=dict)
    paths_to_scan: list[ScanPath] = field(default_factory=list)
    machines: list[ScanMachine] = field(default_factory=list)
    databases: ScanDatabases = field(default_factory=ScanDatabases)
    network_shares: list[ScanShare] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "username": self.username,
            "generatedAt": self.generated_at,
            "sourceScan": self.source_scan,
            "tokenMap": dict(self.token_map),
            "pathsToScan": [p.to_dict() for p in self.paths_to_scan],
            "machines": [m.to_dict() for m in self.machines],
            "databases": self.databases.to_dict(),
            "networkShares": [s.to_dict() for s in self.network_shares],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScanConfig":
        """Create from dictionary."""
        return cls(
            username=data["username"],
            generated_at=data.get("generatedAt", ""),
            source_scan=data.get("sourceScan", "hyperMILL-omSettings"),
            token_map=dict(data.get("tokenMap") or {}),
            paths_to_scan=[ScanPath.from_dict(p) for p in data.get("pathsToScan") or []],
            machines=[ScanMachine.from_dict(m) for m in data.get("machines") or []],
            databases=ScanDatabases.from_dict(data.get("databases") or {}),
            network_shares=[ScanShare.from_dict(s) for s in data.get("networkShares") or []],
        )
