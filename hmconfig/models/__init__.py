"""Data models for hmconfig."""

from .configuration import (
    Configuration,
    DatabaseRef,
    Databases,
    Machine,
    NamedPath,
    PathGroups,
    RegistryEntry,
    UserEntry,
    UserSettings,
    VersionInfo,
)
from .mapping import (
    SYNC_HISTORY_LIMIT,
    FileMapping,
    MappingStatus,
    SyncHistoryEntry,
    UpdateNotification,
)
from .scan import ScanConfig, ScanDatabase, ScanDatabases, ScanMachine, ScanPath, ScanShare
from .settings import AppSettings

__all__ = [
    "AppSettings",
    "Configuration",
    "DatabaseRef",
    "Databases",
    "FileMapping",
    "Machine",
    "MappingStatus",
    "NamedPath",
    "PathGroups",
    "RegistryEntry",
    "SYNC_HISTORY_LIMIT",
    "ScanConfig",
    "ScanDatabase",
    "ScanDatabases",
    "ScanMachine",
    "ScanPath",
    "ScanShare",
    "SyncHistoryEntry",
    "UpdateNotification",
    "UserEntry",
    "UserSettings",
    "VersionInfo",
]
