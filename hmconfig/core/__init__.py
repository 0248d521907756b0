"""Core settings import and cache tracking functionality."""

from .archive import ArchiveExtractor, ExtractionResult
from .context import ServiceContext, create_context
from .locator import ArchiveCandidate, ConfigurationLocator
from .manifest import ManifestParseError, ManifestParser
from .monitor import UpdateMonitor
from .paths import PathClassification, PathKind, classify_path, is_likely_path, is_server_path
from .probe import ComparisonResult, FileSnapshot, compare_modification, format_bytes, stat_with_timeout
from .profiles import ProfileStore
from .registry import FileCacheRegistry
from .results import ErrorKind, OperationResult
from .scan_config import ScanConfigGenerator, categorize_key
from .server_paths import PathAnalysis, ServerPathsManifestStore, analyze_paths
from .tokens import Installation, build_token_map, substitute

__all__ = [
    "ArchiveCandidate",
    "ArchiveExtractor",
    "ComparisonResult",
    "ConfigurationLocator",
    "ErrorKind",
    "ExtractionResult",
    "FileCacheRegistry",
    "FileSnapshot",
    "Installation",
    "ManifestParseError",
    "ManifestParser",
    "OperationResult",
    "PathAnalysis",
    "PathClassification",
    "PathKind",
    "ProfileStore",
    "ScanConfigGenerator",
    "ServerPathsManifestStore",
    "ServiceContext",
    "UpdateMonitor",
    "analyze_paths",
    "build_token_map",
    "categorize_key",
    "classify_path",
    "compare_modification",
    "create_context",
    "format_bytes",
    "is_likely_path",
    "is_server_path",
    "stat_with_timeout",
    "substitute",
]
