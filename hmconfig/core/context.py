"""Process-wide service wiring.

The registry table and the notification queue are shared state; they are
owned by one ServiceContext per process and handed to whatever needs them.
"""

from dataclasses import dataclass

from ..models.settings import AppSettings
from .archive import ArchiveExtractor
from .locator import ConfigurationLocator
from .monitor import UpdateMonitor
from .profiles import ProfileStore
from .registry import FileCacheRegistry
from .scan_config import ScanConfigGenerator
from .server_paths import ServerPathsManifestStore
from .tokens import Installation


@dataclass
class ServiceContext:
    """Every service, built once from AppSettings."""

    settings: AppSettings
    installation: Installation
    registry: FileCacheRegistry
    monitor: UpdateMonitor
    extractor: ArchiveExtractor
    generator: ScanConfigGenerator
    profiles: ProfileStore
    manifests: ServerPathsManifestStore
    locator: ConfigurationLocator


def create_context(settings: AppSettings | None = None) -> ServiceContext:
    """Build the services for a process, creating storage directories.

    Args:
        settings: Loaded settings (defaults to ``AppSettings.load()``)
    """
    settings = settings or AppSettings.load()
    settings.ensure_directories()

    registry = FileCacheRegistry(settings.mapping_file, probe_timeout=settings.probe_timeout)
    return ServiceContext(
        settings=settings,
        installation=Installation(
            version=settings.hypermill_version,
            program_root=settings.program_root,
            users_root=settings.users_root,
        ),
        registry=registry,
        monitor=UpdateMonitor(
            registry,
            current_dir=settings.current_dir,
            backups_dir=settings.backups_dir,
            probe_timeout=settings.probe_timeout,
        ),
        extractor=ArchiveExtractor(scratch_root=settings.scratch_dir),
        generator=ScanConfigGenerator(),
        profiles=ProfileStore(settings.profiles_dir),
        manifests=ServerPathsManifestStore(settings.manifests_dir),
        locator=ConfigurationLocator(settings.search_paths, max_depth=settings.search_depth),
    )
