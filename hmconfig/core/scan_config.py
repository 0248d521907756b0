"""Scan configuration generation from a parsed Configuration."""

import logging

from ..models.configuration import Configuration, UserEntry
from ..models.scan import ScanConfig, ScanDatabase, ScanDatabases, ScanMachine, ScanPath, ScanShare
from .paths import is_server_path
from .tokens import TokenMap, substitute

logger = logging.getLogger(__name__)

COMPANY_MARKER = "company"

# First matching substring wins.
KEY_CATEGORIES = [
    ("Automation", "automation-center"),
    ("Tool", "tool-database"),
    ("cfg", "configuration"),
    ("Database", "database"),
]


def categorize_key(key: str) -> str:
    """Semantic type of a user entry, from case-sensitive substrings of its key."""
    for marker, category in KEY_CATEGORIES:
        if marker in key:
            return category
    return "other"


class ScanConfigGenerator:
    """Turns a Configuration and a user's token map into scan targets."""

    def generate(self, config: Configuration, token_map: TokenMap) -> ScanConfig:
        """Build the ScanConfig for the user the token map was built for.

        Entries whose key contains ``company`` are company-wide templates
        and are left out of ``paths_to_scan``.
        """
        scan = ScanConfig(username=token_map.get("USER", ""), token_map=dict(token_map))

        for entry in config.user_settings.user_directories:
            if COMPANY_MARKER in entry.key:
                continue
            scan.paths_to_scan.append(self._scan_path(entry, token_map, is_file=False))

        for entry in config.user_settings.user_files:
            if COMPANY_MARKER in entry.key:
                continue
            scan.paths_to_scan.append(self._scan_path(entry, token_map, is_file=True))

        scan.machines = [
            ScanMachine(
                name=m.name,
                mdf_path=m.mdf_path,
                post_processor=m.post_processor,
                machine_model=m.machine_model,
                is_network_path=is_server_path(m.mdf_path),
            )
            for m in config.machines
        ]
        scan.databases = ScanDatabases(
            tool_databases=[
                ScanDatabase(path=db.path, type=db.type, is_network_path=is_server_path(db.path))
                for db in config.databases.tool
            ],
            macro_databases=[
                ScanDatabase(path=db.path, type=db.type, is_network_path=is_server_path(db.path))
                for db in config.databases.macro
            ],
        )
        scan.network_shares = [ScanShare(name=s.name, path=s.path) for s in config.network_shares]

        logger.debug(
            "Generated scan config for %s: %d paths, %d machines",
            scan.username,
            len(scan.paths_to_scan),
            len(scan.machines),
        )
        return scan

    def _scan_path(self, entry: UserEntry, token_map: TokenMap, is_file: bool) -> ScanPath:
        description = f"HyperMILL user file: {entry.key}" if is_file else f"HyperMILL {entry.key}"
        return ScanPath(
            path=substitute(entry.path, token_map) or "",
            path_template=entry.path,
            type=categorize_key(entry.key),
            key=entry.key,
            description=description,
            is_file=is_file,
        )
