"""XSREGISTER.XML manifest parsing.

The manifest is walked depth-first in document order. At every element a
list of shape matchers is tried; a matcher that does not recognise the
element returns False and the walk simply continues. Unknown structure is
never an error, because manifest schemas drift between product versions.
Only a missing or malformed version root fails the parse.

Independently of the matchers, every attribute value that looks like a
server path (UNC or non-local drive) is mirrored into
``Configuration.network_shares``. Matchers give such values a descriptive
name; values no matcher claimed get a generic one.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..models.configuration import (
    Configuration,
    DatabaseRef,
    Machine,
    NamedPath,
    RegistryEntry,
    UserEntry,
    VersionInfo,
)
from .paths import is_network_share_value

logger = logging.getLogger(__name__)

ROOT_TAG = "hyperMILL"
ADMIN_SECTION = "Settings.AdminSettings"
USER_SECTION = "Settings.UserSettings"


class ManifestParseError(Exception):
    """Raised when the manifest is not XML or has no usable version root."""

    pass


def local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from a tag."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _first_child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def _basename(path: str) -> str:
    return path.replace("/", "\\").rstrip("\\").split("\\")[-1]


@dataclass
class _WalkState:
    """Mutable state shared by the matchers during one parse."""

    config: Configuration
    section: str = ""  # "admin", "user" or "" outside both
    key: str = ""  # Nearest enclosing Key attribute
    claimed: set[tuple[int, str]] = field(default_factory=set)

    def claim(self, element: ET.Element, attr: str) -> None:
        self.claimed.add((id(element), attr))

    def add_share(self, name: str, value: str | None) -> None:
        if is_network_share_value(value):
            self.config.network_shares.append(NamedPath(name=name, path=value))


Matcher = Callable[[ET.Element, _WalkState], bool]


class ManifestParser:
    """Builds a Configuration from manifest XML."""

    def __init__(self) -> None:
        self.matchers: list[Matcher] = [
            self._match_registry_setting,
            self._match_machine_definition,
            self._match_database,
            self._match_user_entry,
        ]

    def parse(self, xml_text: str | bytes) -> Configuration:
        """Parse manifest XML text.

        Raises:
            ManifestParseError: If the XML is not well formed or the
                version root is missing or malformed
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ManifestParseError(f"Manifest is not well-formed XML: {e}") from e
        return self._parse_root(root)

    def parse_file(self, manifest_path: Path) -> Configuration:
        """Parse a manifest file, honouring its declared encoding."""
        try:
            root = ET.parse(manifest_path).getroot()
        except ET.ParseError as e:
            raise ManifestParseError(f"Manifest is not well-formed XML: {e}") from e
        return self._parse_root(root)

    def _parse_root(self, root: ET.Element) -> Configuration:
        config = Configuration(version=self._read_version(root))
        state = _WalkState(config=config)

        self._walk(root, state)

        logger.debug(
            "Parsed manifest %s %s.%s: %d machines, %d tool DBs, %d macro DBs, "
            "%d user directories, %d user files, %d network shares",
            config.version.name,
            config.version.major,
            config.version.minor,
            len(config.machines),
            len(config.databases.tool),
            len(config.databases.macro),
            len(config.user_settings.user_directories),
            len(config.user_settings.user_files),
            len(config.network_shares),
        )
        return config

    def _read_version(self, root: ET.Element) -> VersionInfo:
        if local_name(root.tag) != ROOT_TAG:
            raise ManifestParseError(
                f"Manifest root is <{local_name(root.tag)}>, expected <{ROOT_TAG}>"
            )

        name = root.get("Name")
        major = root.get("MajorVersion")
        if not name and not major:
            raise ManifestParseError("Manifest root carries no Name or MajorVersion")

        return VersionInfo(name=name or "", major=major or "", minor=root.get("MinorVersion", ""))

    def _walk(self, root: ET.Element, state: _WalkState) -> None:
        """Visit every descendant of root in document order.

        Iterative, so arbitrarily deep manifests cannot exhaust the stack.
        A ``None`` element marks where a subtree ends and the enclosing
        section and key are restored.
        """
        stack: list[tuple[ET.Element | None, tuple[str, str]]] = [
            (child, ("", "")) for child in reversed(list(root))
        ]
        while stack:
            element, saved = stack.pop()
            if element is None:
                state.section, state.key = saved
                continue

            tag = local_name(element.tag)
            stack.append((None, (state.section, state.key)))

            if tag == ADMIN_SECTION:
                state.section = "admin"
            elif tag == USER_SECTION:
                state.section = "user"
            if element.get("Key"):
                state.key = element.get("Key", "")

            for matcher in self.matchers:
                if matcher(element, state):
                    break

            self._mirror_unclaimed_attributes(element, tag, state)
            stack.extend((child, ("", "")) for child in reversed(list(element)))

    def _mirror_unclaimed_attributes(self, element: ET.Element, tag: str, state: _WalkState) -> None:
        for attr, value in element.attrib.items():
            if (id(element), attr) in state.claimed:
                continue
            prefix = state.key or tag
            state.add_share(f"{prefix}-{local_name(attr)}", value)

    # ------------------------------------------------------------------
    # Shape matchers
    # ------------------------------------------------------------------

    def _match_registry_setting(self, element: ET.Element, state: _WalkState) -> bool:
        """<Settings Key="..."><ConfigRegistry Value Default Path/></Settings>"""
        if local_name(element.tag) != "Settings" or not element.get("Key"):
            return False
        registry = _first_child(element, "ConfigRegistry")
        if registry is None:
            return False

        key = element.get("Key", "")
        entry = RegistryEntry(
            value=registry.get("Value"),
            default=registry.get("Default"),
            registry_path=registry.get("Path"),
        )
        config = state.config

        if state.section == "user":
            config.paths.user[key] = entry
        else:
            config.paths.shared[key] = entry
            if "company" in key.lower():
                config.paths.company[key] = entry

        state.add_share(key, entry.value)
        state.claim(registry, "Value")

        if "automation" in key.lower():
            config.automation_paths.append(NamedPath(name=key, path=entry.value or ""))
        return True

    def _match_machine_definition(self, element: ET.Element, state: _WalkState) -> bool:
        """<MachineDefinition Name Path PostProcessor MachineModel/>"""
        if local_name(element.tag) != "MachineDefinition" or not element.get("Name"):
            return False

        machine = Machine(
            name=element.get("Name", ""),
            mdf_path=element.get("Path"),
            post_processor=element.get("PostProcessor"),
            machine_model=element.get("MachineModel"),
        )
        state.config.machines.append(machine)

        state.add_share(f"MDF-{machine.name}", machine.mdf_path)
        state.add_share(f"PostProcessor-{machine.name}", machine.post_processor)
        state.claim(element, "Path")
        state.claim(element, "PostProcessor")
        return True

    def _match_database(self, element: ET.Element, state: _WalkState) -> bool:
        """<ToolDatabase Path/> or <MacroDatabase Path/>"""
        tag = local_name(element.tag)
        if tag not in ("ToolDatabase", "MacroDatabase") or not element.get("Path"):
            return False

        path = element.get("Path", "")
        if tag == "ToolDatabase":
            state.config.databases.tool.append(DatabaseRef(path=path, type="global"))
            state.add_share(f"ToolDB-{_basename(path)}", path)
        else:
            state.config.databases.macro.append(DatabaseRef(path=path, type="global"))
            state.add_share(f"MacroDB-{_basename(path)}", path)
        state.claim(element, "Path")
        return True

    def _match_user_entry(self, element: ET.Element, state: _WalkState) -> bool:
        """<UserDirectories Key><PackageDirectory Path/></UserDirectories>
        or <UserFiles Key><FilePath Path/></UserFiles>"""
        tag = local_name(element.tag)
        if tag == "UserDirectories":
            target, child_tag = state.config.user_settings.user_directories, "PackageDirectory"
        elif tag == "UserFiles":
            target, child_tag = state.config.user_settings.user_files, "FilePath"
        else:
            return False

        key = element.get("Key")
        child = _first_child(element, child_tag)
        if not key or child is None or child.get("Path") is None:
            return False

        path = child.get("Path", "")
        target.append(UserEntry(key=key, path=path))
        state.add_share(key, path)
        state.claim(child, "Path")
        return True
