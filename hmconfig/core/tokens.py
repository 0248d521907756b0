"""Token map construction and ``[TOKEN]`` substitution in path templates.

Manifest paths are stored as templates such as
``[USER_CFG]\\USERS\\[USER]\\AutomationCenter``. The token map is a pure
function of the username and fixed installation constants; nothing on the
local filesystem is probed.

Unknown tokens are left in place so newer manifests with new tokens still
resolve as far as possible. Replacement values must not themselves contain a
``[KEY]`` of the same map; substitution order is undefined for such maps.
"""

from dataclasses import dataclass

TokenMap = dict[str, str]


@dataclass(frozen=True)
class Installation:
    """Installation constants feeding the token map."""

    version: str = "33.0"
    program_root: str = "C:\\Program Files\\OPEN MIND"
    users_root: str = "C:\\Users"
    public_documents: str = "C:\\Users\\Public\\Documents"
    common_appdata: str = "C:\\ProgramData"

    @property
    def major_version(self) -> str:
        return self.version.split(".", 1)[0]


DEFAULT_INSTALLATION = Installation()


def build_token_map(username: str, installation: Installation = DEFAULT_INSTALLATION) -> TokenMap:
    """Build the token substitution table for one user."""
    appdata = f"{installation.users_root}\\{username}\\AppData\\Roaming"

    return {
        "HYPERMILL": f"{installation.program_root}\\hyperMILL\\{installation.version}",
        "TOOLDB": f"{installation.program_root}\\Tool Database\\{installation.version}",
        "APPDATA": appdata,
        "USER_CFG": appdata,
        "VERSION": installation.version,
        "MAJOR_VERSION": installation.major_version,
        "USER": username,
        "GWS": f"{installation.public_documents}\\OPEN MIND",
        "PUBLICDOCUMENTS": installation.public_documents,
        "COMMON_APPDATA": installation.common_appdata,
        "SWTEMPPATH": f"{appdata}\\OPEN MIND\\temp\\",
    }


def substitute(template: str | None, token_map: TokenMap) -> str | None:
    """Replace every ``[KEY]`` occurrence for each key of the map."""
    if not template:
        return template

    resolved = template
    for token, value in token_map.items():
        resolved = resolved.replace(f"[{token}]", value)
    return resolved


def unresolved_tokens(text: str, token_map: TokenMap) -> list[str]:
    """Keys of the map that still appear as ``[KEY]`` in text."""
    return [token for token in token_map if f"[{token}]" in text]
