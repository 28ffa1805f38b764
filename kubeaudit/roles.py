from __future__ import annotations

import logging
import re
import shutil
import subprocess
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from .errors import ComponentNotRunningError, MalformedRoleError
from .schemas import RoleSpec

logger = logging.getLogger(__name__)

ROLES_KEY = "roles"
MASTER_ROLE = "master"
NODE_ROLE = "node"
PS_TIMEOUT = 10

RunningBinariesProvider = Callable[[RoleSpec], Dict[str, str]]
ProcessLister = Callable[[str], str]


def load_roles(config: Mapping[str, Any]) -> Dict[str, RoleSpec]:
    raw = config.get(ROLES_KEY) if config else None
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        raise MalformedRoleError(ROLES_KEY, "expected a mapping of role names")

    roles: Dict[str, RoleSpec] = {}
    for name, entry in raw.items():
        name = str(name)
        if not isinstance(entry, Mapping):
            raise MalformedRoleError(name, "role entry must be a mapping")
        components = entry.get("components")
        if not isinstance(components, list) or not components:
            raise MalformedRoleError(name, "components must be a non-empty list")
        binaries = entry.get("binaries") or {}
        if not isinstance(binaries, Mapping):
            raise MalformedRoleError(name, "binaries must be a mapping")
        candidates: Dict[str, Any] = {}
        for component, bins in binaries.items():
            if isinstance(bins, str):
                bins = [bins]
            if bins is not None and not isinstance(bins, list):
                raise MalformedRoleError(name, f"binaries for {component} must be a list")
            candidates[str(component)] = tuple(bins or ())
        try:
            roles[name] = RoleSpec(
                name=name,
                components=tuple(components),
                binaries=candidates,
            )
        except ValidationError as exc:
            raise MalformedRoleError(name, str(exc)) from exc
    return roles


def has_role(
    role_name: str,
    configured_roles: Mapping[str, RoleSpec],
    running_binaries_provider: RunningBinariesProvider,
) -> bool:
    """Return True when every component of ``role_name`` was seen running.

    Only the number of reported components is compared with the number
    configured for the role. Inspection failures count as "not running".
    """
    role = configured_roles.get(role_name)
    if role is None:
        logger.debug("role %s is not configured", role_name)
        return False

    logger.debug("Checking if the current node is running %s components", role_name)
    try:
        observed = running_binaries_provider(role)
    except Exception as exc:
        logger.debug("unable to inspect %s components: %s", role_name, exc)
        return False
    return len(observed) == len(role.components)


def is_master(
    configured_roles: Mapping[str, RoleSpec],
    running_binaries_provider: RunningBinariesProvider,
) -> bool:
    return has_role(MASTER_ROLE, configured_roles, running_binaries_provider)


def is_node(
    configured_roles: Mapping[str, RoleSpec],
    running_binaries_provider: RunningBinariesProvider,
) -> bool:
    return has_role(NODE_ROLE, configured_roles, running_binaries_provider)


def list_process_commands(program: str) -> str:
    if shutil.which("ps") is None:
        return ""
    try:
        result = subprocess.run(
            ["ps", "-C", program, "-o", "cmd", "--no-headers"],
            check=False,
            capture_output=True,
            text=True,
            timeout=PS_TIMEOUT,
        )
    except (subprocess.SubprocessError, OSError) as exc:
        logger.debug("ps -C %s failed: %s", program, exc)
        return ""
    return result.stdout


def is_binary_running(binary: str, process_lister: ProcessLister = list_process_commands) -> bool:
    parts = binary.split()
    if not parts:
        return False
    output = process_lister(parts[0])
    if not output:
        return False
    pattern = re.compile(r"(^|\s|/)" + re.escape(binary) + r"(\s|$)")
    return any(pattern.search(line.strip()) for line in output.splitlines())


def find_running_binaries(
    role: RoleSpec,
    process_lister: Optional[ProcessLister] = None,
) -> Dict[str, str]:
    """Map each component of ``role`` to the first candidate binary found running."""
    lister = process_lister or list_process_commands
    found: Dict[str, str] = {}
    for component in role.components:
        for binary in role.candidates(component):
            if is_binary_running(binary, lister):
                logger.debug("component %s running as %s", component, binary)
                found[component] = binary
                break
        else:
            raise ComponentNotRunningError(component)
    return found
