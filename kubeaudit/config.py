from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .roles import load_roles
from .schemas import RoleSpec, VersionMapRule
from .version import K8S_VERSION_URL, SERVICE_ACCOUNT_DIR, load_version_mapping

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "cfg" / "config.yaml"


def _as_timeout(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"request_timeout must be a number, got {value!r}") from exc
    return timeout if timeout > 0 else None


@dataclass
class AuditConfig:
    config_path: Path
    version_rules: Tuple[VersionMapRule, ...]
    roles: Dict[str, RoleSpec] = field(default_factory=dict)
    credentials_dir: Path = Path(SERVICE_ACCOUNT_DIR)
    version_url: str = K8S_VERSION_URL
    request_timeout: Optional[float] = None


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise ConfigError(f"config file not found: {file_path}")
    try:
        with file_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"unable to parse {file_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {file_path} must contain a YAML mapping")
    return data


def load_config(config_path: Optional[str] = None) -> AuditConfig:
    """Load the audit configuration; environment variables win over the file."""
    path = Path(config_path or os.getenv("KUBEAUDIT_CONFIG") or DEFAULT_CONFIG_PATH)
    raw = load_yaml_config(path)
    api_cfg = raw.get("api") or {}
    if not isinstance(api_cfg, dict):
        raise ConfigError("api section must be a mapping")

    credentials_dir = os.getenv(
        "KUBEAUDIT_CREDENTIALS_DIR",
        api_cfg.get("credentials_dir") or SERVICE_ACCOUNT_DIR,
    )
    return AuditConfig(
        config_path=path,
        version_rules=load_version_mapping(raw),
        roles=load_roles(raw),
        credentials_dir=Path(credentials_dir).expanduser(),
        version_url=os.getenv(
            "KUBEAUDIT_VERSION_URL",
            api_cfg.get("version_url") or K8S_VERSION_URL,
        ),
        request_timeout=_as_timeout(
            os.getenv("KUBEAUDIT_REQUEST_TIMEOUT", api_cfg.get("request_timeout"))
        ),
    )
