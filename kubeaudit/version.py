from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple

from pydantic import ValidationError

from .errors import (
    CredentialReadError,
    EmptyMappingError,
    MalformedMappingError,
    MissingCredentialDirectory,
    UnmappedVersionError,
    VersionParseError,
)
from .kube_client import SecureAPIClient
from .schemas import VersionDocument, VersionMapRule

logger = logging.getLogger(__name__)

K8S_VERSION_URL = "https://kubernetes.default.svc/version"
SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
VERSION_MAPPING_KEY = "version_mapping"


@dataclass(frozen=True)
class CredentialBundle:
    token: bytes
    ca_certificate: bytes


def _read_credential(path: Path) -> bytes:
    try:
        with path.open("rb") as fh:
            return fh.read()
    except OSError as exc:
        raise CredentialReadError(str(path), exc) from exc


def read_token_and_cert(sa_dir: str | Path) -> CredentialBundle:
    directory = Path(sa_dir)
    if not directory.exists():
        raise MissingCredentialDirectory(str(directory))
    ca_cert = _read_credential(directory / "ca.crt")
    token = _read_credential(directory / "token")
    return CredentialBundle(token=token, ca_certificate=ca_cert)


def parse_version_document(body: bytes) -> VersionDocument:
    try:
        return VersionDocument.model_validate_json(body)
    except ValidationError as exc:
        raise VersionParseError(f"unable to parse version response: {exc}") from exc


def canonical_version(document: VersionDocument) -> str:
    # Some providers report the minor version as "15+".
    minor = document.minor.replace("+", "")
    return f"{document.major}.{minor}"


class VersionResolver:
    """Asks the apiserver for its version using the pod's service account."""

    def __init__(
        self,
        credentials_dir: str | Path = SERVICE_ACCOUNT_DIR,
        version_url: str = K8S_VERSION_URL,
        client: Optional[SecureAPIClient] = None,
    ) -> None:
        self.credentials_dir = Path(credentials_dir)
        self.version_url = version_url
        self.client = client or SecureAPIClient()

    def resolve(self) -> str:
        credentials = read_token_and_cert(self.credentials_dir)
        body = self.client.fetch(
            self.version_url,
            credentials.token,
            credentials.ca_certificate,
        )
        logger.debug("version response: %s", body)
        document = parse_version_document(body)
        logger.debug("version document: %r", document)
        version = canonical_version(document)
        logger.info("Kubernetes version %s reported by %s", version, self.version_url)
        return version


def get_kube_version_from_rest_api(
    credentials_dir: str | Path = SERVICE_ACCOUNT_DIR,
    version_url: str = K8S_VERSION_URL,
    timeout: Optional[float] = None,
) -> str:
    resolver = VersionResolver(
        credentials_dir=credentials_dir,
        version_url=version_url,
        client=SecureAPIClient(timeout=timeout),
    )
    return resolver.resolve()


def load_version_mapping(config: Mapping[str, Any]) -> Tuple[VersionMapRule, ...]:
    """Build the ordered version rule table from configuration."""
    raw = config.get(VERSION_MAPPING_KEY) if config else None
    if raw is None or raw == [] or raw == "":
        raise EmptyMappingError(VERSION_MAPPING_KEY)
    if not isinstance(raw, list):
        raise MalformedMappingError(
            VERSION_MAPPING_KEY,
            f"expected a list of rules, got {type(raw).__name__}",
        )

    rules = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            raise MalformedMappingError(
                VERSION_MAPPING_KEY,
                f"rule {index} is not a mapping",
            )
        try:
            rules.append(VersionMapRule.model_validate(dict(entry)))
        except ValidationError as exc:
            raise MalformedMappingError(
                VERSION_MAPPING_KEY,
                f"rule {index}: {exc.errors()[0]['msg']}",
            ) from exc
    return tuple(rules)


def map_to_benchmark_version(rules: Iterable[VersionMapRule], kube_version: str) -> str:
    for rule in rules:
        if rule.match == kube_version:
            logger.debug("kubernetes version %s maps to %s", kube_version, rule.target)
            return rule.target
    raise UnmappedVersionError(kube_version)
