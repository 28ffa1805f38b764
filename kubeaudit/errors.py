from __future__ import annotations

from typing import Optional


class KubeAuditError(Exception):
    """Base class for failures raised while preparing a benchmark run."""


class ConfigError(KubeAuditError):
    """Raised when the configuration file cannot be loaded."""


class MissingCredentialDirectory(KubeAuditError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f'missing service account directory: "{path}"')


class CredentialReadError(KubeAuditError):
    def __init__(self, file: str, reason: Optional[BaseException] = None) -> None:
        self.file = file
        message = f"unable to read credential file {file}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


class CertificateDecodeError(KubeAuditError):
    def __init__(self, detail: str = "unable to Decode certificate") -> None:
        super().__init__(detail)


class TransportError(KubeAuditError):
    def __init__(self, url: str, cause: BaseException) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"request to {url} failed: {cause}")


class HTTPStatusError(KubeAuditError):
    def __init__(self, url: str, status: int) -> None:
        self.url = url
        self.status = status
        super().__init__(f"URL:[{url}], StatusCode:[{status}]")


class VersionParseError(KubeAuditError):
    """Raised when the /version response is not a valid version document."""


class EmptyMappingError(KubeAuditError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"missing {key} in configuration")


class MalformedMappingError(KubeAuditError):
    def __init__(self, key: str, detail: str) -> None:
        self.key = key
        super().__init__(f"invalid {key} in configuration: {detail}")


class UnmappedVersionError(KubeAuditError):
    def __init__(self, kube_version: str) -> None:
        self.kube_version = kube_version
        super().__init__(
            f"unable to find a matching benchmark version for kubernetes version {kube_version!r}"
        )


class MalformedRoleError(KubeAuditError):
    def __init__(self, role: str, detail: str) -> None:
        self.role = role
        super().__init__(f"invalid configuration for role {role!r}: {detail}")


class ComponentNotRunningError(KubeAuditError):
    def __init__(self, component: str) -> None:
        self.component = component
        super().__init__(f"unable to detect running programs for component {component!r}")


class MutuallyExclusiveFilterError(KubeAuditError):
    def __init__(self) -> None:
        super().__init__("group option and check option can't be used together")
