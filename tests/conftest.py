import base64
from pathlib import Path

import pytest

CERT_DER = b"0\x82\x01\x0bfake-service-account-ca"


def make_pem(der: bytes = CERT_DER) -> bytes:
    body = base64.b64encode(der).decode("ascii")
    lines = [body[i : i + 64] for i in range(0, len(body), 64)]
    return ("-----BEGIN CERTIFICATE-----\n" + "\n".join(lines) + "\n-----END CERTIFICATE-----\n").encode("ascii")


@pytest.fixture
def ca_pem() -> bytes:
    return make_pem()


@pytest.fixture
def sa_dir(tmp_path: Path, ca_pem: bytes) -> Path:
    directory = tmp_path / "serviceaccount"
    directory.mkdir()
    (directory / "ca.crt").write_bytes(ca_pem)
    (directory / "token").write_bytes(b"s3cr3t-token\n")
    return directory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "KUBEAUDIT_CONFIG",
        "KUBEAUDIT_CREDENTIALS_DIR",
        "KUBEAUDIT_VERSION_URL",
        "KUBEAUDIT_REQUEST_TIMEOUT",
        "KUBEAUDIT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
