from __future__ import annotations

import base64
import binascii
import logging
import re
import ssl
from typing import Any, Optional, Union

import requests
import urllib3
from requests.adapters import HTTPAdapter

from .errors import CertificateDecodeError, HTTPStatusError, TransportError

logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\s*(.*?)\s*-----END \1-----",
    re.DOTALL,
)


def load_certificate(raw: bytes) -> bytes:
    """Decode the first PEM block in ``raw`` and return its DER bytes."""
    match = _PEM_BLOCK.search(raw or b"")
    if match is None:
        raise CertificateDecodeError()
    body = b"".join(match.group(2).split())
    try:
        der = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CertificateDecodeError(f"unable to Decode certificate: {exc}") from exc
    if not der:
        raise CertificateDecodeError()
    logger.debug("Loading CA certificate (%s)", match.group(1).decode("ascii"))
    return der


class InsecureClientCertAdapter(HTTPAdapter):
    """Transport adapter that skips server certificate verification.

    The service account CA certificate is carried as the client certificate.
    The Python ssl module cannot present a certificate without its private
    key, so it is kept on the adapter rather than loaded into the context.
    """

    def __init__(self, client_certificate: Optional[bytes] = None, **kwargs: Any) -> None:
        self.client_certificate = client_certificate
        super().__init__(**kwargs)

    @staticmethod
    def build_ssl_context() -> ssl.SSLContext:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self.build_ssl_context()
        super().init_poolmanager(*args, **kwargs)


class SecureAPIClient:
    """Single authenticated GET against the cluster API.

    A caller-supplied session gets the insecure adapter mounted once, when
    the client is created. Without one, each fetch uses a throwaway session.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._session = session
        self.timeout = timeout
        self._adapter: Optional[InsecureClientCertAdapter] = None
        if session is not None:
            self._adapter = InsecureClientCertAdapter()
            session.mount("https://", self._adapter)

    def fetch(self, url: str, token: Union[str, bytes], ca_cert: bytes) -> bytes:
        logger.debug("getWebData url: %s", url)
        certificate = load_certificate(ca_cert)

        if isinstance(token, str):
            token = token.encode("utf-8")
        # Header value stays bytes; tokens are not required to be valid UTF-8.
        auth_token = b"Bearer " + token.strip()
        logger.debug("getWebData AUTH TOKEN --[%r]--", auth_token)

        owned = self._session is None
        if owned:
            session = requests.Session()
            session.mount("https://", InsecureClientCertAdapter(certificate))
        else:
            session = self._session
            self._adapter.client_certificate = certificate
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        try:
            try:
                resp = session.get(
                    url,
                    headers={"Authorization": auth_token},
                    verify=False,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                logger.debug("HTTP ERROR for %s: %s", url, exc)
                raise TransportError(url, exc) from exc

            if resp.status_code != 200:
                logger.debug(
                    "URL:[%s], StatusCode:[%d] Headers: %s",
                    url,
                    resp.status_code,
                    dict(resp.headers),
                )
                raise HTTPStatusError(url, resp.status_code)
            return resp.content
        finally:
            if owned:
                session.close()
