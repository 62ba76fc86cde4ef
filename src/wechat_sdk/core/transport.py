"""
HTTP transports used by :class:`wechat_sdk.core.client.Client`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import requests

from .errors import TransportError
from .upload import UploadForm
from .wxml import encode_wxml

__all__ = ["RequestsTransport", "Transport"]

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
XML_CONTENT_TYPE = "text/xml; charset=utf-8"


class Transport(ABC):
    """
    Capability that performs one HTTP round trip and returns the raw body.
    """

    @property
    def has_certificate(self) -> bool:
        return False

    @abstractmethod
    def get(self, url: str, *, timeout: Optional[float] = None) -> bytes:
        ...

    @abstractmethod
    def post(
        self,
        url: str,
        body: Optional[bytes],
        *,
        content_type: str = JSON_CONTENT_TYPE,
        timeout: Optional[float] = None,
    ) -> bytes:
        ...

    @abstractmethod
    def post_xml(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        ...

    @abstractmethod
    def upload(
        self,
        url: str,
        form: UploadForm,
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        ...


class RequestsTransport(Transport):
    """
    :class:`Transport` backed by a ``requests.Session``.

    ``cert`` is a ``(cert_file, key_file)`` pair attached to every request for
    the merchant APIs that require mutual TLS.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        cert: Optional[Tuple[str, str]] = None,
    ) -> None:
        self.session = session or requests.Session()
        self._cert = cert

    @property
    def has_certificate(self) -> bool:
        return self._cert is not None

    def _send(self, method: str, url: str, timeout: Optional[float], **kwargs: Any) -> bytes:
        try:
            response = self.session.request(
                method,
                url,
                cert=self._cert,
                timeout=timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.status_code != requests.codes.ok:
            raise TransportError(
                f"WeChat responded with {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response.content

    def get(self, url: str, *, timeout: Optional[float] = None) -> bytes:
        return self._send("GET", url, timeout)

    def post(
        self,
        url: str,
        body: Optional[bytes],
        *,
        content_type: str = JSON_CONTENT_TYPE,
        timeout: Optional[float] = None,
    ) -> bytes:
        return self._send(
            "POST",
            url,
            timeout,
            data=body,
            headers={"Content-Type": content_type},
        )

    def post_xml(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        return self.post(
            url,
            encode_wxml(payload),
            content_type=XML_CONTENT_TYPE,
            timeout=timeout,
        )

    def upload(
        self,
        url: str,
        form: UploadForm,
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        content = form.buffer(session=self.session, timeout=timeout)
        logging.debug("Uploading %d bytes as %s", len(content), form.file_name)
        return self._send(
            "POST",
            url,
            timeout,
            files={form.field_name: (Path(form.file_name).name, content)},
            data=dict(form.extra_fields),
        )
