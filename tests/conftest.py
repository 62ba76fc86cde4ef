from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

import pytest

from wechat_sdk.core.config import ClientConfig
from wechat_sdk.core.transport import Transport
from wechat_sdk.core.upload import UploadForm


class FakeTransport(Transport):
    """Records every call and answers with a canned body."""

    def __init__(
        self,
        response: bytes = b"",
        *,
        certificate: bool = False,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.response = response
        self.certificate = certificate
        self.gate = gate
        self.calls: List[Dict[str, Any]] = []

    @property
    def has_certificate(self) -> bool:
        return self.certificate

    def _answer(self, **call: Any) -> bytes:
        self.calls.append(call)
        if self.gate is not None:
            self.gate.wait(5)
        return self.response

    def get(self, url: str, *, timeout: Optional[float] = None) -> bytes:
        return self._answer(method="GET", url=url, timeout=timeout)

    def post(
        self,
        url: str,
        body: Optional[bytes],
        *,
        content_type: str = "application/json; charset=utf-8",
        timeout: Optional[float] = None,
    ) -> bytes:
        return self._answer(method="POST", url=url, body=body, timeout=timeout)

    def post_xml(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> bytes:
        return self._answer(method="POST_XML", url=url, payload=dict(payload), timeout=timeout)

    def upload(self, url: str, form: UploadForm, *, timeout: Optional[float] = None) -> bytes:
        return self._answer(method="UPLOAD", url=url, form=form, timeout=timeout)


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        appid="APPID",
        secret="APPSECRET",
        mchid="10000100",
        apikey="192006250b4c09247ec02edce69f6a2d",
        server_token="2faf43d6343a802b6073aae5b3f2f109",
        encoding_aes_key="jxAko083VoJ3lcPXJWzcGJ0M1tFVLgdD6qAq57GJY1U",
    )


def fixed_nonce(size: int) -> str:
    return "N" * size
