"""
Request descriptors: one immutable ``Action`` per WeChat API call.

An action records *what* to call (URL, method, body source, decode hook);
:class:`wechat_sdk.core.client.Client` decides *how* to send it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from .errors import DecodeError, MalformedPayload
from .upload import UploadForm, UploadOption, new_upload_form

__all__ = [
    "Action",
    "ActionOption",
    "BodySupplier",
    "Decoder",
    "HTTPMethod",
    "WXMLSupplier",
    "decode_json",
    "new_action",
    "with_body",
    "with_decode",
    "with_method",
    "with_query",
    "with_tls",
    "with_upload_form",
    "with_wxml",
]

ACCESS_TOKEN_PARAM = "access_token"

WXMLSupplier = Callable[[str, str, str], Mapping[str, Any]]
BodySupplier = Callable[[], bytes]
Decoder = Callable[[bytes], Any]


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    UPLOAD = "UPLOAD"


def _no_decode(resp: bytes) -> None:
    return None


@dataclass(frozen=True)
class Action:
    base_url: str
    method: HTTPMethod = HTTPMethod.GET
    query: Tuple[Tuple[str, str], ...] = ()
    wxml_supplier: Optional[WXMLSupplier] = None
    body_supplier: Optional[BodySupplier] = None
    upload_form: Optional[UploadForm] = None
    decoder: Optional[Decoder] = None
    tls: bool = False

    def url(self, access_token: Optional[str] = None) -> str:
        params = dict(self.query)
        if access_token is not None:
            params[ACCESS_TOKEN_PARAM] = access_token
        if not params:
            return self.base_url
        return f"{self.base_url}?{urlencode(list(params.items()))}"

    @property
    def has_wxml(self) -> bool:
        return self.wxml_supplier is not None

    def wxml(self, appid: str, mchid: str, nonce: str) -> Dict[str, Any]:
        if self.wxml_supplier is None:
            return {}
        return dict(self.wxml_supplier(appid, mchid, nonce))

    def body(self) -> Optional[bytes]:
        if self.body_supplier is None:
            return None
        return self.body_supplier()

    def decode(self) -> Decoder:
        return self.decoder if self.decoder is not None else _no_decode


@dataclass
class _ActionSpec:
    method: HTTPMethod = HTTPMethod.GET
    query: Dict[str, str] = field(default_factory=dict)
    wxml_supplier: Optional[WXMLSupplier] = None
    body_supplier: Optional[BodySupplier] = None
    upload_form: Optional[UploadForm] = None
    decoder: Optional[Decoder] = None
    tls: bool = False


ActionOption = Callable[[_ActionSpec], None]


def with_method(method: HTTPMethod) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.method = HTTPMethod(method)

    return apply


def with_query(key: str, value: str) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.query[key] = value

    return apply


def with_body(supplier: BodySupplier) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.body_supplier = supplier

    return apply


def with_wxml(supplier: WXMLSupplier) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.wxml_supplier = supplier

    return apply


def with_upload_form(field_name: str, file_name: str, *options: UploadOption) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.upload_form = new_upload_form(field_name, file_name, *options)

    return apply


def with_decode(decoder: Decoder) -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.decoder = decoder

    return apply


def with_tls() -> ActionOption:
    def apply(spec: _ActionSpec) -> None:
        spec.tls = True

    return apply


def new_action(url: str, *options: ActionOption) -> Action:
    spec = _ActionSpec()
    for option in options:
        option(spec)
    return Action(
        base_url=url,
        method=spec.method,
        query=tuple(spec.query.items()),
        wxml_supplier=spec.wxml_supplier,
        body_supplier=spec.body_supplier,
        upload_form=spec.upload_form,
        decoder=spec.decoder,
        tls=spec.tls,
    )


def decode_json(resp: bytes) -> Dict[str, Any]:
    """
    Parse a JSON API response, surfacing a non-zero ``errcode`` as :class:`DecodeError`.
    """
    try:
        payload = json.loads(resp)
    except ValueError as exc:
        raise MalformedPayload(f"Invalid JSON payload: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedPayload("JSON payload is not an object")

    code = payload.get("errcode", 0)
    if code not in (0, "0", None):
        raise DecodeError(code, str(payload.get("errmsg", "")))
    return payload
