"""
Codec for the flat ``<xml>`` key/value envelope used by WeChat Pay and
Official Account callbacks.
"""

from __future__ import annotations

from typing import Any, Collection, Dict, Mapping, Union
from xml.parsers.expat import ExpatError

import xmltodict

from .errors import MalformedPayload

__all__ = ["ROOT_ELEMENT", "WXML", "decode_wxml", "encode_wxml"]

ROOT_ELEMENT = "xml"

WXML = Dict[str, Union[str, bytes]]

_CDATA_END = "]]>"


def _cdata(value: str) -> str:
    # a literal "]]>" has to straddle two sections
    escaped = value.replace(_CDATA_END, "]]]]><![CDATA[>")
    return f"<![CDATA[{escaped}]]>"


def _text(value: Union[str, bytes, int, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def encode_wxml(fields: Mapping[str, Union[str, bytes, int, None]]) -> bytes:
    parts = [f"<{ROOT_ELEMENT}>"]
    for name, value in fields.items():
        parts.append(f"<{name}>{_cdata(_text(value))}</{name}>")
    parts.append(f"</{ROOT_ELEMENT}>")
    return "".join(parts).encode("utf-8")


def _field_value(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return xmltodict.unparse({name: value}, full_document=False)


def decode_wxml(
    data: Union[bytes, str],
    binary_fields: Collection[str] = ("Encrypt",),
) -> WXML:
    """
    Parse an envelope into a flat mapping.

    Values keep their surrounding whitespace, since signatures cover the exact
    text. Fields listed in ``binary_fields`` come back as raw ``bytes`` so
    encrypted blocks are handed on exactly as received.
    """
    try:
        document = xmltodict.parse(data, strip_whitespace=False)
    except ExpatError as exc:
        raise MalformedPayload(f"Invalid XML payload: {exc}") from exc

    if not isinstance(document, dict) or len(document) != 1:
        raise MalformedPayload("XML payload has no root envelope")

    body = next(iter(document.values()))
    if body is None or (isinstance(body, str) and not body.strip()):
        return {}
    if not isinstance(body, dict):
        raise MalformedPayload("XML envelope does not contain fields")

    fields: WXML = {}
    for name, value in body.items():
        if name.startswith(("@", "#")):
            continue
        text = _field_value(name, value)
        fields[name] = text.encode("utf-8") if name in binary_fields else text
    return fields
