"""
Signature helpers for WeChat Pay payloads and Official Account callbacks.
"""

from __future__ import annotations

import hashlib
import hmac
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from .errors import ConfigurationError

__all__ = [
    "SIGN_FIELD",
    "SignType",
    "Fields",
    "jssdk_signature",
    "message_signature",
    "sign",
    "verify",
    "verify_server_signature",
]

SIGN_FIELD = "sign"

Fields = Union[Mapping[str, Optional[str]], Iterable[Tuple[str, Optional[str]]]]


class SignType(str, Enum):
    MD5 = "MD5"
    HMAC_SHA256 = "HMAC-SHA256"

    @classmethod
    def parse(cls, value: Union[str, "SignType"]) -> "SignType":
        if isinstance(value, SignType):
            return value
        normalized = value.strip().upper().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        raise ConfigurationError(f"Unsupported sign type '{value}'")


def _pairs(fields: Fields) -> List[Tuple[str, Optional[str]]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def _canonical_string(fields: Fields, key: str) -> str:
    kept = {
        name: value
        for name, value in _pairs(fields)
        if name != SIGN_FIELD and value is not None and value != ""
    }
    parts = [f"{name}={kept[name]}" for name in sorted(kept)]
    parts.append(f"key={key}")
    return "&".join(parts)


def sign(fields: Fields, key: str, sign_type: Union[str, SignType] = SignType.MD5) -> str:
    """
    Compute the uppercase hex signature of ``fields`` with the merchant ``key``.

    ``fields`` may be a mapping or an ordered sequence of ``(name, value)``
    pairs. The ``sign`` field and empty values never take part.
    """
    payload = _canonical_string(fields, key).encode("utf-8")
    if SignType.parse(sign_type) is SignType.HMAC_SHA256:
        digest = hmac.new(key.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    else:
        digest = hashlib.md5(payload).hexdigest()
    return digest.upper()


def verify(
    fields: Fields,
    signature: str,
    key: str,
    sign_type: Union[str, SignType] = SignType.MD5,
) -> bool:
    expected = sign(fields, key, sign_type)
    # bytes, so a non-ASCII candidate compares unequal instead of raising
    return hmac.compare_digest(
        expected.encode("utf-8"),
        (signature or "").upper().encode("utf-8"),
    )


def _sha1_sorted(items: Iterable[str]) -> str:
    return hashlib.sha1("".join(sorted(items)).encode("utf-8")).hexdigest()


def verify_server_signature(token: str, signature: str, timestamp: str, nonce: str) -> bool:
    """
    Check the ``signature`` query parameter WeChat sends when probing a callback URL.

    The digest covers exactly the server token, the timestamp and the nonce,
    sorted and concatenated; it is not a field-map signature.
    """
    return _sha1_sorted([token, timestamp, nonce]) == (signature or "").lower()


def message_signature(token: str, timestamp: str, nonce: str, encrypt: str) -> str:
    return _sha1_sorted([token, timestamp, nonce, encrypt])


def jssdk_signature(ticket: str, nonce: str, timestamp: Union[int, str], url: str) -> str:
    page_url = url.split("#", 1)[0]
    payload = f"jsapi_ticket={ticket}&noncestr={nonce}&timestamp={timestamp}&url={page_url}"
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()
