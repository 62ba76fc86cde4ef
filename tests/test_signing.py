from __future__ import annotations

import hashlib
import hmac

import pytest

from wechat_sdk.core.errors import ConfigurationError
from wechat_sdk.core.signing import (
    SignType,
    jssdk_signature,
    message_signature,
    sign,
    verify,
    verify_server_signature,
)

KEY = "192006250b4c09247ec02edce69f6a2d"


def test_sign_md5_skips_empty_and_sign_fields() -> None:
    fields = {
        "mch_id": "10000100",
        "appid": "wxd930ea5d5a258f4f",
        "body": "test",
        "device_info": "",
        "nonce_str": "ibuaiVcKdpRxkhJA",
        "sign": "IGNORED",
        "attach": None,
    }
    canonical = (
        "appid=wxd930ea5d5a258f4f&body=test&mch_id=10000100"
        f"&nonce_str=ibuaiVcKdpRxkhJA&key={KEY}"
    )

    signature = sign(fields, KEY)

    assert signature == hashlib.md5(canonical.encode()).hexdigest().upper()
    assert len(signature) == 32
    assert signature == signature.upper()


def test_sign_hmac_sha256_uses_key_as_hmac_secret() -> None:
    fields = [("b", "2"), ("a", "1")]
    expected = hmac.new(KEY.encode(), f"a=1&b=2&key={KEY}".encode(), hashlib.sha256).hexdigest()

    signature = sign(fields, KEY, SignType.HMAC_SHA256)

    assert signature == expected.upper()
    assert len(signature) == 64


def test_sign_empty_fields_still_hashes_key() -> None:
    assert sign({}, KEY) == hashlib.md5(f"key={KEY}".encode()).hexdigest().upper()


def test_verify_accepts_own_signature_and_rejects_tampering() -> None:
    fields = {"appid": "APPID", "total_fee": "1", "out_trade_no": "T-1"}
    signature = sign(fields, KEY, "HMAC-SHA256")

    assert verify(fields, signature, KEY, "HMAC-SHA256") is True
    assert verify(fields, signature.lower(), KEY, "HMAC-SHA256") is True
    assert verify({**fields, "total_fee": "100"}, signature, KEY, "HMAC-SHA256") is False
    assert verify(fields, signature, KEY, SignType.MD5) is False


def test_verify_rejects_non_ascii_signature() -> None:
    assert verify({"a": "1"}, "签名", KEY) is False
    assert verify({"a": "1"}, "", KEY) is False


def test_sign_type_parse() -> None:
    assert SignType.parse("md5") is SignType.MD5
    assert SignType.parse("hmac_sha256") is SignType.HMAC_SHA256
    with pytest.raises(ConfigurationError):
        SignType.parse("SHA1")


def test_verify_server_signature_fixture() -> None:
    assert verify_server_signature(
        "2faf43d6343a802b6073aae5b3f2f109",
        "ffb882ae55647757d3b807ff0e9b6098dfc2bc57",
        "1606902086",
        "1246833592",
    )
    assert verify_server_signature(
        "2faf43d6343a802b6073aae5b3f2f109",
        "FFB882AE55647757D3B807FF0E9B6098DFC2BC57",
        "1606902086",
        "1246833592",
    )
    assert not verify_server_signature(
        "2faf43d6343a802b6073aae5b3f2f109",
        "ffb882ae55647757d3b807ff0e9b6098dfc2bc57",
        "1606902087",
        "1246833592",
    )


def test_message_signature_sorts_all_four_parts() -> None:
    parts = ["token", "1606902086", "nonce", "ENCRYPTED"]
    expected = hashlib.sha1("".join(sorted(parts)).encode()).hexdigest()

    assert message_signature("token", "1606902086", "nonce", "ENCRYPTED") == expected


def test_jssdk_signature_drops_url_fragment() -> None:
    payload = (
        "jsapi_ticket=TICKET&noncestr=Wm3WZYTPz0wzccnW&timestamp=1414587457"
        "&url=http://mp.weixin.qq.com?params=value"
    )
    expected = hashlib.sha1(payload.encode()).hexdigest()

    assert (
        jssdk_signature("TICKET", "Wm3WZYTPz0wzccnW", 1414587457, "http://mp.weixin.qq.com?params=value#top")
        == expected
    )
