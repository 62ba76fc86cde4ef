from __future__ import annotations

import threading
import time

import pytest

from conftest import FakeTransport, fixed_nonce
from wechat_sdk.core.action import (
    Action,
    HTTPMethod,
    decode_json,
    new_action,
    with_body,
    with_decode,
    with_method,
    with_tls,
    with_upload_form,
    with_wxml,
)
from wechat_sdk.core.client import Client
from wechat_sdk.core.config import ClientConfig
from wechat_sdk.core.context import Context, background, with_timeout
from wechat_sdk.core.errors import (
    Cancelled,
    ConfigurationError,
    DeadlineExceeded,
    DecodeError,
    TransportError,
)
from wechat_sdk.core.signing import verify


def _order_wxml(appid: str, mchid: str, nonce: str) -> dict:
    return {"appid": appid, "mch_id": mchid, "nonce_str": nonce, "total_fee": "1"}


def test_get_passes_access_token_and_decodes(config: ClientConfig) -> None:
    transport = FakeTransport(b'{"errcode":0,"menu":{}}')
    client = Client(config, transport=transport)
    action = new_action(
        "https://api.weixin.qq.com/cgi-bin/menu/get",
        with_decode(decode_json),
    )

    result = client.execute(background(), action, "TOKEN")

    assert result == {"errcode": 0, "menu": {}}
    assert transport.calls == [
        {
            "method": "GET",
            "url": "https://api.weixin.qq.com/cgi-bin/menu/get?access_token=TOKEN",
            "timeout": config.timeout_seconds,
        }
    ]


def test_post_wxml_is_built_with_credentials_and_signed(config: ClientConfig) -> None:
    transport = FakeTransport(b"<xml></xml>")
    client = Client(config, transport=transport, nonce=fixed_nonce)
    action = new_action(
        "https://api.mch.weixin.qq.com/pay/orderquery",
        with_method(HTTPMethod.POST),
        with_wxml(_order_wxml),
    )

    client.execute(None, action)

    payload = transport.calls[0]["payload"]
    assert transport.calls[0]["method"] == "POST_XML"
    assert payload["appid"] == "APPID"
    assert payload["mch_id"] == "10000100"
    assert payload["nonce_str"] == "N" * 16
    assert verify(payload, payload["sign"], config.apikey)


def test_post_wxml_honours_payload_sign_type(config: ClientConfig) -> None:
    transport = FakeTransport(b"<xml></xml>")
    client = Client(config, transport=transport, nonce=fixed_nonce)

    def build(appid: str, mchid: str, nonce: str) -> dict:
        return {**_order_wxml(appid, mchid, nonce), "sign_type": "HMAC-SHA256"}

    client.execute(None, new_action("https://example.com", with_method(HTTPMethod.POST), with_wxml(build)))

    payload = transport.calls[0]["payload"]
    assert len(payload["sign"]) == 64
    assert verify(payload, payload["sign"], config.apikey, "HMAC-SHA256")


def test_post_wxml_without_apikey_is_configuration_error() -> None:
    transport = FakeTransport()
    client = Client(ClientConfig(appid="APPID"), transport=transport)
    action = new_action("https://example.com", with_method(HTTPMethod.POST), with_wxml(_order_wxml))

    with pytest.raises(ConfigurationError):
        client.execute(None, action)
    assert transport.calls == []


def test_post_body_is_sent_raw(config: ClientConfig) -> None:
    transport = FakeTransport(b'{"errcode":0}')
    client = Client(config, transport=transport)
    action = new_action(
        "https://api.weixin.qq.com/cgi-bin/message/custom/send",
        with_method(HTTPMethod.POST),
        with_body(lambda: b'{"touser":"OPENID"}'),
    )

    assert client.execute(None, action, "TOKEN") is None
    assert transport.calls[0]["body"] == b'{"touser":"OPENID"}'


def test_upload_passes_form_to_transport(config: ClientConfig) -> None:
    transport = FakeTransport(b"{}")
    client = Client(config, transport=transport)
    action = new_action(
        "https://api.weixin.qq.com/cgi-bin/media/upload",
        with_method(HTTPMethod.UPLOAD),
        with_upload_form("media", "a.jpg"),
    )

    client.execute(None, action, "TOKEN")

    call = transport.calls[0]
    assert call["method"] == "UPLOAD"
    assert call["form"].field_name == "media"


def test_upload_without_form_is_configuration_error(config: ClientConfig) -> None:
    client = Client(config, transport=FakeTransport())

    with pytest.raises(ConfigurationError):
        client.execute(None, Action("https://example.com", method=HTTPMethod.UPLOAD))


def test_tls_action_without_certificate_fails_before_network(config: ClientConfig) -> None:
    transport = FakeTransport()
    client = Client(config, transport=transport)
    action = new_action("https://api.mch.weixin.qq.com/secapi/pay/refund", with_tls())

    with pytest.raises(ConfigurationError):
        client.execute(None, action)
    assert transport.calls == []


def test_tls_action_uses_certificate_transport(config: ClientConfig) -> None:
    plain = FakeTransport(b"plain")
    secure = FakeTransport(b"secure", certificate=True)
    client = Client(config, transport=plain, tls_transport=secure)
    action = new_action(
        "https://api.mch.weixin.qq.com/secapi/pay/refund",
        with_tls(),
        with_decode(lambda resp: resp),
    )

    assert client.execute(None, action) == b"secure"
    assert plain.calls == []


def test_tls_transport_built_from_certificate_config() -> None:
    config = ClientConfig(appid="APPID", cert_file="cert.pem", key_file="key.pem")
    client = Client(config, transport=FakeTransport())

    assert client.tls_transport is not None
    assert client.tls_transport.has_certificate is True


def test_decode_errors_propagate(config: ClientConfig) -> None:
    client = Client(config, transport=FakeTransport(b'{"errcode":40001,"errmsg":"invalid credential"}'))
    action = new_action("https://api.weixin.qq.com/cgi-bin/menu/get", with_decode(decode_json))

    with pytest.raises(DecodeError) as excinfo:
        client.execute(None, action, "TOKEN")
    assert excinfo.value.code == 40001


def test_transport_errors_propagate_unchanged(config: ClientConfig) -> None:
    failure = TransportError("boom", status_code=500)

    class FailingTransport(FakeTransport):
        def get(self, url, *, timeout=None):
            raise failure

    client = Client(config, transport=FailingTransport())

    with pytest.raises(TransportError) as excinfo:
        client.execute(None, new_action("https://example.com"))
    assert excinfo.value is failure


def test_cancelled_context_skips_the_call(config: ClientConfig) -> None:
    transport = FakeTransport()
    client = Client(config, transport=transport)
    ctx = Context()
    ctx.cancel()

    with pytest.raises(Cancelled):
        client.execute(ctx, new_action("https://example.com"))
    assert transport.calls == []


def test_cancel_returns_promptly_while_transport_blocks(config: ClientConfig) -> None:
    gate = threading.Event()
    transport = FakeTransport(b"late", gate=gate)
    client = Client(config, transport=transport)
    ctx = Context()
    timer = threading.Timer(0.1, ctx.cancel)
    timer.start()

    started = time.monotonic()
    try:
        with pytest.raises(Cancelled) as excinfo:
            client.execute(ctx, new_action("https://example.com", with_decode(lambda resp: resp)))
    finally:
        gate.set()
        timer.cancel()

    assert time.monotonic() - started < 2
    assert not isinstance(excinfo.value, DeadlineExceeded)


def test_deadline_exceeded_while_transport_blocks(config: ClientConfig) -> None:
    gate = threading.Event()
    transport = FakeTransport(b"late", gate=gate)
    client = Client(config, transport=transport)

    started = time.monotonic()
    try:
        with pytest.raises(DeadlineExceeded):
            client.execute(with_timeout(0.1), new_action("https://example.com"))
    finally:
        gate.set()

    assert time.monotonic() - started < 2
    assert transport.calls[0]["timeout"] <= 0.1
