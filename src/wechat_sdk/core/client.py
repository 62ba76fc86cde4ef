"""
Dispatcher that turns an :class:`~wechat_sdk.core.action.Action` into one HTTP
round trip and a decoded result.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, wait
from typing import Any, Callable, Dict, Optional

from .action import Action, HTTPMethod
from .config import ClientConfig
from .context import Context, background
from .errors import ConfigurationError
from .nonce import NonceFunc, random_nonce
from .signing import SIGN_FIELD, SignType, sign
from .transport import RequestsTransport, Transport

__all__ = ["Client"]

NONCE_SIZE = 16

# upper bound on how long a cancelled context goes unnoticed
_POLL_INTERVAL_SECONDS = 0.05


def _spawn(call: Callable[[], bytes]) -> "Future[bytes]":
    future: "Future[bytes]" = Future()

    def runner() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(call())
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)

    threading.Thread(target=runner, name="wechat-sdk-call", daemon=True).start()
    return future


class Client:
    """
    Executes actions against WeChat through a pluggable :class:`Transport`.

    ``tls_transport`` serves actions marked with ``with_tls()``; when omitted it
    is built from the configured certificate pair, if any.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[Transport] = None,
        tls_transport: Optional[Transport] = None,
        nonce: NonceFunc = random_nonce,
    ) -> None:
        self.config = config
        self.transport = transport or RequestsTransport()
        if tls_transport is None and config.cert is not None:
            tls_transport = RequestsTransport(cert=config.cert)
        self.tls_transport = tls_transport
        self._nonce = nonce

    def _select_transport(self, action: Action) -> Transport:
        if not action.tls:
            return self.transport
        if self.tls_transport is None or not self.tls_transport.has_certificate:
            raise ConfigurationError(
                f"{action.base_url} requires a client certificate; "
                "set WECHAT_CERT_FILE and WECHAT_KEY_FILE"
            )
        return self.tls_transport

    def _signed_wxml(self, action: Action) -> Dict[str, Any]:
        if not self.config.apikey:
            raise ConfigurationError("WECHAT_APIKEY is required for signed XML requests")

        payload = action.wxml(self.config.appid, self.config.mchid, self._nonce(NONCE_SIZE))
        sign_type = self.config.sign_type
        if payload.get("sign_type"):
            sign_type = SignType.parse(payload["sign_type"])
        payload[SIGN_FIELD] = sign(payload, self.config.apikey, sign_type)
        return payload

    def _timeout(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.config.timeout_seconds
        return min(remaining, self.config.timeout_seconds)

    def _prepare(
        self,
        ctx: Context,
        action: Action,
        access_token: Optional[str],
    ) -> Callable[[], bytes]:
        transport = self._select_transport(action)
        url = action.url(access_token)
        timeout = self._timeout(ctx)

        if action.method is HTTPMethod.GET:
            return lambda: transport.get(url, timeout=timeout)

        if action.method is HTTPMethod.POST:
            if action.has_wxml:
                payload = self._signed_wxml(action)
                return lambda: transport.post_xml(url, payload, timeout=timeout)
            body = action.body()
            return lambda: transport.post(url, body, timeout=timeout)

        form = action.upload_form
        if form is None:
            raise ConfigurationError(f"{action.base_url} is an upload without an upload form")
        return lambda: transport.upload(url, form, timeout=timeout)

    def _await(self, ctx: Context, future: "Future[bytes]") -> bytes:
        while True:
            if ctx.done():
                future.cancel()
                ctx.check()

            interval = _POLL_INTERVAL_SECONDS
            remaining = ctx.remaining()
            if remaining is not None:
                interval = min(interval, remaining)

            done, _ = wait([future], timeout=interval)
            if done:
                return future.result()

    def execute(
        self,
        ctx: Optional[Context],
        action: Action,
        access_token: Optional[str] = None,
    ) -> Any:
        """
        Perform ``action`` and return whatever its decode hook produces.

        Transport and decode errors propagate unchanged; cancelling ``ctx``
        abandons the in-flight request and raises :class:`~wechat_sdk.core.errors.Cancelled`.
        """
        ctx = ctx or background()
        ctx.check()

        call = self._prepare(ctx, action, access_token)
        logging.info("Dispatching %s %s", action.method.value, action.base_url)
        raw = self._await(ctx, _spawn(call))
        logging.debug("Received %d bytes from %s", len(raw), action.base_url)
        return action.decode()(raw)
