"""
Public, high-level helpers for constructing WeChat clients.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Optional, Union

from .core.client import Client
from .core.config import ClientConfig, ClientParameters, load_client_config
from .core.nonce import NonceFunc, random_nonce
from .core.signing import SignType
from .core.transport import Transport
from .mch import Merchant
from .oa import OfficialAccount

__all__ = [
    "create_client",
    "create_merchant",
    "create_official_account",
]


def _resolve_config(
    config: Optional[ClientConfig],
    *,
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> ClientConfig:
    if config is not None:
        extras = (overrides, base, parameters, *explicit.values())
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        return config
    return load_client_config(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        **explicit,
    )


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    transport: Optional[Transport] = None,
    tls_transport: Optional[Transport] = None,
    nonce: NonceFunc = random_nonce,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    appid: Optional[str] = None,
    secret: Optional[str] = None,
    mchid: Optional[str] = None,
    apikey: Optional[str] = None,
    server_token: Optional[str] = None,
    encoding_aes_key: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
    sign_type: Optional[Union[str, SignType]] = None,
    timeout_seconds: Optional[Union[float, str]] = None,
) -> Client:
    """
    Construct a bare :class:`Client` for executing hand-built actions.

    Callers can either supply a ready-made :class:`ClientConfig` or let the
    helper assemble one from environment data.
    """
    cfg = _resolve_config(
        config,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        explicit={
            "appid": appid,
            "secret": secret,
            "mchid": mchid,
            "apikey": apikey,
            "server_token": server_token,
            "encoding_aes_key": encoding_aes_key,
            "cert_file": cert_file,
            "key_file": key_file,
            "sign_type": sign_type,
            "timeout_seconds": timeout_seconds,
        },
    )
    return Client(cfg, transport=transport, tls_transport=tls_transport, nonce=nonce)


def create_official_account(
    *,
    config: Optional[ClientConfig] = None,
    transport: Optional[Transport] = None,
    nonce: NonceFunc = random_nonce,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    appid: Optional[str] = None,
    secret: Optional[str] = None,
    server_token: Optional[str] = None,
    encoding_aes_key: Optional[str] = None,
    timeout_seconds: Optional[Union[float, str]] = None,
) -> OfficialAccount:
    cfg = _resolve_config(
        config,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        explicit={
            "appid": appid,
            "secret": secret,
            "server_token": server_token,
            "encoding_aes_key": encoding_aes_key,
            "timeout_seconds": timeout_seconds,
        },
    )
    return OfficialAccount(cfg, transport=transport, nonce=nonce)


def create_merchant(
    *,
    config: Optional[ClientConfig] = None,
    transport: Optional[Transport] = None,
    tls_transport: Optional[Transport] = None,
    nonce: NonceFunc = random_nonce,
    clock: Optional[Callable[[], float]] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    appid: Optional[str] = None,
    mchid: Optional[str] = None,
    apikey: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
    sign_type: Optional[Union[str, SignType]] = None,
    timeout_seconds: Optional[Union[float, str]] = None,
) -> Merchant:
    cfg = _resolve_config(
        config,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        explicit={
            "appid": appid,
            "mchid": mchid,
            "apikey": apikey,
            "cert_file": cert_file,
            "key_file": key_file,
            "sign_type": sign_type,
            "timeout_seconds": timeout_seconds,
        },
    )
    return Merchant(
        cfg,
        transport=transport,
        tls_transport=tls_transport,
        nonce=nonce,
        clock=clock or time.time,
    )
