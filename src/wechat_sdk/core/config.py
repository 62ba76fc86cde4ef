"""
Configuration objects and helpers for WeChat clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .environment import build_environment
from .errors import ConfigurationError
from .signing import SignType

__all__ = [
    "ClientConfig",
    "ClientParameters",
    "DEFAULT_TIMEOUT_SECONDS",
    "load_client_config",
]

DEFAULT_TIMEOUT_SECONDS = 30.0
ENCODING_AES_KEY_LENGTH = 43

_PARAMETER_TO_ENV_KEY = {
    "appid": "WECHAT_APPID",
    "secret": "WECHAT_APPSECRET",
    "mchid": "WECHAT_MCHID",
    "apikey": "WECHAT_APIKEY",
    "server_token": "WECHAT_SERVER_TOKEN",
    "encoding_aes_key": "WECHAT_ENCODING_AES_KEY",
    "cert_file": "WECHAT_CERT_FILE",
    "key_file": "WECHAT_KEY_FILE",
    "sign_type": "WECHAT_SIGN_TYPE",
    "timeout_seconds": "WECHAT_TIMEOUT_SECONDS",
}


def _stringify(value: Any) -> str:
    if isinstance(value, SignType):
        return value.value
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_client_config`.
    """

    appid: Optional[str] = None
    secret: Optional[str] = None
    mchid: Optional[str] = None
    apikey: Optional[str] = None
    server_token: Optional[str] = None
    encoding_aes_key: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    sign_type: Optional[Union[str, SignType]] = None
    timeout_seconds: Optional[Union[float, str]] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _parse_timeout(raw: Union[float, str]) -> float:
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"WECHAT_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigurationError("WECHAT_TIMEOUT_SECONDS must be greater than zero")
    return timeout


@dataclass(frozen=True)
class ClientConfig:
    """
    Process-wide credentials, fixed when a client is constructed.

    Only ``appid`` is always required; the merchant key, server token and
    certificate pair are needed by the APIs that use them.
    """

    appid: str
    secret: str = ""
    mchid: str = ""
    apikey: str = ""
    server_token: str = ""
    encoding_aes_key: str = ""
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    sign_type: SignType = SignType.MD5
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.appid or not self.appid.strip():
            raise ConfigurationError("WECHAT_APPID must not be empty")
        if self.encoding_aes_key and len(self.encoding_aes_key) != ENCODING_AES_KEY_LENGTH:
            raise ConfigurationError(
                f"WECHAT_ENCODING_AES_KEY must be {ENCODING_AES_KEY_LENGTH} characters"
            )
        if bool(self.cert_file) != bool(self.key_file):
            raise ConfigurationError(
                "WECHAT_CERT_FILE and WECHAT_KEY_FILE must be provided together"
            )
        object.__setattr__(self, "sign_type", SignType.parse(self.sign_type))
        object.__setattr__(self, "timeout_seconds", _parse_timeout(self.timeout_seconds))

    @property
    def cert(self) -> Optional[Tuple[str, str]]:
        if self.cert_file and self.key_file:
            return self.cert_file, self.key_file
        return None

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        appid = values.get("WECHAT_APPID")
        if appid is None:
            raise ConfigurationError("WECHAT_APPID must be provided")

        return cls(
            appid=appid.strip(),
            secret=values.get("WECHAT_APPSECRET", "").strip(),
            mchid=values.get("WECHAT_MCHID", "").strip(),
            apikey=values.get("WECHAT_APIKEY", "").strip(),
            server_token=values.get("WECHAT_SERVER_TOKEN", "").strip(),
            encoding_aes_key=values.get("WECHAT_ENCODING_AES_KEY", "").strip(),
            cert_file=values.get("WECHAT_CERT_FILE") or None,
            key_file=values.get("WECHAT_KEY_FILE") or None,
            sign_type=values.get("WECHAT_SIGN_TYPE", SignType.MD5),
            timeout_seconds=values.get("WECHAT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
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
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.prefixed("WECHAT_"))


def load_client_config(
    *,
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
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    The configuration can be provided through environment variables, a
    ``.env`` file, direct keyword arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        appid=appid,
        secret=secret,
        mchid=mchid,
        apikey=apikey,
        server_token=server_token,
        encoding_aes_key=encoding_aes_key,
        cert_file=cert_file,
        key_file=key_file,
        sign_type=sign_type,
        timeout_seconds=timeout_seconds,
    )
