"""
Public facade for the WeChat SDK.

The most useful pieces are re-exported here so integrators can
``from wechat_sdk import ...`` without navigating the package.
"""

from .api import create_client, create_merchant, create_official_account
from .core import (
    Action,
    Cancelled,
    Client,
    ClientConfig,
    ClientParameters,
    ConfigurationError,
    Context,
    DeadlineExceeded,
    DecodeError,
    HTTPMethod,
    MalformedPayload,
    MessageCrypto,
    RequestsTransport,
    SignType,
    SignatureMismatch,
    Transport,
    TransportError,
    UploadFetchError,
    UploadForm,
    WeChatError,
    background,
    decode_wxml,
    encode_wxml,
    load_client_config,
    new_action,
    new_upload_form,
    sign,
    verify,
    verify_server_signature,
    with_timeout,
)
from .mch import Merchant, Refund, UnifiedOrder
from .oa import AccessToken, AuthToken, Media, OfficialAccount, Scope, Ticket, UserInfo

__all__ = (
    "AccessToken",
    "Action",
    "AuthToken",
    "Cancelled",
    "Client",
    "ClientConfig",
    "ClientParameters",
    "ConfigurationError",
    "Context",
    "DeadlineExceeded",
    "DecodeError",
    "HTTPMethod",
    "MalformedPayload",
    "Media",
    "Merchant",
    "MessageCrypto",
    "OfficialAccount",
    "Refund",
    "RequestsTransport",
    "Scope",
    "SignType",
    "SignatureMismatch",
    "Ticket",
    "Transport",
    "TransportError",
    "UnifiedOrder",
    "UploadFetchError",
    "UploadForm",
    "UserInfo",
    "WeChatError",
    "background",
    "create_client",
    "create_merchant",
    "create_official_account",
    "decode_wxml",
    "encode_wxml",
    "load_client_config",
    "new_action",
    "new_upload_form",
    "sign",
    "verify",
    "verify_server_signature",
    "with_timeout",
)

__version__ = "0.1.0"
