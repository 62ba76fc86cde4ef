"""
Core primitives: signing, the XML codec, actions, transports and the dispatcher.
"""

from .action import (
    Action,
    HTTPMethod,
    decode_json,
    new_action,
    with_body,
    with_decode,
    with_method,
    with_query,
    with_tls,
    with_upload_form,
    with_wxml,
)
from .client import Client
from .config import ClientConfig, ClientParameters, load_client_config
from .context import Context, background, with_timeout
from .crypto import MessageCrypto
from .environment import Environment, build_environment, load_env_file
from .errors import (
    Cancelled,
    ConfigurationError,
    DeadlineExceeded,
    DecodeError,
    MalformedPayload,
    SignatureMismatch,
    TransportError,
    UploadFetchError,
    WeChatError,
)
from .nonce import random_nonce
from .signing import (
    SignType,
    jssdk_signature,
    message_signature,
    sign,
    verify,
    verify_server_signature,
)
from .transport import RequestsTransport, Transport
from .upload import UploadForm, new_upload_form, with_extra_field, with_resource_url
from .wxml import decode_wxml, encode_wxml

__all__ = [
    "Action",
    "Cancelled",
    "Client",
    "ClientConfig",
    "ClientParameters",
    "ConfigurationError",
    "Context",
    "DeadlineExceeded",
    "DecodeError",
    "Environment",
    "HTTPMethod",
    "MalformedPayload",
    "MessageCrypto",
    "RequestsTransport",
    "SignType",
    "SignatureMismatch",
    "Transport",
    "TransportError",
    "UploadFetchError",
    "UploadForm",
    "WeChatError",
    "background",
    "build_environment",
    "decode_json",
    "decode_wxml",
    "encode_wxml",
    "jssdk_signature",
    "load_client_config",
    "load_env_file",
    "message_signature",
    "new_action",
    "new_upload_form",
    "random_nonce",
    "sign",
    "verify",
    "verify_server_signature",
    "with_body",
    "with_decode",
    "with_extra_field",
    "with_method",
    "with_query",
    "with_resource_url",
    "with_timeout",
    "with_tls",
    "with_upload_form",
    "with_wxml",
]
