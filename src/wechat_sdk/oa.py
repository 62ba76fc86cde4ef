"""
Official Account (公众号) APIs: web authorization, access tokens, messaging,
media upload and callback verification.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import quote_plus

from .core.action import (
    HTTPMethod,
    decode_json,
    new_action,
    with_body,
    with_decode,
    with_method,
    with_query,
    with_upload_form,
)
from .core.client import NONCE_SIZE, Client
from .core.config import ClientConfig
from .core.context import Context
from .core.crypto import MessageCrypto
from .core.errors import ConfigurationError, MalformedPayload, SignatureMismatch
from .core.nonce import NonceFunc, random_nonce
from .core.signing import jssdk_signature, message_signature, verify_server_signature
from .core.transport import Transport
from .core.upload import with_resource_url
from .core.wxml import WXML, decode_wxml, encode_wxml

__all__ = [
    "AccessToken",
    "AuthToken",
    "Media",
    "OfficialAccount",
    "Scope",
    "Ticket",
    "UserInfo",
]

AUTH_URL = "https://open.weixin.qq.com/connect/oauth2/authorize"
SNS_ACCESS_TOKEN_URL = "https://api.weixin.qq.com/sns/oauth2/access_token"
SNS_REFRESH_TOKEN_URL = "https://api.weixin.qq.com/sns/oauth2/refresh_token"
SNS_USERINFO_URL = "https://api.weixin.qq.com/sns/userinfo"
CGI_TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"
TEMPLATE_SEND_URL = "https://api.weixin.qq.com/cgi-bin/message/template/send"
MEDIA_UPLOAD_URL = "https://api.weixin.qq.com/cgi-bin/media/upload"
TICKET_URL = "https://api.weixin.qq.com/cgi-bin/ticket/getticket"


class Scope(str, Enum):
    BASE = "snsapi_base"
    USERINFO = "snsapi_userinfo"

    @classmethod
    def parse(cls, value: Union[str, "Scope"]) -> "Scope":
        if isinstance(value, Scope):
            return value
        name = value.strip().lower()
        if not name.startswith("snsapi_"):
            name = "snsapi_" + name
        return cls(name)


@dataclass(frozen=True)
class AuthToken:
    """Web authorization token issued for one user."""

    access_token: str
    refresh_token: str
    expires_in: int
    openid: str
    scope: str
    unionid: str = ""

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "AuthToken":
        return cls(
            access_token=str(payload.get("access_token", "")),
            refresh_token=str(payload.get("refresh_token", "")),
            expires_in=int(payload.get("expires_in", 0)),
            openid=str(payload.get("openid", "")),
            scope=str(payload.get("scope", "")),
            unionid=str(payload.get("unionid", "")),
        )


@dataclass(frozen=True)
class AccessToken:
    """Application access token from the client-credential grant."""

    token: str
    expires_in: int

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "AccessToken":
        return cls(
            token=str(payload.get("access_token", "")),
            expires_in=int(payload.get("expires_in", 0)),
        )


@dataclass(frozen=True)
class UserInfo:
    openid: str
    nickname: str
    sex: int
    province: str
    city: str
    country: str
    headimgurl: str
    privilege: Tuple[str, ...] = ()
    unionid: str = ""

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "UserInfo":
        return cls(
            openid=str(payload.get("openid", "")),
            nickname=str(payload.get("nickname", "")),
            sex=int(payload.get("sex", 0)),
            province=str(payload.get("province", "")),
            city=str(payload.get("city", "")),
            country=str(payload.get("country", "")),
            headimgurl=str(payload.get("headimgurl", "")),
            privilege=tuple(payload.get("privilege") or ()),
            unionid=str(payload.get("unionid", "")),
        )


@dataclass(frozen=True)
class Media:
    type: str
    media_id: str
    created_at: int

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "Media":
        return cls(
            type=str(payload.get("type", "")),
            media_id=str(payload.get("media_id") or payload.get("thumb_media_id", "")),
            created_at=int(payload.get("created_at", 0)),
        )


@dataclass(frozen=True)
class Ticket:
    ticket: str
    expires_in: int

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "Ticket":
        return cls(
            ticket=str(payload.get("ticket", "")),
            expires_in=int(payload.get("expires_in", 0)),
        )


def _json_decoder(factory: Callable[[Dict[str, Any]], Any]) -> Callable[[bytes], Any]:
    def decode(resp: bytes) -> Any:
        return factory(decode_json(resp))

    return decode


class OfficialAccount:
    """
    Official Account client.

    Tokens are returned to the caller, never cached; storing and refreshing
    them is the caller's job.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[Transport] = None,
        nonce: NonceFunc = random_nonce,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.client = Client(config, transport=transport, nonce=nonce)
        self._nonce = nonce
        self._clock = clock
        self._crypto: Optional[MessageCrypto] = None

    @property
    def crypto(self) -> MessageCrypto:
        if self._crypto is None:
            self._crypto = MessageCrypto(self.config.appid, self.config.encoding_aes_key)
        return self._crypto

    def auth_url(self, scope: Union[Scope, str], redirect_uri: str) -> str:
        """
        Build the web authorization URL users are redirected to.

        A random ``state`` is included on every call.
        """
        return (
            f"{AUTH_URL}?appid={self.config.appid}"
            f"&redirect_uri={quote_plus(redirect_uri)}"
            f"&response_type=code&scope={Scope.parse(scope).value}"
            f"&state={self._nonce(NONCE_SIZE)}#wechat_redirect"
        )

    def code_to_auth_token(self, ctx: Optional[Context], code: str) -> AuthToken:
        action = new_action(
            SNS_ACCESS_TOKEN_URL,
            with_query("appid", self.config.appid),
            with_query("secret", self.config.secret),
            with_query("code", code),
            with_query("grant_type", "authorization_code"),
            with_decode(_json_decoder(AuthToken.from_response)),
        )
        return self.client.execute(ctx, action)

    def refresh_auth_token(self, ctx: Optional[Context], refresh_token: str) -> AuthToken:
        action = new_action(
            SNS_REFRESH_TOKEN_URL,
            with_query("appid", self.config.appid),
            with_query("grant_type", "refresh_token"),
            with_query("refresh_token", refresh_token),
            with_decode(_json_decoder(AuthToken.from_response)),
        )
        return self.client.execute(ctx, action)

    def access_token(self, ctx: Optional[Context]) -> AccessToken:
        action = new_action(
            CGI_TOKEN_URL,
            with_query("grant_type", "client_credential"),
            with_query("appid", self.config.appid),
            with_query("secret", self.config.secret),
            with_decode(_json_decoder(AccessToken.from_response)),
        )
        return self.client.execute(ctx, action)

    def user_info(
        self,
        ctx: Optional[Context],
        access_token: str,
        openid: str,
        lang: str = "zh_CN",
    ) -> UserInfo:
        """Fetch the profile of a user who granted the ``snsapi_userinfo`` scope."""
        action = new_action(
            SNS_USERINFO_URL,
            with_query("openid", openid),
            with_query("lang", lang),
            with_decode(_json_decoder(UserInfo.from_response)),
        )
        return self.client.execute(ctx, action, access_token)

    def send_template_message(
        self,
        ctx: Optional[Context],
        access_token: str,
        message: Mapping[str, Any],
    ) -> int:
        body = json.dumps(message, ensure_ascii=False).encode("utf-8")
        action = new_action(
            TEMPLATE_SEND_URL,
            with_method(HTTPMethod.POST),
            with_body(lambda: body),
            with_decode(_json_decoder(lambda payload: int(payload.get("msgid", 0)))),
        )
        return self.client.execute(ctx, action, access_token)

    def upload_media(
        self,
        ctx: Optional[Context],
        access_token: str,
        media_type: str,
        path: str,
        resource_url: Optional[str] = None,
    ) -> Media:
        upload_options = [with_resource_url(resource_url)] if resource_url else []
        action = new_action(
            MEDIA_UPLOAD_URL,
            with_method(HTTPMethod.UPLOAD),
            with_query("type", media_type),
            with_upload_form("media", path, *upload_options),
            with_decode(_json_decoder(Media.from_response)),
        )
        return self.client.execute(ctx, action, access_token)

    def jsapi_ticket(self, ctx: Optional[Context], access_token: str) -> Ticket:
        action = new_action(
            TICKET_URL,
            with_query("type", "jsapi"),
            with_decode(_json_decoder(Ticket.from_response)),
        )
        return self.client.execute(ctx, action, access_token)

    def jssdk_config(self, ticket: str, url: str) -> Dict[str, str]:
        nonce = self._nonce(NONCE_SIZE)
        timestamp = str(int(self._clock()))
        return {
            "appId": self.config.appid,
            "nonceStr": nonce,
            "timestamp": timestamp,
            "signature": jssdk_signature(ticket, nonce, timestamp, url),
        }

    def _server_token(self) -> str:
        if not self.config.server_token:
            raise ConfigurationError("WECHAT_SERVER_TOKEN is required for callback verification")
        return self.config.server_token

    def verify_server(self, signature: str, timestamp: str, nonce: str) -> bool:
        return verify_server_signature(self._server_token(), signature, timestamp, nonce)

    def decrypt_event(
        self,
        msg_signature: str,
        timestamp: str,
        nonce: str,
        body: bytes,
    ) -> WXML:
        """
        Authenticate and decrypt a safe-mode callback body.

        Raises :class:`SignatureMismatch` when ``msg_signature`` does not match.
        """
        envelope = decode_wxml(body)
        encrypted = envelope.get("Encrypt")
        if not isinstance(encrypted, bytes) or not encrypted:
            raise MalformedPayload("Callback body has no Encrypt field")

        expected = message_signature(self._server_token(), timestamp, nonce, encrypted.decode("utf-8"))
        if expected != (msg_signature or "").lower():
            logging.warning("Rejecting callback with mismatched msg_signature")
            raise SignatureMismatch("Callback msg_signature mismatch")

        return decode_wxml(self.crypto.decrypt(encrypted))

    def encrypt_reply(
        self,
        message: Mapping[str, Any],
        timestamp: Optional[str] = None,
        nonce: Optional[str] = None,
    ) -> bytes:
        timestamp = timestamp or str(int(self._clock()))
        nonce = nonce or self._nonce(NONCE_SIZE)
        encrypted = self.crypto.encrypt(
            encode_wxml(message),
            self._nonce(NONCE_SIZE).encode("utf-8"),
        )
        return encode_wxml(
            {
                "Encrypt": encrypted,
                "MsgSignature": message_signature(
                    self._server_token(), timestamp, nonce, encrypted.decode("utf-8")
                ),
                "TimeStamp": timestamp,
                "Nonce": nonce,
            }
        )
