"""
WeChat Pay merchant APIs (XML, v2): order creation and query, refunds, JSAPI
payment parameters and payment notifications.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .core.action import HTTPMethod, new_action, with_decode, with_method, with_tls, with_wxml
from .core.client import NONCE_SIZE, Client
from .core.config import ClientConfig
from .core.context import Context
from .core.errors import ConfigurationError, DecodeError, SignatureMismatch
from .core.nonce import NonceFunc, random_nonce
from .core.signing import SIGN_FIELD, SignType, sign, verify
from .core.transport import Transport
from .core.wxml import decode_wxml, encode_wxml

__all__ = [
    "Merchant",
    "Refund",
    "UnifiedOrder",
]

UNIFIED_ORDER_URL = "https://api.mch.weixin.qq.com/pay/unifiedorder"
ORDER_QUERY_URL = "https://api.mch.weixin.qq.com/pay/orderquery"
CLOSE_ORDER_URL = "https://api.mch.weixin.qq.com/pay/closeorder"
REFUND_URL = "https://api.mch.weixin.qq.com/secapi/pay/refund"

SUCCESS = "SUCCESS"
FAIL = "FAIL"

PayResult = Dict[str, str]


def _base_fields(appid: str, mchid: str, nonce: str) -> List[Tuple[str, str]]:
    return [("appid", appid), ("mch_id", mchid), ("nonce_str", nonce)]


@dataclass(frozen=True)
class UnifiedOrder:
    body: str
    out_trade_no: str
    total_fee: int
    spbill_create_ip: str
    notify_url: str
    trade_type: str = "JSAPI"
    openid: str = ""
    product_id: str = ""
    detail: str = ""
    attach: str = ""
    fee_type: str = ""
    time_start: str = ""
    time_expire: str = ""
    goods_tag: str = ""

    def fields(self, appid: str, mchid: str, nonce: str) -> Dict[str, str]:
        pairs = _base_fields(appid, mchid, nonce) + [
            ("body", self.body),
            ("out_trade_no", self.out_trade_no),
            ("total_fee", str(self.total_fee)),
            ("spbill_create_ip", self.spbill_create_ip),
            ("notify_url", self.notify_url),
            ("trade_type", self.trade_type),
            ("openid", self.openid),
            ("product_id", self.product_id),
            ("detail", self.detail),
            ("attach", self.attach),
            ("fee_type", self.fee_type),
            ("time_start", self.time_start),
            ("time_expire", self.time_expire),
            ("goods_tag", self.goods_tag),
        ]
        return {key: value for key, value in pairs if value}


@dataclass(frozen=True)
class Refund:
    out_refund_no: str
    total_fee: int
    refund_fee: int
    transaction_id: str = ""
    out_trade_no: str = ""
    refund_desc: str = ""
    notify_url: str = ""

    def fields(self, appid: str, mchid: str, nonce: str) -> Dict[str, str]:
        if not self.transaction_id and not self.out_trade_no:
            raise ValueError("Refund requires transaction_id or out_trade_no")
        pairs = _base_fields(appid, mchid, nonce) + [
            ("transaction_id", self.transaction_id),
            ("out_trade_no", self.out_trade_no),
            ("out_refund_no", self.out_refund_no),
            ("total_fee", str(self.total_fee)),
            ("refund_fee", str(self.refund_fee)),
            ("refund_desc", self.refund_desc),
            ("notify_url", self.notify_url),
        ]
        return {key: value for key, value in pairs if value}


def _payload_sign_type(result: PayResult, default: SignType) -> SignType:
    raw = result.get("sign_type")
    if not raw:
        return default
    try:
        return SignType.parse(raw)
    except ConfigurationError as exc:
        # remote value, not local configuration
        raise SignatureMismatch(f"Unsupported sign_type '{raw}' in payload") from exc


def _xml_decoder(apikey: str, sign_type: SignType) -> Callable[[bytes], PayResult]:
    def decode(resp: bytes) -> PayResult:
        result = {key: str(value) for key, value in decode_wxml(resp, binary_fields=()).items()}
        if result.get("return_code") != SUCCESS:
            raise DecodeError(result.get("return_code", FAIL), result.get("return_msg", ""))

        signature = result.get(SIGN_FIELD)
        if signature and not verify(result, signature, apikey, _payload_sign_type(result, sign_type)):
            raise SignatureMismatch("Response signature mismatch")

        if result.get("result_code") == FAIL:
            raise DecodeError(result.get("err_code", FAIL), result.get("err_code_des", ""))
        return result

    return decode


class Merchant:
    """
    WeChat Pay merchant client.

    Every request is signed with the merchant API key; refunds additionally
    need the merchant certificate pair.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[Transport] = None,
        tls_transport: Optional[Transport] = None,
        nonce: NonceFunc = random_nonce,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not config.mchid or not config.apikey:
            raise ConfigurationError("WECHAT_MCHID and WECHAT_APIKEY are required for merchant APIs")
        self.config = config
        self.client = Client(
            config,
            transport=transport,
            tls_transport=tls_transport,
            nonce=nonce,
        )
        self._nonce = nonce
        self._clock = clock

    def _decoder(self) -> Callable[[bytes], PayResult]:
        return _xml_decoder(self.config.apikey, self.config.sign_type)

    def _sign_type_field(self) -> Dict[str, str]:
        if self.config.sign_type is SignType.MD5:
            return {}
        return {"sign_type": self.config.sign_type.value}

    def unified_order(self, ctx: Optional[Context], order: UnifiedOrder) -> PayResult:
        """Create a prepaid order; the result carries ``prepay_id`` (and ``code_url`` for NATIVE)."""

        def build(appid: str, mchid: str, nonce: str) -> Dict[str, str]:
            return {**order.fields(appid, mchid, nonce), **self._sign_type_field()}

        action = new_action(
            UNIFIED_ORDER_URL,
            with_method(HTTPMethod.POST),
            with_wxml(build),
            with_decode(self._decoder()),
        )
        logging.info("Creating order %s", order.out_trade_no)
        return self.client.execute(ctx, action)

    def query_order(
        self,
        ctx: Optional[Context],
        *,
        transaction_id: Optional[str] = None,
        out_trade_no: Optional[str] = None,
    ) -> PayResult:
        if not transaction_id and not out_trade_no:
            raise ValueError("query_order requires transaction_id or out_trade_no")

        def build(appid: str, mchid: str, nonce: str) -> Dict[str, str]:
            fields = dict(_base_fields(appid, mchid, nonce))
            if transaction_id:
                fields["transaction_id"] = transaction_id
            else:
                fields["out_trade_no"] = out_trade_no or ""
            fields.update(self._sign_type_field())
            return fields

        action = new_action(
            ORDER_QUERY_URL,
            with_method(HTTPMethod.POST),
            with_wxml(build),
            with_decode(self._decoder()),
        )
        return self.client.execute(ctx, action)

    def close_order(self, ctx: Optional[Context], out_trade_no: str) -> PayResult:
        def build(appid: str, mchid: str, nonce: str) -> Dict[str, str]:
            fields = dict(_base_fields(appid, mchid, nonce))
            fields["out_trade_no"] = out_trade_no
            fields.update(self._sign_type_field())
            return fields

        action = new_action(
            CLOSE_ORDER_URL,
            with_method(HTTPMethod.POST),
            with_wxml(build),
            with_decode(self._decoder()),
        )
        return self.client.execute(ctx, action)

    def refund(self, ctx: Optional[Context], refund: Refund) -> PayResult:
        def build(appid: str, mchid: str, nonce: str) -> Dict[str, str]:
            return {**refund.fields(appid, mchid, nonce), **self._sign_type_field()}

        action = new_action(
            REFUND_URL,
            with_method(HTTPMethod.POST),
            with_wxml(build),
            with_decode(self._decoder()),
            with_tls(),
        )
        logging.info("Requesting refund %s", refund.out_refund_no)
        return self.client.execute(ctx, action)

    def jsapi_params(self, prepay_id: str) -> Dict[str, str]:
        """Parameters for ``WeixinJSBridge.invoke('getBrandWCPayRequest', ...)``."""
        params = {
            "appId": self.config.appid,
            "timeStamp": str(int(self._clock())),
            "nonceStr": self._nonce(NONCE_SIZE),
            "package": f"prepay_id={prepay_id}",
            "signType": self.config.sign_type.value,
        }
        params["paySign"] = sign(params, self.config.apikey, self.config.sign_type)
        return params

    def verify_notify(self, body: bytes) -> PayResult:
        """
        Decode and authenticate a payment notification body.

        The caller must answer with :meth:`notify_reply` only after this
        returns; a :class:`SignatureMismatch` means the notification is forged.
        """
        result = {key: str(value) for key, value in decode_wxml(body, binary_fields=()).items()}
        if result.get("return_code") != SUCCESS:
            raise DecodeError(result.get("return_code", FAIL), result.get("return_msg", ""))

        sign_type = _payload_sign_type(result, self.config.sign_type)
        if not verify(result, result.get(SIGN_FIELD, ""), self.config.apikey, sign_type):
            logging.warning("Rejecting payment notification for %s", result.get("out_trade_no"))
            raise SignatureMismatch("Payment notification signature mismatch")
        return result

    @staticmethod
    def notify_reply(success: bool = True, message: str = "OK") -> bytes:
        return encode_wxml(
            {
                "return_code": SUCCESS if success else FAIL,
                "return_msg": message,
            }
        )
