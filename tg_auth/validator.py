"""
Telegram authentication data validation
───────────────────────────────────────
• Login Widget  – HMAC-SHA-256, key = SHA-256(bot_token)
• Web App       – HMAC-SHA-256, key = HMAC-SHA-256("WebAppData", bot_token)
• Third party   – Ed25519 signature made by Telegram, no bot token needed

Every ``verify_*`` call returns True or raises AuthError; the matching
``is_valid_*`` call returns a plain bool instead. ErrorKind.INVALID_ARGUMENT
always propagates, it means the API itself was misused.

See https://core.telegram.org/widgets/login#checking-authorization and
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union
from urllib.parse import parse_qsl

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from pydantic import ValidationError

from .errors import AuthError, ErrorKind
from .models import LoginWidgetData, WebAppInitData

logger = logging.getLogger(__name__)

# Telegram Ed25519 public keys used for third-party validation
PUBLIC_KEY_PROD = "e7bf03a2fa4602af4580703d88dda5bb59f32ed8b02a56c187fe7d34caed242d"
PUBLIC_KEY_TEST = "40055058a4ee38156a06562e52eece92a771bcd8346a8c4615cb7376eddf72ec"

WEB_APP_KEY = b"WebAppData"
ED25519_PUBLIC_KEY_BYTES = 32
ED25519_SIGNATURE_BYTES = 64

BotId = Union[int, str]


# ──────────────────────────────────────────────────────────
# 1.  Parsing & canonicalisation
# ──────────────────────────────────────────────────────────
def parse_init_data(init_data: str) -> Dict[str, str]:
    """
    Decode a query-string initData into a flat dict.

    Standard percent-decoding, blank values are kept, the last duplicate key
    wins. Empty input or an empty result raise MALFORMED_INPUT.
    """
    if not isinstance(init_data, str) or init_data == "":
        raise AuthError.invalid_format()

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    if not fields:
        raise AuthError.invalid_format()
    return fields


def _check_value(key: Any, value: Any) -> str:
    # True -> "1", False / None -> ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    raise AuthError.invalid_format(f"field {key!r} is not a scalar value")


def build_check_string(fields: Mapping[str, str], *, prefix: Optional[str] = None) -> str:
    """
    ``key=value`` lines sorted by key, joined with newlines.

    ``prefix`` becomes the first line and takes no part in the sort.
    """
    lines = [f"{key}={fields[key]}" for key in sorted(fields)]
    if prefix is not None:
        lines.insert(0, prefix)
    return "\n".join(lines)


# ──────────────────────────────────────────────────────────
# 2.  Secret derivation & hash check
# ──────────────────────────────────────────────────────────
def login_widget_secret(bot_token: str) -> bytes:
    return hashlib.sha256(bot_token.encode()).digest()


def web_app_secret(bot_token: str) -> bytes:
    return hmac.new(WEB_APP_KEY, bot_token.encode(), hashlib.sha256).digest()


def _check_hash(fields: Mapping[str, str], secret: bytes, received: str) -> None:
    check_string = build_check_string(fields)
    computed = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    # bytes on both sides: compare_digest rejects non-ASCII str
    if not hmac.compare_digest(computed.encode(), received.encode()):
        raise AuthError.hash_mismatch()


def _check_auth_date(fields: Mapping[str, Any], max_age: Optional[int]) -> None:
    if max_age is None:
        return

    raw = fields.get("auth_date")
    if raw is None or raw == "":
        raise AuthError(
            ErrorKind.MISSING_FIELD,
            "auth_date is required when max_age is set",
            field="auth_date",
        )
    try:
        auth_date = int(raw)
    except (TypeError, ValueError):
        raise AuthError.invalid_format("auth_date is not a unix timestamp") from None

    if time.time() - auth_date > max_age:
        raise AuthError.expired(auth_date, max_age)


# ──────────────────────────────────────────────────────────
# 3.  Third-party (Ed25519) validation – no bot token involved
# ──────────────────────────────────────────────────────────
def _bot_id_line(bot_id: BotId) -> str:
    if isinstance(bot_id, bool) or not isinstance(bot_id, (int, str)):
        raise AuthError(ErrorKind.INVALID_ARGUMENT, "bot id must be an integer or a numeric string")
    if isinstance(bot_id, int) and bot_id < 0:
        raise AuthError(ErrorKind.INVALID_ARGUMENT, "bot id must not be negative")
    if isinstance(bot_id, str) and not (bot_id.isascii() and bot_id.isdigit()):
        raise AuthError(ErrorKind.INVALID_ARGUMENT, "bot id must be an integer or a numeric string")
    return f"{bot_id}:WebAppData"


def _load_public_key(public_key_hex: str) -> Ed25519PublicKey:
    try:
        raw = bytes.fromhex(public_key_hex)
    except (TypeError, ValueError):
        raise AuthError.invalid_format("invalid public key") from None

    if len(raw) != ED25519_PUBLIC_KEY_BYTES:
        raise AuthError(
            ErrorKind.MALFORMED_INPUT,
            "invalid public key",
            expected=ED25519_PUBLIC_KEY_BYTES,
            actual=len(raw),
        )
    try:
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError:
        raise AuthError.invalid_format("invalid public key") from None


def _b64url_decode(value: str) -> bytes:
    # Telegram strips the padding
    value = value.replace("-", "+").replace("_", "/")
    value += "=" * (-len(value) % 4)
    return base64.b64decode(value, validate=True)


def verify_third_party(
    init_data: str,
    bot_id: BotId,
    public_key_hex: str = PUBLIC_KEY_PROD,
    *,
    max_age: Optional[int] = None,
) -> bool:
    """
    Check the Ed25519 ``signature`` of initData meant for a third party.

    The check string is ``"<bot_id>:WebAppData"`` followed by the sorted
    ``key=value`` lines of every field except ``hash`` and ``signature``.
    A ``hash`` field may be present; it is ignored.
    """
    prefix = _bot_id_line(bot_id)
    fields = parse_init_data(init_data)

    signature = fields.pop("signature", None)
    if signature is None:
        raise AuthError.missing_signature()
    fields.pop("hash", None)

    check_string = build_check_string(fields, prefix=prefix)
    public_key = _load_public_key(public_key_hex)

    try:
        signature_bytes = _b64url_decode(signature)
    except ValueError:
        raise AuthError.invalid_signature(reason="signature is not base64url") from None

    if len(signature_bytes) != ED25519_SIGNATURE_BYTES:
        raise AuthError.invalid_signature(
            expected=ED25519_SIGNATURE_BYTES, actual=len(signature_bytes)
        )

    try:
        public_key.verify(signature_bytes, check_string.encode())
    except InvalidSignature:
        raise AuthError.invalid_signature() from None

    _check_auth_date(fields, max_age)
    return True


def is_valid_third_party(
    init_data: str,
    bot_id: BotId,
    public_key_hex: str = PUBLIC_KEY_PROD,
    *,
    max_age: Optional[int] = None,
) -> bool:
    try:
        return verify_third_party(init_data, bot_id, public_key_hex, max_age=max_age)
    except AuthError as exc:
        if exc.kind is ErrorKind.INVALID_ARGUMENT:
            raise
        logger.debug("third-party initData rejected: %s", exc.kind.value)
        return False
    except (TypeError, ValueError) as exc:
        logger.debug("third-party initData rejected: %s", exc)
        return False


def parse_third_party(
    init_data: str,
    bot_id: BotId,
    public_key_hex: str = PUBLIC_KEY_PROD,
    *,
    max_age: Optional[int] = None,
) -> WebAppInitData:
    """Verify third-party initData and return it parsed."""
    verify_third_party(init_data, bot_id, public_key_hex, max_age=max_age)
    return _init_data_model(parse_init_data(init_data))


def _init_data_model(fields: Dict[str, str]) -> WebAppInitData:
    try:
        return WebAppInitData.model_validate(fields)
    except ValidationError as exc:
        raise AuthError.invalid_format(
            f"unexpected initData content ({exc.error_count()} error(s))"
        ) from exc


# ──────────────────────────────────────────────────────────
# 4.  Bot-token validators
# ──────────────────────────────────────────────────────────
class Validator:
    """
    Validates Login Widget and Web App data for one bot.

    The token is only used to derive HMAC keys; it never shows up in
    ``repr()``, logs or error messages. Instances hold no other state and can
    be shared between threads.
    """

    PUBLIC_KEY_PROD = PUBLIC_KEY_PROD
    PUBLIC_KEY_TEST = PUBLIC_KEY_TEST

    def __init__(self, bot_token: str):
        if not isinstance(bot_token, str) or bot_token == "":
            raise AuthError.empty_token()
        self._bot_token = bot_token

    def __repr__(self) -> str:
        return "Validator(bot_token=<hidden>)"

    # ─── Login Widget ──────────────────────────────────────
    def verify_login_widget(self, data: Mapping[str, Any], *, max_age: Optional[int] = None) -> bool:
        """
        ``data`` is what the widget sent, usually the GET parameters of the
        redirect, ``hash`` included.
        """
        if not isinstance(data, Mapping):
            raise AuthError.invalid_format("login widget data must be a mapping")

        received = data.get("hash")
        if received is None:
            raise AuthError.missing_hash()
        if not isinstance(received, str):
            raise AuthError.invalid_format("hash must be a string")

        fields = {str(k): _check_value(k, v) for k, v in data.items() if k != "hash"}
        _check_hash(fields, login_widget_secret(self._bot_token), received)
        _check_auth_date(fields, max_age)
        return True

    def is_valid_login_widget(self, data: Mapping[str, Any], *, max_age: Optional[int] = None) -> bool:
        try:
            return self.verify_login_widget(data, max_age=max_age)
        except AuthError as exc:
            if exc.kind is ErrorKind.INVALID_ARGUMENT:
                raise
            logger.debug("login widget data rejected: %s", exc.kind.value)
            return False

    def parse_login_widget(self, data: Mapping[str, Any], *, max_age: Optional[int] = None) -> LoginWidgetData:
        self.verify_login_widget(data, max_age=max_age)
        try:
            return LoginWidgetData.model_validate(dict(data))
        except ValidationError as exc:
            raise AuthError.invalid_format(
                f"unexpected login widget content ({exc.error_count()} error(s))"
            ) from exc

    # ─── Web App ───────────────────────────────────────────
    def verify_web_app(self, init_data: str, *, max_age: Optional[int] = None) -> bool:
        """``init_data`` is ``Telegram.WebApp.initData`` exactly as received."""
        fields = parse_init_data(init_data)

        received = fields.pop("hash", None)
        if received is None:
            raise AuthError.missing_hash()

        _check_hash(fields, web_app_secret(self._bot_token), received)
        _check_auth_date(fields, max_age)
        return True

    def is_valid_web_app(self, init_data: str, *, max_age: Optional[int] = None) -> bool:
        try:
            return self.verify_web_app(init_data, max_age=max_age)
        except AuthError as exc:
            if exc.kind is ErrorKind.INVALID_ARGUMENT:
                raise
            logger.debug("initData rejected: %s", exc.kind.value)
            return False

    def parse_web_app(self, init_data: str, *, max_age: Optional[int] = None) -> WebAppInitData:
        self.verify_web_app(init_data, max_age=max_age)
        return _init_data_model(parse_init_data(init_data))

    # ─── Third party (no token needed) ─────────────────────
    verify_third_party = staticmethod(verify_third_party)
    is_valid_third_party = staticmethod(is_valid_third_party)
    parse_third_party = staticmethod(parse_third_party)
