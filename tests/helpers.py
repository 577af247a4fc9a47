import base64
import hashlib
import hmac
import json
import time
import urllib.parse

BOT_TOKEN = "133333337:AAH-xxxxxxxxxxxxxxxxxxxxxxxxxxxxyu"
BOT_ID = 133333337


def _now() -> str:
    return str(int(time.time()))


def _without_none(payload: dict) -> dict:
    # passing field=None to a helper drops that field
    return {k: v for k, v in payload.items() if v is not None}


def login_widget_hash(data: dict, bot_token: str = BOT_TOKEN) -> str:
    data_check = "\n".join(f"{k}={data[k]}" for k in sorted(data))
    secret = hashlib.sha256(bot_token.encode()).digest()
    return hmac.new(secret, data_check.encode(), hashlib.sha256).hexdigest()


def make_login_widget(bot_token: str = BOT_TOKEN, **fields) -> dict:
    """Return a Login Widget payload signed the way Telegram signs it."""
    data = {
        "id": "123456789",
        "first_name": "John",
        "username": "johndoe",
        "auth_date": _now(),
    }
    data = _without_none({**data, **fields})
    data["hash"] = login_widget_hash(data, bot_token)
    return data


def make_web_app_init_data(bot_token: str = BOT_TOKEN, user_id: int = 123, **fields) -> str:
    """Return a valid initData string for the given bot token."""
    user_json = json.dumps(  # ← MINIFIED, like the real client
        {"id": user_id, "first_name": "Test"}, separators=(",", ":")
    )
    payload = {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": user_json,
        "auth_date": _now(),
    }
    payload = _without_none({**payload, **fields})

    data_check = "\n".join(f"{k}={v}" for k, v in sorted(payload.items()))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    payload["hash"] = hmac.new(secret, data_check.encode(), hashlib.sha256).hexdigest()

    return urllib.parse.urlencode(payload, quote_via=urllib.parse.quote)


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def make_third_party_init_data(private_key, bot_id=BOT_ID, user_id: int = 111, **fields) -> str:
    """Return initData signed with ``private_key`` (an Ed25519PrivateKey)."""
    payload = {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": json.dumps({"id": user_id, "first_name": "Test"}, separators=(",", ":")),
        "auth_date": _now(),
    }
    payload = _without_none({**payload, **fields})

    lines = [f"{bot_id}:WebAppData"] + [f"{k}={v}" for k, v in sorted(payload.items())]
    payload["signature"] = b64url(private_key.sign("\n".join(lines).encode()))

    return urllib.parse.urlencode(payload, quote_via=urllib.parse.quote)
