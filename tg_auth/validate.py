# tg_auth/validate.py
import logging

from fastapi import HTTPException, status

from .errors import AuthError, ErrorKind
from .validator import Validator, parse_third_party

logger = logging.getLogger(__name__)

# malformed / absent data is the client's fault, everything else is forgery
_BAD_REQUEST = {ErrorKind.MISSING_FIELD, ErrorKind.MALFORMED_INPUT}


def _http_error(exc: AuthError) -> HTTPException:
    logger.warning("Rejected auth data: %s", exc.kind.value)
    if exc.kind in _BAD_REQUEST:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{exc.message} – open this page inside Telegram",
        )
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="auth data signature invalid or expired",
    )


def get_init_data(raw: str, validator: Validator, *, lifetime: int = 3600):
    """
    Parse + validate Telegram Web-App initData.
    Raises HTTP 403 for forged or expired data, 400 for malformed / absent data.
    """
    try:
        return validator.parse_web_app(raw, max_age=lifetime)
    except AuthError as exc:
        if exc.kind is ErrorKind.INVALID_ARGUMENT:
            raise
        raise _http_error(exc) from exc


def get_third_party_init_data(raw: str, bot_id, public_key_hex: str, *, lifetime: int = 3600):
    """Same as get_init_data, for initData signed by Telegram's Ed25519 key."""
    try:
        return parse_third_party(raw, bot_id, public_key_hex, max_age=lifetime)
    except AuthError as exc:
        if exc.kind is ErrorKind.INVALID_ARGUMENT:
            raise
        raise _http_error(exc) from exc


def get_login_widget(data: dict, validator: Validator, *, lifetime: int = 86400):
    """Validate the query parameters Telegram's Login Widget redirected with."""
    try:
        return validator.parse_login_widget(data, max_age=lifetime)
    except AuthError as exc:
        if exc.kind is ErrorKind.INVALID_ARGUMENT:
            raise
        raise _http_error(exc) from exc
