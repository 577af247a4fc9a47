from .errors import AuthError, ErrorKind
from .models import LoginWidgetData, WebAppInitData, WebAppUser
from .validator import (
    PUBLIC_KEY_PROD,
    PUBLIC_KEY_TEST,
    Validator,
    build_check_string,
    is_valid_third_party,
    parse_init_data,
    parse_third_party,
    verify_third_party,
)

__all__ = [
    "AuthError",
    "ErrorKind",
    "LoginWidgetData",
    "WebAppInitData",
    "WebAppUser",
    "PUBLIC_KEY_PROD",
    "PUBLIC_KEY_TEST",
    "Validator",
    "build_check_string",
    "is_valid_third_party",
    "parse_init_data",
    "parse_third_party",
    "verify_third_party",
]
