"""Failure kinds raised by the validators."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"  # API misuse, never turned into False
    MISSING_FIELD = "missing_field"
    MALFORMED_INPUT = "malformed_input"
    HASH_MISMATCH = "hash_mismatch"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class AuthError(Exception):
    """
    Raised by every ``verify_*`` call.

    ``kind`` tells callers what went wrong, ``context`` carries structured
    details such as the expected and actual signature length.
    """

    def __init__(self, kind: ErrorKind, message: str, **context: Any):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context

    def __repr__(self) -> str:
        return f"AuthError({self.kind.value}, {self.message!r})"

    # ─── constructors for the usual failures ──────────────────────────
    @classmethod
    def empty_token(cls) -> "AuthError":
        return cls(ErrorKind.INVALID_ARGUMENT, "bot token cannot be empty")

    @classmethod
    def missing_hash(cls) -> "AuthError":
        return cls(ErrorKind.MISSING_FIELD, "hash parameter is required", field="hash")

    @classmethod
    def missing_signature(cls) -> "AuthError":
        return cls(
            ErrorKind.MISSING_FIELD,
            "signature parameter is required for third-party validation",
            field="signature",
        )

    @classmethod
    def invalid_format(cls, detail: str = "invalid init-data format") -> "AuthError":
        return cls(ErrorKind.MALFORMED_INPUT, detail)

    @classmethod
    def hash_mismatch(cls) -> "AuthError":
        return cls(ErrorKind.HASH_MISMATCH, "invalid hash: authentication failed")

    @classmethod
    def invalid_signature(cls, **context: Any) -> "AuthError":
        return cls(
            ErrorKind.INVALID_SIGNATURE,
            "invalid signature: data verification failed",
            **context,
        )

    @classmethod
    def expired(cls, auth_date: int, max_age: int) -> "AuthError":
        return cls(
            ErrorKind.EXPIRED,
            f"authentication data expired (auth_date={auth_date}, max_age={max_age}s)",
            auth_date=auth_date,
            max_age=max_age,
        )
