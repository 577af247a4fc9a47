from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebAppUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    is_bot: Optional[bool] = None
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: Optional[bool] = None
    allows_write_to_pm: Optional[bool] = None
    photo_url: Optional[str] = None


class WebAppInitData(BaseModel):
    """Verified Mini-App initData; unknown keys are kept as plain strings."""

    model_config = ConfigDict(extra="allow")

    query_id: Optional[str] = None
    user: Optional[WebAppUser] = None
    receiver: Optional[WebAppUser] = None
    chat_type: Optional[str] = None
    chat_instance: Optional[str] = None
    start_param: Optional[str] = None
    can_send_after: Optional[int] = None
    auth_date: Optional[int] = Field(None, description="Unix timestamp (seconds)")
    hash: Optional[str] = None
    signature: Optional[str] = None

    @field_validator("user", "receiver", mode="before")
    @classmethod
    def decode_json(cls, v: Any) -> Any:
        # user objects travel as JSON inside the query string
        if isinstance(v, str):
            return json.loads(v)
        return v


class LoginWidgetData(BaseModel):
    """Verified Login Widget payload."""

    model_config = ConfigDict(extra="allow")

    id: int
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None
    auth_date: int
    hash: str
