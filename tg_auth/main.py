"""
FastAPI service for checking Telegram auth data
────────────────────────────────────────────────────────────
• Validates Login Widget redirects, Mini-App initData and
  third-party (Ed25519-signed) initData with tg_auth.Validator
• Exposes four endpoints:
      GET  /auth/login-widget – Login Widget redirect target
      POST /auth/webapp       – initData signed with our bot token
      POST /auth/third-party  – initData signed by Telegram
      GET  /health
• Loads secrets from a .env file in development
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .validate import get_init_data, get_login_widget, get_third_party_init_data
from .validator import PUBLIC_KEY_PROD, PUBLIC_KEY_TEST, Validator

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────
# 1.  Environment & configuration
# ──────────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).parent.parent  # project root “…/”
ENV_FILE = ROOT_DIR / ".env"

load_dotenv(ENV_FILE, override=False)  # no-op if vars already set

BOT_TOKEN: str = os.environ["BOT_TOKEN"]
BOT_ID: str = os.getenv("BOT_ID") or BOT_TOKEN.split(":", 1)[0]
ALLOWED_ORIGIN: str = os.getenv(  # where the Mini-App is hosted
    "ALLOWED_ORIGIN", "https://web.telegram.org"
)
AUTH_MAX_AGE: int = int(os.getenv("AUTH_MAX_AGE", "86400"))
RATE_LIMIT: str = os.getenv("RATE_LIMIT", "30/minute")

# Telegram signs test-server initData with a different key
PUBLIC_KEY_HEX: str = (
    PUBLIC_KEY_TEST
    if os.getenv("TELEGRAM_TEST_ENV", "").lower() in ("1", "true", "yes")
    else PUBLIC_KEY_PROD
)

validator = Validator(BOT_TOKEN)


# ──────────────────────────────────────────────────────────
# 2.  FastAPI app + CORS
# ──────────────────────────────────────────────────────────

app = FastAPI(title="tg-auth API", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[ALLOWED_ORIGIN],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


limiter = Limiter(
    key_func=get_remote_address,  # limits run before initData is verified
    default_limits=[RATE_LIMIT],
)

app.state.limiter = limiter


def ratelimit_handler(request, exc: RateLimitExceeded):
    resp = JSONResponse(
        status_code=429,
        content={"detail": "Too many auth attempts – slow down"},
    )
    resp.headers["Access-Control-Allow-Origin"] = ALLOWED_ORIGIN
    resp.headers["Access-Control-Allow-Credentials"] = "true"
    return resp


app.add_exception_handler(RateLimitExceeded, ratelimit_handler)
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RequestValidationError)
async def log_validation_error(request: Request, exc: RequestValidationError):
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


# ──────────────────────────────────────────────────────────
# 3.  Pydantic models  (request / response)
# ──────────────────────────────────────────────────────────
class InitPayload(BaseModel):
    initData: str = Field(..., description="Raw query string from WebApp")


class ThirdPartyPayload(InitPayload):
    botId: Optional[int] = Field(None, description="Bot the Mini-App belongs to")


class AuthOut(BaseModel):
    user_id: Optional[int] = None
    auth_date: Optional[int] = Field(None, description="Unix timestamp (seconds)")
    user: Optional[Dict[str, Any]] = None


def _init_data_out(init) -> Dict[str, Any]:
    user = init.user.model_dump(exclude_none=True) if init.user else None
    return {
        "user_id": init.user.id if init.user else None,
        "auth_date": init.auth_date,
        "user": user,
    }


# ──────────────────────────────────────────────────────────
# 4.  API routes
# ──────────────────────────────────────────────────────────
@app.get("/auth/login-widget", response_model=AuthOut)
async def login_widget(request: Request):
    login = get_login_widget(
        dict(request.query_params), validator, lifetime=AUTH_MAX_AGE
    )
    logger.info("Login widget auth ok for user %s", login.id)
    return {
        "user_id": login.id,
        "auth_date": login.auth_date,
        "user": login.model_dump(exclude={"hash"}, exclude_none=True),
    }


@app.post("/auth/webapp", response_model=AuthOut)
async def webapp(payload: InitPayload):
    init = get_init_data(payload.initData, validator, lifetime=AUTH_MAX_AGE)
    return _init_data_out(init)


@app.post("/auth/third-party", response_model=AuthOut)
async def third_party(payload: ThirdPartyPayload):
    bot_id = payload.botId if payload.botId is not None else BOT_ID
    init = get_third_party_init_data(
        payload.initData, bot_id, PUBLIC_KEY_HEX, lifetime=AUTH_MAX_AGE
    )
    return _init_data_out(init)


@app.get("/health")
async def health():
    return {"ok": True}


# ──────────────────────────────────────────────────────────
# 5.  Local dev entry point
# ──────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tg_auth.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,  # auto-reload on code change
        log_level="info",
    )
