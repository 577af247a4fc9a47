import os

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from helpers import BOT_TOKEN

# ─── env must be in place before tg_auth.main is imported ──────────────
os.environ["BOT_TOKEN"] = BOT_TOKEN
os.environ["RATE_LIMIT"] = "1000/minute"

from tg_auth import Validator, main  # noqa: E402


@pytest.fixture
def validator():
    return Validator(BOT_TOKEN)


# ─── fixture: a throwaway Ed25519 key pair standing in for Telegram's ──
@pytest.fixture
def signing_key():
    return Ed25519PrivateKey.generate()


@pytest.fixture
def public_key_hex(signing_key):
    raw = signing_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return raw.hex()


@pytest.fixture
def trust_signing_key(monkeypatch, public_key_hex):
    """Make the service accept signatures made with ``signing_key``."""
    monkeypatch.setattr(main, "PUBLIC_KEY_HEX", public_key_hex)
    yield public_key_hex


# ─── sync TestClient (simple) ──────────────────────────────────────────
@pytest.fixture
def client():
    return TestClient(main.app)


# ─── async client for async tests ──────────────────────────────────────
@pytest_asyncio.fixture
async def async_client():
    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
