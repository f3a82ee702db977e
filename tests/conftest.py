"""Pytest configuration and shared fixtures"""

import os
import time
from typing import AsyncGenerator, Callable

# Settings are read at import time; pin them before the app is imported.
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret"
os.environ["AUTH_JWT_AUDIENCE"] = "authenticated"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["PAYMENTS_ENABLED"] = "true"
os.environ["SUBSCRIPTION_GATE_ENABLED"] = "true"
os.environ["ENABLE_SCHEDULER"] = "false"

import httpx
import pytest
from datetime import datetime, timedelta, timezone
from jose import jwt
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, build_engine, build_session_factory, get_db
from app.core.security import SessionUser
from app.services.subscriptions.razorpay_client import RazorpayClient, get_gateway_client
from app.services.subscriptions.subscriber_store import upsert_activation
from app.services.notifications.email_service import EmailSender, get_email_sender
from main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

KEY_ID = os.environ["RAZORPAY_KEY_ID"]
KEY_SECRET = os.environ["RAZORPAY_KEY_SECRET"]
WEBHOOK_SECRET = os.environ["RAZORPAY_WEBHOOK_SECRET"]
JWT_SECRET = os.environ["AUTH_JWT_SECRET"]


# =====================================================
# DATABASE
# =====================================================
@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    # one shared in-memory connection per test
    engine = build_engine(TEST_DATABASE_URL, "sqlite", poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# =====================================================
# USERS / TOKENS
# =====================================================
@pytest.fixture
def user() -> SessionUser:
    return SessionUser(id="user-123", email="asha@example.com", full_name="Asha Rao")


@pytest.fixture
def other_user() -> SessionUser:
    return SessionUser(id="user-456", email="vikram@example.com", full_name="Vikram Iyer")


def make_token(user: SessionUser, *, expires_in: int = 3600, **overrides) -> str:
    now = int(time.time())
    claims = {
        "sub": user.id,
        "email": user.email,
        "aud": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        "user_metadata": {"full_name": user.full_name},
    }
    claims.update(overrides)
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def other_auth_headers(other_user) -> dict:
    return {"Authorization": f"Bearer {make_token(other_user)}"}


async def activate(session_factory, user: SessionUser, days: int = 30) -> None:
    async with session_factory() as session:
        await upsert_activation(
            session,
            email=user.email,
            user_id=user.id,
            tier="Pro Monthly",
            subscription_end=datetime.now(timezone.utc) + timedelta(days=days),
            payment_id="pay_seed",
        )
        await session.commit()


@pytest.fixture
async def subscribed_user(session_factory, user) -> SessionUser:
    await activate(session_factory, user)
    return user


# =====================================================
# GATEWAY (httpx.MockTransport)
# =====================================================
class GatewayStub:
    """Routes gateway calls to per-test handlers and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = self._unexpected

    @staticmethod
    def _unexpected(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"Unexpected gateway call: {request.method} {request.url}")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> RazorpayClient:
        return RazorpayClient(KEY_ID, KEY_SECRET, transport=httpx.MockTransport(self))


@pytest.fixture
def gateway() -> GatewayStub:
    return GatewayStub()


class MailStub:
    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"id": "email_1"})

    def sender(self) -> EmailSender:
        return EmailSender("re_test_key", transport=httpx.MockTransport(self))


@pytest.fixture
def mailer() -> MailStub:
    return MailStub()


# =====================================================
# API CLIENT
# =====================================================
@pytest.fixture
async def client(session_factory, gateway, mailer) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway_client] = gateway.client
    app.dependency_overrides[get_email_sender] = mailer.sender

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def failing_db(client, session_factory):
    """Requests get a session whose statements and commits fail as if the database dropped."""

    async def _fail(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionResetError("connection lost"))

    async def _get_db():
        async with session_factory() as session:
            session.execute = _fail
            session.commit = _fail
            yield session

    app.dependency_overrides[get_db] = _get_db
