# tests/conftest.py — Shared test fixtures
import os
from typing import List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test_partner.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("ANTHROPIC_API_KEY", None)

import mailer  # noqa: E402
import notifier  # noqa: E402
from models import Base, User, UserRole, Submission  # noqa: E402
from auth import AuthService, role_value  # noqa: E402
from database import get_db_session  # noqa: E402
from main import app  # noqa: E402

DEFAULT_PASSWORD = "Demo1234!"

_password_hash = None


def _hashed_default_password() -> str:
    # bcrypt at 12 rounds is slow; hash the shared fixture password once
    global _password_hash
    if _password_hash is None:
        _password_hash = AuthService.hash_password(DEFAULT_PASSWORD)
    return _password_hash


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency (one session per request)"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await notifier.drain()
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outbound e-mail instead of calling SendGrid"""
    sent: List[dict] = []

    async def fake_send_email(to: str, subject: str, html_body: str) -> bool:
        sent.append({"to": to, "subject": subject, "html": html_body})
        return True

    monkeypatch.setattr(mailer, "send_email", fake_send_email)
    return sent


async def make_user(db_session, role: UserRole, name: str, email: str, specialty: str = None) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=_hashed_default_password(),
        role=role,
        specialty=specialty,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def make_submission(db_session, owner: User, **overrides) -> Submission:
    fields = dict(
        company_name="NeuralPay",
        one_liner="AI-powered fraud detection for African mobile money platforms",
        industry="FinTech",
        stage="Seed",
        problem="Mobile money fraud costs African platforms $4.2B annually.",
        solution="ML models trained on African mobile money patterns.",
        traction="3 telco pilots. $180K ARR.",
        looking_for=["Investment", "Strategic Partnerships"],
    )
    fields.update(overrides)
    sub = Submission(user_id=owner.id, **fields)
    db_session.add(sub)
    await db_session.commit()
    await db_session.refresh(sub)
    return sub


@pytest_asyncio.fixture
async def founder_user(db_session):
    return await make_user(db_session, UserRole.FOUNDER, "Amara Okafor", "amara@startup.io")


@pytest_asyncio.fixture
async def other_founder(db_session):
    return await make_user(db_session, UserRole.FOUNDER, "Carlos Mendes", "carlos@startup.io")


@pytest_asyncio.fixture
async def board_user(db_session):
    return await make_user(db_session, UserRole.BOARD, "Sarah Kingston", "sarah@partner.io", "Healthcare & BioTech")


@pytest_asyncio.fixture
async def board_users(db_session):
    """Four board members, enough to overflow the partner cap"""
    members = [
        ("James Morrow", "james@partner.io", "FinTech & SaaS"),
        ("Aisha Patel", "aisha@partner.io", "AI & Deep Tech"),
        ("David Chen", "david@partner.io", "Operations & Growth"),
        ("Maya Roberts", "maya@partner.io", "Impact & CleanTech"),
    ]
    return [await make_user(db_session, UserRole.BOARD, *m) for m in members]


@pytest_asyncio.fixture
async def admin_user(db_session):
    return await make_user(db_session, UserRole.ADMIN, "Admin User", "admin@partner.io")


@pytest_asyncio.fixture
async def submission(db_session, founder_user):
    return await make_submission(db_session, founder_user)


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = AuthService.create_access_token(user.id, role_value(user.role))
    return {"Authorization": f"Bearer {token}"}
