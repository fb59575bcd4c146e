import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.session import Base, get_db
from app.main import app as fastapi_app
from app.models import group, group_member, expense  # noqa: F401
from app.schemas.settlements import Expense, User


@pytest.fixture
def users():
    """Three members: Alice (A), Bob (B) and Carol (C)."""
    return [
        User(id="A", name="Alice"),
        User(id="B", name="Bob"),
        User(id="C", name="Carol"),
    ]


@pytest.fixture
def make_expense():
    """Build an engine expense record with short positional arguments."""
    def _make(amount, payer, participants, expense_id=None):
        return Expense(
            id=expense_id,
            amount=amount,
            payer_id=payer,
            participant_ids=participants,
        )
    return _make


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client bound to the app, using the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()
