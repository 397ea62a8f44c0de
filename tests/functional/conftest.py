"""
Shared fixtures for functional tests.
Uses httpx.AsyncClient against the real FastAPI app with an in-memory SQLite DB.
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from library_circulation.db.models import Base
from library_circulation.db import session as db_session_module
from library_circulation.main import app


# ─── DB override ────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine for functional testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    db_session_module.configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(test_session_factory):
    """Provide an httpx.AsyncClient with DB overridden to use the test DB."""

    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[db_session_module.get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Catalog helpers ────────────────────────────────────────────

@pytest_asyncio.fixture
async def catalog(client: AsyncClient):
    """One category, a 2-copy book and a student member, created over HTTP."""
    cat = await client.post("/api/v1/categories", json={"name": "Software"})
    assert cat.status_code == 201

    book = await client.post(
        "/api/v1/books",
        json={
            "title": "Clean Code",
            "author": "Robert Martin",
            "isbn": "9780132350884",
            "total_copies": 2,
            "category": "Software",
        },
    )
    assert book.status_code == 201

    member = await client.post(
        "/api/v1/members",
        json={"name": "Ada Lovelace", "email": "ada@test.com"},
    )
    assert member.status_code == 201

    return {
        "category_id": cat.json()["id"],
        "book_id": book.json()["id"],
        "member_id": member.json()["id"],
        "member_code": member.json()["member_code"],
    }
