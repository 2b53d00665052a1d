"""
Test infrastructure for the Tech News API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres instance is needed in CI.
- StaticPool makes every async task share the same in-memory connection;
  SQLite in-memory databases are connection-scoped.
- The app's get_db dependency is overridden so every request uses the test
  session factory rather than the production one.
- Tables are created before each test and dropped after.
- The session store is given a fresh MemorySessionBackend per test, so
  login/logout exercise the real store logic without Redis.  The app's
  lifespan never runs under ASGITransport, so nothing connects to Redis.
- bcrypt runs at its minimum cost; settings are read at import time, so
  the environment is set before anything from technews is imported.
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_BACKEND", "memory")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from technews.database import Base, get_db
from technews.main import app
from technews.middleware import install_query_counter
from technews.models import Comment, Post, User, Vote
from technews.sessions import MemorySessionBackend, sessions

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    hide_parameters=True,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(autouse=True)
async def session_store():
    """Swap in an empty in-memory session backend for each test."""
    sessions.backend = MemorySessionBackend()
    yield sessions
    await sessions.disconnect()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """Yield a live AsyncSession for tests that seed data or inspect rows directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def activity(db_session: AsyncSession) -> dict:
    """
    Seed two users with posts, comments and votes.

    Lernantino authors one post, comments on Amiko's post and votes on
    both posts.  Returns the ids needed by the assertions.
    """
    lernantino = User(username="Lernantino", email="lernantino@gmail.com", password="password1234")
    amiko = User(username="Amiko", email="amiko@gmail.com", password="password1234")
    db_session.add_all([lernantino, amiko])
    await db_session.flush()

    own_post = Post(title="Handlebars Docs", post_url="https://handlebarsjs.com/guide/", user_id=lernantino.id)
    other_post = Post(title="Sequelize Docs", post_url="https://sequelize.org/", user_id=amiko.id)
    db_session.add_all([own_post, other_post])
    await db_session.flush()

    db_session.add(Comment(comment_text="Nice reference!", user_id=lernantino.id, post_id=other_post.id))
    db_session.add_all([
        Vote(user_id=lernantino.id, post_id=own_post.id),
        Vote(user_id=lernantino.id, post_id=other_post.id),
    ])
    await db_session.commit()
    return {
        "user_id": lernantino.id,
        "other_user_id": amiko.id,
        "own_post_id": own_post.id,
        "other_post_id": other_post.id,
    }
