"""Shared fixtures: a fresh SQLite database and application per test."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from inkwell.app.db import crud
from inkwell.app.db.async_session import create_session_maker, get_db
from inkwell.app.db.init_db import create_all_tables
from inkwell.app.db.models import ArticleStatus, UserRole
from inkwell.app.main import create_app


def _sqlite_url_from_absolute_path(path: str) -> str:
    # SQLAlchemy expects 4 slashes for absolute paths.
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


class FakeClock:
    """Manually advanced time source for rate limiter windows."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        _sqlite_url_from_absolute_path(str(tmp_path / "inkwell_test.db"))
    )
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def app(session_maker, clock):
    app = create_app(clock=clock)

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(session):
    """Create a committed user; returns (user, auth headers)."""

    async def _make_user(username: str, role: str = UserRole.USER.value, is_banned: bool = False):
        user, token = await crud.create_user(
            session,
            username=username,
            name=username.title(),
            email=f"{username}@example.com",
            role=role,
        )
        user.is_banned = is_banned
        await session.commit()
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def make_article(session):
    async def _make_article(
        author,
        slug: str = "hello-world",
        status: str = ArticleStatus.PUBLISHED.value,
        allow_comments: bool = True,
    ):
        article = await crud.create_article(
            session,
            author_id=author.id,
            slug=slug,
            title=slug.replace("-", " ").title(),
            status=status,
            allow_comments=allow_comments,
        )
        await session.commit()
        return article

    return _make_article


@pytest.fixture
def make_comment(session):
    async def _make_comment(
        author,
        article,
        content: str = "Thanks for writing this up.",
        parent=None,
        is_approved: bool = True,
        is_spam: bool = False,
    ):
        comment = await crud.create_comment(
            session,
            author=author,
            article_id=article.id,
            content=content,
            is_approved=is_approved,
            is_spam=is_spam,
            parent_id=parent.id if parent is not None else None,
        )
        await session.commit()
        return comment

    return _make_comment


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("editor", role=UserRole.ADMIN.value)


@pytest_asyncio.fixture
async def reader(make_user):
    return await make_user("reader")


@pytest_asyncio.fixture
async def article(make_article, admin):
    admin_user, _ = admin
    return await make_article(admin_user)
