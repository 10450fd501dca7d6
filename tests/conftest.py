"""Shared fixtures: a file-backed SQLite database and an API client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lawcrm.api.deps import get_generation_guard, get_lead_details_cache, get_session_maker
from lawcrm.cache import TTLCache
from lawcrm.config import settings
from lawcrm.models import (
    Base,
    Category,
    Currency,
    Department,
    Employee,
    Language,
    LeadSource,
    LeadStage,
    MainCategory,
    User,
)
from lawcrm.services.generation import RequestGenerationGuard
from lawcrm.services.references import ReferenceMaps
from tests.factories import (
    AUSTRIA_ID,
    CITIZENSHIP_DE,
    GERMANY_ID,
    HANDLER_ALICE,
    HANDLER_USER_ID,
    SCHEDULER_BOB,
    SOURCE_A,
    SOURCE_B,
    SOURCE_C,
    UNPARENTED,
    USER_ID,
    WORK_VISA_AT,
    build_refs,
)


@pytest.fixture
def refs() -> ReferenceMaps:
    return build_refs()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    """Session factory bound to a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db: AsyncSession) -> AsyncSession:
    """Reference tables, one handler and one external user."""
    db.add_all([
        MainCategory(id=GERMANY_ID, name="Germany"),
        MainCategory(id=AUSTRIA_ID, name="Austria"),
        Department(id=1, name="Legal"),
        Currency(id=1, name="NIS", iso_code="ILS"),
        Currency(id=2, name="USD", iso_code="USD"),
        LeadSource(id=SOURCE_A, name="SourceA"),
        LeadSource(id=SOURCE_B, name="SourceB"),
        LeadSource(id=SOURCE_C, name="SourceC"),
        Language(id=1, name="English", iso_code="EN"),
        Language(id=2, name="Hebrew", iso_code="HE"),
        LeadStage(id=60, name="Client signed agreement", colour="#222222"),
        LeadStage(id=110, name="Handler Started", colour="#444444"),
        LeadStage(id=150, name="Application submitted", colour="#555555"),
        LeadStage(id=200, name="Case Closed", colour="#666666"),
    ])
    await db.flush()
    db.add_all([
        Category(id=CITIZENSHIP_DE, name="Citizenship", parent_id=GERMANY_ID),
        Category(id=WORK_VISA_AT, name="Work Visa", parent_id=AUSTRIA_ID),
        Category(id=UNPARENTED, name="Other"),
        Employee(id=HANDLER_ALICE, display_name="Alice Handler", official_name="Alice H.", department_id=1),
        Employee(id=SCHEDULER_BOB, display_name="Bob Scheduler"),
    ])
    await db.flush()
    db.add_all([
        User(
            id=USER_ID,
            email="external@partner.example",
            full_name="External Partner",
            is_active=True,
            is_staff=False,
            extern_source_id=[SOURCE_A, SOURCE_B],
        ),
        User(
            id=HANDLER_USER_ID,
            email="alice@lawoffice.org.il",
            full_name="Alice",
            employee_id=HANDLER_ALICE,
            is_active=True,
            is_staff=True,
        ),
    ])
    await db.commit()
    db.expunge_all()
    return db


@pytest.fixture
def auth_headers() -> dict:
    return {
        settings.api_key_header: settings.api_key.get_secret_value(),
        settings.user_id_header: str(USER_ID),
    }


@pytest.fixture
def staff_headers(auth_headers) -> dict:
    return {**auth_headers, settings.user_id_header: str(HANDLER_USER_ID)}


@pytest.fixture
def app(session_maker, seeded):
    """Application wired to the test database."""
    from lawcrm.main import create_app

    app = create_app()
    guard = RequestGenerationGuard()
    cache = TTLCache(ttl=60)
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_generation_guard] = lambda: guard
    app.dependency_overrides[get_lead_details_cache] = lambda: cache
    return app


@pytest_asyncio.fixture
async def client(app):
    """API client over the ASGI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
