import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BILLING_RETRY_BACKOFF_SECONDS", "0")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import academy_billing.core.models  # noqa: F401
from academy_billing.api.v1.fee_catalog import service as fee_catalog_service
from academy_billing.api.v1.fee_catalog.schemas import FeeCatalogEntryUpsert
from academy_billing.api.v1.students import service as students_service
from academy_billing.api.v1.students.schemas import SchoolClassCreate, SoCenterCreate, StudentEnroll
from academy_billing.core.enums import CourseType
from academy_billing.db.session import Base, get_db, get_session_factory
from academy_billing.main import app


@pytest.fixture()
async def engine(tmp_path):
    """File-backed SQLite so separate sessions (one per billed student) share the data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app (lifespan is not run)."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# --- Builders ---
async def make_class(db: AsyncSession, name: str = "Class 8") -> UUID:
    return (await students_service.create_class(db, SchoolClassCreate(name=name))).id


async def make_so_center(db: AsyncSession, name: str = "Main Road Center") -> UUID:
    return (await students_service.create_so_center(db, SoCenterCreate(name=name))).id


async def set_fees(
    db: AsyncSession,
    class_id: UUID,
    course_type: CourseType = CourseType.MONTHLY,
    admission: str = "1000",
    monthly: str = "500",
    yearly: str = "5000",
) -> None:
    await fee_catalog_service.upsert_entry(
        db,
        FeeCatalogEntryUpsert(
            class_id=class_id,
            course_type=course_type,
            admission_fee=Decimal(admission),
            monthly_fee=Decimal(monthly),
            yearly_fee=Decimal(yearly),
        ),
    )


async def enroll(
    db: AsyncSession,
    class_id: UUID,
    enrollment_date: date,
    course_type: CourseType = CourseType.MONTHLY,
    name: str = "Asha Rao",
    so_center_id: Optional[UUID] = None,
    admission_fee_paid: bool = False,
) -> UUID:
    student = await students_service.enroll_student(
        db,
        StudentEnroll(
            name=name,
            class_id=class_id,
            so_center_id=so_center_id,
            course_type=course_type,
            enrollment_date=enrollment_date,
            admission_fee_paid=admission_fee_paid,
        ),
    )
    return student.id
