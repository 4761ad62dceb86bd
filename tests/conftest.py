import os
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Callable, Dict, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_webhook_secret")
os.environ.setdefault("PAYSTACK_PUBLIC_KEY", "pk_test_public")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.models import Coupon, Fee  # noqa: E402
from app.db.session import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from tests.helpers import auth_headers  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; overrides the FastAPI session dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac



@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return auth_headers("admin-1", "admin")


@pytest.fixture()
def student_headers() -> Dict[str, str]:
    return auth_headers("student-1", "student")


@pytest.fixture()
def make_fee(db_session: AsyncSession) -> Callable:
    async def _make(
        total_amount: Decimal = Decimal("10000"),
        amount_paid: Decimal = Decimal("0"),
        student_id: str = "student-1",
        student_name: str = "Ada Obi",
        fee_type: str = "Tuition Fee",
    ) -> Fee:
        balance = total_amount - amount_paid
        if amount_paid <= 0:
            fee_status = "unpaid"
        elif balance <= 0:
            fee_status = "paid"
        else:
            fee_status = "partial"
        fee = Fee(
            student_id=student_id,
            student_name=student_name,
            class_name="Basic 2",
            fee_type=fee_type,
            term="1st Term",
            academic_year="2023/2024",
            total_amount=total_amount,
            amount_paid=amount_paid,
            balance=balance,
            status=fee_status,
        )
        db_session.add(fee)
        await db_session.commit()
        await db_session.refresh(fee)
        return fee

    return _make


@pytest.fixture()
def make_coupon(db_session: AsyncSession) -> Callable:
    async def _make(
        code: str = "WELCOME20",
        discount_type: str = "percentage",
        discount_value: Decimal = Decimal("20"),
        max_uses: int = 10,
        used_count: int = 0,
        expiry_date: Optional[date] = None,
        is_active: bool = True,
    ) -> Coupon:
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            max_uses=max_uses,
            used_count=used_count,
            expiry_date=expiry_date or date.today() + timedelta(days=30),
            is_active=is_active,
        )
        db_session.add(coupon)
        await db_session.commit()
        await db_session.refresh(coupon)
        return coupon

    return _make
