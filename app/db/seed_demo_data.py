"""
Seed a few fees and coupons for local development.

Run after schema_check:
  python -m app.db.seed_demo_data

Idempotent: fees are matched on (student_id, fee_type, term), coupons on code.
"""
import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import DiscountType, FeeStatus
from app.core.models import Coupon, Fee
from app.db.session import AsyncSessionLocal

ACADEMIC_YEAR = "2023/2024"
TERM = "1st Term"

DEMO_FEES = [
    ("student-002", "Mary Johnson", "Basic 2", "Tuition Fee", Decimal("55000")),
    ("student-003", "David Smith", "Basic 3", "Tuition Fee", Decimal("60000")),
    ("student-002", "Mary Johnson", "Basic 2", "Development Levy", Decimal("10000")),
]

DEMO_COUPONS = [
    ("NEWSTUDENT10", DiscountType.percentage, Decimal("10"), 100),
    ("WELCOME20", DiscountType.percentage, Decimal("20"), 50),
    ("DISCOUNT5000", DiscountType.fixed, Decimal("5000"), 20),
]


async def seed_demo_data(db: AsyncSession) -> None:
    fees_created = 0
    for student_id, student_name, class_name, fee_type, amount in DEMO_FEES:
        existing = (
            await db.execute(
                select(Fee).where(
                    Fee.student_id == student_id,
                    Fee.fee_type == fee_type,
                    Fee.term == TERM,
                )
            )
        ).scalar_one_or_none()
        if existing:
            continue
        db.add(
            Fee(
                student_id=student_id,
                student_name=student_name,
                class_name=class_name,
                fee_type=fee_type,
                term=TERM,
                academic_year=ACADEMIC_YEAR,
                due_date=date.today() + timedelta(days=30),
                total_amount=amount,
                amount_paid=Decimal("0"),
                balance=amount,
                status=FeeStatus.unpaid.value,
            )
        )
        fees_created += 1

    coupons_created = 0
    for code, discount_type, value, max_uses in DEMO_COUPONS:
        existing = (await db.execute(select(Coupon).where(Coupon.code == code))).scalar_one_or_none()
        if existing:
            continue
        db.add(
            Coupon(
                code=code,
                discount_type=discount_type.value,
                discount_value=value,
                max_uses=max_uses,
                used_count=0,
                expiry_date=date.today() + timedelta(days=90),
                is_active=True,
            )
        )
        coupons_created += 1

    await db.commit()
    print(f"Fees created: {fees_created}")
    print(f"Coupons created: {coupons_created}")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_demo_data(db)
        except Exception as e:
            print(f"❌ Error seeding demo data: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
