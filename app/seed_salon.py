# ===== seed_salon.py =====
from datetime import date, time, timedelta

from app.config.database import SessionLocal, create_tables
from app.models import (
    BlockType,
    DayOfWeek,
    ScheduleBlock,
    Service,
    Staff,
    StaffAvailability,
    StaffServicePricing,
)

# (name, minutes, cents)
SERVICES = [
    ("Haircut", 60, 6500),
    ("Color", 120, 14000),
    ("Blowout", 45, 4500),
    ("Manicure", 30, 3000),
]

WORKING_DAYS = [
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
]


def seed_salon(session_factory=SessionLocal):
    db = session_factory()

    try:
        if db.query(Service).count():
            print("ℹ️  Catalog already seeded, skipping")
            return

        services = {
            name: Service(name=name, duration_minutes=minutes, base_price=price)
            for name, minutes, price in SERVICES
        }
        db.add_all(services.values())

        # 1. Two stylists; Maya does everything, Leo does hair only
        maya = Staff(name="Maya Chen", email="maya@example.com", services=list(services.values()))
        leo = Staff(
            name="Leo Park",
            email="leo@example.com",
            services=[services["Haircut"], services["Color"], services["Blowout"]],
        )
        db.add_all([maya, leo])
        db.flush()

        # 2. Senior stylist charges more for color
        db.add(StaffServicePricing(staff_id=maya.id, service_id=services["Color"].id, custom_price=16000))

        # 3. Tue-Sat 09:00-17:00 with a lunch block
        for member in (maya, leo):
            for day in WORKING_DAYS:
                rule = StaffAvailability(
                    staff_id=member.id,
                    day_of_week=int(day),
                    start_time=time(9, 0),
                    end_time=time(17, 0),
                )
                rule.blocks = [ScheduleBlock(
                    block_start_time=time(12, 0),
                    block_end_time=time(13, 0),
                    block_type=BlockType.LUNCH.value,
                    title="Lunch",
                )]
                db.add(rule)

        # 4. Example override: Leo off two weeks from today
        day_off = date.today() + timedelta(days=14)
        db.add(StaffAvailability(
            staff_id=leo.id,
            day_of_week=day_off.weekday(),
            start_time=time(0, 0),
            end_time=time(0, 0),
            override_date=day_off,
            reason="Vacation",
        ))

        db.commit()
        print("✅ Salon catalog and schedules seeded successfully!")
        print(f"   Maya: {maya.id}")
        print(f"   Leo:  {leo.id}")
        for name, service in services.items():
            print(f"   {name}: {service.id}")

    except Exception as e:
        db.rollback()
        print("❌ Error seeding salon:", e)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    create_tables()
    seed_salon()
