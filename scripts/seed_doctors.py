import asyncio
import json
import os
import sys
from sqlalchemy.future import select

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.db import SessionLocal, init_models
from app.core.errors import ScheduleError
from app.modules.directory.models import Doctor
from app.modules.directory.schemas import DoctorCreate
from app.modules.directory.service import DoctorService
from app.modules.schedules.schemas import WeeklySlotCreate
from app.modules.schedules.service import ScheduleService

# Monday to Friday, 09:00-13:00 and 14:00-17:00
DEFAULT_WEEK = [
    {"dayOfWeek": day, "startTime": start, "endTime": end}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
    for start, end in (("09:00", "13:00"), ("14:00", "17:00"))
]

async def seed_doctor(db, doc_data: dict) -> None:
    print(f"Processing doctor: {doc_data['name']}")
    res = await db.execute(select(Doctor).where(Doctor.name == doc_data['name'], Doctor.deleted_at.is_(None)))
    if res.scalars().first():
        print(f"  - Doctor '{doc_data['name']}' already exists. Skipping.")
        return

    doctor = await DoctorService(db).create(DoctorCreate.model_validate(
        {k: v for k, v in doc_data.items() if k != "weeklySchedule"}
    ))
    print(f"    ...created doctor with ID: {doctor.id}")

    week = [WeeklySlotCreate.model_validate(row) for row in doc_data.get("weeklySchedule") or DEFAULT_WEEK]
    rows = await ScheduleService(db).replace_weekly_schedule(doctor.id, week)
    print(f"    ...weekly schedule created ({len(rows)} ranges).")

async def main(path: str):
    """Seed doctors and their weekly templates from a JSON list."""
    print("Starting doctor seeding...")
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    await init_models()
    async with SessionLocal() as db:
        for doc_data in data:
            try:
                await seed_doctor(db, doc_data)
            except ScheduleError as e:
                await db.rollback()
                print(f"  ! Skipped '{doc_data.get('name')}': {e.message}")
    print("Seeding complete!")

if __name__ == "__main__":
    default = os.path.join(os.path.dirname(__file__), 'doctors.sample.json')
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else default))
