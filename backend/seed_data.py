from typing import Dict, List, Tuple

from models import Employee, ScheduleRecord, Shift


def seed_data() -> Tuple[List[Employee], Dict[str, ScheduleRecord]]:
    """Sample employees and schedules used when storage holds no employees."""
    employees = [
        Employee(id="test", name="Barret", password="test", role="employee"),
        Employee(id="cloud", name="Cloud", password="password", role="employee"),
        Employee(id="admin", name="Admin", password="admin", role="admin"),
    ]

    schedules = {
        "test": ScheduleRecord(
            employee_id="test",
            employee_name="Barret",
            shifts=[
                Shift(day=day, site="Site 1", start_time="3:00 PM", end_time="12:00 AM")
                for day in ("Monday", "Wednesday", "Thursday")
            ],
        ),
        "cloud": ScheduleRecord(
            employee_id="cloud",
            employee_name="Cloud",
            shifts=[
                Shift(day=day, site="Site 2", start_time="9:00 AM", end_time="5:00 PM")
                for day in ("Tuesday", "Friday")
            ],
        ),
    }
    return employees, schedules


def reset_to_seed():
    """Overwrite stored state with the seed data set."""
    from database import create_db_and_tables, engine
    from persistence import PersistenceAdapter

    create_db_and_tables()
    employees, schedules = seed_data()
    if PersistenceAdapter(engine).save(employees, schedules):
        print(f"Seeded {len(employees)} employees and {len(schedules)} schedules.")
    else:
        print("Seeding failed, see log output.")


if __name__ == "__main__":
    reset_to_seed()
