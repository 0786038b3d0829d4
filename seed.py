"""
Seed script for Giornale dei Lavori - Creates a demo user, a demo project and one daily log
Run: python seed.py
"""
import asyncio
from datetime import datetime, timezone

from database import db, client, ensure_indexes
from core.auth import get_password_hash
from controllers.project_controller import add_project
from controllers.daily_log_controller import get_daily_log, save_daily_log
from models.auth import User
from models.daily_log import DailyLogSave, Annotation, Resource, Weather
from models.project import ProjectCreate, Stakeholder

DEMO_EMAIL = "direttore@cantiere.it"
DEMO_PASSWORD = "cantiere123"


async def seed():
    print("Starting seed...")
    await ensure_indexes(db)

    # ==================== DEMO USER ====================
    user_doc = await db.users.find_one({"email": DEMO_EMAIL}, {"_id": 0, "password": 0})
    if user_doc:
        print("Demo user already exists, skipping...")
        user = User(**user_doc)
    else:
        user = User(email=DEMO_EMAIL, display_name="Ing. Mario Rossi")
        await db.users.insert_one({**user.model_dump(), "password": get_password_hash(DEMO_PASSWORD)})
        print(f"Demo user created: {DEMO_EMAIL} / {DEMO_PASSWORD}")

    # ==================== DEMO PROJECT ====================
    project_doc = await db.projects.find_one({"owner_id": user.id, "name": "Ristrutturazione Scuola Media"}, {"_id": 0})
    if project_doc:
        print("Demo project already exists, skipping...")
        project_id = project_doc["id"]
    else:
        project = await add_project(db, ProjectCreate(
            name="Ristrutturazione Scuola Media",
            description="Adeguamento sismico e riqualificazione energetica dell'edificio scolastico",
            client="Comune di Bologna",
            contractor="Edilizia Emiliana S.r.l.",
        ), user)
        project_id = project.id
        print(f"Demo project created: {project.name}")

    # ==================== DEMO DAILY LOG ====================
    today = datetime.now(timezone.utc).date()
    if await get_daily_log(db, project_id, today):
        print("Today's log already exists, skipping...")
    else:
        dl = Stakeholder(id=user.id, name=user.display_name, role="Direttore dei Lavori (DL)")
        await save_daily_log(db, project_id, today, DailyLogSave(
            weather=Weather(state="Variabile", temperature=16, precipitation="Assenti"),
            annotations=[Annotation(
                author=dl,
                type="Descrizione Lavori Svolti",
                content="Demolizione dei tramezzi al primo piano, ala est.",
            )],
            resources=[
                Resource(type="Manodopera", description="Operaio", name="Mario Rossi", quantity=2, company="Edilizia Emiliana S.r.l."),
                Resource(type="Macchinario/Mezzo", description="Escavatore", name="CAT 305", quantity=1),
            ],
        ))
        print(f"Demo log created for {today.isoformat()}")

    print("\n--- Seed complete! ---")
    print("Login credentials:")
    print(f"  {DEMO_EMAIL} / {DEMO_PASSWORD}")

    client.close()


if __name__ == "__main__":
    asyncio.run(seed())
