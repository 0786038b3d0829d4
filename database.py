from motor.motor_asyncio import AsyncIOMotorClient
from config import MONGO_URL, DB_NAME

client = AsyncIOMotorClient(MONGO_URL, tz_aware=True)
db = client[DB_NAME]


def get_db():
    return db


async def ensure_indexes(database):
    await database.projects.create_index("id", unique=True)
    await database.projects.create_index("owner_id")
    await database.daily_logs.create_index([("project_id", 1), ("id", 1)], unique=True)
    await database.daily_logs.create_index([("project_id", 1), ("date", -1)])
    await database.users.create_index("email", unique=True)
