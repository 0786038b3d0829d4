from fastapi import HTTPException
import logging

from models.auth import UserCreate, UserLogin, Token, User, ProfileUpdate
from core.auth import verify_password, get_password_hash, create_access_token

logger = logging.getLogger(__name__)


async def signup(db, data: UserCreate) -> Token:
    existing = await db.users.find_one({"email": data.email})
    if existing:
        raise HTTPException(status_code=400, detail="Email already in use")
    user = User(email=data.email, display_name=data.display_name)
    await db.users.insert_one({**user.model_dump(), "password": get_password_hash(data.password)})
    logger.info(f"User {user.id} signed up")
    return Token(access_token=create_access_token({"sub": user.id}), user=user)


async def login(db, credentials: UserLogin) -> Token:
    user_doc = await db.users.find_one({"email": credentials.email})
    if not user_doc or not verify_password(credentials.password, user_doc["password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    user = User(**{k: v for k, v in user_doc.items() if k not in ["_id", "password"]})
    return Token(access_token=create_access_token({"sub": user.id}), user=user)


async def update_profile(db, current_user: User, data: ProfileUpdate) -> User:
    await db.users.update_one({"id": current_user.id}, {"$set": {"display_name": data.display_name}})
    updated = await db.users.find_one({"id": current_user.id}, {"_id": 0, "password": 0})
    return User(**updated)
