from fastapi import APIRouter, Depends
from models.auth import UserCreate, UserLogin, Token, User, ProfileUpdate
from core.auth import get_current_user
from controllers import auth_controller
from database import get_db

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=Token)
async def signup(data: UserCreate, db=Depends(get_db)):
    return await auth_controller.signup(db, data)


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db=Depends(get_db)):
    return await auth_controller.login(db, credentials)


@router.get("/me", response_model=User)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/profile", response_model=User)
async def update_profile(data: ProfileUpdate, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await auth_controller.update_profile(db, current_user, data)
