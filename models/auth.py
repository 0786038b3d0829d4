from pydantic import BaseModel, EmailStr, Field, ConfigDict, model_validator
from typing import Optional
import uuid
from datetime import datetime, timezone

from config import MIN_PASSWORD_LENGTH


class UserBase(BaseModel):
    email: EmailStr
    display_name: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class User(UserBase):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User


class ProfileUpdate(BaseModel):
    display_name: str = Field(min_length=1)
