from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal
import uuid
from datetime import datetime, timezone

from core.timestamps import from_wire_timestamp


UserRole = Literal[
    "Direttore dei Lavori (DL)",
    "Responsabile del Procedimento (RUP)",
    "Coordinatore per la Sicurezza (CSE)",
    "Impresa Esecutrice",
    "Assistente del DL",
]

ResourceType = Literal["Manodopera", "Macchinario/Mezzo"]


class Stakeholder(BaseModel):
    id: str
    name: str
    role: UserRole


class RegisteredResourceCreate(BaseModel):
    type: ResourceType
    description: str = Field(min_length=1)
    name: str = ""
    company: Optional[str] = None

    @field_validator("company", mode="before")
    @classmethod
    def empty_company_is_none(cls, v):
        return v or None


class RegisteredResource(RegisteredResourceCreate):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: f"reg-{uuid.uuid4()}")


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    client: str = ""
    contractor: str = ""


class Project(ProjectCreate):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    last_log_date: Optional[datetime] = None
    registered_resources: List[RegisteredResource] = Field(default_factory=list)
    catalogue_version: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("last_log_date", "created_at", mode="after")
    @classmethod
    def as_utc(cls, v):
        return from_wire_timestamp(v) if v is not None else None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    client: Optional[str] = None
    contractor: Optional[str] = None
    stakeholders: Optional[List[Stakeholder]] = None
    registered_resources: Optional[List[RegisteredResource]] = None
