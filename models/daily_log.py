from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal
import uuid
from datetime import datetime, timezone

from core.timestamps import from_wire_timestamp
from models.project import Stakeholder, ResourceType, RegisteredResource


AnnotationType = Literal[
    "Descrizione Lavori Svolti",
    "Istruzioni / Ordine di Servizio",
    "Osservazioni e Annotazioni",
    "Verbale di Constatazione",
    "Verbale di Accettazione Materiali",
    "Contestazione dell'Impresa",
]


class Weather(BaseModel):
    state: Literal["Sole", "Variabile", "Nuvoloso", "Pioggia", "Neve"] = "Sole"
    temperature: int = 20  # Celsius
    precipitation: Literal["Assenti", "Deboli", "Moderate", "Forti"] = "Assenti"


class Attachment(BaseModel):
    id: str = Field(default_factory=lambda: f"att-{uuid.uuid4()}")
    url: str
    caption: str = ""
    type: Literal["image", "video", "pdf"] = "image"


class Annotation(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: f"anno-{uuid.uuid4()}")
    author: Stakeholder
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    type: AnnotationType
    content: str
    attachments: List[Attachment] = Field(default_factory=list)
    is_signed: bool = False

    @field_validator("timestamp", mode="after")
    @classmethod
    def as_utc(cls, v):
        return from_wire_timestamp(v)


class ResourceCreate(BaseModel):
    registered_resource_id: Optional[str] = None
    type: ResourceType
    description: str = Field(min_length=1)
    name: str = ""
    quantity: int = Field(gt=0)
    notes: Optional[str] = None
    company: Optional[str] = None

    @field_validator("company", mode="before")
    @classmethod
    def empty_company_is_none(cls, v):
        return v or None


class Resource(ResourceCreate):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: f"res-{uuid.uuid4()}")


class DailyLogSave(BaseModel):
    """Full payload of one day's log as sent by the client on save."""
    date: Optional[datetime] = None
    weather: Weather = Field(default_factory=Weather)
    annotations: List[Annotation] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    is_validated: bool = False
    # Advisory: the register as last seen by the caller. Saves reconcile against
    # the stored register; a differing copy here is only logged.
    registered_resources: Optional[List[RegisteredResource]] = Field(
        default=None,
        description="Advisory copy of the project register; the stored register is authoritative",
    )

    @property
    def is_empty(self) -> bool:
        return not self.annotations and not self.resources


class DailyLog(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    date: datetime
    weather: Weather = Field(default_factory=Weather)
    annotations: List[Annotation] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    is_validated: bool = False

    @field_validator("date", mode="after")
    @classmethod
    def as_utc(cls, v):
        return from_wire_timestamp(v)

    @field_validator("resources", "annotations", mode="before")
    @classmethod
    def missing_list_is_empty(cls, v):
        return v or []

    @field_validator("is_validated", mode="before")
    @classmethod
    def missing_flag_is_false(cls, v):
        return bool(v)


class DailyLogResponse(DailyLog):
    persisted: bool = True
