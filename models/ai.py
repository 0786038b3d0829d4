from pydantic import BaseModel, Field


class ReportAssistantRequest(BaseModel):
    project_description: str = ""
    draft_content: str = Field(min_length=1)


class ReportAssistantResponse(BaseModel):
    improved_content: str
    model: str
