from fastapi import APIRouter, Depends
from models.ai import ReportAssistantRequest, ReportAssistantResponse
from models.auth import User
from core.auth import get_current_user
from controllers import ai_controller

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/report-assistant", response_model=ReportAssistantResponse)
async def report_assistant(request: ReportAssistantRequest, current_user: User = Depends(get_current_user)):
    return await ai_controller.improve_annotation(request)
