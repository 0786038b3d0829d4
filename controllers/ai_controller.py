from fastapi import HTTPException
import os
import re
import logging

from openai import AsyncOpenAI

from config import OPENAI_MODEL
from models.ai import ReportAssistantRequest, ReportAssistantResponse

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = """Sei un assistente AI per direttori dei lavori, specializzato nel migliorare le voci del giornale dei lavori per renderle chiare, professionali e complete.

Il tuo compito è rivedere e migliorare il testo dell'utente.
- Correggi eventuali errori di grammatica o di battitura.
- Migliora la chiarezza, l'oggettività e il tono professionale.
- Assicurati che il linguaggio sia preciso e tecnico dove appropriato.
- Espandi la voce solo se sembrano mancare dettagli cruciali basandoti sul contesto del progetto, ma non inventare nuovi fatti.
- Restituisci solo il testo migliorato, pronto per essere utilizzato nel giornale dei lavori."""


def sanitize_text(text: str) -> str:
    """Collapse runs of whitespace, newlines included, into single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()


async def improve_annotation(request: ReportAssistantRequest) -> ReportAssistantResponse:
    api_key = os.environ.get('OPENAI_API_KEY')
    if not api_key:
        raise HTTPException(status_code=500, detail="AI service not configured")
    try:
        openai_client = AsyncOpenAI(api_key=api_key)
        completion = await openai_client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": f"Contesto del Progetto: {request.project_description}\n\nTesto dell'Utente:\n\"{sanitize_text(request.draft_content)}\""}
            ]
        )
        improved = (completion.choices[0].message.content or "").strip()
    except Exception as e:
        logger.error(f"Report assistant error: {str(e)}")
        raise HTTPException(status_code=502, detail=f"AI service error: {str(e)}")
    return ReportAssistantResponse(improved_content=improved, model=OPENAI_MODEL)
