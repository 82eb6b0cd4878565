"""
AI routes: ticket classification and summaries.

- POST /ai/classify: suggest category and priority for a ticket description.
- POST /ai/summarize: short triage summary.

Both always answer; without a working OpenAI connection the keyword heuristic
in app.services.assistant is used.
"""
from fastapi import APIRouter, Depends

from app.core.auth import get_current_user
from app.schemas.ai import Suggestion, SummaryResponse, TextRequest
from app.services import assistant
from app.services.directory import Identity

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/classify", response_model=Suggestion)
def classify(
    body: TextRequest,
    current_user: Identity = Depends(get_current_user),
):
    return assistant.suggest(body.text)


@router.post("/summarize", response_model=SummaryResponse)
def summarize(
    body: TextRequest,
    current_user: Identity = Depends(get_current_user),
):
    return SummaryResponse(summary=assistant.summarize(body.text))
