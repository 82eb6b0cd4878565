from pydantic import BaseModel, Field


class TextRequest(BaseModel):
    """Body for POST /ai/classify and /ai/summarize."""
    text: str = Field(..., min_length=1, max_length=16_000)


class Suggestion(BaseModel):
    category: str = Field(description="One of Hardware, Software, Network, Other")
    priority: int = Field(ge=1, le=4, description="1=low .. 4=urgent")
    rationale: str


class SummaryResponse(BaseModel):
    summary: str
