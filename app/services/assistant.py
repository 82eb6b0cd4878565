"""
Ticket triage helpers backed by OpenAI through LangChain.

Advisory only. Both helpers always return a usable answer: when the API key is
missing, or the model fails, times out, or answers with something unparsable,
a local keyword heuristic is used instead. Nothing here is called from inside
a ticket transaction.
"""
import json
import logging
import re

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import DependencyUnavailable
from app.models.enums import TicketCategory, TicketPriority
from app.schemas.ai import Suggestion

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "AI summary will appear here once configured."
HEURISTIC_RATIONALE = "Keyword heuristic (AI classification unavailable)."

CLASSIFY_SYSTEM_PROMPT = "Classify IT helpdesk tickets. Respond ONLY with strict JSON."
CLASSIFY_USER_PROMPT = (
    "Classify this ticket. Return JSON with keys: category in "
    '["Hardware","Software","Network","Other"], priority in [1,2,3,4], rationale.\n\n{text}'
)
SUMMARY_SYSTEM_PROMPT = (
    "You are an IT helpdesk assistant. Summarize tickets clearly and concisely for triage."
)
SUMMARY_USER_PROMPT = (
    "Summarize this ticket in 1-3 sentences, highlighting problem, impact, and key details:\n\n{text}"
)

CATEGORY_NAMES = {c.name.capitalize() for c in TicketCategory}

# later matches win, so a printer on the network is a Network ticket
_CATEGORY_PATTERNS = [
    ("Hardware", re.compile(r"printer|keyboard|mouse|monitor|laptop|hardware")),
    ("Software", re.compile(r"install|crash|bug|application|software|error")),
    ("Network", re.compile(r"wifi|network|internet|connection|vpn|latency")),
]
_URGENT = re.compile(r"cannot|can't|down|urgent|critical|deadline|exam|testing|production")
_HIGH = re.compile(r"slow|degraded|intermittent|frequent")
_LOW = re.compile(r"minor|cosmetic|feature request")


def is_configured() -> bool:
    return bool(settings.OPENAI_API_KEY)


def heuristic_suggestion(text: str) -> Suggestion:
    lowered = (text or "").lower()

    category = "Other"
    for name, pattern in _CATEGORY_PATTERNS:
        if pattern.search(lowered):
            category = name

    if _URGENT.search(lowered):
        priority = TicketPriority.URGENT
    elif _HIGH.search(lowered):
        priority = TicketPriority.HIGH
    elif _LOW.search(lowered):
        priority = TicketPriority.LOW
    else:
        priority = TicketPriority.MEDIUM

    return Suggestion(category=category, priority=int(priority), rationale=HEURISTIC_RATIONALE)


def heuristic_summary(text: str) -> str:
    if not text or not text.strip():
        return DEFAULT_SUMMARY
    trimmed = text.strip()
    if len(trimmed) <= 160:
        return trimmed
    period = trimmed.find(".")
    cut = period + 1 if period != -1 else 160
    return trimmed[: max(80, min(cut, 200))].strip()


def _chat(system_prompt: str, user_prompt: str, max_tokens: int = 200) -> str:
    """Single bounded completion. Raises DependencyUnavailable on any failure."""
    if not is_configured():
        raise DependencyUnavailable("OpenAI API key is not configured")

    llm = ChatOpenAI(
        model=settings.OPENAI_MODEL,
        api_key=settings.OPENAI_API_KEY,
        temperature=0.1,
        max_tokens=max_tokens,
        timeout=settings.AI_TIMEOUT_SECONDS,
        max_retries=0,
    )
    try:
        response = llm.invoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ])
    except Exception as e:
        raise DependencyUnavailable(f"Chat API error: {e}")
    content = response.content if hasattr(response, "content") else str(response)
    return (content or "").strip()


def _parse_suggestion(raw: str) -> Suggestion:
    data = json.loads(raw)
    suggestion = Suggestion.model_validate(data)
    if suggestion.category not in CATEGORY_NAMES:
        raise ValueError(f"unknown category {suggestion.category!r}")
    return suggestion


def suggest(text: str) -> Suggestion:
    """Suggest {category, priority, rationale} for a ticket description."""
    try:
        raw = _chat(CLASSIFY_SYSTEM_PROMPT, CLASSIFY_USER_PROMPT.format(text=text))
    except DependencyUnavailable as e:
        logger.warning("Classification falling back to heuristic: %s", e.message)
        return heuristic_suggestion(text)

    try:
        return _parse_suggestion(raw)
    except (ValueError, PydanticValidationError):
        logger.warning("Unparsable classification from model, using heuristic: %r", raw[:200])
        return heuristic_suggestion(text)


def summarize(text: str) -> str:
    if not text or not text.strip():
        return DEFAULT_SUMMARY
    try:
        summary = _chat(SUMMARY_SYSTEM_PROMPT, SUMMARY_USER_PROMPT.format(text=text))
    except DependencyUnavailable as e:
        logger.warning("Summary falling back to heuristic: %s", e.message)
        return heuristic_summary(text)
    return summary or heuristic_summary(text)
