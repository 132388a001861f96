import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

import requests

from ..analytics.summary import format_dog_profile, format_log_summary
from ..core.config import settings

logger = logging.getLogger(__name__)

http_session = requests.Session()
http_session.headers.update({"Accept": "application/json"})

HISTORY_LIMIT = 20
CONTEXT_DAYS = 30
CONTEXT_LOG_LIMIT = 100
TEMPERATURE = 0.7
MAX_TOKENS = 1000
TITLE_LENGTH = 50

SYSTEM_PROMPT = """You are a knowledgeable and caring dog health assistant. You help dog owners \
understand their pet's health and daily care.

You are not a veterinarian and you never diagnose. When symptoms sound serious or \
sudden, recommend contacting a vet promptly. Keep answers warm and practical, and refer \
to the dog by name when you know it."""


class AssistantError(Exception):
    pass


class AssistantReply(NamedTuple):
    content: str
    tokens_used: Optional[int]
    model: str


def build_system_prompt(dog=None, logs: Iterable = ()) -> str:
    sections = [SYSTEM_PROMPT]
    if dog is not None:
        sections.append("Dog profile:\n" + format_dog_profile(dog))
        sections.append(
            f"Health logs from the last {CONTEXT_DAYS} days (most recent per type):\n"
            + format_log_summary(logs)
        )
    return "\n\n".join(sections)


def build_messages(system_prompt: str, history: Iterable) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": system_prompt}]
    recent = list(history)[-HISTORY_LIMIT:]
    messages.extend({"role": message.role, "content": message.content} for message in recent)
    return messages


def conversation_title(first_message: str) -> str:
    text = " ".join(first_message.split())
    if len(text) <= TITLE_LENGTH:
        return text
    return text[: TITLE_LENGTH - 3].rstrip() + "..."


def complete_chat(messages: List[Dict[str, str]]) -> AssistantReply:
    if not settings.openai_api_key:
        raise AssistantError("AI assistant is not configured")
    url = f"{settings.openai_base_url.rstrip('/')}/chat/completions"
    payload = {
        "model": settings.openai_model,
        "messages": messages,
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
    }
    try:
        response = http_session.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
            timeout=settings.openai_timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("[ASSISTANT] Chat completion failed: %s", exc)
        raise AssistantError("Failed to get a response from the assistant") from exc

    choices = data.get("choices") or []
    if not choices:
        raise AssistantError("Assistant returned no choices")
    content = (choices[0].get("message") or {}).get("content") or ""
    usage = data.get("usage") or {}
    return AssistantReply(
        content=content.strip(),
        tokens_used=usage.get("total_tokens"),
        model=data.get("model") or settings.openai_model,
    )


TRIAGE_PROMPT = """I need a symptom triage assessment. Please analyze and respond in this exact format:

URGENCY: [EMERGENCY/URGENT/SOON/MONITOR]
ASSESSMENT: [2-3 sentence assessment]
RECOMMENDATIONS:
- [recommendation 1]
- [recommendation 2]
- [recommendation 3]

Symptom details:
- Type: {symptom_type}
- Severity: {severity}/5
- Duration: {duration}
- Appetite: {appetite_change}
- Behavior: {behavior_change}
- Additional notes: {notes}

Be conservative - if in doubt, recommend veterinary consultation. \
Use EMERGENCY only for life-threatening situations."""

# Checked in order, so "URGENT" never shadows "EMERGENCY".
URGENCY_KEYWORDS = (("EMERGENCY", "emergency"), ("URGENT", "urgent"), ("SOON", "soon"))


class Triage(NamedTuple):
    urgency: str
    assessment: str
    recommendations: List[str]


def build_triage_prompt(request) -> str:
    return TRIAGE_PROMPT.format(
        symptom_type=request.symptom_type,
        severity=request.severity,
        duration=request.duration,
        appetite_change=request.appetite_change,
        behavior_change=request.behavior_change,
        notes=request.additional_notes.strip() or "None",
    )


def _strip_label(line: str, label: str) -> str:
    index = line.upper().find(label)
    return (line[:index] + line[index + len(label):]).strip()


def parse_triage_response(text: str, dog_name: str) -> Triage:
    """Read the URGENCY / ASSESSMENT / RECOMMENDATIONS reply, filling gaps with safe defaults."""
    urgency = "monitor"
    assessment = ""
    recommendations: List[str] = []
    in_recommendations = False

    for line in text.splitlines():
        line = line.strip()
        upper = line.upper()
        if "URGENCY:" in upper:
            urgency = next((value for keyword, value in URGENCY_KEYWORDS if keyword in upper), "monitor")
        elif "ASSESSMENT:" in upper:
            assessment = _strip_label(line, "ASSESSMENT:")
        elif "RECOMMENDATIONS:" in upper:
            in_recommendations = True
        elif in_recommendations and line.startswith("-"):
            item = line[1:].strip()
            if item:
                recommendations.append(item)
        elif line and not assessment and "URGENCY" not in upper:
            assessment = line

    if not assessment:
        assessment = f"Based on the symptoms described, we recommend monitoring {dog_name} closely."
    if not recommendations:
        recommendations = [
            "Monitor the symptom closely for any changes",
            f"Ensure {dog_name} stays hydrated",
            "Contact your vet if symptoms worsen or persist",
        ]
    return Triage(urgency=urgency, assessment=assessment, recommendations=recommendations)


def triage_notes(request, triage: Optional[Triage] = None) -> str:
    notes = f"Duration: {request.duration}\nAppetite: {request.appetite_change}\nBehavior: {request.behavior_change}"
    if request.additional_notes.strip():
        notes += f"\nNotes: {request.additional_notes.strip()}"
    if triage is not None:
        notes += f"\n\nTriage: {triage.urgency.title()}\n{triage.assessment}"
    return notes
