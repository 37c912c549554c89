"""
core/chat_memory.py
──────────────────────────────────────────────────────────────────────────────
Keyword classification over chat text. Runs entirely locally.

  1.  THEME_MAP / generate_chat_insights   - recurring themes in what the user
                                             wrote, plus check-in highlights
  2.  classify_moderation                  - safe / sensitive / crisis tiering
──────────────────────────────────────────────────────────────────────────────
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.schemas import ChatInsights, ChatMessage, EmotionalEntry, ModerationResult

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# 1.  THEME EXTRACTION
# ─────────────────────────────────────────────────────────────────────────────

THEME_MAP: List[Dict] = [
    {
        "id": "overwhelm",
        "label": "Overwhelm & Anxiety",
        "keywords": ["stress", "anxious", "overwhelm", "panic", "worried", "burnout", "pressure"],
    },
    {
        "id": "fatigue",
        "label": "Fatigue & Low Energy",
        "keywords": ["tired", "exhausted", "drained", "burnt out", "sleepy", "fatigue"],
    },
    {
        "id": "anger",
        "label": "Anger & Boundaries",
        "keywords": ["angry", "frustrated", "irritated", "resent", "boundary", "rage"],
    },
    {
        "id": "grief",
        "label": "Sadness & Grief",
        "keywords": ["sad", "grief", "loss", "lonely", "depressed", "down"],
    },
    {
        "id": "guidance",
        "label": "Clarity & Guidance",
        "keywords": ["guidance", "help", "direction", "purpose", "decision", "choices"],
    },
    {
        "id": "gratitude",
        "label": "Calm & Gratitude",
        "keywords": ["calm", "peaceful", "grateful", "thankful", "still", "grounded"],
    },
    {
        "id": "rest",
        "label": "Rest & Recovery",
        "keywords": ["sleep", "rest", "recover", "reset", "recharge"],
    },
]

MAX_THEMES = 4
SUMMARY_THEMES = 3
MAX_HIGHLIGHTS = 3
REFLECTION_SNIPPET_CHARS = 120

EMPTY_SUMMARY = "Themes are still emerging; invite the user to share what's most alive for them."


def format_number(value: float) -> str:
    """Plain rendering without a trailing .0: 76.0 -> "76", 81.5 -> "81.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _highlight(entry: EmotionalEntry) -> str:
    reflection = (entry.reflection or "").strip()
    snippet = ""
    if reflection:
        ellipsis = "..." if len(reflection) > REFLECTION_SNIPPET_CHARS else ""
        snippet = f' Reflection: "{reflection[:REFLECTION_SNIPPET_CHARS]}{ellipsis}".'
    return (f"On {entry.date.isoformat()}, {entry.dominant_guna} was dominant with balance "
            f"{entry.balance_index:.1f} and confidence {format_number(entry.confidence)}.{snippet}")


def generate_chat_insights(messages: List[ChatMessage],
                           entries: List[EmotionalEntry],
                           now: Optional[datetime] = None) -> ChatInsights:
    """
    Count themes across user messages (at most one hit per theme per message)
    and summarise the first three entries, which callers pass newest first.
    """
    counts: Dict[str, int] = {theme["id"]: 0 for theme in THEME_MAP}
    phrases: Dict[str, Dict[str, None]] = {theme["id"]: {} for theme in THEME_MAP}
    labels = {theme["id"]: theme["label"] for theme in THEME_MAP}

    for message in messages:
        if message.role != "user":
            continue
        content = message.content.lower()
        for theme in THEME_MAP:
            for keyword in theme["keywords"]:
                if keyword in content:
                    counts[theme["id"]] += 1
                    phrases[theme["id"]][keyword] = None
                    break

    ranked = sorted((tid for tid in counts if counts[tid] > 0),
                    key=lambda tid: counts[tid], reverse=True)

    themes = []
    for tid in ranked[:MAX_THEMES]:
        matched = list(phrases[tid])
        themes.append(f"{labels[tid]} ({', '.join(matched)})" if matched else labels[tid])

    if ranked:
        summary = f"Recent conversations touch on {', '.join(labels[t] for t in ranked[:SUMMARY_THEMES])}."
    else:
        summary = EMPTY_SUMMARY

    highlights = [_highlight(entry) for entry in entries[:MAX_HIGHLIGHTS]]

    logger.debug("Chat insights: %d themes from %d messages", len(ranked), len(messages))
    return ChatInsights(
        summary=summary,
        themes=themes,
        highlights=highlights,
        last_updated=now or datetime.now(timezone.utc),
    )


# ─────────────────────────────────────────────────────────────────────────────
# 2.  MODERATION
# ─────────────────────────────────────────────────────────────────────────────

CRISIS_PATTERNS = [
    "suicide",
    "kill myself",
    "end it all",
    "can't go on",
    "cant go on",
    "hurt myself",
    "harm myself",
    "take my life",
    "i want to die",
    "i want to hurt myself",
    "ending my life",
    "self harm",
    "self-harm",
    "killing myself",
    "i might hurt someone",
    "hurt someone",
]

SENSITIVE_PATTERNS = [
    "panic attack",
    "panic",
    "trauma",
    "abuse",
    "relapse",
    "addiction",
    "self harm",
    "self-harm",
    "cutting",
    "manic",
    "assault",
]

CRISIS_TAG = "crisis-support"
SENSITIVE_TAG = "sensitive-topic"


def classify_moderation(text: str) -> ModerationResult:
    """Crisis phrases are checked first; a crisis hit never falls through to sensitive."""
    lowered = text.lower()

    matched_crisis = [phrase for phrase in CRISIS_PATTERNS if phrase in lowered]
    if matched_crisis:
        return ModerationResult(severity="crisis", tags=[CRISIS_TAG], matched=matched_crisis)

    matched_sensitive = [phrase for phrase in SENSITIVE_PATTERNS if phrase in lowered]
    if matched_sensitive:
        return ModerationResult(severity="sensitive", tags=[SENSITIVE_TAG], matched=matched_sensitive)

    return ModerationResult(severity="safe", tags=[])
