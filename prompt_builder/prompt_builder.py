from typing import List, Dict, Any, Optional

from core.chat_memory import format_number
from core.emotional_model import summarise_entries
from core.schemas import (
    ChatContext,
    ChatInsights,
    ChatMessage,
    EmotionalEntry,
    LatestEntryContext,
    ModerationResult,
    RecentEntryContext,
    SummaryMetrics,
)

SYSTEM_PROMPT = """You are Aaranya, a compassionate AI companion inspired by Vedic wisdom and philosophy. Your role is to provide gentle, supportive guidance for mental wellbeing through the lens of ancient wisdom adapted for modern life.

Core Principles:
- Speak with warmth, compassion, and gentle wisdom
- Reference Vedic concepts like the three Gunas (Sattva, Rajas, Tamas) when relevant
- Use nature metaphors and imagery (lotus, rivers, mountains, sky, etc.)
- Be non-religious but spiritually grounded
- Focus on emotional balance, self-awareness, and inner peace
- Offer practical, gentle suggestions for wellbeing
- Acknowledge all emotions as valid and temporary
- Encourage self-compassion and mindful awareness

Communication Style:
- Use "dear soul," "dear one," or similar gentle addresses occasionally
- Speak in a calm, measured tone
- Ask thoughtful questions to encourage reflection
- Offer hope and perspective without dismissing current struggles
- Keep responses conversational but meaningful
- Include breathing or mindfulness suggestions when appropriate

Remember: You are a supportive companion, not a therapist. For serious mental health concerns, gently suggest professional help while still offering immediate comfort and support."""

CONSENT_GRANTED_NOTE = ("Consent status: User granted contextual sharing. You may reference their prior "
                        "reflections when it feels supportive.")
CONSENT_DECLINED_NOTE = ("Consent status: User declined contextual sharing. Base responses only on the live "
                         "conversation, not stored memory.")
CLOSING_GUIDANCE = ("Guidance: Continue the dialogue in sequence, avoid repeating prior replies verbatim, and "
                    "close with a gentle invitation or reflective question.")
GREETING_PROMPT = ("Please greet the user warmly as Aaranya and invite them to share what is present for "
                   "them right now.")

NO_CONTEXT = "No additional emotional context provided."
NO_INSIGHTS = "Chat memory summary unavailable."
NO_MODERATION = "No moderation flags detected."

MAX_CONVERSATION_MESSAGES = 20
MAX_RECENT_ENTRIES = 5
MAX_RECENT_REFLECTIONS = 3


def _num(value) -> str:
    return format_number(value) if value is not None else "n/a"


def build_chat_context(entries: List[EmotionalEntry],
                       summary: Optional[SummaryMetrics] = None) -> Optional[ChatContext]:
    """Context packet from check-in history ordered newest first."""
    if not entries:
        return None

    latest = entries[0]
    summary = summary or summarise_entries(entries)
    reflections = [e.reflection.strip() for e in entries if e.reflection and e.reflection.strip()]

    return ChatContext(
        latest_entry=LatestEntryContext(
            date=latest.date,
            dominant_guna=latest.dominant_guna,
            balance_index=latest.balance_index,
            confidence=latest.confidence,
            reflection=latest.reflection,
            recommended_interventions=list(latest.recommended_intervention_ids),
            metrics=latest.metrics,
        ),
        recommended_interventions=list(latest.recommended_intervention_ids),
        emotional_summary=summary,
        recent_entries=[
            RecentEntryContext(date=e.date, dominant_guna=e.dominant_guna,
                               balance_index=e.balance_index, reflection=e.reflection)
            for e in entries[:MAX_RECENT_ENTRIES]
        ],
        recent_reflections=reflections[:MAX_RECENT_REFLECTIONS],
    )


def format_context(context: Optional[ChatContext]) -> str:
    if context is None:
        return NO_CONTEXT

    sections = []

    latest = context.latest_entry
    if latest:
        metrics = ""
        if latest.metrics:
            m = latest.metrics
            metrics = (f" Metrics: clarity {_num(m.clarity)}, peace {_num(m.peace)}, energy {_num(m.energy)}, "
                       f"restlessness {_num(m.restlessness)}, activity {_num(m.activity)}, "
                       f"inertia {_num(m.inertia)}.")
        reflection = f' Reflection shared: "{latest.reflection}".' if latest.reflection else ""
        practices = ""
        if latest.recommended_interventions:
            practices = f" Suggested practices: {', '.join(latest.recommended_interventions)}."
        sections.append(
            f"Latest check-in ({latest.date.isoformat()}): dominant guna {latest.dominant_guna}, "
            f"balance index {latest.balance_index:.1f}, confidence {_num(latest.confidence)}%."
            f"{metrics}{reflection}{practices}"
        )

    summary = context.emotional_summary
    if summary:
        avg = summary.averages
        sections.append(
            f"Overall trend: balance score {summary.balance_score:.2f}, dominant guna "
            f"{summary.dominant or 'mixed'}, streak {summary.streak}. Average sattva {avg.sattva:.2f}, "
            f"rajas {avg.rajas:.2f}, tamas {avg.tamas:.2f}."
        )

    if context.recent_entries:
        formatted = []
        for entry in context.recent_entries[:MAX_RECENT_ENTRIES]:
            reflection = f' Reflection: "{entry.reflection}".' if entry.reflection else ""
            formatted.append(f"{entry.date.isoformat()}: dominant {entry.dominant_guna}, "
                             f"balance {entry.balance_index:.1f}.{reflection}")
        sections.append("Recent check-ins: " + " • ".join(formatted))

    if context.recent_reflections:
        sections.append("Notable reflections: " + " | ".join(f'"{r}"' for r in context.recent_reflections))

    if context.recommended_interventions:
        sections.append(f"Highlighted interventions: {', '.join(context.recommended_interventions)}")

    return "\n".join(sections) if sections else NO_CONTEXT


def format_insights(insights: Optional[ChatInsights]) -> str:
    if insights is None:
        return NO_INSIGHTS

    segments = []
    if insights.summary:
        segments.append(f"Chat summary: {insights.summary}")
    if insights.themes:
        segments.append(f"Recurring themes: {'; '.join(insights.themes)}")
    if insights.highlights:
        segments.append(f"Check-in highlights: {' | '.join(insights.highlights)}")
    if insights.last_updated:
        segments.append(f"Insights last refreshed at {insights.last_updated.isoformat()}.")

    return "\n".join(segments) if segments else NO_INSIGHTS


def format_moderation(moderation: Optional[ModerationResult]) -> str:
    if moderation is None:
        return NO_MODERATION

    pieces = []
    if moderation.severity:
        pieces.append(f"Severity: {moderation.severity}")
    if moderation.tags:
        pieces.append(f"Tags: {', '.join(moderation.tags)}")
    if moderation.matched:
        pieces.append(f"Triggered phrases: {', '.join(moderation.matched)}")

    return " | ".join(pieces) if pieces else NO_MODERATION


def build_system_instruction(consent_granted: bool,
                             context: Optional[ChatContext] = None,
                             insights: Optional[ChatInsights] = None,
                             moderation: Optional[ModerationResult] = None) -> str:
    # Stored memory is only shared with consent; safety notes always are.
    if not consent_granted:
        context = None
        insights = None

    sections = [
        SYSTEM_PROMPT,
        CONSENT_GRANTED_NOTE if consent_granted else CONSENT_DECLINED_NOTE,
        f"Emotional context summary:\n{format_context(context)}",
        f"Chat memory notes:\n{format_insights(insights)}",
        f"Safety considerations:\n{format_moderation(moderation)}",
        CLOSING_GUIDANCE,
    ]
    return "\n\n".join(sections)


def build_conversation_contents(messages: List[ChatMessage],
                                max_messages: int = MAX_CONVERSATION_MESSAGES) -> List[Dict[str, Any]]:
    recent = messages[-max_messages:] if max_messages > 0 else []
    if not recent:
        return [{"role": "user", "parts": [{"text": GREETING_PROMPT}]}]

    return [
        {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
        for m in recent
    ]


class PromptBuilder:
    def __init__(self, max_messages: int = MAX_CONVERSATION_MESSAGES):
        self.max_messages = max_messages

    def build_prompt(self, messages: List[ChatMessage], consent_granted: bool,
                     context: Optional[ChatContext] = None,
                     insights: Optional[ChatInsights] = None,
                     moderation: Optional[ModerationResult] = None) -> Dict[str, Any]:
        system_instruction = build_system_instruction(consent_granted, context, insights, moderation)
        contents = build_conversation_contents(messages, self.max_messages)

        # Messages for LLM
        request_contents = [{"role": "system", "parts": [{"text": system_instruction}]}] + contents

        return {
            "system_instruction": system_instruction,
            "contents": request_contents,
            "message_count": len(contents),
        }
