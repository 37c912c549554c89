"""
Tests for the chat context packet and system instruction
"""
from core.chat_memory import classify_moderation
from core.schemas import ChatInsights, ChatMessage, EntryMetrics
from prompt_builder.prompt_builder import (
    CONSENT_DECLINED_NOTE,
    CONSENT_GRANTED_NOTE,
    GREETING_PROMPT,
    NO_CONTEXT,
    NO_INSIGHTS,
    NO_MODERATION,
    PromptBuilder,
    build_chat_context,
    build_conversation_contents,
    build_system_instruction,
    format_context,
    format_insights,
    format_moderation,
)


def history(make_entry):
    latest = make_entry(age_days=1, balance_index=42.634, confidence=76.0, reflection="  Calm after the walk  ")
    latest = latest.model_copy(update={
        "metrics": EntryMetrics(clarity=80, peace=75, energy=30, restlessness=20, activity=25, inertia=15),
    })
    older = [make_entry(age_days=d, reflection=f"day {d}" if d % 2 else "") for d in range(2, 8)]
    return [latest] + older


def test_context_requires_history():
    assert build_chat_context([]) is None
    assert format_context(None) == NO_CONTEXT


def test_context_packet(make_entry):
    context = build_chat_context(history(make_entry))

    assert context.latest_entry.confidence == 76.0
    assert context.recommended_interventions == ["gratitude-reflection"]
    assert len(context.recent_entries) == 5
    assert context.recent_reflections == ["Calm after the walk", "day 3", "day 5"]
    assert context.emotional_summary.streak == 7


def test_format_context_sections(make_entry):
    text = format_context(build_chat_context(history(make_entry)))
    lines = text.split("\n")

    assert lines[0].startswith(
        "Latest check-in (2026-10-16): dominant guna sattva, balance index 42.6, confidence 76%. "
        "Metrics: clarity 80, peace 75, energy 30, restlessness 20, activity 25, inertia 15."
    )
    assert lines[1].startswith("Overall trend: balance score")
    assert lines[2].startswith("Recent check-ins: 2026-10-16: dominant sattva, balance 42.6.")
    assert lines[3] == 'Notable reflections: "Calm after the walk" | "day 3" | "day 5"'
    assert lines[4] == "Highlighted interventions: gratitude-reflection"


def test_format_insights_and_moderation():
    assert format_insights(None) == NO_INSIGHTS
    assert format_insights(ChatInsights()) == NO_INSIGHTS
    assert format_insights(ChatInsights(summary="s", themes=["a", "b"])) == (
        "Chat summary: s\nRecurring themes: a; b"
    )

    assert format_moderation(None) == NO_MODERATION
    assert format_moderation(classify_moderation("old trauma")) == (
        "Severity: sensitive | Tags: sensitive-topic | Triggered phrases: trauma"
    )


def test_memory_withheld_without_consent(make_entry):
    context = build_chat_context(history(make_entry))
    insights = ChatInsights(summary="Recent conversations touch on Rest & Recovery.")
    moderation = classify_moderation("I want to die")

    declined = build_system_instruction(False, context, insights, moderation)
    granted = build_system_instruction(True, context, insights, moderation)

    assert CONSENT_DECLINED_NOTE in declined
    assert f"Emotional context summary:\n{NO_CONTEXT}" in declined
    assert f"Chat memory notes:\n{NO_INSIGHTS}" in declined
    assert "Severity: crisis" in declined

    assert CONSENT_GRANTED_NOTE in granted
    assert "Latest check-in (2026-10-16)" in granted
    assert "Chat summary: Recent conversations touch on Rest & Recovery." in granted


def test_conversation_contents():
    assert build_conversation_contents([]) == [{"role": "user", "parts": [{"text": GREETING_PROMPT}]}]

    messages = [ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(25)]
    contents = build_conversation_contents(messages)

    assert len(contents) == 20
    assert contents[0] == {"role": "model", "parts": [{"text": "m5"}]}
    assert contents[-1] == {"role": "user", "parts": [{"text": "m24"}]}


def test_prompt_builder_bundle():
    bundle = PromptBuilder().build_prompt([ChatMessage(role="user", content="hi")], consent_granted=False)

    assert bundle["contents"][0]["role"] == "system"
    assert bundle["contents"][0]["parts"][0]["text"] == bundle["system_instruction"]
    assert bundle["message_count"] == 1


def test_prompt_builder_honours_its_message_limit():
    messages = [ChatMessage(role="user", content=f"m{i}") for i in range(30)]

    wide = PromptBuilder(max_messages=25).build_prompt(messages, consent_granted=False)
    narrow = PromptBuilder(max_messages=2).build_prompt(messages, consent_granted=False)

    assert wide["message_count"] == 25
    assert wide["contents"][1]["parts"][0]["text"] == "m5"
    assert narrow["message_count"] == 2
    assert [c["parts"][0]["text"] for c in narrow["contents"][1:]] == ["m28", "m29"]
