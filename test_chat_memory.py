"""
Tests for chat theme extraction and moderation
"""
from core.chat_memory import EMPTY_SUMMARY, classify_moderation, format_number, generate_chat_insights
from core.schemas import ChatMessage


def user(text):
    return ChatMessage(role="user", content=text)


def test_themes_ranked_by_count_then_table_order(now):
    messages = [
        user("I feel so much stress and pressure at work, and I'm tired"),
        ChatMessage(role="assistant", content="It sounds like you feel angry and sad."),
        user("Work stress again, I can't sleep"),
        user("I am grateful for my friend"),
    ]

    insights = generate_chat_insights(messages, [], now=now)

    assert insights.themes == [
        "Overwhelm & Anxiety (stress)",
        "Fatigue & Low Energy (tired)",
        "Calm & Gratitude (grateful)",
        "Rest & Recovery (sleep)",
    ]
    assert insights.summary == (
        "Recent conversations touch on Overwhelm & Anxiety, Fatigue & Low Energy, Calm & Gratitude."
    )
    assert insights.highlights == []
    assert insights.last_updated == now


def test_one_hit_per_theme_per_message(now):
    insights = generate_chat_insights([user("stress, anxious, panic, worried")], [], now=now)
    assert insights.themes == ["Overwhelm & Anxiety (stress)"]


def test_no_themes_falls_back(now):
    insights = generate_chat_insights([user("Hello there")], [], now=now)

    assert insights.themes == []
    assert insights.summary == EMPTY_SUMMARY


def test_highlights_from_latest_entries(make_entry, now):
    long_reflection = "x" * 130
    entries = [
        make_entry(age_days=1, balance_index=42.634, confidence=76.0, reflection=long_reflection),
        make_entry(age_days=2, dominant="rajas", balance_index=60.0, confidence=81.5),
        make_entry(age_days=3),
        make_entry(age_days=4),
    ]

    highlights = generate_chat_insights([], entries, now=now).highlights

    assert len(highlights) == 3
    assert highlights[0] == (
        'On 2026-10-16, sattva was dominant with balance 42.6 and confidence 76. '
        'Reflection: "' + "x" * 120 + '...".'
    )
    assert highlights[1] == "On 2026-10-15, rajas was dominant with balance 60.0 and confidence 81.5."


def test_crisis_text():
    result = classify_moderation("I want to kill myself")

    assert result.severity == "crisis"
    assert result.tags == ["crisis-support"]
    assert result.matched == ["kill myself"]


def test_crisis_wins_over_sensitive():
    result = classify_moderation("After the panic attack I just want to end it all")

    assert result.severity == "crisis"
    assert result.matched == ["end it all"]


def test_sensitive_text_reports_every_match():
    result = classify_moderation("I had a PANIC ATTACK yesterday")

    assert result.severity == "sensitive"
    assert result.tags == ["sensitive-topic"]
    assert result.matched == ["panic attack", "panic"]


def test_safe_text():
    result = classify_moderation("Lovely walk by the river today")

    assert result.severity == "safe"
    assert result.tags == []
    assert result.matched == []


def test_each_message_is_classified_independently():
    assert classify_moderation("I want to die").severity == "crisis"
    assert classify_moderation("Feeling better now").severity == "safe"


def test_highlight_prints_confidence_in_full(make_entry, now):
    entry = make_entry(age_days=1, balance_index=42.634, confidence=76.123456789)

    highlight = generate_chat_insights([], [entry], now=now).highlights[0]

    assert highlight.endswith("and confidence 76.123456789.")
    assert format_number(76.0) == "76"
    assert format_number(81.5) == "81.5"
