"""
Tests for the practice catalog and session analytics
"""
from datetime import timedelta

from core.interventions import (
    INTERVENTIONS,
    analyse_intervention_sessions,
    format_duration_label,
    get_intervention_definition,
    get_intervention_meta,
)
from core.schemas import InterventionSession


def session(sid, intervention_id, completed_at, duration):
    return InterventionSession(id=sid, intervention_id=intervention_id,
                               completed_at=completed_at, duration=duration)


def test_catalog_is_complete():
    assert len(INTERVENTIONS) == 9
    for definition in INTERVENTIONS:
        assert definition.steps
        assert {s.type for s in definition.steps} <= {"instruction", "practice", "reflection"}
    assert sum(1 for d in INTERVENTIONS if d.guna == "sattva") == 3


def test_catalog_step_durations_match_totals():
    for definition in INTERVENTIONS:
        assert sum(step.duration for step in definition.steps) == definition.total_duration, definition.id


def test_lookups():
    assert get_intervention_definition("calming-breath").title == "4-7-8 Calming Breath"
    assert get_intervention_definition("missing") is None

    meta = get_intervention_meta("gentle-movement")
    assert meta.duration_label == "7 min"
    assert meta.type == "movement"
    assert get_intervention_meta("missing") is None


def test_duration_labels():
    assert format_duration_label(45) == "45s"
    assert format_duration_label(180) == "3 min"
    assert format_duration_label(90) == "2 min"
    assert format_duration_label(150) == "3 min"


def test_empty_log():
    analytics = analyse_intervention_sessions([])

    assert analytics.completed_this_week == 0
    assert analytics.total_minutes_this_week == 0
    assert analytics.last_session is None
    assert analytics.top_guna is None


def test_window_counts_and_tallies(now):
    sessions = [
        session("s1", "calming-breath", now - timedelta(days=1), 180),
        session("s2", "energizing-breath", now - timedelta(days=2), 240),
        session("s3", "focus-mantra", now - timedelta(days=3), 300),
        session("s4", "retired-practice", now - timedelta(hours=1), 60),
        session("s5", "gratitude-reflection", now - timedelta(days=20), 300),
    ]

    analytics = analyse_intervention_sessions(sessions, now=now)

    # the unknown practice still counts toward totals
    assert analytics.completed_this_week == 4
    assert analytics.total_minutes_this_week == 13
    assert analytics.top_guna == "rajas"
    assert analytics.top_type == "breathing"
    assert analytics.last_session.id == "s4"
    assert analytics.last_session.definition is None


def test_first_seen_wins_on_ties(now):
    sessions = [
        session("a", "energizing-breath", now - timedelta(days=1), 240),
        session("b", "calming-breath", now - timedelta(days=2), 180),
    ]

    analytics = analyse_intervention_sessions(sessions, now=now)

    assert analytics.top_guna == "tamas"
    assert analytics.top_type == "breathing"
    assert analytics.last_session.definition.id == "energizing-breath"


def test_latest_session_surfaces_outside_window(now):
    sessions = [
        session("old", "mindful-awareness", now - timedelta(days=30), 420),
        session("older", "vision-clarity", now - timedelta(days=40), 360),
    ]

    analytics = analyse_intervention_sessions(sessions, window_days=7, now=now)

    assert analytics.completed_this_week == 0
    assert analytics.total_minutes_this_week == 0
    assert analytics.top_guna is None
    assert analytics.last_session.id == "old"
    assert analytics.last_session.definition.title == "Mindful Awareness"


def test_minutes_round_half_up(now):
    analytics = analyse_intervention_sessions(
        [session("s", "calming-breath", now - timedelta(minutes=5), 90)], now=now)
    assert analytics.total_minutes_this_week == 2
