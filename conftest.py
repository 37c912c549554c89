from datetime import date, datetime, timedelta, timezone

import pytest

from core.schemas import EmotionalEntry, EntryMetrics

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

_DEFAULT_METRICS = EntryMetrics(clarity=50, peace=50, energy=50, restlessness=50, activity=50, inertia=50)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_entry():
    """Factory for stored entries; `age_days` sets both the date and the timestamp."""
    counter = {"n": 0}

    def _make(sattva=60.0, rajas=20.0, tamas=20.0, dominant="sattva", age_days=0,
              balance_index=50.0, confidence=70.0, reflection="", hours=0):
        counter["n"] += 1
        stamp = NOW - timedelta(days=age_days, hours=hours)
        return EmotionalEntry(
            id=f"entry-{counter['n']}",
            timestamp=stamp,
            date=date(stamp.year, stamp.month, stamp.day),
            sattva=sattva,
            rajas=rajas,
            tamas=tamas,
            balance_index=balance_index,
            confidence=confidence,
            reflection=reflection,
            dominant_guna=dominant,
            recommended_intervention_ids=["gratitude-reflection"],
            metrics=_DEFAULT_METRICS,
        )

    return _make
