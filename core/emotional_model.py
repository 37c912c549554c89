"""
core/emotional_model.py
──────────────────────────────────────────────────────────────────────────────
Tri-guna scoring engine. Runs entirely locally, no I/O.

Sections:
  1.  Scorer          - six self-report sliders -> normalized sattva/rajas/tamas,
                        balance index, confidence
  2.  Recommender     - dominant guna + balance index -> up to 3 practice ids
  3.  Entry payloads  - check-in -> persistable entry payload
  4.  Aggregator      - trend series, dominant streak, rolling averages
                        (numpy + pandas)
──────────────────────────────────────────────────────────────────────────────
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.interventions import INTERVENTIONS
from core.schemas import (
    DominantPattern,
    EmotionalEntry,
    EmotionalSnapshot,
    EntryMetrics,
    EntryPayload,
    GunaAverages,
    Guna,
    RawCheckIn,
    SummaryMetrics,
    TrendPoint,
    WearableInputs,
)

logger = logging.getLogger(__name__)

NORMALIZATION_FLOOR = 5.0
CONFIDENCE_BASE = 0.5
CONFIDENCE_SPREAD_WEIGHT = 0.4
WEARABLE_BONUS = 0.15
CONFIDENCE_MIN = 40.0
CONFIDENCE_MAX = 95.0

MAX_RECOMMENDATIONS = 3


# ─────────────────────────────────────────────────────────────────────────────
# 1.  SCORER
# ─────────────────────────────────────────────────────────────────────────────

def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(max(value, low), high)


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` decimals with exact halves going up (52.125 -> 52.13)."""
    scale = 10 ** digits
    return float(np.floor(value * scale + 0.5) / scale)


def smooth_average(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted mean; 0 when the weights sum to 0."""
    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0
    return sum(v * w for v, w in zip(values, weights)) / total_weight


def normalize_trio(sattva: float, rajas: float, tamas: float) -> Tuple[float, float, float]:
    """Floor each value at 5 and rescale so the three sum to 100."""
    adjusted = [max(value, NORMALIZATION_FLOOR) for value in (sattva, rajas, tamas)]
    total = sum(adjusted)
    scaled = [value / total * 100 for value in adjusted]
    return scaled[0], scaled[1], scaled[2]


def dominant_guna(sattva: float, rajas: float, tamas: float) -> Guna:
    # sattva > rajas > tamas on ties
    if sattva >= rajas and sattva >= tamas:
        return "sattva"
    if rajas >= sattva and rajas >= tamas:
        return "rajas"
    return "tamas"


def compute_balance_index(sattva: float, rajas: float, tamas: float) -> float:
    """100 when the three are equal; sattva is the reference axis."""
    return clamp(100 - abs(sattva - rajas) - abs(sattva - tamas) / 2, 0, 100)


def compute_raw_gunas(raw: RawCheckIn) -> Tuple[float, float, float]:
    clarity_blend = smooth_average(
        [raw.clarity, 100 - raw.inertia, 100 - raw.restlessness], [0.45, 0.3, 0.25])
    peace_blend = smooth_average(
        [raw.peace, 100 - raw.restlessness, 100 - raw.activity], [0.5, 0.3, 0.2])
    sattva_raw = smooth_average([clarity_blend, peace_blend], [0.6, 0.4])

    rajas_activation = smooth_average(
        [raw.energy, raw.activity, raw.restlessness], [0.45, 0.35, 0.2])
    rajas_counterbalance = smooth_average(
        [100 - raw.peace, 100 - raw.clarity], [0.6, 0.4])
    rajas_raw = (rajas_activation + rajas_counterbalance) / 2

    tamas_raw = smooth_average(
        [raw.inertia, 100 - raw.energy, 100 - raw.clarity], [0.5, 0.3, 0.2])

    return sattva_raw, rajas_raw, tamas_raw


def compute_confidence(raw: RawCheckIn, wearable: Optional[WearableInputs] = None) -> float:
    spread = (max(raw.clarity, raw.peace, 100 - raw.restlessness)
              - min(raw.inertia, 100 - raw.energy))
    normalized_spread = clamp(spread / 100, 0, 1)
    bonus = WEARABLE_BONUS if wearable is not None and wearable.has_signal() else 0.0
    confidence = (CONFIDENCE_BASE + normalized_spread * CONFIDENCE_SPREAD_WEIGHT + bonus) * 100
    return clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX)


def calculate_emotional_snapshot(raw: RawCheckIn,
                                 wearable: Optional[WearableInputs] = None) -> EmotionalSnapshot:
    sattva, rajas, tamas = normalize_trio(*compute_raw_gunas(raw))
    dominant = dominant_guna(sattva, rajas, tamas)
    balance_index = compute_balance_index(sattva, rajas, tamas)
    confidence = compute_confidence(raw, wearable)

    snapshot = EmotionalSnapshot(
        sattva=round_half_up(sattva),
        rajas=round_half_up(rajas),
        tamas=round_half_up(tamas),
        balance_index=round_half_up(balance_index),
        dominant_guna=dominant,
        confidence=confidence,
        recommended_intervention_ids=recommend_interventions(dominant, balance_index),
    )
    logger.debug("Scored check-in: dominant=%s balance=%.2f confidence=%.1f",
                 dominant, snapshot.balance_index, confidence)
    return snapshot


# ─────────────────────────────────────────────────────────────────────────────
# 2.  RECOMMENDER
# ─────────────────────────────────────────────────────────────────────────────

def desired_focus(dominant: Guna, balance_index: float) -> str:
    if dominant == "sattva":
        return "integrate" if balance_index >= 45 else "calm"
    if dominant == "rajas":
        return "calm" if balance_index < 35 else "integrate"
    return "energize" if balance_index < 35 else "uplift"


def recommend_interventions(dominant: Guna, balance_index: float, catalog=None) -> List[str]:
    """
    Catalog entries sharing the dominant guna or the desired focus,
    first three in catalog order.
    """
    catalog = INTERVENTIONS if catalog is None else catalog
    focus = desired_focus(dominant, balance_index)
    matching = [item.id for item in catalog if item.guna == dominant or item.focus == focus]
    return matching[:MAX_RECOMMENDATIONS]


# ─────────────────────────────────────────────────────────────────────────────
# 3.  ENTRY PAYLOADS
# ─────────────────────────────────────────────────────────────────────────────

def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _payload_from(raw: RawCheckIn, snapshot: EmotionalSnapshot,
                  wearable: Optional[WearableInputs], now: datetime) -> EntryPayload:
    stored_wearable = None
    if wearable is not None:
        stored_wearable = wearable.model_copy(update={"last_sync": wearable.last_sync or now})

    return EntryPayload(
        date=raw.date or now.date(),
        sattva=snapshot.sattva,
        rajas=snapshot.rajas,
        tamas=snapshot.tamas,
        balance_index=snapshot.balance_index,
        confidence=snapshot.confidence,
        reflection=raw.reflection,
        dominant_guna=snapshot.dominant_guna,
        recommended_intervention_ids=list(snapshot.recommended_intervention_ids),
        metrics=EntryMetrics(
            clarity=raw.clarity,
            peace=raw.peace,
            energy=raw.energy,
            restlessness=raw.restlessness,
            activity=raw.activity,
            inertia=raw.inertia,
        ),
        wearable=stored_wearable,
    )


def build_emotional_payload(raw: RawCheckIn,
                            wearable: Optional[WearableInputs] = None,
                            now: Optional[datetime] = None) -> EntryPayload:
    snapshot = calculate_emotional_snapshot(raw, wearable)
    return _payload_from(raw, snapshot, wearable, _utc_now(now))


def create_entry_from_check_in(raw: RawCheckIn,
                               wearable: Optional[WearableInputs] = None,
                               now: Optional[datetime] = None) -> Tuple[EntryPayload, EmotionalSnapshot]:
    snapshot = calculate_emotional_snapshot(raw, wearable)
    return _payload_from(raw, snapshot, wearable, _utc_now(now)), snapshot


def materialize_entry(payload: EntryPayload,
                      entry_id: Optional[str] = None,
                      now: Optional[datetime] = None) -> EmotionalEntry:
    """Assign the id and timestamp a storage layer would give the payload."""
    return EmotionalEntry(
        **payload.model_dump(),
        id=entry_id or str(uuid.uuid4()),
        timestamp=_utc_now(now),
    )


# ─────────────────────────────────────────────────────────────────────────────
# 4.  AGGREGATOR
# ─────────────────────────────────────────────────────────────────────────────

def compute_trend(entries: List[EmotionalEntry], days: int = 7,
                  now: Optional[datetime] = None) -> List[TrendPoint]:
    """Entries dated within the last `days` days, oldest first."""
    if not entries:
        return []

    cutoff = pd.Timestamp(_utc_now(now) - timedelta(days=days))
    df = pd.DataFrame([
        {"date": e.date, "sattva": e.sattva, "rajas": e.rajas, "tamas": e.tamas}
        for e in entries
    ])
    df["day"] = pd.to_datetime(df["date"]).dt.tz_localize("UTC")
    df = df.sort_values("day", kind="stable")
    df = df[df["day"] >= cutoff]

    return [
        TrendPoint(date=row.date, sattva=float(row.sattva),
                   rajas=float(row.rajas), tamas=float(row.tamas))
        for row in df.itertuples(index=False)
    ]


def compute_dominant_pattern(entries: List[EmotionalEntry]) -> DominantPattern:
    if not entries:
        return DominantPattern()

    matrix = np.array([[e.sattva, e.rajas, e.tamas] for e in entries], dtype=float)
    means = matrix.mean(axis=0)
    averages = GunaAverages(
        sattva=round_half_up(means[0]),
        rajas=round_half_up(means[1]),
        tamas=round_half_up(means[2]),
    )
    dominant = dominant_guna(averages.sattva, averages.rajas, averages.tamas)

    # Only the unbroken run from the newest entry counts.
    streak = 0
    newest_first = sorted(entries, key=lambda e: _utc_now(e.timestamp), reverse=True)
    for entry in newest_first:
        if entry.dominant_guna != dominant:
            break
        streak += 1

    return DominantPattern(dominant=dominant, streak=streak, averages=averages)


def summarise_entries(entries: List[EmotionalEntry]) -> SummaryMetrics:
    pattern = compute_dominant_pattern(entries)
    balance_score = 0.0
    if entries:
        balance_score = round_half_up(np.mean([e.balance_index for e in entries]))
    return SummaryMetrics(**pattern.model_dump(), balance_score=balance_score)
