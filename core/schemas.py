"""
Data models for the emotional state engine.

Check-in input, derived snapshots and persisted entries, intervention
definitions and sessions, chat messages and the derived chat records.
Persisted and reference records are frozen; derived views are plain models.
"""

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Guna = Literal["sattva", "rajas", "tamas"]
Focus = Literal["calm", "energize", "uplift", "integrate"]
InterventionType = Literal["breathing", "meditation", "journaling", "movement"]
InterventionDifficulty = Literal["beginner", "intermediate", "advanced"]
StepType = Literal["instruction", "practice", "reflection"]
Severity = Literal["safe", "sensitive", "crisis"]
SafetyLevel = Literal["immediate", "watch"]


# ── Check-ins ─────────────────────────────────────────────────────────────

class RawCheckIn(BaseModel):
    # Sliders come from a 0-100 UI control and are not re-validated here.
    clarity: float
    peace: float
    energy: float
    restlessness: float
    activity: float
    inertia: float
    reflection: str = ""
    date: Optional[dt.date] = None


class WearableInputs(BaseModel):
    hrv: Optional[float] = None
    sleep_quality: Optional[float] = None
    activity_load: Optional[float] = None
    breath_rate: Optional[float] = None
    readiness_score: Optional[float] = None
    last_sync: Optional[dt.datetime] = None

    def has_signal(self) -> bool:
        """True when at least one physiological reading is present (zero counts)."""
        return any(
            value is not None
            for value in (self.hrv, self.sleep_quality, self.activity_load,
                          self.breath_rate, self.readiness_score)
        )


class EntryMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    clarity: float
    peace: float
    energy: float
    restlessness: float
    activity: float
    inertia: float


class EmotionalSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    sattva: float
    rajas: float
    tamas: float
    balance_index: float
    dominant_guna: Guna
    confidence: float
    recommended_intervention_ids: List[str] = Field(default_factory=list)


class EntryPayload(BaseModel):
    """Everything an entry holds before storage assigns its id and timestamp."""
    model_config = ConfigDict(frozen=True)

    date: dt.date
    sattva: float
    rajas: float
    tamas: float
    balance_index: float
    confidence: float
    reflection: str = ""
    dominant_guna: Guna
    recommended_intervention_ids: List[str] = Field(default_factory=list)
    metrics: EntryMetrics
    wearable: Optional[WearableInputs] = None


class EmotionalEntry(EntryPayload):
    id: str
    timestamp: dt.datetime


# ── Aggregates ────────────────────────────────────────────────────────────

class TrendPoint(BaseModel):
    date: dt.date
    sattva: float
    rajas: float
    tamas: float


class GunaAverages(BaseModel):
    sattva: float = 0.0
    rajas: float = 0.0
    tamas: float = 0.0


class DominantPattern(BaseModel):
    dominant: Optional[Guna] = None
    streak: int = 0
    averages: GunaAverages = Field(default_factory=GunaAverages)


class SummaryMetrics(DominantPattern):
    balance_score: float = 0.0


# ── Interventions ─────────────────────────────────────────────────────────

class InterventionStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    instruction: str
    duration: int  # seconds
    type: StepType


class InterventionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    guna: Guna
    focus: Focus
    type: InterventionType
    difficulty: InterventionDifficulty
    total_duration: int  # seconds
    steps: List[InterventionStep]


class InterventionMeta(BaseModel):
    id: str
    title: str
    guna: Guna
    type: InterventionType
    difficulty: InterventionDifficulty
    total_duration: int
    duration_label: str


class InterventionSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    intervention_id: str
    completed_at: dt.datetime
    duration: int  # seconds
    rating: Optional[int] = None


class LastSession(InterventionSession):
    definition: Optional[InterventionDefinition] = None


class InterventionAnalytics(BaseModel):
    completed_this_week: int = 0
    total_minutes_this_week: int = 0
    top_guna: Optional[Guna] = None
    top_type: Optional[InterventionType] = None
    last_session: Optional[LastSession] = None


# ── Chat ──────────────────────────────────────────────────────────────────

class ChatMessage(BaseModel):
    id: str = ""
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[dt.datetime] = None


class ChatInsights(BaseModel):
    summary: Optional[str] = None
    themes: List[str] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)
    last_updated: Optional[dt.datetime] = None


class ModerationResult(BaseModel):
    severity: Severity = "safe"
    tags: List[str] = Field(default_factory=list)
    matched: List[str] = Field(default_factory=list)


class CrisisCheck(BaseModel):
    flagged: bool = False
    level: Optional[SafetyLevel] = None
    matches: List[str] = Field(default_factory=list)


# ── Prompt context ────────────────────────────────────────────────────────

class LatestEntryContext(BaseModel):
    date: dt.date
    dominant_guna: Guna
    balance_index: float
    confidence: float
    reflection: Optional[str] = None
    recommended_interventions: List[str] = Field(default_factory=list)
    metrics: Optional[EntryMetrics] = None


class RecentEntryContext(BaseModel):
    date: dt.date
    dominant_guna: Guna
    balance_index: float
    reflection: Optional[str] = None


class ChatContext(BaseModel):
    latest_entry: Optional[LatestEntryContext] = None
    emotional_summary: Optional[SummaryMetrics] = None
    recent_entries: List[RecentEntryContext] = Field(default_factory=list)
    recent_reflections: List[str] = Field(default_factory=list)
    recommended_interventions: List[str] = Field(default_factory=list)
    chat_insights: Optional[ChatInsights] = None
    consent_granted: bool = False
    moderation_tags: List[str] = Field(default_factory=list)
