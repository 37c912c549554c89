"""
FastAPI service exposing the emotional state engine.
Stateless: every request carries the history it should be computed from.
"""
from fastapi import FastAPI, HTTPException, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
import uvicorn
import logging

import config
from core.chat_memory import classify_moderation, generate_chat_insights
from core.emotional_model import compute_trend, create_entry_from_check_in, materialize_entry, summarise_entries
from core.interventions import (
    INTERVENTIONS,
    analyse_intervention_sessions,
    get_intervention_definition,
    get_intervention_meta,
)
from core.safety import CRISIS_REPLY, build_helpline_response, check_for_crisis_language, notify_safety_team
from core.schemas import (
    ChatInsights,
    ChatMessage,
    CrisisCheck,
    EmotionalEntry,
    EmotionalSnapshot,
    EntryPayload,
    InterventionAnalytics,
    InterventionDefinition,
    InterventionMeta,
    InterventionSession,
    ModerationResult,
    RawCheckIn,
    SummaryMetrics,
    TrendPoint,
    WearableInputs,
)
from prompt_builder.prompt_builder import PromptBuilder, build_chat_context

# Setup logging
config.setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(title="Chitta Emotional Engine API", version="1.0.0")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models
class CheckInRequest(BaseModel):
    check_in: RawCheckIn
    wearable: Optional[WearableInputs] = None


class CheckInResponse(BaseModel):
    payload: EntryPayload
    snapshot: EmotionalSnapshot
    entry: EmotionalEntry


class EntriesRequest(BaseModel):
    entries: List[EmotionalEntry] = Field(default_factory=list)
    days: int = Field(default=config.TREND_WINDOW_DAYS, gt=0)


class SessionsRequest(BaseModel):
    sessions: List[InterventionSession] = Field(default_factory=list)
    window_days: int = Field(default=config.SESSION_WINDOW_DAYS, gt=0)


class InsightsRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    entries: List[EmotionalEntry] = Field(default_factory=list)


class ModerationRequest(BaseModel):
    text: str


class ModerationResponse(BaseModel):
    moderation: ModerationResult
    crisis_check: CrisisCheck
    reply: Optional[str] = None


class PromptRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    entries: List[EmotionalEntry] = Field(default_factory=list)
    consent_granted: bool = False


@app.post("/checkins/score", response_model=CheckInResponse)
async def score_check_in(request: CheckInRequest) -> CheckInResponse:
    """Score one check-in; returns the payload for storage and the entry it becomes."""
    payload, snapshot = create_entry_from_check_in(request.check_in, request.wearable)
    logger.info(f"Scored check-in: dominant={snapshot.dominant_guna} balance={snapshot.balance_index}")
    return CheckInResponse(payload=payload, snapshot=snapshot, entry=materialize_entry(payload))


@app.post("/entries/summary", response_model=SummaryMetrics)
async def entries_summary(request: EntriesRequest) -> SummaryMetrics:
    return summarise_entries(request.entries)


@app.post("/entries/trend", response_model=List[TrendPoint])
async def entries_trend(request: EntriesRequest) -> List[TrendPoint]:
    return compute_trend(request.entries, days=request.days)


@app.post("/interventions/analytics", response_model=InterventionAnalytics)
async def interventions_analytics(request: SessionsRequest) -> InterventionAnalytics:
    return analyse_intervention_sessions(request.sessions, window_days=request.window_days)


@app.get("/interventions", response_model=List[InterventionMeta])
async def list_interventions() -> List[InterventionMeta]:
    return [get_intervention_meta(item.id) for item in INTERVENTIONS]


@app.get("/interventions/{intervention_id}", response_model=InterventionDefinition)
async def intervention_detail(intervention_id: str) -> InterventionDefinition:
    definition = get_intervention_definition(intervention_id)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown intervention '{intervention_id}'")
    return definition


@app.post("/chat/insights", response_model=ChatInsights)
async def chat_insights(request: InsightsRequest) -> ChatInsights:
    return generate_chat_insights(request.messages, request.entries)


@app.post("/chat/moderation", response_model=ModerationResponse)
async def chat_moderation(request: ModerationRequest, background_tasks: BackgroundTasks) -> ModerationResponse:
    """
    Classify one message. Each message is judged on its own; earlier
    crisis classifications do not carry over.
    """
    moderation = classify_moderation(request.text)
    crisis_check = check_for_crisis_language(request.text)

    reply = None
    if crisis_check.flagged:
        reply = build_helpline_response(crisis_check.level)
        background_tasks.add_task(notify_safety_team, crisis_check.level, crisis_check.matches, request.text)
        logger.warning(f"Crisis language detected: level={crisis_check.level} matches={crisis_check.matches}")
    elif moderation.severity == "crisis":
        reply = CRISIS_REPLY

    return ModerationResponse(moderation=moderation, crisis_check=crisis_check, reply=reply)


@app.post("/chat/prompt")
async def chat_prompt(request: PromptRequest) -> Dict[str, Any]:
    """Build the system instruction and conversation contents for the chat model."""
    try:
        latest_user = next((m for m in reversed(request.messages) if m.role == "user"), None)
        moderation = classify_moderation(latest_user.content) if latest_user else None
        if moderation is not None and moderation.severity == "safe":
            moderation = None

        context = insights = None
        if request.consent_granted:
            insights = generate_chat_insights(request.messages, request.entries)
            context = build_chat_context(request.entries)
            if context is not None:
                context = context.model_copy(update={
                    "chat_insights": insights,
                    "consent_granted": True,
                    "moderation_tags": moderation.tags if moderation else [],
                })

        logger.info(f"Building prompt with {len(request.messages)} messages, consent={request.consent_granted}")
        return PromptBuilder().build_prompt(
            request.messages,
            consent_granted=request.consent_granted,
            context=context,
            insights=insights,
            moderation=moderation,
        )
    except Exception as e:
        logger.error(f"Error building chat prompt: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to build chat prompt")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Chitta Emotional Engine API",
        "version": "1.0.0",
        "config_errors": config.validate_config(),
    }


if __name__ == "__main__":
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
