"""
core/interventions.py
──────────────────────────────────────────────────────────────────────────────
Guided practice catalog and practice-session analytics.

Sections:
  1.  INTERVENTION_CATALOG      - 9 scripted practices, each tagged with a guna
                                  and a recommender focus
  2.  Catalog lookups           - definition / meta / duration label helpers
  3.  Session analytics         - weekly counts, minutes, top guna and type
──────────────────────────────────────────────────────────────────────────────
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, TypeVar

import numpy as np

from core.schemas import (
    InterventionAnalytics,
    InterventionDefinition,
    InterventionMeta,
    InterventionSession,
    LastSession,
)

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# 1.  INTERVENTION CATALOG
#     Order matters: the recommender returns matches in this order.
# ─────────────────────────────────────────────────────────────────────────────

_CATALOG_DATA: List[Dict] = [
    {
        "id": "gratitude-reflection",
        "title": "Gratitude Reflection",
        "description": "Cultivate appreciation and positive awareness through guided gratitude practice",
        "guna": "sattva",
        "focus": "integrate",
        "type": "journaling",
        "difficulty": "beginner",
        "total_duration": 300,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Settle into a comfortable position and take three deep breaths. We'll explore "
                            "gratitude as a pathway to inner peace and clarity."},
            {"id": "body-gratitude", "duration": 60, "type": "practice",
             "instruction": "Begin by appreciating your body. Thank your heart for beating, your lungs for "
                            "breathing, your eyes for seeing. Feel genuine appreciation for this vessel that "
                            "carries you through life."},
            {"id": "relationships", "duration": 60, "type": "practice",
             "instruction": "Now bring to mind someone you're grateful for. It could be family, a friend, or "
                            "even a stranger who showed kindness. Feel the warmth of appreciation in your heart."},
            {"id": "experiences", "duration": 90, "type": "practice",
             "instruction": "Think of three experiences from today or this week that brought you joy, learning, "
                            "or growth. Even small moments count: a warm cup of tea, a beautiful sunset, a "
                            "moment of laughter."},
            {"id": "challenges", "duration": 45, "type": "practice",
             "instruction": "Consider a recent challenge. Can you find something to appreciate about it, perhaps "
                            "the strength it revealed in you, or the lesson it offered?"},
            {"id": "closing", "duration": 25, "type": "reflection",
             "instruction": "Rest in this feeling of gratitude. Let it fill your entire being. When you're ready, "
                            "gently open your eyes, carrying this appreciation with you."},
        ],
    },
    {
        "id": "mindful-awareness",
        "title": "Mindful Awareness",
        "description": "Deepen your present moment awareness with gentle mindfulness meditation",
        "guna": "sattva",
        "focus": "calm",
        "type": "meditation",
        "difficulty": "beginner",
        "total_duration": 420,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Sit comfortably with your spine straight but not stiff. Close your eyes gently. "
                            "We'll practice simple present-moment awareness."},
            {"id": "breath-anchor", "duration": 60, "type": "practice",
             "instruction": "Bring your attention to your natural breath. Notice where you feel it most: the "
                            "nose, chest, or belly. No need to change it, just observe."},
            {"id": "body-awareness", "duration": 90, "type": "practice",
             "instruction": "Expand awareness to your whole body. Notice any sensations: warmth, coolness, "
                            "tingling, tension. Simply observe without judgment."},
            {"id": "sounds", "duration": 60, "type": "practice",
             "instruction": "Now notice sounds around you. Near and far. Let them come and go like waves. You "
                            "don't need to label them, just hear them."},
            {"id": "thoughts", "duration": 120, "type": "practice",
             "instruction": "Notice thoughts arising in your mind. Like clouds passing through sky. When you "
                            "notice you've been caught in a thought, gently return to breath."},
            {"id": "integration", "duration": 70, "type": "reflection",
             "instruction": "Take three deep breaths. Notice the clarity and spaciousness in your awareness. "
                            "Slowly open your eyes when ready."},
        ],
    },
    {
        "id": "vision-clarity",
        "title": "Vision Clarity",
        "description": "Connect with your deeper purpose and aspirations through guided visualization",
        "guna": "sattva",
        "focus": "integrate",
        "type": "meditation",
        "difficulty": "intermediate",
        "total_duration": 360,
        "steps": [
            {"id": "intro", "duration": 30, "type": "instruction",
             "instruction": "Find a quiet, comfortable space. Close your eyes and take five deep, settling "
                            "breaths. We'll connect with your inner vision and purpose."},
            {"id": "present-self", "duration": 60, "type": "practice",
             "instruction": "Visualize yourself right now, in this moment. See yourself clearly: your strengths, "
                            "your challenges, your current path. Accept what you see with compassion."},
            {"id": "future-vision", "duration": 90, "type": "practice",
             "instruction": "Now imagine yourself six months from now, living in alignment with your deepest "
                            "values. What does that look like? What are you doing? How do you feel?"},
            {"id": "obstacles", "duration": 60, "type": "practice",
             "instruction": "Notice any obstacles or fears that arise. Acknowledge them without judgment. What "
                            "inner resources do you have to work with these challenges?"},
            {"id": "next-step", "duration": 60, "type": "practice",
             "instruction": "What is one small, concrete step you can take today toward that vision? See "
                            "yourself taking that step with confidence."},
            {"id": "closing", "duration": 60, "type": "reflection",
             "instruction": "Place your hand on your heart. Feel gratitude for this clarity. Slowly return to "
                            "the room, bringing this vision with you."},
        ],
    },
    {
        "id": "alternate-nostril",
        "title": "Alternate Nostril Breathing",
        "description": "Balance your nervous system with this traditional pranayama technique",
        "guna": "rajas",
        "focus": "calm",
        "type": "breathing",
        "difficulty": "intermediate",
        "total_duration": 240,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Sit with a straight spine. We'll practice Nadi Shodhana (alternate nostril "
                            "breathing) to balance left and right energy channels."},
            {"id": "hand-position", "duration": 25, "type": "instruction",
             "instruction": "Bring your right hand to your face. Use your thumb to close your right nostril and "
                            "your ring finger to close your left. Your index and middle fingers can rest gently "
                            "on your forehead."},
            {"id": "first-round", "duration": 40, "type": "practice",
             "instruction": "Close your right nostril with your thumb. Inhale slowly through your left nostril "
                            "for 4 counts. Now close both nostrils and hold for 4 counts. Release your thumb "
                            "and exhale through your right nostril for 4 counts."},
            {"id": "continue-pattern", "duration": 120, "type": "practice",
             "instruction": "Now inhale through the right nostril for 4, hold for 4, close right and exhale "
                            "through left for 4. This completes one full cycle. Continue this pattern."},
            {"id": "deepening", "duration": 25, "type": "practice",
             "instruction": "If comfortable, extend to 5 counts in, 5 hold, 5 out. Maintain steady, smooth "
                            "breath."},
            {"id": "closing", "duration": 10, "type": "reflection",
             "instruction": "Complete your last exhale through the left nostril. Release your hand and breathe "
                            "naturally. Notice the balance and calm."},
        ],
    },
    {
        "id": "calming-breath",
        "title": "4-7-8 Calming Breath",
        "description": "Activate your relaxation response with this powerful breathing pattern",
        "guna": "rajas",
        "focus": "calm",
        "type": "breathing",
        "difficulty": "beginner",
        "total_duration": 180,
        "steps": [
            {"id": "intro", "duration": 15, "type": "instruction",
             "instruction": "Find a comfortable seated position. Place one hand on your chest and one on your "
                            "belly. We'll practice the 4-7-8 breathing technique to calm your nervous system."},
            {"id": "demo", "duration": 20, "type": "instruction",
             "instruction": "Let's start with a demonstration. Breathe in through your nose for 4 counts, hold "
                            "for 7 counts, then exhale through your mouth for 8 counts."},
            {"id": "practice1", "duration": 25, "type": "practice",
             "instruction": "Inhale through your nose... 1, 2, 3, 4. Now hold your breath... 1, 2, 3, 4, 5, 6, "
                            "7. Exhale slowly through your mouth... 1, 2, 3, 4, 5, 6, 7, 8."},
            {"id": "practice2", "duration": 60, "type": "practice",
             "instruction": "Continue this rhythm. Inhale for 4... Hold for 7... Exhale for 8. Feel your body "
                            "beginning to relax with each cycle."},
            {"id": "practice3", "duration": 45, "type": "practice",
             "instruction": "Keep going at your own pace. Notice how your heart rate begins to slow and your "
                            "mind becomes calmer."},
            {"id": "reflection", "duration": 15, "type": "reflection",
             "instruction": "Take a moment to notice how you feel now compared to when you started. Return to "
                            "natural breathing and rest in this calm state."},
        ],
    },
    {
        "id": "focus-mantra",
        "title": "Focus Mantra Meditation",
        "description": "Channel restless energy into concentrated awareness with sacred sounds",
        "guna": "rajas",
        "focus": "integrate",
        "type": "meditation",
        "difficulty": "beginner",
        "total_duration": 300,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Sit comfortably with your spine tall. We'll use a simple mantra to anchor your "
                            "scattered energy into focused presence."},
            {"id": "choose-mantra", "duration": 30, "type": "instruction",
             "instruction": "Choose a mantra that resonates: 'Om' for universal connection, 'So Ham' (I am), "
                            "'Peace', or any word that feels right. We'll use 'Om' for this practice."},
            {"id": "silent-repetition", "duration": 120, "type": "practice",
             "instruction": "Close your eyes. Begin repeating 'Om' silently in your mind, matching it with your "
                            "breath. Inhale 'Om', exhale 'Om'. Let the sound fill your awareness."},
            {"id": "when-distracted", "duration": 80, "type": "practice",
             "instruction": "When your mind wanders (and it will), simply notice and gently return to the "
                            "mantra. No judgment. This returning IS the practice."},
            {"id": "deepen", "duration": 40, "type": "practice",
             "instruction": "Let the mantra become softer, subtler, almost like a gentle vibration rather than "
                            "words. Rest in that space."},
            {"id": "closing", "duration": 10, "type": "reflection",
             "instruction": "Let the mantra fade. Sit in silence for a few breaths. Notice the focused calm "
                            "you've created. Slowly open your eyes."},
        ],
    },
    {
        "id": "energizing-breath",
        "title": "Energizing Breath Work",
        "description": "Awaken your vital energy with invigorating breathing techniques",
        "guna": "tamas",
        "focus": "energize",
        "type": "breathing",
        "difficulty": "beginner",
        "total_duration": 240,
        "steps": [
            {"id": "intro", "duration": 15, "type": "instruction",
             "instruction": "Sit up tall with your spine straight. We'll use breath to awaken your natural "
                            "vitality and clear mental fog."},
            {"id": "bellows-prep", "duration": 20, "type": "instruction",
             "instruction": "We'll practice Bellows Breath (Bhastrika). Place your hands on your knees. This "
                            "involves rapid, forceful breathing to energize your system."},
            {"id": "bellows-practice", "duration": 45, "type": "practice",
             "instruction": "Take 10 rapid, forceful breaths in and out through your nose. Pump your belly like "
                            "a bellows. Then take a deep breath in, hold for 5 seconds, and exhale slowly."},
            {"id": "bellows-repeat", "duration": 45, "type": "practice",
             "instruction": "Let's do another round. 10 more rapid breaths, pumping energy through your system. "
                            "Then hold and release slowly."},
            {"id": "sun-breath", "duration": 60, "type": "practice",
             "instruction": "Now we'll do Sun Breath. Inhale and sweep your arms up overhead, exhale and bring "
                            "them down. Feel yourself gathering energy from above."},
            {"id": "integration", "duration": 55, "type": "reflection",
             "instruction": "Return to normal breathing. Notice the energy flowing through your body. Feel more "
                            "alert, awake, and ready to engage with your day."},
        ],
    },
    {
        "id": "body-scan-activation",
        "title": "Body Scan Activation",
        "description": "Gently awaken your body's energy centers through mindful scanning",
        "guna": "tamas",
        "focus": "uplift",
        "type": "meditation",
        "difficulty": "beginner",
        "total_duration": 360,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Lie down or sit comfortably. We'll move awareness through your body, awakening each "
                            "area and releasing stagnant energy."},
            {"id": "feet", "duration": 40, "type": "practice",
             "instruction": "Bring attention to your feet. Wiggle your toes. Imagine warm, golden light filling "
                            "your feet, awakening them."},
            {"id": "legs", "duration": 60, "type": "practice",
             "instruction": "Move awareness up through ankles, calves, knees, thighs. Tense and release each "
                            "area. Feel vitality flowing upward."},
            {"id": "core", "duration": 60, "type": "practice",
             "instruction": "Scan through your pelvis, belly, lower back. Take a deep breath into your abdomen. "
                            "Feel the solar plexus (your power center) glowing with energy."},
            {"id": "chest-arms", "duration": 60, "type": "practice",
             "instruction": "Move to your chest and heart space. Roll your shoulders. Stretch your arms. Feel "
                            "energy radiating from your heart center down through your fingers."},
            {"id": "head", "duration": 60, "type": "practice",
             "instruction": "Scan neck, jaw, face, scalp. Relax any tension. Imagine bright light at the crown "
                            "of your head, connecting you to clarity and purpose."},
            {"id": "whole-body", "duration": 60, "type": "reflection",
             "instruction": "Feel your entire body alive and energized. Take three deep breaths. Stretch gently. "
                            "Notice how much more awake and present you feel."},
        ],
    },
    {
        "id": "gentle-movement",
        "title": "Gentle Movement Flow",
        "description": "Light, mindful movements to shift stagnant energy and increase vitality",
        "guna": "tamas",
        "focus": "energize",
        "type": "movement",
        "difficulty": "beginner",
        "total_duration": 420,
        "steps": [
            {"id": "intro", "duration": 20, "type": "instruction",
             "instruction": "Stand with feet hip-width apart. We'll move through gentle stretches and flows to "
                            "wake up your body and shift heavy energy."},
            {"id": "neck-shoulders", "duration": 60, "type": "practice",
             "instruction": "Start with neck rolls, slow circles in each direction. Then shoulder rolls "
                            "backward, opening your chest. Roll forward, releasing tension."},
            {"id": "side-stretch", "duration": 60, "type": "practice",
             "instruction": "Reach your right arm overhead and lean gently to the left. Feel the stretch along "
                            "your right side. Hold for a few breaths. Repeat on the other side."},
            {"id": "twists", "duration": 60, "type": "practice",
             "instruction": "Place hands on hips. Gently twist your torso to the right, then left. Let your arms "
                            "swing naturally. Feel your spine releasing."},
            {"id": "forward-fold", "duration": 60, "type": "practice",
             "instruction": "Hinge at your hips and fold forward gently. Let your head and arms hang. Bend your "
                            "knees if needed. Sway side to side. Feel gravity releasing tension."},
            {"id": "cat-cow", "duration": 80, "type": "practice",
             "instruction": "If comfortable, come to hands and knees. Arch your back (cow pose) on an inhale. "
                            "Round your spine (cat pose) on an exhale. Flow between these."},
            {"id": "standing-flow", "duration": 60, "type": "practice",
             "instruction": "Return to standing. Reach arms up on inhale, fold down on exhale. Repeat this "
                            "simple flow 5 times, matching movement with breath."},
            {"id": "closing", "duration": 20, "type": "reflection",
             "instruction": "Stand in mountain pose. Feel your feet rooted, your spine tall. Take three deep "
                            "breaths. Notice the vitality and lightness in your body."},
        ],
    },
]

INTERVENTION_CATALOG: Dict[str, InterventionDefinition] = {
    item["id"]: InterventionDefinition(**item) for item in _CATALOG_DATA
}

INTERVENTIONS: List[InterventionDefinition] = list(INTERVENTION_CATALOG.values())


# ─────────────────────────────────────────────────────────────────────────────
# 2.  CATALOG LOOKUPS
# ─────────────────────────────────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def get_intervention_definition(intervention_id: str) -> Optional[InterventionDefinition]:
    return INTERVENTION_CATALOG.get(intervention_id)


def format_duration_label(total_seconds: int) -> str:
    if total_seconds < 60:
        return f"{total_seconds}s"
    return f"{_round_half_up(total_seconds / 60)} min"


def get_intervention_meta(intervention_id: str) -> Optional[InterventionMeta]:
    definition = get_intervention_definition(intervention_id)
    if definition is None:
        return None
    return InterventionMeta(
        id=definition.id,
        title=definition.title,
        guna=definition.guna,
        type=definition.type,
        difficulty=definition.difficulty,
        total_duration=definition.total_duration,
        duration_label=format_duration_label(definition.total_duration),
    )


# ─────────────────────────────────────────────────────────────────────────────
# 3.  SESSION ANALYTICS
# ─────────────────────────────────────────────────────────────────────────────

K = TypeVar("K")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _top_key(counts: Dict[K, int]) -> Optional[K]:
    """Highest count wins; on ties the key tallied first is kept."""
    result: Optional[K] = None
    highest = -1
    for key, count in counts.items():
        if count > highest:
            result = key
            highest = count
    return result


def _with_definition(session: InterventionSession) -> LastSession:
    return LastSession(
        **session.model_dump(),
        definition=get_intervention_definition(session.intervention_id),
    )


def _latest(sessions: List[InterventionSession]) -> InterventionSession:
    return sorted(sessions, key=lambda s: _as_utc(s.completed_at), reverse=True)[0]


def analyse_intervention_sessions(sessions: List[InterventionSession],
                                  window_days: int = 7,
                                  now: Optional[datetime] = None) -> InterventionAnalytics:
    """
    Summarise completed practices inside the trailing window.

    Sessions whose intervention is missing from the catalog still count toward
    the totals but not toward the guna/type tallies. The most recent session is
    always reported, even when it falls outside the window.
    """
    if not sessions:
        return InterventionAnalytics()

    now = _as_utc(now or datetime.now(timezone.utc))
    cutoff = now - timedelta(days=window_days)
    recent = [s for s in sessions if _as_utc(s.completed_at) >= cutoff]

    if not recent:
        logger.debug("No practice sessions since %s; reporting latest only", cutoff.isoformat())
        return InterventionAnalytics(last_session=_with_definition(_latest(sessions)))

    by_guna: Dict[str, int] = {}
    by_type: Dict[str, int] = {}

    for session in recent:
        definition = get_intervention_definition(session.intervention_id)
        if definition is None:
            logger.debug("Session %s references unknown intervention %s",
                         session.id, session.intervention_id)
            continue
        by_guna[definition.guna] = by_guna.get(definition.guna, 0) + 1
        by_type[definition.type] = by_type.get(definition.type, 0) + 1

    total_seconds = int(np.sum([s.duration for s in recent]))

    return InterventionAnalytics(
        completed_this_week=len(recent),
        total_minutes_this_week=_round_half_up(total_seconds / 60),
        top_guna=_top_key(by_guna),
        top_type=_top_key(by_type),
        last_session=_with_definition(_latest(recent)),
    )
