"""
core/safety.py
──────────────────────────────────────────────────────────────────────────────
Crisis-language screening for chat input.

  check_for_crisis_language   - regex screening, "immediate" tier before "watch"
  build_helpline_response     - supportive reply listing live helplines
  notify_safety_team          - JSON alert to SAFETY_ALERT_WEBHOOK (requests)
──────────────────────────────────────────────────────────────────────────────
"""

import re
import logging
from datetime import datetime, timezone
from typing import List, Optional

import requests

import config
from core.schemas import CrisisCheck, SafetyLevel

logger = logging.getLogger(__name__)

IMMEDIATE_RISK_PATTERNS = [
    ("explicit-suicide-intent", re.compile(r"kill myself|end my life|take my life|suicide", re.IGNORECASE)),
    ("self-harm-plan", re.compile(r"hurt myself|cut myself|slice my wrists|jump off", re.IGNORECASE)),
    ("request-for-method", re.compile(r"how to die|best way to die|painless death", re.IGNORECASE)),
    ("farewell-language", re.compile(r"goodbye forever|no reason to live|won't be here", re.IGNORECASE)),
]

WATCHLIST_PATTERNS = [
    ("overwhelming-hopelessness", re.compile(r"can't go on|can't do this anymore|life is pointless", re.IGNORECASE)),
    ("severe-depression", re.compile(r"severely depressed|feel empty all the time|constant darkness", re.IGNORECASE)),
    ("self-harm-thought", re.compile(r"think about hurting myself|urge to self harm|urge to cut", re.IGNORECASE)),
]

INDIA_HELPLINES = "\n".join([
    "• KIRAN (24/7 National Helpline): 1800-599-0019",
    "• iCall (TISS): 9152987821",
    "• AASRA: +91-9820466726",
    "• Snehi: +91-22-2772-6771",
])

# Shown by the chat surface when classify_moderation reports a crisis.
CRISIS_REPLY = (
    "I hear the depth of what you're feeling, dear soul. In urgent moments like these, please reach out "
    "to local emergency services, a trusted person nearby, or a crisis hotline (for example, 988 in the "
    "US / Canada, 0800 689 5652 in the UK, or your regional lifeline). You don't have to carry this alone, "
    "and immediate support is available right now."
)


def check_for_crisis_language(text: str) -> CrisisCheck:
    text = (text or "").strip()
    if not text:
        return CrisisCheck()

    immediate = [label for label, pattern in IMMEDIATE_RISK_PATTERNS if pattern.search(text)]
    if immediate:
        return CrisisCheck(flagged=True, level="immediate", matches=immediate)

    watch = [label for label, pattern in WATCHLIST_PATTERNS if pattern.search(text)]
    if watch:
        return CrisisCheck(flagged=True, level="watch", matches=watch)

    return CrisisCheck()


def build_helpline_response(level: SafetyLevel) -> str:
    if level == "immediate":
        intro = ("I'm concerned for your safety. When thoughts feel this heavy, reaching a human supporter "
                 "right now can help keep you safe.")
    else:
        intro = ("I'm hearing a lot of pain in what you shared. When things feel overwhelming, talking to "
                 "someone live can help hold that weight with you.")

    return "\n\n".join([
        f"{intro}\n\nHere are free crisis lines in India:",
        INDIA_HELPLINES,
        "If you're in immediate danger, please contact local emergency services or someone nearby you trust.",
        "I'll stay here with you, but I want to make sure you're also supported by trained listeners.",
    ])


def notify_safety_team(level: SafetyLevel, matches: List[str], message: str,
                       webhook: Optional[str] = None) -> bool:
    """
    POST a safety alert to the configured webhook.
    Returns True when the webhook accepted it; failures are logged, never raised.
    """
    webhook = webhook or config.SAFETY_ALERT_WEBHOOK
    payload = {
        "level": level,
        "matches": matches,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if not webhook:
        logger.warning("Safety alert detected but SAFETY_ALERT_WEBHOOK is not configured: level=%s matches=%s",
                       level, matches)
        return False

    try:
        resp = requests.post(webhook, json=payload, timeout=config.SAFETY_ALERT_TIMEOUT)
        resp.raise_for_status()
        return True
    except requests.RequestException as e:
        logger.error(f"Failed to send safety alert: {str(e)}")
        return False
