"""
Tests for crisis-language screening and safety alerts
"""
import requests

import config
from core import safety
from core.safety import build_helpline_response, check_for_crisis_language, notify_safety_team


class _FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_immediate_tier_wins():
    result = check_for_crisis_language("I can't go on, I want to end my life")

    assert result.flagged
    assert result.level == "immediate"
    assert result.matches == ["explicit-suicide-intent"]


def test_watch_tier():
    result = check_for_crisis_language("Honestly I can't do this anymore")

    assert result.flagged
    assert result.level == "watch"
    assert result.matches == ["overwhelming-hopelessness"]


def test_blank_and_ordinary_text_not_flagged():
    assert not check_for_crisis_language("   ").flagged
    assert check_for_crisis_language("Today was a good day").level is None


def test_helpline_response_by_level():
    immediate = build_helpline_response("immediate")
    watch = build_helpline_response("watch")

    assert immediate.startswith("I'm concerned for your safety.")
    assert watch.startswith("I'm hearing a lot of pain")
    assert "KIRAN" in immediate and "KIRAN" in watch


def test_notify_without_webhook(monkeypatch):
    monkeypatch.setattr(config, "SAFETY_ALERT_WEBHOOK", None)
    assert notify_safety_team("immediate", ["explicit-suicide-intent"], "text") is False


def test_notify_posts_alert(monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return _FakeResponse()

    monkeypatch.setattr(config, "SAFETY_ALERT_WEBHOOK", "https://alerts.example.org/hook")
    monkeypatch.setattr(safety.requests, "post", fake_post)

    assert notify_safety_team("watch", ["severe-depression"], "feel empty all the time") is True
    url, body = calls[0]
    assert url == "https://alerts.example.org/hook"
    assert body["level"] == "watch"
    assert body["matches"] == ["severe-depression"]
    assert "timestamp" in body


def test_notify_failure_is_reported_not_raised(monkeypatch):
    def failing_post(url, json=None, timeout=None):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(safety.requests, "post", failing_post)

    assert notify_safety_team("immediate", [], "text", webhook="https://alerts.example.org/hook") is False


def test_notify_rejected_by_webhook(monkeypatch):
    monkeypatch.setattr(safety.requests, "post", lambda url, json=None, timeout=None: _FakeResponse(500))

    assert notify_safety_team("immediate", [], "text", webhook="https://alerts.example.org/hook") is False
