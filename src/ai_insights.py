"""
AI Insight Adapter
==================
Thin boundary around the Gemini text model.

The adapter is created once at process start and handed to every pipeline
that needs generated text.  Any object exposing ``call(prompt) -> str`` can
stand in for the crewai ``LLM`` (tests pass a stub).

Failure contract:
  • ``generate`` raises ``UpstreamAIError`` on timeout, missing API key,
    client exceptions and empty output.  Callers substitute deterministic
    text from ``insight_generator``.
  • ``generate_structured`` shares those transport failures, then parses the
    first balanced ``{...}`` object out of the reply.  A reply without a
    usable JSON object yields the safe default
    ``{"summary": "Analysis completed.", <list_key>: []}``; missing fields
    inside a parsed object are defaulted the same way.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, List, Mapping, Optional, Sequence

import settings
from constants import STRESS_QUESTIONS
from errors import UpstreamAIError
from insight_generator import describe_answer
from models import CheckIn

log = logging.getLogger("ai_insights")

DEFAULT_SUMMARY = "Analysis completed."

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="ai-insight")


def _build_llm(model: str, api_key: str, timeout: float):
    # crewai is imported lazily to keep module import cheap for the pure engine
    from crewai import LLM

    return LLM(model=model, api_key=api_key, temperature=0.3, timeout=timeout)


class AIInsightAdapter:
    """Time-bounded access to the text-generation model."""

    def __init__(self, llm: Any = None, model: Optional[str] = None,
                 api_key: Optional[str] = None, timeout: Optional[float] = None):
        self._llm = llm
        self.model = model or settings.ai_model()
        self.api_key = api_key if api_key is not None else settings.ai_api_key()
        self.timeout = timeout or settings.ai_timeout()

    def _get_llm(self):
        if self._llm is None:
            if not self.api_key:
                raise UpstreamAIError("AI API key is not configured")
            self._llm = _build_llm(self.model, self.api_key, self.timeout)
        return self._llm

    def generate(self, prompt: str) -> str:
        llm = self._get_llm()
        future = _executor.submit(llm.call, prompt)
        try:
            raw = future.result(timeout=self.timeout)
        except FutureTimeout as e:
            future.cancel()
            raise UpstreamAIError(f"AI call exceeded {self.timeout:.0f}s") from e
        except Exception as e:
            raise UpstreamAIError(f"AI call failed: {e}") from e

        text = str(raw or "").strip()
        if not text:
            raise UpstreamAIError("AI returned an empty response")
        return text

    def generate_structured(self, prompt: str, list_key: str = "trends") -> Dict[str, Any]:
        text = self.generate(prompt)
        try:
            return parse_structured(text, list_key)
        except ValueError as e:
            log.warning("Unusable structured AI response (%s): %s", e, text[:200])
            return default_structured(list_key)


# ─── Structured-output parsing ───────────────────────────────

def default_structured(list_key: str = "trends") -> Dict[str, Any]:
    return {"summary": DEFAULT_SUMMARY, list_key: []}


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring, ignoring braces inside strings."""
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    return None


def parse_structured(text: str, list_key: str = "trends") -> Dict[str, Any]:
    """Pull ``summary`` and ``list_key`` out of a model reply; ValueError if there is no JSON object."""
    candidate = extract_json_object(text or "")
    if candidate is None:
        raise ValueError("No JSON object found in AI response")
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ValueError(f"AI response JSON parse failed: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("AI response JSON is not an object")

    summary = parsed.get("summary")
    items = parsed.get(list_key)
    return {
        "summary": summary.strip() if isinstance(summary, str) and summary.strip() else DEFAULT_SUMMARY,
        list_key: [str(i).strip() for i in items if str(i).strip()] if isinstance(items, list) else [],
    }


# ─── Prompt builders ─────────────────────────────────────────

def build_checkin_prompt(data: Mapping[str, Any]) -> str:
    line = (
        f"Feeling {data['feelingScale']}/10, Sleep {data['sleepQuality']}/10, "
        f"Stress {data['stressLevel']}/10, Mood: {data['mood']}"
    )
    if data.get("recentEvents"):
        line += f", Events: {data['recentEvents']}"
    notes = data.get("additionalNotes") or data.get("notes")
    if notes:
        line += f", Notes: {notes}"
    return (
        "You are a wellness data tracker. Analyze this daily check-in data and provide brief, "
        "neutral observations about patterns only.\n\n"
        f"Data: {line}\n\n"
        "Provide: Pattern observations in 20-30 words. Encourage continued tracking. "
        "No advice or recommendations."
    )


def build_stress_prompt(answers: Mapping[int, float], stress_score: int,
                        user_name: str = "User", user_age: str = "Not specified") -> str:
    lines = [
        f"{STRESS_QUESTIONS.get(qid, f'Q{qid}')}: {describe_answer(qid, value)}"
        for qid, value in sorted(answers.items())
    ]
    return (
        "You are a neutral assistant that identifies trends and recurring patterns in short "
        "mental-health assessments.\n\n"
        f"User:\n- Name: {user_name}\n- Age: {user_age}\n\n"
        f"Numeric stress score (0-10): {stress_score}\n\n"
        "Responses:\n" + "\n".join(lines) + "\n\n"
        "Output: JSON ONLY (no explanation, no surrounding text). The JSON MUST have exactly two fields:\n"
        '{\n  "trends": ["short trend sentence 1", "short trend sentence 2"],\n'
        '  "summary": "single brief factual summary of recurring answer patterns"\n}\n\n'
        "trends should be short phrases like \"low sleep quality\" or \"high social stress\". "
        "summary should be four or five short, factual, non-judgmental sentences.\n"
        "Return a valid JSON object only."
    )


def build_weekly_prompt(records: Sequence[CheckIn], analytics: Mapping[str, Any]) -> str:
    days: List[str] = [
        f"Day {i}: Wellness {r.wellness_score}/10, Mood: {r.mood}, "
        f"Sleep: {r.sleep_quality}/10, Stress: {r.stress_level}/10"
        for i, r in enumerate(records, start=1)
    ]
    return (
        "Analyze this weekly mental health data and provide compassionate, actionable insights:\n\n"
        "Weekly Overview:\n"
        f"- Average wellness score: {analytics['avgWellnessScore']}/10\n"
        f"- Average feeling scale: {analytics['avgFeelingScale']}/10\n"
        f"- Average sleep quality: {analytics['avgSleepQuality']}/10\n"
        f"- Average stress level: {analytics['avgStressLevel']}/10\n"
        f"- Wellness trend: {analytics['wellnessScoreTrend']}\n"
        f"- Most common moods: {', '.join(analytics['moodFrequency'])}\n"
        f"- Key patterns: {'; '.join(analytics['keyPatterns']) or 'none detected'}\n\n"
        "Daily Data:\n" + "\n".join(days) + "\n\n"
        "Provide:\n1. A warm acknowledgment of their week\n2. 2-3 key insights about patterns\n"
        "3. 2-3 specific, actionable recommendations\n4. Encouragement and positive reinforcement\n\n"
        "Keep response supportive and around 200 words."
    )
