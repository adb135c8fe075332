"""
AI-assisted insights over an OpenAI-compatible chat/completions API
(OpenRouter by default).

The completion client raises UpstreamFailure for every failure mode
(no API key, transport error, non-2xx, empty or malformed body).
AIInsightService catches it and downgrades to the rule engine or a
canned chat answer, so callers always get a usable response.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests

from ..errors import UpstreamFailure
from ..simulation.state import HeatState
from .rules import ANALYSIS_TYPES, Insight, generate_insight

logger = logging.getLogger("AIService")

SYSTEM_PROMPT = (
    "You are an expert AI assistant for steel production in electric arc furnaces. "
    "Provide precise, actionable insights for industrial operators."
)

_CONFIDENCE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%?")


class CompletionClient:
    def __init__(self, base_url: str, model: str, api_key: Optional[str],
                 timeout: float = 8.0, max_tokens: int = 500, temperature: float = 0.3,
                 referer: str = "http://localhost:8000", title: str = "I-MELT Operator AI",
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.referer = referer
        self.title = title
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, ai_cfg: Dict[str, Any]) -> "CompletionClient":
        return cls(
            base_url=ai_cfg["base_url"],
            model=ai_cfg["model"],
            api_key=os.environ.get(ai_cfg["api_key_env"]),
            timeout=ai_cfg["timeout_sec"],
            max_tokens=ai_cfg["max_tokens"],
            temperature=ai_cfg["temperature"],
            referer=ai_cfg.get("referer", "http://localhost:8000"),
            title=ai_cfg.get("title", "I-MELT Operator AI"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, system: str, user: str) -> str:
        if not self.api_key:
            raise UpstreamFailure("AI API key not configured")

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": self.referer,
                    "X-Title": self.title,
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamFailure(f"AI request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamFailure(f"AI API error: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamFailure("Malformed AI response") from e
        if not isinstance(content, str) or not content.strip():
            raise UpstreamFailure("No content received from AI model")
        return content


def _parse_confidence(line: str) -> Optional[int]:
    match = _CONFIDENCE_RE.search(line.split(":", 1)[-1])
    if not match:
        return None
    value = float(match.group(1))
    # fractional confidences (0.84) are converted to percent
    if value <= 1.0 and "%" not in line:
        value *= 100
    return max(0, min(100, int(round(value))))


def parse_insight(content: str, fallback: Insight) -> Insight:
    """
    Parse 'title / description / confidence' free text into an Insight.
    Action fields come from the rule insight so the dashboard can still
    offer the matching remediation.
    """
    lines = [line.strip() for line in content.strip().splitlines() if line.strip()]
    if not lines:
        raise UpstreamFailure("Empty AI response")

    title = re.sub(r"^(Title:|#+\s*)", "", lines[0]).strip() or fallback.title
    description = ""
    confidence = None
    for line in lines[1:]:
        if "confidence" in line.lower():
            confidence = _parse_confidence(line)
        elif len(line) > 10 and not description:
            description = re.sub(r"^(Description:|Analysis:)", "", line).strip()

    return fallback.model_copy(update={
        "title": title,
        "message": description or fallback.message,
        "confidence": confidence if confidence is not None else fallback.confidence,
        "source": "ai",
    })


ANALYSIS_FOCUS = {
    "chemistry": (
        "Analyze the current steel chemistry and recommend how to reach the target composition.\n"
        "Focus on: carbon content, sulfur levels, phosphorus control and alloy additions."
    ),
    "energy": (
        "Analyze the energy profile and suggest optimizations for power consumption and efficiency.\n"
        "Consider: energy usage, temperature targets, electrode positioning, power regulation."
    ),
    "process": (
        "Analyze the overall process status and identify potential issues or optimizations.\n"
        "Consider: timing, temperature control, stage progression, equipment status."
    ),
}
GENERAL_FOCUS = "Analyze the current heat and identify the most important issue or optimization."


def _state_prompt(state: HeatState, query: Optional[str], analysis: Optional[str] = None) -> str:
    snapshot = state.to_dict()
    snapshot.pop("timeline", None)
    prompt = (
        f"Heat: {state.heat_id}\n"
        f"Current Stage: {state.stage.value}\n"
        f"Process snapshot: {json.dumps(snapshot)}\n"
        f"{ANALYSIS_FOCUS.get(analysis, GENERAL_FOCUS)}\n"
        "Format: Brief title, detailed description, confidence level."
    )
    if query:
        prompt += f"\nOperator question: {query}"
    return prompt


CANNED_RESPONSES: List[tuple] = [
    (("chemistry", "chemical", "carbon", "sulfur"),
     "Chemistry: monitor carbon against the grade window and keep sulfur below 0.025%. "
     "Adjust alloy and lime additions if targets are not being met."),
    (("energy", "power", "efficiency"),
     "Energy: monitor power factor, optimize electrode positioning and adjust tap changes "
     "to the current load. Stay on the stage power plan."),
    (("process", "stage", "timeline"),
     "Process: stage progression is on track. Monitor temperature ramping and prepare for "
     "the next stage transition."),
    (("temperature", "heat"),
     "Temperature: keep the bath below the 1640°C caster limit and watch foam cover to "
     "protect the sidewalls."),
]


class AIInsightService:
    def __init__(self, client: CompletionClient):
        self.client = client

    def is_configured(self) -> bool:
        return self.client.configured

    def insight_for(self, state: HeatState, query: Optional[str] = None,
                    analysis: Optional[str] = None) -> Dict[str, Any]:
        """
        Returns {insight, mode, fallback, error}. Never raises on upstream problems.
        analysis (chemistry, energy, process) narrows both the prompt and the
        rule insight used as fallback.
        """
        rule_insight = generate_insight(state, analysis)
        try:
            content = self.client.complete(SYSTEM_PROMPT, _state_prompt(state, query, analysis))
            insight = parse_insight(content, rule_insight)
        except UpstreamFailure as e:
            scope = f" ({analysis})" if analysis else ""
            logger.warning(f"AI insight{scope} unavailable for heat {state.heat_id}: {e.message}")
            return {"insight": rule_insight, "mode": "deterministic", "fallback": True, "error": e.message}
        return {"insight": insight, "mode": "ai", "fallback": False, "error": None}

    def analyze(self, state: HeatState, query: Optional[str] = None) -> List[Dict[str, Any]]:
        """One insight per analysis type; each one falls back to the rules on its own."""
        return [dict(type=analysis, **self.insight_for(state, query, analysis))
                for analysis in ANALYSIS_TYPES]

    def chat(self, message: str, state: Optional[HeatState] = None) -> Dict[str, Any]:
        context = json.dumps(state.to_dict()) if state is not None else "No heat data available"
        system = (
            f"{SYSTEM_PROMPT}\n\nCurrent heat data context: {context}\n\n"
            "Respond in a professional, technical manner suitable for industrial operators."
        )
        try:
            response = self.client.complete(system, message)
        except UpstreamFailure as e:
            logger.warning(f"AI chat unavailable: {e.message}")
            return {
                "response": canned_response(message, state),
                "mode": "fallback",
                "fallback": True,
                "confidence": 75,
                "error": e.message,
            }
        return {
            "response": response,
            "mode": "ai",
            "fallback": False,
            "confidence": state.confidence if state is not None else 85,
            "error": None,
        }


def canned_response(message: str, state: Optional[HeatState] = None) -> str:
    lower = message.lower()
    for keywords, text in CANNED_RESPONSES:
        if any(k in lower for k in keywords):
            return text
    if "status" in lower or "current" in lower:
        if state is None:
            return "No heat is running. Start a heat from the demo controls."
        return (f"Heat {state.heat_id} is in {state.stage.value} at {state.temperature_c:.0f}°C, "
                f"confidence {state.confidence}%.")
    return ("I can help with chemistry, energy efficiency, process timing and quality. "
            "Check the AI API configuration for full AI functionality.")
