from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ..errors import NoActiveHeat
from ..insights.ai_client import AIInsightService
from ..insights.rules import ANALYSIS_TYPES, AnalysisType, generate_insight
from ..simulation.driver import SimulationDriver
from ..simulation.state import HeatState
from .deps import get_ai_service, get_driver

router = APIRouter(prefix="/api/insights", tags=["insights"])

Mode = Literal["deterministic", "ai"]


def _running_state(driver: SimulationDriver, heat_id: int) -> HeatState:
    state = driver.status(heat_id)
    if state is None:
        raise NoActiveHeat(heat_id)
    return state


def _deterministic(state: HeatState, analysis: Optional[str]):
    return {"insight": generate_insight(state, analysis), "mode": "deterministic",
            "fallback": False, "error": None}


def _render(outcome) -> dict:
    rendered = {
        "mode": outcome["mode"],
        "insight": outcome["insight"].model_dump(by_alias=True),
        "fallback": outcome["fallback"],
    }
    if outcome["error"]:
        rendered["error"] = outcome["error"]
    return rendered


@router.get("/{heat_id}")
def get_insight(heat_id: int,
                mode: Mode = Query("deterministic"),
                query: Optional[str] = Query(None, max_length=2000),
                analysis: Optional[AnalysisType] = Query(None, alias="type"),
                driver: SimulationDriver = Depends(get_driver),
                ai_service: AIInsightService = Depends(get_ai_service)):
    """
    mode in the response names the source of the returned insight:
    an AI request that fell back comes back as deterministic with fallback true.
    """
    state = _running_state(driver, heat_id)

    if mode == "ai":
        outcome = ai_service.insight_for(state, query, analysis)
    else:
        outcome = _deterministic(state, analysis)

    return {
        "heatId": heat_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": analysis,
        **_render(outcome),
        "simulationState": state.to_dict(),
    }


@router.get("/{heat_id}/analysis")
def analyze_heat(heat_id: int,
                 mode: Mode = Query("deterministic"),
                 query: Optional[str] = Query(None, max_length=2000),
                 driver: SimulationDriver = Depends(get_driver),
                 ai_service: AIInsightService = Depends(get_ai_service)):
    """One insight per analysis type (chemistry, energy, process)."""
    state = _running_state(driver, heat_id)

    if mode == "ai":
        outcomes = ai_service.analyze(state, query)
    else:
        outcomes = [dict(type=analysis, **_deterministic(state, analysis)) for analysis in ANALYSIS_TYPES]

    return {
        "heatId": heat_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "insights": [{"type": outcome["type"], **_render(outcome)} for outcome in outcomes],
        "simulationState": state.to_dict(),
    }
