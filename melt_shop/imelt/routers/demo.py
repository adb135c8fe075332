import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from ..simulation.driver import SimulationDriver
from ..simulation.scenarios import list_scenarios
from .deps import get_config, get_driver

logger = logging.getLogger("DemoAPI")

router = APIRouter(prefix="/api/demo", tags=["demo"])


class ScenarioRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    heatId: int


def _default_heat(config: Dict[str, Any], heat_id: Optional[int]) -> int:
    return heat_id if heat_id is not None else config["simulation"]["default_heat_id"]


@router.get("/start")
def start_demo(seed: int = Query(...), heatId: Optional[int] = Query(None),
               driver: SimulationDriver = Depends(get_driver), config=Depends(get_config)):
    """Start a heat. Calling it again for a running heat changes nothing."""
    state = driver.start(seed, _default_heat(config, heatId))
    return state.to_dict()


@router.get("/reset")
def reset_demo(seed: int = Query(...), heatId: Optional[int] = Query(None),
               driver: SimulationDriver = Depends(get_driver), config=Depends(get_config)):
    state = driver.reset(seed, _default_heat(config, heatId))
    return state.to_dict()


@router.get("/status")
def demo_status(heatId: Optional[int] = Query(None), driver: SimulationDriver = Depends(get_driver)):
    heat_id = heatId if heatId is not None else driver.latest_heat_id()
    state = driver.status(heat_id) if heat_id is not None else None
    if state is None:
        return {"running": False, "heatId": heat_id, "scenario": None,
                "seed": None, "confidence": None, "stage": None}

    snapshot = state.to_dict()
    return {"running": True, "scenario": snapshot["activeScenario"], **snapshot}


@router.get("/scenarios")
def scenarios():
    return {"scenarios": list_scenarios()}


@router.post("/scenario/{scenario_id}")
def inject_scenario(scenario_id: str, body: ScenarioRequest,
                    driver: SimulationDriver = Depends(get_driver)):
    result = driver.apply_scenario(body.heatId, scenario_id)
    return result.to_dict()
