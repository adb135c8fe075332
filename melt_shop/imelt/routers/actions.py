from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from ..errors import InvalidParameter
from ..simulation.actions import get_action, list_actions
from ..simulation.driver import SimulationDriver
from .deps import get_driver

router = APIRouter(prefix="/api/actions", tags=["actions"])


@router.get("")
def actions_catalog():
    return {"actions": list_actions()}


@router.post("/{action_type}")
def apply_action(action_type: str, body: Dict[str, Any] = Body(...),
                 driver: SimulationDriver = Depends(get_driver)):
    get_action(action_type)

    params = dict(body)
    heat_id = params.pop("heatId", None)
    if isinstance(heat_id, bool) or not isinstance(heat_id, int):
        raise InvalidParameter("'heatId' must be an integer")

    result = driver.apply_action(heat_id, action_type, params)
    return {
        "ok": True,
        "action": action_type,
        "heatId": heat_id,
        "result": result.model_dump(by_alias=True),
    }
