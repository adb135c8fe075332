from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..insights.ai_client import AIInsightService
from ..simulation.driver import SimulationDriver
from .deps import get_ai_service, get_driver

router = APIRouter(prefix="/api/ai", tags=["ai"])


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    heatId: Optional[int] = None


@router.post("/chat")
def chat(body: ChatRequest, driver: SimulationDriver = Depends(get_driver),
         ai_service: AIInsightService = Depends(get_ai_service)):
    heat_id = body.heatId if body.heatId is not None else driver.latest_heat_id()
    state = driver.status(heat_id) if heat_id is not None else None
    return {"heatId": heat_id, **ai_service.chat(body.message, state)}


@router.get("/status")
def ai_status(ai_service: AIInsightService = Depends(get_ai_service)):
    return {
        "configured": ai_service.is_configured(),
        "model": ai_service.client.model,
        "mode": "ai" if ai_service.is_configured() else "fallback",
    }
