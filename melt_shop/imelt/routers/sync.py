import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..sync import MitigationId, RouteETA, SyncConfigUpdate, SyncDecisionLog, SyncGuard
from .deps import get_sync_guard, get_sync_log

logger = logging.getLogger("DemoAPI")

router = APIRouter(prefix="/api/sync", tags=["sync"])


class DecisionRequest(BaseModel):
    route: RouteETA
    mitigationId: Optional[MitigationId] = None
    operator: str = Field("Operator", min_length=1, max_length=200)


@router.get("/config")
def sync_config(guard: SyncGuard = Depends(get_sync_guard)):
    return guard.config.model_dump(by_alias=True)


@router.put("/config")
def update_sync_config(body: SyncConfigUpdate, guard: SyncGuard = Depends(get_sync_guard)):
    return guard.update_config(body).model_dump(by_alias=True)


@router.post("/analyze")
def analyze_route(route: RouteETA, guard: SyncGuard = Depends(get_sync_guard)):
    return guard.analyze_route(route).model_dump(by_alias=True)


@router.post("/decisions")
def log_decision(body: DecisionRequest, guard: SyncGuard = Depends(get_sync_guard),
                 decision_log: SyncDecisionLog = Depends(get_sync_log)):
    decision = guard.decide(body.route, body.mitigationId, body.operator)
    decision_log.log(decision)
    chosen = decision.chosen_mitigation.name if decision.chosen_mitigation else "No action"
    logger.info(f"Sync decision on {decision.route_id}: {chosen} by {decision.operator}")
    return {"ok": True, "decision": decision.model_dump(mode="json", by_alias=True)}


@router.get("/decisions")
def list_decisions(routeId: Optional[str] = Query(None),
                   limit: Optional[int] = Query(None, ge=0),
                   decision_log: SyncDecisionLog = Depends(get_sync_log)):
    return {"decisions": [d.model_dump(mode="json", by_alias=True)
                          for d in decision_log.decisions(routeId, limit)]}


@router.get("/savings")
def savings(guard: SyncGuard = Depends(get_sync_guard),
            decision_log: SyncDecisionLog = Depends(get_sync_log)):
    return decision_log.total_savings(guard.config)
