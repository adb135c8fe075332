from typing import Any, Dict

from fastapi import Request

from ..heats.store import HeatStore
from ..hub import ConnectionManager
from ..insights.ai_client import AIInsightService
from ..simulation.driver import SimulationDriver
from ..sync import SyncDecisionLog, SyncGuard


def get_driver(request: Request) -> SimulationDriver:
    return request.app.state.driver


def get_ai_service(request: Request) -> AIInsightService:
    return request.app.state.ai_service


def get_heat_store(request: Request) -> HeatStore:
    return request.app.state.heat_store


def get_hub(request: Request) -> ConnectionManager:
    return request.app.state.hub


def get_config(request: Request) -> Dict[str, Any]:
    return request.app.state.config


def get_sync_guard(request: Request) -> SyncGuard:
    return request.app.state.sync_guard


def get_sync_log(request: Request) -> SyncDecisionLog:
    return request.app.state.sync_log
