import asyncio
import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import DemoError
from .heats.store import HeatStore
from .hub import ConnectionManager
from .insights.ai_client import AIInsightService, CompletionClient
from .insights.rules import generate_insight
from .routers import ALL_ROUTERS
from .settings import configure_logging, load_config
from .simulation.driver import SimulationDriver
from .simulation.runner import SimulationRunner
from .simulation.state import HeatState
from .sync import SyncDecisionLog, SyncGuard

logger = logging.getLogger("DemoAPI")


def _validation_message(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("query", "body", "path"))
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request: " + "; ".join(problems)


def tick_publisher(hub: ConnectionManager, insight_every: int):
    """
    Runner callback: every snapshot goes out as a tick frame, and every
    insight_every ticks the rule insight for it follows.
    """
    def on_tick(snapshots: List[HeatState]):
        frames = []
        for state in snapshots:
            frames.append((state.heat_id, "tick", state.to_dict()))
            if insight_every and state.tick % insight_every == 0:
                insight = generate_insight(state).model_dump(by_alias=True)
                frames.append((state.heat_id, "insight", insight))
        hub.publish_threadsafe(frames)
    return on_tick


def create_app(config: Optional[Dict[str, Any]] = None,
               driver: Optional[SimulationDriver] = None,
               ai_service: Optional[AIInsightService] = None,
               start_runner: bool = True) -> FastAPI:
    config = config or load_config()
    sim_cfg = config["simulation"]

    app = FastAPI(title="I-MELT Demo API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config["server"]["cors_origins"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.driver = driver or SimulationDriver.from_config(config)
    app.state.ai_service = ai_service or AIInsightService(CompletionClient.from_config(config["ai"]))
    app.state.heat_store = HeatStore(app.state.driver)
    app.state.sync_guard = SyncGuard.from_config(config["sync"])
    app.state.sync_log = SyncDecisionLog()
    app.state.hub = ConnectionManager()
    app.state.runner = SimulationRunner(
        app.state.driver,
        interval=sim_cfg["tick_interval_sec"],
        on_tick=tick_publisher(app.state.hub, sim_cfg["insight_every_ticks"]),
    )

    for router in ALL_ROUTERS:
        app.include_router(router)

    # --- Error mapping ---

    @app.exception_handler(DemoError)
    async def demo_error_handler(request: Request, exc: DemoError):
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"ok": False, "error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # --- Lifecycle ---

    @app.on_event("startup")
    async def startup_event():
        configure_logging(config)
        app.state.hub.bind_loop(asyncio.get_running_loop())
        if sim_cfg["autostart"]:
            app.state.driver.start(sim_cfg["default_seed"], sim_cfg["default_heat_id"])
        if start_runner:
            app.state.runner.start()

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.runner.stop()

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app


app = create_app()

if __name__ == "__main__":
    settings = app.state.config
    uvicorn.run(app, host=settings["server"]["host"], port=settings["server"]["port"])
