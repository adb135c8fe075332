"""
HTTP and WebSocket routers. Handlers are thin adapters over the driver,
insight service, heat store and hub found on app.state.
"""

from . import actions, ai, demo, heats, insights, roi, sync, ws

ALL_ROUTERS = [
    demo.router,
    insights.router,
    actions.router,
    heats.router,
    ai.router,
    roi.router,
    sync.router,
    ws.router,
]

__all__ = ['ALL_ROUTERS']
