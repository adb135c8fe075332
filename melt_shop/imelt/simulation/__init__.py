"""
EAF heat simulation: process model, scenario and action catalogs,
per-heat driver and the background tick runner.
"""

from .state import HeatState, Stage, Scenario, TimelineEvent
from .furnace import ArcFurnaceModel
from .scenarios import ScenarioSpec, SCENARIOS, get_scenario, list_scenarios
from .actions import ActionResult, ActionSpec, ACTIONS, get_action, list_actions
from .driver import SimulationDriver, ScenarioResult
from .runner import SimulationRunner

__all__ = [
    'HeatState',
    'Stage',
    'Scenario',
    'TimelineEvent',
    'ArcFurnaceModel',
    'ScenarioSpec',
    'SCENARIOS',
    'get_scenario',
    'list_scenarios',
    'ActionResult',
    'ActionSpec',
    'ACTIONS',
    'get_action',
    'list_actions',
    'SimulationDriver',
    'ScenarioResult',
    'SimulationRunner',
]
