"""
Demo Simulation Driver

Per-process registry of running heats, keyed by heat id.

Concurrency:
- _registry_lock guards the heat map only
- each heat carries its own Lock; tick(), scenarios and actions on the
  same heat run to completion under it, different heats never contend

Confidence is recomputed after every mutation:

    confidence = clamp(base - penalty(active_scenario)
                       + min(resolve_bonus * |resolved|, max_resolve_bonus),
                       0, max)
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import InvalidParameter, NoActiveHeat
from .actions import ActionResult, get_action
from .furnace import ArcFurnaceModel
from .scenarios import SCENARIOS, get_scenario
from .state import HeatState

logger = logging.getLogger("HeatSim")

DEFAULT_CONFIDENCE = {"max": 95, "resolve_bonus": 5, "max_resolve_bonus": 10}


@dataclass
class ScenarioResult:
    scenario: Dict[str, Any]
    state: HeatState

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": True, "scenario": self.scenario, "state": self.state.to_dict()}


@dataclass
class _HeatSlot:
    state: HeatState
    lock: threading.Lock = field(default_factory=threading.Lock)


def _require_int(name: str, value: Any) -> int:
    # bool is an int subclass; a heat id of True is a client bug
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"'{name}' must be an integer, got {value!r}")
    return value


class SimulationDriver:
    def __init__(self, model: Optional[ArcFurnaceModel] = None,
                 confidence: Optional[Dict[str, int]] = None,
                 sim_seconds_per_tick: float = 3.0):
        self.model = model or ArcFurnaceModel()
        self.confidence_cfg = {**DEFAULT_CONFIDENCE, **(confidence or {})}
        self.sim_seconds_per_tick = sim_seconds_per_tick
        self._heats: Dict[int, _HeatSlot] = {}
        self._registry_lock = threading.Lock()
        self._latest: Optional[int] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SimulationDriver":
        sim = config["simulation"]
        model = ArcFurnaceModel(
            refine_at_tick=sim["refine_at_tick"],
            tap_at_tick=sim["tap_at_tick"],
            energy_event_every=sim["energy_event_every"],
            mass_t=sim["heat_mass_t"],
        )
        return cls(model, config["confidence"], sim["sim_seconds_per_tick"])

    # --- Lifecycle ---

    def start(self, seed: Any, heat_id: Any) -> HeatState:
        """Start a heat; a heat that is already running is returned untouched."""
        seed = _require_int("seed", seed)
        heat_id = _require_int("heatId", heat_id)
        with self._registry_lock:
            slot = self._heats.get(heat_id)
            if slot is None:
                slot = _HeatSlot(self._fresh_state(seed, heat_id))
                self._heats[heat_id] = slot
                logger.info(f"Heat {heat_id} started (seed={seed})")
            self._latest = heat_id
        with slot.lock:
            return slot.state.snapshot()

    def reset(self, seed: Any, heat_id: Any) -> HeatState:
        seed = _require_int("seed", seed)
        heat_id = _require_int("heatId", heat_id)
        state = self._fresh_state(seed, heat_id)
        with self._registry_lock:
            slot = self._heats.get(heat_id)
            if slot is None:
                slot = _HeatSlot(state)
                self._heats[heat_id] = slot
            self._latest = heat_id
        with slot.lock:
            slot.state = state
            logger.info(f"Heat {heat_id} reset (seed={seed})")
            return state.snapshot()

    def _fresh_state(self, seed: int, heat_id: int) -> HeatState:
        state = self.model.initial_state(seed, heat_id)
        self._refresh_confidence(state)
        return state

    # --- Periodic update ---

    def tick(self) -> List[HeatState]:
        """Advance every heat by one tick; returns the post-tick snapshots."""
        with self._registry_lock:
            slots = list(self._heats.values())

        snapshots = []
        for slot in slots:
            with slot.lock:
                state = slot.state
                self.model.step(state, self.sim_seconds_per_tick)
                if state.active_scenario is not None:
                    SCENARIOS[state.active_scenario].sustain(state)
                self._refresh_confidence(state)
                snapshots.append(state.snapshot())
        return snapshots

    # --- Operator inputs ---

    def apply_scenario(self, heat_id: Any, scenario_id: str) -> ScenarioResult:
        spec = get_scenario(scenario_id)
        slot = self._slot(heat_id)
        with slot.lock:
            state = slot.state
            spec.apply(state)
            state.active_scenario = spec.id
            # a fresh fault must be alerted again even if it was handled before
            state.resolved_issue_ids.discard(spec.insight_id)
            self._refresh_confidence(state)
            logger.info(f"Heat {state.heat_id}: scenario {spec.id.value} injected, confidence {state.confidence}")
            return ScenarioResult(spec.to_dict(), state.snapshot())

    def apply_action(self, heat_id: Any, action_type: str,
                     params: Optional[Dict[str, Any]] = None) -> ActionResult:
        spec = get_action(action_type)
        parsed = spec.parse_params(params or {})
        slot = self._slot(heat_id)
        with slot.lock:
            state = slot.state
            result = spec.handler(state, parsed, self.model)
            if spec.clears is not None and state.active_scenario is spec.clears:
                state.active_scenario = None
            if spec.resolves:
                state.resolved_issue_ids.add(spec.resolves)
            self._refresh_confidence(state)
            result.confidence = state.confidence
            logger.info(f"Heat {state.heat_id}: action {action_type} applied, confidence {state.confidence}")
            return result

    # --- Queries ---

    def status(self, heat_id: Any) -> Optional[HeatState]:
        with self._registry_lock:
            slot = self._heats.get(heat_id)
        if slot is None:
            return None
        with slot.lock:
            return slot.state.snapshot()

    def heat_ids(self) -> List[int]:
        with self._registry_lock:
            return sorted(self._heats)

    def latest_heat_id(self) -> Optional[int]:
        with self._registry_lock:
            return self._latest

    def _slot(self, heat_id: Any) -> _HeatSlot:
        with self._registry_lock:
            slot = self._heats.get(heat_id)
        if slot is None:
            raise NoActiveHeat(heat_id)
        return slot

    def _refresh_confidence(self, state: HeatState) -> None:
        cfg = self.confidence_cfg
        penalty = SCENARIOS[state.active_scenario].penalty if state.active_scenario else 0
        bonus = min(cfg["resolve_bonus"] * len(state.resolved_issue_ids), cfg["max_resolve_bonus"])
        state.confidence = max(0, min(cfg["max"], state.base_confidence - penalty + bonus))
