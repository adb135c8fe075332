"""
Scenario Catalog

Injectable fault conditions for demo storytelling.

Each scenario has:
- apply():   one-shot perturbation at injection time
- sustain(): re-applied after every tick while the scenario is active,
             so the fault persists until an operator action clears it
- penalty:   confidence points removed while active
- insight_id: the rule that is expected to fire for it
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Any

from ..errors import UnknownScenario
from .state import HeatState, Scenario

SPIKE_FACTOR = 1.3
FOAM_COLLAPSED = 22.0  # %
FOAM_CEILING = 28.0  # % (held below the collapse threshold while active)
TEMP_RISK_FLOOR = 1655.0  # °C
PF_FAULT = 0.74


@dataclass(frozen=True)
class ScenarioSpec:
    id: Scenario
    name: str
    description: str
    penalty: int
    insight_id: str
    apply: Callable[[HeatState], None]
    sustain: Callable[[HeatState], None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "confidencePenalty": self.penalty,
            "insightId": self.insight_id,
        }


# --- Energy spike: arc power surges above the transformer plan ---

def _energy_spike_apply(state: HeatState) -> None:
    state.power_factor = max(0.5, state.power_factor - 0.03)
    state.power_mw *= SPIKE_FACTOR


def _energy_spike_sustain(state: HeatState) -> None:
    state.power_mw *= SPIKE_FACTOR


# --- Foam collapse: slag foam drops, arc radiates onto the sidewalls ---

def _foam_collapse_apply(state: HeatState) -> None:
    state.foam_index = min(state.foam_index, FOAM_COLLAPSED)
    state.thd += 1.5


def _foam_collapse_sustain(state: HeatState) -> None:
    state.foam_index = min(state.foam_index, FOAM_CEILING)


# --- Temperature risk: superheat beyond the caster limit ---

def _temp_risk_apply(state: HeatState) -> None:
    state.temperature_c = min(1700.0, max(state.temperature_c, 1600.0) + 65.0)


def _temp_risk_sustain(state: HeatState) -> None:
    state.temperature_c = max(state.temperature_c, TEMP_RISK_FLOOR)


# --- Power factor: reactive load, compensation bank tripped ---

def _power_factor_apply(state: HeatState) -> None:
    state.power_factor = min(state.power_factor, PF_FAULT)


def _power_factor_sustain(state: HeatState) -> None:
    state.power_factor = min(state.power_factor, PF_FAULT + 0.02)


SCENARIOS: Dict[Scenario, ScenarioSpec] = {
    Scenario.ENERGY_SPIKE: ScenarioSpec(
        Scenario.ENERGY_SPIKE, "Energy Spike",
        "Arc power surges 30% above plan while power factor sags",
        penalty=12, insight_id="energy-spike-high",
        apply=_energy_spike_apply, sustain=_energy_spike_sustain,
    ),
    Scenario.FOAM_COLLAPSE: ScenarioSpec(
        Scenario.FOAM_COLLAPSE, "Foam Collapse",
        "Slag foam collapses, exposing electrodes and raising THD",
        penalty=20, insight_id="foam-collapse-critical",
        apply=_foam_collapse_apply, sustain=_foam_collapse_sustain,
    ),
    Scenario.TEMP_RISK: ScenarioSpec(
        Scenario.TEMP_RISK, "Temperature Risk",
        "Bath superheat climbs past the caster limit",
        penalty=18, insight_id="temperature-critical",
        apply=_temp_risk_apply, sustain=_temp_risk_sustain,
    ),
    Scenario.POWER_FACTOR: ScenarioSpec(
        Scenario.POWER_FACTOR, "Power Factor Drop",
        "Compensation bank trips and power factor falls below optimum",
        penalty=10, insight_id="power-factor-low",
        apply=_power_factor_apply, sustain=_power_factor_sustain,
    ),
}


def get_scenario(scenario_id: str) -> ScenarioSpec:
    try:
        return SCENARIOS[Scenario(scenario_id)]
    except ValueError:
        raise UnknownScenario(scenario_id) from None


def list_scenarios() -> List[Dict[str, Any]]:
    return [spec.to_dict() for spec in SCENARIOS.values()]
