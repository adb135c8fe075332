"""
Action Catalog

Operator remediations, keyed by action type.

Each ActionSpec binds:
- params_model: pydantic schema for the request body (heatId excluded)
- handler:      mutates the HeatState and builds a tagged result
- clears:       scenario the action ends, if it is the active one
- resolves:     insight id added to resolved_issue_ids

Results share the envelope {kind, success, message, confidence}.
The driver fills in confidence after recomputing it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import InvalidParameter, UnknownAction
from ..roi import DEFAULT_BASELINE, DEFAULT_PRICES
from .furnace import ArcFurnaceModel
from .state import HeatState, Scenario

ANTHRACITE_EUR_PER_T = 350.0
LIME_EUR_PER_KG = 0.12


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ============================================================
# PARAMETER SCHEMAS
# ============================================================

class NoParams(_CamelModel):
    pass


class FoamControlParams(_CamelModel):
    carbon_kg: float = Field(6.0, gt=0, le=50)


class TemperatureParams(_CamelModel):
    target_temperature: float = Field(1600.0, ge=1500, le=1650)


class EnergyParams(_CamelModel):
    power_reduction: float = Field(0.08, gt=0, le=0.3)


class PowerFactorParams(_CamelModel):
    target_power_factor: float = Field(0.86, ge=0.8, le=0.99)


class CarbonParams(_CamelModel):
    target_c: float = Field(0.13, ge=0.05, le=0.5, alias="targetC")
    add_amount: float = Field(0.42, gt=0, le=5)  # t


class DesulfurizeParams(_CamelModel):
    target_s: float = Field(0.020, ge=0.005, le=0.05, alias="targetS")


class ChemistryCheckParams(_CamelModel):
    delay_min: int = Field(5, ge=0, le=60)


# ============================================================
# RESULT VARIANTS
# ============================================================

class ActionResult(_CamelModel):
    kind: str
    success: bool = True
    message: str
    confidence: int = 0


class FoamControlResult(ActionResult):
    kind: Literal["foam-control"] = "foam-control"
    foam_index: float
    carbon_injected_kg: float
    tap_position: int
    estimated_time: str


class TemperatureControlResult(ActionResult):
    kind: Literal["temperature-control"] = "temperature-control"
    target_temperature: float
    actions: List[str]
    safety_impact: str
    estimated_time: str


class EnergyOptimizationResult(ActionResult):
    kind: Literal["energy-optimization"] = "energy-optimization"
    power_reduction: str
    estimated_savings: str
    method: str
    quality_impact: str


class PowerFactorResult(ActionResult):
    kind: Literal["power-factor"] = "power-factor"
    new_power_factor: float
    method: str
    estimated_time: str


class CarbonAdjustmentResult(ActionResult):
    kind: Literal["carbon-adjustment"] = "carbon-adjustment"
    new_carbon_level: float
    quality_improvement: str
    cost_impact: str
    next_action: str
    estimated_time: str


class ChemistryTreatmentResult(ActionResult):
    kind: Literal["chemistry-treatment"] = "chemistry-treatment"
    new_sulfur_level: float
    agents_used: List[str]
    quality_improvement: str
    cost_impact: str
    estimated_time: str


class MonitoringResult(ActionResult):
    kind: Literal["monitoring"] = "monitoring"
    scheduled_in: str
    checks: List[str]


# ============================================================
# HANDLERS
# ============================================================

def _energy_savings_eur(reduction: float) -> float:
    baseline = DEFAULT_BASELINE
    return reduction * baseline.kwh_per_t * baseline.mass_t * DEFAULT_PRICES.kwh


def _prevent_foam_collapse(state: HeatState, params: FoamControlParams, model: ArcFurnaceModel):
    state.foam_index = max(state.foam_index, 62.0)
    state.thd = max(2.0, state.thd - 1.0)
    state.tap = 7
    return FoamControlResult(
        message=f"Foam stabilized: {params.carbon_kg:g}kg carbon injected in 2 pulses, tap 7 for 3 min",
        foam_index=round(state.foam_index, 1),
        carbon_injected_kg=params.carbon_kg,
        tap_position=state.tap,
        estimated_time="2-3 min",
    )


def _stabilize_temperature(state: HeatState, params: TemperatureParams, model: ArcFurnaceModel):
    state.temperature_c = min(state.temperature_c, params.target_temperature)
    return TemperatureControlResult(
        message=f"Bath temperature held at {state.temperature_c:.0f}°C",
        target_temperature=params.target_temperature,
        actions=["Reduce tap position to 5", "Add limestone flux 8kg", "Notify caster operator"],
        safety_impact="Caster superheat risk removed",
        estimated_time="4-5 min",
    )


def _manage_energy_spike(state: HeatState, params: NoParams, model: ArcFurnaceModel):
    before = state.power_mw
    state.power_mw = model.nominal_power_mw(state)
    reduction = (before - state.power_mw) / before if before > 0 else 0.0
    return EnergyOptimizationResult(
        message=f"Arc power returned to plan ({state.power_mw:.1f} MW)",
        power_reduction=f"{reduction * 100:.1f}%",
        estimated_savings=f"€{_energy_savings_eur(reduction):.0f}",
        method="Tap change and electrode regulation",
        quality_impact="None expected",
    )


def _optimize_energy(state: HeatState, params: EnergyParams, model: ArcFurnaceModel):
    state.power_mw = min(state.power_mw, model.nominal_power_mw(state)) * (1.0 - params.power_reduction)
    return EnergyOptimizationResult(
        message=f"Power reduced by {params.power_reduction * 100:.1f}% for the current stage",
        power_reduction=f"{params.power_reduction * 100:.1f}%",
        estimated_savings=f"€{_energy_savings_eur(params.power_reduction):.0f}",
        method="Power profile trim during flat bath",
        quality_impact="No impact on composition trajectory",
    )


def _correct_power_factor(state: HeatState, params: PowerFactorParams, model: ArcFurnaceModel):
    state.power_factor = max(state.power_factor, params.target_power_factor)
    return PowerFactorResult(
        message=f"Compensation restored, power factor {state.power_factor:.2f}",
        new_power_factor=round(state.power_factor, 3),
        method="SVC / capacitor bank step-in",
        estimated_time="1-2 min",
    )


def _adjust_carbon(state: HeatState, params: CarbonParams, model: ArcFurnaceModel):
    state.carbon_pct = params.target_c
    return CarbonAdjustmentResult(
        message=f"Successfully added {params.add_amount:g}t carbon, C now {params.target_c:.2f}%",
        new_carbon_level=params.target_c,
        quality_improvement="Carbon back within grade compliance window",
        cost_impact=f"€{params.add_amount * ANTHRACITE_EUR_PER_T:.0f}",
        next_action="Confirm with spectrometer sample",
        estimated_time="8-12 min",
    )


def _desulfurize(state: HeatState, params: DesulfurizeParams, model: ArcFurnaceModel):
    state.sulfur_pct = min(state.sulfur_pct, params.target_s)
    lime_kg = 400.0
    return ChemistryTreatmentResult(
        message=f"Desulfurization started, target S {params.target_s:.3f}%",
        new_sulfur_level=round(state.sulfur_pct, 4),
        agents_used=["Lime 3-80 mm", "CaSi wire"],
        quality_improvement="Improved ductility and grade compliance for S",
        cost_impact=f"€{lime_kg * LIME_EUR_PER_KG:.0f}",
        estimated_time="10-15 min",
    )


def _schedule_chemistry_check(state: HeatState, params: ChemistryCheckParams, model: ArcFurnaceModel):
    return MonitoringResult(
        message=f"Chemistry sample scheduled in {params.delay_min} min",
        scheduled_in=f"{params.delay_min} min",
        checks=["C", "S", "O"],
    )


# ============================================================
# REGISTRY
# ============================================================

@dataclass(frozen=True)
class ActionSpec:
    action_type: str
    label: str
    params_model: Type[_CamelModel]
    handler: Callable[[HeatState, Any, ArcFurnaceModel], ActionResult]
    clears: Optional[Scenario] = None
    resolves: Optional[str] = None

    def parse_params(self, params: Dict[str, Any]) -> _CamelModel:
        try:
            return self.params_model.model_validate(params or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidParameter(f"Invalid parameters for '{self.action_type}': {problems}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actionType": self.action_type,
            "label": self.label,
            "clears": self.clears.value if self.clears else None,
            "resolves": self.resolves,
            "params": self.params_model.model_json_schema(by_alias=True).get("properties", {}),
        }


ACTIONS: Dict[str, ActionSpec] = {spec.action_type: spec for spec in [
    ActionSpec("prevent-foam-collapse", "Prevent Collapse", FoamControlParams, _prevent_foam_collapse,
               clears=Scenario.FOAM_COLLAPSE, resolves="foam-collapse-critical"),
    ActionSpec("stabilize-temperature", "Stabilize Temperature", TemperatureParams, _stabilize_temperature,
               clears=Scenario.TEMP_RISK, resolves="temperature-critical"),
    ActionSpec("manage-energy-spike", "Manage Energy Spike", NoParams, _manage_energy_spike,
               clears=Scenario.ENERGY_SPIKE, resolves="energy-spike-high"),
    ActionSpec("optimize-energy", "Optimize Energy", EnergyParams, _optimize_energy,
               clears=Scenario.ENERGY_SPIKE, resolves="energy-spike-high"),
    ActionSpec("correct-power-factor", "Correct Power Factor", PowerFactorParams, _correct_power_factor,
               clears=Scenario.POWER_FACTOR, resolves="power-factor-low"),
    ActionSpec("adjust-carbon", "Add Carbon", CarbonParams, _adjust_carbon,
               resolves="carbon-low"),
    ActionSpec("desulfurize", "Reduce Sulfur", DesulfurizeParams, _desulfurize,
               resolves="sulfur-high"),
    ActionSpec("schedule-chemistry-check", "Schedule Chemistry Check", ChemistryCheckParams,
               _schedule_chemistry_check),
]}


def get_action(action_type: str) -> ActionSpec:
    spec = ACTIONS.get(action_type)
    if spec is None:
        raise UnknownAction(action_type)
    return spec


def list_actions() -> List[Dict[str, Any]]:
    return [spec.to_dict() for spec in ACTIONS.values()]
