"""
Deterministic Insight Rules

Fixed, ordered rule list evaluated against a HeatState snapshot.
Highest severity first; the first rule that fires and has not been
resolved by an operator action wins. No I/O, no randomness.

Order:
    1. foam-collapse-critical   foam < 35 %                      critical
    2. temperature-critical     T > 1640 °C (caster limit)       critical
    3. energy-spike-high        P > 1.1 * stage plan             high
    4. carbon-low               C < 0.10 %                       high
    5. power-factor-low         PF < 0.80                        medium
    6. sulfur-high              S > 0.025 %                      medium
    -  operations-nominal       fallback                         low

An analysis type narrows the rule list to one area of the heat:
    chemistry   carbon-low, sulfur-high
    energy      energy-spike-high, power-factor-low
    process     foam-collapse-critical, temperature-critical
and falls back to a nominal insight for that area.
"""

from dataclasses import dataclass
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..simulation.state import HeatState, Stage

FOAM_CRITICAL = 35.0  # %
CASTER_LIMIT_C = 1640.0  # °C
POWER_PLAN_MW = {Stage.MELT: 60.0, Stage.REFINE: 42.0}
POWER_SPIKE_MARGIN = 1.1
CARBON_MIN = 0.10  # %
PF_OPTIMUM = 0.80
SULFUR_MAX = 0.025  # %

Severity = Literal["low", "medium", "high", "critical"]
Category = Literal["energy", "quality", "safety", "operational"]
AnalysisType = Literal["chemistry", "energy", "process"]

ANALYSIS_TYPES = ("chemistry", "energy", "process")
ANALYSIS_RULES = {
    "chemistry": ("carbon-low", "sulfur-high"),
    "energy": ("energy-spike-high", "power-factor-low"),
    "process": ("foam-collapse-critical", "temperature-critical"),
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExpectedImpact(_CamelModel):
    kwh_per_t: float = 0.0  # delta
    time_min: float = 0.0  # delta
    cost_eur: float = 0.0  # per heat, positive = saving
    description: str = ""


class Insight(_CamelModel):
    id: str
    title: str
    message: str
    why: List[str]
    action: List[str]
    severity: Severity
    category: Category
    actionable: bool
    action_type: Optional[str] = None
    action_label: Optional[str] = None
    confidence: int  # 0-100
    expected_impact: ExpectedImpact
    source: Literal["rules", "ai"] = "rules"


@dataclass(frozen=True)
class Rule:
    id: str
    fires: Callable[[HeatState], bool]
    build: Callable[[HeatState], Insight]


def _power_spike(s: HeatState) -> bool:
    plan = POWER_PLAN_MW.get(s.stage)
    return plan is not None and s.power_mw > plan * POWER_SPIKE_MARGIN


def _foam_collapse(s: HeatState) -> Insight:
    return Insight(
        id="foam-collapse-critical",
        title="Foam collapse imminent",
        message=f"Slag foam at {s.foam_index:.0f}% is below the {FOAM_CRITICAL:.0f}% collapse threshold",
        why=[
            f"Foam index {s.foam_index:.0f}% below critical threshold",
            f"THD {s.thd:.1f}% indicating arc instability",
            "Electrodes exposed to sidewall radiation",
        ],
        action=["Add 6kg carbon in 2 pulses", "Switch to Tap 7 for 3 minutes", "Monitor electrode exposure"],
        severity="critical",
        category="operational",
        actionable=True,
        action_type="prevent-foam-collapse",
        action_label="Prevent Collapse",
        confidence=84,
        expected_impact=ExpectedImpact(kwh_per_t=-12.5, time_min=-1.8, cost_eur=950,
                                       description="Prevents foam collapse, saves 2 min melt time"),
    )


def _temperature(s: HeatState) -> Insight:
    return Insight(
        id="temperature-critical",
        title="Superheat risk to caster",
        message=f"Steel temperature {s.temperature_c:.0f}°C exceeds the {CASTER_LIMIT_C:.0f}°C casting limit",
        why=[
            f"Steel temperature {s.temperature_c:.0f}°C exceeds safe casting limit",
            "Caster refractory damage imminent",
            "Strand shell quality at risk",
        ],
        action=["Stop heating immediately", "Reduce tap position to 5",
                "Add limestone flux 8kg", "Notify caster operator"],
        severity="critical",
        category="safety",
        actionable=True,
        action_type="stabilize-temperature",
        action_label="Stabilize Temperature",
        confidence=96,
        expected_impact=ExpectedImpact(kwh_per_t=0, time_min=5.2, cost_eur=-1850,
                                       description="Prevents caster damage (€50k+ avoided)"),
    )


def _energy_spike(s: HeatState) -> Insight:
    plan = POWER_PLAN_MW[s.stage]
    return Insight(
        id="energy-spike-high",
        title="Energy spike detected",
        message=f"Arc power {s.power_mw:.1f} MW is {(s.power_mw / plan - 1) * 100:.0f}% above the {plan:.0f} MW plan",
        why=[
            f"Power draw {s.power_mw:.1f} MW above {s.stage.value} plan",
            f"Power factor {s.power_factor:.2f}",
            f"Energy to date {s.kwh_per_t:.1f} kWh/t",
        ],
        action=["Return to planned tap position", "Check electrode regulation", "Trim power profile 8%"],
        severity="high",
        category="energy",
        actionable=True,
        action_type="manage-energy-spike",
        action_label="Manage Energy Spike",
        confidence=88,
        expected_impact=ExpectedImpact(kwh_per_t=-7.5, time_min=0, cost_eur=420,
                                       description="Power back on plan, 7.5 kWh/t saved"),
    )


def _carbon_low(s: HeatState) -> Insight:
    return Insight(
        id="carbon-low",
        title="Carbon content low",
        message=f"Carbon {s.carbon_pct:.3f}% is below the {CARBON_MIN:.2f}% grade minimum",
        why=[
            f"Carbon {s.carbon_pct:.3f}% below target 0.12% for grade",
            "Decarburization ahead of schedule",
            "Final chemistry at risk",
        ],
        action=["Add 0.42t anthracite", "Sample for laboratory confirmation"],
        severity="high",
        category="quality",
        actionable=True,
        action_type="adjust-carbon",
        action_label="Add Carbon",
        confidence=81,
        expected_impact=ExpectedImpact(kwh_per_t=1.5, time_min=3.0, cost_eur=-147,
                                       description="Keeps heat within grade, avoids €5k+ rejection"),
    )


def _power_factor(s: HeatState) -> Insight:
    return Insight(
        id="power-factor-low",
        title="Power factor below optimum",
        message=f"Power factor {s.power_factor:.2f} is below the {PF_OPTIMUM:.2f} optimum",
        why=[
            f"Power factor {s.power_factor:.2f} suboptimal",
            "Reactive load increasing grid penalties",
            "Electrical losses increasing operational cost",
        ],
        action=["Improve power factor to 0.86", "Step in capacitor bank", "Check electrode positioning"],
        severity="medium",
        category="energy",
        actionable=True,
        action_type="correct-power-factor",
        action_label="Correct Power Factor",
        confidence=78,
        expected_impact=ExpectedImpact(kwh_per_t=-4.0, time_min=0, cost_eur=220,
                                       description="Power factor optimization, lower reactive losses"),
    )


def _sulfur_high(s: HeatState) -> Insight:
    return Insight(
        id="sulfur-high",
        title="Sulfur content high",
        message=f"Sulfur {s.sulfur_pct:.3f}% is above the {SULFUR_MAX:.3f}% grade maximum",
        why=[
            f"Sulfur {s.sulfur_pct:.3f}% above specification",
            "Hot shortness risk in rolling",
            "Slag basicity insufficient",
        ],
        action=["Add lime 400kg", "Feed CaSi wire", "Resample after 10 minutes"],
        severity="medium",
        category="quality",
        actionable=True,
        action_type="desulfurize",
        action_label="Reduce Sulfur",
        confidence=79,
        expected_impact=ExpectedImpact(kwh_per_t=0.8, time_min=2.3, cost_eur=-48,
                                       description="Steel cleanliness, avoids sulfur rejections"),
    )


def _nominal(s: HeatState, analysis: Optional[str] = None) -> Insight:
    scope = f"{analysis} parameters" if analysis else "all monitored parameters"
    return Insight(
        id=f"{analysis}-nominal" if analysis else "operations-nominal",
        title=f"Heat {s.heat_id} running nominally",
        message=f"{s.stage.value} stage, {s.temperature_c:.0f}°C, {scope} within limits",
        why=[
            f"Foam index {s.foam_index:.0f}%",
            f"Power factor {s.power_factor:.2f}",
            f"Energy {s.kwh_per_t:.1f} kWh/t",
        ],
        action=["Continue monitoring"],
        severity="low",
        category="operational",
        actionable=False,
        confidence=s.confidence,
        expected_impact=ExpectedImpact(description="No intervention required"),
    )


RULES: List[Rule] = [
    Rule("foam-collapse-critical", lambda s: s.foam_index < FOAM_CRITICAL, _foam_collapse),
    Rule("temperature-critical", lambda s: s.temperature_c > CASTER_LIMIT_C, _temperature),
    Rule("energy-spike-high", _power_spike, _energy_spike),
    Rule("carbon-low", lambda s: s.carbon_pct < CARBON_MIN, _carbon_low),
    Rule("power-factor-low", lambda s: s.power_factor < PF_OPTIMUM, _power_factor),
    Rule("sulfur-high", lambda s: s.sulfur_pct > SULFUR_MAX, _sulfur_high),
]


def generate_insight(state: HeatState, analysis: Optional[str] = None) -> Insight:
    allowed = ANALYSIS_RULES[analysis] if analysis else None
    for rule in RULES:
        if allowed is not None and rule.id not in allowed:
            continue
        if rule.id in state.resolved_issue_ids:
            continue
        if rule.fires(state):
            return rule.build(state)
    return _nominal(state, analysis)
