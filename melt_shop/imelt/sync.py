"""
LF -> CC Sync Guard

Temperature loss while a ladle waits for the caster, and what it costs.

    delay     = max(0, eta_cc - eta_target)                 min
    deltaT    = delay * dT_per_min                          °C
    per_heat  = deltaT / 10 * cost_per_10C                  €
    per_day   = per_heat * shop_cadence_per_day
    per_year  = per_day * shop_working_days

Two mitigations are offered: boost superheat at the LF (costs energy,
recovers up to 1.2 °C per minute of delay) or coordinate LF/CC timing
(no energy cost, recovers 80 % of the delay loss).
"""

import copy
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

BOOST_ENERGY_COST_EUR = 25.0
BOOST_RECOVERY_C_PER_MIN = 1.2
BOOST_TIME_MIN = 2.0
COORDINATE_RECOVERY = 0.8  # share of the delay loss
COORDINATE_DELAY_CUT = 0.6  # share of the delay removed
ALERT_DELAY_MIN = 3.0

MitigationId = Literal["boost", "coordinate"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncConfig(_CamelModel):
    dt_per_min: float = Field(1.8, ge=0)  # °C lost per minute of delay
    cost_per_10c: float = Field(150.0, ge=0, alias="costPer10C")  # € per heat for every 10 °C lost
    shop_cadence_per_day: float = Field(24.0, ge=0)
    shop_working_days: float = Field(350.0, ge=0)


class SyncConfigUpdate(_CamelModel):
    dt_per_min: Optional[float] = Field(None, ge=0)
    cost_per_10c: Optional[float] = Field(None, ge=0, alias="costPer10C")
    shop_cadence_per_day: Optional[float] = Field(None, ge=0)
    shop_working_days: Optional[float] = Field(None, ge=0)


class RouteETA(_CamelModel):
    route_id: str = Field(..., min_length=1)  # e.g. "LF1->CC2"
    eta_lf: float  # minutes from now
    eta_cc: float
    eta_target: float


class TemperatureImpact(_CamelModel):
    predicted_delta_t: float
    cost_per_heat: float
    cost_per_day: float
    cost_per_year: float


class MitigationOption(_CamelModel):
    id: MitigationId
    name: str
    description: str
    energy_cost: float  # €/heat
    delta_t_reduction: float  # °C
    time_impact: float  # min
    net_cost: float  # €/heat


class RouteAnalysis(_CamelModel):
    route: RouteETA
    baseline_impact: TemperatureImpact
    mitigation_options: List[MitigationOption]
    delay_minutes: float
    requires_action: bool


class SyncDecision(_CamelModel):
    timestamp: datetime
    route_id: str
    operator: str
    original_impact: TemperatureImpact
    chosen_mitigation: Optional[MitigationOption] = None
    final_impact: TemperatureImpact


class SyncGuard:
    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or SyncConfig()

    @classmethod
    def from_config(cls, sync_cfg: Dict[str, Any]) -> "SyncGuard":
        return cls(SyncConfig(**sync_cfg))

    def update_config(self, update: SyncConfigUpdate) -> SyncConfig:
        self.config = self.config.model_copy(update=update.model_dump(exclude_none=True))
        return self.config

    @staticmethod
    def delay_minutes(route: RouteETA) -> float:
        return max(0.0, route.eta_cc - route.eta_target)

    def _impact(self, delta_t: float, extra_cost: float = 0.0) -> TemperatureImpact:
        cfg = self.config
        per_heat = delta_t / 10 * cfg.cost_per_10c + extra_cost
        per_day = per_heat * cfg.shop_cadence_per_day
        return TemperatureImpact(
            predicted_delta_t=delta_t,
            cost_per_heat=per_heat,
            cost_per_day=per_day,
            cost_per_year=per_day * cfg.shop_working_days,
        )

    def temperature_impact(self, route: RouteETA) -> TemperatureImpact:
        return self._impact(self.delay_minutes(route) * self.config.dt_per_min)

    def mitigation_options(self, route: RouteETA, baseline: TemperatureImpact) -> List[MitigationOption]:
        cfg = self.config
        delay = self.delay_minutes(route)

        boost_reduction = min(baseline.predicted_delta_t, delay * BOOST_RECOVERY_C_PER_MIN)
        boost = MitigationOption(
            id="boost",
            name="Boost superheat now",
            description="Add energy at the LF to hold temperature through the delay",
            energy_cost=BOOST_ENERGY_COST_EUR,
            delta_t_reduction=boost_reduction,
            time_impact=BOOST_TIME_MIN,
            net_cost=max(0.0, BOOST_ENERGY_COST_EUR - boost_reduction / 10 * cfg.cost_per_10c),
        )

        coordinate_reduction = delay * COORDINATE_RECOVERY * cfg.dt_per_min
        coordinate = MitigationOption(
            id="coordinate",
            name="Coordinate LF/CC",
            description="Reschedule the caster to shorten the delay",
            energy_cost=0.0,
            delta_t_reduction=coordinate_reduction,
            time_impact=-delay * COORDINATE_DELAY_CUT,
            net_cost=max(0.0, baseline.cost_per_heat - coordinate_reduction / 10 * cfg.cost_per_10c),
        )
        return [boost, coordinate]

    def apply_mitigation(self, baseline: TemperatureImpact, mitigation: MitigationOption) -> TemperatureImpact:
        delta_t = max(0.0, baseline.predicted_delta_t - mitigation.delta_t_reduction)
        return self._impact(delta_t, extra_cost=mitigation.energy_cost)

    def analyze_route(self, route: RouteETA) -> RouteAnalysis:
        baseline = self.temperature_impact(route)
        delay = self.delay_minutes(route)
        return RouteAnalysis(
            route=route,
            baseline_impact=baseline,
            mitigation_options=self.mitigation_options(route, baseline),
            delay_minutes=delay,
            requires_action=delay > ALERT_DELAY_MIN,
        )

    def decide(self, route: RouteETA, mitigation_id: Optional[str], operator: str) -> SyncDecision:
        """Analyze the route and apply the chosen mitigation (None keeps the baseline)."""
        analysis = self.analyze_route(route)
        chosen = None
        final = analysis.baseline_impact
        if mitigation_id is not None:
            chosen = next(m for m in analysis.mitigation_options if m.id == mitigation_id)
            final = self.apply_mitigation(analysis.baseline_impact, chosen)
        return SyncDecision(
            timestamp=datetime.now(timezone.utc),
            route_id=route.route_id,
            operator=operator,
            original_impact=analysis.baseline_impact,
            chosen_mitigation=chosen,
            final_impact=final,
        )


class SyncDecisionLog:
    """In-memory, append-only. Thread-safe; reads return copies."""

    def __init__(self):
        self._decisions: List[SyncDecision] = []
        self._lock = threading.Lock()

    def log(self, decision: SyncDecision):
        with self._lock:
            self._decisions.append(decision)

    def decisions(self, route_id: Optional[str] = None, limit: Optional[int] = None) -> List[SyncDecision]:
        with self._lock:
            found = [d for d in self._decisions if route_id is None or d.route_id == route_id]
        if limit is not None:
            found = found[-limit:] if limit > 0 else []
        return copy.deepcopy(found)

    def total_savings(self, config: SyncConfig) -> Dict[str, Any]:
        with self._lock:
            count = len(self._decisions)
            per_heat = sum(d.original_impact.cost_per_heat - d.final_impact.cost_per_heat
                           for d in self._decisions)
        per_day = per_heat * config.shop_cadence_per_day
        return {
            "decisions": count,
            "perHeat": per_heat,
            "perDay": per_day,
            "perYear": per_day * config.shop_working_days,
        }
