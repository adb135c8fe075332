"""
Heat State Model

Mutable per-heat simulation snapshot owned by the SimulationDriver.

RULES:
- Exactly one HeatState per active heat id
- seed and base_confidence are fixed at reset
- timeline is append-only until reset
- confidence is derived, see SimulationDriver._refresh_confidence
"""

import copy
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Set


class Stage(str, Enum):
    """Heat stages, in the only order they may advance."""
    MELT = "MELT"
    REFINE = "REFINE"
    TAP = "TAP"


class Scenario(str, Enum):
    """Injectable demo fault conditions."""
    ENERGY_SPIKE = "energy-spike"
    FOAM_COLLAPSE = "foam-collapse"
    TEMP_RISK = "temp-risk"
    POWER_FACTOR = "power-factor"


@dataclass
class TimelineEvent:
    tick: int
    kind: str  # "stage" | "energy"
    stage: Stage
    label: str
    kwh_total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "kind": self.kind,
            "stage": self.stage.value,
            "label": self.label,
            "kwhTotal": round(self.kwh_total, 1),
        }


@dataclass
class HeatState:
    heat_id: int
    seed: int
    stage: Stage
    temperature_c: float
    power_factor: float
    foam_index: float  # %
    base_confidence: int
    confidence: int = 0
    active_scenario: Optional[Scenario] = None
    timeline: List[TimelineEvent] = field(default_factory=list)
    resolved_issue_ids: Set[str] = field(default_factory=set)

    # Process values
    tick: int = 0
    power_mw: float = 0.0
    kwh_total: float = 0.0
    kwh_per_t: float = 0.0
    thd: float = 0.0  # % total harmonic distortion
    tap: int = 9
    carbon_pct: float = 0.12
    sulfur_pct: float = 0.02
    oxygen_pct: float = 0.025

    # Seeded generator; advances only inside the owning driver
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def snapshot(self) -> "HeatState":
        """Detached copy, safe to read outside the heat lock."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "heatId": self.heat_id,
            "seed": self.seed,
            "stage": self.stage.value,
            "tick": self.tick,
            "confidence": self.confidence,
            "temperature": round(self.temperature_c, 1),
            "powerFactor": round(self.power_factor, 3),
            "foamIndex": round(self.foam_index, 1),
            "powerMw": round(self.power_mw, 2),
            "kwhTotal": round(self.kwh_total, 1),
            "kwhPerT": round(self.kwh_per_t, 2),
            "thd": round(self.thd, 2),
            "tap": self.tap,
            "chemistry": {
                "C": round(self.carbon_pct, 4),
                "S": round(self.sulfur_pct, 4),
                "O": round(self.oxygen_pct, 4),
            },
            "activeScenario": self.active_scenario.value if self.active_scenario else None,
            "resolvedIssueIds": sorted(self.resolved_issue_ids),
            "timeline": [event.to_dict() for event in self.timeline],
        }
