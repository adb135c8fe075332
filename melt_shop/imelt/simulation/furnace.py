"""
Electric Arc Furnace Process Model

Crude first-order model of one EAF heat, advanced one tick at a time.

Physics (per tick, dt = simulated seconds):
    P_arc   = P_stage * PF
    E      += P_arc * dt
    T      += clamp((T_target - T) * k_T + (foam - 50) * k_foam, +-ramp)
    foam   += (foam_target(stage, THD) - foam) * k_foam_smooth

Features:
- Stage progression MELT -> REFINE -> TAP on fixed tick thresholds
- Smooth power factor drift around a noisy setpoint
- Decarburization during REFINE
- Hard temperature limits and ramp-rate constraint

Determinism: all noise comes from the heat's own seeded random.Random,
so the same seed and the same call sequence give the same trajectory.
"""

import random

from .state import HeatState, Stage, TimelineEvent


class ArcFurnaceModel:
    """
    Evolves a HeatState in place. Holds no per-heat state of its own,
    one instance serves every heat in the driver.
    """

    def __init__(self, refine_at_tick: int = 120, tap_at_tick: int = 900,
                 energy_event_every: int = 30, mass_t: float = 85.0):
        # Stage schedule
        self.refine_at_tick = refine_at_tick
        self.tap_at_tick = tap_at_tick
        self.energy_event_every = energy_event_every
        self.mass_t = mass_t  # t (heat size)

        # Thermal parameters
        self.T_min = 1400.0  # °C (physical floor while liquid)
        self.T_max = 1700.0  # °C (hard safety clamp)
        self.T_target = {Stage.MELT: 1560.0, Stage.REFINE: 1615.0}
        self.k_temp = 0.05  # 1/tick (approach rate to stage target)
        self.k_foam_heat = 0.01  # °C per tick per % foam above 50
        self.max_ramp = 4.0  # °C/tick
        self.tap_cooling = 0.5  # °C/tick once tapped

        # Electrical parameters
        self.stage_power_mw = {Stage.MELT: 65.0, Stage.REFINE: 45.0, Stage.TAP: 0.0}
        self.stage_tap = {Stage.MELT: 9, Stage.REFINE: 7, Stage.TAP: 6}
        self.pf_base = 0.82
        self.pf_spread = 0.06
        self.pf_smoothing = 0.2
        self.foam_smoothing = 0.3

        # Chemistry
        self.carbon_melt_target = 0.12  # %
        self.decarb_rate = 0.0001  # %C per tick in REFINE
        self.carbon_floor = 0.04  # %
        self.oxygen_target = {Stage.MELT: 0.025, Stage.REFINE: 0.015}

    def initial_state(self, seed: int, heat_id: int) -> HeatState:
        """
        Build the tick-0 state for a heat. Same seed, same state.
        """
        rng = random.Random(seed)
        temperature = 1520.0 + rng.random() * 50.0
        power_factor = self.pf_base + rng.random() * self.pf_spread
        foam_index = 55.0 + rng.random() * 25.0
        thd = 6.0 + rng.random() * 0.5
        carbon = self.carbon_melt_target + (rng.random() - 0.5) * 0.04
        sulfur = 0.015 + rng.random() * 0.008
        oxygen = 0.025 + (rng.random() - 0.5) * 0.01
        base_confidence = 78 + rng.randint(0, 11)

        state = HeatState(
            heat_id=heat_id,
            seed=seed,
            stage=Stage.MELT,
            temperature_c=temperature,
            power_factor=power_factor,
            foam_index=foam_index,
            base_confidence=base_confidence,
            power_mw=self.stage_power_mw[Stage.MELT] * power_factor,
            thd=thd,
            tap=self.stage_tap[Stage.MELT],
            carbon_pct=carbon,
            sulfur_pct=sulfur,
            oxygen_pct=oxygen,
            rng=rng,
        )
        state.timeline.append(TimelineEvent(0, "stage", Stage.MELT, "Heat started - MELT", 0.0))
        return state

    def step(self, state: HeatState, dt: float) -> None:
        """
        Advance one heat by one tick of dt simulated seconds.
        """
        state.tick += 1

        if state.stage is Stage.TAP:
            # Heat is out of the furnace: no arc, ladle cools slowly
            state.power_mw = 0.0
            state.temperature_c = max(self.T_min, state.temperature_c - self.tap_cooling)
            return

        rnd = state.rng.random
        melting = state.stage is Stage.MELT

        # 1. Electrical
        pf_target = self.pf_base + rnd() * self.pf_spread
        state.power_factor += (pf_target - state.power_factor) * self.pf_smoothing
        state.power_factor = max(0.01, min(1.0, state.power_factor))
        state.power_mw = self.stage_power_mw[state.stage] * state.power_factor
        state.kwh_total += state.power_mw * 1000.0 * dt / 3600.0
        state.kwh_per_t = state.kwh_total / self.mass_t
        state.thd = 2.0 + (4.0 if melting else 2.0) + rnd() * 0.5

        # 2. Slag foam follows arc stability
        foam_target = 45.0 + (20.0 if melting else 5.0) + (state.thd - 4.0) * 5.0 + (rnd() - 0.5) * 8.0
        state.foam_index += (foam_target - state.foam_index) * self.foam_smoothing
        state.foam_index = max(0.0, min(100.0, state.foam_index))

        # 3. Thermal (first-order approach with ramp constraint)
        dT = (self.T_target[state.stage] - state.temperature_c) * self.k_temp
        dT += (state.foam_index - 50.0) * self.k_foam_heat
        dT = max(-self.max_ramp, min(self.max_ramp, dT))
        state.temperature_c = max(self.T_min, min(self.T_max, state.temperature_c + dT))

        # 4. Chemistry
        if melting:
            state.carbon_pct += (self.carbon_melt_target - state.carbon_pct) * 0.1 + (rnd() - 0.5) * 0.002
        else:
            state.carbon_pct -= self.decarb_rate
        state.carbon_pct = max(self.carbon_floor, state.carbon_pct)
        o_target = self.oxygen_target[state.stage]
        state.oxygen_pct += (o_target - state.oxygen_pct) * 0.05 + (rnd() - 0.5) * 0.0005
        state.sulfur_pct = max(0.005, min(0.05, state.sulfur_pct + (rnd() - 0.5) * 0.0002))

        # 5. Stage schedule
        if melting and state.tick >= self.refine_at_tick:
            self._advance(state, Stage.REFINE)
        elif state.stage is Stage.REFINE and state.tick >= self.tap_at_tick:
            self._advance(state, Stage.TAP)

        if self.energy_event_every and state.tick % self.energy_event_every == 0:
            state.timeline.append(TimelineEvent(
                state.tick, "energy", state.stage,
                f"{state.kwh_per_t:.1f} kWh/t after {state.tick} ticks", state.kwh_total,
            ))

    def nominal_power_mw(self, state: HeatState) -> float:
        return self.stage_power_mw[state.stage] * state.power_factor

    def _advance(self, state: HeatState, stage: Stage) -> None:
        state.stage = stage
        state.tap = self.stage_tap[stage]
        state.timeline.append(TimelineEvent(
            state.tick, "stage", stage, f"Stage {stage.value} reached", state.kwh_total,
        ))
