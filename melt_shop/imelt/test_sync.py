import pytest

from imelt.sync import RouteETA, SyncConfig, SyncConfigUpdate, SyncDecisionLog, SyncGuard


def route(eta_cc, eta_target, route_id="LF2->CC1", eta_lf=2):
    return RouteETA(route_id=route_id, eta_lf=eta_lf, eta_cc=eta_cc, eta_target=eta_target)


@pytest.fixture
def guard():
    return SyncGuard()


def test_late_caster_shows_delta_t_and_cost(guard):
    # caster 6 minutes late
    analysis = guard.analyze_route(route(eta_cc=10, eta_target=4))
    impact = analysis.baseline_impact

    assert analysis.delay_minutes == 6
    assert analysis.requires_action
    assert impact.predicted_delta_t == pytest.approx(10.8)
    assert impact.cost_per_heat == pytest.approx(162.0)
    assert impact.cost_per_day == pytest.approx(162.0 * 24)
    assert impact.cost_per_year == pytest.approx(162.0 * 24 * 350)


def test_early_caster_costs_nothing(guard):
    analysis = guard.analyze_route(route(eta_cc=3, eta_target=4))
    assert analysis.delay_minutes == 0
    assert not analysis.requires_action
    assert analysis.baseline_impact.predicted_delta_t == 0
    assert analysis.baseline_impact.cost_per_year == 0


def test_alert_threshold(guard):
    assert not guard.analyze_route(route(eta_cc=7, eta_target=4)).requires_action
    assert guard.analyze_route(route(eta_cc=7.5, eta_target=4)).requires_action


def test_mitigation_options(guard):
    # 4 minutes late: 7.2 °C, 108 € per heat
    analysis = guard.analyze_route(route(eta_cc=8, eta_target=4))
    boost, coordinate = analysis.mitigation_options

    assert (boost.id, boost.name) == ("boost", "Boost superheat now")
    assert boost.energy_cost == 25
    assert boost.delta_t_reduction == pytest.approx(4.8)
    assert boost.net_cost == 0  # recovered loss outweighs the energy
    assert boost.time_impact == 2

    assert (coordinate.id, coordinate.name) == ("coordinate", "Coordinate LF/CC")
    assert coordinate.energy_cost == 0
    assert coordinate.delta_t_reduction == pytest.approx(5.76)
    assert coordinate.net_cost == pytest.approx(108.0 - 86.4)
    assert coordinate.time_impact == pytest.approx(-2.4)


def test_apply_mitigation_updates_economics(guard):
    analysis = guard.analyze_route(route(eta_cc=8, eta_target=4))
    boost, coordinate = analysis.mitigation_options

    coordinated = guard.apply_mitigation(analysis.baseline_impact, coordinate)
    assert coordinated.predicted_delta_t == pytest.approx(1.44)
    assert coordinated.cost_per_heat == pytest.approx(21.6)
    assert coordinated.cost_per_heat < analysis.baseline_impact.cost_per_heat

    boosted = guard.apply_mitigation(analysis.baseline_impact, boost)
    assert boosted.predicted_delta_t == pytest.approx(2.4)
    # remaining loss plus the boost energy
    assert boosted.cost_per_heat == pytest.approx(36.0 + 25.0)
    assert boosted.cost_per_day == pytest.approx(61.0 * 24)


def test_boost_reduction_capped_by_loss():
    guard = SyncGuard(SyncConfig(dt_per_min=1.0))
    analysis = guard.analyze_route(route(eta_cc=9, eta_target=4))
    boost = analysis.mitigation_options[0]
    assert boost.delta_t_reduction == pytest.approx(5.0)
    assert guard.apply_mitigation(analysis.baseline_impact, boost).predicted_delta_t == 0


def test_update_config(guard):
    updated = guard.update_config(SyncConfigUpdate(cost_per_10c=200))
    assert updated.cost_per_10c == 200
    assert updated.dt_per_min == 1.8
    assert guard.analyze_route(route(eta_cc=10, eta_target=4)).baseline_impact.cost_per_heat == pytest.approx(216.0)


def test_decision_log(guard):
    log = SyncDecisionLog()
    coordinated = guard.decide(route(eta_cc=8, eta_target=4, route_id="LF1->CC2"), "coordinate", "Petrov")
    untouched = guard.decide(route(eta_cc=10, eta_target=4), None, "Ivanov")
    log.log(coordinated)
    log.log(untouched)

    assert coordinated.chosen_mitigation.id == "coordinate"
    assert coordinated.timestamp.tzinfo is not None
    assert untouched.chosen_mitigation is None
    assert untouched.final_impact == untouched.original_impact

    assert [d.operator for d in log.decisions("LF1->CC2")] == ["Petrov"]
    assert [d.operator for d in log.decisions(limit=1)] == ["Ivanov"]
    assert log.decisions(limit=0) == []

    savings = log.total_savings(guard.config)
    assert savings["decisions"] == 2
    assert savings["perHeat"] == pytest.approx(108.0 - 21.6)
    assert savings["perYear"] == pytest.approx((108.0 - 21.6) * 24 * 350)


def test_decisions_are_copies(guard):
    log = SyncDecisionLog()
    log.log(guard.decide(route(eta_cc=8, eta_target=4), "boost", "Petrov"))
    log.decisions()[0].operator = "changed"
    assert log.decisions()[0].operator == "Petrov"
