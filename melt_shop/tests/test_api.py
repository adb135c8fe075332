"""
HTTP surface: demo lifecycle, scenarios, actions, insights, heats, AI and ROI.
The tick runner is not started; state only changes through requests.
"""

import logging

from fastapi.testclient import TestClient

from imelt.simulation.actions import ACTIONS

HEAT = 93378
SEEDS = (42, 123, 999, 55, 777)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


# --- Demo lifecycle ---

def test_start_shape(client):
    body = client.get("/api/demo/start", params={"seed": 42, "heatId": HEAT}).json()
    for key in ("heatId", "seed", "stage", "confidence", "temperature", "powerFactor", "foamIndex", "timeline"):
        assert key in body
    assert body["heatId"] == HEAT
    assert body["stage"] == "MELT"
    assert len(body["timeline"]) == 1


def test_start_is_idempotent(client):
    first = client.get("/api/demo/start", params={"seed": 42, "heatId": HEAT}).json()
    second = client.get("/api/demo/start", params={"seed": 42, "heatId": HEAT}).json()
    assert len(second["timeline"]) == len(first["timeline"])
    assert second == first


def test_start_defaults_heat_id(client):
    assert client.get("/api/demo/start", params={"seed": 7}).json()["heatId"] == HEAT


def test_reset_then_status_is_deterministic(client):
    keys = ("stage", "temperature", "powerFactor", "foamIndex")
    snapshots = []
    for _ in range(2):
        client.get("/api/demo/reset", params={"seed": 42, "heatId": HEAT})
        status = client.get("/api/demo/status", params={"heatId": HEAT}).json()
        snapshots.append({k: status[k] for k in keys})
    assert snapshots[0] == snapshots[1]


def test_seed_sensitivity(client):
    confidences = {
        client.get("/api/demo/reset", params={"seed": seed, "heatId": HEAT}).json()["confidence"]
        for seed in SEEDS
    }
    assert len(confidences) >= 2


def test_missing_or_bad_seed_is_400(client):
    for params in ({"heatId": HEAT}, {"seed": "abc", "heatId": HEAT}, {"seed": 42, "heatId": "x"}):
        response = client.get("/api/demo/start", params=params)
        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error"]


def test_status_without_heat(client):
    body = client.get("/api/demo/status").json()
    assert body["running"] is False
    assert body["scenario"] is None
    assert body["confidence"] is None


def test_status_running(running):
    body = running.get("/api/demo/status").json()
    assert body["running"] is True
    assert body["heatId"] == HEAT
    assert body["seed"] == 42
    assert body["scenario"] is None
    assert body["stage"] == "MELT"


# --- Scenarios and actions ---

def test_scenario_end_to_end(running):
    reset = running.get("/api/demo/reset", params={"seed": 42, "heatId": HEAT}).json()
    x_confidence, x_foam = reset["confidence"], reset["foamIndex"]

    injected = running.post("/api/demo/scenario/foam-collapse", json={"heatId": HEAT})
    assert injected.status_code == 200
    body = injected.json()
    assert body["ok"] is True
    assert body["scenario"]["name"] == "Foam Collapse"
    assert body["state"]["foamIndex"] < x_foam
    assert body["state"]["activeScenario"] == "foam-collapse"
    lowered = body["state"]["confidence"]
    assert lowered < x_confidence

    acted = running.post("/api/actions/prevent-foam-collapse", json={"heatId": HEAT})
    assert acted.status_code == 200
    body = acted.json()
    assert body["ok"] is True
    assert body["action"] == "prevent-foam-collapse"
    assert body["result"]["success"] is True
    assert body["result"]["kind"] == "foam-control"

    status = running.get("/api/demo/status", params={"heatId": HEAT}).json()
    assert status["activeScenario"] is None
    assert status["scenario"] is None
    assert lowered < status["confidence"] <= 95
    assert status["confidence"] == min(95, x_confidence + 5)
    assert body["result"]["confidence"] == status["confidence"]


def test_resolved_insight_is_not_repeated(running):
    running.post("/api/demo/scenario/foam-collapse", json={"heatId": HEAT})
    before = running.get(f"/api/insights/{HEAT}").json()
    assert before["insight"]["id"] == "foam-collapse-critical"

    running.post("/api/actions/prevent-foam-collapse", json={"heatId": HEAT})
    after = running.get(f"/api/insights/{HEAT}").json()
    assert after["insight"]["id"] != "foam-collapse-critical"


def test_unknown_scenario(running):
    response = running.post("/api/demo/scenario/meteor-strike", json={"heatId": HEAT})
    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Unknown scenario 'meteor-strike'"}


def test_scenario_for_heat_not_started(client):
    response = client.post("/api/demo/scenario/foam-collapse", json={"heatId": 11111})
    assert response.status_code == 404
    assert response.json()["ok"] is False


def test_scenario_body_validation(running):
    for body in ({}, {"heatId": "93378"}, {"heatId": True}):
        response = running.post("/api/demo/scenario/foam-collapse", json=body)
        assert response.status_code == 400


def test_unknown_action(running):
    response = running.post("/api/actions/melt-faster", json={"heatId": HEAT})
    assert response.status_code == 404
    assert response.json()["ok"] is False
    assert "melt-faster" in response.json()["error"]


def test_action_validation(running):
    assert running.post("/api/actions/adjust-carbon", json={}).status_code == 400
    assert running.post("/api/actions/adjust-carbon", json={"heatId": "93378"}).status_code == 400

    response = running.post("/api/actions/stabilize-temperature",
                            json={"heatId": HEAT, "targetTemperature": 1900})
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_action_for_heat_not_started(client):
    response = client.post("/api/actions/adjust-carbon", json={"heatId": 11111})
    assert response.status_code == 404


def test_adjust_carbon_result(running):
    body = running.post("/api/actions/adjust-carbon",
                        json={"heatId": HEAT, "targetC": 0.13, "addAmount": 0.42}).json()
    result = body["result"]
    assert result["kind"] == "carbon-adjustment"
    assert result["newCarbonLevel"] == 0.13
    assert "grade compliance" in result["qualityImprovement"]
    assert result["costImpact"].startswith("€")


def test_confidence_bounded_over_many_actions(running):
    for _ in range(4):
        for action_type in ACTIONS:
            result = running.post(f"/api/actions/{action_type}", json={"heatId": HEAT}).json()["result"]
            assert 0 <= result["confidence"] <= 95
    status = running.get("/api/demo/status").json()
    assert 0 <= status["confidence"] <= 95


def test_catalogs(client):
    scenarios = client.get("/api/demo/scenarios").json()["scenarios"]
    assert {s["id"] for s in scenarios} == {"energy-spike", "foam-collapse", "temp-risk", "power-factor"}
    actions = client.get("/api/actions").json()["actions"]
    assert {a["actionType"] for a in actions} == set(ACTIONS)


# --- Insights ---

def test_deterministic_insight(running):
    body = running.get(f"/api/insights/{HEAT}").json()
    assert body["heatId"] == HEAT
    assert body["mode"] == "deterministic"
    assert body["fallback"] is False
    assert body["timestamp"]
    assert body["simulationState"]["heatId"] == HEAT
    assert body["insight"]["source"] == "rules"


def test_ai_insight_falls_back(running):
    response = running.get(f"/api/insights/{HEAT}", params={"mode": "ai", "query": "anything?"})
    assert response.status_code == 200
    body = response.json()
    assert body["fallback"] is True
    assert body["mode"] == "deterministic"
    assert "network disabled" in body["error"]
    assert body["insight"]["id"]


def test_insight_for_heat_not_started(client):
    assert client.get("/api/insights/11111").status_code == 404


def test_insight_bad_mode(running):
    assert running.get(f"/api/insights/{HEAT}", params={"mode": "psychic"}).status_code == 400


def test_typed_insight(running):
    running.post("/api/demo/scenario/foam-collapse", json={"heatId": HEAT})

    body = running.get(f"/api/insights/{HEAT}", params={"type": "process"}).json()
    assert body["type"] == "process"
    assert body["insight"]["id"] == "foam-collapse-critical"

    body = running.get(f"/api/insights/{HEAT}", params={"type": "energy"}).json()
    assert body["insight"]["id"] in ("energy-spike-high", "power-factor-low", "energy-nominal")

    assert running.get(f"/api/insights/{HEAT}").json()["type"] is None
    assert running.get(f"/api/insights/{HEAT}", params={"type": "weather"}).status_code == 400


def test_analysis_per_category(running):
    running.post("/api/demo/scenario/foam-collapse", json={"heatId": HEAT})
    body = running.get(f"/api/insights/{HEAT}/analysis").json()
    assert body["heatId"] == HEAT
    insights = {item["type"]: item for item in body["insights"]}
    assert list(insights) == ["chemistry", "energy", "process"]
    assert insights["process"]["insight"]["id"] == "foam-collapse-critical"
    assert all(item["mode"] == "deterministic" and not item["fallback"] for item in body["insights"])


def test_ai_analysis_falls_back_per_category(running):
    response = running.get(f"/api/insights/{HEAT}/analysis", params={"mode": "ai"})
    assert response.status_code == 200
    items = response.json()["insights"]
    assert len(items) == 3
    for item in items:
        assert item["fallback"] is True
        assert item["mode"] == "deterministic"
        assert "network disabled" in item["error"]


def test_analysis_for_heat_not_started(client):
    assert client.get("/api/insights/11111/analysis").status_code == 404


# --- AI ---

def test_chat_fallback_is_200(running):
    response = running.post("/api/ai/chat", json={"message": "How is the energy efficiency?"})
    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "fallback"
    assert body["fallback"] is True
    assert body["heatId"] == HEAT
    assert body["response"]


def test_chat_requires_message(client):
    assert client.post("/api/ai/chat", json={}).status_code == 400


def test_ai_status(client):
    body = client.get("/api/ai/status").json()
    assert body["configured"] is True
    assert body["model"]


# --- Heats ---

def test_heat_record(client):
    body = client.get(f"/api/heat/{HEAT}").json()
    assert body["heat"] == HEAT
    assert body["grade"] == "13KhFA/9"
    assert client.get(f"/api/heats/{HEAT}").json() == body


def test_heat_list(client):
    assert client.get("/api/heats").json() == [93378, 93379, 93380, 93381]


def test_unknown_heat_record(client):
    response = client.get("/api/heat/55555")
    assert response.status_code == 404
    assert response.json()["error"] == "Heat 55555 not found"


def test_heat_record_for_started_heat_outside_catalog(client):
    started = client.get("/api/demo/start", params={"seed": 42, "heatId": 11111}).json()
    response = client.get("/api/heat/11111")
    assert response.status_code == 200
    body = response.json()
    assert body["heat"] == 11111
    assert body["modelStatus"] == "predicting"
    assert body["confidence"] == started["confidence"]
    assert 11111 not in client.get("/api/heats").json()


# --- ROI ---

def test_roi(client):
    body = client.post("/api/roi", json={
        "current": {"kwhPerT": 440, "minPerHeat": 58, "electrodeKgPerHeat": 3.6},
    }).json()
    assert round(body["perHeat"], 2) == 4881.45
    assert body["breakdown"]["timeSaving"] == 4550
    assert body["payback"]["months"] == 0.3
    assert body["payback"]["investmentEstimate"] == 450000


def test_roi_report(client):
    response = client.post("/api/roi/report", json={
        "current": {"kwhPerT": 440, "minPerHeat": 58, "electrodeKgPerHeat": 3.6},
    })
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert response.text.startswith("# I-MELT ROI Analysis Report")


# --- Errors ---

def test_unknown_route_is_404_json(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert "error" in response.json()


def test_unhandled_error_is_500(app, caplog):
    @app.get("/api/explode")
    def explode():
        raise RuntimeError("furnace controller crashed")

    with caplog.at_level(logging.ERROR, logger="DemoAPI"):
        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.get("/api/explode")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "furnace controller crashed" not in response.text
    assert any("GET /api/explode" in record.getMessage() for record in caplog.records)


def test_logging_configured_on_startup(app, config, monkeypatch):
    configured = []
    monkeypatch.setattr("imelt.main.configure_logging", configured.append)
    with TestClient(app):
        pass
    assert configured == [config]


# --- ROI PDF ---

def test_roi_pdf_report(client):
    response = client.post("/api/roi/report.pdf", json={
        "current": {"kwhPerT": 440, "minPerHeat": 58, "electrodeKgPerHeat": 3.6},
        "heatId": HEAT,
        "operator": "Petrov",
    })
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"imelt-roi-{HEAT}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_roi_pdf_requires_current(client):
    assert client.post("/api/roi/report.pdf", json={"heatId": HEAT}).status_code == 400


# --- LF/CC sync guard ---

LATE_ROUTE = {"routeId": "LF2->CC1", "etaLf": 2, "etaCc": 10, "etaTarget": 4}


def test_sync_analyze(client):
    body = client.post("/api/sync/analyze", json=LATE_ROUTE).json()
    assert body["delayMinutes"] == 6
    assert body["requiresAction"] is True
    assert round(body["baselineImpact"]["predictedDeltaT"], 2) == 10.8
    assert round(body["baselineImpact"]["costPerHeat"], 2) == 162.0
    assert [m["id"] for m in body["mitigationOptions"]] == ["boost", "coordinate"]


def test_sync_decisions_and_savings(client):
    logged = client.post("/api/sync/decisions", json={
        "route": LATE_ROUTE, "mitigationId": "coordinate", "operator": "Petrov",
    }).json()
    assert logged["ok"] is True
    decision = logged["decision"]
    assert decision["chosenMitigation"]["id"] == "coordinate"
    assert decision["finalImpact"]["costPerHeat"] < decision["originalImpact"]["costPerHeat"]
    assert decision["timestamp"]

    client.post("/api/sync/decisions", json={"route": {**LATE_ROUTE, "routeId": "LF1->CC2"}})

    assert len(client.get("/api/sync/decisions").json()["decisions"]) == 2
    only = client.get("/api/sync/decisions", params={"routeId": "LF2->CC1"}).json()["decisions"]
    assert [d["operator"] for d in only] == ["Petrov"]

    savings = client.get("/api/sync/savings").json()
    assert savings["decisions"] == 2
    assert round(savings["perHeat"], 2) == round(162.0 - 0.2 * 162.0, 2)


def test_sync_bad_mitigation(client):
    response = client.post("/api/sync/decisions", json={"route": LATE_ROUTE, "mitigationId": "pray"})
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_sync_config_update(client):
    assert client.get("/api/sync/config").json()["costPer10C"] == 150
    updated = client.put("/api/sync/config", json={"costPer10C": 200}).json()
    assert updated["costPer10C"] == 200
    assert updated["dtPerMin"] == 1.8
    body = client.post("/api/sync/analyze", json=LATE_ROUTE).json()
    assert round(body["baselineImpact"]["costPerHeat"], 2) == 216.0
    assert client.put("/api/sync/config", json={"dtPerMin": -1}).status_code == 400
