import copy

import pytest
import requests
from fastapi.testclient import TestClient

from imelt.insights.ai_client import AIInsightService, CompletionClient
from imelt.main import create_app
from imelt.settings import DEFAULTS

HEAT = 93378


class OfflineSession:
    """Stands in for requests.Session; every call fails like an unreachable API."""

    def post(self, url, **kwargs):
        raise requests.ConnectionError("network disabled in tests")


@pytest.fixture
def config():
    cfg = copy.deepcopy(DEFAULTS)
    cfg["simulation"]["autostart"] = False
    return cfg


@pytest.fixture
def app(config):
    ai = AIInsightService(CompletionClient(
        config["ai"]["base_url"], config["ai"]["model"], api_key="test-key", session=OfflineSession(),
    ))
    return create_app(config, ai_service=ai, start_runner=False)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def running(client):
    """Client with heat 93378 reset from seed 42."""
    response = client.get("/api/demo/reset", params={"seed": 42, "heatId": HEAT})
    assert response.status_code == 200
    return client
