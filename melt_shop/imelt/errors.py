"""
Error kinds raised by the demo backend.

Every error carries the HTTP status the delivery layer answers with.
UpstreamFailure never reaches a client: the AI service recovers from it
and downgrades to a rule-based answer.
"""


class DemoError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidParameter(DemoError):
    status_code = 400


class NotFound(DemoError):
    status_code = 404


class NoActiveHeat(NotFound):
    def __init__(self, heat_id):
        super().__init__(f"No active heat {heat_id}; call /api/demo/start or /api/demo/reset first")
        self.heat_id = heat_id


class UnknownScenario(NotFound):
    def __init__(self, scenario_id: str):
        super().__init__(f"Unknown scenario '{scenario_id}'")
        self.scenario_id = scenario_id


class UnknownAction(NotFound):
    def __init__(self, action_type: str):
        super().__init__(f"Unknown action '{action_type}'")
        self.action_type = action_type


class UnknownHeat(NotFound):
    def __init__(self, heat_id):
        super().__init__(f"Heat {heat_id} not found")
        self.heat_id = heat_id


class UpstreamFailure(DemoError):
    status_code = 502
