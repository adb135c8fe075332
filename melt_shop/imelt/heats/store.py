import copy
import threading
from typing import Dict, Any, List, Optional

from ..errors import UnknownHeat
from ..simulation.driver import SimulationDriver
from .catalog import build_catalog, derive_record


class HeatStore:
    """
    Source of truth for static heat records.
    Thread-safe; records handed out are copies.

    When a driver is attached, a running heat's record carries the live
    confidence and modelStatus "predicting". A heat started under a number
    outside the catalog gets a record derived from its heat number.
    """

    def __init__(self, driver: Optional[SimulationDriver] = None,
                 records: Optional[Dict[int, Dict[str, Any]]] = None):
        self.driver = driver
        self._records = records if records is not None else build_catalog()
        self._lock = threading.Lock()

    def list_heats(self) -> List[int]:
        with self._lock:
            return sorted(self._records)

    def get(self, heat_id: int) -> Dict[str, Any]:
        state = self.driver.status(heat_id) if self.driver else None

        with self._lock:
            record = self._records.get(heat_id)
            if record is not None:
                record = copy.deepcopy(record)

        if record is None:
            if state is None:
                raise UnknownHeat(heat_id)
            record = derive_record(heat_id)

        if state is not None:
            record["confidence"] = state.confidence
            record["modelStatus"] = "predicting"
            record["stage"] = state.stage.value
        return record
