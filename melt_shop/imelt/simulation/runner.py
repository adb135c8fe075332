import logging
import threading
import time
from typing import Callable, List, Optional

from .driver import SimulationDriver
from .state import HeatState

logger = logging.getLogger("Runner")


class SimulationRunner:
    """
    Background tick loop. Calls driver.tick() every `interval` seconds and
    hands the snapshots to on_tick (the WebSocket hub in production).
    """

    def __init__(self, driver: SimulationDriver, interval: float = 2.0,
                 on_tick: Optional[Callable[[List[HeatState]], None]] = None):
        self.driver = driver
        self.interval = interval
        self.on_tick = on_tick
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="imelt-runner", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _loop(self):
        logger.info(f">>> Simulation Started (tick every {self.interval}s)")
        while not self._stop.is_set():
            start_time = time.time()

            # 1. Step every heat
            snapshots = self.driver.tick()

            # 2. Push to subscribers
            if self.on_tick and snapshots:
                try:
                    self.on_tick(snapshots)
                except Exception:
                    logger.exception("Tick delivery failed")

            # 3. Sleep remainder of tick
            elapsed = time.time() - start_time
            self._stop.wait(max(0.0, self.interval - elapsed))
        logger.info(">>> Simulation Stopped")
