"""SweepScheduler: periodic background ownership sweep.

Runs OwnershipService.sweep_all on a daemon thread every `interval` seconds.
stop() wakes the thread; a sweep in progress finishes its current batch and
aborts before the next one.
"""

import logging
import threading
from typing import Optional

from src.core.ownership.models import SweepReport
from src.services.ownership_service import OwnershipService

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Background thread driving periodic sweeps"""

    def __init__(
        self,
        service: OwnershipService,
        interval: float,
        batch_size: int = 50,
        batch_delay: float = 1.0,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive: {interval}")
        self._service = service
        self._interval = interval
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._run_lock = threading.Lock()
        self.last_report: Optional[SweepReport] = None
        self.runs = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="ownership-sweep", daemon=True
        )
        self._thread.start()
        logger.info("Ownership sweep scheduled every %.0fs", self._interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Sweep thread did not stop within %ss", timeout)
            self._thread = None

    def run_once(
        self,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> SweepReport:
        """Run one sweep now. Sweeps never overlap.

        batch_size / batch_delay override the scheduled values for this run
        (manual sweeps from the API).
        """
        with self._run_lock:
            self._service.prune_cache()
            report = self._service.sweep_all(
                batch_size=self._batch_size if batch_size is None else batch_size,
                inter_batch_delay=self._batch_delay if batch_delay is None else batch_delay,
                should_stop=self._stop.is_set,
                sleep=self._stop.wait,
            )
            self.last_report = report
            self.runs += 1
            return report

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Background ownership sweep failed")
