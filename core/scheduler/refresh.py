# Background refresh of every tracked product: a daemon timer thread fires a
# pass on a fixed interval and a one-worker executor runs manual passes.
# Passes never overlap; a stop request takes effect between products.

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

logger = logging.getLogger("scheduler.refresh")

SCHEDULED = "scheduled"
MANUAL = "manual"


@dataclass
class RefreshReport:
    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    refreshed: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    stopped_early: bool = False

    @property
    def total(self) -> int:
        return len(self.refreshed) + len(self.failed)


class RefreshScheduler:
    """Refreshes every tracked product periodically and on demand.

    Args:
        service: ProductService used to list and refresh products.
        interval_seconds: Time between scheduled passes.
        product_delay_seconds: Pause between two products of one pass.
        stop_grace_seconds: How long ``stop`` waits for a running pass.
        results: Queue receiving a RefreshReport after every pass.
    """

    def __init__(self, service, interval_seconds: float = 3600, product_delay_seconds: float = 2,
                 stop_grace_seconds: float = 5, results: Optional[queue.Queue] = None):
        self.service = service
        self.interval_seconds = interval_seconds
        self.product_delay_seconds = product_delay_seconds
        self.stop_grace_seconds = stop_grace_seconds
        self.results = results if results is not None else queue.Queue()

        self._pass_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._timer: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_settings(cls, service, settings, results: Optional[queue.Queue] = None) -> "RefreshScheduler":
        return cls(
            service,
            interval_seconds=settings.AUTO_REFRESH_INTERVAL_MINUTES * 60,
            product_delay_seconds=settings.REFRESH_PRODUCT_DELAY_SECONDS,
            stop_grace_seconds=settings.REFRESH_STOP_GRACE_SECONDS,
            results=results,
        )

    @property
    def is_running(self) -> bool:
        return self._timer is not None and self._timer.is_alive()

    @property
    def is_busy(self) -> bool:
        return self._pass_lock.locked()

    def start(self):
        """Arm the periodic timer. Calling start on a running scheduler does nothing."""
        with self._state_lock:
            if self.is_running:
                return
            stop_event = self._stop_event
            self._timer = threading.Thread(
                target=self._tick_loop, args=(stop_event,), name="refresh-timer", daemon=True
            )
            self._timer.start()
        logger.info("Auto-refresh started (every %.0f seconds)", self.interval_seconds)

    def trigger(self) -> Future:
        """Queue a manual pass. The timer keeps its cadence."""
        with self._state_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="refresh-manual")
            stop_event = self._stop_event
            return self._executor.submit(self._run_locked, MANUAL, stop_event)

    def stop(self):
        """Stop the timer and wait up to the grace period for a running pass.

        A pass still running after the grace period finishes its current
        product and exits; queued manual passes are cancelled.
        """
        with self._state_lock:
            stop_event = self._stop_event
            stop_event.set()
            timer, self._timer = self._timer, None
            executor, self._executor = self._executor, None
            # Later start/trigger calls get a fresh event
            self._stop_event = threading.Event()

        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
        if timer is not None:
            timer.join(self.stop_grace_seconds)

        if self._pass_lock.acquire(timeout=self.stop_grace_seconds):
            self._pass_lock.release()
        else:
            logger.warning("Refresh pass still running after %.0f seconds, abandoning it",
                           self.stop_grace_seconds)
        logger.info("Auto-refresh stopped")

    def _tick_loop(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval_seconds):
            if not self._pass_lock.acquire(blocking=False):
                logger.info("Previous refresh pass still running, skipping this tick")
                continue
            try:
                self._run_pass(SCHEDULED, stop_event)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Scheduled refresh pass failed: %s", e)
            finally:
                self._pass_lock.release()

    def _run_locked(self, trigger: str, stop_event: threading.Event) -> RefreshReport:
        with self._pass_lock:
            return self._run_pass(trigger, stop_event)

    def _run_pass(self, trigger: str, stop_event: threading.Event) -> RefreshReport:
        report = RefreshReport(trigger=trigger, started_at=datetime.utcnow())
        products = self.service.gateway.list_products()
        logger.info("Starting %s refresh of %d products", trigger, len(products))

        for index, product in enumerate(products):
            if index > 0:
                stop_event.wait(self.product_delay_seconds)
            if stop_event.is_set():
                report.stopped_early = True
                logger.info("Stop requested, ending refresh pass early")
                break
            try:
                self.service.refresh_product(product.id)
                report.refreshed.append(product.id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Error refreshing product #%d '%s': %s", product.id, product.name, e)
                report.failed.append(product.id)

        report.finished_at = datetime.utcnow()
        logger.info("Refresh pass done: %d refreshed, %d failed", len(report.refreshed), len(report.failed))
        self.results.put(report)
        return report
