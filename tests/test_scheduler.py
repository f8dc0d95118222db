import threading
import time
from types import SimpleNamespace

from core.scheduler.refresh import MANUAL, SCHEDULED, RefreshScheduler


class FakeGateway:
    def __init__(self, ids):
        self.products = [SimpleNamespace(id=i, name=f"product {i}") for i in ids]

    def list_products(self, limit=None):
        return list(self.products)


class FakeService:
    """Records refreshes; can fail chosen ids and take time per product."""

    def __init__(self, ids, fail=(), duration=0.0):
        self.gateway = FakeGateway(ids)
        self.fail = set(fail)
        self.duration = duration
        self.refreshed = []
        self.started = threading.Event()
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def refresh_product(self, product_id):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            if self.duration:
                time.sleep(self.duration)
            if product_id in self.fail:
                raise RuntimeError(f"cannot refresh {product_id}")
            self.refreshed.append(product_id)
        finally:
            with self._lock:
                self.active -= 1


def make_scheduler(service, **kwargs):
    options = dict(interval_seconds=3600, product_delay_seconds=0, stop_grace_seconds=2)
    options.update(kwargs)
    return RefreshScheduler(service, **options)


def test_manual_pass_refreshes_every_product():
    service = FakeService([1, 2, 3])
    scheduler = make_scheduler(service)

    report = scheduler.trigger().result(timeout=5)
    scheduler.stop()

    assert report.trigger == MANUAL
    assert report.refreshed == [1, 2, 3]
    assert report.failed == []
    assert report.finished_at >= report.started_at
    assert scheduler.results.get_nowait() is report


def test_one_failing_product_does_not_stop_the_pass():
    service = FakeService([1, 2, 3], fail={2})
    scheduler = make_scheduler(service)

    report = scheduler.trigger().result(timeout=5)
    scheduler.stop()

    assert report.refreshed == [1, 3]
    assert report.failed == [2]
    assert report.total == 3


def test_timer_runs_scheduled_passes():
    service = FakeService([1])
    scheduler = make_scheduler(service, interval_seconds=0.05)

    scheduler.start()
    assert scheduler.is_running
    report = scheduler.results.get(timeout=5)
    scheduler.stop()

    assert report.trigger == SCHEDULED
    assert report.refreshed == [1]
    assert not scheduler.is_running


def test_start_twice_keeps_one_timer():
    scheduler = make_scheduler(FakeService([]))
    scheduler.start()
    timer = scheduler._timer
    scheduler.start()
    assert scheduler._timer is timer
    scheduler.stop()


def test_passes_never_overlap():
    service = FakeService([1, 2], duration=0.05)
    scheduler = make_scheduler(service, interval_seconds=0.02)

    scheduler.start()
    futures = [scheduler.trigger() for _ in range(3)]
    for future in futures:
        future.result(timeout=10)
    scheduler.stop()

    assert service.max_active == 1


def test_stop_takes_effect_between_products():
    service = FakeService([1, 2, 3, 4, 5], duration=0.2)
    scheduler = make_scheduler(service)

    future = scheduler.trigger()
    queued = scheduler.trigger()
    assert service.started.wait(5)
    scheduler.stop()

    report = future.result(timeout=5)
    assert report.stopped_early
    assert 1 <= len(report.refreshed) < 5
    # The product in flight when stop was requested was finished, not cut short
    assert report.refreshed == service.refreshed
    assert queued.cancelled()


def test_trigger_after_stop_runs_normally():
    service = FakeService([1, 2])
    scheduler = make_scheduler(service)
    scheduler.start()
    scheduler.stop()

    report = scheduler.trigger().result(timeout=5)
    scheduler.stop()

    assert report.refreshed == [1, 2]
    assert not report.stopped_early


def test_from_settings_reads_intervals(settings):
    scheduler = RefreshScheduler.from_settings(FakeService([]), settings)
    assert scheduler.interval_seconds == settings.AUTO_REFRESH_INTERVAL_MINUTES * 60
    assert scheduler.product_delay_seconds == 0
    assert scheduler.stop_grace_seconds == 2


def test_delay_between_products_is_interruptible():
    service = FakeService([1, 2, 3])
    scheduler = make_scheduler(service, product_delay_seconds=0.3)

    future = scheduler.trigger()
    assert service.started.wait(5)
    started = time.monotonic()
    scheduler.stop()
    report = future.result(timeout=5)

    assert report.stopped_early
    assert time.monotonic() - started < 2


def test_is_busy_only_while_a_pass_runs():
    service = FakeService([1, 2], duration=0.2)
    scheduler = make_scheduler(service)
    assert not scheduler.is_busy

    future = scheduler.trigger()
    assert service.started.wait(timeout=5)
    assert scheduler.is_busy

    future.result(timeout=5)
    scheduler.stop()
    assert not scheduler.is_busy
