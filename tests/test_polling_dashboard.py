import asyncio

from sla_app.core.config import AppSettings, ThresholdSettings
from sla_app.core.dashboard import DashboardController
from sla_app.core.polling import PollingScheduler
from sla_app.core.thresholds import DEFAULT_THRESHOLDS


def _sample_summary():
    return {
        "milestoneList": [
            {"caseId": "c1", "mName": "Response Time", "priority": "Urgent", "timeRemaining": "20:00"},
            {"caseId": "c1", "mName": "Fix Resolution", "priority": "Urgent", "timeRemaining": "3000:00"},
            {"caseId": "c2", "mName": "Response Time", "priority": "Low", "timeRemaining": "2000:00"},
            {"caseId": "c3", "mName": "Response Time", "priority": "Low", "isStopped": True},
        ]
    }


class FakeSummarySource:
    def __init__(self, payload=None):
        self.payload = payload if payload is not None else _sample_summary()
        self.calls = 0
        self.fail = False

    async def fetch_summary(self, scope_id):
        self.calls += 1
        if self.fail:
            raise RuntimeError("summary unavailable")
        return self.payload

    async def fetch_case_page(self, request):
        return []


def test_scheduler_ticks_until_stopped():
    async def scenario():
        calls = []

        async def tick():
            calls.append(1)

        poller = PollingScheduler(tick, 0.01)
        poller.start()
        assert poller.is_running
        await asyncio.sleep(0.06)
        poller.stop()
        seen = len(calls)
        await asyncio.sleep(0.03)
        return seen, len(calls), poller.is_running

    seen, after, running = asyncio.run(scenario())
    assert seen >= 2
    assert after == seen
    assert not running


def test_scheduler_survives_failures():
    async def scenario():
        calls = []

        async def tick():
            calls.append(1)
            raise RuntimeError("flaky")

        poller = PollingScheduler(tick, 0.01)
        poller.start()
        await asyncio.sleep(0.05)
        poller.stop()
        return len(calls)

    assert asyncio.run(scenario()) >= 2


def test_scheduler_interval_defaults():
    async def noop():
        return None

    assert PollingScheduler(noop, 0).interval == 60.0
    assert PollingScheduler(noop, None).interval == 60.0


def test_refresh_builds_counters():
    controller = DashboardController(FakeSummarySource(), AppSettings())
    assert asyncio.run(controller.refresh())
    items = {item.id: item for item in controller.counter_items()}
    assert items["Response Time"].count == 2
    assert items["Response Time"].stopped_count == 1
    assert items["Response Time"].is_alerting
    assert items["Fix Resolution"].count == 1
    assert controller.is_alerting


def test_priority_mode_counts_one_per_case():
    controller = DashboardController(FakeSummarySource(), AppSettings())
    asyncio.run(controller.refresh())
    controller.set_priority_mode(True)
    items = {item.id: item for item in controller.counter_items()}
    assert items["Response Time"].count == 2
    assert items["Fix Resolution"].count == 0
    controller.set_priority_mode(False)
    assert controller.snapshot.active["Fix Resolution"].count == 1


def test_failed_refresh_keeps_snapshot_and_notifies():
    notes = []
    source = FakeSummarySource()
    controller = DashboardController(source, AppSettings(), notify=lambda t, m: notes.append((t, m)))
    asyncio.run(controller.refresh())
    before = controller.snapshot
    source.fail = True
    assert not asyncio.run(controller.refresh())
    assert controller.snapshot is before
    assert notes == [("Load Error", "summary unavailable")]


def test_visibility_starts_and_stops_timers():
    async def scenario():
        source = FakeSummarySource()
        settings = AppSettings(polling_interval=0.01)
        controller = DashboardController(source, settings)
        await controller.set_visible(True)
        running = controller.poller.is_running and controller.flasher.is_running
        await asyncio.sleep(0.05)
        await controller.set_visible(False)
        calls = source.calls
        await asyncio.sleep(0.03)
        return controller, running, calls, source.calls

    controller, running, calls, later = asyncio.run(scenario())
    assert running
    assert calls >= 2
    assert later == calls
    assert not controller.poller.is_running
    assert not controller.flasher.is_running
    assert not controller.flash_on


def test_flash_toggles_only_when_alerting():
    controller = DashboardController(FakeSummarySource(), AppSettings())
    asyncio.run(controller.refresh())
    asyncio.run(controller._toggle_flash())
    assert controller.flash_on
    asyncio.run(controller._toggle_flash())
    assert not controller.flash_on
    quiet = DashboardController(FakeSummarySource({"milestoneList": []}), AppSettings())
    asyncio.run(quiet.refresh())
    asyncio.run(quiet._toggle_flash())
    assert not quiet.flash_on


def test_close_clears_state():
    controller = DashboardController(FakeSummarySource(), AppSettings())
    asyncio.run(controller.refresh())
    controller.close()
    assert controller.milestones == ()
    assert all(item.count == 0 for item in controller.counter_items())


def test_out_of_order_thresholds_do_not_break_controller():
    settings = AppSettings(thresholds=ThresholdSettings(green_min=1, yellow_min=12, orange_min=24))
    controller = DashboardController(FakeSummarySource(), settings)
    assert controller.thresholds == DEFAULT_THRESHOLDS
    assert asyncio.run(controller.refresh())
    items = {item.id: item for item in controller.counter_items()}
    assert items["Response Time"].count == 2
