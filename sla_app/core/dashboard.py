"""Counter panel controller: milestone snapshot, polling, visibility, alert flash."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sla_app.analytics.aggregations.milestones import (
    CounterItem,
    SummarySnapshot,
    build_counter_items,
    summarize,
)

from .client import SlaDataSource
from .config import FLASH_INTERVAL_SECONDS, AppSettings
from .mappers import map_milestones
from .models import MilestoneRecord
from .polling import PollingScheduler
from .thresholds import Thresholds

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def log_notifier(title: str, message: str) -> None:
    logger.warning("%s: %s", title, message)


class DashboardController:
    """Owns the milestone snapshot and the timers that keep it fresh.

    The snapshot is replaced wholesale on every successful poll; a failed
    fetch keeps the previous one and surfaces a notification.
    """

    def __init__(
        self,
        source: SlaDataSource,
        settings: AppSettings,
        *,
        scope_id: str | None = None,
        notify: Notifier = log_notifier,
        representative: str = "first",
        now: Callable[[], datetime | None] | None = None,
    ):
        self.source = source
        self.settings = settings
        self.scope_id = scope_id
        self.notify = notify
        self.representative = representative
        self.thresholds = Thresholds.from_settings(settings.thresholds)
        self.priority_mode = False
        self.milestones: tuple[MilestoneRecord, ...] = ()
        self.snapshot = SummarySnapshot()
        self.flash_on = False
        self._now = now or (lambda: None)
        self.poller = PollingScheduler(self.refresh, settings.polling_interval, name="summary poll")
        self.flasher = PollingScheduler(self._toggle_flash, FLASH_INTERVAL_SECONDS, name="alert flash")

    async def refresh(self) -> bool:
        try:
            result = await self.source.fetch_summary(self.scope_id)
            milestones = tuple(map_milestones((result or {}).get("milestoneList") or []))
        except Exception as exc:
            self.notify("Load Error", str(exc))
            return False
        self.milestones = milestones
        self.recompute()
        logger.debug("Summary refreshed with %d milestone(s)", len(milestones))
        return True

    def recompute(self) -> SummarySnapshot:
        self.snapshot = summarize(
            self.milestones,
            priority_mode=self.priority_mode,
            representative=self.representative,
            thresholds=self.thresholds,
            now=self._now(),
        )
        return self.snapshot

    def set_priority_mode(self, enabled: bool) -> SummarySnapshot:
        self.priority_mode = bool(enabled)
        return self.recompute()

    def counter_items(self) -> list[CounterItem]:
        return build_counter_items(
            self.snapshot,
            threshold_color=self.settings.threshold_color,
            normal_color=self.settings.normal_color,
        )

    @property
    def is_alerting(self) -> bool:
        return any(item.is_alerting for item in self.counter_items())

    async def _toggle_flash(self) -> None:
        self.flash_on = (not self.flash_on) and self.is_alerting

    async def set_visible(self, visible: bool) -> None:
        """Visibility observer hook: refresh and resume when shown, stop timers when hidden."""
        if not visible:
            self.stop()
            return
        await self.refresh()
        self.poller.start()
        self.flasher.start()

    def stop(self) -> None:
        self.poller.stop()
        self.flasher.stop()
        self.flash_on = False

    def close(self) -> None:
        self.stop()
        self.milestones = ()
        self.snapshot = SummarySnapshot()
