"""
Update scheduler for Weather Notify.

Runs two periodic jobs on a background scheduler, one per frequency
bucket, that email current weather to every confirmed subscriber of
that bucket.
"""

import logging
import threading
from typing import Dict, Optional
from datetime import datetime
from dataclasses import dataclass, asdict

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import HOURLY_INTERVAL_SECONDS, DAILY_INTERVAL_SECONDS
from .errors import WeatherNotifyError
from .models import Frequency

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome of one delivery cycle for a frequency bucket."""
    frequency: str
    started_at: str
    finished_at: Optional[str] = None
    recipients: int = 0
    delivered: int = 0
    failed: int = 0
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_message is None


class UpdateScheduler:
    """
    Owns the hourly and daily delivery jobs.

    start() and stop() may be called from any thread and are idempotent.
    stop() does not wait for an in-flight cycle to finish.
    """

    def __init__(
        self,
        store,
        weather,
        notifier,
        hourly_interval: int = HOURLY_INTERVAL_SECONDS,
        daily_interval: int = DAILY_INTERVAL_SECONDS
    ):
        self.store = store
        self.weather = weather
        self.notifier = notifier
        self.intervals: Dict[Frequency, int] = {
            Frequency.HOURLY: hourly_interval,
            Frequency.DAILY: daily_interval,
        }
        self.scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()
        self._is_running = False
        self._last_results: Dict[Frequency, DeliveryResult] = {}

    def send_updates(self, frequency: Frequency) -> DeliveryResult:
        """Deliver one round of updates to confirmed subscribers of a bucket."""
        frequency = Frequency(frequency)
        result = DeliveryResult(
            frequency=frequency.value,
            started_at=datetime.utcnow().isoformat()
        )

        try:
            subscriptions = self.store.find_all_confirmed()
        except WeatherNotifyError as e:
            logger.error(f"Failed to load confirmed subscriptions for {frequency.value} updates: {e}")
            result.error_message = str(e)
            result.finished_at = datetime.utcnow().isoformat()
            self._last_results[frequency] = result
            return result

        for subscription in subscriptions:
            if subscription.frequency != frequency:
                continue
            result.recipients += 1

            try:
                weather = self.weather.get_current_weather(subscription.city)
            except WeatherNotifyError as e:
                logger.warning(f"Failed to get weather for {subscription.city}: {e}")
                result.failed += 1
                continue

            try:
                self.notifier.send_update(
                    subscription.email, subscription.city, subscription.token, weather
                )
            except WeatherNotifyError as e:
                logger.warning(f"Failed to send weather update to {subscription.email}: {e}")
                result.failed += 1
                continue

            result.delivered += 1

        result.finished_at = datetime.utcnow().isoformat()
        self._last_results[frequency] = result
        logger.info(f"{frequency.value.capitalize()} updates: {result.delivered}/{result.recipients} "
                    f"delivered, {result.failed} failed")
        return result

    def _run_job(self, frequency: Frequency) -> None:
        try:
            self.send_updates(frequency)
        except Exception:
            logger.exception(f"Unexpected error during {frequency.value} updates")

    def _create_scheduler(self) -> BackgroundScheduler:
        scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            timezone="UTC"
        )
        for frequency, interval in self.intervals.items():
            scheduler.add_job(
                self._run_job,
                trigger=IntervalTrigger(seconds=interval),
                args=[frequency],
                id=f"{frequency.value}_updates",
                name=f"{frequency.value.capitalize()} weather updates",
                max_instances=1,
                coalesce=True,
                replace_existing=True
            )
        return scheduler

    def start(self) -> None:
        """Start the scheduler."""
        with self._lock:
            if self._is_running:
                logger.warning("Scheduler already running")
                return

            self.scheduler = self._create_scheduler()
            self.scheduler.start()
            self._is_running = True

        logger.info(f"Scheduler started: hourly every {self.intervals[Frequency.HOURLY]}s, "
                    f"daily every {self.intervals[Frequency.DAILY]}s")

    def stop(self) -> None:
        """Stop the scheduler without draining an in-flight cycle."""
        with self._lock:
            if not self._is_running:
                return
            self.scheduler.shutdown(wait=False)
            self._is_running = False
        logger.info("Scheduler stopped")

    def get_last_result(self, frequency: Frequency) -> Optional[DeliveryResult]:
        return self._last_results.get(Frequency(frequency))

    def get_status(self) -> dict:
        """Get scheduler status information."""
        status = {
            "is_running": self._is_running,
            "jobs": {},
        }
        for frequency, interval in self.intervals.items():
            job = None
            if self._is_running and self.scheduler:
                job = self.scheduler.get_job(f"{frequency.value}_updates")
            last = self._last_results.get(frequency)
            status["jobs"][frequency.value] = {
                "interval_seconds": interval,
                "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
                "last_result": asdict(last) if last else None,
            }
        return status

    @property
    def is_running(self) -> bool:
        return self._is_running
