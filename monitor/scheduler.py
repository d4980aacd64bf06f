"""Foreground scheduler driving periodic evaluation cycles."""
import logging
import time

import schedule

logger = logging.getLogger("cogsync.scheduler")


class MonitorScheduler:
    """One periodic timer per domain monitor.

    Uses a private `schedule.Scheduler` so stopping one domain never touches
    another. The loop runs in the caller's thread; `stop()` clears the job
    immediately and no further cycle runs until `start()` is called again.
    """

    def __init__(self, monitor, interval_seconds=None):
        self.monitor = monitor
        self.interval = interval_seconds or monitor.rule_set.interval_seconds
        self._scheduler = schedule.Scheduler()
        self._job = None
        self._callbacks = []
        self._consecutive_failures = 0
        self.cycles = 0

    def on_cycle(self, callback):
        """Register callback called with (monitor, status) after each cycle."""
        self._callbacks.append(callback)

    @property
    def running(self):
        return self._job is not None

    def start(self):
        if self.running:
            return
        self._job = self._scheduler.every(self.interval).seconds.do(self._cycle_job)
        logger.info(f"{self.monitor.domain}: scheduler started (every {self.interval}s)")

    def stop(self):
        if not self.running:
            return
        self._scheduler.clear()
        self._job = None
        logger.info(f"{self.monitor.domain}: scheduler stopped")

    def run_pending(self):
        if self.running:
            self._scheduler.run_pending()

    def run_now(self):
        """Run one cycle immediately, outside the timer."""
        if self.running:
            self._cycle_job()

    def run(self, max_cycles=None, poll_seconds=0.1, sleep=time.sleep):
        """Block, running cycles on schedule until stopped or max_cycles is reached."""
        self.start()
        self.run_now()
        while self.running and (max_cycles is None or self.cycles < max_cycles):
            self.run_pending()
            sleep(poll_seconds)

    def _cycle_job(self):
        try:
            status = self.monitor.run_cycle()
            self.cycles += 1
            self._consecutive_failures = 0
            for cb in self._callbacks:
                try:
                    cb(self.monitor, status)
                except Exception as e:
                    logger.warning(f"Callback error: {e}")
        except Exception as e:
            self._consecutive_failures += 1
            logger.error(f"{self.monitor.domain}: cycle failed ({self._consecutive_failures} consecutive): {e}")
            if self._consecutive_failures >= 5:
                logger.critical(f"{self.monitor.domain}: 5+ consecutive cycle failures!")
