"""
Scheduler - Orchestration Layer

Interval-based execution of the sync and enrichment services.
Each service runs once at startup and then every N minutes; a trigger
that fires while the previous run is still active is skipped.
"""

import schedule
import signal
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceJob:
    """One scheduled service: a run callable plus its interval"""

    name: str
    run: Callable[[], object]
    interval_minutes: int
    lock: threading.Lock = field(default_factory=threading.Lock)


class ServiceScheduler:
    """Runs registered service jobs on fixed minute intervals"""

    def __init__(self, poll_seconds: float = 1.0):
        self.poll_seconds = poll_seconds
        self.running = False
        self.jobs: Dict[str, ServiceJob] = {}
        self._scheduler = schedule.Scheduler()

    def add_job(self, name: str, run: Callable[[], object], interval_minutes: int) -> ServiceJob:
        """Register a service to run every ``interval_minutes``"""
        job = ServiceJob(name=name, run=run, interval_minutes=interval_minutes)
        self.jobs[name] = job
        self._scheduler.every(interval_minutes).minutes.do(self.run_job, name)
        logger.info(f"📅 Scheduled {name} every {interval_minutes} minutes")
        return job

    def run_job(self, name: str) -> Optional[object]:
        """
        Run one job unless its previous run is still active

        Failures are logged and swallowed so later triggers still fire.

        Returns:
            The job's result, or None if skipped or failed
        """
        job = self.jobs[name]
        if not job.lock.acquire(blocking=False):
            logger.warning(f"⏭️ {name} is still running, skipping this trigger")
            return None

        try:
            logger.info(f"🔄 Scheduled {name} starting...")
            result = job.run()
            logger.info(f"✅ Scheduled {name} completed: {result}")
            return result
        except Exception as e:
            logger.error(f"❌ Scheduled {name} failed: {e}", exc_info=True)
            return None
        finally:
            job.lock.release()

    def run_all_now(self) -> List[Optional[object]]:
        """Run every registered job once, in registration order"""
        return [self.run_job(name) for name in self.jobs]

    def _handle_signal(self, signum, frame):
        logger.info(f"🛑 Received signal {signum}, shutting down...")
        self.running = False
        sys.exit(0)

    def start(self, run_immediately: bool = True):
        """Start the scheduler loop"""
        logger.info("🚀 Starting service scheduler...")
        signal.signal(signal.SIGTERM, self._handle_signal)

        self.running = True
        try:
            if run_immediately:
                self.run_all_now()

            while self.running:
                self._scheduler.run_pending()
                time.sleep(self.poll_seconds)

        except KeyboardInterrupt:
            logger.info("🛑 Scheduler stopped by user")
            self.running = False

    def stop(self):
        """Stop the scheduler"""
        logger.info("🛑 Stopping scheduler...")
        self.running = False
        self._scheduler.clear()
