# src/xconvert/application/scheduler.py
"""
Job Scheduler - Periodic Rate Refresh and Daily Reports

This module owns the APScheduler BackgroundScheduler (UTC) and the two
recurring jobs:
- rateUpdate: refresh every stored pair from the providers (hourly by default)
- dailyReport: at DAILY_REPORT_HOUR:00 UTC, build the previous day's report and
  write its PDF to REPORT_DIR, skipping days without conversions

Job failures are logged and the job keeps its schedule. Jobs can be paused
(stop) and resumed (start) individually or all together.

Files that USE this module:
- xconvert.app (composition root starts/shuts down the scheduler)
- xconvert.adapters.http.api (cron routes)
- tests.test_scheduler (unit tests)

Files that this module USES:
- xconvert.application.rates_service (refresh_all_from_providers)
- xconvert.application.report_service (daily_report, write_document)
- xconvert.config (settings for intervals, hour and report directory)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging  # Standard library for logging messages
from datetime import timedelta  # Previous-day arithmetic
from pathlib import Path  # Report directory
from typing import Any, Dict, Optional  # Type hints

from apscheduler.schedulers.background import BackgroundScheduler  # Thread-based scheduler
from apscheduler.triggers.cron import CronTrigger  # Daily report trigger
from apscheduler.triggers.interval import IntervalTrigger  # Rate refresh trigger

from xconvert.application.report_service import utc_today
from xconvert.config import settings  # Application configuration and settings
from xconvert.domain.errors import NotFoundError
from xconvert.domain.models import isoformat

log = logging.getLogger(__name__)

RATE_UPDATE_JOB = "rateUpdate"
DAILY_REPORT_JOB = "dailyReport"
JOB_NAMES = (RATE_UPDATE_JOB, DAILY_REPORT_JOB)


class JobScheduler:
    def __init__(self, rates_service, report_service, scheduler: Optional[BackgroundScheduler] = None,
                 refresh_minutes: Optional[int] = None, report_hour: Optional[int] = None,
                 report_dir: Optional[Path] = None):
        """
        Args:
            rates_service: RatesService used by the rate refresh job
            report_service: ReportService used by the daily report job
            scheduler: Scheduler instance (defaults to a UTC BackgroundScheduler)
            refresh_minutes: Rate refresh interval (defaults to settings.rate_refresh_minutes)
            report_hour: UTC hour of the daily report (defaults to settings.daily_report_hour)
            report_dir: Where daily PDFs are written (defaults to settings.report_dir)
        """
        self.rates_service = rates_service
        self.report_service = report_service
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self.refresh_minutes = refresh_minutes or settings.rate_refresh_minutes
        self.report_hour = settings.daily_report_hour if report_hour is None else report_hour
        self.report_dir = Path(report_dir or settings.report_dir)
        self._register_jobs()

    def _register_jobs(self) -> None:
        self.scheduler.add_job(
            self.run_rate_update,
            IntervalTrigger(minutes=self.refresh_minutes, timezone="UTC"),
            id=RATE_UPDATE_JOB,
            name="Hourly rate refresh",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.add_job(
            self.run_daily_report,
            CronTrigger(hour=self.report_hour, minute=0, timezone="UTC"),
            id=DAILY_REPORT_JOB,
            name="Daily conversion report",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        log.info("Scheduled jobs: %s every %d min, %s daily at %02d:00 UTC",
                 RATE_UPDATE_JOB, self.refresh_minutes, DAILY_REPORT_JOB, self.report_hour)

    # ------------------------------------------------------------------
    # Job bodies
    # ------------------------------------------------------------------

    def run_rate_update(self) -> Optional[Dict[str, Any]]:
        log.info("Starting scheduled rate update...")
        try:
            result = self.rates_service.refresh_all_from_providers()
        except Exception as e:
            log.exception("Scheduled rate update failed: %s", e)
            return None
        log.info("Scheduled rate update completed: %s pairs", result.get("updated"))
        return result

    def run_daily_report(self) -> Optional[Path]:
        """
        Write yesterday's report as PDF.

        Returns:
            Path of the written file, or None if skipped or failed
        """
        day = utc_today() - timedelta(days=1)
        log.info("Generating daily report for %s...", day)
        try:
            report = self.report_service.daily_report(day)
            if report.statistics.total_conversions == 0:
                log.info("No conversions on %s, skipping daily report", day)
                return None
            return self.report_service.write_document(report, self.report_dir)
        except Exception as e:
            log.exception("Daily report generation failed: %s", e)
            return None

    def manual_rate_update(self) -> Dict[str, Any]:
        """Run the rate refresh now, in the calling thread."""
        log.info("Manual rate update triggered")
        return self.rates_service.refresh_all_from_providers()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def _job(self, name: str):
        job = self.scheduler.get_job(name) if name in JOB_NAMES else None
        if job is None:
            raise NotFoundError(f"Job {name} not found")
        return job

    def status(self) -> Dict[str, Dict[str, Any]]:
        """{name: {running, nextRun}} for every job."""
        result: Dict[str, Dict[str, Any]] = {}
        for name in JOB_NAMES:
            job = self.scheduler.get_job(name)
            # Pending jobs (scheduler not started) have no next_run_time yet
            next_run = getattr(job, "next_run_time", None) if job is not None else None
            result[name] = {
                "running": bool(self.scheduler.running and next_run is not None),
                "nextRun": isoformat(next_run),
            }
        return result

    def start_job(self, name: str) -> Dict[str, str]:
        self._job(name)
        if not self.scheduler.running:
            # Only the named job runs until start_all
            for other in JOB_NAMES:
                if other != name:
                    self.scheduler.pause_job(other)
            self.scheduler.start()
        self.scheduler.resume_job(name)
        log.info("Job %s started", name)
        return {"message": f"Job {name} started"}

    def stop_job(self, name: str) -> Dict[str, str]:
        self._job(name)
        self.scheduler.pause_job(name)
        log.info("Job %s stopped", name)
        return {"message": f"Job {name} stopped"}

    def start_all(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
        for name in JOB_NAMES:
            self.scheduler.resume_job(name)
        log.info("All scheduled jobs started")

    def stop_all(self) -> None:
        for name in JOB_NAMES:
            if self.scheduler.get_job(name) is not None:
                self.scheduler.pause_job(name)
        log.info("All scheduled jobs stopped")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("Scheduler shut down")
