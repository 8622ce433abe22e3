"""Cron-style caller for the automated reminder trigger."""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .ratelimit import RateLimitExceeded
from .workflows import ReminderTrigger, TriggerRequest, build_services, build_triggers

logger = logging.getLogger(__name__)

CALLER_KEY = "scheduler"


def run_automated_scan(trigger: ReminderTrigger) -> None:
    """One automated pass. Errors are logged so the next minute still runs."""
    try:
        result = trigger.run(TriggerRequest(automated=True), CALLER_KEY)
    except RateLimitExceeded as e:
        logger.warning(str(e))
        return
    except Exception:
        logger.exception("Automated reminder scan failed")
        return

    if result.sent or result.failed:
        logger.info(f"Automated scan: sent={result.sent} failed={result.failed} skipped={result.skipped}")


def create_scheduler(config: Config | None = None) -> BlockingScheduler:
    """Scheduler that fires the automated scan at the top of every UTC minute."""
    if config is None:
        config = load_config()

    trigger, _ = build_triggers(config, build_services(config))

    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        run_automated_scan,
        CronTrigger(second=0, timezone="UTC"),
        args=[trigger],
        id="automated_reminders",
        name="Automated reminder scan",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def run_scheduler(config: Config | None = None) -> None:
    """Run until interrupted."""
    scheduler = create_scheduler(config)
    logger.info("Reminder scheduler started")
    scheduler.start()
