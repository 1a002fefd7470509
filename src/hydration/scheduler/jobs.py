"""
APScheduler jobs for reminder delivery and retention.

reminder_tick runs every few minutes: it delivers reminders that have come
due and schedules the next one for every user with reminders enabled.
reminder_cleanup runs nightly and soft-deletes reminder logs past the
retention window.

The scheduler runs in the `python -m hydration` process (wired in __main__).
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from hydration.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(engine, notifier=None) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: SQLAlchemy engine passed to the reminder service.
        notifier: delivery adapter with send(reminder); defaults to LogNotifier.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    from hydration.delivery.notifier import LogNotifier

    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _reminder_tick,
        trigger="interval",
        minutes=settings.reminder_tick_minutes,
        id="reminder_tick",
        replace_existing=True,
        kwargs={"engine": engine, "notifier": notifier or LogNotifier()},
    )
    scheduler.add_job(
        _reminder_cleanup,
        trigger="cron",
        hour=settings.cleanup_hour,
        minute=0,
        id="reminder_cleanup",
        replace_existing=True,
        kwargs={"engine": engine},
    )

    return scheduler


async def _reminder_tick(engine, notifier) -> None:
    """
    Deliver due reminders and keep one pending reminder per enabled user.

    A failure for one user is logged and does not stop the others.
    """
    from hydration.reminders.service import build_reminder_service

    service = build_reminder_service(engine)
    for user_id in service.settings_store.enabled_user_ids():
        try:
            reminder = service.tick(user_id, notifier)
            if reminder is not None:
                logger.info(
                    "Next reminder for user %s at %s",
                    user_id, reminder.scheduled_at.isoformat(),
                )
        except Exception as exc:
            logger.error("Reminder tick failed for user %s: %s", user_id, exc)


async def _reminder_cleanup(engine) -> None:
    """Nightly job: soft-delete reminder logs older than the retention window."""
    from hydration.reminders.service import build_reminder_service

    settings = get_settings()
    logger.info("Reminder cleanup starting (retention %d days)", settings.reminder_retention_days)

    try:
        hidden = build_reminder_service(engine).purge_expired(settings.reminder_retention_days)
        logger.info("Reminder cleanup removed %d log row(s)", hidden)
    except Exception as exc:
        logger.error("Reminder cleanup failed: %s", exc)
