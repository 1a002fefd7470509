"""
Main entrypoint: runs the APScheduler reminder jobs in one process.

FastAPI runs separately under an ASGI server.

Usage:
    python -m hydration                                          # starts scheduler
    uvicorn hydration.api.main:app --host 0.0.0.0 --port 8000    # starts API
"""
import asyncio
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _run_scheduler() -> None:
    from hydration.config import get_settings
    from hydration.db.engine import get_engine
    from hydration.scheduler.jobs import build_scheduler

    settings = get_settings()
    engine = get_engine()

    scheduler = build_scheduler(engine)
    scheduler.start()
    logger.info(
        "Scheduler started (reminder tick every %d min, cleanup at %02d:00 UTC)",
        settings.reminder_tick_minutes,
        settings.cleanup_hour,
    )

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()
        logger.info("Goodbye.")


if __name__ == "__main__":
    asyncio.run(_run_scheduler())
