"""Background task scheduler using APScheduler."""

import asyncio
import logging
import signal
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from hrms_api.config import get_settings
from hrms_api.exceptions import HRMSError
from hrms_api.utils.secure_logging import log_error, log_warning

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None


async def sync_open_submissions_job() -> None:
    """Background job to pull the status of every open form submission."""
    from hrms_api.dependencies import get_document_workflow, get_form_store

    workflow = get_document_workflow()
    if workflow.provider is None:
        logger.debug("Submission sync skipped (DocuSeal not configured)")
        return

    submissions = await get_form_store().list_submissions(open_only=True)
    logger.info(f"Syncing {len(submissions)} open submission(s)")

    completed = 0
    for submission in submissions:
        try:
            updated = await workflow.update_submission_status(submission.submission_id)
        except HRMSError as e:
            log_warning(logger, f"Status sync failed for submission {submission.submission_id}", e)
            continue
        if updated is not None and updated.status == "completed":
            completed += 1
            try:
                await workflow.archive_signed_documents(submission.submission_id)
            except HRMSError as e:
                log_warning(logger, f"Archiving failed for submission {submission.submission_id}", e)

    logger.info(f"Submission sync completed: {completed} newly completed")


async def send_invitation_reminders_job() -> None:
    """Background job to remind invitees who have not registered yet."""
    from hrms_api.dependencies import get_onboarding_controller

    try:
        sent = await get_onboarding_controller().send_due_reminders()
        logger.info(f"Invitation reminder run completed: {sent} sent")
    except Exception as e:
        log_error(logger, "Invitation reminder run failed", e)


async def sync_templates_job() -> None:
    """Background job to refresh the DocuSeal template cache."""
    from hrms_api.dependencies import get_document_workflow

    workflow = get_document_workflow()
    if workflow.provider is None:
        return
    try:
        result = await workflow.sync_templates()
        logger.info(result.message)
    except Exception as e:
        log_error(logger, "Template sync failed", e)


async def start_scheduler() -> None:
    """Start the background task scheduler."""
    global _scheduler

    settings = get_settings()
    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        sync_open_submissions_job,
        trigger=IntervalTrigger(minutes=settings.submission_sync_interval_minutes),
        id="sync_open_submissions",
        name="Sync open form submissions",
        replace_existing=True,
        max_instances=1,
        next_run_time=datetime.now(),  # Run immediately on startup
    )

    _scheduler.add_job(
        send_invitation_reminders_job,
        trigger=IntervalTrigger(hours=1),
        id="send_invitation_reminders",
        name="Send invitation reminders",
        replace_existing=True,
        max_instances=1,
    )

    # Schedule template refresh (daily)
    _scheduler.add_job(
        sync_templates_job,
        trigger=IntervalTrigger(hours=24),
        id="sync_templates",
        name="Sync DocuSeal templates",
        replace_existing=True,
    )

    _scheduler.start()
    logger.info("Background scheduler started")


async def stop_scheduler() -> None:
    """Stop the background task scheduler."""
    global _scheduler

    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Background scheduler stopped")


async def _run_forever() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await start_scheduler()
    try:
        await stop.wait()
    finally:
        await stop_scheduler()


def main() -> None:
    """Run the scheduler as a standalone process."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_run_forever())


if __name__ == "__main__":
    main()
