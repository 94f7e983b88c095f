import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

class PeriodicCleanup:
    """Owns a scheduler that calls ``self.cleanup()`` on a fixed interval.

    Subclasses provide ``cleanup()`` and a ``job_id``. Nothing is scheduled
    until ``start()`` is called, and ``shutdown()`` stops the scheduler again,
    so the sweep lives exactly as long as the owning store is in service.
    """

    job_id = "cleanup"

    def __init__(self, cleanup_interval_minutes: int = 60):
        self.cleanup_interval_minutes = cleanup_interval_minutes
        self.scheduler = AsyncIOScheduler()

    def cleanup(self) -> int:
        raise NotImplementedError

    def _run_cleanup(self):
        try:
            removed = self.cleanup()
            if removed:
                logger.info(f"{self.job_id}: removed {removed} expired entries")
        except Exception as e:
            logger.error(f"{self.job_id}: cleanup failed: {str(e)}")

    def start(self):
        """Start the periodic sweep. Must be called with a running event loop."""
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self._run_cleanup,
            trigger="interval",
            minutes=self.cleanup_interval_minutes,
            id=self.job_id,
            replace_existing=True,
        )
        self.scheduler.start()

    def shutdown(self):
        """Stop the periodic sweep."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    @property
    def running(self) -> bool:
        return self.scheduler.running
