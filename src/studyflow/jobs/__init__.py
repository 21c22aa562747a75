"""Background jobs."""

from .notification_cleanup import register_scheduler, run_purge_once

__all__ = ["register_scheduler", "run_purge_once"]
