"""Background recording of login statistics."""

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from account_service.database import SessionLocal, session_scope
from account_service.services.user_store import UserStore

logger = logging.getLogger("account_service.statistics")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class LoginStatsRecorder:
    """Best-effort login counter updates, detached from the login response.

    Each update runs on the executor with its own database session. Failures
    are logged and never reach the caller.
    """

    def __init__(self, session_factory: Callable[[], Session], executor: Executor) -> None:
        self.session_factory = session_factory
        self.executor = executor

    def record(self, user_id: str) -> Future | None:
        """Schedule an increment of today's counters for ``user_id``."""
        try:
            return self.executor.submit(self._increment, user_id, utc_today())
        except RuntimeError:
            logger.exception("Could not schedule login statistics for user %s", user_id)
            return None

    def _increment(self, user_id: str, day: date) -> None:
        try:
            with session_scope(self.session_factory) as db:
                UserStore(db).increment_login_counters(user_id, day)
        except Exception:
            logger.exception("Error updating login times for user %s", user_id)


_login_stats_recorder: LoginStatsRecorder | None = None


def get_login_stats_recorder() -> LoginStatsRecorder:
    """Get singleton recorder backed by a small thread pool."""
    global _login_stats_recorder
    if _login_stats_recorder is None:
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="login-stats")
        _login_stats_recorder = LoginStatsRecorder(SessionLocal, executor)
    return _login_stats_recorder
