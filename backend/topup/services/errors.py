"""
Top-Up Reconciler - Failure Reporting

One catch boundary per grant (and per deployment within a grant).
Failures are sent to an error tracker, which returns an event id, and
logged with that id and the formatted traceback. Nothing is re-raised.
"""

import logging
import traceback
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from topup.core.logging import log_event

logger = logging.getLogger(__name__)


class ErrorTracker(ABC):
    """External error-tracking sink."""
    
    @abstractmethod
    async def capture(self, error: BaseException) -> str:
        """Record `error` and return its correlation id."""
        pass


class LoggingErrorTracker(ErrorTracker):
    """Tracker that records captured errors in the log only."""
    
    async def capture(self, error: BaseException) -> str:
        event_id = uuid.uuid4().hex
        log_event(
            logger,
            logging.WARNING,
            "ERROR_CAPTURED",
            event_id=event_id,
            error_type=type(error).__name__,
            message=str(error),
        )
        return event_id


class FailureReporter:
    """Runs operations behind the error isolation boundary."""
    
    def __init__(self, tracker: Optional[ErrorTracker] = None):
        self.tracker = tracker or LoggingErrorTracker()
    
    async def exec_with_error_handler(
        self,
        op: Callable[[], Awaitable[Any]],
        **context: Any,
    ) -> bool:
        """
        Await `op()`, reporting any failure instead of raising it.
        
        Returns:
            True if `op` completed, False if it failed and was reported
        """
        try:
            await op()
            return True
        except Exception as error:
            event_id = await self._capture(error)
            log_event(
                logger,
                logging.ERROR,
                "TOP_UP_FAILED",
                error="".join(traceback.format_exception(type(error), error, error.__traceback__)),
                event_id=event_id,
                **context,
            )
            return False
    
    async def _capture(self, error: Exception) -> Optional[str]:
        try:
            return await self.tracker.capture(error)
        except Exception as e:
            logger.error(f"[ERRORS] Error tracker failed: {e}")
            return None
