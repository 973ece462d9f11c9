"""Qt timer that feeds one-second ticks to every live quiz attempt."""

from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QTimer, Signal

from quiz_runner.constants.quiz_constants import TICK_INTERVAL_MS
from quiz_runner.core.models import QuizResult
from quiz_runner.core.quiz_manager import QuizManager

logger = logging.getLogger(__name__)


class SessionTicker(QObject):
    """Drives ``QuizManager.tick_all`` from a repeating QTimer."""

    attempt_timed_out = Signal(object)

    def __init__(
        self,
        quiz_manager: QuizManager,
        interval_ms: int = TICK_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._quiz_manager = quiz_manager
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick_once)

    def start(self) -> None:
        if not self._timer.isActive():
            logger.info("Session ticker started (%d ms interval)", self._timer.interval())
            self._timer.start()

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
            logger.info("Session ticker stopped")

    def is_running(self) -> bool:
        return self._timer.isActive()

    def tick_once(self) -> list[QuizResult]:
        expired = self._quiz_manager.tick_all()
        for result in expired:
            logger.info("Attempt %s ran out of time", result.session_id)
            self.attempt_timed_out.emit(result)
        return expired
