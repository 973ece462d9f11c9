from PySide6.QtCore import QCoreApplication
import pytest

from quiz_runner.core.models import SessionStatus
from quiz_runner.core.quiz_manager import QuizManager
from quiz_runner.core.session_ticker import SessionTicker

from conftest import make_definition


@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def manager(clock):
    quiz_manager = QuizManager(clock=clock)
    quiz_manager.load_quiz(make_definition(quiz_id="timed", time_limit_minutes=1))
    return quiz_manager


def test_tick_once_emits_timed_out_attempts(qt_app, manager):
    ticker = SessionTicker(manager)
    emitted = []
    ticker.attempt_timed_out.connect(lambda result: emitted.append(result))
    attempt_id = manager.start_attempt("timed", "ada").attempt_id

    for _ in range(59):
        assert ticker.tick_once() == []
    expired = ticker.tick_once()

    assert [r.session_id for r in expired] == [attempt_id]
    assert emitted == expired
    assert manager.get_attempt(attempt_id).status is SessionStatus.SUBMITTED


def test_start_and_stop(qt_app, manager):
    ticker = SessionTicker(manager, interval_ms=10)
    assert not ticker.is_running()

    ticker.start()
    assert ticker.is_running()
    ticker.stop()
    assert not ticker.is_running()
