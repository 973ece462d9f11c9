"""Application entry point for QuizRunner."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
import signal
import sys

from PySide6.QtCore import QCoreApplication

from quiz_runner.constants.about import APP_NAME, APP_VERSION
from quiz_runner.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_runner.core.quiz_importer import QuizImportError, load_quiz_from_file
from quiz_runner.core.quiz_manager import QuizManager
from quiz_runner.core.result_sinks import JsonLinesResultSink, ResultSink
from quiz_runner.core.session_ticker import SessionTicker
from quiz_runner.server.api_server import start_api_server
from quiz_runner.utils.logging_config import configure_logging


@dataclass(slots=True)
class RunnerSettings:
    """Runtime options collected from the command line."""

    quiz_files: list[Path] = field(default_factory=list)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    require_all_answered: bool = False
    results_file: Path | None = None
    log_level: str = "INFO"


def parse_settings(argv: list[str] | None = None) -> RunnerSettings:
    parser = argparse.ArgumentParser(prog="quiz-runner", description=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("quiz_files", nargs="+", type=Path, help="Quiz text files to load.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--require-all-answered",
        action="store_true",
        help="Refuse explicit submission while questions are unanswered.",
    )
    parser.add_argument("--results-file", type=Path, help="Append finished results here as JSON lines.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args(argv)
    return RunnerSettings(
        quiz_files=list(args.quiz_files),
        host=args.host,
        port=args.port,
        require_all_answered=args.require_all_answered,
        results_file=args.results_file,
        log_level=args.log_level,
    )


def build_quiz_manager(settings: RunnerSettings) -> QuizManager:
    sinks: list[ResultSink] = []
    if settings.results_file is not None:
        sinks.append(JsonLinesResultSink(settings.results_file))
    manager = QuizManager(require_all_answered=settings.require_all_answered, sinks=sinks)
    for quiz_file in settings.quiz_files:
        manager.load_quiz(load_quiz_from_file(quiz_file))
    return manager


def main(argv: list[str] | None = None) -> None:
    """Load quizzes, start the API server and run the tick loop."""
    settings = parse_settings(argv)
    logger = configure_logging(settings.log_level)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    try:
        quiz_manager = build_quiz_manager(settings)
    except (OSError, QuizImportError) as exc:
        logger.error("Could not load quizzes: %s", exc)
        sys.exit(1)

    app = QCoreApplication(sys.argv)
    ticker = SessionTicker(quiz_manager)
    ticker.start()
    start_api_server(quiz_manager=quiz_manager, host=settings.host, port=settings.port)
    logger.info("Quiz API available at http://%s:%d/", settings.host, settings.port)

    signal.signal(signal.SIGINT, lambda *_: app.quit())
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
