"""Static metadata describing QuizRunner."""

APP_NAME = "QuizRunner"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizRunner drives timed multiple-choice quiz attempts: answer capture, "
    "navigation, grading, review and retakes, exposed over a small HTTP API."
)
