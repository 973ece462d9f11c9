"""Quiz-related constants shared across the engine, ticker and API layers."""

SECONDS_PER_MINUTE: int = 60
TICK_INTERVAL_MS: int = 1000
PASSING_SCORE_PERCENT: int = 70
LOW_TIME_WARNING_SECONDS: int = 300
MIN_OPTIONS_PER_QUESTION: int = 2
DEFAULT_TOP_PERFORMER_COUNT: int = 3
SUBMITTED_ATTEMPT_RETENTION_SECONDS: int = 3600
