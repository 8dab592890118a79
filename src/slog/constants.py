"""Constants shared across the slog package."""

# Separator placed between source path segments when rendering.
SOURCE_SEPARATOR = "➤"

# stop() timeout that returns immediately without waiting for drain.
NO_WAIT = 0.0

# Matches the standard date/time prefix of a println-style logger.
LOG_STREAM_FORMAT = "%(asctime)s %(message)s"
LOG_STREAM_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"
LOG_COLORED_FORMAT = "%(asctime)s %(levelname)s %(message)s"

DISPATCH_THREAD_PREFIX = "slog-dispatch"

# Environment overrides applied on top of settings files
ENV_LEVEL = "SLOG_LEVEL"
ENV_FATAL = "SLOG_FATAL"

SETTINGS_SECTION = "logging"

# LogRecord attribute carrying the Entry a LogReporter record came from
ENTRY_RECORD_ATTR = "slog_entry"

# Keyed by Level name
LEVEL_COLORS = {
    "ERR": "\033[31m",  # Red
    "WARN": "\033[33m",  # Yellow
    "INFO": "\033[32m",  # Green
}
COLOR_RESET = "\033[0m"
