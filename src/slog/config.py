"""Settings loading for applications that configure slog from files.

Settings are resolved in three layers, later layers winning:
    1. LogSettings defaults
    2. ``[logging]`` section of an optional INI file
    3. Environment variables SLOG_LEVEL and SLOG_FATAL

Example settings file::

    [logging]
    level = info
    fatal = no
    colored = yes
    separator = >
"""

from __future__ import annotations

import configparser
import logging
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path  # noqa: TC003 - Path used at runtime

from slog.constants import (
    ENV_FATAL,
    ENV_LEVEL,
    SETTINGS_SECTION,
    SOURCE_SEPARATOR,
)
from slog.exceptions import ConfigurationError
from slog.levels import Level, parse_level
from slog.logger import RootLogger
from slog.reporters import StreamReporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogSettings:
    """Resolved logging settings.

    Attributes:
        level: Initial threshold of the root logger
        fatal: Whether ERR entries terminate the process
        colored: Whether console lines carry a colored level name
        separator: String placed between source segments

    """

    level: Level = Level.WARN
    fatal: bool = True
    colored: bool = False
    separator: str = SOURCE_SEPARATOR


def _parse_bool(value: str, name: str) -> bool:
    states = configparser.ConfigParser.BOOLEAN_STATES
    state = states.get(value.strip().lower())
    if state is None:
        msg = f"expected a boolean, got {value!r}"
        raise ConfigurationError(msg, target=name)
    return state


def load_log_settings(config_file: Path | None = None) -> LogSettings:
    """Load logging settings from defaults, a file and the environment.

    A missing file is not an error; the defaults are used instead.

    Args:
        config_file: Optional INI file with a ``[logging]`` section

    Returns:
        Resolved settings

    Raises:
        ConfigurationError: If the file cannot be parsed or a value is
            invalid

    """
    settings = LogSettings()

    if config_file is not None and config_file.exists():
        parser = configparser.ConfigParser(
            inline_comment_prefixes=("#", ";"),
            interpolation=None,
        )
        try:
            parser.read(config_file, encoding="utf-8")
        except configparser.Error as e:
            msg = f"cannot parse {config_file}: {e}"
            raise ConfigurationError(msg, target=str(config_file)) from e

        if parser.has_section(SETTINGS_SECTION):
            section = parser[SETTINGS_SECTION]
            if "level" in section:
                settings = replace(
                    settings, level=parse_level(section["level"])
                )
            if "fatal" in section:
                settings = replace(
                    settings, fatal=_parse_bool(section["fatal"], "fatal")
                )
            if "colored" in section:
                settings = replace(
                    settings,
                    colored=_parse_bool(section["colored"], "colored"),
                )
            if "separator" in section:
                settings = replace(settings, separator=section["separator"])
            logger.debug("Loaded logging settings from %s", config_file)

    env_level = os.getenv(ENV_LEVEL)
    if env_level:
        settings = replace(settings, level=parse_level(env_level))
    env_fatal = os.getenv(ENV_FATAL)
    if env_fatal:
        settings = replace(settings, fatal=_parse_bool(env_fatal, ENV_FATAL))

    return settings


def setup_logging(
    source: str, settings: LogSettings | None = None
) -> RootLogger:
    """Create a root logger reporting to stdout.

    Args:
        source: Source segment of the root logger
        settings: Settings to apply, loaded with load_log_settings()
            when None

    Returns:
        A started root logger

    """
    if settings is None:
        settings = load_log_settings()
    reporter = StreamReporter(
        sys.stdout,
        fatal=settings.fatal,
        colored=settings.colored,
        separator=settings.separator,
    )
    return RootLogger(source, settings.level, reporter)
