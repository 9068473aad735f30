import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

# Seconds within which a restarted process keeps appending to the previous log
SESSION_REUSE_SECONDS = 60

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"


def resolve_logs_dir() -> Path:
    """``MODMAIL_LOG_DIR`` if set, else ``logs/`` next to ``src/``."""
    override = os.getenv("MODMAIL_LOG_DIR")
    if override:
        return Path(override).resolve()
    return (Path(__file__).parents[3] / "logs").resolve()


LOGS_DIR: Path = resolve_logs_dir()

_session_log: Path | None = None


# -------------------- Formatters & Handlers --------------------
class ColorFormatter(logging.Formatter):
    """Formatter that colours the whole line by level (cyan, green, yellow, red)."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if color is None:
            return line
        return f"{color}{line}{RESET_COLOR}"


class PromptToolkitHandler(logging.Handler):
    """
    Console handler that writes through prompt_toolkit.

    ``print_formatted_text`` redraws the interactive console prompt below the
    record instead of printing over the moderator's half-typed command.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    """True when stderr is a terminal."""
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
console_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Logger Setup --------------------
def get_log_filepath() -> Path:
    """
    Log file shared by every logger in this process.

    The newest log from today is reused when it was written to within
    ``SESSION_REUSE_SECONDS``, so a console ``restart`` continues the same
    file. Otherwise a fresh timestamped file is chosen.
    """
    global _session_log

    if _session_log is not None:
        return _session_log

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    now = datetime.now()
    todays_logs = sorted(
        LOGS_DIR.glob(f"{now:%Y-%m-%d}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    if todays_logs and now.timestamp() - todays_logs[0].stat().st_mtime < SESSION_REUSE_SECONDS:
        _session_log = todays_logs[0]
    else:
        _session_log = LOGS_DIR / f"{now.strftime(DATE_FORMAT)}.log"
    return _session_log


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the console (INFO) and session file (DEBUG) handlers once.

    Parameters
    ----------
    logger_name:
        Name of the logger to configure.

    Returns
    -------
    logging.Logger
        The configured logger; repeated calls return it unchanged.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=console_formatter)
    console_handler.setLevel(logging.INFO)

    file_handler = logging.FileHandler(get_log_filepath(), encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(plain_formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Logger for a Modmail module, configured on first request."""
    return setup_logger(logger_name)


# -------------------- Exception Handling --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """
    ``sys.excepthook`` that logs uncaught exceptions.

    KeyboardInterrupt goes to the default hook so Ctrl-C still exits quietly.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


# -------------------- Library Noise --------------------
NOISY_LOGGERS = (
    "discord", "discord.gateway", "discord.client", "discord.http",
    "websockets", "aiohttp", "aiosqlite", "asyncio",
)


def silence_loggers(names=NOISY_LOGGERS, level: int = logging.ERROR) -> None:
    """Raise library loggers to ``level`` and drop handlers they installed."""
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(level)
        library_logger.propagate = False
        library_logger.handlers = []


silence_loggers()
